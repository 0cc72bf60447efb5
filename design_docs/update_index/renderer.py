"""Rendering utilities for the design index."""
from __future__ import annotations

import os
import stat
from collections.abc import Iterable
from pathlib import Path
from tempfile import NamedTemporaryFile

from .parser import Document, DocumentKind

GENERATED_NOTICE = [
    "<!--",
    "",
    "This file is auto-generated. Direct changes to it may be lost.",
    "",
    "Use update-index to regenerate it:",
    "",
    "    update-index <directory>",
    "",
    "-->",
]

TABLE_HEADER = ["|Year|Title|Owners|", "|----|-----|------|"]


def sort_key(document: Document) -> tuple[bool, int, str]:
    # Documents without a year sort ahead of every dated one.
    return (document.year is not None, document.year or 0, document.title)


def sort_documents(documents: Iterable[Document]) -> list[Document]:
    return sorted(documents, key=sort_key)


def relative_link_path(path: Path, link_base: Path) -> str:
    return Path(os.path.relpath(path, link_base)).as_posix()


def markdown_link(document: Document, link_base: Path) -> str:
    return f"[{document.title}]({relative_link_path(document.path, link_base)})"


def escape_cell(value: str) -> str:
    return value.replace("|", "\\|")


def format_row(document: Document, link_base: Path) -> str:
    year = "" if document.year is None else str(document.year)
    link = escape_cell(markdown_link(document, link_base))
    owners = ", ".join(document.owners)
    return f"| {year} | {link} | {owners} |"


def render_list(
    documents: Iterable[Document], kind: DocumentKind, header: str, link_base: Path
) -> list[str]:
    lines = [f"## {header}", ""]
    for document in sort_documents(d for d in documents if d.kind is kind):
        lines.append(f"* {markdown_link(document, link_base)}")
    return lines


def render_table(
    documents: Iterable[Document], kind: DocumentKind, header: str, link_base: Path
) -> list[str]:
    lines = [f"## {header}", "", *TABLE_HEADER]
    for document in sort_documents(d for d in documents if d.kind is kind):
        lines.append(format_row(document, link_base))
    return lines


def render_index(documents: Iterable[Document], link_base: Path) -> str:
    """Render the index for ``documents`` with links relative to ``link_base``.

    The output depends only on the documents themselves, never on the order
    they were discovered in, so regenerating an unchanged tree is a no-op.
    """
    documents = list(documents)
    lines = [*GENERATED_NOTICE, "", "# Design Index", ""]
    lines.extend(render_list(documents, DocumentKind.META, "Meta", link_base))
    lines.append("")
    lines.extend(render_table(documents, DocumentKind.ACCEPTED_DESIGN, "Accepted", link_base))
    lines.append("")
    lines.extend(render_table(documents, DocumentKind.PROPOSED_DESIGN, "Proposed", link_base))
    lines.append("")
    if any(document.kind is DocumentKind.DRAFT_DESIGN for document in documents):
        lines.extend(render_table(documents, DocumentKind.DRAFT_DESIGN, "Drafts", link_base))
        lines.append("")
    return "\n".join(lines)


def target_mode(output_path: Path) -> int:
    """Mode a plain write to ``output_path`` would leave behind."""
    if output_path.is_file():
        return stat.S_IMODE(output_path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_index(output_path: Path, content: str) -> None:
    """Replace ``output_path`` with ``content`` without exposing a partial file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp = NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="\n",
        delete=False,
        dir=output_path.parent,
        prefix=".index-",
        suffix=".tmp",
    )
    try:
        with tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp.name, target_mode(output_path))
        os.replace(tmp.name, output_path)
    except OSError:
        if os.path.exists(tmp.name):
            os.unlink(tmp.name)
        raise


def index_is_current(output_path: Path, content: str) -> bool:
    if not output_path.is_file():
        return False
    return output_path.read_bytes() == content.encode("utf-8")
