"""Discovery of proposal documents under a directory tree."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from .parser import Document, ParseOutcome, parse_file

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


def iter_markdown_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if path.suffix.lower() == MARKDOWN_SUFFIX:
            yield path


def scan_directory(root: Path) -> list[ParseOutcome]:
    """Parse every Markdown file below ``root``.

    Files that do not describe an indexable document are returned as skipped
    outcomes. Read errors propagate.
    """
    if not root.is_dir():
        raise FileNotFoundError(f"directory '{root}' does not exist")
    outcomes = [parse_file(path) for path in iter_markdown_files(root)]
    logger.debug(
        "Scanned %d files under %s (%d skipped)",
        len(outcomes),
        root,
        sum(1 for outcome in outcomes if outcome.skipped),
    )
    return outcomes


def collect_documents(outcomes: Iterable[ParseOutcome]) -> list[Document]:
    return [outcome.document for outcome in outcomes if outcome.document is not None]
