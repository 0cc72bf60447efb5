"""Parsing utilities for design proposal documents."""
from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


class DocumentKind(Enum):
    META = "meta"
    ACCEPTED_DESIGN = "accepted"
    DRAFT_DESIGN = "draft"
    PROPOSED_DESIGN = "proposed"


class SkipReason(Enum):
    UNCLASSIFIED = "not under a meta, accepted or proposed directory"
    MISSING_TITLE = "no title before the first sub-heading"
    SUB_DESIGN = "accepted design without owners"


CATEGORY_DIRECTORIES: dict[str, DocumentKind] = {
    "meta": DocumentKind.META,
    "accepted": DocumentKind.ACCEPTED_DESIGN,
    "proposed": DocumentKind.PROPOSED_DESIGN,
}

YEAR_RE = re.compile(r"[+-]?[0-9]+")
SUBHEADING_RE = re.compile(r"^##")
TITLE_RE = re.compile(r"^#(?!#)\s*(?P<title>.*?)#?$")
OWNER_RE = re.compile(
    r"^\s*\*\*(?:[A-Za-z]+[ \t]+)?(?:owners?|pm|dev)[ \t]*:?[ \t]*\*\*[ \t]*:?(?P<owners>.*)$",
    re.IGNORECASE,
)
OWNER_SEPARATOR_RE = re.compile(r"[,|]")
MARKDOWN_LINK_RE = re.compile(r"\[(?P<text>[^\]]*)\]\([^)]*\)")
DRAFT_MARKER = "**draft**"


@dataclass(frozen=True)
class Document:
    """A proposal that made it into the index."""

    kind: DocumentKind
    path: Path
    year: int | None
    title: str
    owners: tuple[str, ...] = ()
    is_draft: bool = False


@dataclass(frozen=True)
class ParseOutcome:
    """Result of parsing one file: either a document or the reason it was skipped."""

    path: Path
    document: Document | None = None
    skip_reason: SkipReason | None = None

    @property
    def skipped(self) -> bool:
        return self.document is None


@dataclass
class LeadingMetadata:
    """Fields collected from the lines before the first sub-heading."""

    title: str | None = None
    owners: list[str] = field(default_factory=list)
    is_draft: bool = False


def is_subheading_line(line: str) -> bool:
    return SUBHEADING_RE.match(line) is not None


def match_title_line(line: str) -> str | None:
    match = TITLE_RE.match(line)
    if not match:
        return None
    title = match.group("title").strip()
    return title or None


def strip_links(text: str) -> str:
    return MARKDOWN_LINK_RE.sub(lambda match: match.group("text"), text)


def plain_text(text: str) -> str:
    if "<" in text:
        text = BeautifulSoup(text, "lxml").get_text()
    return " ".join(text.split())


def clean_owner(text: str) -> str:
    """Reduce Markdown links and inline HTML in an owner entry to plain text."""
    return plain_text(strip_links(text))


def match_owner_line(line: str) -> list[str] | None:
    """Return the owners named on an owner marker line, or ``None`` for other lines.

    Links are reduced before splitting so that separators inside URLs are not
    mistaken for name boundaries.
    """
    match = OWNER_RE.match(line)
    if not match:
        return None
    names = strip_links(match.group("owners"))
    owners: list[str] = []
    for entry in OWNER_SEPARATOR_RE.split(names):
        owner = plain_text(entry)
        if owner:
            owners.append(owner)
    return owners


def is_draft_line(line: str) -> bool:
    return line.strip().lower() == DRAFT_MARKER


def classify_path(path: Path) -> tuple[DocumentKind | None, int | None]:
    """Walk up from ``path`` to the nearest category directory.

    Numeric directories passed on the way overwrite the year candidate, so the
    one closest to the category directory wins.
    """
    year: int | None = None
    for directory in Path(os.path.abspath(path)).parents:
        kind = CATEGORY_DIRECTORIES.get(directory.name.lower())
        if kind is not None:
            return kind, year
        if YEAR_RE.fullmatch(directory.name):
            year = int(directory.name)
    return None, None


def parse_lines(lines: Iterable[str]) -> LeadingMetadata:
    metadata = LeadingMetadata()
    for line in lines:
        if is_subheading_line(line):
            break
        title = match_title_line(line)
        if title is not None:
            if metadata.title is None:
                metadata.title = title
            continue
        owners = match_owner_line(line)
        if owners is not None:
            metadata.owners.extend(owners)
            continue
        if is_draft_line(line):
            metadata.is_draft = True
    return metadata


def parse_text(text: str, path: Path) -> ParseOutcome:
    kind, year = classify_path(path)
    if kind is None:
        return ParseOutcome(path, skip_reason=SkipReason.UNCLASSIFIED)
    return build_outcome(path, kind, year, parse_lines(text.splitlines()))


def build_outcome(
    path: Path, kind: DocumentKind, year: int | None, metadata: LeadingMetadata
) -> ParseOutcome:
    if metadata.title is None:
        return ParseOutcome(path, skip_reason=SkipReason.MISSING_TITLE)
    if metadata.is_draft and kind is DocumentKind.ACCEPTED_DESIGN:
        kind = DocumentKind.DRAFT_DESIGN
    # Accepted designs without an owner marker are supporting pages of a larger design.
    if kind is DocumentKind.ACCEPTED_DESIGN and not metadata.owners:
        return ParseOutcome(path, skip_reason=SkipReason.SUB_DESIGN)
    document = Document(
        kind=kind,
        path=path,
        year=year,
        title=metadata.title,
        owners=tuple(metadata.owners),
        is_draft=metadata.is_draft,
    )
    return ParseOutcome(path, document=document)


def parse_file(path: Path) -> ParseOutcome:
    kind, year = classify_path(path)
    if kind is None:
        logger.debug("Skipping %s: outside any category directory", path)
        return ParseOutcome(path, skip_reason=SkipReason.UNCLASSIFIED)
    text = path.read_text(encoding="utf-8-sig", errors="ignore")
    return build_outcome(path, kind, year, parse_lines(text.splitlines()))
