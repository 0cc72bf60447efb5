"""Design index generator package."""
from __future__ import annotations

from pathlib import Path

from . import discovery, parser, renderer

__all__ = [
    "discovery",
    "parser",
    "renderer",
    "render_directory",
]


def render_directory(root: Path, link_base: Path | None = None) -> str:
    """Convenience wrapper returning the index text for ``root``."""
    outcomes = discovery.scan_directory(root)
    documents = discovery.collect_documents(outcomes)
    return renderer.render_index(documents, link_base if link_base is not None else root)
