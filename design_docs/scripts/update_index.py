#!/usr/bin/env python3
"""CLI entrypoint for regenerating the design index."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import NoReturn

from design_docs.update_index import discovery, renderer
from design_docs.update_index.parser import ParseOutcome, SkipReason

DEFAULT_INDEX_NAME = "INDEX.md"
OUTPUT_ENV = "UPDATE_INDEX_OUTPUT"
VERBOSE_ENV = "UPDATE_INDEX_VERBOSE"
TRUTHY_VALUES = {"1", "true", "yes", "on"}

logger = logging.getLogger("design_docs.update_index.cli")


class IndexArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        raise SystemExit(f"error: {message}")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_verbose(flag: bool) -> bool:
    if flag:
        return True
    return os.environ.get(VERBOSE_ENV, "").strip().lower() in TRUTHY_VALUES


def resolve_output(directory: Path, out: str | None) -> Path:
    if out:
        return Path(out).expanduser()
    env_value = os.environ.get(OUTPUT_ENV, "").strip()
    if env_value:
        return Path(env_value).expanduser()
    return directory / DEFAULT_INDEX_NAME


def report_skipped(outcomes: Iterable[ParseOutcome]) -> None:
    for outcome in outcomes:
        if outcome.skip_reason is SkipReason.MISSING_TITLE:
            logger.error("%s: %s", outcome.path, outcome.skip_reason.value)
        elif outcome.skip_reason is not None:
            logger.debug("Skipping %s: %s", outcome.path, outcome.skip_reason.value)


def build_index(directory: Path, output_path: Path, verbose: bool) -> tuple[str, int]:
    logger.debug("Scanning %s", directory)
    outcomes = discovery.scan_directory(directory)
    if verbose:
        report_skipped(outcomes)
    documents = discovery.collect_documents(outcomes)
    content = renderer.render_index(documents, output_path.parent)
    return content, len(documents)


def command_update(directory: Path, output_path: Path, verbose: bool) -> None:
    content, count = build_index(directory, output_path, verbose)
    renderer.write_index(output_path, content)
    logger.info("Index written to %s (%d documents)", output_path, count)


def command_check(directory: Path, output_path: Path, verbose: bool) -> None:
    content, count = build_index(directory, output_path, verbose)
    if not renderer.index_is_current(output_path, content):
        raise SystemExit(f"error: index '{output_path}' is out of date")
    logger.info("Index %s is up to date (%d documents)", output_path, count)


def in_argument_order(values: list[str], argv: list[str], consumed: str) -> list[str]:
    """Order ``values`` as they appear on the command line.

    Values that only came from a response file keep their relative order after
    the ones given directly.
    """
    remaining: list[str | None] = list(argv)
    if consumed in remaining:
        remaining[remaining.index(consumed)] = None
    positions: list[int] = []
    for value in values:
        if value in remaining:
            index = remaining.index(value)
            remaining[index] = None
            positions.append(index)
        else:
            positions.append(len(argv))
    order = sorted(range(len(values)), key=lambda i: positions[i])
    return [values[i] for i in order]


def build_parser() -> IndexArgumentParser:
    parser_obj = IndexArgumentParser(
        prog="update-index",
        usage="%(prog)s <directory> [OPTIONS]+",
        description="Regenerate the design index for a tree of proposal documents.",
        add_help=False,
        fromfile_prefix_chars="@",
    )
    parser_obj.add_argument(
        "directory", nargs="*", metavar="directory", help="Root directory to scan"
    )
    parser_obj.add_argument(
        "-o",
        "--out",
        metavar="PATH",
        help=(
            "The output path where the index should be written to "
            f"(overrides {OUTPUT_ENV}). Default: <directory>/{DEFAULT_INDEX_NAME}"
        ),
    )
    parser_obj.add_argument(
        "--check",
        action="store_true",
        help="Fail if the index on disk is not up to date instead of writing it",
    )
    parser_obj.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help=f"Report skipped files and enable debug logging (or set {VERBOSE_ENV})",
    )
    parser_obj.add_argument(
        "-h", "-?", "--help", action="store_true", dest="help", help="Show this help and exit"
    )
    return parser_obj


def main(argv: list[str] | None = None) -> int:
    parser_obj = build_parser()
    args, unknown = parser_obj.parse_known_intermixed_args(argv)
    if args.help:
        parser_obj.print_help(sys.stderr)
        return 0
    if not args.directory:
        raise SystemExit("error: must specify a directory")
    unrecognized = in_argument_order(
        [*args.directory[1:], *unknown],
        sys.argv[1:] if argv is None else argv,
        args.directory[0],
    )
    if unrecognized:
        raise SystemExit(
            "\n".join(f"error: unrecognized argument {value}" for value in unrecognized)
        )
    directory = Path(args.directory[0])
    if not directory.is_dir():
        raise SystemExit(f"error: directory '{args.directory[0]}' does not exist")
    verbose = resolve_verbose(args.verbose)
    configure_logging(verbose)
    output_path = resolve_output(directory, args.out)
    command = command_check if args.check else command_update
    try:
        command(directory, output_path, verbose)
    except Exception as exc:  # any failure past argument handling is fatal
        raise SystemExit(f"error: {exc}") from exc
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
