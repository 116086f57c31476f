"""
CLI interface for chatdoc.

Pipe-friendly inspection and normalization of conversation documents.
Reads from stdin when no file is given.
"""

from __future__ import annotations

import argparse
import dataclasses
import difflib
import json
import logging
import sys

from .config import get_config
from .dom import DOCUMENT_TYPES, Document
from .errors import DocumentContractError
from .parser import parse
from .serializer import serialize


def setup_logging(level: str) -> None:
    """Send library log records to stderr."""
    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    root_logger = logging.getLogger("chatdoc")
    root_logger.setLevel(numeric_level)
    root_logger.handlers = [handler]


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="chatdoc",
        description="Parse, check and normalize conversation documents",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log parser diagnostics to stderr",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    show = commands.add_parser("show", help="Print the parsed document as JSON")
    show.add_argument("file", nargs="?", help="Input file (reads from stdin if not provided)")

    fmt = commands.add_parser("format", help="Print the canonical form of a document")
    fmt.add_argument("file", nargs="?", help="Input file (reads from stdin if not provided)")
    fmt.add_argument(
        "--write",
        "-w",
        action="store_true",
        help="Rewrite the file in place instead of printing",
    )

    check = commands.add_parser("check", help="Verify the document survives a parse/serialize round trip")
    check.add_argument("file", nargs="?", help="Input file (reads from stdin if not provided)")

    new = commands.add_parser("new", help="Print a fresh, empty document")
    new.add_argument("--title", type=str, help="Document title")
    new.add_argument("--type", dest="doc_type", choices=DOCUMENT_TYPES, help="Document type")
    new.add_argument("--tag", dest="tags", action="append", default=[], help="Tag (repeatable)")

    return parser.parse_args(args)


def read_input(filepath: str | None) -> str:
    """Read from file or stdin."""
    if filepath:
        with open(filepath, encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read()


def document_to_dict(document: Document) -> dict:
    """Plain-data form of a Document, for JSON output."""
    return dataclasses.asdict(document)


def round_trip_diff(text: str) -> str:
    """
    Empty string when parse(serialize(parse(text))) == parse(text),
    otherwise a unified diff of the two serializations.
    """
    first = parse(text)
    second = parse(serialize(first))
    if first == second:
        return ""
    diff = difflib.unified_diff(
        serialize(first).splitlines(),
        serialize(second).splitlines(),
        fromfile="parsed",
        tofile="reparsed",
        lineterm="",
    )
    return "\n".join(diff) or "documents differ in fields the text does not carry"


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)
    setup_logging("DEBUG" if parsed.verbose else get_config().log.level)

    if parsed.command == "new":
        try:
            document = Document.new(title=parsed.title, type=parsed.doc_type, tags=parsed.tags)
            print(serialize(document), end="")
        except (ValueError, DocumentContractError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        return 0

    if parsed.command == "format" and parsed.write and not parsed.file:
        print("Error: --write requires a file path (not stdin)", file=sys.stderr)
        return 1

    # Read content
    try:
        content = read_input(parsed.file)
    except FileNotFoundError:
        print(f"Error: File not found: {parsed.file}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1

    if parsed.command == "show":
        document = parse(content)
        print(json.dumps(document_to_dict(document), indent=2, ensure_ascii=False))
        return 0

    if parsed.command == "check":
        diff = round_trip_diff(content)
        if diff:
            print("Error: document does not survive a round trip", file=sys.stderr)
            print(diff, file=sys.stderr)
            return 1
        return 0

    # format
    output = serialize(parse(content))
    if parsed.write:
        try:
            with open(parsed.file, "w", encoding="utf-8") as f:
                f.write(output)
        except OSError as e:
            print(f"Error writing {parsed.file}: {e}", file=sys.stderr)
            return 1
        return 0

    print(output, end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
