"""
Command-line snippet expansion.

Expands a snippet given on the command line (or stdin) and prints the
resulting text, or a JSON description including the tab stops.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from lsprotocol import types as lsp

from lsp_snippet import __version__
from lsp_snippet.context import DocumentSnippetContext, MappingSnippetContext
from lsp_snippet.exceptions import SnippetException
from lsp_snippet.snippet import Snippet, parse

logger = logging.getLogger(__name__)


def _parse_var(value: str) -> tuple[str, str]:
    name, sep, var_value = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {value!r}")
    return name, var_value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lsp-snippet",
        description="Expand an LSP snippet",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "source",
        nargs="?",
        help="Snippet source (read from stdin when omitted)",
    )
    parser.add_argument(
        "--var",
        action="append",
        type=_parse_var,
        default=[],
        metavar="NAME=VALUE",
        help="Set a variable (repeatable)",
    )
    parser.add_argument(
        "--file",
        help="Document the snippet is expanded in; provides the TM_* file and line variables",
    )
    parser.add_argument(
        "--line",
        type=int,
        default=0,
        help="Zero-based line of the cursor in --file (default: 0)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the text and tab stops as JSON",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set the logging level (default: WARNING)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"lsp-snippet {__version__}",
    )
    return parser


def make_resolver(args: argparse.Namespace):
    """Variable resolver for the given arguments; ``--var`` values win."""
    overrides = MappingSnippetContext(dict(args.var))
    if not args.file:
        return overrides.resolve_variable

    from pygls.workspace import TextDocument

    path = Path(args.file).resolve()
    document = TextDocument(uri=path.as_uri(), source=path.read_text())
    context = DocumentSnippetContext(document, lsp.Position(line=args.line, character=0))

    def resolve_variable(name: str) -> str | None:
        if name in overrides.values:
            return overrides.values[name]
        return context.resolve_variable(name)

    return resolve_variable


def snippet_to_json(snippet: Snippet) -> dict:
    return {
        "text": snippet.text,
        "tabStops": [
            {"id": t.id, "offsets": list(t.offsets), "values": list(t.values)}
            for t in snippet.tab_stops
        ],
    }


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the command-line tool."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    source = args.source if args.source is not None else sys.stdin.read()
    try:
        snippet = parse(source, make_resolver(args))
    except SnippetException as e:
        logger.debug(f"Snippet expansion failed for {source!r}")
        print(f"lsp-snippet: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(snippet_to_json(snippet), indent=2))
    else:
        sys.stdout.write(snippet.text)
        if not snippet.text.endswith("\n"):
            sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
