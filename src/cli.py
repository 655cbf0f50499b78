"""
Command-line interface for rewriting ES module files into async function bodies.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import esprima

from emitter import EmitOptions, emit_program
from frontend import load_estree, run_frontend
from rewriter import DEFAULT_IMPORT_NAME, RewriteError, RewriteOptions

logger = logging.getLogger(__name__)


def _format_location(line: int | None, column: int | None) -> str:
    if line is None:
        return ""
    if column is None:
        return f":{line}"
    return f":{line}:{column}"


def _print_diagnostics(messages: List[str]) -> None:
    if not messages:
        return
    for message in messages:
        sys.stderr.write(message + "\n")


def _collect_diagnostics(frontend_result, rewrite_result):
    diagnostics: List[str] = []
    source_name = frontend_result.source_name

    for error in frontend_result.errors:
        loc = _format_location(error.line, error.column)
        diagnostics.append(f"ERROR {source_name}{loc}: {error.description}")

    analysis = frontend_result.analysis
    if analysis:
        for issue in analysis.issues:
            loc = _format_location(issue.loc.line, issue.loc.column)
            diagnostics.append(f"WARNING {source_name}{loc}: {issue.message}")

    for message in rewrite_result.diagnostics:
        diagnostics.append(f"INFO {source_name}: {message}")

    return diagnostics


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def convert_command(args: argparse.Namespace) -> int:
    input_path = Path(args.input).resolve()
    if not input_path.exists():
        sys.stderr.write(f"ERROR: Input file not found: {input_path}\n")
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"ERROR: Failed to read {input_path}: {exc}\n")
        return 1

    if args.from_json:
        frontend_result = load_estree(source, source_name=str(input_path))
    else:
        try:
            frontend_result = run_frontend(
                source,
                source_name=str(input_path),
                tolerant=not args.strict,
                analyze=True,
                source_type="script" if args.script else "module",
            )
        except esprima.Error as exc:
            sys.stderr.write(f"ERROR: Parsing failed: {exc}\n")
            return 1

    if not frontend_result.has_ast:
        sys.stderr.write("ERROR: Reading failed; no Program produced.\n")
        for error in frontend_result.errors:
            loc = _format_location(error.line, error.column)
            sys.stderr.write(f"  {error.description}{loc}\n")
        return 1

    options = RewriteOptions(import_name=args.import_name, strict=args.strict)
    try:
        rewrite_result = frontend_result.rewrite(options)
    except RewriteError as exc:
        sys.stderr.write(f"ERROR: Rewrite failed: {exc}\n")
        return 1

    emit_options = EmitOptions(
        wrap_function=args.wrap,
        include_locations=not args.no_locations,
        indent=args.indent if args.indent > 0 else None,
    )
    emit_result = emit_program(rewrite_result.program, rewrite_result.params, emit_options)

    output_path = Path(args.out) if args.out else input_path.with_suffix(".estree.json")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(emit_result.source, encoding="utf-8")
    logger.debug("Wrote %s", output_path)

    diagnostics = _collect_diagnostics(frontend_result, rewrite_result)
    _print_diagnostics(diagnostics)

    has_errors = bool(frontend_result.errors)
    if args.strict and (frontend_result.analysis and frontend_result.analysis.issues):
        has_errors = True

    return 1 if has_errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module2function",
        description=(
            "Rewrite an ES module into the body of an async function. JavaScript input is "
            "parsed with esprima 4, which predates import.meta and `export * as ns from`; "
            "pass such modules as ESTree JSON with --from-json."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log rewrite details to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command")

    convert_parser = subparsers.add_parser(
        "convert", help="Rewrite a single module and write its ESTree JSON"
    )
    convert_parser.add_argument("input", help="Path to the JavaScript module")
    convert_parser.add_argument(
        "--out",
        help="Output JSON file path (defaults to the input path with .estree.json)",
    )
    convert_parser.add_argument(
        "--import-name",
        default=DEFAULT_IMPORT_NAME,
        help=f"Name of the injected import function (default: {DEFAULT_IMPORT_NAME}).",
    )
    convert_parser.add_argument(
        "--wrap",
        action="store_true",
        help="Wrap the body in an async function expression taking the import function.",
    )
    convert_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation; 0 writes compact output.",
    )
    convert_parser.add_argument(
        "--no-locations",
        action="store_true",
        help="Drop loc/range information from the output.",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Disable tolerant parsing, validate the import name, treat warnings as errors.",
    )
    convert_parser.add_argument(
        "--script",
        action="store_true",
        help="Parse the input as a script (no import/export declarations).",
    )
    convert_parser.add_argument(
        "--from-json",
        action="store_true",
        help=(
            "Read the input as an ESTree Program in JSON. Use this for import.meta and "
            "`export * as ns from`, which the bundled esprima parser does not accept."
        ),
    )
    convert_parser.set_defaults(func=convert_command)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
