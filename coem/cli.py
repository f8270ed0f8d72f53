"""Command-line interface for the Coem interpreter."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from coem.errors import CoemError, Diagnostic, format_coem_error, format_diagnostic
from coem.main import explain_source, format_source, run_source


def build_parser() -> argparse.ArgumentParser:
    """Build argparse command tree for Coem CLI."""
    parser = argparse.ArgumentParser(prog="coem", description="Coem interpreter and tooling")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a Coem program and print its echo")
    run_parser.add_argument("input", nargs="?", help="Input .coem file")
    run_parser.add_argument("--code", help="Inline Coem source string")
    run_parser.add_argument("--debug", action="store_true", help="Emit debug info to stderr")
    run_parser.add_argument(
        "--interactive",
        action="store_true",
        help="Answer '#in dialogue' prompts from standard input.",
    )

    parse_parser = subparsers.add_parser("parse", help="Print the AST as JSON")
    parse_parser.add_argument("input", nargs="?", help="Input .coem file")
    parse_parser.add_argument("--code", help="Inline Coem source string")

    format_parser = subparsers.add_parser("format", help="Print canonical Coem source")
    format_parser.add_argument("input", nargs="?", help="Input .coem file")
    format_parser.add_argument("--code", help="Inline Coem source string")

    return parser


def run(argv: list[str] | None = None) -> int:
    """Run CLI and return shell exit code."""
    args = build_parser().parse_args(argv)
    source = ""

    try:
        source, filename = _resolve_source(args.input, args.code)

        if args.command == "run":
            prompt = input if args.interactive else None
            artifacts = run_source(source, filename=filename, debug=args.debug, prompt=prompt)
            if args.debug:
                print(
                    f"debug: bindings={len(artifacts.scope.bindings)} lines={len(artifacts.echo.splitlines())}",
                    file=sys.stderr,
                )
            sys.stdout.write(artifacts.echo)
            if not artifacts.echo.endswith("\n"):
                sys.stdout.write("\n")
            return 0

        if args.command == "parse":
            payload = explain_source(source, filename=filename)
            print(json.dumps(payload, indent=2, ensure_ascii=False))
            return 0

        if args.command == "format":
            print(format_source(source, filename=filename), end="")
            return 0

        raise argparse.ArgumentTypeError(f"Unsupported command '{args.command}'.")

    except CoemError as err:
        print(format_diagnostic(err.to_diagnostic()), file=sys.stderr)
        report = format_coem_error(err, source)
        if report.get("errorSection") is not None:
            print(_render_report(report), file=sys.stderr)
        return 1
    except argparse.ArgumentTypeError as err:
        diag = Diagnostic(code="CLI001", message=str(err), span=None, hint="Run coem --help for usage.")
        print(format_diagnostic(diag), file=sys.stderr)
        return 2
    except Exception as err:  # pragma: no cover - defensive fallback
        print(format_coem_error(err, source)["oneLiner"], file=sys.stderr)
        return 3


def _render_report(report: dict[str, str]) -> str:
    pre = report["preErrorSection"].lstrip("\n")
    section = report["errorSection"]
    line = f"{pre}{section}{report['postErrorSection']}"
    caret = " " * len(pre) + "^" * max(1, len(section.split("\n")[0]))
    return f"{line}\n{caret}"


def _resolve_source(input_path: str | None, inline_code: str | None) -> tuple[str, str]:
    if input_path and inline_code:
        raise argparse.ArgumentTypeError("Use either input file path or --code, not both.")
    if input_path:
        path = Path(input_path)
        return path.read_text(encoding="utf-8"), str(path)
    if inline_code is not None:
        return inline_code, "<inline>"
    raise argparse.ArgumentTypeError("No source provided. Pass input file path or --code.")


if __name__ == "__main__":
    raise SystemExit(run())
