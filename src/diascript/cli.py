"""Command-line interface for compiling diagram descriptions to SVG."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from .description import load_diagram
from .errors import ConfigurationError, DiascriptError, LayoutError, MeasurementError
from .markers import load_markers

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class CliError(Exception):
    code: str
    message: str
    hint: Optional[str] = None
    exit_code: int = 1
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None
    retryable: bool = True


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="diascript",
        description="Lay out block diagrams described in XML and write SVG.",
    )
    parser.add_argument("--error-format", choices=["text", "json"], default="text")
    parser.add_argument("--debug", action="store_true")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        default=None,
        help="Logging level (default: $DIASCRIPT_LOG_LEVEL or WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command")

    compile_parser = subparsers.add_parser("compile", help="Compile a diagram description to SVG")
    compile_parser.add_argument("input", nargs="?", help="Input .xml diagram file")
    compile_parser.add_argument("--text", help="Raw diagram XML")
    compile_parser.add_argument("--stdout", action="store_true", help="Write SVG to stdout")
    compile_parser.add_argument("-o", "--output", help="Output .svg path")
    compile_parser.add_argument("--background", help="Canvas background color")
    compile_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of skipping elements that produce warnings",
    )

    subparsers.add_parser("markers", help="List the available line markers")

    return parser


def _configure_logging(level_name: Optional[str]) -> None:
    level_name = (level_name or os.getenv("DIASCRIPT_LOG_LEVEL") or "WARNING").upper()
    if level_name not in LOG_LEVELS:
        level_name = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level_name),
        format="%(levelname)s: %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _read_input(path: Optional[str], text: Optional[str]) -> tuple[str, str, Optional[Path]]:
    if path and text is not None:
        raise CliError(
            "E_ARGS",
            "--text cannot be combined with file input",
            hint="Use either FILE or --text.",
            exit_code=2,
        )

    if text is not None:
        return text, "<text>", None

    if path:
        input_path = Path(path)
        if not input_path.exists():
            raise CliError(
                "E_IO_READ",
                f"input file not found: {input_path}",
                exit_code=2,
                file=str(input_path),
            )
        try:
            return input_path.read_text(encoding="utf-8"), str(input_path), input_path
        except OSError as exc:
            raise CliError(
                "E_IO_READ",
                f"failed to read input file: {input_path}",
                hint=str(exc),
                exit_code=2,
                file=str(input_path),
            )

    if sys.stdin.isatty():
        raise CliError(
            "E_ARGS",
            "no input provided",
            hint="Use a subcommand with FILE, --text, or pipe stdin.",
            exit_code=2,
        )

    data = sys.stdin.read()
    if not data.strip():
        raise CliError(
            "E_ARGS",
            "stdin was empty",
            hint="Pipe diagram XML into stdin.",
            exit_code=2,
        )
    return data, "<stdin>", None


def _write_text(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise CliError(
            "E_IO_WRITE",
            f"failed to write output file: {path}",
            hint=str(exc),
            exit_code=4,
            file=str(path),
        )


def _error_from_exception(exc: Exception) -> CliError:
    if isinstance(exc, CliError):
        return exc
    if isinstance(exc, MeasurementError):
        return CliError(
            exc.code,
            str(exc),
            hint="Check that Pillow can load a font for the requested family.",
            exit_code=3,
            retryable=False,
        )
    if isinstance(exc, LayoutError):
        return CliError(
            exc.code,
            str(exc),
            hint="A shape produced no usable size during layout.",
            exit_code=3,
            retryable=False,
        )
    if isinstance(exc, ConfigurationError):
        return CliError(
            exc.code,
            str(exc),
            hint="Check element names and attribute values in the diagram description.",
            exit_code=3,
        )
    if isinstance(exc, ValueError):
        cause = exc.__cause__
        line, column = getattr(cause, "position", (None, None))
        return CliError(
            "E_PARSE_XML",
            str(exc),
            hint="Ensure input is well-formed XML with a <diagram> root.",
            exit_code=2,
            line=line,
            column=column,
        )
    if isinstance(exc, DiascriptError):
        return CliError(exc.code, str(exc), exit_code=3)
    return CliError(
        "E_INTERNAL",
        str(exc) or exc.__class__.__name__,
        hint="Re-run with --debug to see traceback.",
        exit_code=1,
        retryable=False,
    )


def _emit_error(err: CliError, *, error_format: str) -> None:
    if error_format == "json":
        payload = {
            "ok": False,
            "code": err.code,
            "message": err.message,
            "file": err.file,
            "line": err.line,
            "column": err.column,
            "hint": err.hint,
            "retryable": err.retryable,
        }
        sys.stderr.write(json.dumps(payload) + "\n")
        return

    sys.stderr.write(f"error[{err.code}]: {err.message}\n")
    if err.hint:
        sys.stderr.write(f"hint: {err.hint}\n")


def _handle_compile(args: argparse.Namespace) -> int:
    if args.stdout and args.output:
        raise CliError(
            "E_ARGS",
            "--stdout and --output are mutually exclusive",
            hint="Choose either --stdout or --output.",
            exit_code=2,
        )

    source, source_name, source_path = _read_input(args.input, args.text)
    diagram = load_diagram(source)
    result = diagram.render()
    if args.strict and result.warnings:
        raise CliError(
            "E_WARNINGS",
            f"{len(result.warnings)} element(s) skipped: {result.warnings[0]}",
            hint="Fix the reported elements or drop --strict.",
            exit_code=3,
            file=None if source_path is None else source_name,
        )
    svg_text = result.to_svg(background=args.background)

    if args.stdout or source_path is None:
        sys.stdout.write(svg_text)
        if not svg_text.endswith("\n"):
            sys.stdout.write("\n")
        return 0

    output_path = Path(args.output) if args.output else source_path.with_suffix(".svg")
    _write_text(output_path, svg_text)
    print(f"Wrote {output_path}")
    return 0


def _handle_markers() -> int:
    for name, marker in sorted(load_markers().items()):
        print(f"{name}\t{marker.path}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    if not raw_argv:
        err = CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, markers.",
            exit_code=2,
        )
        _emit_error(err, error_format="text")
        return err.exit_code

    debug_enabled = "--debug" in raw_argv or os.getenv("DIASCRIPT_DEBUG") == "1"
    error_format = "text"
    if "--error-format" in raw_argv:
        idx = raw_argv.index("--error-format")
        if idx + 1 < len(raw_argv):
            error_format = raw_argv[idx + 1]

    try:
        args = parser.parse_args(raw_argv)
        error_format = args.error_format
        _configure_logging("DEBUG" if debug_enabled and not args.log_level else args.log_level)

        if args.command == "compile":
            return _handle_compile(args)
        if args.command == "markers":
            return _handle_markers()

        raise CliError(
            "E_ARGS",
            "missing subcommand",
            hint="Use one of: compile, markers.",
            exit_code=2,
        )
    except UsageError as exc:
        err = CliError(
            "E_ARGS",
            str(exc),
            hint="Use subcommands: compile, markers.",
            exit_code=2,
        )
        _emit_error(err, error_format=error_format)
        return err.exit_code
    except Exception as exc:  # pragma: no cover - exercised in integration tests
        err = _error_from_exception(exc)
        _emit_error(err, error_format=error_format)
        if debug_enabled:
            traceback.print_exc(file=sys.stderr)
        return err.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
