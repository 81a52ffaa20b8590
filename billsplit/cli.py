from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .batch import run_batch, write_output
from .config import load_config
from .formats import copy_to_clipboard, is_known_format, render, resolve_format
from .logging import configure_logging, get_logger
from .parsing import BillFormatError, BillIOError, load_bill
from .split_core import InvalidBillDateError, split_bill

log = get_logger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Split a shared-meal bill between participants. Pass a JSON bill as --input, "
            "or a directory of JSON bills to process them all."
        )
    )
    parser.add_argument("--input", required=True, help="Bill JSON file, or a directory of bill JSON files")
    parser.add_argument("--output", required=True, help="Result file, or output directory in batch mode")
    parser.add_argument(
        "--format",
        default=None,
        help="Output format: json (structured), text or csv. Unknown names fall back to json. Default comes from config",
    )
    parser.add_argument("--concurrent", action="store_true", help="Batch mode: process files on a thread pool")
    parser.add_argument("--workers", type=int, default=None, help="Thread pool size for --concurrent. Default comes from config")
    parser.add_argument("--suffix", default=None, help="Batch mode: suffix appended to each result file name (default: -result)")
    parser.add_argument("--config", help="Path to billconfig.json")
    parser.add_argument("--copy", action="store_true", help="Copy the rendered result to the clipboard (single file only)")
    parser.add_argument("--log-level", default=None, help="Logging level, e.g. INFO or DEBUG")
    return parser


def _run_single(source: Path, destination: Path, *, fmt: str, default_tip, copy: bool) -> int:
    try:
        output = split_bill(load_bill(source, default_tip=default_tip))
        write_output(output, destination, fmt)
    except (BillFormatError, InvalidBillDateError, BillIOError, ArithmeticError) as exc:
        log.error("cli.failed", source=str(source), error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Wrote {fmt} result for {source} to {destination}")
    if copy and not copy_to_clipboard(render(output, fmt)):
        print("(Could not copy to clipboard on this system)", file=sys.stderr)
    return 0


def _run_batch(source: Path, destination: Path, *, fmt: str, workers: int, suffix: str, default_tip) -> int:
    try:
        report = run_batch(
            source,
            destination,
            fmt=fmt,
            workers=workers,
            suffix=suffix,
            default_tip=default_tip,
        )
    except BillIOError as exc:
        log.error("cli.failed", source=str(source), error=str(exc))
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(
        f"Processed {report.total} file(s): {len(report.succeeded)} succeeded, {len(report.failed)} failed"
    )
    for path, error in report.failed:
        print(f"  FAILED {path.name}: {error}", file=sys.stderr)
    return 0 if report.ok else 1


def run_cli(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(args.log_level or config.log_level)

    if args.format is not None and not is_known_format(args.format):
        log.warning("cli.unknown_format", requested=args.format, using="json")
        print(f"Warning: unknown format '{args.format}', using json.", file=sys.stderr)
    fmt = resolve_format(args.format if args.format is not None else config.default_format)

    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")

    source = Path(args.input).expanduser()
    destination = Path(args.output).expanduser()
    if not source.exists():
        parser.error(f"Input path does not exist: {source}")

    if source.is_dir():
        workers = (args.workers or config.workers) if args.concurrent else 1
        suffix = args.suffix if args.suffix is not None else config.result_suffix
        return _run_batch(
            source,
            destination,
            fmt=fmt,
            workers=workers,
            suffix=suffix,
            default_tip=config.default_tip_percent,
        )
    return _run_single(
        source,
        destination,
        fmt=fmt,
        default_tip=config.default_tip_percent,
        copy=args.copy,
    )