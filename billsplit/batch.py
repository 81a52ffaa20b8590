from __future__ import annotations

from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Tuple

from .formats import FORMAT_EXTENSIONS, render, resolve_format
from .logging import get_logger
from .models import BillOutput
from .parsing import BillIOError, load_bill
from .split_core import split_bill

log = get_logger(__name__)

DEFAULT_SUFFIX = "-result"


@dataclass
class BatchReport:
    succeeded: List[Path] = field(default_factory=list)
    failed: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


def discover_documents(directory: Path) -> List[Path]:
    """JSON bill documents directly inside ``directory``, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise BillIOError(f"Not a directory: {directory}")
    return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".json")


def result_path(source: Path, output_dir: Path, fmt: str, suffix: str = DEFAULT_SUFFIX) -> Path:
    ext = FORMAT_EXTENSIONS[resolve_format(fmt)]
    return Path(output_dir) / f"{Path(source).stem}{suffix}{ext}"


def write_output(output: BillOutput, destination: Path, fmt: str) -> None:
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(render(output, fmt), encoding="utf-8")
    except OSError as exc:
        raise BillIOError(f"Cannot write {destination}: {exc.strerror or exc}") from exc


def process_document(
    source: Path,
    destination: Path,
    *,
    fmt: str,
    default_tip: Decimal = Decimal("0"),
) -> BillOutput:
    output = split_bill(load_bill(source, default_tip=default_tip))
    write_output(output, destination, fmt)
    return output


def _process_one(
    source: Path,
    destination: Path,
    fmt: str,
    default_tip: Decimal,
) -> Tuple[Path, str | None]:
    try:
        process_document(source, destination, fmt=fmt, default_tip=default_tip)
    except Exception as exc:
        log.error("batch.document_failed", source=str(source), error=str(exc), kind=type(exc).__name__)
        return source, str(exc)
    log.info("batch.document_written", source=str(source), destination=str(destination))
    return source, None


def run_batch(
    input_dir: Path,
    output_dir: Path,
    *,
    fmt: str = "json",
    workers: int = 1,
    suffix: str = DEFAULT_SUFFIX,
    default_tip: Decimal = Decimal("0"),
) -> BatchReport:
    """Split every bill document in ``input_dir`` into ``output_dir``.

    A failing document is logged and counted; it never stops the others.
    With ``workers > 1`` documents are processed on a thread pool and the
    run only returns once every document has settled.
    """
    fmt = resolve_format(fmt)
    sources = discover_documents(input_dir)
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BillIOError(f"Cannot create {output_dir}: {exc.strerror or exc}") from exc
    log.info("batch.started", input_dir=str(input_dir), documents=len(sources), workers=workers)

    jobs = []
    collisions: List[Tuple[Path, str]] = []
    claimed: Dict[Path, Path] = {}
    for src in sources:
        destination = result_path(src, output_dir, fmt, suffix)
        if destination in claimed:
            error = f"result {destination.name} is already produced by {claimed[destination].name}"
            log.error("batch.document_failed", source=str(src), error=error, kind="DuplicateResult")
            collisions.append((src, error))
            continue
        claimed[destination] = src
        jobs.append((src, destination, fmt, default_tip))

    if workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(_process_one, *job) for job in jobs]
            done, _ = wait(futures, return_when=ALL_COMPLETED)
        outcomes = [f.result() for f in done]
    else:
        outcomes = [_process_one(*job) for job in jobs]
    outcomes += collisions

    report = BatchReport()
    for source, error in sorted(outcomes, key=lambda o: o[0]):
        if error is None:
            report.succeeded.append(source)
        else:
            report.failed.append((source, error))
    log.info(
        "batch.finished",
        total=report.total,
        succeeded=len(report.succeeded),
        failed=len(report.failed),
    )
    return report
