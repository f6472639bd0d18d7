from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from pathlib import Path, PurePosixPath

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
)

from .compare import compare_snapshots
from .config import APP_NAME, DEFAULT_CHUNK_SIZE_KIB, VERSION, DiffConfig
from .models import DiffResult
from .planner_apply import PlanOperation, build_plan_operations, execute_plan
from .report import format_elapsed, report_lines
from .scanner_local import Snapshot, SnapshotBuilder

app = typer.Typer(
    help="Compare a newer source tree with an older destination tree.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

_log = logging.getLogger(__name__)


class ScanProgressReporter:
    def __init__(
        self, progress: Progress, task_id: int, root_label: str, lock: threading.Lock
    ) -> None:
        self.progress = progress
        self.task_id = task_id
        self.root_label = root_label
        self.lock = lock
        self.last_rendered = 0.0

    def _format_path(self, relpath: PurePosixPath) -> str:
        if relpath == PurePosixPath("."):
            return self.root_label
        parts = relpath.parts[:2]
        return f"{self.root_label}/{'/'.join(parts)}"

    def update(
        self, relpath: PurePosixPath, dirs_scanned: int, entries_seen: int
    ) -> None:
        now = time.monotonic()
        if (now - self.last_rendered) < 0.12:
            return
        label = self._format_path(relpath)
        with self.lock:
            self.progress.update(
                self.task_id,
                description=f"{label}  dirs={dirs_scanned} entries={entries_seen}",
            )
        self.last_rendered = now


class ProblemCounter(logging.Handler):
    """Counts WARNING-or-worse records, for ``--fail-on-error``."""

    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.count = 0

    def emit(self, record: logging.LogRecord) -> None:
        self.count += 1


def _configure_logging(verbose: bool) -> ProblemCounter:
    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.addHandler(
        RichHandler(
            console=err_console,
            show_time=False,
            show_path=False,
            markup=False,
        )
    )
    counter = ProblemCounter()
    logger.addHandler(counter)
    return counter


def _format_seconds(seconds: float) -> str:
    return f"{seconds:.2f}s"


def _root_label(root: Path) -> str:
    return root.name or str(root)


def _scan_trees(
    source: Path, destination: Path, config: DiffConfig
) -> tuple[Snapshot, Snapshot, bool]:
    """Scan both roots side by side; the flag is set if either root failed."""
    source_builder = SnapshotBuilder(source, config)
    destination_builder = SnapshotBuilder(destination, config)

    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        console=err_console,
    ) as progress:
        progress_lock = threading.Lock()
        source_task = progress.add_task("Preparing source scan...", total=None)
        destination_task = progress.add_task(
            "Preparing destination scan...", total=None
        )
        source_reporter = ScanProgressReporter(
            progress, source_task, _root_label(source_builder.root), progress_lock
        )
        destination_reporter = ScanProgressReporter(
            progress,
            destination_task,
            _root_label(destination_builder.root),
            progress_lock,
        )

        def run_scan(
            builder: SnapshotBuilder, reporter: ScanProgressReporter
        ) -> tuple[Snapshot, float]:
            started = time.perf_counter()
            records = builder.scan(progress_cb=reporter.update)
            return records, (time.perf_counter() - started)

        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as pool:
            future_source = pool.submit(run_scan, source_builder, source_reporter)
            future_destination = pool.submit(
                run_scan, destination_builder, destination_reporter
            )
            source_records, source_elapsed = future_source.result()
            destination_records, destination_elapsed = future_destination.result()

        with progress_lock:
            progress.update(
                source_task,
                description=(
                    f"Source scan completed  entries={len(source_records)}  "
                    f"time={_format_seconds(source_elapsed)}"
                ),
            )
            progress.update(
                destination_task,
                description=(
                    f"Destination scan completed  entries={len(destination_records)}  "
                    f"time={_format_seconds(destination_elapsed)}"
                ),
            )

    root_failed = source_builder.root_failed or destination_builder.root_failed
    return source_records, destination_records, root_failed


def _print_line(line: str) -> None:
    console.print(line, markup=False, highlight=False, soft_wrap=True)


def _merge(source: Path, destination: Path, result: DiffResult) -> None:
    operations = build_plan_operations(result)

    with Progress(
        SpinnerColumn(),
        TextColumn("{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=err_console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Merging", total=len(operations))

        def on_progress(
            done: int,
            total: int,
            op: PlanOperation,
            ok: bool,
            error: str | None,
        ) -> None:
            progress.update(
                task_id, completed=done, description=f"Merging {op.relpath}"
            )

        outcome = execute_plan(
            source, destination, operations, progress_cb=on_progress
        )

    _print_line(
        f"Merge: {outcome.succeeded_operations}/{outcome.total_operations} "
        "operations applied"
    )


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{APP_NAME} {VERSION}")
        raise typer.Exit()


@app.command()
def main(
    source: Path = typer.Argument(..., help="Source directory (newer)"),
    destination: Path = typer.Argument(..., help="Destination directory (older)"),
    strict: bool = typer.Option(
        False,
        "--strict",
        "-s",
        help="Files of the same size are also compared byte by byte.",
    ),
    chunk_size: int = typer.Option(
        DEFAULT_CHUNK_SIZE_KIB,
        "--chunk-size",
        "-c",
        min=1,
        help="Chunk size used when comparing file contents (KiB).",
    ),
    merge: bool = typer.Option(
        False,
        "--merge",
        "-m",
        help="Apply the differences to the destination after reporting them.",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Size of the worker pool (default: chosen by Python).",
    ),
    exclude: list[str] | None = typer.Option(
        None,
        "--exclude",
        "-x",
        help="Gitignore-style pattern to leave out of both trees (repeatable).",
    ),
    fail_on_error: bool = typer.Option(
        False,
        "--fail-on-error",
        help="Exit with status 1 if any entry could not be read, compared or merged.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show debug diagnostics."
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Report added, deleted, modified and moved entries, optionally merging."""
    try:
        config = DiffConfig.from_kib(
            strict=strict,
            chunk_size_kib=chunk_size,
            workers=workers,
            exclude=tuple(exclude or ()),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    problems = _configure_logging(verbose)
    started = time.perf_counter()

    source_records, destination_records, root_failed = _scan_trees(
        source, destination, config
    )
    result = compare_snapshots(source_records, destination_records, config)

    for line in report_lines(result):
        _print_line(line)
    _print_line(format_elapsed(time.perf_counter() - started))

    if merge:
        if root_failed:
            _log.error("Merge skipped: a tree could not be read")
        else:
            _merge(source, destination, result)

    if fail_on_error and problems.count:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
