from __future__ import annotations

import concurrent.futures
import logging
from collections.abc import Mapping
from pathlib import Path

from .config import DiffConfig
from .content import files_equal
from .models import DiffResult, FileDescriptor, ModifiedPair
from .moves import match_moves
from .scanner_local import SnapshotBuilder
from .workers import pool_or_new, worker_pool

_log = logging.getLogger(__name__)


def classify_snapshots(
    source: Mapping[str, FileDescriptor],
    destination: Mapping[str, FileDescriptor],
    config: DiffConfig,
    pool: concurrent.futures.Executor | None = None,
) -> DiffResult:
    """Split two snapshots into modified, added and deleted entries.

    Unchanged paths are not reported. A path whose type differs between the
    trees is reported as added (source side) and deleted (destination side).
    ``moved`` is left empty; see ``match_moves``.
    """
    result = DiffResult()
    common = sorted(source.keys() & destination.keys())
    to_verify: dict[concurrent.futures.Future[bool], ModifiedPair] = {}

    with pool_or_new(pool, config) as executor:
        for relpath in common:
            src = source[relpath]
            dst = destination[relpath]
            if src.is_dir != dst.is_dir:
                result.added.add(src)
                result.deleted.add(dst)
            elif src.size != dst.size:
                result.modified.append(ModifiedPair(src, dst))
            elif config.strict and not src.is_dir:
                future = executor.submit(files_equal, src, dst, config.chunk_size)
                to_verify[future] = ModifiedPair(src, dst)

        for future in concurrent.futures.as_completed(to_verify):
            if not future.result():
                result.modified.append(to_verify[future])

    result.added.update(source[p] for p in source.keys() - destination.keys())
    result.deleted.update(destination[p] for p in destination.keys() - source.keys())
    _log.debug(
        "Classified %d common paths: %d modified, %d added, %d deleted",
        len(common),
        len(result.modified),
        len(result.added),
        len(result.deleted),
    )
    return result


def compare_snapshots(
    source: Mapping[str, FileDescriptor],
    destination: Mapping[str, FileDescriptor],
    config: DiffConfig,
) -> DiffResult:
    with worker_pool(config) as pool:
        result = classify_snapshots(source, destination, config, pool=pool)
        result.moved = match_moves(result.added, result.deleted, config, pool=pool)
    return result


def compare_trees(
    source_root: Path, destination_root: Path, config: DiffConfig
) -> DiffResult:
    """Scan both roots concurrently and classify every entry."""
    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as pool:
        future_source = pool.submit(SnapshotBuilder(source_root, config).scan)
        future_destination = pool.submit(
            SnapshotBuilder(destination_root, config).scan
        )
        source = future_source.result()
        destination = future_destination.result()
    return compare_snapshots(source, destination, config)
