from __future__ import annotations

import concurrent.futures
import logging
from collections import defaultdict, deque
from collections.abc import Iterable

from .config import DiffConfig
from .content import files_equal
from .models import FileDescriptor, MovedPair
from .workers import pool_or_new

_log = logging.getLogger(__name__)


def is_move_candidate(source: FileDescriptor, destination: FileDescriptor) -> bool:
    if source.is_dir or destination.is_dir:
        return False
    return source.size == destination.size


def pair_candidates(
    added: Iterable[FileDescriptor], deleted: Iterable[FileDescriptor]
) -> list[MovedPair]:
    """Pair added and deleted files of equal size, one to one.

    Both sides are walked in relative-path order and every added file takes
    the first still-unpaired deleted file that satisfies
    ``is_move_candidate``. With several same-size files the result is
    therefore fixed by path order, not by an optimal assignment.
    """
    by_size: dict[int, deque[FileDescriptor]] = defaultdict(deque)
    for descriptor in sorted(deleted):
        if not descriptor.is_dir:
            by_size[descriptor.size].append(descriptor)

    pairs: list[MovedPair] = []
    for descriptor in sorted(added):
        bucket = by_size.get(descriptor.size)
        if not bucket or not is_move_candidate(descriptor, bucket[0]):
            continue
        pairs.append(MovedPair(source=descriptor, destination=bucket.popleft()))
    return pairs


def match_moves(
    added: set[FileDescriptor],
    deleted: set[FileDescriptor],
    config: DiffConfig,
    pool: concurrent.futures.Executor | None = None,
) -> list[MovedPair]:
    """Turn added/deleted file pairs into moves, updating both sets in place.

    In strict mode every pair is checked with ``files_equal``; pairs whose
    content differs go back to ``added``/``deleted``.
    """
    pairs = pair_candidates(added, deleted)
    for pair in pairs:
        added.discard(pair.source)
        deleted.discard(pair.destination)

    if not config.strict or not pairs:
        _log.debug("Matched %d moves by size", len(pairs))
        return pairs

    moved: list[MovedPair] = []
    with pool_or_new(pool, config) as executor:
        futures = {
            executor.submit(
                files_equal, pair.source, pair.destination, config.chunk_size
            ): pair
            for pair in pairs
        }
        for future in concurrent.futures.as_completed(futures):
            pair = futures[future]
            if future.result():
                moved.append(pair)
            else:
                added.add(pair.source)
                deleted.add(pair.destination)

    _log.debug(
        "Matched %d moves, %d rejected after content check",
        len(moved),
        len(pairs) - len(moved),
    )
    return sorted(moved, key=lambda pair: pair.new_relpath)
