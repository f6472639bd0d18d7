from __future__ import annotations

import concurrent.futures
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext

from .config import DiffConfig


@contextmanager
def worker_pool(config: DiffConfig) -> Iterator[concurrent.futures.Executor]:
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=config.workers, thread_name_prefix="jiff-worker"
    ) as pool:
        yield pool


def pool_or_new(
    pool: concurrent.futures.Executor | None, config: DiffConfig
) -> AbstractContextManager[concurrent.futures.Executor]:
    """Reuse ``pool`` when given, otherwise own a fresh one for the block."""
    return nullcontext(pool) if pool is not None else worker_pool(config)
