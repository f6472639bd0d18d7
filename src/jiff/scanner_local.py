from __future__ import annotations

import concurrent.futures
import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .config import SCAN_PROGRESS_INTERVAL_SECONDS, DiffConfig
from .excludes import ExcludeRules
from .models import FileDescriptor

_log = logging.getLogger(__name__)

ROOT_RELPATH = PurePosixPath(".")

Snapshot = dict[str, FileDescriptor]


@dataclass
class _DirListing:
    descriptors: list[FileDescriptor] = field(default_factory=list)
    subdirs: list[PurePosixPath] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class SnapshotBuilder:
    """Builds the relative-path -> descriptor mapping for one tree.

    Each directory listing is one unit of work on a thread pool. Listings are
    merged on the calling thread, so the snapshot itself is never shared
    between workers. Failures never abort the scan: an unreadable entry is
    skipped, an unreadable root yields an empty snapshot. Both are logged and
    kept in ``errors``.
    """

    def __init__(self, root: Path, config: DiffConfig | None = None) -> None:
        self.root = Path(root).expanduser().resolve()
        self.config = config or DiffConfig()
        self.rules = ExcludeRules(self.config.exclude)
        self.errors: list[str] = []
        self.root_failed = False

    def scan(
        self,
        progress_cb: Callable[[PurePosixPath, int, int], None] | None = None,
    ) -> Snapshot:
        self.errors = []
        self.root_failed = False
        snapshot: Snapshot = {}
        dirs_scanned = 0
        last_progress = 0.0

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="jiff-scan"
        ) as pool:
            pending = {pool.submit(self._list_dir, ROOT_RELPATH): ROOT_RELPATH}
            while pending:
                done, _ = concurrent.futures.wait(
                    pending, return_when=concurrent.futures.FIRST_COMPLETED
                )
                for future in done:
                    rel_dir = pending.pop(future)
                    try:
                        listing = future.result()
                    except OSError as exc:
                        if rel_dir == ROOT_RELPATH:
                            self.root_failed = True
                            self._record_error(
                                f"Walk {self.root} failed: {exc}", logging.ERROR
                            )
                            return {}
                        self._record_error(f"List directory {rel_dir} failed: {exc}")
                        continue

                    dirs_scanned += 1
                    self.errors.extend(listing.errors)
                    for descriptor in listing.descriptors:
                        snapshot[descriptor.relpath] = descriptor
                    for subdir in listing.subdirs:
                        pending[pool.submit(self._list_dir, subdir)] = subdir

                    now = time.monotonic()
                    if (
                        progress_cb is not None
                        and (now - last_progress) >= SCAN_PROGRESS_INTERVAL_SECONDS
                    ):
                        progress_cb(rel_dir, dirs_scanned, len(snapshot))
                        last_progress = now

        if progress_cb is not None:
            progress_cb(ROOT_RELPATH, dirs_scanned, len(snapshot))
        _log.debug(
            "Scanned %s: %d entries in %d directories",
            self.root,
            len(snapshot),
            dirs_scanned,
        )
        return snapshot

    def _record_error(self, message: str, level: int = logging.WARNING) -> None:
        _log.log(level, message)
        self.errors.append(message)

    def _list_dir(self, rel_dir: PurePosixPath) -> _DirListing:
        listing = _DirListing()
        directory = (
            self.root if rel_dir == ROOT_RELPATH else self.root / rel_dir.as_posix()
        )

        with os.scandir(directory) as entries:
            for entry in entries:
                child_rel = (
                    PurePosixPath(entry.name)
                    if rel_dir == ROOT_RELPATH
                    else rel_dir / entry.name
                )
                try:
                    # links are described by their target but never descended
                    descend = entry.is_dir(follow_symlinks=False)
                    is_dir = entry.is_dir()
                    size = 0 if is_dir else entry.stat().st_size
                except OSError as exc:
                    message = f"Create file descriptor {child_rel} failed: {exc}"
                    _log.warning(message)
                    listing.errors.append(message)
                    continue

                if self.rules.is_excluded(child_rel, is_dir=is_dir):
                    continue

                listing.descriptors.append(
                    FileDescriptor(
                        relpath=child_rel.as_posix(),
                        size=size,
                        is_dir=is_dir,
                        root=self.root,
                    )
                )
                if descend:
                    listing.subdirs.append(child_rel)
        return listing
