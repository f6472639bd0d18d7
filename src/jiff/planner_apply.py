from __future__ import annotations

import logging
import os
import shutil
import stat
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .models import DiffResult

_log = logging.getLogger(__name__)

OP_DELETE_FILE = "delete_file"
OP_DELETE_DIR = "delete_dir"
OP_CREATE_DIR = "create_dir"
OP_COPY_FILE = "copy_file"
OP_OVERWRITE_FILE = "overwrite_file"
OP_MOVE_FILE = "move_file"

# appended to a move target that must wait for a directory delete
STAGING_SUFFIX = ".jiff-move"


@dataclass(frozen=True)
class PlanOperation:
    kind: str
    relpath: str
    # only set for moves: where ``relpath`` ends up inside the destination
    target_relpath: str | None = None


@dataclass(frozen=True)
class ExecuteResult:
    completed_paths: set[str]
    errors: list[str]
    succeeded_operations: int
    total_operations: int


def _holds_any(dir_relpath: str, relpaths: list[str]) -> bool:
    prefix = f"{dir_relpath}/"
    return any(relpath.startswith(prefix) for relpath in relpaths)


def build_plan_operations(result: DiffResult) -> list[PlanOperation]:
    """Order the reconciliation steps for ``result``.

    Phases run delete, create/copy, overwrite, move. Deletes go deepest path
    first so children leave before their directory; creates go shallowest
    first so parents exist before their children. A deleted directory that
    still holds the old location of a moved file is removed after the moves.
    A move whose new path is such a directory parks the file under a staging
    name first and takes its final name once the directory is gone.
    """
    move_origins = [pair.old_relpath for pair in result.moved]
    ops: list[PlanOperation] = []
    deferred: list[PlanOperation] = []
    deferred_dirs: set[str] = set()
    for descriptor in sorted(result.deleted, reverse=True):
        if descriptor.is_dir and _holds_any(descriptor.relpath, move_origins):
            deferred.append(PlanOperation(OP_DELETE_DIR, descriptor.relpath))
            deferred_dirs.add(descriptor.relpath)
            continue
        kind = OP_DELETE_DIR if descriptor.is_dir else OP_DELETE_FILE
        ops.append(PlanOperation(kind, descriptor.relpath))

    for descriptor in sorted(result.added):
        kind = OP_CREATE_DIR if descriptor.is_dir else OP_COPY_FILE
        ops.append(PlanOperation(kind, descriptor.relpath))

    for pair in result.sorted_modified():
        ops.append(PlanOperation(OP_OVERWRITE_FILE, pair.destination.relpath))

    finishing: list[PlanOperation] = []
    for pair in result.sorted_moved():
        target = pair.new_relpath
        if target in deferred_dirs:
            target = f"{pair.new_relpath}{STAGING_SUFFIX}"
            finishing.append(
                PlanOperation(OP_MOVE_FILE, target, target_relpath=pair.new_relpath)
            )
        ops.append(PlanOperation(OP_MOVE_FILE, pair.old_relpath, target_relpath=target))
    ops.extend(deferred)
    ops.extend(finishing)
    return ops


def _ensure_local_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _apply_local_metadata_from_local(
    local_path: Path,
    source_stat: os.stat_result,
) -> None:
    mode = stat.S_IMODE(source_stat.st_mode)
    os.chmod(local_path, mode)
    os.utime(local_path, ns=(source_stat.st_atime_ns, source_stat.st_mtime_ns))


def _delete(target: Path, *, is_dir: bool) -> None:
    if is_dir and not target.is_symlink():
        target.rmdir()
        return
    target.unlink()


def _copy_new(source: Path, target: Path) -> None:
    _ensure_local_parent(target)
    # "x" refuses to replace anything already at the target
    with open(source, "rb") as src, open(target, "xb") as dst:
        shutil.copyfileobj(src, dst)
    _apply_local_metadata_from_local(target, source.stat())


def _overwrite(source: Path, target: Path) -> None:
    shutil.copyfile(source, target)
    _apply_local_metadata_from_local(target, source.stat())


def _move(before: Path, after: Path) -> None:
    _ensure_local_parent(after)
    os.replace(before, after)


def _describe_failure(
    op: PlanOperation,
    source_root: Path,
    destination_root: Path,
    exc: OSError,
) -> str:
    source = source_root / op.relpath
    target = destination_root / op.relpath
    if op.kind in {OP_DELETE_FILE, OP_DELETE_DIR}:
        return f"Delete {target} failed: {exc}"
    if op.kind == OP_CREATE_DIR:
        return f"Create directory {target} failed: {exc}"
    if op.kind == OP_MOVE_FILE:
        after = destination_root / str(op.target_relpath)
        return f"Move {target} to {after} failed: {exc}"
    return f"Copy {source} to {target} failed: {exc}"


def execute_plan(
    source_root: Path,
    destination_root: Path,
    operations: list[PlanOperation],
    progress_cb: Callable[[int, int, PlanOperation, bool, str | None], None]
    | None = None,
) -> ExecuteResult:
    """Apply ``operations`` to ``destination_root`` in order.

    Every operation stands alone: a failure is logged, recorded in
    ``errors`` and the run moves on. Nothing is rolled back.
    """
    source_root = Path(source_root).expanduser().resolve()
    destination_root = Path(destination_root).expanduser().resolve()

    if not operations:
        return ExecuteResult(
            completed_paths=set(),
            errors=[],
            succeeded_operations=0,
            total_operations=0,
        )

    path_ops: dict[str, list[PlanOperation]] = {}
    for op in operations:
        path_ops.setdefault(op.relpath, []).append(op)

    errors: list[str] = []
    succeeded: set[tuple[str, str]] = set()
    done_count = 0
    total = len(operations)

    for op in operations:
        ok = False
        error: str | None = None

        source = source_root / op.relpath
        target = destination_root / op.relpath

        try:
            if op.kind in {OP_DELETE_FILE, OP_DELETE_DIR}:
                _delete(target, is_dir=op.kind == OP_DELETE_DIR)
                ok = True
            elif op.kind == OP_CREATE_DIR:
                target.mkdir(parents=True, exist_ok=True)
                ok = True
            elif op.kind == OP_COPY_FILE:
                _copy_new(source, target)
                ok = True
            elif op.kind == OP_OVERWRITE_FILE:
                _overwrite(source, target)
                ok = True
            elif op.kind == OP_MOVE_FILE and op.target_relpath is not None:
                _move(target, destination_root / op.target_relpath)
                ok = True
            else:
                error = f"unsupported operation: {op.kind} {op.relpath}"
        except OSError as exc:
            error = _describe_failure(op, source_root, destination_root, exc)

        if ok:
            succeeded.add((op.kind, op.relpath))
        elif error:
            _log.error(error)
            errors.append(error)

        done_count += 1
        if progress_cb is not None:
            progress_cb(done_count, total, op, ok, error)

    completed_paths: set[str] = set()
    for relpath, path_operations in path_ops.items():
        if all((op.kind, op.relpath) in succeeded for op in path_operations):
            completed_paths.add(relpath)

    return ExecuteResult(
        completed_paths=completed_paths,
        errors=errors,
        succeeded_operations=len(succeeded),
        total_operations=total,
    )
