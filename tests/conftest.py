from __future__ import annotations

from pathlib import Path

from jiff.models import FileDescriptor

SOURCE_ROOT = Path("/trees/source")
DESTINATION_ROOT = Path("/trees/destination")


def mk_desc(
    relpath: str,
    *,
    size: int = 0,
    is_dir: bool = False,
    root: Path = SOURCE_ROOT,
) -> FileDescriptor:
    return FileDescriptor(
        relpath=relpath,
        size=0 if is_dir else size,
        is_dir=is_dir,
        root=root,
    )


def mk_snapshot(
    entries: list[tuple[str, int, bool]], root: Path = SOURCE_ROOT
) -> dict[str, FileDescriptor]:
    # entry: (relpath, size, is_dir)
    return {
        relpath: mk_desc(relpath, size=size, is_dir=is_dir, root=root)
        for relpath, size, is_dir in entries
    }


def write_tree(root: Path, files: dict[str, str | bytes | None]) -> Path:
    """Create ``files`` under ``root``; a ``None`` value makes a directory."""
    root.mkdir(parents=True, exist_ok=True)
    for relpath, content in files.items():
        path = root / relpath
        if content is None:
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
    return root
