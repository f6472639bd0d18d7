from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, order=True)
class FileDescriptor:
    """One filesystem entry, identified by its path relative to a tree root.

    Ordering follows ``relpath`` first, which is the order every report uses.
    Directories always carry ``size == 0``.
    """

    relpath: str
    size: int
    is_dir: bool
    root: Path = field(compare=False)

    @property
    def path(self) -> Path:
        return self.root / self.relpath


@dataclass(frozen=True)
class ModifiedPair:
    source: FileDescriptor
    destination: FileDescriptor

    @property
    def relpath(self) -> str:
        return self.source.relpath

    @property
    def size_changed(self) -> bool:
        return self.source.size != self.destination.size


@dataclass(frozen=True)
class MovedPair:
    # destination.relpath is the old location, source.relpath the new one
    source: FileDescriptor
    destination: FileDescriptor

    @property
    def old_relpath(self) -> str:
        return self.destination.relpath

    @property
    def new_relpath(self) -> str:
        return self.source.relpath


@dataclass
class DiffResult:
    added: set[FileDescriptor] = field(default_factory=set)
    deleted: set[FileDescriptor] = field(default_factory=set)
    modified: list[ModifiedPair] = field(default_factory=list)
    moved: list[MovedPair] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.deleted or self.modified or self.moved)

    def sorted_added(self) -> list[FileDescriptor]:
        return sorted(self.added)

    def sorted_deleted(self) -> list[FileDescriptor]:
        return sorted(self.deleted)

    def sorted_modified(self) -> list[ModifiedPair]:
        return sorted(self.modified, key=lambda pair: pair.relpath)

    def sorted_moved(self) -> list[MovedPair]:
        return sorted(self.moved, key=lambda pair: pair.new_relpath)
