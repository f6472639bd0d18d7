from __future__ import annotations

from .models import DiffResult, FileDescriptor, ModifiedPair, MovedPair


def _kind_letter(descriptor: FileDescriptor) -> str:
    return "D" if descriptor.is_dir else "F"


def format_added(descriptor: FileDescriptor) -> str:
    return f"Added: {descriptor.relpath} ({_kind_letter(descriptor)})"


def format_deleted(descriptor: FileDescriptor) -> str:
    return f"Deleted: {descriptor.relpath} ({_kind_letter(descriptor)})"


def format_modified(pair: ModifiedPair) -> str:
    if not pair.size_changed:
        return f"Modified: {pair.relpath} (content modified)"
    return (
        f"Modified: {pair.relpath} "
        f"({pair.destination.size} -> {pair.source.size})"
    )


def format_moved(pair: MovedPair) -> str:
    return f"Moved: {pair.old_relpath} -> {pair.new_relpath}"


def format_elapsed(seconds: float) -> str:
    return f"Time elapsed: {seconds:.3f}s"


def report_lines(result: DiffResult) -> list[str]:
    """All report lines: deleted, added, modified, moved, each by path."""
    lines = [format_deleted(d) for d in result.sorted_deleted()]
    lines.extend(format_added(d) for d in result.sorted_added())
    lines.extend(format_modified(pair) for pair in result.sorted_modified())
    lines.extend(format_moved(pair) for pair in result.sorted_moved())
    return lines
