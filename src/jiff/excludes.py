from __future__ import annotations

from collections.abc import Iterable
from pathlib import PurePosixPath

from pathspec import PathSpec


class ExcludeRules:
    """Gitignore-style exclusion patterns evaluated relative to a tree root."""

    def __init__(self, patterns: Iterable[str] = ()) -> None:
        clean = [
            line.strip()
            for line in patterns
            if line.strip() and not line.lstrip().startswith("#")
        ]
        self._spec: PathSpec | None = (
            PathSpec.from_lines("gitwildmatch", clean) if clean else None
        )

    def is_excluded(self, relpath: PurePosixPath | str, is_dir: bool) -> bool:
        if self._spec is None:
            return False
        target = PurePosixPath(relpath).as_posix()
        if is_dir and not target.endswith("/"):
            target = f"{target}/"
        if self._spec.match_file(target):
            return True
        return is_dir and self._spec.match_file(target.rstrip("/"))
