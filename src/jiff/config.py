from __future__ import annotations

from dataclasses import dataclass

APP_NAME = "jiff"
VERSION = "0.1.0"

DEFAULT_CHUNK_SIZE_KIB = 16
SCAN_PROGRESS_INTERVAL_SECONDS = 0.2


def kib_to_bytes(kib: int) -> int:
    return kib * 1024


@dataclass(frozen=True)
class DiffConfig:
    strict: bool = False
    chunk_size: int = kib_to_bytes(DEFAULT_CHUNK_SIZE_KIB)
    workers: int | None = None
    exclude: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk size must be positive, got {self.chunk_size}")
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"worker count must be positive, got {self.workers}")

    @classmethod
    def from_kib(
        cls,
        *,
        strict: bool = False,
        chunk_size_kib: int = DEFAULT_CHUNK_SIZE_KIB,
        workers: int | None = None,
        exclude: tuple[str, ...] = (),
    ) -> DiffConfig:
        return cls(
            strict=strict,
            chunk_size=kib_to_bytes(chunk_size_kib),
            workers=workers,
            exclude=tuple(exclude),
        )
