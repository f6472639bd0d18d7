from __future__ import annotations

import logging
import zlib

from .models import FileDescriptor

_log = logging.getLogger(__name__)


def files_equal(
    source: FileDescriptor, destination: FileDescriptor, chunk_size: int
) -> bool:
    """Return True when both files hold exactly the same bytes.

    Both files are read in lock-step, ``chunk_size`` bytes at a time. A running
    Adler-32 checksum is kept per file; a checksum mismatch ends the
    comparison early. Chunks whose checksums agree are confirmed byte by byte,
    so the answer never depends on ``chunk_size``.

    Any I/O failure is reported as "not equal".
    """
    if source.is_dir or destination.is_dir:
        raise ValueError("files_equal() only compares regular files")
    if chunk_size <= 0:
        raise ValueError(f"chunk size must be positive, got {chunk_size}")

    try:
        with open(source.path, "rb") as src, open(destination.path, "rb") as dst:
            src_sum = zlib.adler32(b"")
            dst_sum = src_sum
            while True:
                src_chunk = src.read(chunk_size)
                if not src_chunk:
                    # destination must be exhausted too
                    return not dst.read(1)
                dst_chunk = dst.read(len(src_chunk))
                if len(dst_chunk) != len(src_chunk):
                    return False
                src_sum = zlib.adler32(src_chunk, src_sum)
                dst_sum = zlib.adler32(dst_chunk, dst_sum)
                if src_sum != dst_sum or src_chunk != dst_chunk:
                    return False
    except OSError as exc:
        _log.warning(
            "Compare %s with %s failed: %s", source.path, destination.path, exc
        )
        return False
