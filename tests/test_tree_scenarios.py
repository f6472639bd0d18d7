from __future__ import annotations

import pytest

from jiff.compare import compare_trees
from jiff.config import DiffConfig
from jiff.report import report_lines

from conftest import write_tree


@pytest.fixture
def readme_trees(tmp_path):
    def _build(destination_content: str):
        source_root = write_tree(tmp_path / "src", {"docs/readme.txt": "XXXXXXXXXX"})
        destination_root = write_tree(
            tmp_path / "dst", {"old/readme.txt": destination_content}
        )
        return source_root, destination_root

    return _build


def _file_lines(lines: list[str]) -> list[str]:
    # directory entries are reported too; keep the file-level lines
    return [line for line in lines if not line.endswith("(D)")]


def test_relocated_readme_is_moved_without_strict(readme_trees) -> None:
    source_root, destination_root = readme_trees("XXXXXXXXXX")

    lines = report_lines(compare_trees(source_root, destination_root, DiffConfig()))

    assert _file_lines(lines) == ["Moved: old/readme.txt -> docs/readme.txt"]
    assert lines == [
        "Deleted: old (D)",
        "Added: docs (D)",
        "Moved: old/readme.txt -> docs/readme.txt",
    ]


def test_relocated_readme_is_moved_in_strict_mode(readme_trees) -> None:
    source_root, destination_root = readme_trees("XXXXXXXXXX")

    lines = report_lines(
        compare_trees(source_root, destination_root, DiffConfig(strict=True))
    )

    assert _file_lines(lines) == ["Moved: old/readme.txt -> docs/readme.txt"]


def test_relocated_readme_with_other_content_is_added_and_deleted(
    readme_trees,
) -> None:
    source_root, destination_root = readme_trees("YYYYYYYYYY")

    lines = report_lines(
        compare_trees(source_root, destination_root, DiffConfig(strict=True))
    )

    assert _file_lines(lines) == [
        "Deleted: old/readme.txt (F)",
        "Added: docs/readme.txt (F)",
    ]


@pytest.mark.parametrize("chunk_kib", [1, 16, 1024])
def test_strict_report_is_the_same_for_any_chunk_size(tmp_path, chunk_kib) -> None:
    big = bytes(range(256)) * 200
    altered = bytearray(big)
    altered[30_000] ^= 0x01
    source_root = write_tree(
        tmp_path / "src", {"same.bin": big, "changed.bin": bytes(altered)}
    )
    destination_root = write_tree(
        tmp_path / "dst", {"same.bin": big, "changed.bin": big}
    )

    config = DiffConfig.from_kib(strict=True, chunk_size_kib=chunk_kib)
    lines = report_lines(compare_trees(source_root, destination_root, config))

    assert lines == ["Modified: changed.bin (content modified)"]
