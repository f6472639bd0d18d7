from __future__ import annotations

from jiff.compare import classify_snapshots, compare_snapshots, compare_trees
from jiff.config import DiffConfig

from conftest import DESTINATION_ROOT, mk_snapshot, write_tree


def _paths(descriptors) -> list[str]:
    return sorted(d.relpath for d in descriptors)


def test_only_source_and_only_destination_paths() -> None:
    source = mk_snapshot([("new.txt", 3, False), ("same.txt", 1, False)])
    destination = mk_snapshot(
        [("gone.txt", 5, False), ("same.txt", 1, False)], root=DESTINATION_ROOT
    )

    result = classify_snapshots(source, destination, DiffConfig())

    assert _paths(result.added) == ["new.txt"]
    assert _paths(result.deleted) == ["gone.txt"]
    assert result.modified == []
    assert result.moved == []


def test_type_flip_is_added_and_deleted_never_modified() -> None:
    source = mk_snapshot([("p", 12, False), ("q", 0, True)])
    destination = mk_snapshot(
        [("p", 0, True), ("q", 7, False)], root=DESTINATION_ROOT
    )

    result = classify_snapshots(source, destination, DiffConfig(strict=True))

    assert _paths(result.added) == ["p", "q"]
    assert _paths(result.deleted) == ["p", "q"]
    assert {d.relpath: d.is_dir for d in result.added} == {"p": False, "q": True}
    assert {d.relpath: d.is_dir for d in result.deleted} == {"p": True, "q": False}
    assert result.modified == []


def test_size_change_is_modified_and_same_size_is_not_without_strict() -> None:
    source = mk_snapshot([("grown.txt", 20, False), ("same.txt", 8, False)])
    destination = mk_snapshot(
        [("grown.txt", 10, False), ("same.txt", 8, False)], root=DESTINATION_ROOT
    )

    result = classify_snapshots(source, destination, DiffConfig())

    assert [pair.relpath for pair in result.modified] == ["grown.txt"]
    pair = result.modified[0]
    assert (pair.destination.size, pair.source.size) == (10, 20)
    assert pair.size_changed


def test_directories_present_on_both_sides_are_unchanged() -> None:
    source = mk_snapshot([("docs", 0, True)])
    destination = mk_snapshot([("docs", 0, True)], root=DESTINATION_ROOT)

    result = classify_snapshots(source, destination, DiffConfig(strict=True))

    assert result.is_empty


def test_strict_detects_same_size_content_change(tmp_path) -> None:
    source_root = write_tree(tmp_path / "src", {"a.txt": "AAAA", "b.txt": "same"})
    destination_root = write_tree(tmp_path / "dst", {"a.txt": "BBBB", "b.txt": "same"})

    relaxed = compare_trees(source_root, destination_root, DiffConfig())
    strict = compare_trees(source_root, destination_root, DiffConfig(strict=True))

    assert relaxed.is_empty
    assert [pair.relpath for pair in strict.modified] == ["a.txt"]
    assert not strict.modified[0].size_changed


def test_identical_copy_is_empty_in_strict_mode(tmp_path) -> None:
    files = {
        "a.txt": "alpha",
        "docs": None,
        "docs/readme.txt": "0123456789",
        "docs/nested/deep.bin": b"\x00\x01" * 5000,
        "empty": None,
    }
    source_root = write_tree(tmp_path / "src", files)
    destination_root = write_tree(tmp_path / "dst", files)

    result = compare_trees(
        source_root, destination_root, DiffConfig(strict=True, chunk_size=1024)
    )

    assert result.is_empty


def test_every_entry_is_classified_exactly_once() -> None:
    source = mk_snapshot(
        [
            ("keep.txt", 1, False),
            ("grow.txt", 2, False),
            ("flip", 0, True),
            ("moved-here.txt", 9, False),
            ("brand-new.txt", 4, False),
        ]
    )
    destination = mk_snapshot(
        [
            ("keep.txt", 1, False),
            ("grow.txt", 1, False),
            ("flip", 3, False),
            ("moved-from.txt", 9, False),
            ("old.txt", 6, False),
        ],
        root=DESTINATION_ROOT,
    )

    result = compare_snapshots(source, destination, DiffConfig())

    source_seen = (
        _paths(result.added)
        + [pair.source.relpath for pair in result.modified]
        + [pair.source.relpath for pair in result.moved]
        + ["keep.txt"]
    )
    destination_seen = (
        _paths(result.deleted)
        + [pair.destination.relpath for pair in result.modified]
        + [pair.destination.relpath for pair in result.moved]
        + ["keep.txt"]
    )
    assert sorted(source_seen) == sorted(source)
    assert sorted(destination_seen) == sorted(destination)


def test_empty_destination_reports_everything_as_added(tmp_path) -> None:
    source_root = write_tree(tmp_path / "src", {"a.txt": "x", "d/b.txt": "y"})

    result = compare_trees(source_root, tmp_path / "missing", DiffConfig())

    assert _paths(result.added) == ["a.txt", "d", "d/b.txt"]
    assert result.deleted == set()
    assert result.moved == []
