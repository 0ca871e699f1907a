from __future__ import annotations

import logging
from pathlib import Path

import pytest
from conftest import make_tree, posix

from docassembler.ingest.catalog import FileCatalog, normalize_path


def test_normalize_path_uses_forward_slashes() -> None:
    assert normalize_path("a\\b\\c.md") == "a/b/c.md"


def test_list_files_is_sorted_and_absolute(tmp_path: Path) -> None:
    make_tree(tmp_path, {"b/2.md": "", "a/1.md": "", "c.txt": "", "a/z/3.md": ""})
    files = FileCatalog().list_files(tmp_path, ["**"])
    root = posix(tmp_path)
    assert files == [f"{root}/a/1.md", f"{root}/a/z/3.md", f"{root}/b/2.md", f"{root}/c.txt"]


def test_list_files_applies_globs(tmp_path: Path) -> None:
    make_tree(
        tmp_path,
        {"app/docs/README.md": "", "app/src/app.cs": "", "docs/x.md": "", "docs/skip.md": ""},
    )
    files = FileCatalog().list_files(tmp_path, ["**/docs/**"], ["**/skip.md"])
    assert [f.rsplit("/", 2)[-2:] for f in files] == [["docs", "README.md"], ["docs", "x.md"]]


def test_list_files_missing_root_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert FileCatalog().list_files(tmp_path / "nope", ["**"]) == []
    assert "not found" in caplog.text


def test_text_round_trip_keeps_line_endings(tmp_path: Path) -> None:
    catalog = FileCatalog()
    target = tmp_path / "sub" / "dir" / "file.md"
    catalog.write_text(target, "line 1\r\nline 2\n")
    assert target.read_bytes() == b"line 1\r\nline 2\n"
    assert catalog.read_text(target) == "line 1\r\nline 2\n"
    assert catalog.read_lines(target) == ["line 1", "line 2"]


def test_read_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FileCatalog().read_text(tmp_path / "missing.md")


def test_copy_is_byte_identical_and_creates_folders(tmp_path: Path) -> None:
    source = tmp_path / "image.bin"
    source.write_bytes(bytes(range(256)))
    destination = tmp_path / "out" / "deep" / "image.bin"
    FileCatalog().copy(source, destination)
    assert destination.read_bytes() == source.read_bytes()


def test_copy_refuses_to_overwrite(tmp_path: Path) -> None:
    source = tmp_path / "a.md"
    source.write_text("a")
    destination = tmp_path / "b.md"
    destination.write_text("b")
    with pytest.raises(FileExistsError):
        FileCatalog().copy(source, destination)
    assert destination.read_text() == "b"


def test_copy_missing_source_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        FileCatalog().copy(tmp_path / "missing.md", tmp_path / "out.md")


def test_delete_folder_and_directories(tmp_path: Path) -> None:
    make_tree(tmp_path, {"out/a/1.md": "", "keep/2.md": ""})
    catalog = FileCatalog()
    assert catalog.get_directories(tmp_path) == [f"{posix(tmp_path)}/keep", f"{posix(tmp_path)}/out"]
    catalog.delete_folder(tmp_path / "out")
    assert not (tmp_path / "out").exists()
    assert catalog.exists(tmp_path / "keep" / "2.md")
    # deleting a missing folder is a no-op
    catalog.delete_folder(tmp_path / "out")


def test_open_read_returns_bytes(tmp_path: Path) -> None:
    (tmp_path / "f.bin").write_bytes(b"\x00\x01")
    with FileCatalog().open_read(tmp_path / "f.bin") as f:
        assert f.read() == b"\x00\x01"
