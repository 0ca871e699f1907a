from __future__ import annotations

import logging
from pathlib import Path

import pytest
from conftest import make_tree, posix

from docassembler.builder.inventory import build_manifest
from docassembler.builder.validation import find_collisions, validate_manifest
from docassembler.model.config import AssembleConfiguration, ContentGroup
from docassembler.model.manifest import FileRecord, ReturnCode


def test_unique_destinations_are_valid(demo_tree: Path, standard_config: AssembleConfiguration) -> None:
    files, _ = build_manifest(posix(demo_tree), standard_config)
    assert find_collisions(files) == {}
    assert validate_manifest(files) == ReturnCode.NORMAL


def test_empty_manifest_is_valid() -> None:
    assert validate_manifest([]) == ReturnCode.NORMAL


def test_duplicate_raw_groups_collide(
    demo_tree: Path, standard_config: AssembleConfiguration, caplog: pytest.LogCaptureFixture
) -> None:
    docfx = standard_config.content[0]
    config = AssembleConfiguration(
        destination_folder="out",
        content=(docfx, docfx),
    )
    files, ret = build_manifest(posix(demo_tree), config)
    assert ret == ReturnCode.NORMAL

    with caplog.at_level(logging.ERROR):
        assert validate_manifest(files) == ReturnCode.ERROR

    collisions = find_collisions(files)
    assert len(collisions) == 4
    for records in collisions.values():
        assert [r.group_index for r in records] == [0, 1]
    assert "content group 0" in caplog.text
    assert "content group 1" in caplog.text
    assert "Found 4 destination collisions" in caplog.text


def test_collision_reports_every_member(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    make_tree(tmp_path, {"a/README.md": "", "b/README.md": "", "c/README.md": ""})
    group = ContentGroup(source_folder="x")
    files = [
        FileRecord(
            source_path=posix(tmp_path / d / "README.md"),
            destination_path="/out/README.md",
            group=group,
            group_index=i,
        )
        for i, d in enumerate("abc")
    ]
    with caplog.at_level(logging.ERROR):
        assert validate_manifest(files) == ReturnCode.ERROR
    assert "3 files are written to '/out/README.md'" in caplog.text
    for d in "abc":
        assert posix(tmp_path / d / "README.md") in caplog.text
