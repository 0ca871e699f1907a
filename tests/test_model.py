from __future__ import annotations

from docassembler.model.config import ContentGroup
from docassembler.model.manifest import FileRecord, LinkRecord, LinkType, ReturnCode


def _link(**kwargs) -> LinkRecord:
    defaults = dict(
        file_path="/repo/docs/a.md",
        original_url="b.md",
        url="b.md",
        link_type=LinkType.LOCAL,
        span_start=10,
        span_end=13,
    )
    defaults.update(kwargs)
    return LinkRecord(**defaults)


def test_return_code_combine() -> None:
    assert ReturnCode.combine() == ReturnCode.NORMAL
    assert ReturnCode.combine(ReturnCode.NORMAL, ReturnCode.WARNING) == ReturnCode.WARNING
    assert ReturnCode.combine(ReturnCode.ERROR, ReturnCode.WARNING) == ReturnCode.ERROR
    assert int(ReturnCode.ERROR) == 2


def test_link_replacement_prefers_relative() -> None:
    link = _link(resolved_full_url="/repo/out/b.md", resolved_relative_url="../b.md")
    assert link.replacement == "../b.md"
    assert link.needs_rewrite

    external = _link(resolved_full_url="https://example.com/b.md")
    assert external.replacement == "https://example.com/b.md"

    unchanged = _link(resolved_full_url="/repo/out/b.md", resolved_relative_url="b.md")
    assert not unchanged.needs_rewrite
    assert not _link().needs_rewrite


def test_link_kinds() -> None:
    assert _link().is_local
    assert _link(link_type=LinkType.RESOURCE).is_local
    assert _link(link_type=LinkType.FTP).is_web
    assert not _link(link_type=LinkType.MAIL).is_local


def test_file_record_is_markdown() -> None:
    group = ContentGroup(source_folder="docs")
    assert FileRecord("/repo/docs/README.MD", "/out/README.MD", group).is_markdown
    assert not FileRecord("/repo/docs/a.png", "/out/a.png", group).is_markdown
