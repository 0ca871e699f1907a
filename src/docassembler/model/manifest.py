"""Manifest data model shared by all pipeline stages.

The manifest is built by the inventory stage, completed by link resolution
and consumed read-only by the assembler. It lives for a single run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from docassembler.model.config import ContentGroup


class ReturnCode(IntEnum):
    """Result of a pipeline stage, also used as process exit code."""

    NORMAL = 0  # All went well
    WARNING = 1  # Some warnings, but the process completed
    ERROR = 2  # A fatal error occurred

    @classmethod
    def combine(cls, *codes: ReturnCode) -> ReturnCode:
        """Return the most severe of the given codes."""
        return cls(max((int(c) for c in codes), default=int(cls.NORMAL)))


class LinkType(Enum):
    """Classification of a hyperlink by its URL."""

    LOCAL = "local"  # Markdown file or folder
    RESOURCE = "resource"  # Image or any other local file
    WEBPAGE = "webpage"
    FTP = "ftp"
    MAIL = "mail"
    CROSS_REFERENCE = "xref"
    EMPTY = "empty"


# Order matters: first matching prefix wins.
PROTOCOLS: tuple[tuple[str, LinkType], ...] = (
    ("https://", LinkType.WEBPAGE),
    ("http://", LinkType.WEBPAGE),
    ("ftps://", LinkType.FTP),
    ("ftp://", LinkType.FTP),
    ("mailto:", LinkType.MAIL),
    ("xref:", LinkType.CROSS_REFERENCE),
)


@dataclass(slots=True)
class LinkRecord:
    """A hyperlink found in a Markdown file.

    - original_url: verbatim substring of the source text
    - url: decoded working copy with ``/`` separators
    - span_start/span_end: inclusive offsets of ``original_url`` in the source
    - url_topic: ``#fragment`` or ``?query`` suffix, including the delimiter
    - url_full_path: absolute target path without topic; empty for a heading
      reference inside the same file
    - resolved_full_url/resolved_relative_url: set by link resolution
    """

    file_path: str
    original_url: str
    url: str
    link_type: LinkType
    span_start: int
    span_end: int
    line: int = 0
    column: int = 0
    url_topic: str = ""
    url_full_path: str = ""
    resolved_full_url: str | None = None
    resolved_relative_url: str | None = None

    @property
    def is_local(self) -> bool:
        return self.link_type in (LinkType.LOCAL, LinkType.RESOURCE)

    @property
    def is_web(self) -> bool:
        return self.link_type in (LinkType.WEBPAGE, LinkType.FTP)

    @property
    def replacement(self) -> str | None:
        """URL text to write in the output, relative form preferred."""
        return self.resolved_relative_url or self.resolved_full_url

    @property
    def needs_rewrite(self) -> bool:
        return self.replacement is not None and self.replacement != self.original_url


@dataclass(slots=True)
class FileRecord:
    """One file of the manifest.

    ``group`` is borrowed from the configuration, which outlives the manifest.
    ``group_index`` identifies the group in diagnostics.
    """

    source_path: str
    destination_path: str
    group: ContentGroup
    group_index: int = 0
    links: list[LinkRecord] = field(default_factory=list)

    @property
    def is_markdown(self) -> bool:
        return self.source_path.lower().endswith(".md")


__all__ = [
    "PROTOCOLS",
    "FileRecord",
    "LinkRecord",
    "LinkType",
    "ReturnCode",
]
