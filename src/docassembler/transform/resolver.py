"""Link resolution: map every extracted link to its location in the output.

A link to a file in the manifest becomes a relative URL from the new location
of the linking file. A link to a file outside the manifest, but inside the
working folder, becomes an absolute URL using the external file prefix.
Anything else is an unresolved link.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Sequence
from urllib.parse import quote, unquote

from docassembler.events import ProgressCallback, safe_emit
from docassembler.model.config import AssembleConfiguration
from docassembler.model.manifest import FileRecord, LinkRecord, ReturnCode
from docassembler.parser.links import split_topic

logger = logging.getLogger(__name__)

_PERCENT_RUN_RE = re.compile(r"(?:%[0-9A-Fa-f]{2})+")


def relative_url(from_file: str, to_file: str) -> str:
    """Path from the directory of ``from_file`` to ``to_file`` with ``/`` separators."""
    return posixpath.relpath(to_file, posixpath.dirname(from_file))


def escaped_characters(url: str) -> frozenset[str]:
    """Characters written percent-encoded in the path part of ``url``."""
    path, _ = split_topic(url)
    chars: set[str] = set()
    for match in _PERCENT_RUN_RE.finditer(path):
        chars.update(unquote(match.group()))
    return frozenset(chars)


def encode_path(path: str, escaped: frozenset[str] = frozenset()) -> str:
    """Percent-encode whitespace and the ``escaped`` characters of a path."""
    return "".join(
        quote(ch, safe="") if ch in escaped or ch.isspace() else ch for ch in path
    )


class LinkResolver:
    """Resolve the links of all records in a manifest.

    Unresolved links are collected in :attr:`unresolved` rather than raised,
    so all of them are reported in one run.
    """

    def __init__(
        self,
        working_folder: str,
        config: AssembleConfiguration,
        files: Sequence[FileRecord],
        on_progress: ProgressCallback = None,
    ) -> None:
        self.working_folder = working_folder.rstrip("/")
        self.config = config
        self.files = files
        self.on_progress = on_progress
        self.unresolved: list[LinkRecord] = []
        self._index = {record.source_path: record for record in files}

    def resolve(self) -> ReturnCode:
        self.unresolved = []
        total = sum(len(record.links) for record in self.files)
        safe_emit(self.on_progress, "resolve:start", {"files": len(self.files), "links": total})

        for record in self.files:
            for link in record.links:
                self._resolve_link(record, link)
            safe_emit(self.on_progress, "resolve:file", {"file": record.source_path})

        safe_emit(self.on_progress, "resolve:done", {"unresolved": len(self.unresolved)})
        if self.unresolved:
            logger.error("Found %d unresolved links.", len(self.unresolved))
            return ReturnCode.ERROR
        return ReturnCode.NORMAL

    def _resolve_link(self, record: FileRecord, link: LinkRecord) -> None:
        if link.url_full_path == "":
            # heading in the same file
            link.resolved_full_url = link.original_url
            link.resolved_relative_url = link.original_url
            return

        escaped = escaped_characters(link.original_url)
        target = self._index.get(link.url_full_path)
        if target is not None:
            link.resolved_full_url = target.destination_path + link.url_topic
            link.resolved_relative_url = (
                encode_path(relative_url(record.destination_path, target.destination_path), escaped)
                + link.url_topic
            )
            return

        prefix = self.config.effective_external_prefix(record.group)
        root = self.working_folder + "/"
        if not prefix or not link.url_full_path.lower().startswith(root.lower()):
            logger.error(
                "%s(%d,%d): unresolved link '%s'. Target '%s' isn't part of the documentation "
                "and no external file prefix applies.",
                record.source_path,
                link.line,
                link.column,
                link.original_url,
                link.url_full_path,
            )
            self.unresolved.append(link)
            return

        link.resolved_full_url = (
            prefix + encode_path(link.url_full_path[len(root) :], escaped) + link.url_topic
        )
        logger.debug(
            "%s(%d,%d): external link '%s' -> '%s'",
            record.source_path,
            link.line,
            link.column,
            link.original_url,
            link.resolved_full_url,
        )


def resolve_links(
    working_folder: str,
    config: AssembleConfiguration,
    files: Sequence[FileRecord],
    on_progress: ProgressCallback = None,
) -> ReturnCode:
    return LinkResolver(working_folder, config, files, on_progress=on_progress).resolve()


__all__ = ["LinkResolver", "encode_path", "escaped_characters", "relative_url", "resolve_links"]
