"""Write stage: copy every manifest file to its destination.

Markdown files whose links changed are written with the new link text spliced
in at the recorded spans. Content replacement rules run on the text copied
verbatim between those spans, never on the links themselves, so they can't
shift the offsets the splicing relies on.

Each rule therefore sees one segment at a time. A match can't span a
rewritten link, and anchors or lookarounds see the segment
edges rather than the neighbouring text of the file. Files without rewritten
links are one segment, so rules see the whole text there.

The stage is not transactional: when it fails halfway, files written so far
stay in the output folder.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from docassembler.events import ProgressCallback, safe_emit
from docassembler.ingest.catalog import FileCatalog
from docassembler.model.config import AssembleConfiguration
from docassembler.model.manifest import FileRecord, LinkRecord, ReturnCode
from docassembler.transform.replacements import RuleSet

logger = logging.getLogger(__name__)


def links_to_update(record: FileRecord) -> list[LinkRecord]:
    """Links whose output URL differs from the source text, by span start."""
    return sorted((x for x in record.links if x.needs_rewrite), key=lambda x: x.span_start)


def splice_links(
    text: str,
    updates: Sequence[LinkRecord],
    transform: Callable[[str], str] | None = None,
) -> str:
    """Replace each update's span with its new URL in one left to right pass.

    ``transform`` is applied to every piece of text copied from the source.
    """

    def _copy(segment: str) -> str:
        return transform(segment) if transform is not None else segment

    parts: list[str] = []
    cursor = 0
    for link in updates:
        parts.append(_copy(text[cursor : link.span_start]))
        parts.append(link.replacement or link.original_url)
        logger.debug(
            "Splice %d-%d: '%s' -> '%s'",
            link.span_start,
            link.span_end,
            link.original_url,
            link.replacement,
        )
        cursor = link.span_end + 1
    parts.append(_copy(text[cursor:]))
    return "".join(parts)


class Assembler:
    """Copy the manifest to the output folder, rewriting links as resolved."""

    def __init__(
        self,
        config: AssembleConfiguration,
        files: Sequence[FileRecord],
        catalog: FileCatalog | None = None,
        on_progress: ProgressCallback = None,
    ) -> None:
        self.config = config
        self.files = files
        self.catalog = catalog or FileCatalog()
        self.on_progress = on_progress
        self._content_rules: dict[int, RuleSet] = {}

    def run(self) -> ReturnCode:
        ret = ReturnCode.NORMAL
        safe_emit(self.on_progress, "assemble:start", {"files": len(self.files)})
        try:
            for record in self.files:
                self._write(record)
                safe_emit(self.on_progress, "assemble:file", {"file": record.destination_path})
        except Exception as exc:
            logger.critical("Assembly error: %s", exc)
            ret = ReturnCode.ERROR

        for rules in self._content_rules.values():
            ret = ReturnCode.combine(ret, rules.result)
        safe_emit(self.on_progress, "assemble:done", {"files": len(self.files)})
        return ret

    def _rules_for(self, record: FileRecord) -> RuleSet:
        rules = self._content_rules.get(record.group_index)
        if rules is None:
            rules = RuleSet(self.config.effective_content_replacements(record.group), kind="content")
            self._content_rules[record.group_index] = rules
        return rules

    def _write(self, record: FileRecord) -> None:
        if record.group.raw_copy or not record.is_markdown:
            logger.debug("Copy %s -> %s", record.source_path, record.destination_path)
            self.catalog.copy(record.source_path, record.destination_path)
            return

        updates = links_to_update(record)
        rules = self._rules_for(record)
        if not updates and not rules:
            logger.debug("Copy %s -> %s", record.source_path, record.destination_path)
            self.catalog.copy(record.source_path, record.destination_path)
            return

        text = self.catalog.read_text(record.source_path)
        content = splice_links(text, updates, rules.apply if rules else None)
        logger.debug(
            "Write %s -> %s (%d links updated)",
            record.source_path,
            record.destination_path,
            len(updates),
        )
        self.catalog.write_text(record.destination_path, content)


__all__ = ["Assembler", "links_to_update", "splice_links"]
