"""Inventory stage: expand content groups into the file manifest."""

from __future__ import annotations

import logging
import posixpath

from docassembler.events import ProgressCallback, safe_emit
from docassembler.ingest.catalog import FileCatalog, normalize_path
from docassembler.model.config import AssembleConfiguration, ContentGroup
from docassembler.model.manifest import FileRecord, ReturnCode
from docassembler.parser.links import MarkdownLinkExtractor
from docassembler.transform.replacements import RuleSet

logger = logging.getLogger(__name__)


def resolve_folder(base: str, folder: str | None) -> str:
    """Absolute, normalized folder; ``folder`` may itself be absolute."""
    if not folder:
        return posixpath.normpath(normalize_path(base))
    return posixpath.normpath(posixpath.join(normalize_path(base), normalize_path(folder)))


def output_folder_for(config: AssembleConfiguration, working_folder: str) -> str:
    return resolve_folder(working_folder, config.destination_folder)


class ContentManifestBuilder:
    """Build :class:`FileRecord` entries for every file selected by the configuration.

    Markdown files of groups that aren't raw copies get their local links
    extracted. Destination paths are computed from the group's destination
    folder and rewritten with the effective URL replacement rules.
    """

    def __init__(
        self,
        working_folder: str,
        config: AssembleConfiguration,
        catalog: FileCatalog | None = None,
        extractor: MarkdownLinkExtractor | None = None,
        on_progress: ProgressCallback = None,
    ) -> None:
        self.catalog = catalog or FileCatalog()
        self.working_folder = self.catalog.get_full_path(working_folder)
        self.config = config
        self.extractor = extractor or MarkdownLinkExtractor(self.catalog)
        self.on_progress = on_progress
        self.files: list[FileRecord] = []

    @property
    def output_folder(self) -> str:
        return output_folder_for(self.config, self.working_folder)

    def build(self) -> tuple[list[FileRecord], ReturnCode]:
        """Run the inventory and return the manifest with the stage result."""
        ret = ReturnCode.NORMAL
        self.files = []
        safe_emit(self.on_progress, "inventory:start", {"groups": len(self.config.content)})
        try:
            for index, group in enumerate(self.config.content):
                ret = ReturnCode.combine(ret, self._add_group(index, group))
        except Exception as exc:
            logger.critical("Inventory error: %s", exc)
            ret = ReturnCode.ERROR

        safe_emit(self.on_progress, "inventory:done", {"files": len(self.files)})
        return self.files, ret

    def _add_group(self, index: int, group: ContentGroup) -> ReturnCode:
        source_folder = resolve_folder(self.working_folder, group.source_folder)
        destination_folder = resolve_folder(self.output_folder, group.destination_folder)
        rules = RuleSet(self.config.effective_url_replacements(group), kind="url")

        files = self.catalog.list_files(source_folder, group.include_globs, group.exclude_globs)
        logger.info(
            "Content group %d '%s': %d files -> %s",
            index,
            group.source_folder,
            len(files),
            destination_folder,
        )
        safe_emit(
            self.on_progress,
            "inventory:group",
            {"group": group.source_folder, "files": len(files)},
        )

        for source_path in files:
            relative = source_path[len(source_folder) :]
            destination_path = rules.apply(destination_folder + relative)
            record = FileRecord(
                source_path=source_path,
                destination_path=destination_path,
                group=group,
                group_index=index,
            )
            if not group.raw_copy and record.is_markdown:
                record.links = self.extractor.extract_local_links(self.working_folder, source_path)
            logger.debug("%s -> %s", source_path, destination_path)
            self.files.append(record)

        return rules.result


def build_manifest(
    working_folder: str,
    config: AssembleConfiguration,
    catalog: FileCatalog | None = None,
    on_progress: ProgressCallback = None,
) -> tuple[list[FileRecord], ReturnCode]:
    return ContentManifestBuilder(
        working_folder, config, catalog=catalog, on_progress=on_progress
    ).build()


__all__ = [
    "ContentManifestBuilder",
    "build_manifest",
    "output_folder_for",
    "resolve_folder",
]
