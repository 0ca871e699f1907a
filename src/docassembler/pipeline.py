"""Assembly pipeline: inventory, validation, resolution, optional cleanup, assembly.

Stages run one after another on an in-memory manifest. A stage returning
ERROR stops the pipeline before anything is written to the output folder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from docassembler.builder.assembler import Assembler
from docassembler.builder.inventory import ContentManifestBuilder
from docassembler.builder.validation import validate_manifest
from docassembler.events import ProgressCallback
from docassembler.ingest.catalog import FileCatalog
from docassembler.model.config import AssembleConfiguration
from docassembler.model.manifest import FileRecord, ReturnCode
from docassembler.stage_logger import log_configuration, log_stage_result, log_stage_start
from docassembler.transform.resolver import LinkResolver

logger = logging.getLogger(__name__)


@dataclass
class AssemblyResult:
    """Outcome of a pipeline run.

    - result: combined result of all stages that ran
    - stages: result per stage, in execution order
    - files: the manifest
    """

    result: ReturnCode = ReturnCode.NORMAL
    stages: dict[str, ReturnCode] = field(default_factory=dict)
    files: list[FileRecord] = field(default_factory=list)

    def record(self, stage: str, result: ReturnCode) -> ReturnCode:
        log_stage_result(stage, result)
        self.stages[stage] = result
        self.result = ReturnCode.combine(self.result, result)
        return result


def _cleanup_output(catalog: FileCatalog, working_folder: str, output_folder: str) -> None:
    # never delete the documentation root or one of its parents
    if (working_folder.rstrip("/") + "/").startswith(output_folder.rstrip("/") + "/"):
        logger.warning("Output folder %s contains the working folder; cleanup skipped.", output_folder)
        return
    if catalog.exists(output_folder):
        logger.info("Cleaning output folder %s", output_folder)
        catalog.delete_folder(output_folder)


def assemble_documentation(
    config: AssembleConfiguration,
    working_folder: str,
    *,
    cleanup: bool = False,
    dry_run: bool = False,
    catalog: FileCatalog | None = None,
    on_progress: ProgressCallback = None,
) -> AssemblyResult:
    """Run the full assembly for a configuration.

    Args:
        config: Assembly configuration; its destination folder is relative to
            working_folder unless absolute
        working_folder: Documentation root
        cleanup: Delete the output folder before writing
        dry_run: Stop after link resolution, nothing is written
        catalog: Filesystem access
        on_progress: Optional progress observer

    Returns:
        AssemblyResult with the combined ReturnCode
    """
    catalog = catalog or FileCatalog()
    outcome = AssemblyResult()

    log_stage_start("inventory")
    inventory = ContentManifestBuilder(working_folder, config, catalog=catalog, on_progress=on_progress)
    log_configuration(config, inventory.working_folder, inventory.output_folder)
    files, ret = inventory.build()
    outcome.files = files
    if outcome.record("inventory", ret) == ReturnCode.ERROR:
        return outcome

    log_stage_start("validation")
    if outcome.record("validation", validate_manifest(files)) == ReturnCode.ERROR:
        return outcome

    log_stage_start("resolution")
    resolver = LinkResolver(inventory.working_folder, config, files, on_progress=on_progress)
    if outcome.record("resolution", resolver.resolve()) == ReturnCode.ERROR:
        return outcome

    if dry_run:
        logger.info("Dry run: skipping assembly of %d files.", len(files))
        return outcome

    if cleanup:
        _cleanup_output(catalog, inventory.working_folder, inventory.output_folder)

    log_stage_start("assemble")
    outcome.record("assemble", Assembler(config, files, catalog=catalog, on_progress=on_progress).run())
    return outcome


__all__ = ["AssemblyResult", "assemble_documentation"]
