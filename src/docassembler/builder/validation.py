"""Manifest validation: destination collisions are fatal."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable

from docassembler.model.manifest import FileRecord, ReturnCode

logger = logging.getLogger(__name__)


def find_collisions(files: Iterable[FileRecord]) -> dict[str, list[FileRecord]]:
    """Return destination paths shared by more than one record."""
    by_destination: dict[str, list[FileRecord]] = defaultdict(list)
    for record in files:
        by_destination[record.destination_path].append(record)
    return {dest: records for dest, records in by_destination.items() if len(records) > 1}


def validate_manifest(files: Iterable[FileRecord]) -> ReturnCode:
    """Check that every record has its own destination path.

    Every member of every colliding group is reported, so a single run shows
    all overlapping content rules.
    """
    collisions = find_collisions(files)
    for destination, records in collisions.items():
        logger.error("%d files are written to '%s':", len(records), destination)
        for record in records:
            logger.error(
                "  %s (content group %d, src '%s')",
                record.source_path,
                record.group_index,
                record.group.source_folder,
            )

    if collisions:
        logger.critical(
            "Found %d destination collisions. Check the content groups for overlapping output.",
            len(collisions),
        )
        return ReturnCode.ERROR
    return ReturnCode.NORMAL


__all__ = ["find_collisions", "validate_manifest"]
