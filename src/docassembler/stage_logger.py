"""Centralized stage and policy logging for the assembly pipeline.

This module provides utilities for logging configuration, stage boundaries and
error policies without overlapping with ProgressReporter functionality. It
focuses on informative logging for debugging and troubleshooting rather than
user progress updates.
"""

from __future__ import annotations

import logging

from docassembler.model.config import AssembleConfiguration
from docassembler.model.manifest import ReturnCode

logger = logging.getLogger(__name__)


def log_configuration(config: AssembleConfiguration, working_folder: str, output_folder: str) -> None:
    """Log the configuration used for the run.

    Args:
        config: Assembly configuration
        working_folder: Absolute working folder
        output_folder: Absolute output folder
    """
    logger.info("Assembly configuration:")
    logger.info("  Working folder: %s", working_folder)
    logger.info("  Output folder: %s", output_folder)
    logger.info("  Content groups: %d", len(config.content))
    logger.info("  URL replacements: %d", len(config.url_replacements or ()))
    logger.info("  Content replacements: %d", len(config.content_replacements or ()))
    if config.external_file_prefix:
        logger.info("  External file prefix: %s", config.external_file_prefix)


def log_stage_start(stage: str) -> None:
    logger.info("*** %s STAGE.", stage.upper())


def log_stage_result(stage: str, result: ReturnCode) -> None:
    """Log the end of a stage with its result.

    Args:
        stage: Name of the stage (e.g., "inventory", "assemble")
        result: Result of the stage
    """
    if result == ReturnCode.ERROR:
        logger.error("END OF %s STAGE. Result: %s", stage.upper(), result.name)
    elif result == ReturnCode.WARNING:
        logger.warning("END OF %s STAGE. Result: %s", stage.upper(), result.name)
    else:
        logger.info("END OF %s STAGE. Result: %s", stage.upper(), result.name)


def log_error_policy(
    feature: str, error_type: str, action: str, details: str | None = None
) -> None:
    """Log error handling policy decisions.

    Args:
        feature: Name of the feature encountering the error
        error_type: Type of error (e.g., "invalid_expression", "collision")
        action: Action taken (e.g., "skip rule", "abort")
        details: Optional additional details
    """
    if details:
        logger.warning("%s error policy: %s -> %s (%s)", feature, error_type, action, details)
    else:
        logger.warning("%s error policy: %s -> %s", feature, error_type, action)


__all__ = [
    "log_configuration",
    "log_error_policy",
    "log_stage_result",
    "log_stage_start",
]
