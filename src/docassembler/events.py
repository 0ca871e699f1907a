"""Progress callback plumbing shared by the pipeline stages."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress

ProgressCallback = Callable[[str, dict[str, int | str]], None] | None


def safe_emit(on_progress: ProgressCallback, event: str, payload: dict[str, int | str]) -> None:
    """Forward an event to the callback; a failing observer never breaks a stage."""
    if on_progress is None:
        return
    with suppress(Exception):
        on_progress(event, payload)


__all__ = ["ProgressCallback", "safe_emit"]
