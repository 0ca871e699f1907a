"""Rich progress display fed by pipeline progress events."""

from __future__ import annotations

from types import TracebackType

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
)


class ProgressReporter:
    """Translate ``on_progress(event, payload)`` callbacks into rich tasks.

    Tasks are keyed by stage name in ``_tasks``; ``_totals`` keeps their totals.
    A stage task is removed when its ``:done`` event arrives.
    """

    _STAGES = {
        "inventory": "Inventory",
        "resolve": "Resolving links",
        "assemble": "Writing files",
    }

    def __init__(self, console: Console | None = None, *, transient: bool = True) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console or Console(stderr=True),
            transient=transient,
        )
        self._tasks: dict[str, TaskID] = {}
        self._totals: dict[str, int] = {}

    def __enter__(self) -> ProgressReporter:
        self.progress.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.progress.stop()

    def add_step(self, description: str, total: int | None = None) -> TaskID:
        return self.progress.add_task(description, total=total)

    def finish_task(self, task_id: TaskID) -> None:
        self.progress.remove_task(task_id)

    def emit(self, event: str, payload: dict[str, int | str]) -> None:
        stage, _, kind = event.partition(":")
        if stage not in self._STAGES:
            return

        if kind == "start":
            total = self._total_from(stage, payload)
            self._totals[stage] = total
            self._tasks[stage] = self.add_step(self._STAGES[stage], total=total)
        elif kind == "done":
            task = self._tasks.pop(stage, None)
            if task is not None:
                self.finish_task(task)
        elif stage in self._tasks:
            self.progress.advance(self._tasks[stage])

    @staticmethod
    def _total_from(stage: str, payload: dict[str, int | str]) -> int:
        key = {"inventory": "groups", "resolve": "files", "assemble": "files"}[stage]
        value = payload.get(key, 0)
        return value if isinstance(value, int) else 0


__all__ = ["ProgressReporter"]
