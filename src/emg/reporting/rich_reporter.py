from __future__ import annotations

import os
import time
from typing import Any, Dict, List

from rich.console import Console

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity
from .plain import format_stats

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
}


class RichReporter(Reporter):
    def __init__(self, console: Console | None = None):
        self.console = console or Console(
            stderr=True, highlight=False, soft_wrap=False
        )
        self._transient = os.getenv("EMG_PROGRESS_TRANSIENT", "0").lower() in (
            "1",
            "true",
            "yes",
        )
        self._tasks: Dict[str, TaskRecord] = {}
        self._status: Dict[str, Any] = {}
        self._completions: List[str] = []

    def start_task(self, task_id: str, name: str, **meta: Any) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, meta=meta)
        # One spinner per task; tasks here are short and not nested deeply.
        spinner = self.console.status(name, spinner="dots")
        spinner.start()
        self._status[task_id] = spinner

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        spinner = self._status.pop(task_id, None)
        if spinner is not None:
            spinner.stop()
        rec = self._tasks.pop(task_id, None)
        if not rec:
            return
        rec.status = status
        rec.end_time = time.perf_counter()
        rec.meta.update(final_meta)
        line = (
            f"{_STATUS_ICON.get(status, '')} {rec.name} "
            f"({rec.duration:.2f}s){format_stats(rec.meta)}"
        )
        if self._transient and status is TaskStatus.SUCCESS:
            self._completions.append(line)
        else:
            self.console.print(line)
        if not self._tasks:
            self.flush()

    def status(self, message: str, **fields: Any) -> None:
        self.console.print(f"[green]INFO[/]: {message}")

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self.console.print(f"[cyan]VERB{level}[/]: {message}")

    def error(self, message: str, **fields: Any) -> None:
        self.console.print(f"[bold red]ERROR[/]: {message}")

    def warning(self, message: str, **fields: Any) -> None:
        self.console.print(f"[yellow]WARN[/]: {message}")

    def section(self, title: str) -> None:
        self.console.rule(title)

    def flush(self) -> None:
        for spinner in self._status.values():
            spinner.stop()
        self._status.clear()
        if self._completions and get_verbosity() >= 1:
            self.console.print("\n".join(self._completions))
        self._completions.clear()
