from __future__ import annotations

import json
import re
import sys
import time
from typing import Any, Dict

from .base import Reporter, TaskRecord, TaskStatus, get_verbosity

# e.g. "Build summary: generator=blocks bytes=1234"
_SUMMARY_RE = re.compile(
    r"^(?P<kind>build|inspect) summary:\s*(?P<fields>.*)$", re.IGNORECASE
)


class JsonLinesReporter(Reporter):
    """Machine-readable JSON lines reporter.

    Writes to stderr by default; stdout is reserved for the generated model.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr
        self._tasks: Dict[str, TaskRecord] = {}

    def _emit(self, obj: dict) -> None:
        self.stream.write(json.dumps(obj, sort_keys=True, default=str) + "\n")

    def start_task(self, task_id: str, name: str, **meta: Any) -> None:
        self._tasks[task_id] = TaskRecord(task_id, name, meta=meta)
        self._emit({"event": "task_start", "id": task_id, "name": name, **meta})

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **final_meta: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if not rec:
            return
        rec.status = status
        rec.end_time = time.perf_counter()
        rec.meta.update(final_meta)
        self._emit(
            {
                "event": "task_end",
                "id": task_id,
                "status": status.name.lower(),
                "duration_seconds": rec.duration,
                **rec.meta,
            }
        )

    def _summary(self, message: str, **fields: Any) -> None:
        m = _SUMMARY_RE.match(message)
        if m is None:
            return
        pairs = dict(
            token.split("=", 1)
            for token in m.group("fields").split()
            if "=" in token
        )
        self._emit(
            {
                "event": "summary",
                "summary_type": m.group("kind").lower(),
                **pairs,
                **fields,
            }
        )

    def status(self, message: str, **fields: Any) -> None:
        self._summary(message, **fields)
        self._emit(
            {"event": "status", "message": message, "level": "info", **fields}
        )

    def verbose(self, message: str, *, level: int = 1, **fields: Any) -> None:
        if get_verbosity() < level:
            return
        self._emit(
            {
                "event": "status",
                "message": message,
                "level": f"verbose{level}",
                **fields,
            }
        )

    def error(self, message: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": "error", **fields}
        )

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(
            {"event": "status", "message": message, "level": "warning", **fields}
        )

    def section(self, title: str) -> None:
        self._emit({"event": "section", "title": title})
