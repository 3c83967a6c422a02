from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol


class TraceStore(Protocol):
    def append(self, event: dict[str, Any]) -> None: ...


class TraceEmitter:
    """
    Structured event log for a build run. One emitter per script evaluation.
    """

    def __init__(self, store: TraceStore, run_id: str):
        self._store = store
        self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    def emit(
        self,
        event_type: str,
        *,
        module: str | None = None,
        function: str | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        event: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self._run_id,
            "event_type": event_type,
        }
        if module is not None:
            event["module"] = module
        if function is not None:
            event["function"] = function
        if message is not None:
            event["message"] = message
        if data is not None:
            event["data"] = data

        self._store.append(event)
