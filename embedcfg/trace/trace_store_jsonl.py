from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List


class TraceStoreJSONL:
    """
    Appends build trace events to a JSONL file, one event per line.

    Values json can't encode (paths, enums) are written as their `str()`.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._written = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def written(self) -> int:
        """Events appended through this store."""
        return self._written

    def append(self, event: dict[str, Any]) -> None:
        line = json.dumps(event, ensure_ascii=False, default=str)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8", newline="\n") as f:
            f.write(line + "\n")
        self._written += 1


class MemoryTraceStore:
    """
    Keeps events in memory; used when a build script runs without a trace file.
    """

    def __init__(self) -> None:
        self.events: List[dict[str, Any]] = []

    def append(self, event: dict[str, Any]) -> None:
        self.events.append(event)
