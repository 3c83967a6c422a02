from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


class Replay:
    """
    Reads back a build trace written by TraceStoreJSONL.

    A missing trace file reads as empty.
    """

    def __init__(self, path: Path):
        self._path = path

    def iter_events(self, *, event_type: Optional[str] = None, run_id: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        if not self._path.exists():
            return iter(())
        return (
            e
            for e in self._read()
            if (event_type is None or e.get("event_type") == event_type)
            and (run_id is None or e.get("run_id") == run_id)
        )

    def tail(self, n: int, **filters: Optional[str]) -> List[Dict[str, Any]]:
        events = list(self.iter_events(**filters))
        return events[-n:] if n > 0 else []

    def _read(self) -> Iterator[Dict[str, Any]]:
        with self._path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError as e:
                    raise ValueError(f"{self._path}:{lineno}: invalid trace line: {e.msg}") from e
