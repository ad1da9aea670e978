from __future__ import annotations

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional


class TraceBus:
    """Append-only trace of puzzle generation events, optionally mirrored to JSONL."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path
        self._events: List[Dict[str, Any]] = []
        self._lock = threading.Lock()
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, event_type: str, payload: Dict[str, Any], source: str) -> Dict[str, Any]:
        event = {
            "event_id": f"EVT-{uuid.uuid4().hex[:10]}",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            "source": source,
            "payload": payload,
        }
        with self._lock:
            self._events.append(event)
            if self.path is not None:
                with self.path.open("a", encoding="utf-8") as fh:
                    fh.write(json.dumps(event, ensure_ascii=False) + "\n")
        return event

    def iter_events(self, event_type: Optional[str] = None) -> Iterable[Dict[str, Any]]:
        with self._lock:
            events = list(self._events)
        if event_type is None:
            return events
        return [event for event in events if event["type"] == event_type]

    def read_file(self) -> Iterable[Dict[str, Any]]:
        if self.path is None or not self.path.exists():
            return []

        events = []
        with self.path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(json.loads(line))
                except json.JSONDecodeError:
                    # Partially written trailing line.
                    continue
        return events

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
