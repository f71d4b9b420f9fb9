from __future__ import annotations

import csv
import json
import threading
from collections.abc import Iterable
from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True, slots=True)
class Event:
    timestamp: str
    region: str
    service: str
    resource_type: str
    identifier: str | None
    action: str
    error: str | None
    meta: dict[str, object]


class ReportSink(Protocol):
    def record(
        self,
        region: str,
        service: str,
        resource_type: str,
        action: str,
        identifier: str | None = None,
        error: BaseException | str | None = None,
        meta: dict | None = None,
    ) -> None: ...


class Reporter:
    def __init__(self) -> None:
        self._events: list[Event] = []
        self._events_lock = threading.Lock()

    def record(
        self,
        region: str,
        service: str,
        resource_type: str,
        action: str,
        identifier: str | None = None,
        error: BaseException | str | None = None,
        meta: dict | None = None,
    ) -> None:
        evt = Event(
            timestamp=datetime.now(UTC).isoformat(),
            region=region,
            service=service,
            resource_type=resource_type,
            identifier=identifier,
            action=action,
            error=None if error is None else str(error),
            meta=meta or {},
        )
        with self._events_lock:
            self._events.append(evt)

    def snapshot(self) -> list[Event]:
        # Returns a thread-safe copy
        with self._events_lock:
            return list(self._events)

    def iter(self) -> Iterable[Event]:
        return iter(self.snapshot())

    def to_dicts(self) -> list[dict]:
        return [asdict(e) for e in self.iter()]

    def failures(self) -> list[Event]:
        return [e for e in self.iter() if e.error is not None]

    def clear(self) -> None:
        with self._events_lock:
            self._events.clear()

    def count(self) -> int:
        with self._events_lock:
            return len(self._events)

    def write_csv(self, path: str | Path, overwrite: bool = True) -> Path:
        """Export recorded events as CSV.

        With ``overwrite=False`` rows are appended and the header is only
        written when the file does not exist yet (or is empty).
        """
        out = Path(path).expanduser()
        out.parent.mkdir(parents=True, exist_ok=True)
        header = [f.name for f in fields(Event)]
        write_header = overwrite or not out.exists() or out.stat().st_size == 0
        with out.open("w" if overwrite else "a", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            if write_header:
                writer.writerow(header)
            for e in self.iter():
                row = asdict(e)
                row["meta"] = json.dumps(row["meta"], sort_keys=True, default=str) if row["meta"] else ""
                writer.writerow(["" if row[h] is None else row[h] for h in header])
        return out


# Lazy singleton
_reporter: Reporter | None = None


def get_reporter() -> Reporter:
    global _reporter
    if _reporter is None:
        _reporter = Reporter()
    return _reporter
