from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Optional

from app.schemas import EnvironmentRecord
from datastore.errors import SinkError
from settings import get_settings


class TimeSeriesStore:
    """Append-only record store persisted as one JSON document per line."""

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._records: list[EnvironmentRecord] = []
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, record: EnvironmentRecord) -> None:
        with self._lock:
            if not self.persistence_path:
                self._records.append(record.model_copy(deep=True))
                return
            try:
                with self.persistence_path.open("a", encoding="utf-8") as handle:
                    handle.write(record.model_dump_json())
                    handle.write("\n")
            except OSError as exc:
                raise SinkError(
                    f"Could not append to store {self.persistence_path}: {exc}"
                ) from exc

    def scan(self, limit: Optional[int] = None) -> list[EnvironmentRecord]:
        """Return copies of stored records, newest first."""

        with self._lock:
            if self.persistence_path:
                # Re-read on every scan; another process may be the writer.
                stored = self._load_from_disk()
            else:
                stored = [record.model_copy(deep=True) for record in self._records]
        records = list(reversed(stored))
        if limit is not None:
            return records[:limit]
        return records

    def latest(self) -> Optional[EnvironmentRecord]:
        records = self.scan(limit=1)
        return records[0] if records else None

    def close(self) -> None:
        """Nothing to release; present so every sink can be closed the same way."""

    def _load_from_disk(self) -> list[EnvironmentRecord]:
        if not self.persistence_path or not self.persistence_path.exists():
            return []

        records: list[EnvironmentRecord] = []
        with self.persistence_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                candidate = line.strip()
                if not candidate:
                    continue
                try:
                    payload = json.loads(candidate)
                except json.JSONDecodeError:
                    # A torn final line from an interrupted write.
                    continue
                records.append(EnvironmentRecord.model_validate(payload))
        return records


@lru_cache
def build_default_store(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> TimeSeriesStore:
    settings = get_settings()
    store_name = settings.measurement if name is None else name
    store_path = settings.store_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return TimeSeriesStore(name=store_name, persistence_path=persistence)
