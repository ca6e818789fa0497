"""
Key/value persistence for a timetable-building session.

The engine only needs synchronous get/set of JSON-serialisable values whose
writes are visible to the next read. MemoryStore keeps them for the life of
the process; JsonFileStore keeps them in one JSON document on disk, rewritten
on every set().

Keys: meta, subjects, teachers, periods, constraints, timetable.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from timetable_app.io_json import (config_from_dict, config_to_dict,
    schedule_from_dict, schedule_to_dict)
from timetable_app.models import Config, WeekSchedule

CONFIG_KEYS = ("meta", "subjects", "teachers", "periods", "constraints")
TIMETABLE_KEY = "timetable"


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class MemoryStore:
    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str, default: Any = None) -> Any:
        # values are held as JSON text so callers never share mutable state
        if key not in self._data:
            return default
        return json.loads(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)


class JsonFileStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)


def save_config_to_store(store: KeyValueStore, cfg: Config) -> None:
    raw = config_to_dict(cfg)
    for key in CONFIG_KEYS:
        store.set(key, raw[key])


def load_config_from_store(store: KeyValueStore) -> Config:
    """A key that was never written loads as an empty collection."""
    return config_from_dict({
        "meta":        store.get("meta", {}),
        "subjects":    store.get("subjects", []),
        "teachers":    store.get("teachers", []),
        "periods":     store.get("periods", []),
        "constraints": store.get("constraints", {}),
    })


def save_schedule_to_store(store: KeyValueStore, schedule: WeekSchedule) -> None:
    store.set(TIMETABLE_KEY, schedule_to_dict(schedule))


def load_schedule_from_store(store: KeyValueStore) -> Optional[WeekSchedule]:
    raw = store.get(TIMETABLE_KEY)
    return None if raw is None else schedule_from_dict(raw)
