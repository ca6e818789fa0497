"""Tests for the key/value stores and config/timetable persistence helpers."""
import json
from pathlib import Path

from timetable_app.io_json import load_config
from timetable_app.models import Assignment, WeekSchedule
from timetable_app.store import (CONFIG_KEYS, JsonFileStore, MemoryStore,
    load_config_from_store, load_schedule_from_store, save_config_to_store,
    save_schedule_to_store)

SAMPLE = Path(__file__).parent.parent / "data" / "sample_week.json"


def test_memory_store_returns_copies() -> None:
    store = MemoryStore()
    value = {"a": [1, 2]}
    store.set("k", value)
    value["a"].append(3)
    got = store.get("k")
    assert got == {"a": [1, 2]}
    got["a"].append(4)
    assert store.get("k") == {"a": [1, 2]}
    assert store.get("missing", "fallback") == "fallback"


def test_json_file_store_write_visible_to_next_read(tmp_path: Path) -> None:
    path  = tmp_path / "nested" / "store.json"
    store = JsonFileStore(path)
    assert store.get("meta") is None
    store.set("meta", {"class_name": "Class 9"})
    store.set("periods", [])
    assert JsonFileStore(path).get("meta") == {"class_name": "Class 9"}
    assert set(json.loads(path.read_text(encoding="utf-8"))) == {"meta", "periods"}


def test_config_roundtrip_through_store(tmp_path: Path) -> None:
    cfg   = load_config(SAMPLE)
    store = JsonFileStore(tmp_path / "store.json")
    save_config_to_store(store, cfg)
    for key in CONFIG_KEYS:
        assert store.get(key) is not None
    assert load_config_from_store(store) == cfg


def test_empty_store_loads_empty_config() -> None:
    cfg = load_config_from_store(MemoryStore())
    assert cfg.subjects == [] and cfg.teachers == [] and cfg.periods == []
    assert cfg.meta == {}
    assert cfg.constraints.daily_ceiling == 3


def test_schedule_roundtrip_through_store() -> None:
    store = MemoryStore()
    assert load_schedule_from_store(store) is None

    schedule = WeekSchedule({"Monday": {"1": Assignment("Math", "Rajesh Kumar"), "2": None}})
    save_schedule_to_store(store, schedule)
    assert load_schedule_from_store(store) == schedule
