"""Tests for GenerationSession: declined runs, persistence, restore, stats."""
from pathlib import Path

import pytest

from timetable_app.engine.result import COMPLETE, DECLINED, PARTIAL
from timetable_app.engine.session import GenerationSession, generate
from timetable_app.io_json import load_config
from timetable_app.models import (Config, Period, Severity, Subject,
    SubjectType, Teacher, full_availability)
from timetable_app.store import (MemoryStore, TIMETABLE_KEY,
    load_schedule_from_store, save_config_to_store)

SAMPLE = Path(__file__).parent.parent / "data" / "sample_week.json"


def _periods(n: int) -> list:
    return [Period(id=f"P{i + 1}", name=f"Period {i + 1}",
                   start_time=f"{8 + i:02d}:00", end_time=f"{8 + i:02d}:50")
            for i in range(n)]


def _cfg() -> Config:
    cfg = Config(meta={"class_name": "Class 5", "section": "B"})
    cfg.subjects = [
        Subject(id="1", name="Math", type=SubjectType.MAIN,      weekly_quota=4),
        Subject(id="2", name="Art",  type=SubjectType.SECONDARY, weekly_quota=2),
    ]
    cfg.teachers = [
        Teacher(id="1", name="Alice", qualified_subjects=["Math", "Art"],
                weekly_max_load=10, availability=full_availability()),
    ]
    cfg.periods = _periods(5)
    return cfg


def test_error_alert_declines_generation() -> None:
    # 40 classes, 3 x 6 = 18 slots
    cfg = _cfg()
    cfg.subjects = [Subject(id="1", name="Math", type=SubjectType.MAIN, weekly_quota=40)]
    cfg.teachers[0].weekly_max_load = 40
    cfg.periods = _periods(3)
    session = GenerationSession(cfg)
    result  = session.generate()
    assert result.status == DECLINED
    assert not result.produced
    assert any(a.severity == Severity.ERROR for a in result.alerts)
    assert result.diagnostics == ["Resolve error alerts before generating."]
    assert session.schedule.count_filled() == 0
    assert session.distribution.get("Math").assigned_count == 0


def test_empty_config_degrades_to_empty_schedule() -> None:
    result = GenerationSession(Config()).generate()
    assert result.produced
    assert result.stats["total_cells"] == 0
    assert {a.title for a in result.alerts} == {"No subjects", "No teachers"}


def test_stats_are_consistent() -> None:
    result = GenerationSession(_cfg()).generate()
    s = result.stats
    assert result.status == COMPLETE
    assert s["total_cells"] == 30
    assert s["filled_cells"] + s["empty_cells"] == s["total_cells"]
    assert s["filled_cells"] == s["classes_assigned"] == 6
    assert s["classes_required"] == 6
    assert s["subjects_total"] == 2
    assert s["subjects_complete"] == 2
    assert s["phase1_commits"] + s["phase2_commits"] == 6


def test_result_to_dict_is_json_ready() -> None:
    out = GenerationSession(_cfg()).generate().to_dict()
    assert out["status"] == COMPLETE
    assert out["schedule"]["Monday"]["P1"] == {"subject": "Math", "teacher": "Alice"}
    assert out["schedule"]["Saturday"]["P5"] == {"subject": None, "teacher": None}
    assert out["alerts"] == []


def test_partial_diagnostics_name_short_subjects() -> None:
    cfg = _cfg()
    cfg.subjects.append(Subject(id="3", name="Music", type=SubjectType.ELECTIVE, weekly_quota=2))
    result = GenerationSession(cfg).generate()
    assert result.status == PARTIAL
    assert result.produced
    assert result.diagnostics == ["Music: 2 class(es) unplaced"]


def test_regenerate_resets_trackers() -> None:
    session = GenerationSession(_cfg())
    first = session.generate()
    session.assign("Saturday", "P1", "Art")
    second = session.generate()
    assert second.schedule == first.schedule
    assert session.distribution.get("Art").assigned_count == 2
    assert session.loads.get("Alice").assigned_count == 6


def test_result_schedule_is_not_changed_by_later_edits() -> None:
    session = GenerationSession(_cfg())
    result  = session.generate()
    assert result.schedule.get("Saturday", "P1") is None
    session.assign("Saturday", "P1", "Art")
    session.assign("Monday", "P1", None)
    assert result.schedule.get("Saturday", "P1") is None
    assert result.schedule.get("Monday", "P1") is not None
    assert result.schedule.count_filled() == result.stats["filled_cells"] == 6


def test_summary_reflects_edits() -> None:
    session = GenerationSession(_cfg())
    session.generate()
    session.assign("Monday", "P1", None)

    summary = session.summary()
    assert summary.status == PARTIAL
    assert summary.stats["filled_cells"] == 5
    assert summary.stats["classes_assigned"] == 5
    assert summary.stats["phase1_commits"] == 6
    assert summary.diagnostics == ["Math: 1 class(es) unplaced"]
    assert "Under-allocated subjects" in [a.title for a in summary.alerts]
    assert summary.schedule == session.schedule
    assert summary.schedule is not session.schedule

    session.assign("Monday", "P1", "Math")
    assert session.summary().status == COMPLETE


def test_generation_and_edits_persist_to_store() -> None:
    store   = MemoryStore()
    session = GenerationSession(_cfg(), store=store)
    assert store.get(TIMETABLE_KEY) is None

    session.generate()
    assert load_schedule_from_store(store) == session.schedule

    session.assign("Monday", "P1", None)
    assert store.get(TIMETABLE_KEY)["Monday"]["P1"] == {"subject": None, "teacher": None}


def test_from_store_replays_saved_timetable() -> None:
    store = MemoryStore()
    save_config_to_store(store, _cfg())
    session = GenerationSession.from_store(store)
    session.generate()
    session.assign("Saturday", "P5", "Art")
    expected = session.snapshot()

    restored = GenerationSession.from_store(store)
    assert restored.schedule == session.schedule
    for name, data in expected["teachers"].items():
        load = restored.loads.get(name)
        assert load.assigned_count == data["assigned_count"]
        assert load.per_day_load == data["per_day_load"]
        assert load.per_subject_count == data["per_subject_count"]
    for name, data in expected["subjects"].items():
        assert restored.distribution.get(name).assigned_count == data["assigned_count"]


def test_restore_drops_cells_that_no_longer_exist(caplog) -> None:
    store = MemoryStore()
    save_config_to_store(store, _cfg())
    session = GenerationSession.from_store(store)
    session.generate()

    cfg = _cfg()
    cfg.periods = _periods(4)   # P5 removed
    save_config_to_store(store, cfg)
    store.set(TIMETABLE_KEY, {
        **store.get(TIMETABLE_KEY),
        "Monday": {**store.get(TIMETABLE_KEY)["Monday"],
                   "P5": {"subject": "Art", "teacher": "Alice"}},
    })
    restored = GenerationSession.from_store(store)
    assert not restored.schedule.has_cell("Monday", "P5")
    assert "no longer exists" in caplog.text


def test_set_max_load_updates_tracker_config_and_store() -> None:
    store   = MemoryStore()
    session = GenerationSession(_cfg(), store=store)
    session.set_max_load("Alice", 4)
    assert session.loads.get("Alice").max_load == 4
    assert session.cfg.get_teacher("Alice").weekly_max_load == 4
    assert store.get("teachers")[0]["weekly_max_load"] == 4

    result = session.generate()
    assert session.loads.get("Alice").assigned_count == 4
    assert result.status == PARTIAL


def test_set_max_load_rejects_bad_input() -> None:
    session = GenerationSession(_cfg())
    with pytest.raises(ValueError, match="Unknown teacher"):
        session.set_max_load("Zoe", 5)
    with pytest.raises(ValueError, match=">= 1"):
        session.set_max_load("Alice", 0)


def test_one_shot_generate_with_policy_name() -> None:
    result = generate(load_config(SAMPLE), policy="balanced")
    assert result.status == COMPLETE
    with pytest.raises(ValueError, match="Unknown allocation policy"):
        generate(_cfg(), policy="random")
