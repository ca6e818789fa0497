"""Tests for the pre-generation resource checks."""
from timetable_app.engine.validator import has_errors, precheck, validate
from timetable_app.models import (Config, Period, PeriodKind, SessionAvailability,
    Severity, Subject, SubjectType, Teacher, WEEKDAYS, full_availability)


def _periods(n: int) -> list:
    return [Period(id=f"P{i + 1}", name=f"Period {i + 1}",
                   start_time=f"{8 + i:02d}:00", end_time=f"{8 + i:02d}:50")
            for i in range(n)]


def _cfg_ok() -> Config:
    cfg = Config()
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


def _titles(alerts) -> list:
    return [a.title for a in alerts]


def test_ok_config_has_no_alerts() -> None:
    assert precheck(_cfg_ok()) == []


def test_empty_subjects_and_teachers_warn() -> None:
    alerts = validate([], [], _periods(5))
    assert "No subjects" in _titles(alerts)
    assert "No teachers" in _titles(alerts)
    assert all(a.severity == Severity.WARNING for a in alerts)
    assert not has_errors(alerts)


def test_orphan_subject_named_in_warning() -> None:
    cfg = _cfg_ok()
    cfg.subjects.append(Subject(id="3", name="Music", weekly_quota=2))
    cfg.subjects.append(Subject(id="4", name="Drama", weekly_quota=1))
    alerts = precheck(cfg)
    orphan = next(a for a in alerts if a.title == "Subjects without teachers")
    assert orphan.severity == Severity.WARNING
    assert "Music" in orphan.description and "Drama" in orphan.description
    assert "Math" not in orphan.description


def test_insufficient_time_slots_is_error() -> None:
    # 40 classes wanted, 3 regular periods x 6 days = 18 slots
    cfg = _cfg_ok()
    cfg.subjects = [Subject(id="1", name="Math", type=SubjectType.MAIN, weekly_quota=40)]
    cfg.teachers[0].weekly_max_load = 40
    cfg.periods = _periods(3)
    alerts = precheck(cfg)
    slots = next(a for a in alerts if a.title == "Insufficient time slots")
    assert slots.severity == Severity.ERROR
    assert "22" in slots.description
    assert has_errors(alerts)


def test_break_periods_do_not_count_as_slots() -> None:
    cfg = _cfg_ok()
    cfg.subjects = [Subject(id="1", name="Math", weekly_quota=7)]
    cfg.periods = _periods(1) + [
        Period(id="b1", name="Break", start_time="10:00", end_time="10:15", kind=PeriodKind.BREAK),
        Period(id="l1", name="Lunch", start_time="12:00", end_time="12:45", kind=PeriodKind.LUNCH),
    ]
    assert "Insufficient time slots" in _titles(precheck(cfg))


def test_exactly_full_week_is_not_an_error() -> None:
    cfg = _cfg_ok()
    cfg.subjects = [Subject(id="1", name="Math", weekly_quota=5 * len(WEEKDAYS))]
    cfg.teachers[0].weekly_max_load = 40
    assert not has_errors(precheck(cfg))


def test_teacher_capacity_warning() -> None:
    cfg = _cfg_ok()
    cfg.teachers[0].weekly_max_load = 5   # subjects need 6
    alerts = precheck(cfg)
    cap = next(a for a in alerts if a.title == "Insufficient teacher capacity")
    assert cap.severity == Severity.WARNING
    assert not has_errors(alerts)


def test_few_regular_periods_is_info() -> None:
    cfg = _cfg_ok()
    cfg.periods = _periods(2)
    alerts = precheck(cfg)
    few = next(a for a in alerts if a.title == "Few regular periods")
    assert few.severity == Severity.INFO


def test_teacher_without_any_availability_is_info() -> None:
    cfg = _cfg_ok()
    cfg.teachers.append(Teacher(
        id="2", name="Bob", qualified_subjects=["Art"], weekly_max_load=5,
        availability={d: SessionAvailability(False, False) for d in WEEKDAYS},
    ))
    alerts = precheck(cfg)
    idle = next(a for a in alerts if a.title == "Teachers without availability")
    assert idle.severity == Severity.INFO
    assert "Bob" in idle.description


def test_validate_is_pure() -> None:
    cfg = _cfg_ok()
    before = cfg.to_dict()
    precheck(cfg)
    precheck(cfg)
    assert cfg.to_dict() == before
