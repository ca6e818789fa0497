"""
JSON serialisation / deserialisation for Config and WeekSchedule objects.

Uses only the Python standard-library json module. Basic structural
validation is applied before domain objects are built, so a hand-edited
file fails with a ConfigError naming the offending key rather than a
KeyError deep inside the allocator.

Reference: Python docs — json
https://docs.python.org/3/library/json.html
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from timetable_app.models import (Assignment, Config, Constraints, Period,
    PeriodKind, SessionAvailability, Subject, SubjectType, Teacher,
    TypeWeights, WeekSchedule, default_availability)

E = TypeVar("E", bound=Enum)


class ConfigError(ValueError):
    """Raised when the config JSON is structurally invalid."""


def _require(obj: Dict[str, Any], key: str, ctx: str) -> Any:
    if key not in obj:
        raise ConfigError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _as_list(obj: Any, ctx: str) -> List[Any]:
    if not isinstance(obj, list):
        raise ConfigError(f"Expected a JSON array in {ctx}, got {type(obj).__name__}")
    return obj


def _as_dict(obj: Any, ctx: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise ConfigError(
            f"Expected a JSON object in {ctx}, got {type(obj).__name__}"
        )
    return obj


def _as_enum(enum_cls: Type[E], value: Any, ctx: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigError(f"Invalid value {value!r} in {ctx} (expected one of: {allowed})") from None


def _as_int(value: Any, ctx: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Expected an integer in {ctx}, got bool")
    if isinstance(value, float) and not value.is_integer():
        raise ConfigError(f"Expected an integer in {ctx}, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Expected an integer in {ctx}, got {value!r}") from None


def _as_bool(value: Any, ctx: str) -> bool:
    # "false" is truthy, so only real JSON booleans are accepted
    if not isinstance(value, bool):
        raise ConfigError(f"Expected true or false in {ctx}, got {value!r}")
    return value


def _check_unique(items: list, attr: str, ctx: str) -> None:
    seen: set = set()
    dupes: set = set()
    for item in items:
        value = getattr(item, attr, None)
        if not value:
            raise ConfigError(f"Empty or missing '{attr}' in {ctx}")
        if value in seen:
            dupes.add(value)
        seen.add(value)
    if dupes:
        raise ConfigError(f"Duplicate {attr}s in {ctx}: {sorted(dupes)}")


def _availability_from_raw(raw: Any, ctx: str) -> Dict[str, SessionAvailability]:
    if raw is None:
        return default_availability()
    out = {}
    for day, slot in _as_dict(raw, ctx).items():
        slot = _as_dict(slot, f"{ctx}.{day}")
        out[str(day)] = SessionAvailability(
            morning   = _as_bool(slot.get("morning", False),   f"{ctx}.{day}.morning"),
            afternoon = _as_bool(slot.get("afternoon", False), f"{ctx}.{day}.afternoon"),
        )
    return out


def subjects_from_raw(raw: Any) -> List[Subject]:
    out = []
    for i, s in enumerate(_as_list(raw, "subjects")):
        ctx = f"subjects[{i}]"
        s = _as_dict(s, ctx)
        days = s.get("days_per_week")
        out.append(Subject(
            id            = str(_require(s, "id",   ctx)),
            name          = str(_require(s, "name", ctx)),
            type          = _as_enum(SubjectType, s.get("type", "Secondary"), f"{ctx}.type"),
            weekly_quota  = _as_int(_require(s, "weekly_quota", ctx), f"{ctx}.weekly_quota"),
            days_per_week = None if days is None else _as_int(days, f"{ctx}.days_per_week"),
        ))
    return out


def teachers_from_raw(raw: Any) -> List[Teacher]:
    out = []
    for i, t in enumerate(_as_list(raw, "teachers")):
        ctx = f"teachers[{i}]"
        t = _as_dict(t, ctx)
        out.append(Teacher(
            id                 = str(_require(t, "id",   ctx)),
            name               = str(_require(t, "name", ctx)),
            qualified_subjects = [str(x) for x in _as_list(t.get("qualified_subjects", []),
                                                           f"{ctx}.qualified_subjects")],
            weekly_max_load    = _as_int(t.get("weekly_max_load", 20), f"{ctx}.weekly_max_load"),
            availability       = _availability_from_raw(t.get("availability"),
                                                        f"{ctx}.availability"),
        ))
    return out


def periods_from_raw(raw: Any) -> List[Period]:
    out = []
    for i, p in enumerate(_as_list(raw, "periods")):
        ctx = f"periods[{i}]"
        p   = _as_dict(p, ctx)
        pid = str(_require(p, "id", ctx))
        out.append(Period(
            id         = pid,
            name       = str(p.get("name", pid)),
            start_time = str(_require(p, "start_time", ctx)),
            end_time   = str(_require(p, "end_time",   ctx)),
            kind       = _as_enum(PeriodKind, p.get("kind", "Regular"), f"{ctx}.kind"),
        ))
    return out


def constraints_from_raw(raw: Any) -> Constraints:
    raw         = _as_dict(raw or {}, "constraints")
    weights_raw = _as_dict(raw.get("weights") or {}, "constraints.weights")
    return Constraints(
        daily_ceiling = _as_int(raw.get("daily_ceiling", 3), "constraints.daily_ceiling"),
        weights = TypeWeights(
            main      = _as_int(weights_raw.get("main", 3),      "constraints.weights.main"),
            secondary = _as_int(weights_raw.get("secondary", 2), "constraints.weights.secondary"),
            elective  = _as_int(weights_raw.get("elective", 1),  "constraints.weights.elective"),
        ),
        phase1_respects_availability = _as_bool(raw.get("phase1_respects_availability", True),
                                                "constraints.phase1_respects_availability"),
    )


def check_config(cfg: Config) -> None:
    """Cross-entity checks plus Config.validate(); raises ConfigError."""
    try:
        cfg.validate()
    except ValueError as e:
        raise ConfigError(str(e)) from None
    _check_unique(cfg.subjects, "id",   "subjects")
    _check_unique(cfg.subjects, "name", "subjects")
    _check_unique(cfg.teachers, "id",   "teachers")
    _check_unique(cfg.teachers, "name", "teachers")
    _check_unique(cfg.periods,  "id",   "periods")
    known = {s.name for s in cfg.subjects}
    for t in cfg.teachers:
        bad = [s for s in t.qualified_subjects if s not in known]
        if bad:
            raise ConfigError(f"Teacher '{t.name}' lists unknown subject(s): {bad}")


def config_from_dict(raw: Any) -> Config:
    raw = _as_dict(raw, "root")
    cfg = Config(
        # meta: null is tolerated the same as a missing key
        meta        = _as_dict(raw.get("meta") or {}, "meta"),
        subjects    = subjects_from_raw(_require(raw, "subjects", "root")),
        teachers    = teachers_from_raw(_require(raw, "teachers", "root")),
        periods     = periods_from_raw(_require(raw, "periods",  "root")),
        constraints = constraints_from_raw(raw.get("constraints")),
    )
    check_config(cfg)
    return cfg


def config_to_dict(cfg: Config) -> Dict[str, Any]:
    # str-valued enums serialise as their plain value
    return json.loads(json.dumps(cfg.to_dict()))


def load_config(path: str | Path) -> Config:
    """Load and validate a Config from a JSON file."""
    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    return config_from_dict(raw)


def save_config(cfg: Config, path: str | Path) -> None:
    """Serialise Config to JSON, creating parent directories if needed."""
    check_config(cfg)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        # ensure_ascii=False preserves accented names.
        # sort_keys=True keeps diffs readable in version control.
        json.dump(config_to_dict(cfg), f, ensure_ascii=False, indent=2, sort_keys=True)


def schedule_to_dict(schedule: WeekSchedule) -> Dict[str, Any]:
    return schedule.to_dict()


def schedule_from_dict(raw: Any) -> WeekSchedule:
    days: Dict[str, Dict[str, Optional[Assignment]]] = {}
    for day, row in _as_dict(raw, "timetable").items():
        days[day] = {}
        for pid, cell in _as_dict(row, f"timetable.{day}").items():
            cell = _as_dict(cell or {}, f"timetable.{day}.{pid}")
            subject = cell.get("subject")
            days[day][pid] = (
                Assignment(str(subject), cell.get("teacher")) if subject else None
            )
    return WeekSchedule(days)
