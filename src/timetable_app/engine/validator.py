"""
Pre-generation feasibility checks that run before the allocator is invoked.

Catching obviously infeasible configurations here means the user sees
plain-English alerts rather than a silently half-empty timetable. Every rule
is evaluated independently; only error-severity alerts block generation.
"""

from __future__ import annotations

from typing import List, Sequence

from ..models import (WEEKDAYS, Config, Period, ResourceAlert, Severity,
    Subject, Teacher)

MIN_REGULAR_PERIODS = 3


def count_regular_periods(periods: Sequence[Period]) -> int:
    return sum(1 for p in periods if p.is_regular)


def validate(subjects: Sequence[Subject], teachers: Sequence[Teacher],
             periods: Sequence[Period]) -> List[ResourceAlert]:
    alerts: List[ResourceAlert] = []

    if not subjects:
        alerts.append(ResourceAlert(Severity.WARNING, "No subjects", "No subjects defined."))

    if not teachers:
        alerts.append(ResourceAlert(Severity.WARNING, "No teachers", "No teachers defined."))

    orphans = [s.name for s in subjects
               if not any(t.is_qualified(s.name) for t in teachers)]
    if orphans:
        alerts.append(ResourceAlert(
            Severity.WARNING,
            "Subjects without teachers",
            f"No qualified teacher for: {', '.join(orphans)}. "
            f"These subjects cannot be scheduled.",
        ))

    regular   = count_regular_periods(periods)
    slots     = regular * len(WEEKDAYS)
    required  = sum(s.weekly_quota for s in subjects)
    if required > slots:
        alerts.append(ResourceAlert(
            Severity.ERROR,
            "Insufficient time slots",
            f"Subjects need {required} classes per week but {regular} regular "
            f"period(s) x {len(WEEKDAYS)} days = {slots} slots; "
            f"short by {required - slots}.",
        ))

    capacity = sum(t.weekly_max_load for t in teachers)
    if capacity < required:
        alerts.append(ResourceAlert(
            Severity.WARNING,
            "Insufficient teacher capacity",
            f"Teachers can take {capacity} classes per week in total but "
            f"subjects need {required}; short by {required - capacity}.",
        ))

    if 0 < regular < MIN_REGULAR_PERIODS:
        alerts.append(ResourceAlert(
            Severity.INFO,
            "Few regular periods",
            f"Only {regular} regular period(s) per day; at least "
            f"{MIN_REGULAR_PERIODS} are recommended.",
        ))

    idle = [t.name for t in teachers
            if t.qualified_subjects and not t.has_any_availability()]
    if idle:
        alerts.append(ResourceAlert(
            Severity.INFO,
            "Teachers without availability",
            f"Not available in any session: {', '.join(idle)}. "
            f"Automatic allocation will not place them.",
        ))

    return alerts


def precheck(cfg: Config) -> List[ResourceAlert]:
    return validate(cfg.subjects, cfg.teachers, cfg.periods)


def has_errors(alerts: Sequence[ResourceAlert]) -> bool:
    return any(a.severity == Severity.ERROR for a in alerts)
