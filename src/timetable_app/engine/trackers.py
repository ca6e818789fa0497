"""
Bookkeeping that the allocator and the slot editor keep in step with the
WeekSchedule.

DistributionTracker  per subject: assigned vs required, type weight and
                     how many days since it last appeared on each weekday.
LoadTracker          per teacher: total load, per-subject and per-day load,
                     last period index used each day.

Both trackers are mutated in place through record(); callers never replace
the per-name entries. Decrements floor at zero, so clearing a cell that the
tracker never saw (e.g. a timetable restored from a store) cannot drive a
counter negative.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..models import WEEKDAYS, Subject, Teacher, TypeWeights

logger = logging.getLogger(__name__)


@dataclass
class SubjectDistribution:
    assigned_count:           int
    required_count:           int
    weight:                   int
    days_since_last_assigned: Dict[str, int] = field(default_factory=dict)

    @property
    def remaining(self) -> int:
        return max(0, self.required_count - self.assigned_count)

    @property
    def completion_ratio(self) -> float:
        if self.required_count <= 0:
            return 1.0
        return self.assigned_count / self.required_count


@dataclass
class TeacherLoad:
    assigned_count:             int
    max_load:                   int
    per_subject_count:          Dict[str, int] = field(default_factory=dict)
    per_day_load:               Dict[str, int] = field(default_factory=dict)
    last_assigned_period_index: Dict[str, int] = field(default_factory=dict)

    @property
    def remaining_capacity(self) -> int:
        return max(0, self.max_load - self.assigned_count)


class DistributionTracker:
    def __init__(self, weekdays: Tuple[str, ...] = WEEKDAYS) -> None:
        self.weekdays = weekdays
        self._by_subject: Dict[str, SubjectDistribution] = {}

    def initialize(self, subjects: Iterable[Subject],
                   weights: Optional[TypeWeights] = None) -> None:
        weights = weights or TypeWeights()
        self._by_subject = {
            s.name: SubjectDistribution(
                assigned_count           = 0,
                required_count           = s.weekly_quota,
                weight                   = weights.for_type(s.type),
                days_since_last_assigned = {d: 0 for d in self.weekdays},
            )
            for s in subjects
        }

    def __contains__(self, subject_name: str) -> bool:
        return subject_name in self._by_subject

    def get(self, subject_name: str) -> SubjectDistribution:
        return self._by_subject[subject_name]

    def names(self) -> List[str]:
        return list(self._by_subject)

    def record(self, subject_name: str, day: str, adding: bool) -> None:
        dist = self._by_subject.get(subject_name)
        if dist is None:
            logger.warning("Distribution record for unknown subject %r ignored", subject_name)
            return
        if adding:
            dist.assigned_count += 1
            for d in self.weekdays:
                if d == day:
                    dist.days_since_last_assigned[d] = 0
                else:
                    dist.days_since_last_assigned[d] = dist.days_since_last_assigned.get(d, 0) + 1
        else:
            # recency is left alone on clear
            dist.assigned_count = max(0, dist.assigned_count - 1)

    def completion_ratio(self, subject_name: str) -> float:
        return self._by_subject[subject_name].completion_ratio

    def under_allocated(self) -> Dict[str, int]:
        """subject -> classes still missing."""
        return {n: d.remaining for n, d in self._by_subject.items()
                if d.assigned_count < d.required_count}

    def over_allocated(self) -> Dict[str, int]:
        """subject -> classes over quota. Non-empty means a bookkeeping bug."""
        return {n: d.assigned_count - d.required_count for n, d in self._by_subject.items()
                if d.assigned_count > d.required_count}

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {n: asdict(d) for n, d in self._by_subject.items()}


class LoadTracker:
    def __init__(self, weekdays: Tuple[str, ...] = WEEKDAYS) -> None:
        self.weekdays = weekdays
        self._by_teacher: Dict[str, TeacherLoad] = {}

    def initialize(self, teachers: Iterable[Teacher]) -> None:
        self._by_teacher = {
            t.name: TeacherLoad(
                assigned_count    = 0,
                max_load          = t.weekly_max_load,
                per_subject_count = {s: 0 for s in t.qualified_subjects},
                per_day_load      = {d: 0 for d in self.weekdays},
            )
            for t in teachers
        }

    def __contains__(self, teacher_name: str) -> bool:
        return teacher_name in self._by_teacher

    def get(self, teacher_name: str) -> TeacherLoad:
        return self._by_teacher[teacher_name]

    def names(self) -> List[str]:
        return list(self._by_teacher)

    def record(self, teacher_name: str, subject_name: str, day: str,
               period_index: int, adding: bool) -> None:
        load = self._by_teacher.get(teacher_name)
        if load is None:
            logger.warning("Load record for unknown teacher %r ignored", teacher_name)
            return
        delta = 1 if adding else -1
        load.assigned_count = max(0, load.assigned_count + delta)
        load.per_subject_count[subject_name] = max(
            0, load.per_subject_count.get(subject_name, 0) + delta
        )
        load.per_day_load[day] = max(0, load.per_day_load.get(day, 0) + delta)
        if adding:
            load.last_assigned_period_index[day] = period_index

    def has_capacity(self, teacher_name: str) -> bool:
        load = self._by_teacher[teacher_name]
        return load.assigned_count < load.max_load

    def under_daily_ceiling(self, teacher_name: str, day: str, ceiling: int) -> bool:
        return self._by_teacher[teacher_name].per_day_load.get(day, 0) < ceiling

    def set_max_load(self, teacher_name: str, value: int) -> None:
        self._by_teacher[teacher_name].max_load = value

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        return {n: asdict(l) for n, l in self._by_teacher.items()}
