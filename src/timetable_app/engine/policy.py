"""
Ranking rules injected into the allocator and the slot editor.

Each rule returns a sort key; smaller keys win. Python's sort and min() are
stable, so equal keys keep input order (subjects as configured, teachers as
configured). That stability is the tie-break the canonical policy relies on.

Reference: Python docs, "Sorting Techniques — Sort Stability"
https://docs.python.org/3/howto/sorting.html#sort-stability-and-complex-sorts
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .trackers import SubjectDistribution, TeacherLoad
from ..models import Subject

# (subject, its distribution) -> key; phase-1 processing order
SubjectOrder = Callable[[Subject, SubjectDistribution], Any]
# (distribution, day) -> key; phase-2 least-fulfilled-first
SubjectUrgency = Callable[[SubjectDistribution, str], Any]
# (load, day) -> key; teacher choice among eligible ones
TeacherRank = Callable[[TeacherLoad, str], Any]


def by_weight_then_quota(subject: Subject, dist: SubjectDistribution) -> Any:
    return (-dist.weight, -dist.required_count)


def by_completion_ratio(dist: SubjectDistribution, day: str) -> Any:
    return dist.completion_ratio


def by_completion_then_recency(dist: SubjectDistribution, day: str) -> Any:
    # longer absence from this weekday sorts first among equal ratios
    return (dist.completion_ratio, -dist.days_since_last_assigned.get(day, 0))


def by_assigned_count(load: TeacherLoad, day: str) -> Any:
    return load.assigned_count


def by_remaining_capacity_then_day_load(load: TeacherLoad, day: str) -> Any:
    return (-load.remaining_capacity, load.per_day_load.get(day, 0))


@dataclass(frozen=True)
class AllocationPolicy:
    name:            str
    subject_order:   SubjectOrder
    subject_urgency: SubjectUrgency
    teacher_rank:    TeacherRank


CANONICAL = AllocationPolicy(
    name            = "canonical",
    subject_order   = by_weight_then_quota,
    subject_urgency = by_completion_ratio,
    teacher_rank    = by_assigned_count,
)

BALANCED = AllocationPolicy(
    name            = "balanced",
    subject_order   = by_weight_then_quota,
    subject_urgency = by_completion_then_recency,
    teacher_rank    = by_remaining_capacity_then_day_load,
)

POLICIES = {p.name: p for p in (CANONICAL, BALANCED)}


def get_policy(name: str) -> AllocationPolicy:
    key = (name or "").lower()
    if key not in POLICIES:
        raise ValueError(f"Unknown allocation policy: {name!r}")
    return POLICIES[key]
