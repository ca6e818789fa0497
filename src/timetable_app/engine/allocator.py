"""
Two-phase greedy slot allocation for one class-section's week.

Phase 1 — priority-ordered even distribution:
  Subjects are taken in policy order (type weight, then quota). Each subject
  is spread over the weekdays, always targeting the day on which it has been
  placed least so far, and lands in the first empty Regular period of that
  day. A day with no usable teacher or no empty cell is marked exhausted for
  that subject; the subject is abandoned once every day is exhausted.

Phase 2 — gap filling:
  One chronological sweep over every still-empty cell. Each cell goes to the
  least-fulfilled subject, taught by an eligible teacher who is available in
  that half of the day. A cell with no eligible teacher stays empty.

No cell is ever revisited once committed, so termination is bounded by
subjects x weekdays for phase 1 and by the number of cells for phase 2.
Results are deterministic: every choice is a stable sort over input order.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .policy import CANONICAL, AllocationPolicy
from .trackers import DistributionTracker, LoadTracker
from ..models import (WEEKDAYS, Assignment, Constraints, Period, ResourceAlert,
    Severity, Subject, Teacher, WeekSchedule, is_morning)

logger = logging.getLogger(__name__)


class SlotAllocator:
    def __init__(
        self,
        subjects:        Sequence[Subject],
        teachers:        Sequence[Teacher],
        regular_periods: Sequence[Period],
        schedule:        WeekSchedule,
        distribution:    DistributionTracker,
        loads:           LoadTracker,
        constraints:     Optional[Constraints]     = None,
        policy:          AllocationPolicy          = CANONICAL,
        weekdays:        Tuple[str, ...]           = WEEKDAYS,
    ) -> None:
        self.subjects        = list(subjects)
        self.teachers        = list(teachers)
        self.regular_periods = list(regular_periods)
        self.schedule        = schedule
        self.distribution    = distribution
        self.loads           = loads
        self.constraints     = constraints or Constraints()
        self.policy          = policy
        self.weekdays        = weekdays
        self._day_order      = {d: i for i, d in enumerate(weekdays)}
        self.stats: Dict[str, int] = {"phase1_commits": 0, "phase2_commits": 0}

    # ── public ────────────────────────────────────────────────────────────────

    def allocate(self) -> List[ResourceAlert]:
        """Run both phases and return the post-generation report alerts."""
        self.run_phase1()
        self.run_phase2()
        return self.report()

    def run_phase1(self) -> int:
        ordered = sorted(
            self.subjects,
            key=lambda s: self.policy.subject_order(s, self.distribution.get(s.name)),
        )
        for subject in ordered:
            self._distribute(subject)
        logger.info("Phase 1 placed %d class(es)", self.stats["phase1_commits"])
        return self.stats["phase1_commits"]

    def run_phase2(self) -> int:
        schedulable = [s for s in self.subjects
                       if any(t.is_qualified(s.name) for t in self.teachers)]

        for day in self.weekdays:
            for index, period in enumerate(self.regular_periods):
                if not self.schedule.is_empty(day, period.id):
                    continue

                remaining = [
                    s for s in schedulable
                    if self.distribution.get(s.name).assigned_count
                    < self.distribution.get(s.name).required_count
                ]
                if not remaining:
                    logger.info("Phase 2 stopped early: all quotas met")
                    return self._phase2_done()

                subject = min(
                    remaining,
                    key=lambda s: self.policy.subject_urgency(self.distribution.get(s.name), day),
                )
                dist = self.distribution.get(subject.name)
                if dist.assigned_count >= dist.required_count:
                    continue

                teachers = self._eligible(subject.name, day, period_index=index)
                if not teachers:
                    logger.debug("%s %s left empty: no teacher for %s",
                                 day, period.id, subject.name)
                    continue

                self._commit(day, index, subject.name, self._choose_teacher(teachers, day))
                self.stats["phase2_commits"] += 1

        return self._phase2_done()

    def report(self) -> List[ResourceAlert]:
        return allocation_report(self.distribution)

    # ── phase 1 helpers ───────────────────────────────────────────────────────

    def _distribute(self, subject: Subject) -> None:
        dist      = self.distribution.get(subject.name)
        placed    = {d: 0 for d in self.weekdays}
        exhausted: Set[str] = set()

        while (dist.assigned_count < dist.required_count
               and len(exhausted) < len(self.weekdays)):
            day = self._pick_day(placed, exhausted)

            teachers = self._eligible(subject.name, day)
            if not teachers:
                self._exhaust(exhausted, subject, day, "no eligible teacher")
                continue

            index = self._first_empty(day)
            if index is None:
                self._exhaust(exhausted, subject, day, "no empty period")
                continue

            if self.constraints.phase1_respects_availability:
                morning  = is_morning(index, len(self.regular_periods))
                teachers = [t for t in teachers if t.is_available(day, morning)]
                if not teachers:
                    self._exhaust(exhausted, subject, day, "teacher unavailable")
                    continue

            self._commit(day, index, subject.name, self._choose_teacher(teachers, day))
            placed[day] += 1
            self.stats["phase1_commits"] += 1

        if dist.assigned_count < dist.required_count:
            logger.debug("Phase 1 gave up on %s at %d/%d",
                         subject.name, dist.assigned_count, dist.required_count)

    def _pick_day(self, placed: Dict[str, int], exhausted: Set[str]) -> str:
        # sort a fresh list every time; self.weekdays itself is never reordered
        candidates = sorted(
            (d for d in self.weekdays if d not in exhausted),
            key=lambda d: (placed[d], self._day_order[d]),
        )
        return candidates[0]

    def _first_empty(self, day: str) -> Optional[int]:
        for index, period in enumerate(self.regular_periods):
            if self.schedule.is_empty(day, period.id):
                return index
        return None

    @staticmethod
    def _exhaust(exhausted: Set[str], subject: Subject, day: str, reason: str) -> None:
        logger.debug("Phase 1: %s exhausted on %s (%s)", subject.name, day, reason)
        exhausted.add(day)

    # ── shared ────────────────────────────────────────────────────────────────

    def _eligible(self, subject_name: str, day: str,
                  period_index: Optional[int] = None) -> List[Teacher]:
        """Qualified, under weekly max load and daily ceiling; with a period
        index, also available in that half of the day."""
        ceiling = self.constraints.daily_ceiling
        out = []
        for t in self.teachers:
            if not t.is_qualified(subject_name) or t.name not in self.loads:
                continue
            if not self.loads.has_capacity(t.name):
                continue
            if not self.loads.under_daily_ceiling(t.name, day, ceiling):
                continue
            if period_index is not None:
                morning = is_morning(period_index, len(self.regular_periods))
                if not t.is_available(day, morning):
                    continue
            out.append(t)
        return out

    def _choose_teacher(self, teachers: List[Teacher], day: str) -> Teacher:
        return min(teachers, key=lambda t: self.policy.teacher_rank(self.loads.get(t.name), day))

    def _commit(self, day: str, index: int, subject_name: str, teacher: Teacher) -> None:
        period = self.regular_periods[index]
        self.schedule.place(day, period.id, Assignment(subject_name, teacher.name))
        self.distribution.record(subject_name, day, adding=True)
        self.loads.record(teacher.name, subject_name, day, index, adding=True)
        logger.debug("%s %s <- %s / %s", day, period.id, subject_name, teacher.name)

    def _phase2_done(self) -> int:
        logger.info("Phase 2 placed %d class(es)", self.stats["phase2_commits"])
        return self.stats["phase2_commits"]


def allocation_report(distribution: DistributionTracker) -> List[ResourceAlert]:
    """Under- and over-allocation alerts for the current tracker state."""
    alerts: List[ResourceAlert] = []

    under = distribution.under_allocated()
    if under:
        detail = ", ".join(f"{name} ({short} short)" for name, short in under.items())
        logger.warning("Under-allocated subjects: %s", detail)
        alerts.append(ResourceAlert(
            Severity.WARNING,
            "Under-allocated subjects",
            f"Could not place every class: {detail}.",
        ))

    over = distribution.over_allocated()
    if over:
        detail = ", ".join(f"{name} (+{extra})" for name, extra in over.items())
        logger.error("Over-allocation: %s", detail)
        alerts.append(ResourceAlert(
            Severity.WARNING,
            "Over-allocated subjects",
            f"More classes placed than required: {detail}. "
            f"Schedule bookkeeping is inconsistent.",
        ))

    return alerts
