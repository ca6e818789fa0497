"""
Manual single-cell edits after a generation run.

assign() keeps the schedule and both trackers consistent: whatever the cell
held is released from the trackers first, then the new assignment (if any)
is recorded. Unlike the allocator, the teacher chosen here is only required
to be qualified. Availability, weekly max load and the daily ceiling are not
checked, so a user can always force a class into a cell. A subject with no
qualified teacher is still placed, with the teacher left empty.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .policy import CANONICAL, AllocationPolicy
from .trackers import DistributionTracker, LoadTracker
from ..models import (WEEKDAYS, Assignment, Period, Subject, Teacher,
    WeekSchedule, period_index)

logger = logging.getLogger(__name__)


class SlotEditor:
    def __init__(
        self,
        subjects:        Sequence[Subject],
        teachers:        Sequence[Teacher],
        regular_periods: Sequence[Period],
        schedule:        WeekSchedule,
        distribution:    DistributionTracker,
        loads:           LoadTracker,
        policy:          AllocationPolicy = CANONICAL,
        weekdays:        Tuple[str, ...]  = WEEKDAYS,
    ) -> None:
        self.subject_names = {s.name for s in subjects}
        self.teachers      = list(teachers)
        self.schedule      = schedule
        self.distribution  = distribution
        self.loads         = loads
        self.policy        = policy
        self.weekdays      = weekdays
        self._period_index: Dict[str, int] = period_index(regular_periods)

    def eligible_teachers(self, subject_name: str) -> List[Teacher]:
        return [t for t in self.teachers if t.is_qualified(subject_name)]

    def assign(self, day: str, period_id: str, subject_name: Optional[str],
               teacher_name: Optional[str] = None) -> Optional[Assignment]:
        """Put subject_name into the cell (None clears it); returns the new cell.

        teacher_name pins a specific qualified teacher instead of the
        least-loaded one.
        """
        if day not in self.weekdays:
            raise ValueError(f"Unknown weekday: {day!r}")
        if period_id not in self._period_index or not self.schedule.has_cell(day, period_id):
            raise ValueError(f"Unknown regular period id: {period_id!r}")
        if subject_name is not None and subject_name not in self.subject_names:
            raise ValueError(f"Unknown subject: {subject_name!r}")

        index = self._period_index[period_id]

        pinned: Optional[Teacher] = None
        if subject_name is not None and teacher_name is not None:
            pinned = next((t for t in self.eligible_teachers(subject_name)
                           if t.name == teacher_name), None)
            if pinned is None:
                raise ValueError(
                    f"Teacher {teacher_name!r} is not qualified to teach {subject_name!r}"
                )

        old = self.schedule.get(day, period_id)
        if old is not None:
            self.distribution.record(old.subject, day, adding=False)
            if old.teacher is not None:
                self.loads.record(old.teacher, old.subject, day, index, adding=False)

        if subject_name is None:
            self.schedule.clear(day, period_id)
            logger.debug("%s %s cleared", day, period_id)
            return None

        teacher = pinned or self._least_loaded(subject_name, day)
        cell = Assignment(subject_name, teacher.name if teacher else None)
        self.schedule.place(day, period_id, cell)
        self.distribution.record(subject_name, day, adding=True)
        if teacher is not None:
            self.loads.record(teacher.name, subject_name, day, index, adding=True)
        else:
            logger.info("%s %s: no qualified teacher for %s", day, period_id, subject_name)
        logger.debug("%s %s set to %s / %s", day, period_id, cell.subject, cell.teacher)
        return cell

    def _least_loaded(self, subject_name: str, day: str) -> Optional[Teacher]:
        eligible = [t for t in self.eligible_teachers(subject_name) if t.name in self.loads]
        if not eligible:
            return None
        return min(eligible, key=lambda t: self.policy.teacher_rank(self.loads.get(t.name), day))
