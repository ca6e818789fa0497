"""
One generation session per class-section.

The session owns the WeekSchedule, the DistributionTracker and the
LoadTracker for its lifetime and hands the same objects to the allocator and
to the slot editor, so manual edits after a run see the run's bookkeeping.
Everything is synchronous; a call returns only after the schedule and both
trackers are consistent again.

When a store is attached, the timetable is written after every generation
and every edit, and teacher max-load changes are written back to the
teachers key.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .allocator import SlotAllocator, allocation_report
from .editor import SlotEditor
from .policy import CANONICAL, AllocationPolicy, get_policy
from .result import COMPLETE, DECLINED, PARTIAL, GenerationResult
from .trackers import DistributionTracker, LoadTracker
from .validator import has_errors, precheck
from ..io_json import config_to_dict
from ..models import (WEEKDAYS, Assignment, Config, ResourceAlert, Severity,
    WeekSchedule, period_index)
from ..store import (KeyValueStore, load_config_from_store,
    load_schedule_from_store, save_schedule_to_store)

logger = logging.getLogger(__name__)


class GenerationSession:
    def __init__(self, cfg: Config, store: Optional[KeyValueStore] = None,
                 policy: Optional[AllocationPolicy] = None) -> None:
        self.cfg             = cfg
        self.store           = store
        self.policy          = policy or CANONICAL
        self.weekdays        = WEEKDAYS
        self.regular_periods = cfg.regular_periods()
        self.schedule        = WeekSchedule.empty(self.regular_periods, self.weekdays)
        self.distribution    = DistributionTracker(self.weekdays)
        self.loads           = LoadTracker(self.weekdays)
        self.run_stats: Dict[str, int] = {"phase1_commits": 0, "phase2_commits": 0}
        self._reset_trackers()

    def _reset_trackers(self) -> None:
        self.distribution.initialize(self.cfg.subjects, self.cfg.constraints.weights)
        self.loads.initialize(self.cfg.teachers)

    @classmethod
    def from_store(cls, store: KeyValueStore,
                   policy: Optional[AllocationPolicy] = None) -> "GenerationSession":
        """Rebuild a session from a store, replaying any saved timetable
        into the trackers so later edits stay consistent."""
        session = cls(load_config_from_store(store), store=store, policy=policy)
        saved = load_schedule_from_store(store)
        if saved is not None:
            session.restore(saved)
        return session

    def restore(self, saved: WeekSchedule) -> None:
        self.schedule = WeekSchedule.empty(self.regular_periods, self.weekdays)
        self._reset_trackers()
        index = period_index(self.regular_periods)
        for day, period_id, cell in saved.cells():
            if cell is None:
                continue
            if not self.schedule.has_cell(day, period_id):
                logger.warning("Saved cell %s %s no longer exists; dropped", day, period_id)
                continue
            self.schedule.place(day, period_id, cell)
            self.distribution.record(cell.subject, day, adding=True)
            if cell.teacher is not None:
                self.loads.record(cell.teacher, cell.subject, day, index[period_id], adding=True)

    def validate(self) -> List[ResourceAlert]:
        return precheck(self.cfg)

    def generate(self) -> GenerationResult:
        alerts = self.validate()
        if has_errors(alerts):
            logger.warning("Generation declined: %d blocking alert(s)",
                           sum(1 for a in alerts if a.severity == Severity.ERROR))
            return GenerationResult(
                status      = DECLINED,
                alerts      = alerts,
                diagnostics = ["Resolve error alerts before generating."],
            )

        logger.info("Generating timetable: %d subject(s), %d teacher(s), %d regular period(s)",
                    len(self.cfg.subjects), len(self.cfg.teachers), len(self.regular_periods))

        self.schedule = WeekSchedule.empty(self.regular_periods, self.weekdays)
        self._reset_trackers()

        allocator = SlotAllocator(
            subjects        = self.cfg.subjects,
            teachers        = self.cfg.teachers,
            regular_periods = self.regular_periods,
            schedule        = self.schedule,
            distribution    = self.distribution,
            loads           = self.loads,
            constraints     = self.cfg.constraints,
            policy          = self.policy,
            weekdays        = self.weekdays,
        )
        report = allocator.allocate()
        self.run_stats = dict(allocator.stats)

        self._persist_schedule()
        result = self.summary(alerts + report)
        logger.info("Generation finished: %s, %d/%d cells filled", result.status,
                    result.stats["filled_cells"], result.stats["total_cells"])
        return result

    def summary(self, alerts: Optional[List[ResourceAlert]] = None) -> GenerationResult:
        """Status, stats and diagnostics for the schedule as it stands now,
        including any edits made since the last generation.

        Without alerts, the precheck and allocation report are recomputed.
        The returned schedule is a copy; later edits do not reach it.
        """
        if alerts is None:
            alerts = self.validate() + allocation_report(self.distribution)
        under = self.distribution.under_allocated()
        stats = self._stats()
        stats.update(self.run_stats)
        return GenerationResult(
            status      = PARTIAL if under else COMPLETE,
            schedule    = self.schedule.copy(),
            alerts      = list(alerts),
            stats       = stats,
            diagnostics = [f"{name}: {short} class(es) unplaced" for name, short in under.items()],
        )

    def editor(self) -> SlotEditor:
        return SlotEditor(
            subjects        = self.cfg.subjects,
            teachers        = self.cfg.teachers,
            regular_periods = self.regular_periods,
            schedule        = self.schedule,
            distribution    = self.distribution,
            loads           = self.loads,
            policy          = self.policy,
            weekdays        = self.weekdays,
        )

    def assign(self, day: str, period_id: str, subject_name: Optional[str],
               teacher_name: Optional[str] = None) -> Optional[Assignment]:
        cell = self.editor().assign(day, period_id, subject_name, teacher_name)
        self._persist_schedule()
        return cell

    def set_max_load(self, teacher_name: str, value: int) -> None:
        teacher = self.cfg.get_teacher(teacher_name)
        if teacher is None:
            raise ValueError(f"Unknown teacher: {teacher_name!r}")
        if value < 1:
            raise ValueError("weekly max load must be >= 1")
        teacher.weekly_max_load = value
        self.loads.set_max_load(teacher_name, value)
        if self.store is not None:
            self.store.set("teachers", config_to_dict(self.cfg)["teachers"])

    def snapshot(self) -> Dict[str, Any]:
        return {
            "subjects": self.distribution.snapshot(),
            "teachers": self.loads.snapshot(),
        }

    def _stats(self) -> Dict[str, Any]:
        total  = self.schedule.count_cells()
        filled = self.schedule.count_filled()
        names  = self.distribution.names()
        return {
            "total_cells":       total,
            "filled_cells":      filled,
            "empty_cells":       total - filled,
            "subjects_total":    len(names),
            "subjects_complete": sum(1 for n in names
                                     if self.distribution.get(n).remaining == 0),
            "classes_assigned":  sum(self.distribution.get(n).assigned_count for n in names),
            "classes_required":  sum(self.distribution.get(n).required_count for n in names),
        }

    def _persist_schedule(self) -> None:
        if self.store is not None:
            save_schedule_to_store(self.store, self.schedule)


def generate(cfg: Config, policy: str = "canonical",
             store: Optional[KeyValueStore] = None) -> GenerationResult:
    """One-shot generation without keeping the session around."""
    return GenerationSession(cfg, store=store, policy=get_policy(policy)).generate()
