"""
Data model layer for the weekly class-timetable builder.

Every domain object is a plain Python dataclass. The @dataclass decorator
generates __init__, __repr__ and __eq__ automatically from field declarations.

Reference: Python Software Foundation. "dataclasses — Data Classes."
https://docs.python.org/3/library/dataclasses.html

Design note — names as keys:
  Subjects and teachers carry ids for the configuration screens, but the
  schedule, the trackers and teacher qualifications all refer to them by
  name. io_json therefore rejects duplicate names as well as duplicate ids.

Enums subclass str so that json.dump writes "Main" rather than
"SubjectType.Main" and asdict() output is directly serialisable.
Reference: https://docs.python.org/3/library/enum.html#others
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

WEEKDAYS: Tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
)

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SubjectType(str, Enum):
    MAIN      = "Main"
    SECONDARY = "Secondary"
    ELECTIVE  = "Elective"


class PeriodKind(str, Enum):
    REGULAR = "Regular"
    BREAK   = "Break"
    LUNCH   = "Lunch"


class Severity(str, Enum):
    INFO    = "info"
    WARNING = "warning"
    ERROR   = "error"


@dataclass
class SessionAvailability:
    morning:   bool = True
    afternoon: bool = True


def default_availability() -> Dict[str, SessionAvailability]:
    """Wizard default: full weekdays, Saturday morning only."""
    avail = {day: SessionAvailability() for day in WEEKDAYS}
    avail["Saturday"] = SessionAvailability(morning=True, afternoon=False)
    return avail


def full_availability() -> Dict[str, SessionAvailability]:
    return {day: SessionAvailability() for day in WEEKDAYS}


@dataclass
class Subject:
    id:            str
    name:          str
    type:          SubjectType   = SubjectType.SECONDARY
    weekly_quota:  int           = 2
    # carried through for display only
    days_per_week: Optional[int] = None


@dataclass
class Teacher:
    id:                 str
    name:               str
    qualified_subjects: List[str] = field(default_factory=list)
    weekly_max_load:    int       = 20
    availability:       Dict[str, SessionAvailability] = field(
        default_factory=default_availability
    )

    def is_qualified(self, subject_name: str) -> bool:
        return subject_name in self.qualified_subjects

    def is_available(self, day: str, morning: bool) -> bool:
        """A weekday missing from the availability map counts as unavailable."""
        slot = self.availability.get(day)
        if slot is None:
            return False
        return slot.morning if morning else slot.afternoon

    def has_any_availability(self) -> bool:
        return any(a.morning or a.afternoon for a in self.availability.values())


@dataclass(frozen=True)
class Period:
    """One bell-schedule row, e.g. Period 1 08:45-09:35."""
    id:         str
    name:       str
    start_time: str          # HH:MM
    end_time:   str          # HH:MM
    kind:       PeriodKind = PeriodKind.REGULAR

    @property
    def is_regular(self) -> bool:
        return self.kind == PeriodKind.REGULAR


@dataclass(frozen=True)
class Assignment:
    """Contents of one filled cell. teacher is None when nobody qualifies."""
    subject: str
    teacher: Optional[str] = None


@dataclass(frozen=True)
class ResourceAlert:
    severity:    Severity
    title:       str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "severity":    self.severity.value,
            "title":       self.title,
            "description": self.description,
        }


@dataclass
class TypeWeights:
    """Phase-1 priority multiplier per subject type."""
    main:      int = 3
    secondary: int = 2
    elective:  int = 1

    def for_type(self, subject_type: SubjectType) -> int:
        return {
            SubjectType.MAIN:      self.main,
            SubjectType.SECONDARY: self.secondary,
            SubjectType.ELECTIVE:  self.elective,
        }[subject_type]


@dataclass
class Constraints:
    daily_ceiling:                int         = 3
    weights:                      TypeWeights = field(default_factory=TypeWeights)
    phase1_respects_availability: bool        = True


class WeekSchedule:
    """
    weekday -> Regular-period id -> Optional[Assignment].

    Every Regular cell exists from construction and starts empty; writes
    overwrite, there is never more than one assignment per cell.
    """

    def __init__(self, days: Dict[str, Dict[str, Optional[Assignment]]]) -> None:
        self.days = days

    @classmethod
    def empty(cls, regular_periods: List[Period],
              weekdays: Tuple[str, ...] = WEEKDAYS) -> "WeekSchedule":
        return cls({day: {p.id: None for p in regular_periods} for day in weekdays})

    def has_cell(self, day: str, period_id: str) -> bool:
        return day in self.days and period_id in self.days[day]

    def get(self, day: str, period_id: str) -> Optional[Assignment]:
        return self.days[day][period_id]

    def is_empty(self, day: str, period_id: str) -> bool:
        return self.days[day][period_id] is None

    def place(self, day: str, period_id: str, assignment: Assignment) -> None:
        self.days[day][period_id] = assignment

    def clear(self, day: str, period_id: str) -> None:
        self.days[day][period_id] = None

    def cells(self) -> Iterator[Tuple[str, str, Optional[Assignment]]]:
        for day, row in self.days.items():
            for period_id, cell in row.items():
                yield day, period_id, cell

    def count_filled(self) -> int:
        return sum(1 for _, _, cell in self.cells() if cell is not None)

    def count_cells(self) -> int:
        return sum(len(row) for row in self.days.values())

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Optional[str]]]]:
        return {
            day: {
                pid: {
                    "subject": cell.subject if cell else None,
                    "teacher": cell.teacher if cell else None,
                }
                for pid, cell in row.items()
            }
            for day, row in self.days.items()
        }

    def copy(self) -> "WeekSchedule":
        # Assignment is frozen, so copying each row is enough
        return WeekSchedule({day: dict(row) for day, row in self.days.items()})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WeekSchedule):
            return NotImplemented
        return self.days == other.days

    def __repr__(self) -> str:
        return f"WeekSchedule(filled={self.count_filled()}/{self.count_cells()})"


def period_index(regular_periods: Sequence[Period]) -> Dict[str, int]:
    """Regular-period id -> position; regular_periods must already be in
    chronological order (Config.regular_periods())."""
    return {p.id: i for i, p in enumerate(regular_periods)}


def is_morning(period_index: int, regular_count: int) -> bool:
    """First half of the day's Regular periods; the odd middle one is morning."""
    return period_index < math.ceil(regular_count / 2)


@dataclass
class Config:
    meta:        Dict[str, Any] = field(default_factory=dict)
    subjects:    List[Subject]  = field(default_factory=list)
    teachers:    List[Teacher]  = field(default_factory=list)
    periods:     List[Period]   = field(default_factory=list)
    constraints: Constraints    = field(default_factory=Constraints)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        if self.constraints.daily_ceiling < 1:
            raise ValueError("constraints.daily_ceiling must be >= 1")
        w = self.constraints.weights
        if min(w.main, w.secondary, w.elective) < 0:
            raise ValueError("All subject type weights must be >= 0")
        for s in self.subjects:
            if s.weekly_quota < 1:
                raise ValueError(f"Subject '{s.name}' weekly_quota must be >= 1")
        for t in self.teachers:
            if t.weekly_max_load < 1:
                raise ValueError(f"Teacher '{t.name}' weekly_max_load must be >= 1")
        for p in self.periods:
            for value in (p.start_time, p.end_time):
                if not _HHMM.match(value):
                    raise ValueError(f"Period '{p.id}' has malformed time {value!r} (want HH:MM)")
            if p.end_time <= p.start_time:
                raise ValueError(f"Period '{p.id}' ends before it starts")

    def regular_periods(self) -> List[Period]:
        # HH:MM strings sort chronologically; sorted() is stable for equal starts
        return sorted((p for p in self.periods if p.is_regular),
                      key=lambda p: p.start_time)

    def all_periods(self) -> List[Period]:
        return sorted(self.periods, key=lambda p: p.start_time)

    def get_teacher(self, name: str) -> Optional[Teacher]:
        return next((t for t in self.teachers if t.name == name), None)
