from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models import ResourceAlert, WeekSchedule

COMPLETE = "COMPLETE"   # every quota met
PARTIAL  = "PARTIAL"    # schedule produced, some subjects under-allocated
DECLINED = "DECLINED"   # error alert present, allocator not run


@dataclass
class GenerationResult:
    status:      str
    schedule:    Optional[WeekSchedule]  = None
    alerts:      List[ResourceAlert]     = field(default_factory=list)
    stats:       Dict[str, Any]          = field(default_factory=dict)
    diagnostics: List[str]               = field(default_factory=list)

    @property
    def produced(self) -> bool:
        return self.schedule is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status":      self.status,
            "schedule":    self.schedule.to_dict() if self.schedule else None,
            "alerts":      [a.to_dict() for a in self.alerts],
            "stats":       dict(self.stats),
            "diagnostics": list(self.diagnostics),
        }
