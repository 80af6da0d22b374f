from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class WorkSetting:
    """Named shift definition: paid hours plus break hours."""

    setting_id: int
    owner_id: int
    name: str
    work_hours: float
    break_hours: float
    is_default: bool = False

    @property
    def total_minutes(self) -> float:
        return (self.work_hours + self.break_hours) * 60


@dataclass(frozen=True)
class AppliedWorkSetting:
    applied_id: int
    owner_id: int
    staff_id: int
    work_date: date
    setting_id: int
    is_auto_assigned: bool = False


@dataclass(frozen=True)
class SettingDraft:
    name: str
    work_hours: float
    break_hours: float
    is_default: bool = False
