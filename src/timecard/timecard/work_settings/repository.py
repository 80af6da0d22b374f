from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AppliedWorkSetting, SettingDraft, WorkSetting


class WorkSettingRepository(Protocol):
    def list_for_owner(self, owner_id: int) -> Sequence[WorkSetting]:
        """Settings in creation order."""

        raise NotImplementedError

    def get_by_id(self, setting_id: int) -> Optional[WorkSetting]:
        raise NotImplementedError

    def get_by_name(self, owner_id: int, name: str) -> Optional[WorkSetting]:
        raise NotImplementedError

    def create_many(self, owner_id: int, drafts: Sequence[SettingDraft]) -> list[int]:
        """Insert all drafts in one transaction; a default draft clears any previous default."""

        raise NotImplementedError

    def update(self, *, setting_id: int, name: str, work_hours: float, break_hours: float) -> bool:
        raise NotImplementedError

    def delete(self, setting_id: int) -> bool:
        raise NotImplementedError

    def set_default(self, owner_id: int, setting_id: int) -> bool:
        raise NotImplementedError

    def get_applied(self, staff_id: int, work_date: date) -> Optional[AppliedWorkSetting]:
        raise NotImplementedError

    def upsert_applied(
        self,
        *,
        owner_id: int,
        staff_id: int,
        work_date: date,
        setting_id: int,
        is_auto_assigned: bool = False,
    ) -> int:
        """Create or replace the staff/date assignment. Returns applied_id."""

        raise NotImplementedError

    def clear_applied(self, staff_id: int, work_date: date) -> bool:
        raise NotImplementedError

    def list_applied(self, staff_id: int, start: date, end: date) -> Sequence[AppliedWorkSetting]:
        raise NotImplementedError
