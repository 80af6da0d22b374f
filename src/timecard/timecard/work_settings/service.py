from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import month_dates
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from ..staff.model import Staff
from ..staff.repository import StaffRepository
from .model import AppliedWorkSetting, SettingDraft, WorkSetting
from .repository import WorkSettingRepository

logger = logging.getLogger(__name__)

MAX_WORK_HOURS = 24
MAX_BREAK_HOURS = 8

INITIAL_SETTINGS = (
    SettingDraft(name="Day shift (8h)", work_hours=8, break_hours=1, is_default=True),
    SettingDraft(name="Night shift (16h)", work_hours=16, break_hours=2),
    SettingDraft(name="Part-time (4h)", work_hours=4, break_hours=0),
)


@dataclass(frozen=True)
class AppliedDay:
    applied: AppliedWorkSetting
    setting: WorkSetting


def _validate_hours(work_hours, break_hours) -> tuple[float, float]:
    try:
        work = float(work_hours)
        brk = float(break_hours)
    except (TypeError, ValueError):
        raise ValidationError("Work and break hours must be numbers") from None

    if not 0 < work <= MAX_WORK_HOURS:
        raise ValidationError("Work hours must be greater than 0 and at most 24")
    if not 0 <= brk <= MAX_BREAK_HOURS:
        raise ValidationError("Break hours must be between 0 and 8")
    if work + brk > MAX_WORK_HOURS:
        raise ValidationError("Work plus break hours must not exceed 24")
    return work, brk


def best_match(settings: Sequence[WorkSetting], work_minutes: float) -> Optional[WorkSetting]:
    """Setting whose work+break total is closest to `work_minutes`; first wins ties."""

    best: Optional[WorkSetting] = None
    best_diff = float("inf")
    for setting in settings:
        diff = abs(work_minutes - setting.total_minutes)
        if diff < best_diff:
            best, best_diff = setting, diff
    return best


class WorkSettingService:
    def __init__(self, settings: WorkSettingRepository, staff: StaffRepository):
        self._settings = settings
        self._staff = staff

    def _owned(self, auth: AuthContext, setting_id: int) -> WorkSetting:
        setting = self._settings.get_by_id(int(setting_id))
        if not setting or setting.owner_id != auth.owner_id:
            raise NotFoundError("Work setting not found")
        return setting

    def _owned_staff(self, auth: AuthContext, staff_id: int) -> Staff:
        staff = self._staff.get_by_id(int(staff_id))
        if not staff or staff.owner_id != auth.owner_id:
            raise NotFoundError("Staff not found")
        return staff

    def _check_name_free(self, auth: AuthContext, name: str, *, setting_id: Optional[int] = None) -> None:
        existing = self._settings.get_by_name(auth.owner_id, name)
        if existing and existing.setting_id != setting_id:
            raise ValidationError(f"A work setting named {name!r} already exists")

    def list(self, auth: AuthContext) -> Sequence[WorkSetting]:
        return self._settings.list_for_owner(auth.owner_id)

    def create(self, auth: AuthContext, *, name: str, work_hours, break_hours) -> WorkSetting:
        name = require_non_empty(name, "Name")
        work, brk = _validate_hours(work_hours, break_hours)
        self._check_name_free(auth, name)

        (setting_id,) = self._settings.create_many(
            auth.owner_id, [SettingDraft(name=name, work_hours=work, break_hours=brk)]
        )
        logger.info("created work setting %s owner_id=%s", setting_id, auth.owner_id)
        return self._owned(auth, setting_id)

    def update(self, auth: AuthContext, setting_id: int, *, name: str, work_hours, break_hours) -> WorkSetting:
        setting = self._owned(auth, setting_id)
        name = require_non_empty(name, "Name")
        work, brk = _validate_hours(work_hours, break_hours)
        self._check_name_free(auth, name, setting_id=setting.setting_id)

        self._settings.update(setting_id=setting.setting_id, name=name, work_hours=work, break_hours=brk)
        return self._owned(auth, setting.setting_id)

    def delete(self, auth: AuthContext, setting_id: int) -> None:
        setting = self._owned(auth, setting_id)
        if setting.is_default:
            raise ValidationError("The default work setting cannot be deleted")
        if not self._settings.delete(setting.setting_id):
            raise NotFoundError("Work setting not found")
        logger.info("deleted work setting %s owner_id=%s", setting.setting_id, auth.owner_id)

    def set_default(self, auth: AuthContext, setting_id: int) -> WorkSetting:
        setting = self._owned(auth, setting_id)
        self._settings.set_default(auth.owner_id, setting.setting_id)
        return self._owned(auth, setting.setting_id)

    def create_initial(self, auth: AuthContext) -> bool:
        """Create the starter settings. Returns False when the owner already has some."""

        if self._settings.list_for_owner(auth.owner_id):
            return False
        self._settings.create_many(auth.owner_id, list(INITIAL_SETTINGS))
        logger.info("created initial work settings owner_id=%s", auth.owner_id)
        return True

    def detect_best(self, auth: AuthContext, work_minutes: float) -> Optional[WorkSetting]:
        return best_match(self._settings.list_for_owner(auth.owner_id), float(work_minutes))

    def set_applied(
        self,
        auth: AuthContext,
        *,
        staff_id: int,
        work_date: date,
        setting_id: Optional[int],
    ) -> Optional[AppliedWorkSetting]:
        """Replace the staff/date assignment; `setting_id=None` clears it."""

        staff = self._owned_staff(auth, staff_id)
        if setting_id is None:
            self._settings.clear_applied(staff.staff_id, work_date)
            return None

        setting = self._owned(auth, setting_id)
        self._settings.upsert_applied(
            owner_id=auth.owner_id,
            staff_id=staff.staff_id,
            work_date=work_date,
            setting_id=setting.setting_id,
        )
        return self._settings.get_applied(staff.staff_id, work_date)

    def auto_assign(
        self,
        auth: AuthContext,
        *,
        staff_id: int,
        work_date: date,
        work_minutes: float,
    ) -> Optional[AppliedWorkSetting]:
        """Assign the best matching setting unless the day already has one."""

        staff = self._owned_staff(auth, staff_id)
        existing = self._settings.get_applied(staff.staff_id, work_date)
        if existing:
            return existing

        best = self.detect_best(auth, work_minutes)
        if best is None:
            return None
        self._settings.upsert_applied(
            owner_id=auth.owner_id,
            staff_id=staff.staff_id,
            work_date=work_date,
            setting_id=best.setting_id,
            is_auto_assigned=True,
        )
        logger.info(
            "auto-assigned setting %s to staff_id=%s on %s", best.setting_id, staff.staff_id, work_date.isoformat()
        )
        return self._settings.get_applied(staff.staff_id, work_date)

    def monthly_applied(self, auth: AuthContext, *, staff_id: int, year: int, month: int) -> dict[str, AppliedDay]:
        staff = self._owned_staff(auth, staff_id)
        days = month_dates(int(year), int(month))
        settings = {s.setting_id: s for s in self._settings.list_for_owner(auth.owner_id)}

        out: dict[str, AppliedDay] = {}
        for applied in self._settings.list_applied(staff.staff_id, days[0], days[-1]):
            setting = settings.get(applied.setting_id)
            if setting is None:
                continue
            out[applied.work_date.strftime("%Y-%m-%d")] = AppliedDay(applied=applied, setting=setting)
        return out
