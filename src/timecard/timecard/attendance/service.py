from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import (
    jst_date,
    jst_day_bounds,
    jst_timestamp,
    jst_today_bounds,
    now_ms,
    parse_hhmm,
    parse_iso_date,
)
from ..common.validators import require_non_empty, require_record_type, require_timestamp
from ..core.enums import DayStatus, RecordType
from ..core.exceptions import NotFoundError, ValidationError
from ..staff.model import Staff
from ..staff.repository import StaffRepository
from ..staff.service import find_staff_by_token
from .model import AttendanceHistory, AttendanceRecord, Correction, HistoryEntry, NewRecord
from .pairing import (
    AttendancePair,
    PairTotals,
    group_by_staff,
    key_by_pair,
    key_by_pair_or_day,
    latest_pair_on,
    pair_records,
    total_pairs,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClockResult:
    record: AttendanceRecord
    staff: Staff

    @property
    def pair_id(self) -> Optional[str]:
        return self.record.pair_id


@dataclass(frozen=True)
class CorrectionResult:
    record: AttendanceRecord
    created: bool


@dataclass(frozen=True)
class TodayEntry:
    staff: Staff
    clock_in: Optional[AttendanceRecord]
    clock_out: Optional[AttendanceRecord]
    status: DayStatus


@dataclass(frozen=True)
class MonthlySummary:
    staff_id: Optional[int]
    year: int
    month: int
    pairs: list[AttendancePair]
    totals: PairTotals

    @property
    def total_work_hours(self) -> float:
        return self.totals.work_minutes / 60

    @property
    def total_break_hours(self) -> float:
        return self.totals.break_minutes / 60

    @property
    def total_overtime_hours(self) -> float:
        return self.totals.overtime_minutes / 60

    @property
    def total_work_days(self) -> int:
        return self.totals.work_days


class AttendanceService:
    """Attendance ledger: clock events, pairing, correction and deletion with audit."""

    def __init__(self, attendance: AttendanceRepository, staff: StaffRepository):
        self._attendance = attendance
        self._staff = staff

    # ----- helpers -----

    def _owned_staff(self, auth: AuthContext, staff_id: int) -> Staff:
        staff = self._staff.get_by_id(int(staff_id))
        if not staff or staff.owner_id != auth.owner_id:
            raise NotFoundError("Staff not found")
        return staff

    def _resolve_clock_out_pair(self, owner_id: int, staff_id: int, timestamp: int) -> Optional[str]:
        clock_in = self._attendance.latest_clock_in_before(owner_id, staff_id, timestamp)
        return clock_in.pair_key if clock_in else None

    def _insert(
        self,
        *,
        owner_id: int,
        staff: Staff,
        record_type: RecordType,
        timestamp: int,
        note: Optional[str],
        is_manual_entry: bool = False,
        history: Optional[HistoryEntry] = None,
    ) -> AttendanceRecord:
        pair_id = None
        if record_type == RecordType.CLOCK_OUT:
            pair_id = self._resolve_clock_out_pair(owner_id, staff.staff_id, timestamp)
            if pair_id is None:
                logger.info("orphan clock_out staff_id=%s ts=%s", staff.staff_id, timestamp)

        record = self._attendance.insert_record(
            NewRecord(
                owner_id=owner_id,
                staff_id=staff.staff_id,
                record_type=record_type,
                timestamp=timestamp,
                pair_id=pair_id,
                note=note,
                is_manual_entry=is_manual_entry,
            ),
            self_pair=record_type == RecordType.CLOCK_IN,
            history=history,
        )
        logger.info(
            "recorded %s attendance_id=%s pair_id=%s staff_id=%s owner_id=%s",
            record_type.value,
            record.attendance_id,
            record.pair_id,
            staff.staff_id,
            owner_id,
        )
        return record

    # ----- writes -----

    def record_clock(
        self,
        auth: AuthContext,
        *,
        staff_id: int,
        record_type,
        timestamp: Optional[int] = None,
        note: Optional[str] = None,
    ) -> ClockResult:
        """Authenticated clock event. Does not check staff.is_active."""

        record_type = require_record_type(record_type)
        staff = self._owned_staff(auth, staff_id)
        ts = require_timestamp(timestamp) if timestamp is not None else now_ms()
        record = self._insert(
            owner_id=auth.owner_id,
            staff=staff,
            record_type=record_type,
            timestamp=ts,
            note=note,
        )
        return ClockResult(record=record, staff=staff)

    def record_clock_by_qr(
        self,
        token: str,
        *,
        record_type,
        owner_id: Optional[int] = None,
        now: Optional[int] = None,
    ) -> ClockResult:
        """No-auth QR path: the token alone decides staff and owner.

        `owner_id` restricts the token to one tenant (kiosk links).
        """

        record_type = require_record_type(record_type)
        staff = find_staff_by_token(self._staff, token)
        if owner_id is not None and staff.owner_id != owner_id:
            raise NotFoundError("Staff not found for this QR code")
        if not staff.is_active:
            raise ValidationError("This staff member is deactivated")

        record = self._insert(
            owner_id=staff.owner_id,
            staff=staff,
            record_type=record_type,
            timestamp=now if now is not None else now_ms(),
            note=None,
        )
        return ClockResult(record=record, staff=staff)

    def correct(
        self,
        auth: AuthContext,
        *,
        staff_id: int,
        date: str,
        record_type,
        time: str,
        reason: str,
        pair_id: Optional[str] = None,
        now: Optional[int] = None,
    ) -> CorrectionResult:
        """Correct one side of a pair, or create it when no pair id is given.

        `date` (YYYY-MM-DD) and `time` (HH:MM) are JST wall-clock values.
        """

        record_type = require_record_type(record_type)
        staff = self._owned_staff(auth, staff_id)
        reason = require_non_empty(reason, "Reason")
        timestamp = jst_timestamp(parse_iso_date(date), parse_hhmm(time))
        modified_at = now if now is not None else now_ms()

        if not pair_id:
            history = HistoryEntry(
                modified_by=auth.owner_id,
                modified_at=modified_at,
                old_timestamp=None,
                new_timestamp=timestamp,
                new_note=reason,
            )
            record = self._insert(
                owner_id=auth.owner_id,
                staff=staff,
                record_type=record_type,
                timestamp=timestamp,
                note=reason,
                is_manual_entry=True,
                history=history,
            )
            return CorrectionResult(record=record, created=True)

        matches = [
            r
            for r in self._attendance.find_by_pair_id(auth.owner_id, pair_id)
            if r.record_type == record_type and r.staff_id == staff.staff_id
        ]
        if not matches:
            raise NotFoundError("Target record not found")
        if len(matches) > 1:
            logger.warning(
                "pair %s has %s %s records; correcting the latest",
                pair_id,
                len(matches),
                record_type.value,
            )
        target = max(matches, key=lambda r: (r.timestamp, r.attendance_id))

        history = HistoryEntry(
            attendance_id=target.attendance_id,
            pair_id=target.pair_id,
            record_type=target.record_type,
            modified_by=auth.owner_id,
            modified_at=modified_at,
            old_timestamp=target.timestamp,
            new_timestamp=timestamp,
            old_note=target.note,
            new_note=reason,
        )
        record = self._attendance.apply_correction(
            target.attendance_id,
            Correction(timestamp=timestamp, note=reason, corrected_at=modified_at, correction_reason=reason),
            history,
        )
        logger.info(
            "corrected attendance_id=%s pair_id=%s %s -> %s owner_id=%s",
            record.attendance_id,
            record.pair_id,
            target.timestamp,
            timestamp,
            auth.owner_id,
        )
        return CorrectionResult(record=record, created=False)

    def create_pair(
        self,
        auth: AuthContext,
        *,
        staff_id: int,
        clock_in: int,
        clock_out: Optional[int] = None,
        note: Optional[str] = None,
    ) -> AttendancePair:
        """Manual pair creation: both records share a freshly generated pair id."""

        staff = self._owned_staff(auth, staff_id)
        clock_in = require_timestamp(clock_in, "clock_in")
        if clock_out is not None:
            clock_out = require_timestamp(clock_out, "clock_out")
            if clock_out < clock_in:
                raise ValidationError("Clock-out must not precede clock-in")

        pair_id = uuid.uuid4().hex
        drafts = [
            NewRecord(
                owner_id=auth.owner_id,
                staff_id=staff.staff_id,
                record_type=RecordType.CLOCK_IN,
                timestamp=clock_in,
                pair_id=pair_id,
                note=note,
                is_manual_entry=True,
            )
        ]
        if clock_out is not None:
            drafts.append(
                NewRecord(
                    owner_id=auth.owner_id,
                    staff_id=staff.staff_id,
                    record_type=RecordType.CLOCK_OUT,
                    timestamp=clock_out,
                    pair_id=pair_id,
                    note=note,
                    is_manual_entry=True,
                )
            )

        records = self._attendance.insert_pair(drafts)
        logger.info("created manual pair %s staff_id=%s owner_id=%s", pair_id, staff.staff_id, auth.owner_id)
        pairs = pair_records(records)
        return pairs[0]

    def delete_pair(
        self,
        auth: AuthContext,
        pair_id: str,
        *,
        reason: Optional[str] = None,
        now: Optional[int] = None,
    ) -> int:
        """Delete a pair through its clock-in, writing one history entry per record.

        Not idempotent: a second call for the same pair raises NotFoundError.
        """

        pair_id = str(pair_id or "").strip()
        records = list(self._attendance.find_by_pair_id(auth.owner_id, pair_id)) if pair_id else []
        if not records:
            record = self._owned_record(auth, pair_id)
            if record is None:
                raise NotFoundError("Attendance pair not found")
            if record.record_type != RecordType.CLOCK_IN:
                raise ValidationError("Pairs can only be deleted through their clock-in record")
            records = list(self._attendance.find_by_pair_id(auth.owner_id, record.pair_key)) or [record]

        clock_ins = [r for r in records if r.record_type == RecordType.CLOCK_IN]
        if not clock_ins:
            raise ValidationError("Pairs can only be deleted through their clock-in record")
        clock_outs = [r for r in records if r.record_type == RecordType.CLOCK_OUT]

        modified_at = now if now is not None else now_ms()
        note = (str(reason).strip() if reason is not None else "") or "deleted"
        deletions = [
            (
                r.attendance_id,
                HistoryEntry(
                    attendance_id=r.attendance_id,
                    pair_id=r.pair_id,
                    record_type=r.record_type,
                    modified_by=auth.owner_id,
                    modified_at=modified_at,
                    old_timestamp=r.timestamp,
                    new_timestamp=None,
                    old_note=r.note,
                    new_note=note,
                ),
            )
            for r in clock_ins + clock_outs
        ]
        deleted = self._attendance.delete_with_history(deletions)
        logger.info("deleted pair %s (%s records) owner_id=%s", pair_id, deleted, auth.owner_id)
        return deleted

    def _owned_record(self, auth: AuthContext, attendance_id: str) -> Optional[AttendanceRecord]:
        try:
            record_id = int(attendance_id)
        except (TypeError, ValueError):
            return None
        record = self._attendance.get_by_id(record_id)
        if not record or record.owner_id != auth.owner_id:
            return None
        return record

    # ----- reads -----

    def today_view(self, auth: AuthContext, *, now: Optional[int] = None) -> list[TodayEntry]:
        """Latest pair per active staff member whose clock-in falls on today (JST).

        Staff without a clock-in today are not listed.
        """

        now = now if now is not None else now_ms()
        today = jst_date(now)
        start, end = jst_today_bounds(now)

        active = {s.staff_id: s for s in self._staff.list_for_owner(auth.owner_id, is_active=True)}
        records = self._attendance.list_between(auth.owner_id, start, end)

        entries: list[TodayEntry] = []
        for staff_id, staff_records in group_by_staff(records).items():
            staff = active.get(staff_id)
            if staff is None:
                continue
            pair = latest_pair_on(pair_records(staff_records, key=key_by_pair), today)
            if pair is None:
                continue
            entries.append(
                TodayEntry(staff=staff, clock_in=pair.clock_in, clock_out=pair.clock_out, status=pair.status)
            )

        entries.sort(key=lambda e: e.clock_in.timestamp)
        return entries

    def monthly_records(
        self,
        auth: AuthContext,
        *,
        start: int,
        end: int,
        staff_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Raw records in [start, end], timestamp ascending, for client-side aggregation."""

        if staff_id is not None:
            staff_id = self._owned_staff(auth, staff_id).staff_id
        return self._attendance.list_between(auth.owner_id, int(start), int(end), staff_id=staff_id)

    def monthly_summary(
        self,
        auth: AuthContext,
        *,
        start: int,
        end: int,
        staff_id: Optional[int] = None,
    ) -> MonthlySummary:
        """Pairs keyed by pair id (or staff + JST day) with duration/overtime totals.

        Pairs shorter than zero or longer than 24h are kept in `pairs` but
        excluded from the totals.
        """

        records = self.monthly_records(auth, start=start, end=end, staff_id=staff_id)
        pairs = sorted(pair_records(records, key=key_by_pair_or_day), key=lambda p: (p.date, p.anchor.timestamp))
        first_day = jst_date(int(start))
        return MonthlySummary(
            staff_id=staff_id,
            year=first_day.year,
            month=first_day.month,
            pairs=pairs,
            totals=total_pairs(pairs),
        )

    def correction_history(self, auth: AuthContext, *, staff_id: int, date: str) -> list[AttendanceHistory]:
        staff = self._owned_staff(auth, staff_id)
        start, end = jst_day_bounds(parse_iso_date(date))
        records = self._attendance.list_between(auth.owner_id, start, end, staff_id=staff.staff_id)
        history = self._attendance.history_for_records([r.attendance_id for r in records])
        return sorted(history, key=lambda h: h.modified_at, reverse=True)
