"""Pairing of clock events into shifts and per-pair metrics.

Pure functions over already-loaded records; no storage access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import jst_date, jst_date_key, jst_minutes_of_day
from ..core.constants import (
    BREAK_MINUTES,
    BREAK_THRESHOLD_MINUTES,
    MAX_PAIR_MINUTES,
    MS_PER_MINUTE,
    SHORT_SHIFT_MINUTES,
    STANDARD_WORK_MINUTES,
)
from ..core.enums import DayStatus, IssueLevel, RecordType
from .model import AttendanceRecord

logger = logging.getLogger(__name__)

PairKeyFn = Callable[[AttendanceRecord], str]


def key_by_pair(record: AttendanceRecord) -> str:
    """Pair id, or the record's own id for unpaired records."""

    return record.pair_key


def key_by_pair_or_day(record: AttendanceRecord) -> str:
    """Pair id, or staff + JST date for unpaired records."""

    return record.pair_id or f"{record.staff_id}_{jst_date_key(record.timestamp)}"


@dataclass
class AttendancePair:
    pair_id: str
    staff_id: int
    clock_in: Optional[AttendanceRecord] = None
    clock_out: Optional[AttendanceRecord] = None

    @property
    def anchor(self) -> AttendanceRecord:
        record = self.clock_in or self.clock_out
        assert record is not None
        return record

    @property
    def date(self) -> str:
        """JST date of the clock-in (or of the clock-out for orphans)."""

        return jst_date_key(self.anchor.timestamp)

    @property
    def is_closed(self) -> bool:
        return self.clock_in is not None and self.clock_out is not None

    @property
    def duration_minutes(self) -> Optional[float]:
        if not self.is_closed:
            return None
        return (self.clock_out.timestamp - self.clock_in.timestamp) / MS_PER_MINUTE

    @property
    def is_valid(self) -> bool:
        """Closed with 0 <= duration <= 24h; anything else is a data error."""

        minutes = self.duration_minutes
        return minutes is not None and 0 <= minutes <= MAX_PAIR_MINUTES

    @property
    def overtime_minutes(self) -> float:
        minutes = self.duration_minutes
        if minutes is None:
            return 0.0
        return max(0.0, minutes - STANDARD_WORK_MINUTES)

    @property
    def break_minutes(self) -> int:
        minutes = self.duration_minutes
        return BREAK_MINUTES if minutes is not None and minutes > BREAK_THRESHOLD_MINUTES else 0

    @property
    def total_hours(self) -> Optional[float]:
        minutes = self.duration_minutes
        return None if minutes is None else minutes / 60

    @property
    def overtime_hours(self) -> float:
        return self.overtime_minutes / 60

    @property
    def status(self) -> DayStatus:
        if self.is_closed:
            return DayStatus.COMPLETED
        if self.clock_in is not None:
            return DayStatus.PRESENT
        return DayStatus.ABSENT


def pair_records(records: Iterable[AttendanceRecord], *, key: PairKeyFn = key_by_pair) -> list[AttendancePair]:
    """Group records into pairs, in first-seen order.

    Records are applied in timestamp order; a later record of the same type
    in the same bucket replaces the earlier one.
    """

    pairs: dict[str, AttendancePair] = {}
    for record in sorted(records, key=lambda r: (r.timestamp, r.attendance_id)):
        pair_id = key(record)
        pair = pairs.get(pair_id)
        if pair is None:
            pair = AttendancePair(pair_id=pair_id, staff_id=record.staff_id)
            pairs[pair_id] = pair
        if record.record_type == RecordType.CLOCK_IN:
            pair.clock_in = record
        else:
            pair.clock_out = record
    return list(pairs.values())


def group_by_staff(records: Iterable[AttendanceRecord]) -> dict[int, list[AttendanceRecord]]:
    out: dict[int, list[AttendanceRecord]] = {}
    for record in records:
        out.setdefault(record.staff_id, []).append(record)
    return out


def latest_pair_on(pairs: Iterable[AttendancePair], day: date) -> Optional[AttendancePair]:
    """Pair whose clock-in falls on `day` (JST) with the latest time of day."""

    candidates = [p for p in pairs if p.clock_in is not None and jst_date(p.clock_in.timestamp) == day]
    if not candidates:
        return None
    return max(
        candidates,
        key=lambda p: (jst_minutes_of_day(p.clock_in.timestamp), p.clock_in.timestamp),
    )


@dataclass
class PairTotals:
    work_minutes: float = 0.0
    break_minutes: int = 0
    overtime_minutes: float = 0.0
    work_days: int = 0
    excluded: list[str] = field(default_factory=list)

    def add(self, pair: AttendancePair) -> None:
        if not pair.is_closed:
            return
        if not pair.is_valid:
            logger.warning(
                "excluding pair %s (staff_id=%s) with out-of-range duration %.1f min",
                pair.pair_id,
                pair.staff_id,
                pair.duration_minutes,
            )
            self.excluded.append(pair.pair_id)
            return
        self.work_minutes += pair.duration_minutes
        self.break_minutes += pair.break_minutes
        self.overtime_minutes += pair.overtime_minutes
        self.work_days += 1


def total_pairs(pairs: Iterable[AttendancePair]) -> PairTotals:
    totals = PairTotals()
    for pair in pairs:
        totals.add(pair)
    return totals


@dataclass(frozen=True)
class PairIssue:
    pair_id: str
    date: str
    message: str
    level: IssueLevel


def validate_pairs(pairs: Sequence[AttendancePair]) -> list[PairIssue]:
    issues: list[PairIssue] = []
    for pair in pairs:
        minutes = pair.duration_minutes
        if minutes is not None and minutes > MAX_PAIR_MINUTES:
            issues.append(PairIssue(pair.pair_id, pair.date, "Shift longer than 24 hours", IssueLevel.ERROR))
        if minutes is not None and minutes < 0:
            issues.append(PairIssue(pair.pair_id, pair.date, "Clock-out precedes clock-in", IssueLevel.ERROR))
        if pair.clock_in is not None and pair.clock_out is None:
            issues.append(PairIssue(pair.pair_id, pair.date, "Missing clock-out", IssueLevel.WARNING))
        if pair.clock_in is None and pair.clock_out is not None:
            issues.append(PairIssue(pair.pair_id, pair.date, "Clock-out without clock-in", IssueLevel.WARNING))
        if minutes is not None and 0 <= minutes < SHORT_SHIFT_MINUTES:
            issues.append(PairIssue(pair.pair_id, pair.date, "Shift shorter than 1 hour", IssueLevel.WARNING))
    return issues
