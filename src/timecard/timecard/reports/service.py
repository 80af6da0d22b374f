"""Period and calendar reports over the attendance ledger.

Both reports pair records by pair id (falling back to the record id) and
only count active staff. Totals use the same exclusion rule as the monthly
summary: pairs outside 0..24h are skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.pairing import AttendancePair, PairTotals, group_by_staff, key_by_pair, pair_records
from ..attendance.repository import AttendanceRepository
from ..auth.context import AuthContext
from ..common.datetime_utils import format_hhmm, jst_date_key, jst_period_bounds, month_dates, to_jst
from ..core.exceptions import ValidationError
from ..staff.repository import StaffRepository

REPORT_CSV_FIELDS = [
    "work_date",
    "staff_id",
    "employee_id",
    "name",
    "clock_in",
    "clock_out",
    "worked_hours",
    "overtime_hours",
    "note",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]
    totals: dict


@dataclass(frozen=True)
class CalendarData:
    days: dict[str, dict]
    summary: dict


def _hhmm(ts: Optional[int]) -> str:
    return to_jst(ts).strftime("%H:%M") if ts is not None else "-"


class ReportService:
    def __init__(self, attendance: AttendanceRepository, staff: StaffRepository):
        self._attendance = attendance
        self._staff = staff

    def _active_pairs(self, auth: AuthContext, start: int, end: int):
        active = {s.staff_id: s for s in self._staff.list_for_owner(auth.owner_id, is_active=True)}
        records = self._attendance.list_between(auth.owner_id, start, end)
        by_staff = group_by_staff(records)
        return active, {
            staff_id: pair_records(by_staff.get(staff_id, []), key=key_by_pair) for staff_id in active
        }

    def period_report(self, auth: AuthContext, *, start: date, end: date) -> ReportData:
        if end < start:
            raise ValidationError("End date must not precede start date")
        start_ms, end_ms = jst_period_bounds(start, end)
        active, pairs_by_staff = self._active_pairs(auth, start_ms, end_ms)

        rows: list[dict] = []
        summary: list[dict] = []
        overall = PairTotals()
        for staff_id, staff in active.items():
            totals = PairTotals()
            for pair in sorted(pairs_by_staff[staff_id], key=lambda p: p.anchor.timestamp):
                totals.add(pair)
                overall.add(pair)
                rows.append(self._row(staff, pair))
            summary.append(
                {
                    "staff_id": staff.staff_id,
                    "employee_id": staff.employee_id,
                    "name": staff.name,
                    "work_days": totals.work_days,
                    "total_hours": format_hhmm(totals.work_minutes),
                    "overtime_hours": format_hhmm(totals.overtime_minutes),
                    "total_minutes": int(totals.work_minutes),
                }
            )

        rows.sort(key=lambda r: (r["work_date"], r["clock_in"], r["staff_id"]))
        summary.sort(key=lambda s: s["total_minutes"], reverse=True)
        return ReportData(
            rows=rows,
            summary=summary,
            totals={
                "start": start.strftime("%Y-%m-%d"),
                "end": end.strftime("%Y-%m-%d"),
                "staff_count": len(active),
                "work_days": overall.work_days,
                "total_hours": format_hhmm(overall.work_minutes),
                "overtime_hours": format_hhmm(overall.overtime_minutes),
            },
        )

    @staticmethod
    def _row(staff, pair: AttendancePair) -> dict:
        counted = pair.is_valid
        return {
            "work_date": pair.date,
            "staff_id": staff.staff_id,
            "employee_id": staff.employee_id,
            "name": staff.name,
            "clock_in": _hhmm(pair.clock_in.timestamp if pair.clock_in else None),
            "clock_out": _hhmm(pair.clock_out.timestamp if pair.clock_out else None),
            "worked_hours": format_hhmm(pair.duration_minutes) if counted else "-",
            "overtime_hours": format_hhmm(pair.overtime_minutes) if counted else "-",
            "note": (pair.anchor.note or ""),
        }

    def monthly_calendar(self, auth: AuthContext, *, year: int, month: int) -> CalendarData:
        days_in_month = month_dates(int(year), int(month))
        start_ms, end_ms = jst_period_bounds(days_in_month[0], days_in_month[-1])
        active, pairs_by_staff = self._active_pairs(auth, start_ms, end_ms)

        days: dict[str, dict] = {d.strftime("%Y-%m-%d"): {"count": 0, "staff": []} for d in days_in_month}
        for staff_id, pairs in pairs_by_staff.items():
            staff = active[staff_id]
            for pair in pairs:
                if pair.clock_in is None:
                    continue
                day = days.get(jst_date_key(pair.clock_in.timestamp))
                if day is None:
                    continue
                day["staff"].append(
                    {
                        "staff_id": staff.staff_id,
                        "name": staff.name,
                        "pair_id": pair.pair_id,
                        "clock_in": pair.clock_in.timestamp,
                        "clock_out": pair.clock_out.timestamp if pair.clock_out else None,
                    }
                )

        counts: list[int] = []
        for day in days.values():
            day["staff"].sort(key=lambda e: e["clock_in"])
            day["count"] = len(day["staff"])
            if day["count"]:
                counts.append(day["count"])

        return CalendarData(
            days=days,
            summary={
                "work_days": len(counts),
                "average_attendance": round(sum(counts) / len(counts), 1) if counts else 0.0,
                "max_attendance": max(counts) if counts else 0,
            },
        )
