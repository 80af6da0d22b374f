from __future__ import annotations

from typing import Optional

from flask import Flask, request

from ..common.datetime_utils import jst_month_bounds
from ..common.http import current_auth, json_body, ok
from ..common.validators import optional_int, require_int
from ..container import Container
from ..core.exceptions import ValidationError
from .model import AttendanceHistory, AttendanceRecord
from .pairing import AttendancePair, validate_pairs


def record_json(r: Optional[AttendanceRecord]) -> Optional[dict]:
    if r is None:
        return None
    return {
        "attendance_id": r.attendance_id,
        "staff_id": r.staff_id,
        "type": r.record_type.value,
        "timestamp": r.timestamp,
        "pair_id": r.pair_id,
        "note": r.note,
        "is_manual_entry": r.is_manual_entry,
        "corrected_at": r.corrected_at,
        "correction_reason": r.correction_reason,
    }


def pair_json(p: AttendancePair) -> dict:
    return {
        "pair_id": p.pair_id,
        "staff_id": p.staff_id,
        "date": p.date,
        "clock_in": record_json(p.clock_in),
        "clock_out": record_json(p.clock_out),
        "duration_minutes": p.duration_minutes,
        "total_hours": p.total_hours,
        "overtime_hours": p.overtime_hours,
        "break_minutes": p.break_minutes,
        "is_valid": p.is_valid,
        "status": p.status.value,
    }


def history_json(h: AttendanceHistory) -> dict:
    return {
        "history_id": h.history_id,
        "attendance_id": h.attendance_id,
        "pair_id": h.pair_id,
        "type": h.record_type.value if h.record_type else None,
        "old_timestamp": h.old_timestamp,
        "new_timestamp": h.new_timestamp,
        "old_note": h.old_note,
        "new_note": h.new_note,
        "modified_by": h.modified_by,
        "modified_at": h.modified_at,
        "is_deletion": h.is_deletion,
    }


def _month_range(args) -> tuple[int, int]:
    """Explicit start/end epoch ms, or year + month (JST)."""

    start = optional_int(args.get("start"), "start")
    end = optional_int(args.get("end"), "end")
    if start is not None and end is not None:
        return start, end
    year = optional_int(args.get("year"), "year")
    month = optional_int(args.get("month"), "month")
    if year is None or month is None:
        raise ValidationError("Either start/end or year/month is required")
    return jst_month_bounds(year, month)


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    def attendance_today():
        entries = service.today_view(current_auth())
        return ok(
            [
                {
                    "staff": {"staff_id": e.staff.staff_id, "name": e.staff.name, "employee_id": e.staff.employee_id},
                    "clock_in": record_json(e.clock_in),
                    "clock_out": record_json(e.clock_out),
                    "status": e.status.value,
                }
                for e in entries
            ]
        )

    @app.route("/api/attendance/clock", methods=["POST"], endpoint="attendance_clock")
    def attendance_clock():
        auth = current_auth()
        data = json_body()
        result = service.record_clock(
            auth,
            staff_id=require_int(data.get("staff_id"), "staff_id"),
            record_type=data.get("type"),
            timestamp=data.get("timestamp"),
            note=data.get("note"),
        )
        return ok(
            {"record": record_json(result.record), "pair_id": result.pair_id},
            message=f"{result.staff.name}: {result.record.record_type.value} recorded",
            status=201,
        )

    @app.route("/api/attendance/qr-clock", methods=["POST"], endpoint="attendance_qr_clock")
    def attendance_qr_clock():
        data = json_body()
        result = service.record_clock_by_qr(data.get("qr_code") or "", record_type=data.get("type"))
        return ok(
            {
                "record": record_json(result.record),
                "pair_id": result.pair_id,
                "staff": {"staff_id": result.staff.staff_id, "name": result.staff.name},
            },
            message=f"{result.staff.name}: {result.record.record_type.value} recorded",
            status=201,
        )

    @app.route("/api/attendance/correct", methods=["POST"], endpoint="attendance_correct")
    def attendance_correct():
        auth = current_auth()
        data = json_body()
        result = service.correct(
            auth,
            staff_id=require_int(data.get("staff_id"), "staff_id"),
            pair_id=data.get("pair_id") or None,
            date=data.get("date"),
            record_type=data.get("type"),
            time=data.get("time"),
            reason=data.get("reason"),
        )
        return ok(
            {"record": record_json(result.record), "created": result.created},
            message="Record created" if result.created else "Record corrected",
            status=201 if result.created else 200,
        )

    @app.route("/api/attendance/pairs", methods=["POST"], endpoint="attendance_create_pair")
    def attendance_create_pair():
        auth = current_auth()
        data = json_body()
        pair = service.create_pair(
            auth,
            staff_id=require_int(data.get("staff_id"), "staff_id"),
            clock_in=data.get("clock_in"),
            clock_out=data.get("clock_out"),
            note=data.get("note"),
        )
        return ok(pair_json(pair), status=201)

    @app.route("/api/attendance/pairs/<pair_id>", methods=["DELETE"], endpoint="attendance_delete_pair")
    def attendance_delete_pair(pair_id: str):
        auth = current_auth()
        reason = json_body().get("reason") or request.args.get("reason")
        deleted = service.delete_pair(auth, pair_id, reason=reason)
        return ok({"deleted": deleted}, message="Pair deleted")

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    def attendance_history():
        auth = current_auth()
        history = service.correction_history(
            auth,
            staff_id=require_int(request.args.get("staff_id"), "staff_id"),
            date=request.args.get("date"),
        )
        return ok([history_json(h) for h in history])

    @app.route("/api/attendance/monthly", methods=["GET"], endpoint="attendance_monthly")
    def attendance_monthly():
        auth = current_auth()
        start, end = _month_range(request.args)
        records = service.monthly_records(
            auth, start=start, end=end, staff_id=optional_int(request.args.get("staff_id"), "staff_id")
        )
        return ok([record_json(r) for r in records])

    @app.route("/api/attendance/monthly/summary", methods=["GET"], endpoint="attendance_monthly_summary")
    def attendance_monthly_summary():
        auth = current_auth()
        start, end = _month_range(request.args)
        summary = service.monthly_summary(
            auth, start=start, end=end, staff_id=optional_int(request.args.get("staff_id"), "staff_id")
        )
        return ok(
            {
                "staff_id": summary.staff_id,
                "year": summary.year,
                "month": summary.month,
                "pairs": [pair_json(p) for p in summary.pairs],
                "total_work_hours": round(summary.total_work_hours, 2),
                "total_break_hours": round(summary.total_break_hours, 2),
                "total_overtime_hours": round(summary.total_overtime_hours, 2),
                "total_work_days": summary.total_work_days,
                "excluded_pairs": list(summary.totals.excluded),
                "issues": [
                    {"pair_id": i.pair_id, "date": i.date, "message": i.message, "level": i.level.value}
                    for i in validate_pairs(summary.pairs)
                ],
            }
        )
