from __future__ import annotations

import dataclasses
from typing import Iterable, Optional, Sequence

from ..core.enums import RecordType
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceHistory, AttendanceRecord, Correction, HistoryEntry, NewRecord
from .repository import AttendanceRepository

_COLUMNS = (
    "attendance_id, owner_id, staff_id, record_type, ts, pair_id, note, "
    "is_manual_entry, corrected_at, correction_reason"
)


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        owner_id=int(r["owner_id"]),
        staff_id=int(r["staff_id"]),
        record_type=RecordType(r["record_type"]),
        timestamp=int(r["ts"]),
        pair_id=r.get("pair_id") or None,
        note=r.get("note"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        corrected_at=int(r["corrected_at"]) if r.get("corrected_at") is not None else None,
        correction_reason=r.get("correction_reason"),
    )


def _to_history(r: dict) -> AttendanceHistory:
    return AttendanceHistory(
        history_id=int(r["history_id"]),
        attendance_id=int(r["attendance_id"]),
        pair_id=r.get("pair_id"),
        record_type=RecordType(r["record_type"]) if r.get("record_type") else None,
        old_timestamp=int(r["old_ts"]) if r.get("old_ts") is not None else None,
        new_timestamp=int(r["new_ts"]) if r.get("new_ts") is not None else None,
        old_note=r.get("old_note"),
        new_note=r.get("new_note"),
        modified_by=int(r["modified_by"]),
        modified_at=int(r["modified_at"]),
    )


def _select_record(cur, attendance_id: int) -> Optional[AttendanceRecord]:
    cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (attendance_id,))
    r = fetchone(cur)
    return _to_record(r) if r else None


def _lock_record(cur, attendance_id: int) -> Optional[AttendanceRecord]:
    cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s FOR UPDATE", (attendance_id,))
    r = fetchone(cur)
    return _to_record(r) if r else None


def _with_current_values(entry: HistoryEntry, current: AttendanceRecord) -> HistoryEntry:
    """Old side of an audit entry, read from the locked row."""

    return dataclasses.replace(
        entry,
        attendance_id=current.attendance_id,
        pair_id=current.pair_id,
        record_type=current.record_type,
        old_timestamp=current.timestamp,
        old_note=current.note,
    )


def _insert_record(cur, record: NewRecord) -> int:
    cur.execute(
        """
        INSERT INTO attendance (owner_id, staff_id, record_type, ts, pair_id, note, is_manual_entry)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        """,
        (
            record.owner_id,
            record.staff_id,
            record.record_type.value,
            record.timestamp,
            record.pair_id,
            record.note,
            1 if record.is_manual_entry else 0,
        ),
    )
    return int(cur.lastrowid)


def _insert_history(cur, entry: HistoryEntry) -> None:
    cur.execute(
        """
        INSERT INTO attendance_history
            (attendance_id, pair_id, record_type, old_ts, new_ts, old_note, new_note, modified_by, modified_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """,
        (
            entry.attendance_id,
            entry.pair_id,
            entry.record_type.value if entry.record_type else None,
            entry.old_timestamp,
            entry.new_timestamp,
            entry.old_note,
            entry.new_note,
            entry.modified_by,
            entry.modified_at,
        ),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return _select_record(cur, attendance_id)

    def find_by_pair_id(self, owner_id: int, pair_id: str) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE owner_id=%s AND pair_id=%s
                ORDER BY ts, attendance_id
                """,
                (owner_id, pair_id),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def latest_clock_in_before(self, owner_id: int, staff_id: int, before: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE owner_id=%s AND staff_id=%s AND record_type=%s AND ts < %s
                ORDER BY ts DESC, attendance_id DESC
                LIMIT 1
                """,
                (owner_id, staff_id, RecordType.CLOCK_IN.value, before),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def list_between(
        self,
        owner_id: int,
        start: int,
        end: int,
        *,
        staff_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        sql = f"SELECT {_COLUMNS} FROM attendance WHERE owner_id=%s AND ts BETWEEN %s AND %s"
        params: list = [owner_id, start, end]
        if staff_id is not None:
            sql += " AND staff_id=%s"
            params.append(staff_id)
        sql += " ORDER BY ts, attendance_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def insert_record(
        self,
        record: NewRecord,
        *,
        self_pair: bool = False,
        history: Optional[HistoryEntry] = None,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            attendance_id = _insert_record(cur, record)
            pair_id = record.pair_id
            if self_pair:
                # A clock_in is its own pair; the id exists only after the insert.
                pair_id = str(attendance_id)
                cur.execute("UPDATE attendance SET pair_id=%s WHERE attendance_id=%s", (pair_id, attendance_id))
            if history is not None:
                _insert_history(
                    cur,
                    HistoryEntry(
                        attendance_id=attendance_id,
                        pair_id=pair_id,
                        record_type=record.record_type,
                        modified_by=history.modified_by,
                        modified_at=history.modified_at,
                        old_timestamp=history.old_timestamp,
                        new_timestamp=history.new_timestamp,
                        old_note=history.old_note,
                        new_note=history.new_note,
                    ),
                )
            return _select_record(cur, attendance_id)

    def insert_pair(self, records: Sequence[NewRecord]) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            ids = [_insert_record(cur, r) for r in records]
            return [_select_record(cur, attendance_id) for attendance_id in ids]

    def apply_correction(self, attendance_id: int, correction: Correction, history: HistoryEntry) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            current = _lock_record(cur, attendance_id)
            if current is None:
                raise NotFoundError("Target record not found")
            _insert_history(cur, _with_current_values(history, current))
            cur.execute(
                """
                UPDATE attendance
                SET ts=%s, note=%s, corrected_at=%s, correction_reason=%s
                WHERE attendance_id=%s
                """,
                (
                    correction.timestamp,
                    correction.note,
                    correction.corrected_at,
                    correction.correction_reason,
                    attendance_id,
                ),
            )
            return _select_record(cur, attendance_id)

    def delete_with_history(self, deletions: Sequence[tuple[int, HistoryEntry]]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            for attendance_id, entry in deletions:
                current = _lock_record(cur, attendance_id)
                if current is None:
                    # Raising rolls back the history rows already written.
                    raise NotFoundError("Attendance pair not found")
                _insert_history(cur, _with_current_values(entry, current))
                cur.execute("DELETE FROM attendance WHERE attendance_id=%s", (attendance_id,))
        return len(deletions)

    def history_for_records(self, attendance_ids: Iterable[int]) -> Sequence[AttendanceHistory]:
        ids = [int(i) for i in attendance_ids]
        if not ids:
            return []
        placeholders = ", ".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT history_id, attendance_id, pair_id, record_type, old_ts, new_ts,
                       old_note, new_note, modified_by, modified_at
                FROM attendance_history
                WHERE attendance_id IN ({placeholders})
                ORDER BY modified_at DESC, history_id DESC
                """,
                tuple(ids),
            )
            return [_to_history(r) for r in fetchall(cur)]
