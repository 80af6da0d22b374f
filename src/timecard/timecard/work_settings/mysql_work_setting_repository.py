from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AppliedWorkSetting, SettingDraft, WorkSetting
from .repository import WorkSettingRepository

_COLUMNS = "setting_id, owner_id, name, work_hours, break_hours, is_default"
_APPLIED_COLUMNS = "applied_id, owner_id, staff_id, work_date, setting_id, is_auto_assigned"


def _to_setting(r: dict) -> WorkSetting:
    return WorkSetting(
        setting_id=int(r["setting_id"]),
        owner_id=int(r["owner_id"]),
        name=r["name"],
        work_hours=float(r["work_hours"]),
        break_hours=float(r["break_hours"]),
        is_default=bool(r["is_default"]),
    )


def _to_applied(r: dict) -> AppliedWorkSetting:
    return AppliedWorkSetting(
        applied_id=int(r["applied_id"]),
        owner_id=int(r["owner_id"]),
        staff_id=int(r["staff_id"]),
        work_date=r["work_date"],
        setting_id=int(r["setting_id"]),
        is_auto_assigned=bool(r["is_auto_assigned"]),
    )


class MySQLWorkSettingRepository(WorkSettingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_owner(self, owner_id: int) -> Sequence[WorkSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_settings WHERE owner_id=%s ORDER BY setting_id", (owner_id,))
            return [_to_setting(r) for r in fetchall(cur)]

    def get_by_id(self, setting_id: int) -> Optional[WorkSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_settings WHERE setting_id=%s", (int(setting_id),))
            r = fetchone(cur)
            return _to_setting(r) if r else None

    def get_by_name(self, owner_id: int, name: str) -> Optional[WorkSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM work_settings WHERE owner_id=%s AND name=%s LIMIT 1",
                (owner_id, name),
            )
            r = fetchone(cur)
            return _to_setting(r) if r else None

    def create_many(self, owner_id: int, drafts: Sequence[SettingDraft]) -> list[int]:
        ids: list[int] = []
        with db_cursor(self._conn_factory) as (_, cur):
            if any(d.is_default for d in drafts):
                cur.execute("UPDATE work_settings SET is_default=0 WHERE owner_id=%s", (owner_id,))
            for d in drafts:
                cur.execute(
                    """
                    INSERT INTO work_settings (owner_id, name, work_hours, break_hours, is_default)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (owner_id, d.name, d.work_hours, d.break_hours, 1 if d.is_default else 0),
                )
                ids.append(int(cur.lastrowid))
        return ids

    def update(self, *, setting_id: int, name: str, work_hours: float, break_hours: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE work_settings SET name=%s, work_hours=%s, break_hours=%s WHERE setting_id=%s",
                (name, work_hours, break_hours, int(setting_id)),
            )
            return cur.rowcount > 0

    def delete(self, setting_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM work_settings WHERE setting_id=%s", (int(setting_id),))
            return cur.rowcount > 0

    def set_default(self, owner_id: int, setting_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE work_settings SET is_default=0 WHERE owner_id=%s", (owner_id,))
            cur.execute(
                "UPDATE work_settings SET is_default=1 WHERE owner_id=%s AND setting_id=%s",
                (owner_id, int(setting_id)),
            )
            return cur.rowcount > 0

    def get_applied(self, staff_id: int, work_date: date) -> Optional[AppliedWorkSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_APPLIED_COLUMNS} FROM applied_work_settings WHERE staff_id=%s AND work_date=%s",
                (int(staff_id), work_date),
            )
            r = fetchone(cur)
            return _to_applied(r) if r else None

    def upsert_applied(
        self,
        *,
        owner_id: int,
        staff_id: int,
        work_date: date,
        setting_id: int,
        is_auto_assigned: bool = False,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO applied_work_settings (owner_id, staff_id, work_date, setting_id, is_auto_assigned)
                VALUES (%s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE setting_id=VALUES(setting_id), is_auto_assigned=VALUES(is_auto_assigned)
                """,
                (owner_id, int(staff_id), work_date, int(setting_id), 1 if is_auto_assigned else 0),
            )

            # lastrowid is 0 when the row was updated.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                "SELECT applied_id FROM applied_work_settings WHERE staff_id=%s AND work_date=%s",
                (int(staff_id), work_date),
            )
            r = fetchone(cur)
            return int(r["applied_id"]) if r else 0

    def clear_applied(self, staff_id: int, work_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM applied_work_settings WHERE staff_id=%s AND work_date=%s",
                (int(staff_id), work_date),
            )
            return cur.rowcount > 0

    def list_applied(self, staff_id: int, start: date, end: date) -> Sequence[AppliedWorkSetting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_APPLIED_COLUMNS}
                FROM applied_work_settings
                WHERE staff_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date
                """,
                (int(staff_id), start, end),
            )
            return [_to_applied(r) for r in fetchall(cur)]
