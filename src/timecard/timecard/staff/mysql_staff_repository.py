from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json_list, fetchall, fetchone, load_json_list
from .model import Staff
from .repository import StaffRepository

_COLUMNS = "staff_id, owner_id, name, employee_id, qr_code, email, tags, is_active"


def _to_staff(r: dict) -> Staff:
    return Staff(
        staff_id=int(r["staff_id"]),
        owner_id=int(r["owner_id"]),
        name=r["name"],
        employee_id=r["employee_id"],
        qr_code=r["qr_code"],
        email=r.get("email"),
        tags=tuple(load_json_list(r.get("tags"))),
        is_active=bool(r["is_active"]),
    )


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value) -> Optional[Staff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff WHERE {where}=%s LIMIT 1", (value,))
            r = fetchone(cur)
            return _to_staff(r) if r else None

    def get_by_id(self, staff_id: int) -> Optional[Staff]:
        return self._get_one("staff_id", staff_id)

    def get_by_qr_code(self, qr_code: str) -> Optional[Staff]:
        return self._get_one("qr_code", qr_code)

    def find_by_employee_id(self, employee_id: str) -> Sequence[Staff]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM staff WHERE employee_id=%s LIMIT 2", (employee_id,))
            return [_to_staff(r) for r in fetchall(cur)]

    def list_for_owner(self, owner_id: int, *, is_active: Optional[bool] = None) -> Sequence[Staff]:
        sql = f"SELECT {_COLUMNS} FROM staff WHERE owner_id=%s"
        params: list = [owner_id]
        if is_active is not None:
            sql += " AND is_active=%s"
            params.append(1 if is_active else 0)
        sql += " ORDER BY staff_id DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_staff(r) for r in fetchall(cur)]

    def create_staff(
        self,
        *,
        owner_id: int,
        name: str,
        employee_id: str,
        qr_code: str,
        email: Optional[str],
        tags: Sequence[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO staff (owner_id, name, employee_id, qr_code, email, tags, is_active)
                VALUES (%s, %s, %s, %s, %s, %s, 1)
                """,
                (owner_id, name, employee_id, qr_code, email, dump_json_list(list(tags))),
            )
            return int(cur.lastrowid)

    def update_staff(self, *, staff_id: int, name: str, email: Optional[str], tags: Sequence[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE staff SET name=%s, email=%s, tags=%s WHERE staff_id=%s",
                (name, email, dump_json_list(list(tags)), staff_id),
            )
            return cur.rowcount > 0

    def set_active(self, staff_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE staff SET is_active=%s WHERE staff_id=%s", (1 if is_active else 0, staff_id))
            return cur.rowcount > 0
