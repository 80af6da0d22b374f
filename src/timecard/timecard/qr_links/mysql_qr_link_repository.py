from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import QrLink
from .repository import QrLinkRepository

_COLUMNS = "link_id, owner_id, name, url_id, is_active, expires_at"


def _to_link(r: dict) -> QrLink:
    return QrLink(
        link_id=int(r["link_id"]),
        owner_id=int(r["owner_id"]),
        name=r["name"],
        url_id=r["url_id"],
        is_active=bool(r["is_active"]),
        expires_at=int(r["expires_at"]) if r.get("expires_at") is not None else None,
    )


class MySQLQrLinkRepository(QrLinkRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_owner(self, owner_id: int) -> Sequence[QrLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM qr_links WHERE owner_id=%s ORDER BY link_id DESC", (owner_id,))
            return [_to_link(r) for r in fetchall(cur)]

    def get_by_id(self, link_id: int) -> Optional[QrLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM qr_links WHERE link_id=%s", (int(link_id),))
            r = fetchone(cur)
            return _to_link(r) if r else None

    def get_by_url_id(self, url_id: str) -> Optional[QrLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM qr_links WHERE url_id=%s LIMIT 1", (url_id,))
            r = fetchone(cur)
            return _to_link(r) if r else None

    def create(self, *, owner_id: int, name: str, url_id: str, expires_at: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO qr_links (owner_id, name, url_id, is_active, expires_at) VALUES (%s, %s, %s, 1, %s)",
                (owner_id, name, url_id, expires_at),
            )
            return int(cur.lastrowid)

    def regenerate(self, link_id: int, *, url_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE qr_links SET url_id=%s, is_active=1 WHERE link_id=%s", (url_id, int(link_id)))
            return cur.rowcount > 0

    def set_active(self, link_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE qr_links SET is_active=%s WHERE link_id=%s", (1 if is_active else 0, int(link_id)))
            return cur.rowcount > 0

    def delete(self, link_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM qr_links WHERE link_id=%s", (int(link_id),))
            return cur.rowcount > 0
