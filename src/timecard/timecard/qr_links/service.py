from __future__ import annotations

import logging
import secrets
import string
from typing import Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import now_ms
from ..common.validators import require_non_empty, require_timestamp
from ..core.constants import QR_LINK_ID_LENGTH
from ..core.exceptions import NotFoundError
from .model import QrLink
from .repository import QrLinkRepository

logger = logging.getLogger(__name__)

_URL_ALPHABET = string.ascii_letters + string.digits


def make_url_id() -> str:
    return "".join(secrets.choice(_URL_ALPHABET) for _ in range(QR_LINK_ID_LENGTH))


class QrLinkService:
    def __init__(self, links: QrLinkRepository):
        self._links = links

    def _owned(self, auth: AuthContext, link_id: int) -> QrLink:
        link = self._links.get_by_id(int(link_id))
        if not link or link.owner_id != auth.owner_id:
            raise NotFoundError("QR link not found")
        return link

    def get(self, auth: AuthContext, link_id: int) -> QrLink:
        return self._owned(auth, link_id)

    def list(self, auth: AuthContext) -> Sequence[QrLink]:
        return self._links.list_for_owner(auth.owner_id)

    def create(self, auth: AuthContext, *, name: str, expires_at: Optional[int] = None) -> QrLink:
        name = require_non_empty(name, "Name")
        if expires_at is not None:
            expires_at = require_timestamp(expires_at, "expires_at")
        link_id = self._links.create(owner_id=auth.owner_id, name=name, url_id=make_url_id(), expires_at=expires_at)
        logger.info("created qr link %s owner_id=%s", link_id, auth.owner_id)
        return self._owned(auth, link_id)

    def regenerate(self, auth: AuthContext, link_id: int) -> QrLink:
        link = self._owned(auth, link_id)
        self._links.regenerate(link.link_id, url_id=make_url_id())
        logger.info("regenerated qr link %s owner_id=%s", link.link_id, auth.owner_id)
        return self._owned(auth, link.link_id)

    def toggle(self, auth: AuthContext, link_id: int) -> QrLink:
        link = self._owned(auth, link_id)
        self._links.set_active(link.link_id, is_active=not link.is_active)
        return self._owned(auth, link.link_id)

    def delete(self, auth: AuthContext, link_id: int) -> None:
        link = self._owned(auth, link_id)
        self._links.delete(link.link_id)
        logger.info("deleted qr link %s owner_id=%s", link.link_id, auth.owner_id)

    def resolve(self, url_id: str, *, now: Optional[int] = None) -> QrLink:
        """Public lookup for kiosks. Inactive and expired links are reported as missing."""

        link = self._links.get_by_url_id((url_id or "").strip())
        if not link or not link.is_usable(now if now is not None else now_ms()):
            raise NotFoundError("QR link not found or expired")
        return link
