from __future__ import annotations

import logging
import secrets
import string
from typing import Iterable, Optional, Sequence

from ..auth.context import AuthContext
from ..common.datetime_utils import now_ms
from ..common.qr_image import render_qr_png
from ..common.validators import clean_tags, require_non_empty
from ..core.constants import EMPLOYEE_ID_ATTEMPTS, QR_TOKEN_RANDOM_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from .model import Staff
from .repository import StaffRepository

logger = logging.getLogger(__name__)

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def make_employee_id(timestamp_ms: int) -> str:
    return f"EMP{str(int(timestamp_ms))[-8:]}"


def make_qr_token(employee_id: str) -> str:
    suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(QR_TOKEN_RANDOM_LENGTH))
    return f"{employee_id}_{suffix}"


def find_staff_by_token(staff: StaffRepository, token: str) -> Staff:
    """Look up staff by QR token without caller identity.

    Falls back to the employee id so badges printed with only the employee
    number keep working. An employee id held by more than one staff member
    matches nobody.
    """

    token = (token or "").strip()
    if not token:
        raise NotFoundError("Staff not found for this QR code")
    found = staff.get_by_qr_code(token)
    if found:
        return found
    matches = staff.find_by_employee_id(token)
    if len(matches) > 1:
        logger.warning("employee id %s is shared by %s staff; refusing QR lookup", token, len(matches))
    if len(matches) != 1:
        raise NotFoundError("Staff not found for this QR code")
    return matches[0]


class StaffService:
    """Staff directory scoped to the acting owner."""

    def __init__(self, staff: StaffRepository):
        self._staff = staff

    def get(self, auth: AuthContext, staff_id: int) -> Staff:
        staff = self._staff.get_by_id(int(staff_id))
        if not staff or staff.owner_id != auth.owner_id:
            raise NotFoundError("Staff not found")
        return staff

    def list_active(self, auth: AuthContext) -> Sequence[Staff]:
        return self._staff.list_for_owner(auth.owner_id, is_active=True)

    def list_inactive(self, auth: AuthContext) -> Sequence[Staff]:
        return self._staff.list_for_owner(auth.owner_id, is_active=False)

    def all_tags(self, auth: AuthContext) -> list[str]:
        tags: set[str] = set()
        for s in self._staff.list_for_owner(auth.owner_id):
            tags.update(s.tags)
        return sorted(tags)

    def create_staff(
        self,
        auth: AuthContext,
        *,
        name: str,
        tags: Optional[Iterable[str]] = None,
        email: Optional[str] = None,
        now: Optional[int] = None,
    ) -> Staff:
        name = require_non_empty(name, "Name")
        employee_id = self._unused_employee_id(now if now is not None else now_ms())
        staff_id = self._staff.create_staff(
            owner_id=auth.owner_id,
            name=name,
            employee_id=employee_id,
            qr_code=make_qr_token(employee_id),
            email=(email or "").strip() or None,
            tags=clean_tags(tags),
        )
        logger.info("created staff staff_id=%s owner_id=%s", staff_id, auth.owner_id)
        return self.get(auth, staff_id)

    def _unused_employee_id(self, timestamp_ms: int) -> str:
        for step in range(EMPLOYEE_ID_ATTEMPTS):
            candidate = make_employee_id(timestamp_ms + step)
            if not self._staff.find_by_employee_id(candidate):
                return candidate
        raise ValidationError("Could not allocate a free employee id")

    def update_staff(
        self,
        auth: AuthContext,
        staff_id: int,
        *,
        name: str,
        tags: Optional[Iterable[str]] = None,
        email: Optional[str] = None,
    ) -> Staff:
        staff = self.get(auth, staff_id)
        self._staff.update_staff(
            staff_id=staff.staff_id,
            name=require_non_empty(name, "Name"),
            email=(email or "").strip() or None,
            tags=clean_tags(tags),
        )
        return self.get(auth, staff_id)

    def deactivate(self, auth: AuthContext, staff_ids: Iterable[int]) -> int:
        return self._set_active(auth, staff_ids, is_active=False)

    def reactivate(self, auth: AuthContext, staff_ids: Iterable[int]) -> int:
        return self._set_active(auth, staff_ids, is_active=True)

    def _set_active(self, auth: AuthContext, staff_ids: Iterable[int], *, is_active: bool) -> int:
        changed = 0
        for staff_id in staff_ids:
            staff = self._staff.get_by_id(int(staff_id))
            # Foreign or unknown ids are skipped.
            if not staff or staff.owner_id != auth.owner_id:
                continue
            if self._staff.set_active(staff.staff_id, is_active=is_active):
                changed += 1
        logger.info("set is_active=%s on %s staff owner_id=%s", is_active, changed, auth.owner_id)
        return changed

    def resolve_qr_token(self, token: str) -> Staff:
        return find_staff_by_token(self._staff, token)

    def qr_png(self, auth: AuthContext, staff_id: int) -> bytes:
        return render_qr_png(self.get(auth, staff_id).qr_code)
