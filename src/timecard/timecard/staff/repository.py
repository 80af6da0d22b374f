from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Staff


class StaffRepository(Protocol):
    def get_by_id(self, staff_id: int) -> Optional[Staff]:
        raise NotImplementedError

    def get_by_qr_code(self, qr_code: str) -> Optional[Staff]:
        raise NotImplementedError

    def find_by_employee_id(self, employee_id: str) -> Sequence[Staff]:
        """Staff carrying `employee_id` across all owners; two rows are enough to detect a clash."""

        raise NotImplementedError

    def list_for_owner(self, owner_id: int, *, is_active: Optional[bool] = None) -> Sequence[Staff]:
        """Newest first. `is_active=None` returns both active and inactive staff."""

        raise NotImplementedError

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
        raise NotImplementedError

    def update_staff(self, *, staff_id: int, name: str, email: Optional[str], tags: Sequence[str]) -> bool:
        raise NotImplementedError

    def set_active(self, staff_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError
