from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Staff:
    """Domain entity: a staff member who clocks in and out."""

    staff_id: int
    owner_id: int
    name: str
    employee_id: str
    qr_code: str
    email: Optional[str] = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    is_active: bool = True
