from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Owner account (tenant). All staff and attendance belong to one owner.

    Plain data object, no DB access code.
    """

    user_id: int
    full_name: str
    username: str
    password_hash: str
    is_active: bool = True
