from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..core.exceptions import UnauthenticatedError


@dataclass(frozen=True)
class AuthContext:
    """Acting owner for one operation; every query is scoped to owner_id."""

    owner_id: int


def _as_owner_id(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        owner_id = int(value)
    except (TypeError, ValueError):
        return None
    return owner_id if owner_id > 0 else None


def resolve_auth_context(
    session: Mapping[str, Any],
    headers: Mapping[str, str],
    *,
    header_name: str,
    allow_header: bool,
) -> AuthContext:
    """Resolve the acting owner once at the request boundary.

    Session login wins; an externally supplied tenant-user id header is only
    honoured when enabled in settings.
    """

    owner_id = _as_owner_id(session.get("user_id"))
    if owner_id is None and allow_header:
        owner_id = _as_owner_id(headers.get(header_name))
    if owner_id is None:
        raise UnauthenticatedError("Authentication required")
    return AuthContext(owner_id=owner_id)
