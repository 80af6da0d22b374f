from __future__ import annotations

from typing import Iterable, Optional

from ..core.enums import RecordType
from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_record_type(value) -> RecordType:
    try:
        return RecordType(value)
    except ValueError:
        raise ValidationError(f"Invalid record type: {value!r}") from None


def require_timestamp(value, field_name: str = "timestamp") -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be epoch milliseconds")
    try:
        ts = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be epoch milliseconds") from None
    if ts < 0:
        raise ValidationError(f"{field_name} must be epoch milliseconds")
    return ts


def clean_tags(tags: Optional[Iterable[str]]) -> list[str]:
    out: list[str] = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in out:
            out.append(tag)
    return out


def require_int(value, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer") from None


def optional_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_int(value, field_name)
