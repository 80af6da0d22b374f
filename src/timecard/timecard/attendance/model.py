from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import RecordType


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one clock event.

    `timestamp` is UTC epoch milliseconds. A finalized clock_in carries
    `pair_id == str(attendance_id)` unless it was created as a manual pair.
    """

    attendance_id: int
    owner_id: int
    staff_id: int
    record_type: RecordType
    timestamp: int
    pair_id: Optional[str] = None
    note: Optional[str] = None
    is_manual_entry: bool = False
    corrected_at: Optional[int] = None
    correction_reason: Optional[str] = None

    @property
    def pair_key(self) -> str:
        """Pair id, falling back to the record's own id."""

        return self.pair_id or str(self.attendance_id)


@dataclass(frozen=True)
class NewRecord:
    """Insert payload for a record whose id is assigned by the store."""

    owner_id: int
    staff_id: int
    record_type: RecordType
    timestamp: int
    pair_id: Optional[str] = None
    note: Optional[str] = None
    is_manual_entry: bool = False


@dataclass(frozen=True)
class Correction:
    timestamp: int
    note: Optional[str]
    corrected_at: int
    correction_reason: str


@dataclass(frozen=True)
class HistoryEntry:
    """Audit payload. `new_timestamp=None` marks a deletion, `old_timestamp=None` a creation.

    attendance_id/pair_id/record_type may be left empty for records that do
    not exist yet; the repository fills them from the inserted row.
    """

    modified_by: int
    modified_at: int
    old_timestamp: Optional[int] = None
    new_timestamp: Optional[int] = None
    old_note: Optional[str] = None
    new_note: Optional[str] = None
    attendance_id: Optional[int] = None
    pair_id: Optional[str] = None
    record_type: Optional[RecordType] = None


@dataclass(frozen=True)
class AttendanceHistory:
    history_id: int
    attendance_id: int
    pair_id: Optional[str]
    record_type: Optional[RecordType]
    old_timestamp: Optional[int]
    new_timestamp: Optional[int]
    old_note: Optional[str]
    new_note: Optional[str]
    modified_by: int
    modified_at: int

    @property
    def is_deletion(self) -> bool:
        return self.new_timestamp is None

    @property
    def is_creation(self) -> bool:
        return self.old_timestamp is None and self.new_timestamp is not None
