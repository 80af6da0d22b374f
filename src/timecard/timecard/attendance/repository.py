from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import AttendanceHistory, AttendanceRecord, Correction, HistoryEntry, NewRecord


class AttendanceRepository(Protocol):
    """Ledger storage.

    Every mutating method runs as one transaction: either all of its writes
    commit or none do.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_by_pair_id(self, owner_id: int, pair_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def latest_clock_in_before(self, owner_id: int, staff_id: int, before: int) -> Optional[AttendanceRecord]:
        """Clock-in with the greatest timestamp strictly less than `before`."""

        raise NotImplementedError

    def list_between(
        self,
        owner_id: int,
        start: int,
        end: int,
        *,
        staff_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        """Records with start <= timestamp <= end, timestamp ascending."""

        raise NotImplementedError

    def insert_record(
        self,
        record: NewRecord,
        *,
        self_pair: bool = False,
        history: Optional[HistoryEntry] = None,
    ) -> AttendanceRecord:
        """Insert a record, optionally set pair_id to its own id and append history."""

        raise NotImplementedError

    def insert_pair(self, records: Sequence[NewRecord]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def apply_correction(self, attendance_id: int, correction: Correction, history: HistoryEntry) -> AttendanceRecord:
        """Lock the record, append history, then patch timestamp/note/correction fields.

        The old timestamp and note in the history entry come from the locked
        row. Raises NotFoundError when the record no longer exists.
        """

        raise NotImplementedError

    def delete_with_history(self, deletions: Sequence[tuple[int, HistoryEntry]]) -> int:
        """For each (attendance_id, entry): lock, append history, then delete.

        Raises NotFoundError, writing nothing, when any record is already gone.
        """

        raise NotImplementedError

    def history_for_records(self, attendance_ids: Iterable[int]) -> Sequence[AttendanceHistory]:
        raise NotImplementedError
