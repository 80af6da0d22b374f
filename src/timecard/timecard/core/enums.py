from __future__ import annotations

from enum import Enum


class RecordType(str, Enum):
    """Kind of clock event stored in the ledger."""

    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class DayStatus(str, Enum):
    """Status of a staff member in the today view."""

    PRESENT = "present"
    COMPLETED = "completed"
    # Initial placeholder only; staff with no clock-in today are not listed.
    ABSENT = "absent"


class IssueLevel(str, Enum):
    WARNING = "warning"
    ERROR = "error"
