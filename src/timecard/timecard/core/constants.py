"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import timedelta, timezone

JST = timezone(timedelta(hours=9), name="JST")
MS_PER_MINUTE = 60 * 1000
MS_PER_DAY = 24 * 60 * MS_PER_MINUTE

STANDARD_WORK_MINUTES = 480
MAX_PAIR_MINUTES = 24 * 60
SHORT_SHIFT_MINUTES = 60

# Pairs longer than this carry a fixed break.
BREAK_THRESHOLD_MINUTES = 6 * 60
BREAK_MINUTES = 60

DEFAULT_TENANT_HEADER = "X-Owner-Id"
QR_TOKEN_RANDOM_LENGTH = 13
QR_LINK_ID_LENGTH = 26
EMPLOYEE_ID_ATTEMPTS = 20
