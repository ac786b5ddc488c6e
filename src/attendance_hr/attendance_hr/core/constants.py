"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_STANDARD_DAILY_HOURS = 8.0
DEFAULT_REPORT_DAYS = 7
DEFAULT_START_TIME = time(9, 0)
DEFAULT_END_TIME = time(18, 0)
DEFAULT_BREAK_MINUTES = 60

# Monday=0 ... Sunday=6, as returned by date.weekday()
DEFAULT_WORKING_DAYS = frozenset({0, 1, 2, 3, 4})

CALENDAR_CELLS = 42

MIN_PASSWORD_LENGTH = 6
EMPLOYEE_CODE_PREFIX = "EMP"
