"""Constants and defaults.

Note: Keep constants here to avoid magic values spread across code.
"""

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DEFAULT_STATS_DAYS = 30
DEFAULT_LEAVE_LIST_LIMIT = 200
