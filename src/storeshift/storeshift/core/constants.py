"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_HISTORY_LIMIT = 30
DEFAULT_APPROVAL_LIST_LIMIT = 50
DEFAULT_NOTIFICATION_LIMIT = 50
DEFAULT_FANOUT_WORKERS = 8
DEFAULT_STORE_TIMEZONE = "Asia/Kolkata"

# Store schedule (local time of day)
MORNING_START = "09:30"
LUNCH_START = "13:40"
LUNCH_END = "15:30"
EVENING_END = "21:30"

CHECK_IN_GRACE_MINUTES = 5
CHECK_IN_EARLY_MINUTES = 15
CHECK_OUT_EARLY_MINUTES = 30

# Collections
ATTENDANCE = "attendance"
LATE_APPROVALS = "lateApprovals"
LATE_PERMISSIONS = "latePermissions"
NOTIFICATIONS = "notifications"
USERS = "users"

COLLECTIONS = (ATTENDANCE, LATE_APPROVALS, LATE_PERMISSIONS, NOTIFICATIONS, USERS)
