"""
Constants shared across the engine
"""

SERVICE_NAME = "site-workforce-engine"
SYSTEM_CREDIT = "Site Workforce Engine - attendance and task execution"

# Mean Earth radius used by every distance computation
EARTH_RADIUS_M = 6_371_000

# Role constants
ROLE_WORKER = "WORKER"
ROLE_SUPERVISOR = "SUPERVISOR"
ROLE_ADMIN = "ADMIN"

# Location log types
LOG_TYPE_PING = "PING"
LOG_TYPE_CHECK_IN = "CHECK_IN"
LOG_TYPE_CHECK_OUT = "CHECK_OUT"
LOG_TYPE_TASK_START = "TASK_START"
