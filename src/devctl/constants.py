"""Global constants for devctl."""

# File layout, relative to the project directory

LOGS_DIR_NAME = "logs"
LOG_FILE_NAME = "dev.log"
PID_FILE_NAME = "dev.pid"

# Underlying dev command

DEFAULT_DEV_COMMAND = ("npm", "run", "dev")
PROBE_FLAG = "--help"
PROBE_TIMEOUT_SECONDS = 30.0

# Lifecycle timing

START_GRACE_SECONDS = 2.0
STOP_POLL_INTERVAL_SECONDS = 1.0
STOP_MAX_ATTEMPTS = 10
RESTART_PAUSE_SECONDS = 2.0

# Log following

DEFAULT_TAIL_LINES = 50
FOLLOWER_KILL_TIMEOUT_SECONDS = 2.0

# Banners written into the log file

BANNER_RULE_WIDTH = 50

# Environment variables

ENV_COMMAND = "DEVCTL_COMMAND"
ENV_PROBE_COMMAND = "DEVCTL_PROBE_COMMAND"
ENV_LOG_LEVEL = "DEVCTL_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
