"""Internal constants shared across the library."""

DEFAULT_HOME = "Camp Navarro"
DEFAULT_AUDIO_DIR = "assets/sounds"

#: Path served by tecthulhu modules when a source URL carries no path.
TECTHULHU_STATUS_PATH = "/module/status/json"

SUPPORTED_SOURCE_SCHEMES: frozenset[str] = frozenset({"http", "https"})

# ------------------------------------------------------------------
# Serial controller protocol
# ------------------------------------------------------------------

BAUDRATE = 115200
PROBE = b"*\n"
SETTLE_DELAY_S = 2.0
HANDSHAKE_TIMEOUT_S = 5.0
SEND_TIMEOUT_S = 2.0

# ------------------------------------------------------------------
# Task cadence and queue backpressure
# ------------------------------------------------------------------

POLL_INTERVAL_S = 2.0
HOTPLUG_INTERVAL_S = 10.0
REFRESH_INTERVAL_S = 2.0

STATUS_QUEUE_SIZE = 1
AUDIO_QUEUE_SIZE = 1
ERROR_QUEUE_SIZE = 16

STATUS_PUT_TIMEOUT_S = 0.75
AUDIO_PUT_TIMEOUT_S = 1.0
ERROR_PUT_TIMEOUT_S = 0.5

LOG_LEVELS: frozenset[str] = frozenset({"trace", "debug", "info", "warning", "warn", "error", "err", "fatal"})
