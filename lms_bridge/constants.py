"""All constants for LMS Bridge."""

from typing import Final

ROOT_LOGGER_NAME: Final[str] = "lms_bridge"
VERBOSE_LOG_LEVEL: Final[int] = 5

# namespace mixed into every derived local uuid
UUID_NAMESPACE: Final[str] = "lms-bridge"

# json-rpc protocol
JSONRPC_PATH: Final[str] = "/jsonrpc.js"
JSONRPC_METHOD: Final[str] = "slim.request"
SERVER_TARGET: Final[str] = ""

# config keys
CONF_BRIDGE: Final[str] = "bridge"
CONF_ACCESSORIES: Final[str] = "accessories"
CONF_SERVER_URL: Final[str] = "serverurl"
CONF_HOST: Final[str] = "host"
CONF_PORT: Final[str] = "port"
CONF_POLL_INTERVAL: Final[str] = "pollInterval"
CONF_UPDATE_INTERVAL: Final[str] = "updateInterval"
CONF_STATUS_INTERVAL: Final[str] = "statusInterval"
CONF_TIMEOUT: Final[str] = "timeout"
CONF_USERNAME: Final[str] = "username"
CONF_PASSWORD: Final[str] = "password"
CONF_DEBUG: Final[str] = "debug"
CONF_LOG_LEVEL: Final[str] = "log_level"

# config default values
DEFAULT_HOST: Final[str] = "localhost"
DEFAULT_PORT: Final[int] = 9000
DEFAULT_DISCOVERY_INTERVAL: Final[float] = 15
DEFAULT_STATUS_INTERVAL: Final[float] = 5
DEFAULT_TIMEOUT: Final[float] = 5
PLAYERS_PAGE_SIZE: Final[int] = 50

# accessory information reported to the host
MANUFACTURER: Final[str] = "Logitech"
MODEL: Final[str] = "Squeezebox / LMS"
