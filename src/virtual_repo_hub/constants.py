"""Application identifiers and fixed values shared across modules."""

APP_NAME = "virtual-repo-hub"

# Names that cannot be decoded as text are reported with these placeholders.
NON_UNICODE_REMOTE = "[non unicode]"
NON_UTF8_BRANCH = "[non utf-8]"

CONFIG_HOME_ENV = "VIRTUAL_REPO_HUB_HOME"
CONFIG_DIR_NAME = "virtual-repo-hub"
DOT_CONFIG_DIR_NAME = ".virtual-repo-hub"

DEVICE_ID_FILE = "deviceid"
HUB_ID_FILE = "hub"
DEVICE_CONFIG_DIR = "device"
DEFAULT_HUB = "default"

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_EXCLUDE_PATTERNS = [
    "**/node_modules",
    "**/venv",
    "**/.venv",
    "**/vendor",
    "**/__pycache__",
]
