"""
Core configuration settings for fwbluez.
"""

import os
from pathlib import Path

from fwbluez.bt_ref.constants import COLDPLUG_TIMEOUT_MS, DEFAULT_PROXY_TIMEOUT_MS

# Base paths
DATA_DIR = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local/share")) / "fwbluez"
CONFIG_DIR = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / "fwbluez"

# Environment toggles
ENV_VERBOSE = "FWBLUEZ_VERBOSE"
ENV_LOG_LEVEL = "FWBLUEZ_LOG_LEVEL"
ENV_LOG_DIR = "FWBLUEZ_LOG_DIR"
ENV_UUID_PATHS = "FWBLUEZ_UUID_PATHS"

# Logging configuration
LOG_DIR = Path(os.getenv(ENV_LOG_DIR, DATA_DIR / "logs"))

# Log types
LOG__GENERAL = "GENERAL"
LOG__DEBUG = "DEBUG"
LOG__DISCOVERY = "DISCOVERY"

# Default timeout values
PROXY_TIMEOUT_IN_SECONDS = DEFAULT_PROXY_TIMEOUT_MS / 1000.0
COLDPLUG_TIMEOUT_IN_SECONDS = COLDPLUG_TIMEOUT_MS / 1000.0

# UUID -> object-path bindings
DEFAULT_UUID_PATHS_FILE = CONFIG_DIR / "uuid-paths.yaml"

_FALSE_VALUES = {"", "0", "false", "no", "off"}


def verbose_enabled() -> bool:
    """Return True when per-property diagnostic dumps were requested.

    Read on every call so tests and long-running callers can flip the
    variable at runtime.
    """
    value = os.getenv(ENV_VERBOSE)
    if value is None:
        return False
    return value.strip().lower() not in _FALSE_VALUES


def uuid_paths_file() -> Path:
    """Location of the UUID binding file, honouring ``FWBLUEZ_UUID_PATHS``."""
    override = os.getenv(ENV_UUID_PATHS)
    return Path(override) if override else DEFAULT_UUID_PATHS_FILE
