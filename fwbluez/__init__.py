"""
fwbluez - BlueZ device discovery and GATT transport for firmware updates
"""

__version__ = "0.3.0"

# ---------------------------------------------------------------------------
# Initialise logging on *package import* so every code path (even when the
# CLI is not used) writes to the per-type log files.
# ---------------------------------------------------------------------------
import importlib as _importlib

_importlib.import_module("fwbluez.core.log")  # noqa: F401 – side-effect import
