"""
Core package initialisation for fwbluez.

Kept lightweight: configuration, logging and the error taxonomy only.
"""

from fwbluez.core.errors import (
    FwBluezError,
    UnsupportedOperationError,
    NotSupportedError,
    RemoteCallFailedError,
    ConnectionFailedError,
    DiscoveryFailedError,
)

__all__ = [
    "FwBluezError",
    "UnsupportedOperationError",
    "NotSupportedError",
    "RemoteCallFailedError",
    "ConnectionFailedError",
    "DiscoveryFailedError",
]
