"""Core error classes for fwbluez."""

from __future__ import annotations

from typing import Optional

import dbus.exceptions

from fwbluez.bt_ref.constants import (
    DBUS_TIMEOUT_ERROR_NAMES,
    RESULT_ERR,
    RESULT_ERR_METHOD_CALL_FAIL,
    RESULT_ERR_NO_REPLY,
    RESULT_ERR_NOT_CONNECTED,
    RESULT_ERR_NOT_SUPPORTED,
)

# Phases reported by RemoteCallFailedError / DiscoveryFailedError
PHASE_CONNECT = "connect"
PHASE_READ = "read"
PHASE_WRITE = "write"
PHASE_GET_MANAGED_OBJECTS = "GetManagedObjects"


class FwBluezError(Exception):
    """Base exception for every failure raised by fwbluez.

    The `.code` attribute maps to ``bt_ref.constants`` RESULT_* values so
    callers that only care about a status code do not need to inspect the type.
    """

    def __init__(self, message: str, code: int = RESULT_ERR):
        super().__init__(message)
        self.code = code


class UnsupportedOperationError(FwBluezError):
    """Raised when a device type does not implement read or write."""

    def __init__(self, operation: str):
        super().__init__(f"{operation} not supported", RESULT_ERR_NOT_SUPPORTED)
        self.operation = operation


class NotSupportedError(FwBluezError):
    """Raised when a UUID has no object path bound to it."""

    def __init__(self, uuid: str):
        super().__init__(f"UUID {uuid} not supported", RESULT_ERR_NOT_SUPPORTED)
        self.uuid = uuid


class RemoteCallFailedError(FwBluezError):
    """Raised when building a characteristic proxy or calling it fails."""

    _PHASE_TEXT = {
        PHASE_CONNECT: "Failed to connect GattCharacteristic1",
        PHASE_READ: "Failed to read GattCharacteristic1",
        PHASE_WRITE: "Failed to write GattCharacteristic1",
    }

    def __init__(self, phase: str, detail: str, timed_out: bool = False):
        prefix = self._PHASE_TEXT.get(phase, f"Failed to {phase}")
        if timed_out:
            prefix += " (timed out)"
        super().__init__(
            f"{prefix}: {detail}",
            RESULT_ERR_NO_REPLY if timed_out else RESULT_ERR_METHOD_CALL_FAIL,
        )
        self.phase = phase
        self.detail = detail
        self.timed_out = timed_out


class ConnectionFailedError(FwBluezError):
    """Raised when the system bus cannot be reached."""

    def __init__(self, reason: Optional[str] = None):
        msg = "Failed to connect to bluez dbus"
        if reason:
            msg += f": {reason}"
        super().__init__(msg, RESULT_ERR_NOT_CONNECTED)
        self.reason = reason


class DiscoveryFailedError(FwBluezError):
    """Raised when the managed-object enumeration cannot be performed."""

    def __init__(self, phase: str, detail: str):
        if phase == PHASE_CONNECT:
            prefix = "Failed to connect to bluez dbus"
        else:
            prefix = f"Failed to call {phase}"
        super().__init__(f"{prefix}: {detail}", RESULT_ERR_METHOD_CALL_FAIL)
        self.phase = phase
        self.detail = detail


def is_timeout_error(exc: BaseException) -> bool:
    """Return True when *exc* reports a D-Bus call that ran out of time."""
    if isinstance(exc, dbus.exceptions.DBusException):
        return exc.get_dbus_name() in DBUS_TIMEOUT_ERROR_NAMES
    return isinstance(exc, TimeoutError)


def describe_dbus_error(exc: BaseException) -> str:
    """Render a transport error as ``name: message`` for error details."""
    if isinstance(exc, dbus.exceptions.DBusException):
        name = exc.get_dbus_name()
        msg = exc.get_dbus_message() or ""
        if name and msg:
            return f"{name}: {msg}"
        return name or msg or str(exc)
    return str(exc) or type(exc).__name__


__all__ = [
    "FwBluezError",
    "UnsupportedOperationError",
    "NotSupportedError",
    "RemoteCallFailedError",
    "ConnectionFailedError",
    "DiscoveryFailedError",
    "is_timeout_error",
    "describe_dbus_error",
    "PHASE_CONNECT",
    "PHASE_READ",
    "PHASE_WRITE",
    "PHASE_GET_MANAGED_OBJECTS",
]
