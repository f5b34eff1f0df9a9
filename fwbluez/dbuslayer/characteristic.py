"""Short-lived proxy for a BlueZ *GattCharacteristic1* object.

A proxy is built for one call and dropped right after, so nothing is kept
between reads and writes.  Use it as a context manager::

    with GattCharacteristicProxy.open(bus, path) as char:
        data = char.read_value()
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import dbus
import dbus.exceptions

from fwbluez.bt_ref.constants import (
    BLUEZ_SERVICE_NAME,
    GATT_CHARACTERISTIC_INTERFACE,
)
from fwbluez.core import config
from fwbluez.core.errors import (
    PHASE_CONNECT,
    PHASE_READ,
    PHASE_WRITE,
    RemoteCallFailedError,
    describe_dbus_error,
    is_timeout_error,
)
from fwbluez.core.log import print_and_log, LOG__DEBUG

__all__ = ["GattCharacteristicProxy"]


def _offset_options(offset: int = 0) -> dbus.Dictionary:
    return dbus.Dictionary({"offset": dbus.UInt16(offset)}, signature="sv")


class GattCharacteristicProxy:
    """Wrapper around the *GattCharacteristic1* interface at one object path."""

    def __init__(self, bus, path: str, timeout: float = config.PROXY_TIMEOUT_IN_SECONDS):
        self.path = path
        self.timeout = timeout
        try:
            obj = bus.get_object(BLUEZ_SERVICE_NAME, path, introspect=False)
            self._char_iface: Optional[dbus.Interface] = dbus.Interface(
                obj, GATT_CHARACTERISTIC_INTERFACE
            )
        except dbus.exceptions.DBusException as exc:
            raise RemoteCallFailedError(
                PHASE_CONNECT, describe_dbus_error(exc), is_timeout_error(exc)
            ) from exc

    @classmethod
    @contextmanager
    def open(
        cls, bus, path: str, timeout: float = config.PROXY_TIMEOUT_IN_SECONDS
    ) -> Iterator["GattCharacteristicProxy"]:
        proxy = cls(bus, path, timeout)
        try:
            yield proxy
        finally:
            proxy.close()

    def close(self) -> None:
        self._char_iface = None

    def _iface(self) -> dbus.Interface:
        if self._char_iface is None:
            raise RemoteCallFailedError(PHASE_CONNECT, f"proxy for {self.path} already released")
        return self._char_iface

    # ------------------------------------------------------------------
    # Read / Write helpers
    # ------------------------------------------------------------------
    def read_value(self, offset: int = 0) -> bytes:
        opts = _offset_options(offset)
        try:
            raw = self._iface().ReadValue(opts, timeout=self.timeout)
        except dbus.exceptions.DBusException as exc:
            raise RemoteCallFailedError(
                PHASE_READ, describe_dbus_error(exc), is_timeout_error(exc)
            ) from exc
        result = bytes(raw)
        print_and_log(f"[DEBUG] Read {len(result)} bytes from {self.path}", LOG__DEBUG)
        return result

    def write_value(self, value: bytes, offset: int = 0) -> None:
        array = dbus.ByteArray(bytes(value))
        opts = _offset_options(offset)
        try:
            self._iface().WriteValue(array, opts, timeout=self.timeout)
        except dbus.exceptions.DBusException as exc:
            raise RemoteCallFailedError(
                PHASE_WRITE, describe_dbus_error(exc), is_timeout_error(exc)
            ) from exc
        print_and_log(f"[DEBUG] Wrote {len(array)} bytes to {self.path}", LOG__DEBUG)
