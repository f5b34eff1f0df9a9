"""Bluetooth LE device reached through BlueZ over D-Bus.

Characteristics are addressed by UUID; the object path implementing each UUID
is supplied from configuration via :py:meth:`BluezDevice.add_uuid_path`.
Every read and write opens a fresh *GattCharacteristic1* proxy, issues one
blocking call bounded by ``DEFAULT_PROXY_TIMEOUT_MS`` and releases the proxy.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import dbus

from fwbluez.ble_ops.modalias import format_modalias_info, modalias_to_ids
from fwbluez.bt_ref.constants import (
    DEVICE_FLAG_CONNECTED,
    DEVICE_FLAG_NO_GUID_MATCHING,
)
from fwbluez.bt_ref.utils import append_kv
from fwbluez.core import config
from fwbluez.core.errors import NotSupportedError
from fwbluez.core.log import get_logger
from fwbluez.dbuslayer.ble_device import BleDevice, Describer
from fwbluez.dbuslayer.characteristic import GattCharacteristicProxy

__all__ = ["BluezDevice"]

logger = get_logger(__name__)


class BluezDevice(BleDevice):
    """A BLE device whose characteristics are BlueZ D-Bus objects.

    Parameters
    ----------
    bus
        D-Bus connection used for characteristic calls.  The backend passes
        its own connection; when omitted the shared system bus is used.
    timeout
        Per-call bound in seconds.
    """

    def __init__(
        self,
        bus=None,
        *,
        name: Optional[str] = None,
        address: Optional[str] = None,
        adapter: Optional[str] = None,
        timeout: float = config.PROXY_TIMEOUT_IN_SECONDS,
    ):
        super().__init__(name=name, address=address, adapter=adapter)
        self._bus = bus
        self.timeout = timeout
        self.uuid_paths: Dict[str, str] = {}
        self.connected = False
        self.modalias: Optional[str] = None
        self.add_flag(DEVICE_FLAG_NO_GUID_MATCHING)

    @property
    def bus(self):
        if self._bus is None:
            self._bus = dbus.SystemBus()
        return self._bus

    # ------------------------------------------------------------------
    # UUID bindings
    # ------------------------------------------------------------------
    def add_uuid_path(self, uuid: str, path: str) -> None:
        """Bind characteristic *uuid* to the D-Bus object *path*."""
        if not uuid:
            raise ValueError("uuid is required")
        if not path:
            raise ValueError("path is required")
        self.uuid_paths[uuid] = path

    def _lookup_path(self, uuid: str) -> str:
        path = self.uuid_paths.get(uuid)
        if path is None:
            raise NotSupportedError(uuid)
        return path

    # ------------------------------------------------------------------
    # Connection state
    # ------------------------------------------------------------------
    def set_connected(self, connected: bool) -> None:
        self.connected = bool(connected)
        if self.connected:
            self.add_flag(DEVICE_FLAG_CONNECTED)
        else:
            self.flags.discard(DEVICE_FLAG_CONNECTED)

    def is_connected(self) -> bool:
        return self.connected

    # ------------------------------------------------------------------
    # Modalias
    # ------------------------------------------------------------------
    def set_modalias(self, modalias: str) -> None:
        """Derive instance and vendor IDs from a BlueZ ``Modalias`` string.

        Unknown shapes and unreadable fields add nothing and never raise.
        """
        if modalias is None:
            raise ValueError("modalias is required")
        self.modalias = modalias
        ids = modalias_to_ids(modalias)
        for instance_id in ids.instance_ids:
            self.add_instance_id(instance_id)
        for instance_id in ids.quirk_instance_ids:
            self.add_instance_id(instance_id, quirks_only=True)
        for vendor_id in ids.vendor_ids:
            self.add_vendor_id(vendor_id)
        if not ids.instance_ids and not ids.quirk_instance_ids:
            logger.debug("Modalias %r yielded no identifiers", modalias)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _read_impl(self, uuid: str) -> bytes:
        path = self._lookup_path(uuid)
        with GattCharacteristicProxy.open(self.bus, path, self.timeout) as char:
            return char.read_value(offset=0)

    def _write_impl(self, uuid: str, data: bytes) -> None:
        path = self._lookup_path(uuid)
        with GattCharacteristicProxy.open(self.bus, path, self.timeout) as char:
            char.write_value(bytes(data), offset=0)

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------
    def describers(self) -> List[Describer]:
        return super().describers() + [self._describe_bluez]

    def _describe_bluez(self, lines: List[str], indent: int) -> None:
        if self.modalias is not None:
            append_kv(lines, indent, "Modalias", format_modalias_info(self.modalias))
        append_kv(lines, indent, "Connected", str(self.connected).lower())
        for uuid, path in self.uuid_paths.items():
            append_kv(lines, indent + 1, uuid, path)
