"""BlueZ backend: bus ownership, coldplug and the device table.

The backend owns one private system-bus connection between :py:meth:`setup`
and :py:meth:`close`.  :py:meth:`coldplug` asks BlueZ for every object it
manages, turns each ``org.bluez.Device1`` property set into a
:class:`BluezDevice` and announces it to the registered handlers.

A coldplug pass is a full reconciliation: once it succeeds, devices that BlueZ
no longer reports are dropped from the table and announced as removed.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

import dbus
import dbus.exceptions

from fwbluez.bt_ref.constants import (
    BLUEZ_SERVICE_NAME,
    DBUS_OM_IFACE,
    DBUS_OM_PATH,
    DEVICE_INTERFACE,
    DEVICE_PROPERTY_ADAPTER,
    DEVICE_PROPERTY_ADDRESS,
    DEVICE_PROPERTY_CONNECTED,
    DEVICE_PROPERTY_ICON,
    DEVICE_PROPERTY_MODALIAS,
    DEVICE_PROPERTY_NAME,
)
from fwbluez.bt_ref.utils import dbus_to_python
from fwbluez.core import config
from fwbluez.core.errors import (
    PHASE_CONNECT,
    PHASE_GET_MANAGED_OBJECTS,
    ConnectionFailedError,
    DiscoveryFailedError,
    describe_dbus_error,
)
from fwbluez.core.log import print_and_log, LOG__DEBUG, LOG__DISCOVERY, get_logger
from fwbluez.dbuslayer.device_bluez import BluezDevice

__all__ = [
    "BluezBackend",
    "load_device_properties",
    "PROPERTY_DECODERS",
]

logger = get_logger(__name__)

DeviceHandler = Callable[[BluezDevice], None]


def _private_system_bus():
    return dbus.SystemBus(private=True)


# ---------------------------------------------------------------------------
# Device1 property decoding
# ---------------------------------------------------------------------------
def _is_string(value: Any) -> bool:
    return isinstance(value, str)


def _is_boolean(value: Any) -> bool:
    return isinstance(value, (bool, dbus.Boolean))


def _decode_address(device: BluezDevice, value: Any) -> bool:
    if not _is_string(value):
        return False
    device.set_address(str(value))
    return True


def _decode_adapter(device: BluezDevice, value: Any) -> bool:
    if not _is_string(value):
        return False
    device.set_adapter(str(value))
    return True


def _decode_name(device: BluezDevice, value: Any) -> bool:
    if not _is_string(value):
        return False
    device.set_name(str(value))
    return True


def _decode_icon(device: BluezDevice, value: Any) -> bool:
    if not _is_string(value):
        return False
    device.add_icon(str(value))
    return True


def _decode_modalias(device: BluezDevice, value: Any) -> bool:
    if not _is_string(value):
        return False
    device.set_modalias(str(value))
    return True


def _decode_connected(device: BluezDevice, value: Any) -> bool:
    if not _is_boolean(value):
        return False
    if bool(value):
        device.set_connected(True)
    return True


PROPERTY_DECODERS: Dict[str, Callable[[BluezDevice, Any], bool]] = {
    DEVICE_PROPERTY_ADDRESS: _decode_address,
    DEVICE_PROPERTY_ADAPTER: _decode_adapter,
    DEVICE_PROPERTY_NAME: _decode_name,
    DEVICE_PROPERTY_ICON: _decode_icon,
    DEVICE_PROPERTY_MODALIAS: _decode_modalias,
    DEVICE_PROPERTY_CONNECTED: _decode_connected,
}


def load_device_properties(
    properties: Mapping[str, Any], bus=None, verbose: Optional[bool] = None
) -> BluezDevice:
    """Return a new BluezDevice populated from one Device1 property set.

    Unknown keys and values of the wrong type are skipped; this never raises
    for bad input so one odd device cannot abort a coldplug pass.  When
    *verbose* is None the ``FWBLUEZ_VERBOSE`` environment toggle decides
    whether each property is dumped to the debug log.
    """
    device = BluezDevice(bus)
    if verbose is None:
        verbose = config.verbose_enabled()
    for key, value in properties.items():
        key = str(key)
        if verbose:
            print_and_log(f"[*] {key} = {dbus_to_python(value)!r}", LOG__DEBUG)
        decoder = PROPERTY_DECODERS.get(key)
        if decoder is None:
            continue
        if not decoder(device, value):
            logger.debug("Ignoring %s with unexpected type %s", key, type(value).__name__)
    return device


class BluezBackend:
    """Enumerates BlueZ LE devices and keeps them keyed by address."""

    name = "bluez"

    def __init__(
        self,
        bus_factory: Callable[[], Any] = _private_system_bus,
        coldplug_timeout: float = config.COLDPLUG_TIMEOUT_IN_SECONDS,
        verbose: Optional[bool] = None,
    ):
        self._bus_factory = bus_factory
        self.coldplug_timeout = coldplug_timeout
        self.verbose = verbose
        self._bus = None
        self._devices: Dict[str, BluezDevice] = {}
        self._lock = threading.RLock()
        self._added_handlers: List[DeviceHandler] = []
        self._removed_handlers: List[DeviceHandler] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def setup(self) -> None:
        """Open the system-bus connection used by this backend."""
        with self._lock:
            if self._bus is not None:
                return
            try:
                self._bus = self._bus_factory()
            except dbus.exceptions.DBusException as exc:
                raise ConnectionFailedError(describe_dbus_error(exc)) from exc
            print_and_log("[*] Connected to system bus", LOG__DEBUG)

    def close(self) -> None:
        """Drop every device and release the bus connection."""
        with self._lock:
            self._devices.clear()
            bus, self._bus = self._bus, None
        if bus is not None and hasattr(bus, "close"):
            bus.close()

    def __enter__(self) -> "BluezBackend":
        self.setup()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def bus(self):
        return self._bus

    def is_setup(self) -> bool:
        return self._bus is not None

    def _verbose(self) -> bool:
        if self.verbose is None:
            return config.verbose_enabled()
        return bool(self.verbose)

    def _owns(self, bus) -> bool:
        with self._lock:
            return self._bus is bus

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------
    def add_device_added_handler(self, handler: DeviceHandler) -> None:
        self._added_handlers.append(handler)

    def add_device_removed_handler(self, handler: DeviceHandler) -> None:
        self._removed_handlers.append(handler)

    def _device_added(self, device: BluezDevice) -> None:
        for handler in self._added_handlers:
            handler(device)

    def _device_removed(self, device: BluezDevice) -> None:
        for handler in self._removed_handlers:
            handler(device)

    # ------------------------------------------------------------------
    # Device table
    # ------------------------------------------------------------------
    def devices(self) -> List[BluezDevice]:
        with self._lock:
            return list(self._devices.values())

    def get_device(self, address: str) -> Optional[BluezDevice]:
        with self._lock:
            device = self._devices.get(address)
            if device is None:
                device = self._devices.get(address.upper())
            return device

    # ------------------------------------------------------------------
    # Coldplug
    # ------------------------------------------------------------------
    def _get_managed_objects(self, bus):
        try:
            om_obj = bus.get_object(BLUEZ_SERVICE_NAME, DBUS_OM_PATH, introspect=False)
            object_manager = dbus.Interface(om_obj, DBUS_OM_IFACE)
        except dbus.exceptions.DBusException as exc:
            raise DiscoveryFailedError(PHASE_CONNECT, describe_dbus_error(exc)) from exc
        try:
            return object_manager.GetManagedObjects(timeout=self.coldplug_timeout)
        except dbus.exceptions.DBusException as exc:
            raise DiscoveryFailedError(
                PHASE_GET_MANAGED_OBJECTS, describe_dbus_error(exc)
            ) from exc

    def coldplug(self) -> None:
        """Register every LE device BlueZ currently knows about.

        The table is reconciled in one step before any handler runs, so a
        handler that raises leaves it consistent.  The exception propagates
        and the rest of that pass's notifications are not delivered.  If the
        backend is closed while the pass runs, its results are discarded and
        no further notifications are sent.

        Raises
        ------
        DiscoveryFailedError
            When the backend is not set up, the object manager cannot be
            reached or the call fails.
        """
        with self._lock:
            bus = self._bus
        if bus is None:
            raise DiscoveryFailedError(PHASE_CONNECT, "backend not set up")

        managed_objects = self._get_managed_objects(bus)
        verbose = self._verbose()
        found: Dict[str, BluezDevice] = {}

        for _obj_path, interfaces in managed_objects.items():
            for if_name, properties in interfaces.items():
                if str(if_name) != DEVICE_INTERFACE:
                    continue
                device = load_device_properties(properties, bus, verbose=verbose)
                address = device.get_address()
                if address is None:
                    logger.debug("Skipping %s object without Address", DEVICE_INTERFACE)
                    continue
                if verbose:
                    print_and_log(device.describe(), LOG__DEBUG)
                found[address] = device

        with self._lock:
            if self._bus is not bus:
                logger.debug("Backend closed during coldplug, discarding %d devices", len(found))
                return
            stale = [dev for addr, dev in self._devices.items() if addr not in found]
            self._devices = dict(found)

        for address, device in found.items():
            if not self._owns(bus):
                return
            print_and_log(f"[+] Device added {address} ({device.get_name()})", LOG__DISCOVERY)
            self._device_added(device)
        for device in stale:
            if not self._owns(bus):
                return
            print_and_log(f"[-] Device removed {device.get_address()}", LOG__DISCOVERY)
            self._device_removed(device)

    def recoldplug(self) -> None:
        """Repeat the full enumeration."""
        self.coldplug()
