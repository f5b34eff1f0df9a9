"""
D-Bus Layer for fwbluez.
Provides the BLE device types and the BlueZ backend that discovers them.
"""

from .ble_device import BleDevice
from .characteristic import GattCharacteristicProxy
from .device_bluez import BluezDevice
from .backend import BluezBackend, load_device_properties

__all__ = [
    "BleDevice",
    "BluezDevice",
    "BluezBackend",
    "GattCharacteristicProxy",
    "load_device_properties",
]
