"""Shared fixtures: an in-memory stand-in for a dbus-python bus connection."""

from __future__ import annotations

import os
import tempfile

# Keep test runs from writing into the real user data directory.
os.environ.setdefault("FWBLUEZ_LOG_DIR", tempfile.mkdtemp(prefix="fwbluez-logs-"))

import dbus
import dbus.exceptions
import pytest

from fwbluez.bt_ref.constants import (
    BLUEZ_SERVICE_NAME,
    DBUS_OM_IFACE,
    DEVICE_INTERFACE,
    GATT_CHARACTERISTIC_INTERFACE,
)


def dbus_error(name: str, message: str = "failed") -> dbus.exceptions.DBusException:
    return dbus.exceptions.DBusException(message, name=name)


class FakeCharacteristic:
    """GattCharacteristic1 that hands back whatever was last written."""

    def __init__(self, value: bytes = b""):
        self.value = bytes(value)
        self.read_error = None
        self.write_error = None
        self.calls = []

    def ReadValue(self, options, timeout=None):
        self.calls.append(("ReadValue", dict(options), timeout))
        if self.read_error is not None:
            raise self.read_error
        return dbus.Array([dbus.Byte(b) for b in self.value], signature="y")

    def WriteValue(self, value, options, timeout=None):
        self.calls.append(("WriteValue", bytes(value), dict(options), timeout))
        if self.write_error is not None:
            raise self.write_error
        self.value = bytes(value)


class FakeObjectManager:
    def __init__(self, managed_objects=None):
        self.managed_objects = managed_objects or {}
        self.error = None
        self.calls = []

    def GetManagedObjects(self, timeout=None):
        self.calls.append(timeout)
        if self.error is not None:
            raise self.error
        return self.managed_objects


class FakeProxyObject:
    """Mimics ``dbus.proxies.ProxyObject`` enough for ``dbus.Interface``."""

    def __init__(self, bus, path, implementations):
        self._bus = bus
        self._path = path
        self._implementations = implementations

    def get_dbus_method(self, member, dbus_interface=None):
        impl = self._implementations.get(dbus_interface)
        if impl is None:
            raise AssertionError(f"{self._path} has no interface {dbus_interface}")
        return getattr(impl, member)


class FakeBus:
    def __init__(self):
        self.object_manager = FakeObjectManager()
        self.characteristics = {}
        self.get_object_calls = []
        self.get_object_error = None
        self.closed = False

    def add_characteristic(self, path, value=b""):
        char = FakeCharacteristic(value)
        self.characteristics[path] = char
        return char

    def get_object(self, service, path, introspect=True):
        assert service == BLUEZ_SERVICE_NAME
        self.get_object_calls.append(path)
        if self.get_object_error is not None:
            raise self.get_object_error
        if path == "/":
            return FakeProxyObject(self, path, {DBUS_OM_IFACE: self.object_manager})
        if path in self.characteristics:
            return FakeProxyObject(
                self, path, {GATT_CHARACTERISTIC_INTERFACE: self.characteristics[path]}
            )
        raise dbus_error("org.freedesktop.DBus.Error.UnknownObject", f"no object {path}")

    def close(self):
        self.closed = True


def device1_properties(address, name=None, **extra):
    props = {"Address": dbus.String(address)}
    if name is not None:
        props["Name"] = dbus.String(name)
    props.update(extra)
    return dbus.Dictionary(props, signature="sv")


def managed_object(properties, interface=DEVICE_INTERFACE):
    return {
        dbus.String("org.freedesktop.DBus.Introspectable"): dbus.Dictionary({}, signature="sv"),
        dbus.String(interface): properties,
    }


@pytest.fixture
def fake_bus():
    return FakeBus()


@pytest.fixture(autouse=True)
def _quiet_verbose(monkeypatch):
    monkeypatch.delenv("FWBLUEZ_VERBOSE", raising=False)
