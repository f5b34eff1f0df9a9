from __future__ import annotations

import dbus
import pytest

from conftest import FakeBus, dbus_error, device1_properties, managed_object
from fwbluez.bt_ref.constants import ADAPTER_INTERFACE, COLDPLUG_TIMEOUT_MS
from fwbluez.core import config
from fwbluez.core.errors import ConnectionFailedError, DiscoveryFailedError
from fwbluez.dbuslayer import backend as backend_mod
from fwbluez.dbuslayer.backend import BluezBackend, load_device_properties

ADDR_A = "F2:EC:98:FF:03:C6"
ADDR_B = "C4:7C:8D:6A:11:02"


def _backend(bus):
    backend = BluezBackend(bus_factory=lambda: bus)
    backend.setup()
    return backend


def _two_devices_and_an_adapter():
    return {
        dbus.ObjectPath("/org/bluez/hci0"): managed_object(
            dbus.Dictionary({"Address": dbus.String("00:1A:7D:DA:71:13")}, signature="sv"),
            interface=ADAPTER_INTERFACE,
        ),
        dbus.ObjectPath("/org/bluez/hci0/dev_F2_EC_98_FF_03_C6"): managed_object(
            device1_properties(
                ADDR_A,
                "Pinecil",
                Adapter=dbus.ObjectPath("/org/bluez/hci0"),
                Modalias=dbus.String("bluetooth:v000ApFFFFdFFFF"),
                Connected=dbus.Boolean(True),
                Icon=dbus.String("input-tablet"),
            )
        ),
        dbus.ObjectPath("/org/bluez/hci0/dev_C4_7C_8D_6A_11_02"): managed_object(
            device1_properties(ADDR_B, "Sensor", RSSI=dbus.Int16(-60))
        ),
    }


def test_coldplug_registers_only_device1_objects():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    added = []
    backend.add_device_added_handler(lambda dev: added.append(dev.get_address()))

    backend.coldplug()

    assert sorted(added) == sorted([ADDR_A, ADDR_B])
    assert sorted(dev.get_address() for dev in backend.devices()) == sorted([ADDR_A, ADDR_B])
    assert backend.get_device(ADDR_A).get_name() == "Pinecil"


def test_coldplug_uses_explicit_timeout():
    bus = FakeBus()
    backend = _backend(bus)
    backend.coldplug()
    assert bus.object_manager.calls == [COLDPLUG_TIMEOUT_MS / 1000.0]


def test_coldplug_decodes_known_properties():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    backend.coldplug()

    dev = backend.get_device(ADDR_A)
    assert dev.get_adapter() == "/org/bluez/hci0"
    assert dev.is_connected()
    assert dev.icons == ["input-tablet"]
    assert "BLE\\VID_000A&PID_FFFF&REV_FFFF" in dev.instance_ids
    assert dev.bus is bus
    assert not backend.get_device(ADDR_B).is_connected()


def test_devices_share_backend_bus_for_gatt_calls():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    path = "/org/bluez/hci0/dev_F2_EC_98_FF_03_C6/service000a/char000b"
    bus.add_characteristic(path, b"2.1")
    backend = _backend(bus)
    backend.coldplug()

    dev = backend.get_device(ADDR_A)
    dev.add_uuid_path("00002a26-0000-1000-8000-00805f9b34fb", path)
    assert dev.read_string("00002a26-0000-1000-8000-00805f9b34fb") == "2.1"


def test_bad_property_types_are_skipped():
    props = dbus.Dictionary(
        {
            "Address": dbus.String(ADDR_A),
            "Name": dbus.Int32(7),
            "Connected": dbus.String("yes"),
            "Modalias": dbus.String("usb:vZZZZ"),
            "UUIDs": dbus.Array([dbus.String("0000180a-0000-1000-8000-00805f9b34fb")], signature="s"),
        },
        signature="sv",
    )
    dev = load_device_properties(props)
    assert dev.get_address() == ADDR_A
    assert dev.get_name() is None
    assert not dev.is_connected()
    assert dev.instance_ids == []


def test_connected_false_leaves_device_disconnected():
    dev = load_device_properties(device1_properties(ADDR_A, Connected=dbus.Boolean(False)))
    assert not dev.is_connected()


def test_device_without_address_is_not_registered():
    bus = FakeBus()
    bus.object_manager.managed_objects = {
        dbus.ObjectPath("/org/bluez/hci0/dev_X"): managed_object(
            dbus.Dictionary({"Name": dbus.String("ghost")}, signature="sv")
        )
    }
    backend = _backend(bus)
    added = []
    backend.add_device_added_handler(added.append)
    backend.coldplug()
    assert added == []
    assert backend.devices() == []


def test_recoldplug_evicts_devices_no_longer_reported():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    removed = []
    backend.add_device_removed_handler(lambda dev: removed.append(dev.get_address()))
    backend.coldplug()
    first = backend.get_device(ADDR_A)

    del bus.object_manager.managed_objects[dbus.ObjectPath("/org/bluez/hci0/dev_C4_7C_8D_6A_11_02")]
    backend.recoldplug()

    assert removed == [ADDR_B]
    assert [dev.get_address() for dev in backend.devices()] == [ADDR_A]
    assert backend.get_device(ADDR_A) is not first


def test_setup_failure_is_connection_failed():
    def _no_bus():
        raise dbus_error("org.freedesktop.DBus.Error.FileNotFound", "no system bus socket")

    backend = BluezBackend(bus_factory=_no_bus)
    with pytest.raises(ConnectionFailedError) as excinfo:
        backend.setup()
    assert "no system bus socket" in str(excinfo.value)
    assert not backend.is_setup()


def test_setup_opens_one_connection():
    opened = []

    def _factory():
        opened.append(FakeBus())
        return opened[-1]

    backend = BluezBackend(bus_factory=_factory)
    backend.setup()
    backend.setup()
    assert len(opened) == 1


def test_coldplug_proxy_failure_is_discovery_failed():
    bus = FakeBus()
    backend = _backend(bus)
    bus.get_object_error = dbus_error("org.freedesktop.DBus.Error.ServiceUnknown", "org.bluez not running")
    with pytest.raises(DiscoveryFailedError) as excinfo:
        backend.coldplug()
    assert excinfo.value.phase == "connect"


def test_coldplug_call_failure_is_discovery_failed():
    bus = FakeBus()
    bus.object_manager.error = dbus_error("org.freedesktop.DBus.Error.AccessDenied", "denied")
    backend = _backend(bus)
    with pytest.raises(DiscoveryFailedError) as excinfo:
        backend.coldplug()
    assert excinfo.value.phase == "GetManagedObjects"
    assert str(excinfo.value).startswith("Failed to call GetManagedObjects")


def test_coldplug_before_setup_fails():
    backend = BluezBackend(bus_factory=FakeBus)
    with pytest.raises(DiscoveryFailedError):
        backend.coldplug()


def test_failed_pass_keeps_previous_devices():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    backend.coldplug()
    bus.object_manager.error = dbus_error("org.freedesktop.DBus.Error.NoReply", "timeout")
    with pytest.raises(DiscoveryFailedError):
        backend.recoldplug()
    assert len(backend.devices()) == 2


def test_close_releases_bus_and_table():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    with BluezBackend(bus_factory=lambda: bus) as backend:
        backend.coldplug()
        assert backend.devices()
    assert bus.closed
    assert backend.devices() == []
    assert not backend.is_setup()


def test_verbose_toggle_does_not_change_result(monkeypatch):
    monkeypatch.setenv("FWBLUEZ_VERBOSE", "1")
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    backend.coldplug()
    assert len(backend.devices()) == 2


@pytest.fixture
def dumped(monkeypatch):
    messages = []
    monkeypatch.setattr(
        backend_mod, "print_and_log", lambda msg, log_type=None: messages.append((msg, log_type))
    )
    return messages


def _property_dumps(messages):
    return [msg for msg, _ in messages if msg.startswith("[*] Address = ")]


def _device_dumps(messages):
    return [msg for msg, _ in messages if msg.startswith("BluezDevice:")]


def test_verbose_dumps_properties_and_devices(monkeypatch, dumped):
    monkeypatch.setenv("FWBLUEZ_VERBOSE", "1")
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    _backend(bus).coldplug()

    assert f"[*] Address = '{ADDR_A}'" in _property_dumps(dumped)
    assert len(_device_dumps(dumped)) == 2
    assert all(
        log_type == config.LOG__DEBUG
        for msg, log_type in dumped
        if msg.startswith("[*] Address") or msg.startswith("BluezDevice:")
    )


@pytest.mark.parametrize("value", [None, "0", "false"])
def test_quiet_unless_verbose_requested(monkeypatch, dumped, value):
    if value is not None:
        monkeypatch.setenv("FWBLUEZ_VERBOSE", value)
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    _backend(bus).coldplug()

    assert _property_dumps(dumped) == []
    assert _device_dumps(dumped) == []


def test_explicit_verbose_overrides_environment(monkeypatch, dumped):
    monkeypatch.setenv("FWBLUEZ_VERBOSE", "1")
    load_device_properties(device1_properties(ADDR_A), verbose=False)
    assert _property_dumps(dumped) == []

    monkeypatch.delenv("FWBLUEZ_VERBOSE")
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = BluezBackend(bus_factory=lambda: bus, verbose=True)
    backend.setup()
    backend.coldplug()
    assert len(_device_dumps(dumped)) == 2


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, False),
        ("", False),
        ("0", False),
        ("false", False),
        ("No", False),
        (" off ", False),
        ("1", True),
        ("yes", True),
        ("TRUE", True),
    ],
)
def test_verbose_enabled(monkeypatch, value, expected):
    if value is None:
        monkeypatch.delenv("FWBLUEZ_VERBOSE", raising=False)
    else:
        monkeypatch.setenv("FWBLUEZ_VERBOSE", value)
    assert config.verbose_enabled() is expected


def test_close_from_handler_ends_the_pass():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    added = []

    def _close_on_first(dev):
        added.append(dev.get_address())
        backend.close()

    backend.add_device_added_handler(_close_on_first)
    backend.coldplug()

    assert len(added) == 1
    assert backend.devices() == []
    assert not backend.is_setup()
    assert bus.closed


def test_close_before_pass_completes_discards_results(monkeypatch):
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    added = []
    backend.add_device_added_handler(added.append)

    fetch = backend._get_managed_objects

    def _fetch_then_close(b):
        result = fetch(b)
        backend.close()
        return result

    monkeypatch.setattr(backend, "_get_managed_objects", _fetch_then_close)
    backend.coldplug()

    assert added == []
    assert backend.devices() == []


def test_failing_handler_leaves_table_reconciled():
    bus = FakeBus()
    bus.object_manager.managed_objects = _two_devices_and_an_adapter()
    backend = _backend(bus)
    backend.coldplug()
    del bus.object_manager.managed_objects[dbus.ObjectPath("/org/bluez/hci0/dev_C4_7C_8D_6A_11_02")]

    def _boom(dev):
        raise RuntimeError("handler failed")

    backend.add_device_added_handler(_boom)
    with pytest.raises(RuntimeError):
        backend.recoldplug()
    assert [dev.get_address() for dev in backend.devices()] == [ADDR_A]
