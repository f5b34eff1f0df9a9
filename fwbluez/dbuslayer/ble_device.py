"""Transport-neutral Bluetooth LE device record.

`BleDevice` holds the identity of a peripheral (name, address, adapter) and
the identifiers firmware plugins match on.  It declares ``read`` / ``write``
but leaves the transport to subclasses, which provide ``_read_impl`` and
``_write_impl``.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Set

from fwbluez.bt_ref.utils import append_kv
from fwbluez.core.errors import UnsupportedOperationError

__all__ = ["BleDevice", "Describer"]

# A describer appends "key: value" lines for one layer of the device type.
Describer = Callable[[List[str], int], None]


class BleDevice:
    """A Bluetooth LE device, independent of the stack used to reach it."""

    # Subclasses that can talk to the device override these.
    _read_impl: Optional[Callable[[str], bytes]] = None
    _write_impl: Optional[Callable[[str, bytes], None]] = None

    def __init__(
        self,
        name: Optional[str] = None,
        address: Optional[str] = None,
        adapter: Optional[str] = None,
    ):
        self._name: Optional[str] = None
        self._address: Optional[str] = None
        self._adapter: Optional[str] = None
        self.change_count = 0

        self.icons: List[str] = []
        self.instance_ids: List[str] = []
        self.quirk_instance_ids: List[str] = []
        self.vendor_ids: List[str] = []
        self.flags: Set[str] = set()

        if name is not None:
            self.set_name(name)
        if address is not None:
            self.set_address(address)
        if adapter is not None:
            self.set_adapter(adapter)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    def get_name(self) -> Optional[str]:
        return self._name

    def set_name(self, name: Optional[str]) -> None:
        if self._name == name:
            return
        self._name = name
        self.change_count += 1

    def get_address(self) -> Optional[str]:
        """Return the address, e.g. ``F2:EC:98:FF:03:C6``."""
        return self._address

    def set_address(self, address: Optional[str]) -> None:
        if self._address == address:
            return
        self._address = address
        self.change_count += 1

    def get_adapter(self) -> Optional[str]:
        """Return the owning adapter, e.g. ``/org/bluez/hci0``."""
        return self._adapter

    def set_adapter(self, adapter: Optional[str]) -> None:
        if self._adapter == adapter:
            return
        self._adapter = adapter
        self.change_count += 1

    name = property(get_name, set_name)
    address = property(get_address, set_address)
    adapter = property(get_adapter, set_adapter)

    # ------------------------------------------------------------------
    # Identifiers used for firmware / quirk matching
    # ------------------------------------------------------------------
    def add_icon(self, icon: str) -> None:
        if icon not in self.icons:
            self.icons.append(icon)

    def add_instance_id(self, instance_id: str, quirks_only: bool = False) -> None:
        target = self.quirk_instance_ids if quirks_only else self.instance_ids
        if instance_id not in target:
            target.append(instance_id)

    def add_vendor_id(self, vendor_id: str) -> None:
        if vendor_id not in self.vendor_ids:
            self.vendor_ids.append(vendor_id)

    def add_flag(self, flag: str) -> None:
        self.flags.add(flag)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    # ------------------------------------------------------------------
    # Read / Write
    # ------------------------------------------------------------------
    def read(self, uuid: str) -> bytes:
        """Read the characteristic *uuid*.

        Raises
        ------
        UnsupportedOperationError
            When this device type has no read transport.
        """
        if self._read_impl is None:
            raise UnsupportedOperationError("read")
        return self._read_impl(uuid)

    def read_string(self, uuid: str) -> str:
        """Read *uuid* and return the bytes as text.

        No validation is done; bytes that are not UTF-8 are carried through as
        surrogate escapes so ``.encode("utf-8", "surrogateescape")`` gives the
        raw value back.
        """
        data = self.read(uuid)
        return bytes(data).decode("utf-8", errors="surrogateescape")

    def write(self, uuid: str, data: bytes) -> None:
        """Write *data* to the characteristic *uuid*.

        Raises
        ------
        UnsupportedOperationError
            When this device type has no write transport.
        """
        if self._write_impl is None:
            raise UnsupportedOperationError("write")
        return self._write_impl(uuid, data)

    # ------------------------------------------------------------------
    # Description
    # ------------------------------------------------------------------
    def describers(self) -> List[Describer]:
        """Ordered describers; subclasses extend the list returned by super()."""
        return [self._describe_ble]

    def describe(self, indent: int = 0) -> str:
        lines: List[str] = []
        append_kv(lines, indent, type(self).__name__)
        for describer in self.describers():
            describer(lines, indent + 1)
        return "\n".join(lines) + "\n"

    def _describe_ble(self, lines: List[str], indent: int) -> None:
        if self._name is not None:
            append_kv(lines, indent, "Name", self._name)
        if self._address is not None:
            append_kv(lines, indent, "Address", self._address)
        if self._adapter is not None:
            append_kv(lines, indent, "Adapter", self._adapter)
        for icon in self.icons:
            append_kv(lines, indent, "Icon", icon)
        for instance_id in self.instance_ids:
            append_kv(lines, indent, "InstanceId", instance_id)
        for instance_id in self.quirk_instance_ids:
            append_kv(lines, indent, "InstanceId[quirk]", instance_id)
        for vendor_id in self.vendor_ids:
            append_kv(lines, indent, "VendorId", vendor_id)
        if self.flags:
            append_kv(lines, indent, "Flags", "|".join(sorted(self.flags)))

    def __str__(self) -> str:
        return self.describe()

    def __repr__(self):  # pragma: no cover - debugging aid
        return f"<{type(self).__name__} {self._address or '?'} name={self._name!r}>"
