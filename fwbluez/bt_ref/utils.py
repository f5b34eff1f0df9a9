"""
Bluetooth utility functions.
"""

import dbus

from . import constants

__all__ = [
    "byte_array_to_hex_string",
    "hex_string_to_bytes",
    "dbus_to_python",
    "append_kv",
]


def byte_array_to_hex_string(data) -> str:
    return "".join("%02X" % byte for byte in data)


def hex_string_to_bytes(text: str) -> bytes:
    """Parse ``"01 02 0a"``, ``"01020A"`` or ``"0x01,0x02"`` into bytes."""
    cleaned = text.replace("0x", "").replace("0X", "")
    for sep in (" ", ",", ":", "-"):
        cleaned = cleaned.replace(sep, "")
    return bytes.fromhex(cleaned)


def dbus_to_python(data):
    if isinstance(data, dbus.String):
        data = str(data)
    if isinstance(data, dbus.ObjectPath):
        data = str(data)
    elif isinstance(data, dbus.Boolean):
        data = bool(data)
    elif isinstance(data, (dbus.Int64, dbus.Int32, dbus.Int16)):
        data = int(data)
    elif isinstance(data, (dbus.UInt64, dbus.UInt32, dbus.UInt16)):
        data = int(data)
    elif isinstance(data, dbus.Byte):
        data = int(data)
    elif isinstance(data, dbus.Double):
        data = float(data)
    elif isinstance(data, dbus.Array):
        data = [dbus_to_python(value) for value in data]
    elif isinstance(data, dbus.Dictionary):
        new_data = dict()
        for key in data.keys():
            new_data[dbus_to_python(key)] = dbus_to_python(data[key])
        data = new_data
    return data


def append_kv(lines: list, indent: int, key: str, value=None) -> None:
    """Append one ``key: value`` line, indented two spaces per level.

    The value column is aligned at ``PRETTY_PRINT__KV_ALIGN`` characters; a
    ``None`` value renders the key alone, which is used for section headers.
    """
    prefix = "  " * indent + f"{key}:"
    if value is None:
        lines.append(prefix)
        return
    width = max(constants.PRETTY_PRINT__KV_ALIGN, len(prefix) + 1)
    lines.append(prefix.ljust(width) + str(value))
