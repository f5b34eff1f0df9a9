"""Modalias parsing utilities for fwbluez.

BlueZ exposes a ``Modalias`` property on ``org.bluez.Device1`` that encodes the
bus type and the vendor/product/revision of the peripheral, e.g.::

    usb:v0461p4EEFd0001
    bluetooth:v000ApFFFFdFFFF

Fields sit at fixed character offsets.  Parse failures are absorbed: an
unreadable field is reported as zero and the identifiers that need it are not
emitted.
"""
from __future__ import annotations

import string
from dataclasses import dataclass
from typing import List, Optional, Tuple

from fwbluez.bt_ref.constants import (
    MODALIAS_PREFIX_BLUETOOTH,
    MODALIAS_PREFIX_USB,
    SUBSYSTEM_BLE,
    SUBSYSTEM_USB,
)

# prefix -> (subsystem, vid offset, pid offset, rev offset)
_MODALIAS_LAYOUTS: Tuple[Tuple[str, str, int, int, int], ...] = (
    (MODALIAS_PREFIX_USB, SUBSYSTEM_USB, 5, 10, 15),
    (MODALIAS_PREFIX_BLUETOOTH, SUBSYSTEM_BLE, 11, 16, 21),
)

_HEXDIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class ModaliasInfo:
    subsystem: Optional[str]
    vid: int = 0
    pid: int = 0
    rev: int = 0


@dataclass(frozen=True)
class ModaliasIds:
    """Identifiers derived from one modalias string."""

    instance_ids: Tuple[str, ...] = ()
    quirk_instance_ids: Tuple[str, ...] = ()
    vendor_ids: Tuple[str, ...] = ()


def strparse_uint16_safe(data: str, offset: int) -> Optional[int]:
    """Parse four hex digits of *data* starting at *offset*.

    Returns None when the string is too short or the digits are not hex.
    """
    if offset < 0 or offset + 4 > len(data):
        return None
    chunk = data[offset:offset + 4]
    if not all(ch in _HEXDIGITS for ch in chunk):
        return None
    return int(chunk, 16)


def parse_modalias(modalias: str) -> ModaliasInfo:
    """Split *modalias* into subsystem, vendor, product and revision."""
    for prefix, subsystem, vid_off, pid_off, rev_off in _MODALIAS_LAYOUTS:
        if modalias.startswith(prefix):
            return ModaliasInfo(
                subsystem=subsystem,
                vid=strparse_uint16_safe(modalias, vid_off) or 0,
                pid=strparse_uint16_safe(modalias, pid_off) or 0,
                rev=strparse_uint16_safe(modalias, rev_off) or 0,
            )
    return ModaliasInfo(subsystem=None)


def build_modalias_ids(info: ModaliasInfo) -> ModaliasIds:
    """Derive the hierarchical instance IDs for *info*.

    The most specific ID comes first.  The vendor-only ID is usable for quirk
    matching only and is therefore kept apart from the exact instance IDs.
    """
    if info.subsystem is None or info.vid == 0:
        return ModaliasIds()

    instance_ids: List[str] = []
    subsys = info.subsystem
    if info.pid != 0 and info.rev != 0:
        instance_ids.append(
            f"{subsys}\\VID_{info.vid:04X}&PID_{info.pid:04X}&REV_{info.rev:04X}"
        )
    if info.pid != 0:
        instance_ids.append(f"{subsys}\\VID_{info.vid:04X}&PID_{info.pid:04X}")
    return ModaliasIds(
        instance_ids=tuple(instance_ids),
        quirk_instance_ids=(f"{subsys}\\VID_{info.vid:04X}",),
        vendor_ids=(f"{subsys}:{info.vid:04X}",),
    )


def modalias_to_ids(modalias: str) -> ModaliasIds:
    return build_modalias_ids(parse_modalias(modalias))


def format_modalias_info(modalias: str) -> str:
    """Format modalias information for display.

    Returns the original string when it is not a recognised shape.
    """
    info = parse_modalias(modalias)
    if info.subsystem is None:
        return modalias
    return (
        f"{modalias} (Subsystem: {info.subsystem}, Vendor: 0x{info.vid:04X}, "
        f"Product: 0x{info.pid:04X}, Revision: 0x{info.rev:04X})"
    )


__all__ = [
    "ModaliasInfo",
    "ModaliasIds",
    "strparse_uint16_safe",
    "parse_modalias",
    "build_modalias_ids",
    "modalias_to_ids",
    "format_modalias_info",
]
