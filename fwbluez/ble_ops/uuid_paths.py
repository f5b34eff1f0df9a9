"""Load characteristic UUID -> D-Bus object-path bindings from YAML.

fwbluez never walks the GATT database itself; the paths a firmware plugin
needs are handed over from configuration.  The file groups bindings by device
address::

    devices:
      "AA:BB:CC:DD:EE:FF":
        "00002a26-0000-1000-8000-00805f9b34fb": /org/bluez/hci0/dev_AA_BB_CC_DD_EE_FF/service000a/char000b
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Union

import yaml

from fwbluez.core.errors import FwBluezError
from fwbluez.bt_ref.constants import RESULT_ERR_BAD_ARGS
from fwbluez.core.log import get_logger

logger = get_logger(__name__)

UuidPathBindings = Dict[str, Dict[str, str]]


class BindingFileError(FwBluezError):
    """Raised when a UUID binding file cannot be read or has the wrong shape."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"Invalid UUID binding file {path}: {reason}", RESULT_ERR_BAD_ARGS)
        self.path = str(path)
        self.reason = reason


def parse_uuid_paths(data, source: Union[str, Path] = "<memory>") -> UuidPathBindings:
    """Validate an already-loaded YAML document and normalise it.

    Addresses are upper-cased so they match the keys of the backend table.
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BindingFileError(source, "top level must be a mapping")
    devices = data.get("devices") or {}
    if not isinstance(devices, dict):
        raise BindingFileError(source, "'devices' must be a mapping")

    bindings: UuidPathBindings = {}
    for address, uuids in devices.items():
        if not isinstance(uuids, dict):
            raise BindingFileError(source, f"bindings for {address} must be a mapping")
        entry: Dict[str, str] = {}
        for uuid, path in uuids.items():
            if not uuid or not path:
                raise BindingFileError(source, f"empty UUID or path under {address}")
            entry[str(uuid).lower()] = str(path)
        bindings[str(address).upper()] = entry
    return bindings


def load_uuid_paths(path: Union[str, Path]) -> UuidPathBindings:
    """Read and validate the binding file at *path*."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise BindingFileError(path, str(exc)) from exc
    except yaml.YAMLError as exc:
        raise BindingFileError(path, f"YAML error: {exc}") from exc
    bindings = parse_uuid_paths(data, path)
    logger.debug("Loaded UUID bindings for %d device(s) from %s", len(bindings), path)
    return bindings


def apply_uuid_paths(devices, bindings: UuidPathBindings) -> int:
    """Bind UUIDs on every device in *devices* that has an entry.

    Returns the number of bindings applied.
    """
    applied = 0
    for device in devices:
        address = device.get_address()
        if address is None:
            continue
        for uuid, obj_path in bindings.get(address.upper(), {}).items():
            device.add_uuid_path(uuid, obj_path)
            applied += 1
    return applied


__all__ = [
    "BindingFileError",
    "UuidPathBindings",
    "parse_uuid_paths",
    "load_uuid_paths",
    "apply_uuid_paths",
]
