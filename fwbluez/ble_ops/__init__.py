"""Helpers that sit on top of the D-Bus layer: modalias decoding and UUID bindings."""

from fwbluez.ble_ops.modalias import (
    ModaliasIds,
    ModaliasInfo,
    modalias_to_ids,
    parse_modalias,
)
from fwbluez.ble_ops.uuid_paths import apply_uuid_paths, load_uuid_paths

__all__ = [
    "ModaliasIds",
    "ModaliasInfo",
    "modalias_to_ids",
    "parse_modalias",
    "apply_uuid_paths",
    "load_uuid_paths",
]
