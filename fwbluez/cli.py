"""
Command-line interface for fwbluez.
"""

import argparse
import logging
import os
import sys

# Ensure logging subsystem is initialised immediately
import fwbluez.core.log  # noqa: F401  # side-effect import

from . import __version__
from fwbluez.ble_ops.uuid_paths import apply_uuid_paths, load_uuid_paths
from fwbluez.bt_ref.utils import byte_array_to_hex_string, hex_string_to_bytes
from fwbluez.core import config
from fwbluez.core.errors import FwBluezError
from fwbluez.dbuslayer.backend import BluezBackend


def parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="fwbluez - BlueZ LE device discovery and GATT access"
    )
    parser.add_argument("--version", action="version", version=f"fwbluez {__version__}")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help=f"Dump every decoded property (same as {config.ENV_VERBOSE}=1)",
    )

    subparsers = parser.add_subparsers(dest="mode", required=True, help="Operation mode")

    subparsers.add_parser("coldplug", help="List LE devices known to BlueZ")

    describe_parser = subparsers.add_parser("describe", help="Print the full device record")
    describe_parser.add_argument("address", nargs="?", help="Only describe this device")
    describe_parser.add_argument("--bindings", help="UUID binding file (YAML)")

    read_parser = subparsers.add_parser("read", help="Read a characteristic")
    read_parser.add_argument("address", help="Target MAC address")
    read_parser.add_argument("uuid", help="Characteristic UUID")
    read_parser.add_argument("--bindings", help="UUID binding file (YAML)")
    read_parser.add_argument("--string", action="store_true", help="Print the value as text")

    write_parser = subparsers.add_parser("write", help="Write a characteristic")
    write_parser.add_argument("address", help="Target MAC address")
    write_parser.add_argument("uuid", help="Characteristic UUID")
    write_parser.add_argument("value", help="Hex payload, e.g. 010203 or '01 02 03'")
    write_parser.add_argument("--bindings", help="UUID binding file (YAML)")

    return parser.parse_args(args)


def _make_backend(verbose=None) -> BluezBackend:
    return BluezBackend(verbose=verbose)


def _bind_uuids(backend: BluezBackend, bindings_file) -> None:
    path = bindings_file or config.uuid_paths_file()
    if not bindings_file and not path.exists():
        return
    apply_uuid_paths(backend.devices(), load_uuid_paths(path))


def _require_device(backend: BluezBackend, address: str):
    device = backend.get_device(address)
    if device is None:
        print(f"[!] Device {address} not found", file=sys.stderr)
    return device


def main(args=None):
    """Main entry point for fwbluez."""
    args = parse_args(args)

    _lvl = os.getenv(config.ENV_LOG_LEVEL)
    if _lvl:
        logging.getLogger("fwbluez").setLevel(_lvl.upper())

    backend = _make_backend(verbose=True if args.verbose else None)
    try:
        backend.setup()
        backend.coldplug()

        if args.mode == "coldplug":
            for device in backend.devices():
                state = "connected" if device.is_connected() else "disconnected"
                print(f"{device.get_address()}  {device.get_name() or '-'}  [{state}]")
            return 0

        _bind_uuids(backend, getattr(args, "bindings", None))

        if args.mode == "describe":
            if args.address:
                device = _require_device(backend, args.address)
                if device is None:
                    return 1
                print(device.describe(), end="")
            else:
                for device in backend.devices():
                    print(device.describe(), end="")
            return 0

        device = _require_device(backend, args.address)
        if device is None:
            return 1
        uuid = args.uuid.lower()

        if args.mode == "read":
            if args.string:
                print(device.read_string(uuid))
            else:
                print(byte_array_to_hex_string(device.read(uuid)))
            return 0

        if args.mode == "write":
            try:
                payload = hex_string_to_bytes(args.value)
            except ValueError:
                print(f"[!] Invalid hex payload: {args.value}", file=sys.stderr)
                return 1
            device.write(uuid, payload)
            print(f"[+] Wrote {len(payload)} bytes to {uuid}")
            return 0

        return 1
    except FwBluezError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 1
    finally:
        backend.close()


if __name__ == "__main__":
    sys.exit(main())
