"""Command-line access to registered compute drivers.

Usage:
    compute-providers drivers
    compute-providers drivers --format=yml
    compute-providers check --driver vmware:vsphere --username admin --host vc01
    compute-providers list instances --driver vmware:vsphere --username admin
    compute-providers list images --id centos-template --format=json

The password is read from --password or COMPUTE_PROVIDERS_PASSWORD.
"""
from __future__ import annotations

import argparse
import json
import logging.config
import os
import sys
from dataclasses import asdict, is_dataclass

import yaml

from .base import ProviderCredential
from .conf import settings
from .registry import configured_registry

COLLECTIONS = ("images", "instances", "realms", "hardware-profiles")


def configure_logging(level: str) -> None:
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "simple",
            },
        },
        "loggers": {
            "compute_providers": {"handlers": ["stderr"], "level": level.upper()},
        },
    })


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compute-providers",
        description="Inspect compute drivers and the resources they expose",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL setting)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    drivers = sub.add_parser("drivers", help="List registered drivers")
    drivers.add_argument(
        "--format",
        choices=["text", "json", "yml"],
        default="text",
        help="Output format (default: text)",
    )

    check = sub.add_parser("check", help="Test credentials against a driver's endpoint")
    _add_connection_arguments(check)

    listing = sub.add_parser("list", help="List resources exposed by a driver")
    listing.add_argument("collection", choices=COLLECTIONS)
    _add_connection_arguments(listing)
    listing.add_argument("--id", help="Only the resource with this id")
    listing.add_argument(
        "--format",
        choices=["json", "yml"],
        default="json",
        help="Output format (default: json)",
    )
    return parser


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--driver", default="vmware:vsphere", help="Driver key (vendor:type)")
    parser.add_argument("--username", "-u", required=True)
    parser.add_argument(
        "--password", "-p",
        default=os.environ.get("COMPUTE_PROVIDERS_PASSWORD", ""),
    )
    parser.add_argument("--host", default="", help="Endpoint override for this call")
    parser.add_argument("--port", type=int, default=None)


def _credential(args) -> ProviderCredential:
    return ProviderCredential(
        username=args.username,
        password=args.password,
        hostname=args.host,
        port=args.port,
    )


def _dump(data, fmt: str, stream) -> None:
    if fmt == "yml":
        stream.write(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    else:
        stream.write(json.dumps(data, indent=2))
        stream.write("\n")


def _as_data(item):
    return asdict(item) if is_dataclass(item) else item


def cmd_drivers(args, stream) -> int:
    drivers = configured_registry().list_drivers()
    if args.format != "text":
        _dump(drivers, args.format, stream)
        return 0

    if not drivers:
        stream.write("No drivers registered.\n")
        return 0

    stream.write(f"Registered drivers ({len(drivers)})\n")
    for info in drivers:
        stream.write(f"\n  {info['display_name']}  [{info['key']}]\n")
        stream.write(f"  Class: {info['class']}\n")
        stream.write(f"  Hardware profiles: {', '.join(info['hardware_profiles'])}\n")
    return 0


def cmd_check(args, stream) -> int:
    driver = configured_registry().instantiate(args.driver)
    ok, message = driver.validate_connection(_credential(args))
    stream.write(f"{'✓' if ok else '✗'} {message}\n")
    return 0 if ok else 1


def cmd_list(args, stream) -> int:
    driver = configured_registry().instantiate(args.driver)
    credential = _credential(args)
    opts = {"id": args.id} if args.id else {}

    if args.collection == "images":
        items = driver.images(credential, opts)
    elif args.collection == "instances":
        items = driver.instances(credential, opts)
    elif args.collection == "realms":
        items = driver.realms(credential, opts)
    else:
        items = driver.hardware_profiles(credential, opts)

    _dump([_as_data(item) for item in items], args.format, stream)
    return 0


COMMANDS = {
    "drivers": cmd_drivers,
    "check": cmd_check,
    "list": cmd_list,
}


def main(argv: list[str] | None = None, stream=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level or settings.get("LOG_LEVEL", "INFO"))
    return COMMANDS[args.command](args, stream or sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
