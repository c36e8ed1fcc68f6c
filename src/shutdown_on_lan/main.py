#!/usr/bin/env python3
"""Shutdown on LAN: shut this machine down when a shared secret arrives over TCP"""

import argparse
import logging
import signal
import sys

from .adapters.shutdown import DryRunShutdownTrigger, SystemShutdownTrigger
from .config import config
from .configuration_store import ConfigurationStore, get_configuration_store
from .core.config_model import MAX_PORT
from .core.errors import ConfigurationError, ListenerBindError
from .listener_service import ListenerService
from .logging_setup import setup_logging
from .platform_utils import IS_WINDOWS, get_platform_info

logger = logging.getLogger(__name__)

# sysexits.h
EX_OK = 0
EX_USAGE = 64
EX_UNAVAILABLE = 69
EX_CONFIG = 78


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= MAX_PORT:
        raise argparse.ArgumentTypeError(f"port must be between 0 and {MAX_PORT}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shutdown-on-lan",
        description="The opposite of wake-on-LAN: remotely shut down this machine.",
    )
    sub = parser.add_subparsers(dest="command")

    get = sub.add_parser("get", help="Print the current configuration")
    get.add_argument("--port", action="store_true", help="Print the port this tool listens on")
    get.add_argument(
        "--ip-addresses", action="store_true", help="Print the configured IP address(es)"
    )

    set_ = sub.add_parser("set", help="Change the configuration")
    set_.add_argument("--port", type=_port, help="Port to listen on")
    set_.add_argument("--ip-address", help="Comma-separated list of expected source addresses")
    set_.add_argument("--secret", help="Shared secret that triggers shutdown")

    sub.add_parser("run", help="Run the listener in the foreground")
    sub.add_parser("reset", help="Delete the stored configuration (defaults return on next run)")
    sub.add_parser("install", help="Perform installation tasks (only used on Windows)")
    return parser


def cmd_get(store: ConfigurationStore, args) -> int:
    configuration = store.validate()
    show_all = not (args.port or args.ip_addresses)

    if args.port or show_all:
        print(f"Current Port: {configuration.port}")
    if args.ip_addresses or show_all:
        addresses = ", ".join(str(address) for address in configuration.addresses)
        print(f"Listening IP Addresses: [{addresses}]")
    return EX_OK


def cmd_set(store: ConfigurationStore, args) -> int:
    if args.port is None and args.ip_address is None and args.secret is None:
        print("You must specify an option to set. Use --help to list options.")
        return EX_USAGE

    configuration = store.validate()
    logger.debug("Updating configuration: port=%s, ip_address=%s", args.port, args.ip_address)

    if args.port is not None:
        configuration.set_port(args.port)
        print(f"Set port {args.port}")
    if args.ip_address is not None:
        configuration.set_addresses(args.ip_address)
        print(f"Set IP Addresses: {[str(a) for a in configuration.addresses]}")
    if args.secret is not None:
        configuration.set_secret(args.secret)
        print("Set secret")

    store.save(configuration)
    print("Configuration changes saved.")
    return EX_OK


def cmd_run(store: ConfigurationStore, args) -> int:
    configuration = store.validate()
    trigger = DryRunShutdownTrigger() if config.DRY_RUN else SystemShutdownTrigger()
    service = ListenerService(configuration, trigger)

    def signal_handler(sig, frame):
        logger.info("Received signal %s, stopping listener", sig)
        service.close()

    signal.signal(signal.SIGINT, signal_handler)
    if not IS_WINDOWS:
        signal.signal(signal.SIGTERM, signal_handler)

    try:
        service.run()
    except ListenerBindError as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return EX_UNAVAILABLE
    return EX_OK


def cmd_reset(store: ConfigurationStore, args) -> int:
    store.delete()
    print(f"Configuration removed from {store.storage_location()}")
    return EX_OK


def cmd_install(store: ConfigurationStore, args) -> int:
    if not IS_WINDOWS:
        print("Installation is only required on Windows")
        return EX_OK

    # The service runs as the administrator and reads the same registry root
    store.ensure_configuration_exists()
    print(f"Configuration ready at {store.storage_location()}")
    print("Register shutdown-on-lan with the Windows service manager to run it at boot")
    return EX_OK


COMMANDS = {
    "get": cmd_get,
    "set": cmd_set,
    "run": cmd_run,
    "reset": cmd_reset,
    "install": cmd_install,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(config)
    logger.debug("Platform: %s", get_platform_info())

    store = get_configuration_store()
    command = COMMANDS[args.command or "run"]
    try:
        return command(store, args)
    except ConfigurationError as e:
        logger.debug("Configuration failure", exc_info=True)
        print(f"Unable to use the configuration at {store.storage_location()}: {e}", file=sys.stderr)
        return EX_CONFIG
    except OSError as e:
        # Platform I/O errors from fetch() (permissions, locked files) pass through untyped
        logger.debug("Configuration I/O failure", exc_info=True)
        print(f"Unable to use the configuration at {store.storage_location()}: {e}", file=sys.stderr)
        return EX_CONFIG


if __name__ == "__main__":
    sys.exit(main())
