"""Core configuration model: the record persisted by every store backend."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

DEFAULT_PORT = 53632
DEFAULT_SECRET = "Super Secret String"
MAX_PORT = 65535


@dataclass
class AppConfiguration:
    """Port, expected source addresses and shared secret.

    ``addresses`` is advisory: the listener logs it against incoming
    connections but never rejects a peer because of it.
    """

    port: int
    addresses: list[IPAddress] = field(default_factory=list)
    secret: str = ""

    def set_port(self, port: int) -> None:
        if not 0 <= port <= MAX_PORT:
            raise ValueError(f"port must be between 0 and {MAX_PORT}, got {port}")
        self.port = port

    def set_addresses(self, text: str) -> None:
        self.addresses = parse_addresses(text)

    def set_secret(self, secret: str) -> None:
        self.secret = secret


def default_configuration() -> AppConfiguration:
    """Return a fresh default configuration (loopback only, placeholder secret)."""
    return AppConfiguration(
        port=DEFAULT_PORT,
        addresses=[ipaddress.ip_address("127.0.0.1")],
        secret=DEFAULT_SECRET,
    )


def parse_addresses(text: str) -> list[IPAddress]:
    """Parse a comma-joined address list, dropping tokens that are not IPs."""
    addresses: list[IPAddress] = []
    for token in text.split(","):
        try:
            addresses.append(ipaddress.ip_address(token.strip()))
        except ValueError:
            continue
    return addresses


def format_addresses(addresses: list[IPAddress]) -> str:
    return ",".join(str(address) for address in addresses)
