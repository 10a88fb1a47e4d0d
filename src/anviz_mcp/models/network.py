"""TCP/IP settings of the terminal."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass

DEFAULT_PORT = 5010


def _octets(address: str) -> bytes:
    try:
        return ipaddress.IPv4Address(address).packed
    except ipaddress.AddressValueError as e:
        raise ValueError(f"Invalid IPv4 address: {address!r}") from e


@dataclass
class TcpIpConfig:
    """Network parameters written by the set-TCP/IP command.

    Serialized as address, mask, gateway (4 bytes each), port (u16 LE)
    and, only when set, the primary DNS server.
    """

    ip_address: str
    subnet_mask: str
    gateway: str
    port: int = DEFAULT_PORT
    dns_primary: str | None = None

    def to_bytes(self) -> bytes:
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"Port must be 0-65535, got {self.port}")
        data = (
            _octets(self.ip_address)
            + _octets(self.subnet_mask)
            + _octets(self.gateway)
            + self.port.to_bytes(2, "little")
        )
        if self.dns_primary:
            data += _octets(self.dns_primary)
        return data

    def to_dict(self) -> dict:
        return {
            "ip_address": self.ip_address,
            "subnet_mask": self.subnet_mask,
            "gateway": self.gateway,
            "port": self.port,
            "dns_primary": self.dns_primary,
        }
