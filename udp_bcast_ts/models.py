from __future__ import annotations

import ipaddress
import socket
import threading
from dataclasses import dataclass

DEFAULT_INTERVAL_MS = 1000
# Half of the longest timeout the platform accepts, so sleep deadlines never overflow.
MAX_INTERVAL_MS = min(int(threading.TIMEOUT_MAX) // 2 * 1000, 2**64 - 1)
MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True)
class BroadcastConfig:
    destination_address: ipaddress.IPv4Address | ipaddress.IPv6Address
    destination_port: int
    interval_ms: int = DEFAULT_INTERVAL_MS

    def __post_init__(self) -> None:
        if not isinstance(self.destination_address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            raise ValueError(f"destination_address must be an IP address, got {self.destination_address!r}")
        if not MIN_PORT <= self.destination_port <= MAX_PORT:
            raise ValueError(f"destination_port out of range: {self.destination_port}")
        if not 0 < self.interval_ms <= MAX_INTERVAL_MS:
            raise ValueError(f"interval_ms out of range (1-{MAX_INTERVAL_MS}): {self.interval_ms}")

    @property
    def is_ipv4(self) -> bool:
        return self.destination_address.version == 4

    @property
    def family(self) -> socket.AddressFamily:
        return socket.AF_INET if self.is_ipv4 else socket.AF_INET6

    @property
    def interval_seconds(self) -> float:
        return self.interval_ms / 1000.0

    @property
    def destination_text(self) -> str:
        if self.is_ipv4:
            return f"{self.destination_address}:{self.destination_port}"
        return f"[{self.destination_address}]:{self.destination_port}"


@dataclass
class BroadcastStats:
    sent_count: int
    failed_count: int
    last_sent_unix_ms: int | None
    last_error: str | None
