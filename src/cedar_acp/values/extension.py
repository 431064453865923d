"""Extension value kinds: IP addresses, 256-bit integers, datetimes, durations.

These are produced by extension constructor functions (ip(), u256(),
datetime(), duration()) or by the loader's `__extn` encoding. Parsing and
the functions operating on them live in cedar_acp.extensions.
"""

from __future__ import annotations

__all__ = [
    "Datetime",
    "Duration",
    "IPAddr",
    "UINT256_MAX",
    "UInt256",
]

import ipaddress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import ClassVar

UINT256_MAX = 2**256 - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True, slots=True)
class IPAddr:
    """IPv4/IPv6 address or CIDR range.

    A bare address is a range with a full-length prefix (/32 or /128).
    IPv4-mapped IPv6 forms are normalized to IPv4 by the constructor
    function, so ``::ffff:127.0.0.1`` and ``127.0.0.1`` compare equal.
    """

    interface: ipaddress.IPv4Interface | ipaddress.IPv6Interface

    tag: ClassVar[str] = "ipaddr"

    @property
    def network(self) -> ipaddress.IPv4Network | ipaddress.IPv6Network:
        return self.interface.network

    @property
    def is_ipv4(self) -> bool:
        return self.interface.version == 4

    @property
    def is_ipv6(self) -> bool:
        return self.interface.version == 6

    @property
    def is_loopback(self) -> bool:
        return self.network.is_loopback

    @property
    def is_multicast(self) -> bool:
        return self.network.is_multicast

    @property
    def is_link_local(self) -> bool:
        return self.network.is_link_local

    def in_range(self, other: "IPAddr") -> bool:
        if self.interface.version != other.interface.version:
            return False
        return self.network.subnet_of(other.network)  # type: ignore[arg-type]

    def __str__(self) -> str:
        full = self.interface.max_prefixlen
        if self.interface.network.prefixlen == full:
            return f'ip("{self.interface.ip}")'
        return f'ip("{self.interface.with_prefixlen}")'


@dataclass(frozen=True, slots=True)
class UInt256:
    """Unsigned 256-bit integer (0 .. 2**256 - 1)."""

    value: int

    tag: ClassVar[str] = "u256"

    def __str__(self) -> str:
        return f'u256("{self.value}")'


@dataclass(frozen=True, slots=True)
class Datetime:
    """Instant in time, as milliseconds since 1970-01-01T00:00:00Z."""

    millis: int

    tag: ClassVar[str] = "datetime"

    def to_datetime(self) -> datetime:
        return _EPOCH + timedelta(milliseconds=self.millis)

    def __str__(self) -> str:
        try:
            rendered = self.to_datetime().isoformat(timespec="milliseconds").replace("+00:00", "Z")
        except OverflowError:
            rendered = f"{self.millis}ms"
        return f'datetime("{rendered}")'


@dataclass(frozen=True, slots=True)
class Duration:
    """Signed span of time in milliseconds."""

    millis: int

    tag: ClassVar[str] = "duration"

    def __str__(self) -> str:
        remaining = abs(self.millis)
        parts = []
        for unit, size in (("d", 86_400_000), ("h", 3_600_000), ("m", 60_000), ("s", 1000)):
            count, remaining = divmod(remaining, size)
            if count:
                parts.append(f"{count}{unit}")
        if remaining or not parts:
            parts.append(f"{remaining}ms")
        sign = "-" if self.millis < 0 else ""
        return f'duration("{sign}{"".join(parts)}")'
