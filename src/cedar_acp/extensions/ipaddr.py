"""The `ipaddr` extension: IP addresses and CIDR ranges.

Functions:
    ip(String) -> ipaddr                  constructor
    isIpv4, isIpv6(ipaddr) -> Bool
    isLoopback, isMulticast, isLinkLocal(ipaddr) -> Bool
    isInRange(ipaddr, ipaddr) -> Bool     first range within the second

A range is loopback/multicast/link-local only if the whole range is.
"""

from __future__ import annotations

__all__ = ["EXTENSION", "parse_ip"]

import ipaddress

from cedar_acp.exceptions import ExtensionError
from cedar_acp.extensions.registry import Extension, ExtensionFunction
from cedar_acp.values import Bool, IPAddr, String

EXTENSION_NAME = "ipaddr"

# IPv4-mapped IPv6 addresses live in ::ffff:0:0/96
_MAPPED_PREFIX_BITS = 96


def _normalize(
    interface: ipaddress.IPv4Interface | ipaddress.IPv6Interface,
) -> ipaddress.IPv4Interface | ipaddress.IPv6Interface:
    """Rewrite an IPv4-mapped IPv6 address (::ffff:a.b.c.d) as IPv4."""
    if interface.version != 6:
        return interface
    mapped = interface.ip.ipv4_mapped  # type: ignore[union-attr]
    prefix = interface.network.prefixlen
    if mapped is None or prefix < _MAPPED_PREFIX_BITS:
        return interface
    return ipaddress.IPv4Interface(f"{mapped}/{prefix - _MAPPED_PREFIX_BITS}")


def parse_ip(text: str) -> IPAddr:
    """Parse an address ("10.0.0.1", "::1") or range ("10.0.0.0/8").

    Raises:
        ExtensionError: If text is not a well-formed address or range.
    """
    # Zone ids ("fe80::1%eth0") are host-local and never valid in policies
    if "%" in text or text != text.strip():
        raise ExtensionError(EXTENSION_NAME, f"invalid IP address: {text!r}")
    try:
        interface = ipaddress.ip_interface(text)
    except ValueError:
        raise ExtensionError(EXTENSION_NAME, f"invalid IP address: {text!r}") from None
    return IPAddr(_normalize(interface))


def _ip(arg: String) -> IPAddr:
    return parse_ip(arg.value)


def _is_ipv4(addr: IPAddr) -> Bool:
    return Bool(addr.is_ipv4)


def _is_ipv6(addr: IPAddr) -> Bool:
    return Bool(addr.is_ipv6)


def _is_loopback(addr: IPAddr) -> Bool:
    return Bool(addr.is_loopback)


def _is_multicast(addr: IPAddr) -> Bool:
    return Bool(addr.is_multicast)


def _is_link_local(addr: IPAddr) -> Bool:
    return Bool(addr.is_link_local)


def _is_in_range(addr: IPAddr, network: IPAddr) -> Bool:
    return Bool(addr.in_range(network))


EXTENSION = Extension(
    name=EXTENSION_NAME,
    functions=(
        ExtensionFunction("ip", (String,), _ip, is_constructor=True),
        ExtensionFunction("isIpv4", (IPAddr,), _is_ipv4),
        ExtensionFunction("isIpv6", (IPAddr,), _is_ipv6),
        ExtensionFunction("isLoopback", (IPAddr,), _is_loopback),
        ExtensionFunction("isMulticast", (IPAddr,), _is_multicast),
        ExtensionFunction("isLinkLocal", (IPAddr,), _is_link_local),
        ExtensionFunction("isInRange", (IPAddr, IPAddr), _is_in_range),
    ),
)
