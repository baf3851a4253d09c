"""Onionoo OR-address parsing."""

from __future__ import annotations

import ipaddress
from typing import Union

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_or_address(text: str) -> tuple[IpAddress, int] | None:
    """Parse `1.2.3.4:9001` or `[dead:beef::1]:443` into `(ip, port)`.

    Returns `None` for anything that is not a valid address and port.
    """
    if text.startswith("["):
        ip_part, sep, rest = text[1:].partition("]")
        if not sep or not rest.startswith(":"):
            return None
        port_part = rest[1:]
    else:
        ip_part, sep, port_part = text.rpartition(":")
        if not sep:
            return None
    if not (port_part.isascii() and port_part.isdigit()):
        return None
    port = int(port_part)
    if port > 65535:
        return None
    try:
        ip = ipaddress.ip_address(ip_part)
    except ValueError:
        return None
    return ip, port
