"""
Address helpers for node registration.

Validation and generation of hardware addresses, and allocation of overlay
addresses inside a community range.
"""

import ipaddress
import re
import secrets

_HEX12_RE = re.compile(r"^[0-9A-F]{12}$")
_HOSTNAME_RE = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


# =============================================================================
# Hardware Addresses
# =============================================================================


def is_valid_mac(mac: str) -> bool:
    """Accept ``AA:BB:CC:DD:EE:FF``, ``AA-BB-...`` or ``AABBCCDDEEFF``."""
    cleaned = mac.replace(":", "").replace("-", "").upper()
    return bool(_HEX12_RE.match(cleaned))


def generate_mac() -> str:
    """
    Generate a random locally administered unicast MAC.

    Returns:
        Canonical form (uppercase hex, no separators).
    """
    buf = bytearray(secrets.token_bytes(6))
    buf[0] = (buf[0] | 0x02) & 0xFE
    return buf.hex().upper()


def format_mac(canonical: str) -> str:
    """``AABBCCDDEEFF`` -> ``aa:bb:cc:dd:ee:ff`` (the edge ``-m`` format)."""
    pairs = [canonical[i : i + 2] for i in range(0, len(canonical), 2)]
    return ":".join(pairs).lower()


# =============================================================================
# Overlay Addresses
# =============================================================================


def parse_ip(address: str):
    """Parse an IP address, returning None if invalid."""
    try:
        return ipaddress.ip_address(address.strip())
    except ValueError:
        return None


def parse_network(cidr: str):
    """Parse a CIDR (host bits allowed), returning None if invalid."""
    try:
        return ipaddress.ip_network(cidr.strip(), strict=False)
    except ValueError:
        return None


def next_free_address(cidr: str, used: list[str]) -> str | None:
    """
    Pick the overlay address for a new node in a community range.

    The first node gets network+2 (network+1 is left for a gateway); later
    nodes get the highest used address + 1.

    Returns:
        The address as a string, or None if the range is invalid or full.
    """
    network = parse_network(cidr)
    if network is None:
        return None

    used_ips = [
        ip
        for ip in (parse_ip(a) for a in used)
        if ip is not None and ip.version == network.version
    ]
    candidate = (max(used_ips) + 1) if used_ips else (network.network_address + 2)

    if candidate not in network or candidate == network.broadcast_address:
        return None
    return str(candidate)


def is_valid_target(target: str) -> bool:
    """Check a diagnostic target: an IP address or a plain hostname."""
    if not target:
        return False
    if parse_ip(target) is not None:
        return True
    return len(target) <= 253 and bool(_HOSTNAME_RE.match(target))
