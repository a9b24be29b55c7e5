"""
Relay Pair Tracker.

The management port only says which edges are registered, not how they
talk to each other. When two edges cannot reach each other directly the
supernode forwards their packets and logs a line such as::

    forwarding packet ... from 02:ab:cd:ef:01:02 to 02:11:22:33:44:55

This module keeps the table of (src, dst) pairs seen in such lines. The
log tailer is the only writer; readers reap pairs that have been idle for
longer than the staleness window. There is no proactive sweeper: a pair
is removed the next time the table is read after it goes stale.
"""

import re
import threading
import time
from dataclasses import dataclass
from typing import Callable

from n2nadmin.services.mgmt_client import canonical_mac

# =============================================================================
# Constants
# =============================================================================

RELAY_LINE_RE = re.compile(
    r"forwarding packet.*from ((?:[0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}) "
    r"to ((?:[0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2})"
)

DEFAULT_STALE_SECONDS = 60


# =============================================================================
# Data Model
# =============================================================================


@dataclass
class RelayPair:
    """
    A direction of relayed traffic between two edges.

    Attributes:
        src_mac: Canonical hardware address of the sender.
        dst_mac: Canonical hardware address of the receiver.
        last_active: Wall-clock time of the latest forwarded packet.
        packet_count: Forwarding lines seen for this pair.
    """

    src_mac: str
    dst_mac: str
    last_active: float
    packet_count: int = 1

    @property
    def key(self) -> str:
        return relay_key(self.src_mac, self.dst_mac)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "src_mac": self.src_mac,
            "dst_mac": self.dst_mac,
            "last_active": self.last_active,
            "pkt_count": self.packet_count,
        }


def relay_key(src_mac: str, dst_mac: str) -> str:
    return f"{src_mac}->{dst_mac}"


# =============================================================================
# Tracker
# =============================================================================


class RelayTracker:
    """Thread-safe table of live relay pairs."""

    def __init__(
        self,
        stale_seconds: float = DEFAULT_STALE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.stale_seconds = stale_seconds
        self._clock = clock
        self._pairs: dict[str, RelayPair] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Number of stored pairs, stale ones included."""
        with self._lock:
            return len(self._pairs)

    # =========================================================================
    # Writer Side
    # =========================================================================

    def observe(self, src_mac: str, dst_mac: str) -> RelayPair:
        """
        Record one forwarded packet from ``src_mac`` to ``dst_mac``.

        Returns:
            A snapshot of the updated pair.
        """
        src = canonical_mac(src_mac)
        dst = canonical_mac(dst_mac)
        key = relay_key(src, dst)
        now = self._clock()

        with self._lock:
            pair = self._pairs.get(key)
            if pair is None:
                pair = RelayPair(src_mac=src, dst_mac=dst, last_active=now)
                self._pairs[key] = pair
            else:
                pair.last_active = now
                pair.packet_count += 1
            return RelayPair(pair.src_mac, pair.dst_mac, pair.last_active, pair.packet_count)

    def observe_line(self, line: str) -> bool:
        """
        Feed one log line.

        Returns:
            True if the line described a forwarded packet.
        """
        match = RELAY_LINE_RE.search(line)
        if not match:
            return False
        self.observe(match.group(1), match.group(2))
        return True

    # =========================================================================
    # Reader Side
    # =========================================================================

    def active_relays(self) -> list[RelayPair]:
        """
        Return every pair active within the staleness window.

        Stale pairs are deleted as a side effect.
        """
        now = self._clock()
        active: list[RelayPair] = []

        with self._lock:
            for key in list(self._pairs):
                pair = self._pairs[key]
                if now - pair.last_active < self.stale_seconds:
                    active.append(
                        RelayPair(
                            pair.src_mac,
                            pair.dst_mac,
                            pair.last_active,
                            pair.packet_count,
                        )
                    )
                else:
                    del self._pairs[key]

        return active

    def active_hardware_addresses(self) -> set[str]:
        """Hardware addresses on either side of a live relay pair."""
        macs: set[str] = set()
        for pair in self.active_relays():
            macs.add(pair.src_mac)
            macs.add(pair.dst_mac)
        return macs
