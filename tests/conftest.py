"""
Pytest configuration and fixtures for n2n-admin tests.
"""

import pytest

from n2nadmin.services.mgmt_client import PeerRecord


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StaticPeers:
    """PeerSource returning a fixed peer table, or raising a given error."""

    def __init__(self, peers: dict[str, PeerRecord] | None = None, error=None):
        self.peers = peers or {}
        self.error = error
        self.calls = 0

    def query_peers(self) -> dict[str, PeerRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.peers)


def make_peer(mac: str, internal: str, external: str, last_seen: int = 0) -> PeerRecord:
    return PeerRecord(mac=mac, internal=internal, external=external, last_seen=last_seen)


@pytest.fixture
def clock():
    """A fake clock starting at a fixed epoch."""
    return FakeClock()
