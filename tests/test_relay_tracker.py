"""
Tests for n2nadmin.services.relay_tracker module.
"""

from n2nadmin.services.relay_tracker import RelayTracker, relay_key

FORWARD_LINE = (
    "19/Oct/2026 10:00:01 [sn_utils.c:1234] forwarding packet of 98 bytes "
    "from 02:ab:cd:ef:01:02 to 02:11:22:33:44:55"
)


class TestRelayTracker:
    """Tests for RelayTracker."""

    def test_observe_line(self, clock):
        """A forwarding line creates a canonical pair."""
        tracker = RelayTracker(clock=clock)

        assert tracker.observe_line(FORWARD_LINE)

        pairs = tracker.active_relays()
        assert len(pairs) == 1
        assert pairs[0].key == relay_key("02ABCDEF0102", "021122334455")
        assert pairs[0].packet_count == 1

    def test_unrelated_line_ignored(self, clock):
        tracker = RelayTracker(clock=clock)

        assert not tracker.observe_line("edge registered 02:ab:cd:ef:01:02")
        assert len(tracker) == 0

    def test_repeat_increments_count(self, clock):
        """Repeated forwarding refreshes the pair and counts packets."""
        tracker = RelayTracker(clock=clock)
        tracker.observe("02:ab:cd:ef:01:02", "02:11:22:33:44:55")
        clock.advance(10)
        pair = tracker.observe("02-AB-CD-EF-01-02", "021122334455")

        assert pair.packet_count == 2
        assert pair.last_active == clock.now

    def test_directions_are_distinct(self, clock):
        tracker = RelayTracker(clock=clock)
        tracker.observe("020000000001", "020000000002")
        tracker.observe("020000000002", "020000000001")

        assert len(tracker.active_relays()) == 2

    def test_stale_pair_reaped_on_read(self, clock):
        """Pairs idle for the window are deleted by the next read."""
        tracker = RelayTracker(stale_seconds=60, clock=clock)
        tracker.observe("020000000001", "020000000002")
        clock.advance(30)
        tracker.observe("020000000003", "020000000004")
        clock.advance(30)

        pairs = tracker.active_relays()

        assert [p.src_mac for p in pairs] == ["020000000003"]
        assert len(tracker) == 1

    def test_snapshot_is_detached(self, clock):
        """Mutating a returned pair does not touch the table."""
        tracker = RelayTracker(clock=clock)
        tracker.observe("020000000001", "020000000002")

        tracker.active_relays()[0].packet_count = 99

        assert tracker.active_relays()[0].packet_count == 1

    def test_active_hardware_addresses(self, clock):
        """Both sides of a live pair count as relayed."""
        tracker = RelayTracker(clock=clock)
        tracker.observe("020000000001", "020000000002")

        assert tracker.active_hardware_addresses() == {"020000000001", "020000000002"}
