"""
Tests for n2nadmin.services.login_throttle module.
"""

from loguru import logger

from n2nadmin.services.login_throttle import LoginThrottle, account_key


class TestLocking:
    """Tests for lock and unlock behaviour."""

    def test_locks_after_max_attempts(self, clock):
        """The fifth failure locks both the client and the account."""
        throttle = LoginThrottle(clock=clock)

        for _ in range(4):
            locked, _ = throttle.record_failure("198.51.100.1", "admin")
            assert not locked

        locked, remaining = throttle.record_failure("198.51.100.1", "admin")

        assert locked
        assert remaining == 900
        assert throttle.check_lock("198.51.100.1")[0]
        assert throttle.check_lock(account_key("admin"))[0]

    def test_account_locked_across_addresses(self, clock):
        """Rotating client addresses does not escape the account lock."""
        throttle = LoginThrottle(clock=clock)

        for i in range(5):
            throttle.record_failure(f"198.51.100.{i}", "admin")

        assert throttle.check_lock(account_key("admin"))[0]
        assert not throttle.check_lock("198.51.100.0")[0]

    def test_lock_expires_and_resets(self, clock):
        """After the lock window the key is free and counts from zero."""
        throttle = LoginThrottle(clock=clock)
        for _ in range(5):
            throttle.record_failure("198.51.100.1", "admin")

        clock.advance(899)
        locked, remaining = throttle.check_lock("198.51.100.1")
        assert locked
        assert remaining == 1

        clock.advance(1)
        assert throttle.check_lock("198.51.100.1") == (False, 0.0)
        assert throttle.failure_count("198.51.100.1") == 0

    def test_success_clears_both_keys(self, clock):
        throttle = LoginThrottle(clock=clock)
        throttle.record_failure("198.51.100.1", "admin")

        throttle.record_success("198.51.100.1", "admin")

        assert len(throttle) == 0

    def test_unknown_key_unlocked(self, clock):
        assert LoginThrottle(clock=clock).check_lock("203.0.113.1") == (False, 0.0)


class TestBounds:
    """Tests for the record cap and sweeping."""

    def test_table_never_exceeds_cap(self, clock):
        """Distinct failures beyond the cap evict old records."""
        throttle = LoginThrottle(max_records=10000, clock=clock)

        for i in range(5025):
            throttle.record_failure(f"client-{i}", f"user-{i}")
            assert len(throttle) <= 10000
            clock.advance(0.01)

        assert len(throttle) == 10000
        # newest keys survive eviction
        assert throttle.failure_count("client-5024") == 1
        assert throttle.failure_count(account_key("user-5024")) == 1

    def test_overflow_keeps_locked_entries_over_idle(self, clock):
        """Idle entries go first when the table is full."""
        throttle = LoginThrottle(max_records=4, overflow_idle_seconds=300, clock=clock)
        throttle.record_failure("old", "old-user")
        clock.advance(400)
        for _ in range(5):
            throttle.record_failure("hot", "hot-user")

        throttle.record_failure("new", "new-user")

        assert len(throttle) == 4
        assert throttle.failure_count("old") == 0
        assert throttle.check_lock("hot")[0]

    def test_overflow_eviction_is_quiet(self, clock):
        """Evictions at the cap do not log warnings on every insert."""
        warnings = []
        sink_id = logger.add(warnings.append, level="WARNING")
        try:
            throttle = LoginThrottle(max_records=4, clock=clock)
            for i in range(20):
                throttle.record_failure(f"client-{i}", f"user-{i}")
                clock.advance(1)
        finally:
            logger.remove(sink_id)

        assert len(throttle) == 4
        assert warnings == []

    def test_sweep_removes_idle_records(self, clock):
        throttle = LoginThrottle(record_expiry_seconds=3600, clock=clock)
        throttle.record_failure("a", "alice")
        clock.advance(1800)
        throttle.record_failure("b", "bob")
        clock.advance(1800)

        assert throttle.sweep() == 2
        assert throttle.failure_count("b") == 1

    def test_sweep_keeps_locked_records(self, clock):
        throttle = LoginThrottle(lock_seconds=7200, record_expiry_seconds=3600, clock=clock)
        for _ in range(5):
            throttle.record_failure("a", "alice")
        clock.advance(3600)

        assert throttle.sweep() == 0
