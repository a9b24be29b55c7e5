"""
Login Attempt Throttle.

Tracks failed logins under two keys at once, the client address and a
synthetic ``account:<name>`` key, so that an attacker is slowed down
whether they rotate addresses or rotate target accounts.

Rules:
    - ``max_attempts`` failures on a key lock it for ``lock_seconds``
    - Once an observed lock has expired the counter starts again from zero
    - A successful login deletes both records
    - The table never holds more than ``max_records`` keys: before new
      keys are inserted, idle unlocked entries are purged, then the
      oldest-by-last-failure entries are evicted until the new keys fit
    - ``sweep()`` (run periodically) drops unlocked entries idle for
      ``record_expiry_seconds``

Both eviction passes are linear scans under the lock. That is fine for
the ten-thousand-entry cap used here.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable

from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

ACCOUNT_KEY_PREFIX = "account:"


def account_key(username: str) -> str:
    """Build the throttle key for an account name."""
    return f"{ACCOUNT_KEY_PREFIX}{username}"


# =============================================================================
# Data Model
# =============================================================================


@dataclass
class LoginAttempt:
    fail_count: int = 0
    lock_until: float = 0.0
    last_fail: float = 0.0

    def is_locked(self, now: float) -> bool:
        return now < self.lock_until

    def is_idle(self, now: float, idle_seconds: float) -> bool:
        """Unlocked and without failures for ``idle_seconds``."""
        return not self.is_locked(now) and now - self.last_fail >= idle_seconds


# =============================================================================
# Throttle
# =============================================================================


class LoginThrottle:
    """Thread-safe, size-bounded failed-login tracker."""

    def __init__(
        self,
        max_attempts: int = 5,
        lock_seconds: float = 15 * 60,
        max_records: int = 10000,
        overflow_idle_seconds: float = 5 * 60,
        record_expiry_seconds: float = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = max_attempts
        self.lock_seconds = lock_seconds
        self.max_records = max_records
        self.overflow_idle_seconds = overflow_idle_seconds
        self.record_expiry_seconds = record_expiry_seconds
        self._clock = clock

        self._attempts: dict[str, LoginAttempt] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> "LoginThrottle":
        """Create a throttle from a ServerConfig."""
        return cls(
            max_attempts=config.LOGIN_MAX_ATTEMPTS,
            lock_seconds=config.LOGIN_LOCK_SECONDS,
            max_records=config.LOGIN_MAX_RECORDS,
            overflow_idle_seconds=config.LOGIN_OVERFLOW_IDLE_SECONDS,
            record_expiry_seconds=config.LOGIN_RECORD_EXPIRY_SECONDS,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._attempts)

    def failure_count(self, key: str) -> int:
        """Current failure count for a key (0 if untracked)."""
        with self._lock:
            attempt = self._attempts.get(key)
            return attempt.fail_count if attempt else 0

    # =========================================================================
    # Public API
    # =========================================================================

    def check_lock(self, key: str) -> tuple[bool, float]:
        """
        Check whether a key is currently locked.

        Returns:
            ``(locked, remaining_seconds)``; remaining is 0 when unlocked.
        """
        now = self._clock()
        with self._lock:
            attempt = self._attempts.get(key)
            if attempt is None:
                return False, 0.0
            if attempt.is_locked(now):
                return True, attempt.lock_until - now
            if attempt.fail_count >= self.max_attempts:
                attempt.fail_count = 0
            return False, 0.0

    def record_failure(self, client_key: str, username: str) -> tuple[bool, float]:
        """
        Count a failed login against the client and the account.

        Returns:
            ``(locked, remaining_seconds)`` where locked is True if either
            key reached the threshold with this failure.
        """
        keys = [client_key, account_key(username)]
        locked = False
        remaining = 0.0

        with self._lock:
            now = self._clock()
            new_keys = sum(1 for key in set(keys) if key not in self._attempts)
            if new_keys:
                self._make_room(new_keys, now, protected=set(keys))

            for key in keys:
                attempt = self._attempts.setdefault(key, LoginAttempt())
                attempt.fail_count += 1
                attempt.last_fail = now
                if attempt.fail_count >= self.max_attempts:
                    attempt.lock_until = now + self.lock_seconds
                    locked = True
                    remaining = self.lock_seconds

        if locked:
            logger.warning(
                f"Login locked for {self.lock_seconds:.0f}s "
                f"(client={client_key}, account={username})"
            )
        return locked, remaining

    def record_success(self, client_key: str, username: str) -> None:
        """Forget all failures for the client and the account."""
        with self._lock:
            self._attempts.pop(client_key, None)
            self._attempts.pop(account_key(username), None)

    def sweep(self) -> int:
        """
        Drop unlocked entries idle for ``record_expiry_seconds``.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            stale = [
                key
                for key, attempt in self._attempts.items()
                if attempt.is_idle(now, self.record_expiry_seconds)
            ]
            for key in stale:
                del self._attempts[key]
        return len(stale)

    # =========================================================================
    # Overflow Handling
    # =========================================================================

    def _make_room(self, new_keys: int, now: float, protected: set[str]) -> None:
        """
        Evict entries until ``new_keys`` more fit under the cap.

        Keys in ``protected`` are about to be updated and are never evicted.
        Must be called with the lock held.
        """
        if len(self._attempts) + new_keys <= self.max_records:
            return

        idle = [
            key
            for key, attempt in self._attempts.items()
            if key not in protected
            and attempt.is_idle(now, self.overflow_idle_seconds)
        ]
        for key in idle:
            del self._attempts[key]

        evicted = 0
        while len(self._attempts) + new_keys > self.max_records:
            candidates = [key for key in self._attempts if key not in protected]
            if not candidates:
                break
            oldest = min(candidates, key=lambda k: self._attempts[k].last_fail)
            del self._attempts[oldest]
            evicted += 1

        logger.debug(
            f"Login attempt table full: purged {len(idle)} idle and "
            f"evicted {evicted} oldest entries"
        )
