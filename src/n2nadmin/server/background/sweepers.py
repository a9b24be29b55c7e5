"""
Periodic Cleanup Background Tasks.

Keeps the steady-state size of the in-memory tables and the session
table small. The hard caps
in the tables themselves bound memory regardless; these sweeps only stop
idle entries from lingering until the cap is hit.
"""

import asyncio

from n2nadmin.db.auth import Session
from n2nadmin.db.base import db
from n2nadmin.services.geoip import GeoIPCache
from n2nadmin.services.login_throttle import LoginThrottle
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)


async def sweep_login_attempts(throttle: LoginThrottle, interval: float) -> None:
    """Drop idle, unlocked login-attempt records every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)

        try:
            removed = throttle.sweep()
            if removed:
                logger.debug(f"Swept {removed} idle login attempt records")
        except Exception as e:
            logger.error(f"Error sweeping login attempts: {e}")


async def sweep_geoip_cache(cache: GeoIPCache, interval: float) -> None:
    """Drop expired GeoIP entries every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)

        try:
            cache.purge_expired()
        except Exception as e:
            logger.error(f"Error sweeping GeoIP cache: {e}")


def purge_expired_sessions() -> int:
    """Delete expired login sessions on a dedicated connection."""
    with db.connection_context():
        return Session.purge_expired()


async def sweep_expired_sessions(interval: float) -> None:
    """Delete expired login sessions every ``interval`` seconds."""
    while True:
        await asyncio.sleep(interval)

        try:
            removed = await asyncio.to_thread(purge_expired_sessions)
            if removed:
                logger.debug(f"Purged {removed} expired sessions")
        except Exception as e:
            logger.error(f"Error purging expired sessions: {e}")
