"""
Server configuration for n2n-admin.

This module defines the configuration dataclass for the admin server,
providing a centralized place for all configurable parameters.

Configuration can be modified at runtime by importing the global config
instance and updating its attributes before starting the server, or
loaded from ``N2N_*`` environment variables with ``ServerConfig.from_env``.

Usage:
    from n2nadmin.server.config import config

    # Modify configuration before starting
    config.PORT = 9000
    config.LOG_LEVEL = LogLevel.DEBUG
"""

import os
import re
from dataclasses import dataclass

from n2nadmin.models.enums import LogLevel


_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class ServerConfig:
    """
    Admin server configuration.

    Attributes:
        BIND_IP: IP address to bind the HTTP server to.
        PORT: HTTP port.
        CORS_ORIGINS: Origins allowed to make cross-origin requests.
        DB_FILE: Path to the SQLite inventory database.
        MGMT_ADDR: Supernode management port as ``host:port`` (UDP).
        LOG_LEVEL: Logging verbosity level.
    """

    # -------------------------------------------------------------------------
    # Network Configuration
    # -------------------------------------------------------------------------

    BIND_IP: str = "0.0.0.0"
    PORT: int = 8080

    # Comma-separated allowed origins, "*" for any, empty for same-origin only
    CORS_ORIGINS: str = ""

    # -------------------------------------------------------------------------
    # Path Configuration
    # -------------------------------------------------------------------------

    DB_FILE: str = "n2n_admin.db"
    SUPERNODE_CONF: str = "/etc/n2n/supernode.conf"
    COMMUNITY_LIST: str = "/etc/n2n/community.list"

    # -------------------------------------------------------------------------
    # Supernode Integration
    # -------------------------------------------------------------------------

    MGMT_ADDR: str = "127.0.0.1:56440"
    SUPERNODE_UNIT: str = "supernode"

    # Management protocol read deadlines (seconds)
    MGMT_FIRST_READ_TIMEOUT: float = 0.2
    MGMT_READ_TIMEOUT: float = 0.05
    MGMT_SESSION_TIMEOUT: float = 1.0

    # -------------------------------------------------------------------------
    # Relay Detection
    # -------------------------------------------------------------------------

    RELAY_STALE_SECONDS: int = 60
    LOG_TAILER_RETRY_SECONDS: float = 5.0
    LOG_TAILER_RESTART_SECONDS: float = 2.0

    # -------------------------------------------------------------------------
    # GeoIP Cache
    # -------------------------------------------------------------------------

    GEOIP_URL: str = "http://ip-api.com/json/{ip}"
    GEOIP_TIMEOUT_SECONDS: float = 5.0
    IP_CACHE_TTL_SECONDS: int = 24 * 3600
    IP_CACHE_SIZE: int = 1000
    IP_CACHE_SWEEP_SECONDS: int = 3600

    # -------------------------------------------------------------------------
    # Login Throttle
    # -------------------------------------------------------------------------

    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_LOCK_SECONDS: int = 15 * 60
    LOGIN_MAX_RECORDS: int = 10000
    LOGIN_OVERFLOW_IDLE_SECONDS: int = 5 * 60
    LOGIN_RECORD_EXPIRY_SECONDS: int = 3600
    LOGIN_SWEEP_SECONDS: int = 10 * 60

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    SESSION_EXPIRE_HOURS: int = 24
    MIN_PASSWORD_LENGTH: int = 6
    SESSION_SWEEP_SECONDS: int = 10 * 60

    # -------------------------------------------------------------------------
    # Features
    # -------------------------------------------------------------------------

    # ping/traceroute can probe internal addresses, so they are opt-in
    ENABLE_NET_TOOLS: bool = False

    # -------------------------------------------------------------------------
    # Logging Configuration
    # -------------------------------------------------------------------------

    LOG_LEVEL: LogLevel = LogLevel.INFO

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def get_mgmt_endpoint(self) -> tuple[str, int]:
        """
        Split MGMT_ADDR into a socket address.

        Returns:
            ``(host, port)`` tuple.
        """
        host, _, port = self.MGMT_ADDR.rpartition(":")
        return host or "127.0.0.1", int(port)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ServerConfig":
        """
        Build a configuration from ``N2N_*`` environment variables.

        Unset or malformed values keep their defaults.
        """
        env = os.environ if environ is None else environ
        cfg = cls()

        cfg.BIND_IP = env.get("N2N_BIND_IP") or cfg.BIND_IP
        cfg.PORT = _int_env(env, "N2N_PORT", cfg.PORT)
        cfg.CORS_ORIGINS = env.get("N2N_CORS_ORIGINS", cfg.CORS_ORIGINS).strip()
        cfg.DB_FILE = env.get("N2N_DB_PATH") or cfg.DB_FILE
        cfg.MGMT_ADDR = env.get("N2N_MGMT_ADDR") or cfg.MGMT_ADDR
        cfg.SUPERNODE_UNIT = env.get("N2N_SUPERNODE_UNIT") or cfg.SUPERNODE_UNIT
        cfg.SUPERNODE_CONF = env.get("N2N_SUPERNODE_CONF") or cfg.SUPERNODE_CONF
        cfg.COMMUNITY_LIST = env.get("N2N_COMMUNITY_LIST") or cfg.COMMUNITY_LIST
        cfg.IP_CACHE_TTL_SECONDS = _duration_env(
            env, "N2N_IP_CACHE_TTL", cfg.IP_CACHE_TTL_SECONDS
        )
        cfg.IP_CACHE_SIZE = _int_env(env, "N2N_IP_CACHE_SIZE", cfg.IP_CACHE_SIZE)
        cfg.SESSION_EXPIRE_HOURS = _int_env(
            env, "N2N_SESSION_EXPIRE_HOURS", cfg.SESSION_EXPIRE_HOURS
        )
        cfg.ENABLE_NET_TOOLS = _bool_env(
            env, "N2N_ENABLE_NET_TOOLS", cfg.ENABLE_NET_TOOLS
        )

        level = env.get("N2N_LOG_LEVEL", "").lower()
        if level in {lv.value for lv in LogLevel}:
            cfg.LOG_LEVEL = LogLevel(level)

        return cfg


# =============================================================================
# Environment Parsing
# =============================================================================


def _int_env(env, key: str, default: int) -> int:
    value = env.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _bool_env(env, key: str, default: bool) -> bool:
    value = env.get(key)
    if not value:
        return default
    return value.lower() in ("true", "1", "yes")


def _duration_env(env, key: str, default: int) -> int:
    """Parse ``90``, ``90s``, ``15m``, ``24h`` or ``7d`` into seconds."""
    value = env.get(key)
    if not value:
        return default
    match = _DURATION_RE.match(value)
    if not match:
        return default
    return int(match.group(1)) * _DURATION_UNITS[match.group(2)]


# =============================================================================
# Global Instance
# =============================================================================

# Global config instance - loaded from N2N_* variables, modify before server startup
config = ServerConfig.from_env()
