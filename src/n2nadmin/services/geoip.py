"""
GeoIP Resolution Cache.

Resolves public edge addresses to a coarse location (country, city, ISP)
through the ip-api.com JSON endpoint, with a bounded in-memory cache.

Cache Policy:
    - Private/loopback addresses never reach the cache or the network
    - Entries expire after ``ttl`` seconds and are dropped when read
    - At capacity, inserting evicts the single oldest entry by creation time
    - Failed lookups return a sentinel and are NOT cached, so a transient
      outage does not pin a bad answer for a whole TTL

The cache lock guards only the map; the HTTP request runs outside it so a
slow lookup never blocks readers of already-cached addresses.
"""

import ipaddress
import threading
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class Location:
    """Best-effort location of a public address."""

    country: str
    city: str
    isp: str

    def describe(self, with_isp: bool = True) -> str:
        """Render as ``Country City (ISP)``."""
        text = f"{self.country} {self.city}"
        if with_isp:
            text += f" ({self.isp})"
        return text

    def to_dict(self) -> dict:
        return {"country": self.country, "city": self.city, "isp": self.isp}


@dataclass
class GeoCacheEntry:
    location: Location
    created_at: float


LOCAL_NETWORK = Location(country="Local network", city="-", isp="-")
LOOKUP_FAILED = Location(country="Unknown", city="Lookup failed", isp="-")
UNKNOWN = Location(country="Unknown", city="-", isp="-")

LOCAL_NETWORKS = (
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
)


def is_local_address(address: str) -> bool:
    """
    Check whether an address belongs to loopback or RFC1918 space.

    Empty input counts as local. Unparsable input does not.
    """
    if not address:
        return True
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    if ip.is_loopback:
        return True
    return any(ip in net for net in LOCAL_NETWORKS)


# =============================================================================
# Cache
# =============================================================================


class GeoIPCache:
    """
    Thread-safe, size-bounded, TTL-expiring GeoIP cache.

    Attributes:
        ttl: Entry lifetime in seconds.
        max_size: Maximum number of cached addresses.
    """

    def __init__(
        self,
        ttl: float = 24 * 3600,
        max_size: int = 1000,
        url_template: str = "http://ip-api.com/json/{ip}",
        timeout: float = 5.0,
        client: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.max_size = max_size
        self.url_template = url_template
        self._client = client or httpx.Client(timeout=timeout)
        self._clock = clock

        self._entries: dict[str, GeoCacheEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config, client: httpx.Client | None = None) -> "GeoIPCache":
        """Create a cache from a ServerConfig."""
        return cls(
            ttl=config.IP_CACHE_TTL_SECONDS,
            max_size=config.IP_CACHE_SIZE,
            url_template=config.GEOIP_URL,
            timeout=config.GEOIP_TIMEOUT_SECONDS,
            client=client,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, address: str) -> bool:
        with self._lock:
            return address in self._entries

    # =========================================================================
    # Public API
    # =========================================================================

    def resolve(self, address: str) -> Location:
        """
        Resolve an address to a location. Never raises.

        Args:
            address: Bare IP address (no port).

        Returns:
            The cached or freshly looked-up location, ``LOCAL_NETWORK`` for
            private space, or ``LOOKUP_FAILED``/``UNKNOWN`` on failure.
        """
        if is_local_address(address):
            return LOCAL_NETWORK

        cached = self._get(address)
        if cached is not None:
            return cached

        location, found = self._lookup(address)
        if found:
            self._put(address, location)
        return location

    def purge_expired(self) -> int:
        """
        Drop every entry past its TTL.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [
                ip
                for ip, entry in self._entries.items()
                if now - entry.created_at >= self.ttl
            ]
            for ip in expired:
                del self._entries[ip]

        if expired:
            logger.debug(f"Purged {len(expired)} expired GeoIP entries")
        return len(expired)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    # =========================================================================
    # Cache Internals
    # =========================================================================

    def _get(self, address: str) -> Location | None:
        with self._lock:
            entry = self._entries.get(address)
            if entry is None:
                return None
            if self._clock() - entry.created_at >= self.ttl:
                del self._entries[address]
                return None
            return entry.location

    def _put(self, address: str, location: Location) -> None:
        with self._lock:
            if address not in self._entries and len(self._entries) >= self.max_size:
                oldest = min(self._entries, key=lambda ip: self._entries[ip].created_at)
                del self._entries[oldest]
            self._entries[address] = GeoCacheEntry(
                location=location, created_at=self._clock()
            )

    # =========================================================================
    # Lookup
    # =========================================================================

    def _lookup(self, address: str) -> tuple[Location, bool]:
        """
        Query the GeoIP service.

        Returns:
            ``(location, found)``; ``found`` is False when ``location`` is
            a failure sentinel.
        """
        url = self.url_template.format(ip=address)
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            logger.debug(f"GeoIP lookup for {address} failed: {e}")
            return LOOKUP_FAILED, False

        if not response.is_success:
            logger.debug(f"GeoIP lookup for {address} returned {response.status_code}")
            return UNKNOWN, False

        try:
            data = response.json()
        except ValueError:
            return UNKNOWN, False

        if not isinstance(data, dict) or data.get("status") != "success":
            return UNKNOWN, False

        location = Location(
            country=data.get("country") or UNKNOWN.country,
            city=data.get("city") or "-",
            isp=data.get("isp") or "-",
        )
        return location, True
