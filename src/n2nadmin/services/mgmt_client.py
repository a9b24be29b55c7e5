"""
Supernode Management Protocol Client.

The n2n supernode exposes a text query interface on a UDP management port.
A command such as ``edges`` is sent as a single datagram; the answer comes
back as one or more datagrams of plain text with no length prefix and no
terminator. The only end-of-response signal is silence: once no datagram
arrives within a short deadline the answer is considered complete.

Response grammar (``edges``):
=============================
The text is a table of pipe-separated rows, grouped into sections by
header lines::

     ### | TAP             | MAC               | EDGE                  | HINT | LAST SEEN
    ========================================================================================
         | COMMUNITY 'office'
       1 | 10.0.0.2        | 02:ab:cd:ef:01:02 | 203.0.113.7:50123     | pc1  | 1712345678
         | FEDERATION '*Federation'
       2 |                 | 02:11:22:33:44:55 | 198.51.100.1:7654     |      | 1712345600

Header lines carry no MAC address. Rows under a ``SUPERNODES`` or
``FEDERATION`` header describe the supernode mesh rather than overlay
edges and are excluded until a ``COMMUNITY`` or ``SUPERNODE FORWARD``
header starts a regular section. A peer row is never read as a header,
so a hint or community name containing a marker word stays a peer.
"""

import re
import socket
import time
from dataclasses import dataclass

from n2nadmin.exceptions import MgmtError
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Protocol Constants
# =============================================================================

EDGES_COMMAND = "edges"

RECV_BUFFER_SIZE = 8192

MAC_RE = re.compile(r"(?:[0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}")

_EXCLUDED_SECTION_MARKERS = ("SUPERNODES", "FEDERATION")
_REGULAR_SECTION_MARKERS = ("SUPERNODE FORWARD", "COMMUNITY")

_MIN_PEER_FIELDS = 5


# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class PeerRecord:
    """
    One edge currently registered at the supernode.

    Attributes:
        mac: Canonical hardware address (uppercase hex, no separators).
        internal: Overlay (TAP) address as reported by the supernode.
        external: Public ``address:port`` the supernode sees the edge at.
        last_seen: Last-seen counter in the supernode's own units.
    """

    mac: str
    internal: str
    external: str
    last_seen: int

    @property
    def external_ip(self) -> str:
        """Public address without the port."""
        return split_host(self.external)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "mac": self.mac,
            "internal": self.internal,
            "external": self.external,
            "last_seen": self.last_seen,
        }


def canonical_mac(mac: str) -> str:
    """Strip ``:``/``-`` separators and uppercase a hardware address."""
    return mac.replace(":", "").replace("-", "").strip().upper()


def split_host(address: str) -> str:
    """Return the host part of ``host:port`` or ``[v6]:port``."""
    address = address.strip()
    if address.startswith("["):
        return address[1:].split("]", 1)[0]
    return address.split(":", 1)[0]


# =============================================================================
# Response Parsing
# =============================================================================


def _parse_last_seen(field: str) -> int:
    match = re.match(r"\s*(-?\d+)", field)
    return int(match.group(1)) if match else 0


def parse_edges(text: str) -> dict[str, PeerRecord]:
    """
    Parse an ``edges`` response into peer records keyed by canonical MAC.

    Lines that do not look like peer rows are skipped; a single malformed
    row never fails the batch.
    """
    peers: dict[str, PeerRecord] = {}
    in_excluded_section = False

    for line in text.splitlines():
        match = MAC_RE.search(line)
        if not match:
            # only rows without a hardware address can be section headers;
            # a community header may quote a name containing an excluded marker
            if any(marker in line for marker in _REGULAR_SECTION_MARKERS):
                in_excluded_section = False
            elif any(marker in line for marker in _EXCLUDED_SECTION_MARKERS):
                in_excluded_section = True
            continue
        if in_excluded_section:
            continue

        fields = line.split("|")
        if len(fields) < _MIN_PEER_FIELDS:
            continue

        mac = canonical_mac(match.group(0))
        peers[mac] = PeerRecord(
            mac=mac,
            internal=fields[1].strip(),
            external=fields[3].strip(),
            last_seen=_parse_last_seen(fields[-1]),
        )

    return peers


# =============================================================================
# Client
# =============================================================================


class MgmtClient:
    """
    Synchronous client for the supernode management port.

    Each call opens its own datagram socket, so one instance may be shared
    by concurrent request handlers. Calls are bounded by ``session_timeout``
    and never retried inline.
    """

    def __init__(
        self,
        host: str,
        port: int,
        first_read_timeout: float = 0.2,
        read_timeout: float = 0.05,
        session_timeout: float = 1.0,
    ):
        self.host = host
        self.port = port
        self.first_read_timeout = first_read_timeout
        self.read_timeout = read_timeout
        self.session_timeout = session_timeout

    @classmethod
    def from_config(cls, config) -> "MgmtClient":
        """Create a client from a ServerConfig."""
        host, port = config.get_mgmt_endpoint()
        return cls(
            host,
            port,
            first_read_timeout=config.MGMT_FIRST_READ_TIMEOUT,
            read_timeout=config.MGMT_READ_TIMEOUT,
            session_timeout=config.MGMT_SESSION_TIMEOUT,
        )

    @property
    def addr(self) -> str:
        return f"{self.host}:{self.port}"

    def query(self, command: str) -> str:
        """
        Send a command and collect the full text response.

        Args:
            command: Management command token, e.g. ``edges``.

        Returns:
            Concatenated response text (possibly empty if the supernode
            stays silent).

        Raises:
            MgmtError: On any socket error other than the end-of-response
                read timeout.
        """
        chunks: list[bytes] = []
        deadline = time.monotonic() + self.session_timeout

        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                sock.settimeout(self.session_timeout)
                sock.connect((self.host, self.port))
                sock.sendall(command.encode("utf-8"))

                read_timeout = self.first_read_timeout
                while True:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        break
                    sock.settimeout(min(read_timeout, remaining))
                    try:
                        data = sock.recv(RECV_BUFFER_SIZE)
                    except socket.timeout:
                        break
                    if data:
                        chunks.append(data)
                    read_timeout = self.read_timeout
        except OSError as e:
            raise MgmtError(str(e), self.addr) from e

        return b"".join(chunks).decode("utf-8", errors="replace")

    def query_peers(self) -> dict[str, PeerRecord]:
        """
        Query the edges currently registered at the supernode.

        Raises:
            MgmtError: If the management port cannot be queried.
        """
        response = self.query(EDGES_COMMAND)
        peers = parse_edges(response)
        logger.debug(f"Management query returned {len(peers)} peers")
        return peers

    def query_online_keys(self) -> dict[str, int]:
        """Map canonical MAC -> last-seen for every registered edge."""
        return {mac: peer.last_seen for mac, peer in self.query_peers().items()}
