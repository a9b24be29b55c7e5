"""
Node Aggregation Service.

Joins the persisted inventory with the live network state:

    inventory (SQLite)  ─┐
    peers (mgmt port)   ─┼─> NodeAggregator.list_nodes() -> [AnnotatedNode]
    relays (log tailer) ─┤
    locations (GeoIP)   ─┘

Each source has its own lock and is read independently, so a single
listing may combine snapshots taken a few microseconds apart. A failed
management query is treated as "state unknown": every node is shown
offline and the listing itself still succeeds.
"""

import ipaddress
from dataclasses import dataclass
from typing import Protocol

from n2nadmin.exceptions import MgmtError
from n2nadmin.models.enums import ConnectionType, NodeGroup
from n2nadmin.services.geoip import GeoIPCache
from n2nadmin.services.mgmt_client import PeerRecord, canonical_mac
from n2nadmin.services.relay_tracker import RelayPair, RelayTracker
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

UNMAPPED_NAME = "New node"
UNMAPPED_COMMUNITY = "unknown"
SUPERNODE_VERTEX_ID = "supernode"


# =============================================================================
# Collaborator Interfaces
# =============================================================================


@dataclass(frozen=True)
class InventoryNode:
    """The fields of a persisted node the aggregator needs."""

    id: int
    name: str
    ip_address: str
    mac_address: str
    community: str


class NodeInventory(Protocol):
    def list_nodes(self) -> list[InventoryNode]: ...

    def count_communities(self) -> int: ...


class PeerSource(Protocol):
    def query_peers(self) -> dict[str, PeerRecord]: ...


# =============================================================================
# Result Model
# =============================================================================


@dataclass
class AnnotatedNode:
    """
    A node as shown by the dashboard.

    Attributes:
        is_mapped: False for edges registered at the supernode that have
            no inventory record (candidates for "register this node").
        connection_type: None while offline.
    """

    id: int
    name: str
    ip_address: str
    mac_address: str
    community: str
    is_online: bool
    is_mapped: bool
    external_ip: str = ""
    location: str = ""
    connection_type: ConnectionType | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "ip_address": self.ip_address,
            "mac_address": self.mac_address,
            "community": self.community,
            "is_online": self.is_online,
            "is_mapped": self.is_mapped,
            "external_ip": self.external_ip,
            "location": self.location,
            "conn_type": self.connection_type.value if self.connection_type else "",
        }


# =============================================================================
# Ordering
# =============================================================================


def address_sort_key(address: str) -> tuple:
    """
    Sort key: parsable addresses numerically first, the rest by text.

    IPv4 sorts before IPv6 among parsable addresses.
    """
    try:
        ip = ipaddress.ip_address(address.strip())
    except ValueError:
        return (1, 0, 0, address)
    return (0, ip.version, int(ip), address)


# =============================================================================
# Aggregator
# =============================================================================


class NodeAggregator:
    """Read-side join of inventory and live network state."""

    def __init__(
        self,
        inventory: NodeInventory,
        peers: PeerSource,
        relays: RelayTracker,
        geoip: GeoIPCache,
    ):
        self.inventory = inventory
        self.peers = peers
        self.relays = relays
        self.geoip = geoip

    def _live_peers(self) -> dict[str, PeerRecord]:
        try:
            return self.peers.query_peers()
        except MgmtError as e:
            logger.warning(f"Live peer state unavailable: {e}")
            return {}

    def _online_node(
        self,
        node: AnnotatedNode,
        peer: PeerRecord,
        relayed: set[str],
        with_isp: bool,
    ) -> AnnotatedNode:
        node.is_online = True
        node.external_ip = peer.external_ip
        node.location = self.geoip.resolve(node.external_ip).describe(with_isp)
        node.connection_type = (
            ConnectionType.RELAY if peer.mac in relayed else ConnectionType.P2P
        )
        return node

    # =========================================================================
    # Public API
    # =========================================================================

    def list_nodes(self) -> list[AnnotatedNode]:
        """
        Build the annotated node list, sorted by overlay address.

        Returns:
            Mapped inventory nodes plus a synthesized entry for every live
            edge without an inventory record.
        """
        stored = self.inventory.list_nodes()
        peers = self._live_peers()
        relayed = self.relays.active_hardware_addresses()

        result: list[AnnotatedNode] = []
        mapped: set[str] = set()

        for record in stored:
            mac = canonical_mac(record.mac_address)
            mapped.add(mac)
            node = AnnotatedNode(
                id=record.id,
                name=record.name,
                ip_address=record.ip_address,
                mac_address=record.mac_address,
                community=record.community,
                is_online=False,
                is_mapped=True,
            )
            peer = peers.get(mac)
            if peer is not None:
                node = self._online_node(node, peer, relayed, with_isp=True)
            result.append(node)

        for mac, peer in peers.items():
            if mac in mapped:
                continue
            node = AnnotatedNode(
                id=0,
                name=UNMAPPED_NAME,
                ip_address=peer.internal,
                mac_address=mac,
                community=UNMAPPED_COMMUNITY,
                is_online=True,
                is_mapped=False,
            )
            result.append(self._online_node(node, peer, relayed, with_isp=False))

        result.sort(key=lambda n: address_sort_key(n.ip_address))
        return result

    def get_active_relays(self) -> list[RelayPair]:
        """Relay pairs seen within the staleness window."""
        return self.relays.active_relays()

    def topology(self) -> dict:
        """
        Build a hub-and-spoke graph: the supernode plus one vertex per
        inventory node, with an edge to every online node.
        """
        stored = self.inventory.list_nodes()
        peers = self._live_peers()

        vertices = [
            {
                "id": SUPERNODE_VERTEX_ID,
                "label": "Supernode",
                "group": NodeGroup.SUPERNODE.value,
            }
        ]
        edges = []
        for record in stored:
            mac = canonical_mac(record.mac_address)
            online = mac in peers
            vertices.append(
                {
                    "id": mac,
                    "label": record.name,
                    "group": (NodeGroup.ONLINE if online else NodeGroup.OFFLINE).value,
                }
            )
            if online:
                edges.append({"from": SUPERNODE_VERTEX_ID, "to": mac})

        return {"nodes": vertices, "edges": edges}

    def stats(self) -> dict:
        """Inventory counts and the number of edges registered right now."""
        return {
            "node_count": len(self.inventory.list_nodes()),
            "community_count": self.inventory.count_communities(),
            "online_count": len(self._live_peers()),
        }
