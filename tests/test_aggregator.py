"""
Tests for n2nadmin.services.aggregator module.
"""

import httpx
import pytest

from conftest import StaticPeers, make_peer
from n2nadmin.exceptions import MgmtError
from n2nadmin.models.enums import ConnectionType
from n2nadmin.services.aggregator import (
    UNMAPPED_COMMUNITY,
    UNMAPPED_NAME,
    InventoryNode,
    NodeAggregator,
    address_sort_key,
)
from n2nadmin.services.geoip import GeoIPCache
from n2nadmin.services.relay_tracker import RelayTracker


class ListInventory:
    def __init__(self, nodes, communities=1):
        self.nodes = nodes
        self.communities = communities

    def list_nodes(self):
        return list(self.nodes)

    def count_communities(self):
        return self.communities


def geo_handler(request):
    return httpx.Response(
        200,
        json={"status": "success", "country": "Japan", "city": "Tokyo", "isp": "ExampleNet"},
    )


@pytest.fixture
def geoip(clock):
    client = httpx.Client(transport=httpx.MockTransport(geo_handler))
    return GeoIPCache(client=client, clock=clock)


@pytest.fixture
def inventory():
    return ListInventory(
        [
            InventoryNode(1, "ten", "10.0.0.10", "020000000010", "office"),
            InventoryNode(2, "two", "10.0.0.2", "020000000002", "office"),
            InventoryNode(3, "one", "10.0.0.1", "02:00:00:00:00:01", "office"),
        ]
    )


def build(inventory, peers, geoip, clock, relays=None):
    return NodeAggregator(
        inventory=inventory,
        peers=peers,
        relays=relays or RelayTracker(clock=clock),
        geoip=geoip,
    )


class TestSorting:
    """Tests for address ordering."""

    def test_numeric_order(self):
        addresses = ["10.0.0.10", "10.0.0.2", "10.0.0.1"]
        assert sorted(addresses, key=address_sort_key) == [
            "10.0.0.1",
            "10.0.0.2",
            "10.0.0.10",
        ]

    def test_unparsable_sorted_last(self):
        addresses = ["zzz", "10.0.0.1", "", "2001:db8::1"]
        assert sorted(addresses, key=address_sort_key) == [
            "10.0.0.1",
            "2001:db8::1",
            "",
            "zzz",
        ]


class TestListNodes:
    """Tests for NodeAggregator.list_nodes."""

    def test_sorted_numerically(self, inventory, geoip, clock):
        aggregator = build(inventory, StaticPeers(), geoip, clock)

        nodes = aggregator.list_nodes()

        assert [n.ip_address for n in nodes] == ["10.0.0.1", "10.0.0.2", "10.0.0.10"]
        assert all(not n.is_online for n in nodes)
        assert all(n.connection_type is None for n in nodes)

    def test_online_node_annotated(self, inventory, geoip, clock):
        """A live peer marks its node online with location and P2P type."""
        peers = StaticPeers(
            {"020000000001": make_peer("020000000001", "10.0.0.1", "203.0.113.7:5000")}
        )
        aggregator = build(inventory, peers, geoip, clock)

        node = aggregator.list_nodes()[0]

        assert node.is_online
        assert node.is_mapped
        assert node.external_ip == "203.0.113.7"
        assert node.location == "Japan Tokyo (ExampleNet)"
        assert node.connection_type == ConnectionType.P2P

    def test_unmapped_peer_synthesized(self, geoip, clock):
        """A live edge without inventory record appears as a new node."""
        peers = StaticPeers(
            {"AABBCCDDEEFF": make_peer("AABBCCDDEEFF", "10.0.0.50", "203.0.113.9:6000")}
        )
        aggregator = build(ListInventory([]), peers, geoip, clock)

        nodes = aggregator.list_nodes()

        assert len(nodes) == 1
        node = nodes[0]
        assert node.id == 0
        assert node.name == UNMAPPED_NAME
        assert node.community == UNMAPPED_COMMUNITY
        assert node.mac_address == "AABBCCDDEEFF"
        assert node.ip_address == "10.0.0.50"
        assert not node.is_mapped
        assert node.is_online
        assert node.location == "Japan Tokyo"

    def test_relay_on_either_side(self, inventory, geoip, clock):
        """Both endpoints of a live relay pair are RELAY."""
        relays = RelayTracker(clock=clock)
        relays.observe("020000000001", "020000000002")
        peers = StaticPeers(
            {
                mac: make_peer(mac, ip, "203.0.113.7:5000")
                for mac, ip in [
                    ("020000000001", "10.0.0.1"),
                    ("020000000002", "10.0.0.2"),
                    ("020000000010", "10.0.0.10"),
                ]
            }
        )
        aggregator = build(inventory, peers, geoip, clock, relays=relays)

        types = {n.mac_address: n.connection_type for n in aggregator.list_nodes()}

        assert types["02:00:00:00:00:01"] == ConnectionType.RELAY
        assert types["020000000002"] == ConnectionType.RELAY
        assert types["020000000010"] == ConnectionType.P2P

    def test_stale_relay_is_p2p(self, inventory, geoip, clock):
        relays = RelayTracker(stale_seconds=60, clock=clock)
        relays.observe("020000000001", "020000000002")
        clock.advance(60)
        peers = StaticPeers(
            {"020000000001": make_peer("020000000001", "10.0.0.1", "203.0.113.7:1")}
        )
        aggregator = build(inventory, peers, geoip, clock, relays=relays)

        assert aggregator.list_nodes()[0].connection_type == ConnectionType.P2P

    def test_mgmt_failure_shows_all_offline(self, inventory, geoip, clock):
        """An unreachable management port never fails the listing."""
        peers = StaticPeers(error=MgmtError("timed out", "127.0.0.1:56440"))
        aggregator = build(inventory, peers, geoip, clock)

        nodes = aggregator.list_nodes()

        assert len(nodes) == 3
        assert not any(n.is_online for n in nodes)

    def test_to_dict(self, inventory, geoip, clock):
        aggregator = build(inventory, StaticPeers(), geoip, clock)

        data = aggregator.list_nodes()[0].to_dict()

        assert data["conn_type"] == ""
        assert data["is_mapped"] is True


class TestTopologyAndStats:
    def test_topology(self, inventory, geoip, clock):
        peers = StaticPeers(
            {"020000000002": make_peer("020000000002", "10.0.0.2", "203.0.113.7:1")}
        )
        aggregator = build(inventory, peers, geoip, clock)

        graph = aggregator.topology()

        assert graph["nodes"][0]["group"] == "supernode"
        assert len(graph["nodes"]) == 4
        assert graph["edges"] == [{"from": "supernode", "to": "020000000002"}]

    def test_stats(self, inventory, geoip, clock):
        peers = StaticPeers(
            {"020000000002": make_peer("020000000002", "10.0.0.2", "203.0.113.7:1")}
        )
        aggregator = build(inventory, peers, geoip, clock)

        assert aggregator.stats() == {
            "node_count": 3,
            "community_count": 1,
            "online_count": 1,
        }
