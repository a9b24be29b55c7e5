"""
Node Endpoints.

Node inventory management plus the live views built by the aggregator:
annotated node list, topology, active relays and dashboard stats.

Handlers are plain ``def`` functions: the aggregator blocks on the
management port and GeoIP lookups, so FastAPI runs them in its thread pool.
"""

import peewee
from fastapi import APIRouter, Depends, HTTPException, Path

from n2nadmin.db.inventory import Community, Node, Setting
from n2nadmin.models.requests import NodeCreateRequest
from n2nadmin.server.auth.dependencies import get_current_user
from n2nadmin.server.state import ServicesDep
from n2nadmin.services.addressing import (
    generate_mac,
    is_valid_mac,
    next_free_address,
    parse_ip,
    parse_network,
)
from n2nadmin.services.edge_config import EdgeConfigParams, render_edge_config
from n2nadmin.services.mgmt_client import canonical_mac
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])

SUPERNODE_HOST_SETTING = "supernode_host"


# =============================================================================
# Live Views
# =============================================================================


@router.get("/nodes")
def list_nodes(services: ServicesDep):
    """
    List all nodes with live status.

    Includes unregistered edges currently connected to the supernode
    (``is_mapped: false``).
    """
    return [node.to_dict() for node in services.aggregator.list_nodes()]


@router.get("/relays")
def list_relays(services: ServicesDep):
    """Relay pairs seen in the supernode log within the last minute."""
    return [pair.to_dict() for pair in services.aggregator.get_active_relays()]


@router.get("/topology")
def get_topology(services: ServicesDep):
    """Supernode-centred graph of inventory nodes."""
    return services.aggregator.topology()


@router.get("/stats")
def get_stats(services: ServicesDep):
    """Node, community and online counts."""
    return services.aggregator.stats()


# =============================================================================
# Node Creation
# =============================================================================


def _resolve_mac(request: NodeCreateRequest) -> str:
    if not request.mac_address:
        return generate_mac()
    if not is_valid_mac(request.mac_address):
        raise HTTPException(status_code=400, detail="Invalid MAC address format")
    return canonical_mac(request.mac_address)


def _resolve_ip(request: NodeCreateRequest, community: Community) -> str:
    if request.ip_address:
        ip = parse_ip(request.ip_address)
        if ip is None:
            raise HTTPException(status_code=400, detail="Invalid IP address format")
        network = parse_network(community.range) if community.range else None
        if network is not None and ip not in network:
            raise HTTPException(
                status_code=400, detail="IP address not in community range"
            )
        return str(ip)

    if not community.range:
        raise HTTPException(
            status_code=400,
            detail="IP address is required for a community without a range",
        )

    used = [
        n.ip_address
        for n in Node.select(Node.ip_address).where(Node.community == community.name)
    ]
    address = next_free_address(community.range, used)
    if address is None:
        raise HTTPException(status_code=400, detail="Community range is exhausted")
    return address


def _resolve_routing(request: NodeCreateRequest) -> str:
    if not (request.route_net and request.route_gw):
        return ""
    if parse_network(request.route_net) is None:
        raise HTTPException(status_code=400, detail="Invalid route network format")
    if parse_ip(request.route_gw) is None:
        raise HTTPException(status_code=400, detail="Invalid route gateway format")
    return f"{request.route_net}:{request.route_gw}"


@router.post("/nodes")
def create_node(request: NodeCreateRequest):
    """
    Register a node.

    A node with the same MAC or IP address is replaced.
    """
    if not request.name.strip():
        raise HTTPException(status_code=400, detail="Node name is required")

    community = Community.get_or_none(Community.name == request.community)
    if community is None:
        raise HTTPException(status_code=400, detail="Community not found")

    mac = _resolve_mac(request)
    ip_address = _resolve_ip(request, community)
    routing = _resolve_routing(request)

    Node.delete().where(
        (Node.mac_address == mac) | (Node.ip_address == ip_address)
    ).execute()

    try:
        node = Node.create(
            name=request.name.strip(),
            ip_address=ip_address,
            mac_address=mac,
            community=community.name,
            description=request.description,
            encryption=request.encryption.value,
            compression=request.compression,
            routing=routing,
            local_port=request.local_port,
        )
    except peewee.IntegrityError as e:
        logger.error(f"Failed to create node '{request.name}': {e}")
        raise HTTPException(status_code=500, detail="Failed to create node")

    logger.info(f"Created node '{node.name}' ({mac}, {ip_address})")
    return node.to_dict()


# =============================================================================
# Node Management
# =============================================================================


def _get_node(node_id: int) -> Node:
    node = Node.get_or_none(Node.id == node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Node {node_id} not found")
    return node


@router.delete("/nodes/{node_id}")
def delete_node(node_id: int = Path(...)):
    """Delete a node."""
    node = _get_node(node_id)
    node.delete_instance()
    logger.info(f"Deleted node '{node.name}'")
    return {"message": "deleted"}


@router.get("/nodes/{node_id}/config")
def get_node_config(node_id: int = Path(...)):
    """Render the edge.conf for a node."""
    node = _get_node(node_id)
    community = Community.get_or_none(Community.name == node.community)

    params = EdgeConfigParams(
        name=node.name,
        ip_address=node.ip_address,
        community=node.community,
        password=community.password if community else "",
        supernode=Setting.get_value(SUPERNODE_HOST_SETTING),
        mac_address=node.mac_address,
        encryption=node.encryption,
        compression=node.compression,
        routing=node.routing,
        local_port=node.local_port,
    )
    return {"conf": render_edge_config(params)}
