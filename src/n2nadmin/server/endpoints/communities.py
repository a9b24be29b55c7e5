"""
Community Endpoints.

Every change is mirrored into the supernode's ``community.list``.
"""

from fastapi import APIRouter, Depends, HTTPException, Path

from n2nadmin.db.inventory import Community
from n2nadmin.exceptions import SupernodeConfigError
from n2nadmin.models.requests import CommunityCreateRequest
from n2nadmin.server.auth.dependencies import get_current_user
from n2nadmin.server.state import ServicesDep
from n2nadmin.services.addressing import parse_network
from n2nadmin.services.supernode import write_community_list
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(get_current_user)])

MIN_COMMUNITY_PASSWORD_LENGTH = 4


def _sync_community_list(path: str) -> None:
    names = [c.name for c in Community.select().order_by(Community.id)]
    try:
        write_community_list(path, names)
    except SupernodeConfigError as e:
        logger.warning(f"Could not sync community list: {e}")


@router.get("/communities")
def list_communities():
    """List all communities."""
    return [c.to_dict() for c in Community.select().order_by(Community.id)]


@router.post("/communities")
def create_community(request: CommunityCreateRequest, services: ServicesDep):
    """Create a community."""
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Community name is required")
    if request.range and parse_network(request.range) is None:
        raise HTTPException(status_code=400, detail="Invalid CIDR format")
    if len(request.password) < MIN_COMMUNITY_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_COMMUNITY_PASSWORD_LENGTH} characters",
        )
    if Community.get_or_none(Community.name == name) is not None:
        raise HTTPException(status_code=400, detail="Community already exists")

    community = Community.create(
        name=name, range=request.range, password=request.password
    )
    _sync_community_list(services.config.COMMUNITY_LIST)

    logger.info(f"Created community '{name}'")
    return community.to_dict()


@router.delete("/communities/{community_id}")
def delete_community(services: ServicesDep, community_id: int = Path(...)):
    """Delete a community."""
    deleted = Community.delete().where(Community.id == community_id).execute()
    if not deleted:
        raise HTTPException(
            status_code=404, detail=f"Community {community_id} not found"
        )
    _sync_community_list(services.config.COMMUNITY_LIST)
    return {"message": "deleted"}
