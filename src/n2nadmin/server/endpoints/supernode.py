"""
Supernode Endpoints.

Configuration file access, service restart and log viewing for the
supernode running on this host.
"""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from n2nadmin.exceptions import SupernodeConfigError, ToolError
from n2nadmin.server.auth.dependencies import get_current_user
from n2nadmin.server.background.log_tailer import JournalLogSource
from n2nadmin.server.state import ServicesDep
from n2nadmin.services.supernode import (
    read_supernode_config,
    recent_logs,
    restart_supernode,
    update_supernode_config,
)
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/supernode", dependencies=[Depends(get_current_user)])

LOG_BACKLOG_LINES = 100


# =============================================================================
# Configuration
# =============================================================================


@router.get("/config")
async def get_supernode_config(services: ServicesDep):
    """Read supernode.conf (empty if missing)."""
    try:
        return await asyncio.to_thread(
            read_supernode_config, services.config.SUPERNODE_CONF
        )
    except SupernodeConfigError as e:
        logger.debug(f"Supernode config unavailable: {e}")
        return {}


@router.post("/config")
async def save_supernode_config(changes: dict[str, str], services: ServicesDep):
    """Merge keys into supernode.conf."""
    try:
        await asyncio.to_thread(
            update_supernode_config, services.config.SUPERNODE_CONF, changes
        )
    except SupernodeConfigError as e:
        logger.error(f"Failed to save supernode config: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "saved"}


@router.post("/restart")
async def restart(services: ServicesDep):
    """Restart the supernode service."""
    try:
        await restart_supernode(services.config.SUPERNODE_UNIT)
    except ToolError as e:
        logger.error(f"Failed to restart supernode: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"message": "restarted"}


# =============================================================================
# Logs
# =============================================================================


@router.get("/logs/recent")
async def get_recent_logs(services: ServicesDep):
    """Last lines of the supernode journal."""
    try:
        lines = await recent_logs(services.config.SUPERNODE_UNIT, LOG_BACKLOG_LINES)
    except ToolError as e:
        logger.error(f"Failed to read supernode logs: {e}")
        raise HTTPException(status_code=500, detail="Failed to read logs")
    return {"logs": lines}


@router.get("/logs")
async def stream_logs(request: Request, services: ServicesDep):
    """Stream the supernode journal as server-sent events."""
    source = JournalLogSource(
        services.config.SUPERNODE_UNIT, backlog=LOG_BACKLOG_LINES, output="short"
    )

    async def event_generator():
        try:
            stream = await source.open()
        except OSError as e:
            logger.error(f"Cannot follow supernode journal: {e}")
            return

        try:
            async for line in stream:
                if await request.is_disconnected():
                    break
                yield {"data": line.strip()}
        finally:
            await stream.close()

    return EventSourceResponse(event_generator())
