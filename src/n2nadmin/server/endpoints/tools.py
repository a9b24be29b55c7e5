"""Network diagnostic endpoint (ping/traceroute)."""

from fastapi import APIRouter, Depends, HTTPException

from n2nadmin.exceptions import ToolError
from n2nadmin.models.requests import ToolExecRequest
from n2nadmin.server.auth.dependencies import get_current_user
from n2nadmin.server.state import ServicesDep
from n2nadmin.services.addressing import is_valid_target
from n2nadmin.services.net_tools import run_tool
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/tools", dependencies=[Depends(get_current_user)])


@router.post("/exec")
async def exec_tool(request: ToolExecRequest, services: ServicesDep):
    """
    Run ping or traceroute against a target.

    Disabled unless ENABLE_NET_TOOLS is set. A non-zero exit code is not
    an HTTP error; the output is returned with an ``error`` field.
    """
    if not services.config.ENABLE_NET_TOOLS:
        raise HTTPException(
            status_code=403, detail="Network tools are disabled by the administrator"
        )
    if not is_valid_target(request.target):
        raise HTTPException(status_code=400, detail="Invalid target address")

    logger.info(f"Running {request.command.value} against {request.target}")
    try:
        code, output = await run_tool(request.command, request.target)
    except ToolError as e:
        return {"output": "", "error": str(e)}

    if code != 0:
        return {"output": output, "error": f"exit status {code}"}
    return {"output": output}
