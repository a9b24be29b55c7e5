"""Diagnostic network commands (ping/traceroute) run on the server."""

from n2nadmin.exceptions import ToolError
from n2nadmin.models.enums import ToolCommand
from n2nadmin.services.addressing import is_valid_target
from n2nadmin.services.supernode import run_command


def build_tool_command(command: ToolCommand, target: str) -> list[str]:
    """
    Build the argv for a diagnostic command.

    Raises:
        ToolError: If the target is not an address or hostname.
    """
    if not is_valid_target(target):
        raise ToolError(f"Invalid target address: {target!r}")

    if command == ToolCommand.PING:
        return ["ping", "-c", "4", "-W", "2", target]
    return ["traceroute", "-m", "10", "-n", target]


async def run_tool(command: ToolCommand, target: str) -> tuple[int, str]:
    """Run a diagnostic command; see ``build_tool_command``."""
    return await run_command(*build_tool_command(command, target), timeout=60.0)
