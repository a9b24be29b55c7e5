"""
Supernode Host Integration.

File and service operations on the machine running the supernode:
    - ``supernode.conf`` read/write (``-key=value`` / ``-flag`` lines)
    - ``community.list`` sync from the inventory
    - ``systemctl restart`` of the supernode unit
    - recent journal lines
"""

import asyncio
import os

from n2nadmin.exceptions import SupernodeConfigError, ToolError
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)

# Flags the admin panel always keeps on: foreground mode and verbose
# logging (the relay tracker depends on the forwarding lines)
FORCED_FLAGS = ("f", "v")


# =============================================================================
# supernode.conf
# =============================================================================


def parse_supernode_config(text: str) -> dict[str, str]:
    """
    Parse supernode.conf text.

    ``-p=7654`` becomes ``{"p": "7654"}``; a bare ``-f`` becomes
    ``{"f": ""}``. Blank lines and ``#`` comments are skipped.
    """
    config: dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            key, value = line.split("=", 1)
            config[key.lstrip("-")] = value
        elif line.startswith("-"):
            config[line.lstrip("-")] = ""
    return config


def render_supernode_config(config: dict[str, str]) -> str:
    lines = [f"-{k}" if v == "" else f"-{k}={v}" for k, v in config.items()]
    return "\n".join(lines) + "\n"


def read_supernode_config(path: str) -> dict[str, str]:
    """
    Read supernode.conf.

    Raises:
        SupernodeConfigError: If the file cannot be read.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return parse_supernode_config(f.read())
    except OSError as e:
        raise SupernodeConfigError(str(e), path) from e


def update_supernode_config(path: str, changes: dict[str, str]) -> dict[str, str]:
    """
    Merge ``changes`` into supernode.conf and write it back.

    A missing file is treated as empty. The forced flags are always set.

    Returns:
        The resulting configuration.
    """
    try:
        current = read_supernode_config(path)
    except SupernodeConfigError:
        current = {}

    current.update(changes)
    for flag in FORCED_FLAGS:
        current[flag] = ""

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(render_supernode_config(current))
    except OSError as e:
        raise SupernodeConfigError(str(e), path) from e

    logger.info(f"Updated supernode config {path} ({len(changes)} keys)")
    return current


# =============================================================================
# community.list
# =============================================================================


def write_community_list(path: str, names: list[str]) -> None:
    """
    Write the community whitelist, one name per line.

    Raises:
        SupernodeConfigError: If the file cannot be written.
    """
    content = "\n".join(names)
    if content:
        content += "\n"

    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        raise SupernodeConfigError(str(e), path) from e

    logger.debug(f"Wrote {len(names)} communities to {path}")


# =============================================================================
# Service Commands
# =============================================================================


async def run_command(*args: str, timeout: float = 30.0) -> tuple[int, str]:
    """
    Run a command and capture combined stdout/stderr.

    Returns:
        ``(exit_code, output)``.

    Raises:
        ToolError: If the command cannot be started or times out.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        raise ToolError(f"Cannot run {args[0]}: {e}") from e

    try:
        stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise ToolError(f"{args[0]} timed out after {timeout}s") from e

    return process.returncode, stdout.decode("utf-8", errors="replace")


async def restart_supernode(unit: str) -> str:
    """Restart the supernode systemd unit."""
    code, output = await run_command("systemctl", "restart", unit)
    if code != 0:
        raise ToolError(f"systemctl restart {unit} failed: {output.strip()}")
    logger.info(f"Restarted supernode unit '{unit}'")
    return output


async def recent_logs(unit: str, lines: int = 100) -> list[str]:
    """Return the last ``lines`` journal lines of the unit."""
    code, output = await run_command(
        "journalctl", "-u", unit, "-n", str(lines), "--no-pager"
    )
    if code != 0:
        raise ToolError(f"journalctl failed: {output.strip()}")
    return output.strip().splitlines()
