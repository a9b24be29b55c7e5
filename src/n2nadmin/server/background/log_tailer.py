"""
Supernode Log Tailer Background Task.

Follows the supernode's journal and feeds every line to the relay tracker.
The loop is a supervisor: failing to open the stream, or an open stream
ending or breaking, is logged and retried after a fixed backoff. The task
only stops when it is cancelled at shutdown.
"""

import asyncio
from typing import AsyncIterator, Protocol

from n2nadmin.services.relay_tracker import RelayTracker
from n2nadmin.utils.logger import get_logger

logger = get_logger(__name__)


# =============================================================================
# Log Sources
# =============================================================================


class LogStream(Protocol):
    def __aiter__(self) -> AsyncIterator[str]: ...

    async def close(self) -> None: ...


class LogSource(Protocol):
    async def open(self) -> LogStream: ...


class ProcessLogStream:
    """Lines of a child process's stdout."""

    def __init__(self, process: asyncio.subprocess.Process):
        self.process = process

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            raw = await self.process.stdout.readline()
            if not raw:
                return
            yield raw.decode("utf-8", errors="replace").rstrip("\r\n")

    async def close(self) -> None:
        if self.process.returncode is None:
            try:
                self.process.kill()
            except ProcessLookupError:
                pass
            await self.process.wait()


class JournalLogSource:
    """
    ``journalctl`` follower for a systemd unit.

    Args:
        unit: Unit name, e.g. ``supernode``.
        backlog: Number of past lines to emit before following (0 = from now).
        output: journalctl output mode (``cat`` drops the syslog prefix).
    """

    def __init__(self, unit: str, backlog: int = 0, output: str = "cat"):
        self.unit = unit
        self.backlog = backlog
        self.output = output

    def command(self) -> list[str]:
        return [
            "journalctl",
            "-u",
            self.unit,
            "-f",
            "-n",
            str(self.backlog),
            "--no-pager",
            "-o",
            self.output,
        ]

    async def open(self) -> ProcessLogStream:
        process = await asyncio.create_subprocess_exec(
            *self.command(),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.debug(f"Following journal of '{self.unit}' (pid {process.pid})")
        return ProcessLogStream(process)


# =============================================================================
# Supervisor
# =============================================================================


class LogTailer:
    """
    Supervised follower that feeds a RelayTracker.

    Attributes:
        lines_read: Total lines consumed since start.
        restarts: Number of times the stream was reopened.
    """

    def __init__(
        self,
        source: LogSource,
        tracker: RelayTracker,
        retry_seconds: float = 5.0,
        restart_seconds: float = 2.0,
    ):
        self.source = source
        self.tracker = tracker
        self.retry_seconds = retry_seconds
        self.restart_seconds = restart_seconds
        self.lines_read = 0
        self.restarts = 0

    async def run(self) -> None:
        """Follow the log forever, restarting on any failure."""
        while True:
            try:
                stream = await self.source.open()
            except Exception as e:
                logger.warning(
                    f"Log tailer: failed to open log stream: {e}, "
                    f"retrying in {self.retry_seconds}s"
                )
                await asyncio.sleep(self.retry_seconds)
                continue

            try:
                await self._consume(stream)
                logger.warning("Log tailer: log stream ended, restarting")
            except Exception as e:
                logger.warning(f"Log tailer: read error: {e}, restarting")
            finally:
                await stream.close()

            self.restarts += 1
            await asyncio.sleep(self.restart_seconds)

    async def _consume(self, stream: LogStream) -> None:
        async for line in stream:
            self.lines_read += 1
            self.tracker.observe_line(line)


async def follow_supernode_log(tailer: LogTailer) -> None:
    """Background task entry point."""
    logger.info("Relay detection log tailer started")
    await tailer.run()
