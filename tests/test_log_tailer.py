"""
Tests for n2nadmin.server.background.log_tailer module.
"""

import asyncio

from n2nadmin.server.background.log_tailer import JournalLogSource, LogTailer
from n2nadmin.services.relay_tracker import RelayTracker

FORWARD_LINE = "forwarding packet from 02:00:00:00:00:01 to 02:00:00:00:00:02"


class ListStream:
    """LogStream over a fixed list; optionally fails after the lines."""

    def __init__(self, lines, error=None):
        self.lines = lines
        self.error = error
        self.closed = False

    async def __aiter__(self):
        for line in self.lines:
            yield line
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


class ScriptedSource:
    """LogSource returning scripted streams (or raising) on each open."""

    def __init__(self, script, stop: asyncio.Event):
        self.script = list(script)
        self.stop = stop
        self.opened = []

    async def open(self):
        if not self.script:
            self.stop.set()
            # Park until the test cancels the tailer
            await asyncio.Event().wait()
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        self.opened.append(item)
        return item


def run_tailer(script, tracker):
    async def scenario():
        stop = asyncio.Event()
        source = ScriptedSource(script, stop)
        tailer = LogTailer(source, tracker, retry_seconds=0, restart_seconds=0)
        task = asyncio.create_task(tailer.run())
        await asyncio.wait_for(stop.wait(), timeout=5)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return tailer, source

    return asyncio.run(scenario())


class TestLogTailer:
    """Tests for the supervised tailer loop."""

    def test_feeds_tracker(self):
        """Forwarding lines reach the tracker; other lines are counted only."""
        tracker = RelayTracker()
        stream = ListStream(["starting", FORWARD_LINE, FORWARD_LINE])

        tailer, _ = run_tailer([stream], tracker)

        assert tailer.lines_read == 3
        pairs = tracker.active_relays()
        assert len(pairs) == 1
        assert pairs[0].packet_count == 2

    def test_restarts_after_stream_end(self):
        """An ended stream is closed and reopened."""
        tracker = RelayTracker()
        first = ListStream([FORWARD_LINE])
        second = ListStream([FORWARD_LINE])

        tailer, source = run_tailer([first, second], tracker)

        assert first.closed and second.closed
        assert tailer.restarts == 2
        assert source.opened == [first, second]

    def test_survives_read_error(self):
        """A broken stream does not stop the loop."""
        tracker = RelayTracker()
        broken = ListStream([FORWARD_LINE], error=RuntimeError("pipe broke"))
        healthy = ListStream([FORWARD_LINE])

        tailer, _ = run_tailer([broken, healthy], tracker)

        assert broken.closed
        assert tailer.lines_read == 2

    def test_retries_failed_open(self):
        """Open failures are retried without counting as restarts."""
        tracker = RelayTracker()
        stream = ListStream([FORWARD_LINE])

        tailer, _ = run_tailer([OSError("no journalctl"), stream], tracker)

        assert tailer.lines_read == 1
        assert tailer.restarts == 1


class TestJournalLogSource:
    def test_command(self):
        source = JournalLogSource("supernode", backlog=100, output="short")

        assert source.command() == [
            "journalctl",
            "-u",
            "supernode",
            "-f",
            "-n",
            "100",
            "--no-pager",
            "-o",
            "short",
        ]
