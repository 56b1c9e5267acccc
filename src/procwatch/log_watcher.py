"""Background poller that tails one managed log file into the event store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from procwatch.config import ExtractionTarget
from procwatch.errors import ExtractionTimeout
from procwatch.extraction import EventSink, ReadCursor, extract_events
from procwatch.utils import COMMAND_TIMEOUT, POLL_INTERVAL

log = logging.getLogger(__name__)


class LogWatcher:
    """Periodically extracts new tagged events from a single log file.

    The cursor lives here, between polls, and is only replaced by the
    cursor an extraction pass returns. A timed-out pass leaves it as is.
    """

    def __init__(
        self,
        sink: EventSink,
        target: ExtractionTarget,
        cursor: ReadCursor | None = None,
        timeout: float = COMMAND_TIMEOUT,
    ) -> None:
        self._sink = sink
        self.target = target
        self.cursor = cursor or ReadCursor()
        self._timeout = timeout
        self._lock = asyncio.Lock()

    async def run_forever(self, interval: float = POLL_INTERVAL) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception:
                log.exception("LogWatcher error for %s", self.target.file_path)
            await asyncio.sleep(interval)

    async def poll_once(self) -> dict[str, Any]:
        async with self._lock:
            try:
                events, cursor = await extract_events(
                    self.target.file_path,
                    self.cursor,
                    self.target.group_name,
                    self.target.rules,
                    self._sink,
                    timeout=self._timeout,
                )
            except ExtractionTimeout as e:
                log.warning("%s; retrying from line %d next poll", e, self.cursor.last_line_read)
                return {"events": 0, "last_line_read": self.cursor.last_line_read, "timed_out": True}

            self.cursor = cursor
            return {"events": len(events), "last_line_read": cursor.last_line_read, "timed_out": False}

    def describe(self) -> dict[str, Any]:
        return {
            "group": self.target.group_name,
            "file": self.target.file_path,
            "last_line_read": self.cursor.last_line_read,
            "rules": [r.tag_name for r in self.target.rules],
        }
