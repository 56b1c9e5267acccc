"""Bounded extraction of tagged events from a managed process's log file."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Protocol, Sequence

from procwatch.classifier import ExtractionRule, classify
from procwatch.tail_reader import read_lines
from procwatch.utils import COMMAND_TIMEOUT, run_with_deadline

log = logging.getLogger(__name__)

# Hand control back to the event loop this often so the deadline can fire
_YIELD_EVERY = 500


@dataclass(frozen=True)
class ReadCursor:
    """Number of leading lines of a file that have already been consumed."""

    last_line_read: int = 0

    def __post_init__(self) -> None:
        if self.last_line_read < 0:
            raise ValueError(f"last_line_read must be >= 0, got {self.last_line_read}")

    def advance(self, line_number: int) -> ReadCursor:
        if line_number <= self.last_line_read:
            return self
        return ReadCursor(line_number)


@dataclass(frozen=True)
class TaggedEvent:
    line_number: int
    text: str
    tag: str
    source_group: str
    source_file: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class EventSink(Protocol):
    async def append(self, events: Sequence[TaggedEvent]) -> None: ...


async def _extract(
    path: str,
    cursor: ReadCursor,
    group_name: str,
    rules: Sequence[ExtractionRule],
    sink: EventSink,
) -> tuple[list[TaggedEvent], ReadCursor]:
    log.debug("Start reading %s from line %d", path, cursor.last_line_read)
    events: list[TaggedEvent] = []
    last_line_read = cursor.last_line_read

    lines = read_lines(path)
    try:
        for line in lines:
            if line.number > cursor.last_line_read:
                # Every line read moves the cursor, matched or not
                last_line_read = line.number
                tag = classify(line.text, rules)
                if tag is not None:
                    events.append(TaggedEvent(line.number, line.text, tag, group_name, path))
            if line.number % _YIELD_EVERY == 0:
                await asyncio.sleep(0)
    except FileNotFoundError:
        log.debug("Log file %s does not exist (yet)", path)
    except OSError as e:
        log.error("Error in reading managed service's log file %s: %s", path, e)
    finally:
        lines.close()

    log.debug("Line %d was the last line read from file=%s", last_line_read, path)
    log.debug("Matching lines: %d", len(events))

    await sink.append(events)
    return events, cursor.advance(last_line_read)


async def extract_events(
    path: str | os.PathLike[str],
    cursor: ReadCursor,
    group_name: str,
    rules: Sequence[ExtractionRule],
    sink: EventSink,
    timeout: float = COMMAND_TIMEOUT,
) -> tuple[list[TaggedEvent], ReadCursor]:
    """Classify the lines of *path* after *cursor* and hand the events to *sink*.

    Returns the events (in line order) and the advanced cursor. A missing
    or unreadable file yields whatever was read before the failure, so the
    cursor never moves backwards and no line is classified twice.

    Raises:
        ExtractionTimeout: the pass exceeded *timeout* seconds. Nothing
            from the pass is returned; keep using the previous cursor.
    """
    return await run_with_deadline(
        _extract(os.fspath(path), cursor, group_name, rules, sink),
        timeout,
        what=f"Event extraction from {os.fspath(path)}",
    )
