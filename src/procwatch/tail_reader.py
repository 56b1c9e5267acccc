"""Incremental line reader for a managed process's log file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogLine:
    number: int  # 1-based
    text: str


def read_lines(path: str | os.PathLike[str]) -> Iterator[LogLine]:
    """Yield every line currently in *path*, numbered from 1.

    Stops at end-of-file rather than waiting for appends; call again for
    the next pass. The file is opened lazily on the first ``next()`` and
    closed when the generator is exhausted, closed early, or fails.
    Open and read errors propagate as OSError.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        log.debug("Opened %s for reading", path)
        for number, raw in enumerate(f, start=1):
            yield LogLine(number, raw[:-1] if raw.endswith("\n") else raw)
