"""Generic utilities and configuration for procwatch."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Awaitable, TypeVar

from procwatch.errors import ExtractionTimeout

T = TypeVar("T")

# Configuration Constants
PROCWATCH_HOME = Path(os.environ.get("PROCWATCH_HOME", Path.home() / ".procwatch"))
DB_PATH = Path(os.environ.get("PROCWATCH_DB_PATH", PROCWATCH_HOME / "events.db"))
PID_FILE = Path(os.environ.get("PROCWATCH_PID_FILE", PROCWATCH_HOME / "last_running_process.txt"))
POLL_INTERVAL = float(os.environ.get("PROCWATCH_POLL_INTERVAL", "5"))

# Wall-clock budget for one extraction pass, in seconds
COMMAND_TIMEOUT = 10.0


def get_config_path() -> str | None:
    """Extraction config path; read at call time so `--config` can set it after import."""
    return os.environ.get("PROCWATCH_CONFIG") or None


async def run_with_deadline(aw: Awaitable[T], timeout: float, what: str = "command") -> T:
    """Await *aw*, cancelling it if it runs longer than *timeout* seconds.

    Raises:
        ExtractionTimeout: the deadline expired; the work was cancelled.
    """
    try:
        return await asyncio.wait_for(aw, timeout=timeout)
    except asyncio.TimeoutError:
        raise ExtractionTimeout(f"{what} timed out after {timeout:g}s") from None

