"""Persisted record of the most recently started managed-process PID."""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from procwatch.errors import PidStoreError
from procwatch.utils import PID_FILE

log = logging.getLogger(__name__)

_PID_RE = re.compile(r"[0-9]+")


class PidRecordStore:
    """Reads and overwrites a single decimal PID in a well-known file."""

    def __init__(self, path: str | Path = PID_FILE) -> None:
        self.path = Path(path)

    def read(self) -> int | None:
        """Return the stored PID, or None if there is no usable record.

        A corrupt record is reported as None so it is never mistaken for
        a live process. Errors other than "file not found" are raised.
        """
        try:
            content = self.path.read_text(errors="replace").strip()
        except FileNotFoundError:
            log.debug("No PID record at %s", self.path)
            return None
        except OSError as e:
            raise PidStoreError(e.errno, f"Cannot read PID record {self.path}: {e.strerror or e}") from e

        if not _PID_RE.fullmatch(content) or int(content) <= 0:
            log.warning("PID record %s is not a valid PID: %r", self.path, content[:40])
            return None
        return int(content)

    def write(self, pid: int) -> bool:
        """Replace the record with *pid*. Returns False if it could not be written."""
        if pid <= 0:
            raise ValueError(f"Invalid PID: {pid}")
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            with os.fdopen(fd, "w") as f:
                f.write(str(pid))
            os.replace(tmp_name, self.path)
        except OSError as e:
            log.error("Failed to write PID %d to %s: %s", pid, self.path, e)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False
        log.debug("Wrote PID %d to %s", pid, self.path)
        return True

    def clear(self) -> None:
        """Remove the record if present."""
        try:
            self.path.unlink()
            log.debug("Removed PID record %s", self.path)
        except FileNotFoundError:
            pass
