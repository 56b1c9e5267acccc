"""Prevent two instances of the managed process from running at once."""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, TypeVar

from procwatch.pid_store import PidRecordStore
from procwatch.process_oracle import ProcessOracle

log = logging.getLogger(__name__)

P = TypeVar("P")


def _pid_of(process: Any) -> int:
    """PID of a Popen / psutil.Process / asyncio subprocess, or a bare int."""
    if isinstance(process, int):
        return process
    pid = getattr(process, "pid", None)
    if not isinstance(pid, int):
        raise TypeError(f"Cannot determine PID of {process!r}")
    return pid


class DuplicateProcessGuard:
    """Resolves a previously recorded managed-process instance on startup.

    The record is only a hint: a PID is acted on after the OS confirms a
    process with that PID is running the expected command.
    """

    def __init__(self, oracle: ProcessOracle, store: PidRecordStore) -> None:
        self._oracle = oracle
        self._store = store

    def kill_existing_process_if_running(self, expected_command: str) -> bool:
        """Terminate the recorded instance if it is still running.

        Returns True when no conflicting instance is known to be running
        afterwards, including when there was no (valid) record at all.
        Raises PidStoreError if the record exists but cannot be read.
        """
        pid = self._store.read()
        if pid is None:
            log.debug("No previous managed process recorded")
            return True

        if pid == os.getpid():
            log.warning("Recorded PID %d is this process; not killing it", pid)
            return True

        if not self._oracle.is_running(pid, expected_command):
            log.info("Recorded PID %d is not a running %r, nothing to kill", pid, expected_command)
            return True

        log.info("Managed process %r already running with PID %d, terminating it", expected_command, pid)
        if self._oracle.terminate(pid):
            log.info("Terminated previous managed process PID %d", pid)
            return True
        log.error("Could not terminate previous managed process PID %d, proceeding anyway", pid)
        return False

    def record_managed_process(self, process: Any) -> bool:
        """Overwrite the record with the PID of *process*."""
        pid = _pid_of(process)
        ok = self._store.write(pid)
        if ok:
            log.info("Recorded managed process PID %d in %s", pid, self._store.path)
        return ok

    def launch_exclusive(self, expected_command: str, launch: Callable[[], P]) -> P:
        """Resolve any previous instance, start a new one and record it."""
        self.kill_existing_process_if_running(expected_command)
        process = launch()
        self.record_managed_process(process)
        return process
