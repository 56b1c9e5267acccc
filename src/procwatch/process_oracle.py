"""OS process inspection and termination, via psutil."""

from __future__ import annotations

import logging
from typing import Protocol

import psutil

log = logging.getLogger(__name__)


def _normalize(command: str) -> str:
    return " ".join(command.split())


class ProcessOracle(Protocol):
    def is_running(self, pid: int, expected_command: str) -> bool: ...

    def terminate(self, pid: int) -> bool: ...


class PsutilProcessOracle:
    """Checks and stops processes by PID.

    A PID is only considered "ours" if the live process's command line
    contains *expected_command*; PIDs get reused after a reboot or once
    the old process has exited.
    """

    def __init__(self, grace_seconds: float = 5.0) -> None:
        self.grace_seconds = grace_seconds

    def is_running(self, pid: int, expected_command: str) -> bool:
        try:
            proc = psutil.Process(pid)
            if _is_gone(proc):
                return False
            cmdline = _normalize(" ".join(proc.cmdline()))
        except psutil.NoSuchProcess:
            return False
        except psutil.AccessDenied:
            log.warning("Access denied inspecting PID %d; not treating it as the managed process", pid)
            return False

        if _normalize(expected_command) not in cmdline:
            log.info("PID %d is running %r, not %r", pid, cmdline[:120], expected_command)
            return False
        return True

    def terminate(self, pid: int) -> bool:
        """Send SIGTERM, escalating to SIGKILL after the grace period.

        Returns True if the process is gone (or a zombie) afterwards.
        """
        try:
            proc = psutil.Process(pid)
            proc.terminate()
            if self._wait_gone(proc):
                return True
            log.warning("PID %d ignored SIGTERM for %.1fs, killing", pid, self.grace_seconds)
            proc.kill()
            if self._wait_gone(proc):
                return True
        except psutil.NoSuchProcess:
            return True
        except psutil.AccessDenied as e:
            log.error("Not allowed to terminate PID %d: %s", pid, e)
            return False

        log.error("PID %d is still running after SIGKILL", pid)
        return False

    def _wait_gone(self, proc: psutil.Process) -> bool:
        try:
            proc.wait(timeout=self.grace_seconds)
        except psutil.TimeoutExpired:
            pass
        return _is_gone(proc)


def _is_gone(proc: psutil.Process) -> bool:
    try:
        return not proc.is_running() or proc.status() == psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return True
