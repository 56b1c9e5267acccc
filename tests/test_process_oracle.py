"""Tests for psutil-backed process inspection and termination, using real child processes."""

import subprocess
import sys
import time
import uuid

import psutil
import pytest

from procwatch.process_oracle import PsutilProcessOracle

STUBBORN = (
    "import signal, sys, time\n"
    "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
    "print('ready', flush=True)\n"
    "time.sleep(30)\n"
)


def _sleeper_args():
    return [sys.executable, "-c", f"import time; time.sleep(30)  # {uuid.uuid4().hex}"]


def _cleanup(proc):
    if proc.poll() is None:
        proc.kill()
        proc.wait()


@pytest.fixture
def sleeper():
    args = _sleeper_args()
    proc = subprocess.Popen(args)
    yield proc, " ".join(args)
    _cleanup(proc)


@pytest.fixture
def reaped_pid():
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    return proc.pid


# ── is_running ────────────────────────────────────────────────────────────


def test_is_running_matches_command_line(sleeper):
    proc, command = sleeper
    assert PsutilProcessOracle().is_running(proc.pid, command) is True


def test_is_running_ignores_whitespace_differences(sleeper):
    proc, command = sleeper
    assert PsutilProcessOracle().is_running(proc.pid, "  " + command.replace(" ", "   ")) is True


def test_is_running_rejects_other_command(sleeper):
    proc, _ = sleeper
    assert PsutilProcessOracle().is_running(proc.pid, "java -jar pharmacy-agent.jar") is False


def test_is_running_false_for_reaped_pid(reaped_pid):
    assert PsutilProcessOracle().is_running(reaped_pid, sys.executable) is False


def test_is_running_false_for_zombie():
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    try:
        deadline = time.monotonic() + 10
        while psutil.Process(proc.pid).status() != psutil.STATUS_ZOMBIE:
            assert time.monotonic() < deadline, "child never became a zombie"
            time.sleep(0.05)
        assert PsutilProcessOracle().is_running(proc.pid, sys.executable) is False
    finally:
        proc.wait()


def test_access_denied_is_not_verifiable(sleeper, monkeypatch):
    proc, command = sleeper

    def denied(self):
        raise psutil.AccessDenied(self.pid)

    monkeypatch.setattr(psutil.Process, "cmdline", denied)
    assert PsutilProcessOracle().is_running(proc.pid, command) is False


# ── terminate ─────────────────────────────────────────────────────────────


def test_terminate_stops_process(sleeper):
    proc, _ = sleeper
    assert PsutilProcessOracle(grace_seconds=5).terminate(proc.pid) is True
    proc.wait(timeout=5)
    assert proc.poll() is not None


def test_terminate_escalates_to_sigkill():
    proc = subprocess.Popen([sys.executable, "-c", STUBBORN], stdout=subprocess.PIPE, text=True)
    try:
        assert proc.stdout.readline().strip() == "ready"
        started = time.monotonic()
        assert PsutilProcessOracle(grace_seconds=0.5).terminate(proc.pid) is True
        assert time.monotonic() - started >= 0.5
        proc.wait(timeout=5)
        assert proc.poll() is not None
    finally:
        _cleanup(proc)
        proc.stdout.close()


def test_terminate_missing_process_counts_as_gone(reaped_pid):
    assert PsutilProcessOracle().terminate(reaped_pid) is True


def test_terminate_access_denied_returns_false(sleeper, monkeypatch):
    proc, _ = sleeper

    def denied(self):
        raise psutil.AccessDenied(self.pid)

    monkeypatch.setattr(psutil.Process, "terminate", denied)
    assert PsutilProcessOracle(grace_seconds=0.1).terminate(proc.pid) is False
    assert proc.poll() is None
