import subprocess
import sys

import pytest

from procwatch.launch import main


def test_launch_runs_command_and_records_pid(tmp_path, monkeypatch):
    pid_file = tmp_path / "pid.txt"
    pid_file.write_text("notvalidpid")
    monkeypatch.setattr(sys, "argv", [
        "procwatch-launch", "--pid-file", str(pid_file), "--",
        sys.executable, "-c", "raise SystemExit(3)",
    ])

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 3
    assert pid_file.read_text().isdigit()


def test_launch_without_command_is_an_error(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["procwatch-launch"])
    with pytest.raises(SystemExit) as exc:
        main()
    assert exc.value.code == 2


CHECK_PREVIOUS_GONE = (
    "import os, sys, time\n"
    "if sys.argv[1:]:\n"
    "    time.sleep(30)\n"
    "try:\n"
    "    os.kill(int(os.environ['PROCWATCH_TEST_OLD_PID']), 0)\n"
    "except ProcessLookupError:\n"
    "    sys.exit(0)\n"
    "sys.exit(1)\n"
)


def test_launch_terminates_previous_instance_first(tmp_path, monkeypatch):
    # The old instance runs the same command plus one extra argument
    old = subprocess.Popen([sys.executable, "-c", CHECK_PREVIOUS_GONE, "old"])
    try:
        pid_file = tmp_path / "pid.txt"
        pid_file.write_text(str(old.pid))
        monkeypatch.setenv("PROCWATCH_TEST_OLD_PID", str(old.pid))
        monkeypatch.setattr(sys, "argv", [
            "procwatch-launch", "--pid-file", str(pid_file), "--grace", "2", "--",
            sys.executable, "-c", CHECK_PREVIOUS_GONE,
        ])

        with pytest.raises(SystemExit) as exc:
            main()

        # The new command exits 0 only if the old PID was gone when it started
        assert exc.value.code == 0
        assert old.poll() is not None
        assert pid_file.read_text() != str(old.pid)
    finally:
        if old.poll() is None:
            old.kill()
            old.wait()
