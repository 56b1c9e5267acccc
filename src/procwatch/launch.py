"""CLI entry point that starts the managed process, replacing any previous instance."""

import argparse
import logging
import subprocess
import sys


def main():
    from procwatch.duplicate_guard import DuplicateProcessGuard
    from procwatch.pid_store import PidRecordStore
    from procwatch.process_oracle import PsutilProcessOracle
    from procwatch.utils import PID_FILE

    parser = argparse.ArgumentParser(
        description="Run a managed process, terminating a previous instance first",
        usage="procwatch-launch [--pid-file FILE] -- command [args...]",
    )
    parser.add_argument("--pid-file", default=str(PID_FILE), help=f"PID record (default: {PID_FILE})")
    parser.add_argument("--grace", type=float, default=5.0, help="Seconds to wait after SIGTERM")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("command", nargs=argparse.REMAINDER)
    args = parser.parse_args()

    command = args.command[1:] if args.command[:1] == ["--"] else args.command
    if not command:
        parser.error("no command given")

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    guard = DuplicateProcessGuard(PsutilProcessOracle(args.grace), PidRecordStore(args.pid_file))
    try:
        proc = guard.launch_exclusive(" ".join(command), lambda: subprocess.Popen(command))
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        sys.exit(proc.wait())
    except KeyboardInterrupt:
        proc.terminate()
        sys.exit(proc.wait())
