"""Sample CPU-bound and I/O-bound workloads that run for a given CPU time."""

from __future__ import annotations

import os
import re
import sys
import time

CPU_DEFAULT_SECONDS = 30
IO_DEFAULT_SECONDS = 5
_LINE = "A string! " * 100 + "\n"


def _atoi(text: str) -> int:
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


def parse_seconds(argv, default):
    """Return the value of ``-seconds`` in ``argv``, or ``default``.

    Any other flag raises ``ValueError``.
    """
    args = list(argv)
    for position, arg in enumerate(args):
        if arg == "-seconds":
            if position + 1 >= len(args):
                raise ValueError("Missing value for `-seconds'")
            return _atoi(args[position + 1])
        raise ValueError(f"Illegal flag: `{arg}'")
    return default


def cpu_bound(seconds):
    """Burn CPU until ``seconds`` of processor time have passed; return them."""
    start = time.process_time()
    while True:
        value = 0
        for _ in range(100):
            value = value + value * 2
        elapsed = time.process_time() - start
        if elapsed >= seconds:
            return elapsed


def io_bound(seconds, path=os.devnull):
    """Write lines to ``path`` until ``seconds`` of CPU time pass; return lines written."""
    lines = 0
    start = time.process_time()
    with open(path, "w") as outfile:
        while True:
            outfile.write(_LINE)
            lines += 1
            if time.process_time() - start >= seconds:
                return lines


def _run(argv, default, message, work):
    args = sys.argv[1:] if argv is None else argv
    try:
        seconds = parse_seconds(args, default)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"Process: {os.getpid()} - {message}", flush=True)
    work(seconds)
    print(f"Process: {os.getpid()} - Finished.", flush=True)
    return 0


def cpubound_main(argv=None):
    """Run the CPU-bound workload from the command line."""
    return _run(argv, CPU_DEFAULT_SECONDS, "Begining calculation.", cpu_bound)


def iobound_main(argv=None):
    """Run the I/O-bound workload from the command line."""
    return _run(argv, IO_DEFAULT_SECONDS, "Begining to write to file.", io_bound)