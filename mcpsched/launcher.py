"""Launch one process per line of a command file and wait for them all."""

from __future__ import annotations

import subprocess
import sys

from mcpsched.tokenizer import tokenize

MAX_COMMANDS = 1000


def read_commands(path, delim=" "):
    """Return the tokenized argument list of every line in ``path``."""
    with open(path) as handle:
        return [tokenize(line, delim) for line in handle]


def launch_all(commands, limit=MAX_COMMANDS):
    """Start each command, at most ``limit`` of them; return the processes."""
    processes = []
    for argv in commands:
        if len(processes) >= limit:
            print(
                f"PARENT: Maximum number of commands ({limit}) reached. "
                f"Skipping: {' '.join(argv)}",
                file=sys.stderr,
            )
            continue
        sys.stdout.flush()
        try:
            process = subprocess.Popen(argv)
        except (OSError, ValueError, IndexError) as exc:
            print(f"Error with execvp(): {exc}", file=sys.stderr)
            continue
        print(f"I'm the parent. Child ID is: {process.pid}")
        processes.append(process)
    return processes


def wait_all(processes):
    """Wait for every process in order; return their exit codes."""
    codes = []
    for index, process in enumerate(processes):
        codes.append(process.wait())
        print(f"PARENT: Child process {index} (PID: {process.pid}) terminated")
    return codes


def main(argv=None):
    """Run every command of the file named on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print(f"Must have two arguments, recieved: {len(args) + 1}", file=sys.stderr)
        return 1
    try:
        commands = read_commands(args[0])
    except OSError as exc:
        print(f"Error opening file!: {exc}", file=sys.stderr)
        return 1
    wait_all(launch_all(commands))
    return 0