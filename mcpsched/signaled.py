"""Launch processes held at a SIGUSR1 gate, then drive them with signals."""

from __future__ import annotations

import os
import signal
import sys
import time

from mcpsched.launcher import MAX_COMMANDS, read_commands


def _run_gated_child(argv):
    """Wait for SIGUSR1, then replace this process with ``argv``; never returns."""
    try:
        print(f"CHILD (PID: {os.getpid()}): process created", flush=True)
        received = signal.sigwait({signal.SIGUSR1})
        if received != signal.SIGUSR1:
            print(
                f"CHILD (PID: {os.getpid()}): Received unexpected signal {received} "
                "via sigwait instead of SIGUSR1.",
                file=sys.stderr,
                flush=True,
            )
            return
        print(
            f"CHILD (PID: {os.getpid()}): Received SIGUSR1. "
            "Resuming and attempting to execvp().",
            flush=True,
        )
        signal.pthread_sigmask(signal.SIG_UNBLOCK, {signal.SIGUSR1})
        os.execvp(argv[0], argv)
    except BaseException as exc:  # the child must never fall back into the caller
        print(f"Error with execvp(): {exc}", file=sys.stderr, flush=True)
    finally:
        os._exit(1)


def launch_gated(commands, limit=MAX_COMMANDS):
    """Fork one child per command, each waiting for SIGUSR1; return their pids."""
    pids = []
    for argv in commands:
        if len(pids) >= limit:
            print(
                f"PARENT: Maximum number of commands ({limit}) reached. "
                f"Skipping: {' '.join(argv)}",
                file=sys.stderr,
            )
            continue
        sys.stdout.flush()
        sys.stderr.flush()
        # Block before forking so an early SIGUSR1 stays pending in the child.
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGUSR1})
        try:
            pid = os.fork()
        except OSError as exc:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)
            print(f"Fork failed: {exc}", file=sys.stderr)
            continue
        if pid == 0:
            _run_gated_child(argv)
        signal.pthread_sigmask(signal.SIG_SETMASK, previous)
        print(f"I'm the parent. Child ID is: {pid}")
        pids.append(pid)
    return pids


def signal_all(processes, signum):
    """Send ``signum`` to every pid; return how many were signalled."""
    delivered = 0
    for pid in processes:
        try:
            os.kill(pid, signum)
        except OSError as exc:
            name = signal.Signals(signum).name
            print(f"PARENT: kill ({name}) failed: {exc}", file=sys.stderr)
        else:
            delivered += 1
    return delivered


def _wait(pids):
    codes = []
    for index, pid in enumerate(pids):
        try:
            _, status = os.waitpid(pid, 0)
        except ChildProcessError as exc:
            print(f"waitpid failed: {exc}", file=sys.stderr)
            continue
        codes.append(os.waitstatus_to_exitcode(status))
        print(f"PARENT: Child process {index} (PID: {pid}) terminated ")
    return codes


def main(argv=None):
    """Run the file's commands, releasing, stopping and resuming them by signal."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print(f"Must have two arguments, recieved: {len(args) + 1}", file=sys.stderr)
        return 1
    try:
        commands = read_commands(args[0])
    except OSError as exc:
        print(f"Error opening file!: {exc}", file=sys.stderr)
        return 1
    pids = launch_gated(commands)
    if pids:
        for signum in (signal.SIGUSR1, signal.SIGSTOP, signal.SIGCONT):
            name = signal.Signals(signum).name
            print(f"PARENT (PID: {os.getpid()}): Sending {name} signal", flush=True)
            signal_all(pids, signum)
            time.sleep(1)
    _wait(pids)
    return 0