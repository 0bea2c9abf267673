"""Round-robin scheduler that time-slices child processes with signals."""

from __future__ import annotations

import enum
import errno
import os
import signal
import sys
from dataclasses import dataclass

from mcpsched.tokenizer import tokenize

MAX_COMMANDS = 1000
TIME_SLICE_SECONDS = 1
_WAKE_SIGNALS = {signal.SIGALRM, signal.SIGCHLD}
_BACKSTOP_SECONDS = 1.0


class ProcState(enum.Enum):
    """Lifecycle of a scheduled child."""

    INITIALIZING = enum.auto()
    RUNNING = enum.auto()
    STOPPED = enum.auto()
    TERMINATED = enum.auto()


@dataclass
class Child:
    """A forked child, its command and its scheduling state."""

    argv: list
    pid: int
    state: ProcState = ProcState.INITIALIZING
    exit_code: int | None = None


def load_commands(path, delim=" "):
    """Return the argument list of every non-empty line in ``path``."""
    commands = []
    with open(path) as handle:
        for line in handle:
            argv = [token for token in tokenize(line, delim) if token]
            if argv:
                commands.append(argv)
    return commands


def _run_gated_child(argv, saved_mask):
    """Wait for SIGUSR1, then replace this process with ``argv``; never returns."""
    try:
        received = signal.sigwait({signal.SIGUSR1})
        if received != signal.SIGUSR1:
            print(f"CHILD: Bad signal {received}", file=sys.stderr, flush=True)
            return
        signal.pthread_sigmask(signal.SIG_SETMASK, saved_mask)
        os.execvp(argv[0], argv)
    except BaseException as exc:  # the child must never fall back into the caller
        print(f"CHILD: execvp failed: {exc}", file=sys.stderr)
        print(f"CHILD: Failed cmd: '{argv[0]}'", file=sys.stderr, flush=True)
    finally:
        os._exit(1)


def _describe_status(status):
    if os.WIFEXITED(status):
        return f"Exited status {os.WEXITSTATUS(status)}."
    if os.WIFSIGNALED(status):
        return f"Killed by signal {os.WTERMSIG(status)}."
    return "Terminated with unknown status."


class Scheduler:
    """Run commands one at a time, each for a time slice, in round-robin order."""

    def __init__(self, commands, time_slice=TIME_SLICE_SECONDS, limit=MAX_COMMANDS):
        self.commands = [list(argv) for argv in commands if argv]
        self.time_slice = time_slice
        self.limit = limit
        self.children: list[Child] = []
        self.current: int | None = None
        self.active = 0
        self.started = False
        self._slice_over = False

    def start(self):
        """Fork a child per command, each held until it receives SIGUSR1."""
        print(f"PARENT (PID: {os.getpid()}): Forking child processes...")
        for argv in self.commands:
            if len(self.children) >= self.limit:
                print(
                    f"PARENT: Max commands reached. Skipping: {' '.join(argv)}",
                    file=sys.stderr,
                )
                continue
            sys.stdout.flush()
            sys.stderr.flush()
            saved = signal.pthread_sigmask(signal.SIG_BLOCK, {signal.SIGUSR1})
            try:
                pid = os.fork()
            except OSError as exc:
                signal.pthread_sigmask(signal.SIG_SETMASK, saved)
                print(f"PARENT: Fork failed: {exc}", file=sys.stderr)
                continue
            if pid == 0:
                _run_gated_child(argv, saved)
            signal.pthread_sigmask(signal.SIG_SETMASK, saved)
            self.children.append(Child(argv=argv, pid=pid))
        self.active = len(self.children)
        self.started = True
        return [child.pid for child in self.children]

    def _arm(self):
        signal.setitimer(signal.ITIMER_REAL, self.time_slice)

    @staticmethod
    def _disarm():
        signal.setitimer(signal.ITIMER_REAL, 0)

    def _mark_terminated(self, index):
        self.children[index].state = ProcState.TERMINATED
        self.active -= 1

    def _pick_next(self):
        count = len(self.children)
        if self.current is not None:
            start = (self.current + 1) % count
        else:
            start = next(
                (i for i, c in enumerate(self.children) if c.state is not ProcState.TERMINATED),
                0,
            )
        for offset in range(count):
            index = (start + offset) % count
            if self.children[index].state in (ProcState.INITIALIZING, ProcState.STOPPED):
                return index
        if self.current is not None and self.children[self.current].state is ProcState.RUNNING:
            return self.current
        return next(
            (i for i, c in enumerate(self.children) if c.state is ProcState.RUNNING),
            None,
        )

    def select_next(self):
        """Resume or release the next waiting child; return its index or ``None``."""
        if self.active == 0:
            self.current = None
            self._disarm()
            return None
        index = self._pick_next()
        if index is None:
            print(
                "PARENT: Scheduler: No new process to switch to, but active children "
                f"remain. Current running: {-1 if self.current is None else self.current}"
            )
            if self.current is not None and self.children[self.current].state is ProcState.RUNNING:
                self._arm()
            return None
        self.current = index
        child = self.children[index]
        if child.state is ProcState.INITIALIZING:
            try:
                os.kill(child.pid, signal.SIGUSR1)
            except OSError as exc:
                print(f"PARENT: kill (SIGUSR1) for scheduled child failed: {exc}", file=sys.stderr)
                self._mark_terminated(index)
                self.current = None
                self._slice_over = True
                return None
            child.state = ProcState.RUNNING
        elif child.state is ProcState.STOPPED:
            try:
                os.kill(child.pid, signal.SIGCONT)
            except OSError as exc:
                print(f"PARENT: kill (SIGCONT) for scheduled child failed: {exc}", file=sys.stderr)
                if exc.errno == errno.ESRCH:
                    self._mark_terminated(index)
                    self.current = None
                    self._slice_over = True
                    return None
            child.state = ProcState.RUNNING
        if child.state is ProcState.RUNNING:
            print(f"PARENT: Scheduler: Setting alarm for child (PID: {child.pid}).")
            self._arm()
        return index

    def reap(self):
        """Collect every child that has exited; return the indices reaped."""
        reaped = []
        for index, child in enumerate(self.children):
            if child.state is ProcState.TERMINATED:
                continue
            try:
                pid, status = os.waitpid(child.pid, os.WNOHANG)
            except ChildProcessError:
                continue
            if pid != child.pid:
                continue
            child.exit_code = os.waitstatus_to_exitcode(status)
            print(
                f"PARENT: Child (PID: {pid}, Index: {index}) has terminated. "
                + _describe_status(status)
            )
            self._mark_terminated(index)
            print(f"PARENT: Active children count updated to {self.active}.")
            if self.current == index:
                print(
                    f"PARENT: Currently running child (PID: {pid}) terminated. "
                    "Cancelling its alarm."
                )
                self._disarm()
                self.current = None
                self._slice_over = True
            reaped.append(index)
        return reaped

    def end_slice(self):
        """Stop the running child; return its index, or ``None`` if none ran."""
        if self.current is None:
            return None
        child = self.children[self.current]
        if child.state is not ProcState.RUNNING:
            return None
        print(
            f"PARENT: Scheduler: Time slice ended for child (PID: {child.pid}). "
            "Sending SIGSTOP."
        )
        try:
            os.kill(child.pid, signal.SIGSTOP)
        except OSError as exc:
            if exc.errno == errno.ESRCH:
                print(
                    f"PARENT: Child (PID: {child.pid}) already terminated "
                    "before SIGSTOP could be sent."
                )
            else:
                print(f"PARENT: kill (SIGSTOP) failed: {exc}", file=sys.stderr)
            return None
        child.state = ProcState.STOPPED
        return self.current

    def run(self):
        """Schedule every child until all have exited; return their exit codes."""
        if not self.started:
            self.start()
        if not self.children:
            print("PARENT: No commands to run. Exiting.")
            return []
        print("PARENT: All children forked. Initializing scheduler.")
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, _WAKE_SIGNALS)
        try:
            self._slice_over = True
            print(f"PARENT: Entering scheduling loop. Active children: {self.active}")
            while self.active > 0:
                self.reap()
                if self._slice_over:
                    self._slice_over = False
                    if self.active == 0:
                        print(
                            "PARENT: All children terminated after SIGCHLD processing. "
                            "Exiting loop."
                        )
                        break
                    self.end_slice()
                    self.reap()
                    if self.active == 0:
                        print(
                            "PARENT: All children terminated during SIGALRM processing. "
                            "Exiting loop."
                        )
                        break
                    self.select_next()
                if self.active > 0 and not self._slice_over:
                    info = signal.sigtimedwait(_WAKE_SIGNALS, _BACKSTOP_SECONDS)
                    if info is not None and info.si_signo == signal.SIGALRM:
                        self._slice_over = True
        finally:
            self._disarm()
            while signal.sigtimedwait(_WAKE_SIGNALS, 0) is not None:
                pass
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)
        print(
            f"PARENT (PID: {os.getpid()}): All child processes have completed. MCP exiting."
        )
        return [child.exit_code for child in self.children]


def main(argv=None):
    """Schedule the commands of the file named on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print(f"Usage: {sys.argv[0]} <input_file>", file=sys.stderr)
        return 1
    try:
        commands = load_commands(args[0])
    except OSError as exc:
        print(f"Error opening input file: {exc}", file=sys.stderr)
        return 1
    Scheduler(commands).run()
    return 0