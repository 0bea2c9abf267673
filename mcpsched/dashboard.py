"""Round-robin scheduler that redraws a live table of its children's statistics."""

from __future__ import annotations

import errno
import os
import signal
import sys
from dataclasses import dataclass

from mcpsched.scheduler import (
    MAX_COMMANDS,
    TIME_SLICE_SECONDS,
    ProcState,
    Scheduler,
    load_commands,
)

_CLEAR = "\033[H\033[J"
_WAKE_SIGNALS = {signal.SIGALRM, signal.SIGCHLD}
_BACKSTOP_SECONDS = 1.0
_DEFAULT_CLK_TCK = 100
_DEFAULT_PAGE_SIZE = 4096
_RULE = "-----|----------------------|-------|----------|----------|--------------|--------------"
_FOOTER_RULE = "-" * 90
# Positions, after the closing parenthesis of the command name, of the
# state, utime, stime, vsize and rss fields of /proc/<pid>/stat.
_STAT_FIELDS = (0, 11, 12, 20, 21)


@dataclass(frozen=True)
class ProcStat:
    """CPU time and memory use of one process, as read from /proc."""

    state: str
    utime: float
    stime: float
    vsize: int
    rss: int


def _row(pid, name, state, utime, stime, vsize, rss, suffix=""):
    return (
        f"{pid:<5} | {name[:20]:<20} | {state:<5} | {utime:<8} | "
        f"{stime:<8} | {vsize:<12} | {rss:<12}{suffix}"
    )


def _scanned_fields(fields):
    """Return the values scanf would assign, stopping at the first failure."""
    values = []
    for position in _STAT_FIELDS:
        # Every field up to this one must be present and, past the state, numeric.
        for skipped in range(1, position + 1):
            if skipped >= len(fields):
                return values
            try:
                int(fields[skipped])
            except ValueError:
                return values
        if position >= len(fields):
            return values
        values.append(fields[position][0] if position == 0 else int(fields[position]))
    return values


def parse_stat(line, clk_tck=_DEFAULT_CLK_TCK, page_size=_DEFAULT_PAGE_SIZE):
    """Parse one line of /proc/<pid>/stat into a ``ProcStat``.

    Raises ``ValueError`` tagged ``ParseErr1`` when the command name has no
    closing parenthesis, and ``ParseErr2:<n>`` when fewer than five fields scan.
    """
    close = line.rfind(")")
    if close == -1:
        raise ValueError("ParseErr1")
    fields = line[close + 2:].split()
    values = _scanned_fields(fields)
    if len(values) < len(_STAT_FIELDS):
        raise ValueError(f"ParseErr2:{len(values)}")
    state, utime_ticks, stime_ticks, vsize, rss_pages = values
    return ProcStat(
        state=state,
        utime=utime_ticks / clk_tck,
        stime=stime_ticks / clk_tck,
        vsize=vsize,
        rss=rss_pages * page_size,
    )


def read_stat(pid, clk_tck=_DEFAULT_CLK_TCK, page_size=_DEFAULT_PAGE_SIZE):
    """Read and parse /proc/<pid>/stat.

    Raises ``OSError`` if the file cannot be opened and ``ValueError`` if it
    is empty (``ReadErr``) or cannot be parsed.
    """
    with open(f"/proc/{pid}/stat") as handle:
        line = handle.readline()
    if not line:
        raise ValueError("ReadErr")
    return parse_stat(line, clk_tck, page_size)


def _display_name(child):
    return child.argv[0] if child.argv and child.argv[0] else "?"


def _child_row(child, clk_tck, page_size):
    name = _display_name(child)
    if child.state is ProcState.TERMINATED:
        return _row(child.pid, name, "TERM", "-", "-", "-", "-")
    try:
        stat = read_stat(child.pid, clk_tck, page_size)
    except OSError:
        waiting = child.state in (ProcState.INITIALIZING, ProcState.STOPPED, ProcState.RUNNING)
        return _row(
            child.pid, name, "WAIT" if waiting else "N/A",
            "N/A", "N/A", "N/A", "N/A", " (NoProc)",
        )
    except ValueError as exc:
        return _row(child.pid, name, "ERR", "ERR", "ERR", "ERR", "ERR", f" ({exc})")
    return _row(
        child.pid, name, stat.state,
        f"{stat.utime:.2f}", f"{stat.stime:.2f}", stat.vsize, stat.rss,
    )


def render_table(children, current, active, parent_pid,
                 clk_tck=_DEFAULT_CLK_TCK, page_size=_DEFAULT_PAGE_SIZE):
    """Return the dashboard table for ``children`` as text."""
    lines = [
        f"--- MCP Process Dashboard (Parent PID: {parent_pid}) ---",
        _row("PID", "Command", "State", "UTime(s)", "STime(s)", "VmSize(B)", "RSS(B)"),
        _RULE,
    ]
    lines.extend(_child_row(child, clk_tck, page_size) for child in children)
    lines.append(_FOOTER_RULE)
    running = children[current] if current is not None else None
    running_pid = running.pid if running is not None and running.pid > 0 else 0
    if running is not None and running.state is ProcState.RUNNING:
        state = "RUN"
    elif running is not None and running.state is ProcState.STOPPED:
        state = "STOP"
    else:
        state = "N/A"
    lines.append(
        f"Total Procs: {len(children)} | Active: {active} | Running PID: {running_pid} "
        f"(Idx: {-1 if current is None else current}, State: {state})"
    )
    return "\n".join(lines) + "\n"


def _sysconf(name, default):
    try:
        value = os.sysconf(name)
    except (OSError, ValueError):
        value = -1
    if value <= 0:
        print(
            f"sysconf {name} failed or returned invalid value, defaulting to {default}",
            file=sys.stderr,
        )
        return default
    return value


class DashboardScheduler(Scheduler):
    """Round-robin scheduler that redraws a statistics table as it runs."""

    def __init__(self, commands, time_slice=TIME_SLICE_SECONDS, limit=MAX_COMMANDS):
        super().__init__(commands, time_slice, limit)
        self.clk_tck = _sysconf("SC_CLK_TCK", _DEFAULT_CLK_TCK)
        self.page_size = _sysconf("SC_PAGESIZE", _DEFAULT_PAGE_SIZE)

    def display(self):
        """Clear the terminal and draw the current table; return the table."""
        table = render_table(
            self.children, self.current, self.active, os.getpid(),
            self.clk_tck, self.page_size,
        )
        print(_CLEAR + table, end="", flush=True)
        return table

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
            self._disarm()
            return None
        self.current = index
        child = self.children[index]
        if child.state is ProcState.INITIALIZING:
            try:
                os.kill(child.pid, signal.SIGUSR1)
            except OSError as exc:
                print(f"PARENT: kill (SIGUSR1) for new child failed: {exc}", file=sys.stderr)
                self._mark_terminated(index)
                self.current = None
                self._slice_over = True
                return None
            child.state = ProcState.RUNNING
        elif child.state is ProcState.STOPPED:
            try:
                os.kill(child.pid, signal.SIGCONT)
            except OSError as exc:
                if exc.errno == errno.ESRCH:
                    self._mark_terminated(index)
                else:
                    print(
                        f"PARENT: kill (SIGCONT) for stopped child failed: {exc}",
                        file=sys.stderr,
                    )
                self.current = None
                self._slice_over = True
                return None
            child.state = ProcState.RUNNING
        if child.state is ProcState.RUNNING:
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
            self._mark_terminated(index)
            if self.current == index:
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
        try:
            os.kill(child.pid, signal.SIGSTOP)
        except OSError as exc:
            if exc.errno != errno.ESRCH:
                print(
                    f"PARENT: kill (SIGSTOP) failed for currently running child: {exc}",
                    file=sys.stderr,
                )
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
        self.display()
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, _WAKE_SIGNALS)
        try:
            self._slice_over = True
            while self.active > 0:
                if self.reap():
                    self.display()
                    if self.active == 0:
                        break
                if self._slice_over:
                    self._slice_over = False
                    if self.active == 0:
                        break
                    self.end_slice()
                    self.select_next()
                    self.display()
                if self.active > 0 and not self._slice_over:
                    info = signal.sigtimedwait(_WAKE_SIGNALS, _BACKSTOP_SECONDS)
                    if info is not None and info.si_signo == signal.SIGALRM:
                        self._slice_over = True
        finally:
            self._disarm()
            while signal.sigtimedwait(_WAKE_SIGNALS, 0) is not None:
                pass
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)
        print(_CLEAR, end="")
        print(
            f"PARENT (PID: {os.getpid()}): All child processes have completed. MCP exiting.",
            flush=True,
        )
        return [child.exit_code for child in self.children]


def main(argv=None):
    """Schedule the file's commands while showing a live dashboard."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print(f"Usage: {sys.argv[0]} <input_file>", file=sys.stderr)
        return 1
    try:
        commands = load_commands(args[0], " \t\n")
    except OSError as exc:
        print(f"Error opening input file: {exc}", file=sys.stderr)
        return 1
    DashboardScheduler(commands).run()
    return 0