# mcpsched

mcpsched is a small master control program (MCP) for POSIX systems. It reads a
text file that holds one command per line and starts each command as a child
process. It can manage those children in several ways. The simplest starts them
and waits for them. The most involved is a round-robin scheduler that uses
signals to give each child a time slice.

It needs Linux. The scheduler relies on `fork`, `sigwait` and `sigtimedwait`,
and the dashboard reads `/proc/<pid>/stat`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## The input file

Write one command per line, with its arguments separated by spaces:

```
mcp-cpubound -seconds 5
mcp-iobound -seconds 3
ls -l
```

How each tool reads the file:

- `mcp-schedule` splits on spaces and skips blank lines.
- `mcp-dashboard` also splits on tabs.
- `mcp-launch` and `mcp-signaled` take every line as it is. A blank line gives a child that fails to start.

Each tool accepts at most 1000 commands from the file. It skips the rest and
reports each skipped command on standard error.

## Commands

- `mcp-launch FILE` starts every command at once. It prints each child's PID, then waits for the children in order.
- `mcp-signaled FILE` forks one child per command. Each child waits for `SIGUSR1` before it runs its command. Once every child has been forked, the parent sends `SIGUSR1`, then `SIGSTOP`, then `SIGCONT` to all of them, pausing one second after each signal. It then waits for every child.
- `mcp-schedule FILE` runs the children round-robin with a one-second time slice. A child that has not run yet is released with `SIGUSR1`. When its slice ends, the running child is paused with `SIGSTOP`, and the next waiting child is resumed with `SIGCONT`. This repeats until every child has exited. Each scheduling decision is reported on standard output.
- `mcp-dashboard FILE` uses the same round-robin scheduling. Instead of logging its decisions, it clears the terminal and redraws a table whenever a child exits or a time slice ends. The table has one row per child: PID, command name, process state, user and system CPU time in seconds, virtual memory size and resident set size in bytes. A footer shows the total and active counts and the child that is running now. A row shows `TERM` for a child that has exited, `WAIT` when its `/proc` entry cannot be read, and `ERR` when the entry cannot be parsed.

Each command prints a usage message and exits with status 1 in two cases: when it is not given exactly one file, or when the file cannot be opened. Otherwise it exits with status 0 once all its children have finished. The children's own exit statuses are not passed on.

## Test workloads

Two workloads give the scheduler something to run:

- `mcp-cpubound [-seconds N]` spins on the CPU until N seconds of processor time have passed. The default is 30.
- `mcp-iobound [-seconds N]` writes lines to the null device until N seconds of processor time have passed. The default is 5.

Both print a line with their PID when they start and another when they finish.
Any flag other than `-seconds`, or `-seconds` with no value, is rejected with
exit status 1.

## Using it from Python

```python
from mcpsched.tokenizer import tokenize, count_tokens
from mcpsched.scheduler import Scheduler, load_commands

print(tokenize("ls -l /tmp\n", " "))    # ['ls', '-l', '/tmp']
print(count_tokens("  a  b ", " "))     # 2

scheduler = Scheduler(load_commands("commands.txt", " "), time_slice=1, limit=1000)
exit_codes = scheduler.run()            # one exit code per child, in file order
```

The other modules:

- `mcpsched.launcher` provides `read_commands`, `launch_all` and `wait_all`.
- `mcpsched.signaled` provides `launch_gated` and `signal_all`.
- `mcpsched.workloads` provides `parse_seconds`, `cpu_bound` and `io_bound`.
- `mcpsched.dashboard` provides `DashboardScheduler`, together with `parse_stat`, `read_stat` and `render_table` for reading `/proc` statistics and formatting the table.

## Limits

- The time slice is fixed at one second for the commands. It can only be changed through `Scheduler(..., time_slice=...)`.
- There is no priority or weighting: every child gets an equal slice in file order.
- The dashboard draws in the terminal only. It keeps no history and writes no log.