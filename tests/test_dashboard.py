import os

import pytest

from mcpsched.dashboard import (
    DashboardScheduler,
    ProcStat,
    main,
    parse_stat,
    read_stat,
    render_table,
)
from mcpsched.scheduler import Child, ProcState

SAMPLE = (
    "1234 (my prog) S 1 1234 1234 0 -1 4194304 100 0 0 0 250 50 0 0 20 0 1 0 "
    "12345 10485760 300 18446744073709551615\n"
)
MISSING_PID = 99999999


def test_parse_stat_fields():
    stat = parse_stat(SAMPLE, 100, 4096)
    assert stat == ProcStat(state="S", utime=2.5, stime=0.5, vsize=10485760, rss=300 * 4096)


def test_parse_stat_uses_last_parenthesis():
    line = SAMPLE.replace("(my prog)", "(a) b)")
    assert parse_stat(line, 100, 4096).vsize == 10485760


def test_parse_stat_scales_by_clock_ticks():
    fast = parse_stat(SAMPLE, 100, 4096)
    slow = parse_stat(SAMPLE, 50, 4096)
    assert slow.utime == pytest.approx(2 * fast.utime)


def test_parse_stat_without_parenthesis():
    with pytest.raises(ValueError, match="ParseErr1"):
        parse_stat("1234 no name S 1 2 3", 100, 4096)


def test_parse_stat_truncated():
    with pytest.raises(ValueError, match="ParseErr2"):
        parse_stat("1234 (x) S 1 2 3", 100, 4096)


def test_read_stat_of_self():
    stat = read_stat(os.getpid(), 100, 4096)
    assert stat.vsize > 0
    assert stat.rss > 0


def test_read_stat_missing_process():
    with pytest.raises(OSError):
        read_stat(MISSING_PID, 100, 4096)


def test_render_table_rows_and_footer():
    children = [
        Child(argv=["finished"], pid=MISSING_PID, state=ProcState.TERMINATED),
        Child(argv=["waiting"], pid=MISSING_PID, state=ProcState.STOPPED),
    ]
    table = render_table(children, 1, 1, 42, 100, 4096)
    lines = table.splitlines()
    assert lines[0] == "--- MCP Process Dashboard (Parent PID: 42) ---"
    assert "TERM" in lines[3]
    assert "(NoProc)" in lines[4] and "WAIT" in lines[4]
    assert lines[-1] == (
        f"Total Procs: 2 | Active: 1 | Running PID: {MISSING_PID} (Idx: 1, State: STOP)"
    )


def test_render_table_truncates_names():
    long_name = "x" * 40
    children = [Child(argv=[long_name], pid=MISSING_PID, state=ProcState.TERMINATED)]
    table = render_table(children, None, 0, 1, 100, 4096)
    assert "x" * 20 + " |" in table
    assert "x" * 21 not in table
    assert table.splitlines()[-1].endswith("(Idx: -1, State: N/A)")


def test_render_table_live_process():
    children = [Child(argv=["me"], pid=os.getpid(), state=ProcState.RUNNING)]
    table = render_table(children, 0, 1, 1, 100, 4096)
    row = table.splitlines()[3]
    assert row.startswith(f"{os.getpid():<5} | me")
    assert "ERR" not in row and "NoProc" not in row
    assert "State: RUN" in table


def test_scheduler_runs_all_children():
    scheduler = DashboardScheduler([["true"], ["sh", "-c", "exit 3"]], time_slice=0.2)
    assert scheduler.run() == [0, 3]
    assert scheduler.active == 0
    assert all(child.state is ProcState.TERMINATED for child in scheduler.children)


def test_scheduler_with_no_commands():
    assert DashboardScheduler([]).run() == []


def test_display_returns_table(capsys):
    scheduler = DashboardScheduler([])
    table = scheduler.display()
    assert table.startswith("--- MCP Process Dashboard")
    assert capsys.readouterr().out.startswith("\033[H\033[J")


def test_main_usage_error():
    assert main([]) == 1


def test_main_missing_file(tmp_path):
    assert main([str(tmp_path / "absent.txt")]) == 1


def test_main_runs_file(tmp_path, capsys):
    commands = tmp_path / "input.txt"
    commands.write_text("true\n\n\tsh\t-c\t'exit 0'\n")
    assert main([str(commands)]) == 0
    assert "MCP exiting." in capsys.readouterr().out