import sys

from mcpsched.launcher import launch_all, main, read_commands, wait_all


def _script(tmp_path, name, code):
    path = tmp_path / name
    path.write_text(code)
    return str(path)


def test_read_commands(tmp_path):
    path = tmp_path / "cmds.txt"
    path.write_text("a b\nc\n")
    assert read_commands(path) == [["a", "b"], ["c"]]


def test_read_commands_custom_delim(tmp_path):
    path = tmp_path / "cmds.txt"
    path.write_text("a\tb\n")
    assert read_commands(path, " \t\n") == [["a", "b"]]


def test_launch_and_wait_exit_codes(tmp_path):
    failing = _script(tmp_path, "fail.py", "raise SystemExit(3)\n")
    procs = launch_all([[sys.executable, "-c", "pass"], [sys.executable, failing]])
    assert wait_all(procs) == [0, 3]


def test_launch_respects_limit(capsys):
    commands = [[sys.executable, "-c", "pass"]] * 3
    procs = launch_all(commands, limit=2)
    wait_all(procs)
    assert len(procs) == 2
    assert "Maximum number of commands (2) reached" in capsys.readouterr().err


def test_launch_skips_missing_program(tmp_path):
    procs = launch_all([[str(tmp_path / "no-such-program")]])
    assert procs == []


def test_wait_all_reports(capsys):
    procs = launch_all([[sys.executable, "-c", "pass"]])
    wait_all(procs)
    out = capsys.readouterr().out
    assert f"PARENT: Child process 0 (PID: {procs[0].pid}) terminated" in out


def test_main_wrong_argument_count(capsys):
    assert main([]) == 1
    assert "recieved: 1" in capsys.readouterr().err


def test_main_missing_file(tmp_path):
    assert main([str(tmp_path / "absent.txt")]) == 1


def test_main_runs_file(tmp_path, capsys):
    script = _script(tmp_path, "ok.py", "pass\n")
    cmds = tmp_path / "cmds.txt"
    cmds.write_text(f"{sys.executable} {script}\n")
    assert main([str(cmds)]) == 0
    assert "PARENT: Child process 0" in capsys.readouterr().out