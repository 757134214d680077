import os
import re
import subprocess
import time

import pytest

from ssishell.shell import JobTable, Shell, build_prompt


@pytest.fixture
def shell(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return Shell(
        history_file=str(tmp_path / "history"),
        background_output=str(tmp_path / "bg.txt"),
    )


def _visible(prompt):
    return re.sub("\001[^\002]*\002", "", prompt)


def test_build_prompt_visible_text():
    prompt = build_prompt("alice", "box", "~/x")
    assert _visible(prompt) == "alice@box: ~/x -> "


def test_build_prompt_escapes_are_wrapped():
    prompt = build_prompt("alice", "box", "~/x")
    assert prompt.startswith("\001\033[1m\002\001\x1b[32m\002alice")
    assert prompt.endswith("\001\x1b[0m\002")
    assert prompt.count("\001") == prompt.count("\002")


def test_job_table_round_robin():
    table = JobTable(2)
    table.add(1, "a", "~")
    table.add(2, "b", "~")
    table.add(3, "c", "~")
    assert [job.pid for job in table.running()] == [3, 2]


def test_job_table_kill_unknown_pid():
    table = JobTable()
    table.add(10, "a", "~")
    assert table.kill(11) == []
    assert [job.pid for job in table.running()] == [10]


def test_job_table_kill_interrupts_group():
    process = subprocess.Popen(["sleep", "30"], start_new_session=True)
    table = JobTable()
    table.add(process.pid, "sleep 30", "~")
    removed = table.kill(process.pid)
    assert [job.pid for job in removed] == [process.pid]
    assert table.running() == []
    assert process.wait(timeout=10) < 0


def test_job_table_kill_failure_keeps_job():
    process = subprocess.Popen(["true"])
    process.wait()
    table = JobTable()
    table.add(process.pid, "true", "~")
    with pytest.raises(ProcessLookupError):
        table.kill(process.pid)
    assert [job.pid for job in table.running()] == [process.pid]


def test_job_table_reap_finished():
    process = subprocess.Popen(["true"])
    table = JobTable()
    table.add(process.pid, "true", "~")
    finished = []
    deadline = time.monotonic() + 10
    while not finished and time.monotonic() < deadline:
        finished = table.reap()
        time.sleep(0.05)
    assert [job.pid for job in finished] == [process.pid]
    assert table.running() == []


def test_execute_exit_and_empty(shell):
    assert shell.execute("") is True
    assert shell.execute("exit") is False


def test_execute_history_lists_itself(shell, capsys):
    shell.execute("cd")
    capsys.readouterr()
    shell.execute("history")
    assert capsys.readouterr().out == "1: cd\n2: history\n"


def test_history_persists(shell, tmp_path, capsys):
    shell.execute("cd")
    assert (tmp_path / "history").read_text() == "cd\n"
    again = Shell(history_file=str(tmp_path / "history"))
    capsys.readouterr()
    again.execute("history")
    assert capsys.readouterr().out == "1: cd\n2: history\n"


def test_clear_history(shell, capsys):
    shell.execute("cd")
    shell.execute("clear_history")
    capsys.readouterr()
    shell.execute("history")
    assert capsys.readouterr().out == "1: history\n"


def test_execute_cd(shell, tmp_path, capsys):
    (tmp_path / "inner").mkdir()
    assert shell.execute("cd inner") is True
    assert os.getcwd() == os.path.realpath(tmp_path / "inner")
    assert capsys.readouterr().out == ""


def test_execute_cd_missing(shell, capsys):
    shell.execute("cd absent")
    assert capsys.readouterr().out == "<absent>: No such file or directory\n"


def test_execute_bglist(shell, capsys):
    shell.jobs.add(4321, "sleep 5", "~")
    shell.execute("bglist")
    assert capsys.readouterr().out == "4321: ~ sleep 5 is running\n"


def test_execute_foreground(shell, capfd):
    shell.execute("echo hi | cat")
    assert capfd.readouterr().out == "hi\n"


def test_execute_background_writes_output_file(shell, tmp_path):
    assert shell.execute("bg echo hello") is True
    jobs = shell.jobs.running()
    assert [(job.command, job.directory) for job in jobs] == [("echo hello", "~")]
    os.waitpid(jobs[0].pid, 0)
    assert (tmp_path / "bg.txt").read_text() == "hello\n"


def test_execute_bgkill_removes_job(shell):
    process = subprocess.Popen(["sleep", "30"], start_new_session=True)
    shell.jobs.add(process.pid, "sleep 30", "~")
    shell.execute(f"bgkill {process.pid}")
    assert shell.jobs.running() == []
    assert process.wait(timeout=10) < 0