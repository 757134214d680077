"""The interactive shell: prompt, command dispatch and background jobs."""

from __future__ import annotations

import os
import signal
import socket
import sys
from dataclasses import dataclass

from .commands import (
    CommandCompleter,
    change_directory,
    format_history,
    load_builtins,
    shorten_home,
)
from .pipeline import run_pipeline

try:
    import readline
except ImportError:  # pragma: no cover - platform without readline
    readline = None

MAX_BG_PROCESSES = 100
HISTORY_LIMIT = 1000
HISTORY_NAME = ".ssi_history"
BACKGROUND_OUTPUT = os.path.join("Code", "shell_interpreter", "bg", "ProcessesOutput.txt")

RL_START = "\001"
RL_END = "\002"

KNRM = "\x1b[0m"
KBLK = "\033[30m"
KRED = "\x1b[31m"
KGRN = "\x1b[32m"
KYEL = "\x1b[33m"
KBLU = "\x1b[34m"
KMAG = "\x1b[35m"
KCYN = "\x1b[36m"
BOLD = "\033[1m"


def _invisible(code: str) -> str:
    return RL_START + code + RL_END


def build_prompt(username: str, hostname: str, cwd: str) -> str:
    """Return the coloured ``user@host: cwd -> `` prompt for readline."""
    return (
        _invisible(BOLD)
        + _invisible(KGRN) + username
        + _invisible(KBLK) + "@"
        + _invisible(KCYN) + hostname
        + _invisible(KBLK) + ": "
        + _invisible(KMAG) + cwd
        + _invisible(KBLK) + " -> "
        + _invisible(KNRM)
    )


@dataclass
class BackgroundProcess:
    """A job started with ``bg``."""

    pid: int
    command: str
    directory: str


class JobTable:
    """Fixed number of job slots; new jobs reuse slots round-robin."""

    def __init__(self, capacity: int = MAX_BG_PROCESSES):
        self._slots: list[BackgroundProcess | None] = [None] * capacity
        self._added = 0

    def add(self, pid: int, command: str, directory: str) -> BackgroundProcess:
        """Record a job, replacing whatever held its slot."""
        job = BackgroundProcess(pid, command, directory)
        self._slots[self._added % len(self._slots)] = job
        self._added += 1
        return job

    def _remove_pid(self, pid: int) -> list[BackgroundProcess]:
        removed = []
        for index, job in enumerate(self._slots):
            if job is not None and job.pid == pid:
                removed.append(job)
                self._slots[index] = None
        return removed

    def reap(self) -> list[BackgroundProcess]:
        """Collect finished children and return the jobs that ended."""
        finished = []
        while True:
            try:
                pid, _ = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                break
            if pid <= 0:
                break
            finished.extend(self._remove_pid(pid))
        return finished

    def running(self) -> list[BackgroundProcess]:
        """Jobs still recorded, in slot order."""
        return [job for job in self._slots if job is not None]

    def kill(self, pid: int) -> list[BackgroundProcess]:
        """Interrupt the process group of job ``pid`` and forget the job.

        If SIGINT cannot be delivered, SIGTERM and then SIGKILL are tried, the
        job is kept and the original OSError is raised.
        """
        removed = []
        for index, job in enumerate(self._slots):
            if job is None or job.pid != pid:
                continue
            try:
                os.killpg(pid, signal.SIGINT)
            except OSError:
                for fallback in (signal.SIGTERM, signal.SIGKILL):
                    try:
                        os.killpg(pid, fallback)
                        break
                    except OSError:
                        continue
                raise
            self._slots[index] = None
            removed.append(job)
        return removed


def _atoi(text: str) -> int:
    text = text.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


class Shell:
    """An interactive shell with history, pipelines and background jobs."""

    def __init__(self, builtin_from_bin=False, history_file=None, background_output=None):
        self.home = os.environ.get("HOME")
        if history_file is None and self.home:
            history_file = os.path.join(self.home, HISTORY_NAME)
        self.history_file = history_file
        if background_output is None:
            background_output = os.path.join(self.home or "", BACKGROUND_OUTPUT)
        self.background_output = background_output
        self.jobs = JobTable()
        self.history: list[str] = []
        self.history_base = 1
        self.builtins: list[str] = []
        if self.history_file is not None:
            self._load_history()
        if self.home:
            try:
                self.builtins = load_builtins(builtin_from_bin)
            except OSError as exc:
                print(f"fopen: {exc.strerror}", file=sys.stderr)

    def _remember(self, line: str) -> None:
        self.history.append(line)
        excess = len(self.history) - HISTORY_LIMIT
        if excess > 0:
            del self.history[:excess]
            self.history_base += excess

    def _load_history(self) -> None:
        try:
            with open(self.history_file, encoding="utf-8", errors="surrogateescape") as handle:
                lines = handle.read().splitlines()
        except OSError:
            return
        for line in lines:
            self._remember(line)

    def _save_history(self) -> None:
        if self.history_file is None:
            return
        try:
            with open(self.history_file, "w", encoding="utf-8", errors="surrogateescape") as handle:
                handle.writelines(f"{line}\n" for line in self.history)
        except OSError:
            pass

    def _clear_history(self) -> None:
        self.history.clear()
        self.history_base = 1
        if readline is not None:
            readline.clear_history()

    def _run_detached(self, command: str) -> None:
        try:
            fd = os.open(self.background_output, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            os.dup2(fd, 1)
            os.close(fd)
            os.setpgid(0, 0)
            with open(1, "w", closefd=False) as out:
                run_pipeline(command, out)
        except OSError as exc:
            os.write(2, f"open ProcessesOutput: {exc.strerror}\n".encode())
        except BaseException:
            pass
        finally:
            os._exit(1)

    def _start_background(self, command: str) -> None:
        if not command:
            print("bg: missing command", file=sys.stderr)
            return
        directory = shorten_home(os.getcwd(), self.home)
        sys.stdout.flush()
        sys.stderr.flush()
        pid = os.fork()
        if pid == 0:
            self._run_detached(command)
        try:
            os.setpgid(pid, pid)
        except OSError:
            pass
        self.jobs.add(pid, command, directory)

    def execute(self, line: str) -> bool:
        """Run one input line; return False when the shell should exit."""
        if line:
            self._remember(line)
        if line == "exit":
            return False
        command, _, rest = line.lstrip(" ").partition(" ")
        if not command:
            return True

        if command == "cd":
            try:
                change_directory(line)
            except FileNotFoundError as exc:
                print(f"<{exc.filename}>: No such file or directory")
        elif command == "bg":
            self._start_background(rest)
            return True
        elif command == "bglist":
            for job in self.jobs.running():
                print(f"{job.pid}: {job.directory} {job.command} is running")
        elif command == "bgkill":
            try:
                self.jobs.kill(_atoi(rest))
            except OSError as exc:
                print(f"kill: {exc.strerror}", file=sys.stderr)
        elif command == "history":
            for entry in format_history(self.history, self.history_base):
                print(entry)
        elif command == "clear_history":
            self._clear_history()
        else:
            try:
                run_pipeline(line)
            except ValueError as exc:
                print(f"ssi: {exc}", file=sys.stderr)

        self._save_history()
        return True

    def _setup_readline(self) -> None:
        if readline is None or not self.home:
            return
        for entry in self.history:
            readline.add_history(entry)
        readline.set_completer(CommandCompleter(self.builtins).complete)
        readline.parse_and_bind("tab: complete")

    def run(self) -> None:
        """Prompt for and execute lines until ``exit`` or end of input."""
        self._setup_readline()
        while True:
            try:
                cwd = os.getcwd()
            except OSError as exc:
                print(f"getcwd: {exc.strerror}", file=sys.stderr)
                break
            hostname = socket.gethostname()
            try:
                username = os.getlogin()
            except OSError as exc:
                print(f"getlogin: {exc.strerror}", file=sys.stderr)
                break

            prompt = build_prompt(username, hostname, shorten_home(cwd, self.home))
            try:
                line = input(prompt)
            except KeyboardInterrupt:
                print()
                continue
            except EOFError:
                print()
                break

            for job in self.jobs.reap():
                print(f"{job.pid}: {job.directory} {job.command} has terminated")

            try:
                if not self.execute(line):
                    break
            except KeyboardInterrupt:
                print()


def main(argv=None) -> int:
    """Start the shell; any argument makes /bin the source of completions."""
    args = sys.argv[1:] if argv is None else argv
    Shell(builtin_from_bin=bool(args)).run()
    return 0