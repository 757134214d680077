"""Built-in shell commands: directory changes, history listing and completion."""

from __future__ import annotations

import errno
import os
import re
import stat

COMMANDS_FILE = "./helpers/commands.txt"
BIN_DIRECTORY = "/bin"

_LINE_END = re.compile(r"[\r\n]")


def change_directory(line: str) -> str | None:
    """Handle a ``cd <path>`` line; ``~`` at the start means the home directory.

    Returns the directory changed to, or None when there is nothing to do.
    Raises FileNotFoundError naming the path when it cannot be entered.
    """
    command, _, rest = line.lstrip(" ").partition(" ")
    if command != "cd" or not rest:
        return None
    target = os.environ.get("HOME", "") + rest[1:] if rest.startswith("~") else rest
    try:
        os.chdir(target)
    except OSError as exc:
        raise FileNotFoundError(errno.ENOENT, "No such file or directory", target) from exc
    return target


def shorten_home(path: str, home: str | None) -> str:
    """Replace a leading ``home`` in ``path`` by ``~``."""
    if home is None or not path.startswith(home):
        return path
    return "~" + path[len(home):]


def format_history(entries, base: int) -> list[str]:
    """Number history entries starting at ``base``."""
    return [f"{number}: {entry}" for number, entry in enumerate(entries, start=base)]


def _executables(directory: str) -> list[str]:
    try:
        entries = list(os.scandir(directory))
    except OSError:
        return []
    names = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            info = os.stat(entry.path)
        except OSError:
            continue
        if stat.S_ISREG(info.st_mode) and info.st_mode & stat.S_IXUSR:
            names.append(entry.name)
    return names


def load_builtins(from_bin: bool = False, commands_file: str = COMMANDS_FILE) -> list[str]:
    """Return the command names offered for completion.

    With ``from_bin`` they are the executables in /bin; otherwise the non-empty
    lines of ``commands_file``, which raises OSError when it cannot be read.
    """
    if from_bin:
        return _executables(BIN_DIRECTORY)
    with open(commands_file, encoding="utf-8", errors="surrogateescape") as handle:
        names = (_LINE_END.split(raw, maxsplit=1)[0] for raw in handle)
        return [name for name in names if name]


def _filename_matches(text: str) -> list[str]:
    directory, prefix = os.path.split(text)
    search = os.path.expanduser(directory) if directory else "."
    try:
        names = os.listdir(search)
    except OSError:
        return []
    matches = sorted(name for name in names if name.startswith(prefix))
    return [os.path.join(directory, name) if directory else name for name in matches]


class CommandCompleter:
    """Readline completer: known command names first, then file names."""

    def __init__(self, names):
        self.names = list(names)
        self._matches: list[str] = []

    def complete(self, text: str, state: int) -> str | None:
        """Return the ``state``-th completion of ``text``, or None when exhausted."""
        if state == 0:
            self._matches = [name for name in self.names if name.startswith(text)]
            self._matches.extend(_filename_matches(text))
        if state < len(self._matches):
            return self._matches[state]
        return None