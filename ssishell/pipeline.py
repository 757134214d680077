"""Parsing and running of ``cmd | cmd | ...`` command pipelines."""

from __future__ import annotations

import os
import re
import subprocess
import sys
from typing import IO

MAX_INPUT_SIZE = 4096
MAX_NUM_CMDS = 16
MAX_ARGS = 8

_SEGMENT_SEPARATORS = re.compile(r"[|\n]")
_ARG_SEPARATORS = re.compile(r"[ \n]")


def parse_pipeline(line: str) -> list[list[str]]:
    """Split a command line into the argument lists of its pipeline stages.

    Empty stages are skipped and each stage keeps at most eight words.
    """
    head, _, tail = line.lstrip("|").partition("|")
    segments = [head] if head else []
    segments.extend(part for part in _SEGMENT_SEPARATORS.split(tail) if part)
    if len(segments) > MAX_NUM_CMDS:
        raise ValueError(f"too many commands in pipeline (at most {MAX_NUM_CMDS})")

    commands = []
    for segment in segments:
        words = [word for word in _ARG_SEPARATORS.split(segment) if word][:MAX_ARGS]
        if words:
            commands.append(words)
    return commands


def _missing_message(name: str) -> str:
    return f"<{name}>: No such file or directory\n"


def _close(stream) -> None:
    if stream is None:
        return
    if isinstance(stream, int):
        os.close(stream)
    else:
        stream.close()


def run_pipeline(line: str, stdout: IO[str] | None = None) -> list[int]:
    """Run every stage of ``line`` connected by pipes and wait for all of them.

    The last stage writes to ``stdout`` (a text stream with a file descriptor),
    or to the inherited standard output when it is None. A stage that cannot be
    started reports itself on its own output, as the stage would have. Returns
    the exit status of each stage, 1 for a stage that could not be started.
    """
    commands = parse_pipeline(line)
    target = sys.stdout if stdout is None else stdout
    target.flush()

    codes = [1] * len(commands)
    started: list[tuple[int, subprocess.Popen]] = []
    upstream = None
    try:
        for index, argv in enumerate(commands):
            last = index == len(commands) - 1
            try:
                process = subprocess.Popen(
                    argv,
                    stdin=upstream,
                    stdout=stdout if last else subprocess.PIPE,
                )
            except OSError:
                message = _missing_message(argv[0])
                if last:
                    target.write(message)
                    target.flush()
                    next_upstream = None
                else:
                    read_fd, write_fd = os.pipe()
                    os.write(write_fd, message.encode())
                    os.close(write_fd)
                    next_upstream = read_fd
            else:
                started.append((index, process))
                next_upstream = process.stdout
            _close(upstream)
            upstream = next_upstream
    finally:
        _close(upstream)

    for index, process in started:
        codes[index] = process.wait()
    return codes