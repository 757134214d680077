# ssishell

A small interactive shell for POSIX systems. It shows a coloured prompt and runs
commands in the foreground or the background. It chains commands with `|`, keeps
a history between sessions and completes command and file names with Tab.

## Installing

```
pip install .
```

## Starting the shell

```
ssi
```

If `HOME` is set, Tab completion offers command names first and then file names.
When `ssi` is started with no arguments, the command names come from
`./helpers/commands.txt`, one name per line, relative to the directory you start
in. When that file cannot be read, the shell prints an `fopen:` message and
completes file names only. If you pass any argument, the command names come from
the executables in `/bin` instead:

```
ssi bin
```

The prompt has the form `user@host: ~/some/dir -> `. When the working directory
is inside your home directory, that part of the path is shown as `~`.

## Commands

| Input | Effect |
| --- | --- |
| `cd <dir>` | Change directory. A leading `~` is replaced by `$HOME`. `cd` on its own does nothing. |
| `a \| b \| c` | Run a pipeline in the foreground and wait for every stage. It takes at most 16 commands, and each command keeps at most 8 words. |
| `bg <command>` | Run a command or pipeline in its own process group, in the background. Its output is appended to `~/Code/shell_interpreter/bg/ProcessesOutput.txt`. |
| `bglist` | List the background jobs that have not yet been reported as finished. |
| `bgkill <pid>` | Send SIGINT to the job's process group and forget the job. If SIGINT cannot be delivered, the shell tries SIGTERM and then SIGKILL, keeps the job and prints a `kill:` message. |
| `history` | Print the history, numbered. |
| `clear_history` | Forget the history. |
| `exit` | Leave the shell. End of input (Ctrl+D) also leaves it. |

If a command cannot be started, the shell prints
`<name>: No such file or directory` where that command's output would have gone.
A failed `cd` prints a message of the same form. Before it runs each new line,
the shell reports the background jobs that have finished, for example
`1234: ~/work sleep 5 has terminated`. Ctrl+C at the prompt, or during a
foreground command, moves to a fresh line and the shell keeps running.

History is kept in `~/.ssi_history`, up to 1000 entries.

## What it does not do

Words are split on spaces only. There is no quoting, no escaping, no globbing,
no variable expansion, no `&&`/`;` chaining and no `<`/`>` redirection. A pipe
is the only way to connect commands. Background jobs can only be listed and
killed. They cannot be brought to the foreground.

## Using it from Python

```python
from ssishell.pipeline import parse_pipeline, run_pipeline
from ssishell.commands import CommandCompleter, format_history, shorten_home

parse_pipeline("ls -l | wc -l")           # [['ls', '-l'], ['wc', '-l']]
shorten_home("/home/me/src", "/home/me")  # '~/src'
format_history(["ls", "pwd"], 1)          # ['1: ls', '2: pwd']

completer = CommandCompleter(["ls", "less", "cat"])
completer.complete("l", 0)                # 'ls'
```

`run_pipeline(line, stdout)` runs a pipeline and returns the exit status of each
stage. `ssishell.commands` also provides `change_directory` and
`load_builtins`. `ssishell.shell.Shell` runs the whole read–execute loop through
`Shell.run()`, and `Shell.execute(line)` runs a single line of input. Its
`JobTable` keeps the background jobs.