# preparator/apply.py
"""
Scripted step application.

Responsibilities:
- Run a scripted command through the configured shell
- Detect untracked files the command created and offer to stage them
- Commit every tracked modification with the given message

This module does NOT:
- encode or decode commit messages
- move branches
"""

from __future__ import annotations

import sys
from pathlib import Path
from subprocess import run

from preparator.context import RepositoryContext


class CommandFailed(RuntimeError):
    def __init__(self, command: str, returncode: int) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(f"command failed with exit code {returncode}: {command}")


def apply_step(ctx: RepositoryContext, message: str, command: str) -> str:
    """
    Run command and commit its effect with message. Returns the new commit id.

    A command that changes nothing still produces a (empty) commit.
    """
    repo = ctx.repo
    untracked_before = set(repo.untracked_files())

    print("Running:")
    print(command)

    # the command is handed to the shell as a single argument, never split here
    try:
        result = run([*ctx.config.shell, command], cwd=str(repo.root))
    except OSError as e:
        raise CommandFailed(command, 127) from e

    if result.returncode != 0:
        raise CommandFailed(command, result.returncode)

    new_untracked = [p for p in repo.untracked_files() if p not in untracked_before]
    if new_untracked and ctx.confirm(new_untracked):
        repo.stage(new_untracked)

    return repo.commit_all(message)


def command_from_arg(arg: str) -> str:
    """
    '-' reads the command from stdin, an existing file path reads it from the file,
    anything else is the command itself.
    """
    if arg == "-":
        return sys.stdin.read().rstrip("\n")

    path = Path(arg)
    if path.is_file():
        return path.read_text(encoding="utf-8").rstrip("\n")

    return arg
