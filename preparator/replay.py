# preparator/replay.py
"""
Commit replay.

Responsibilities:
- List the commits of an inclusive range, oldest -> newest
- Cherry-pick manual commits natively
- Re-run scripted steps so their output is regenerated on the current tree

This module does NOT:
- create or rename branches
- roll back on failure (the repository is left as git left it)
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from preparator.apply import apply_step
from preparator.codec import Scripted, decode
from preparator.context import RepositoryContext
from preparator.selector import resolve_commitish


class ReplayConflict(RuntimeError):
    def __init__(self, commit: str) -> None:
        self.commit = commit
        super().__init__(f"cherry-pick of {commit} stopped; resolve it manually")


def commits_in_range(ctx: RepositoryContext, first: str, last: Optional[str] = None) -> List[str]:
    """
    Commits from first to last, both inclusive. A single commit when last is omitted.
    """
    first_id = resolve_commitish(ctx, first)
    if last is None:
        return [first_id]

    last_id = resolve_commitish(ctx, last)
    return [first_id] + ctx.repo.rev_list(f"{first_id}..{last_id}")


def cherry_pick(ctx: RepositoryContext, commits: Sequence[str]) -> List[str]:
    """
    Replay commits onto HEAD in order. Returns the ids of the new commits.

    Stops at the first conflict or failing command.
    """
    created: List[str] = []

    for commit in commits:
        msg = ctx.repo.message(commit)
        step = decode(msg)

        if isinstance(step, Scripted):
            print(f"apply({commit}): {_subject(msg)}")
            created.append(apply_step(ctx, msg, step.command))
            continue

        print(f"cherry-pick: {commit}")
        if not ctx.repo.cherry_pick(commit):
            raise ReplayConflict(commit)
        created.append(ctx.repo.rev_parse("HEAD"))

    return created


def _subject(message: str) -> str:
    lines = message.splitlines()
    return lines[0] if lines else ""
