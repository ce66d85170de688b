# preparator/rewrite.py
"""
History rewrite implementation.

Every rewrite runs as a transaction on a temporary branch:
check out the temporary branch, mutate, replay the remaining commits of the
original branch, then rename the temporary branch over the original.

Responsibilities:
- Run the temporary branch transaction
- Implement add, rebase, amend and edit on top of it
- Gate amend/edit on the manual/scripted classification of the target

This module does NOT:
- parse command line arguments
- roll back a failed transaction (the temporary branch is left for inspection)
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from preparator.apply import apply_step
from preparator.codec import Manual, classify, decode, encode
from preparator.context import PreconditionFailed, RepositoryContext, ensure_clean
from preparator.replay import cherry_pick
from preparator.repo import GitRepositoryError
from preparator.selector import resolve


@dataclass(frozen=True)
class Transaction:
    branch: str
    staging_branch: str
    start: str  # commit the staging branch is created at
    target: str  # commits after this one, up to tip, are replayed
    tip: str


def _staging_branch_name(ctx: RepositoryContext) -> str:
    return f"{ctx.config.temp_branch_prefix}{ctx.branch}.{secrets.token_hex(8)}"


def with_temp_branch(
    ctx: RepositoryContext,
    commit: str,
    mutation: Callable[[], None],
    onto: Optional[str] = None,
) -> Transaction:
    """
    Rewrite ctx.branch from commit onwards.

    The staging branch starts at onto (default: commit). The original branch is
    only moved by the final rename, so any failure before it leaves it untouched.
    """
    repo = ctx.repo

    if not repo.is_ancestor(commit, ctx.branch):
        raise PreconditionFailed(
            f"{commit} is not part of branch '{ctx.branch}'",
            hint="Consider the 'cherry-pick' command instead",
        )

    tx = Transaction(
        branch=ctx.branch,
        staging_branch=_staging_branch_name(ctx),
        start=onto or commit,
        target=commit,
        tip=repo.rev_parse(ctx.branch),
    )
    pending = repo.rev_list(f"{tx.target}..{tx.tip}")

    print(f"Switching to temporary branch {tx.staging_branch}")
    repo.checkout(tx.start, new_branch=tx.staging_branch)

    mutation()

    if pending:
        cherry_pick(ctx, pending)

    repo.rename_branch(tx.staging_branch, tx.branch)
    print(f"Moved {tx.staging_branch} over {tx.branch}")
    return tx


# ---------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------

def add(ctx: RepositoryContext, user_message: str, command: str) -> str:
    ensure_clean(ctx)
    return apply_step(ctx, encode(user_message, command), command)


def rebase(ctx: RepositoryContext, base: Optional[str] = None, branch: Optional[str] = None) -> Transaction:
    ensure_clean(ctx)

    base = base or ctx.config.base
    branch = branch or ctx.branch

    if branch != ctx.branch:
        ctx.repo.checkout(branch)
        ctx = replace(ctx, branch=branch)

    # TODO: stacked scripted branches (a scripted branch based on another one) are
    # replayed in full; detect and skip steps the new base already contains.
    try:
        fork = ctx.repo.fork_point(base, branch)
    except GitRepositoryError as e:
        raise PreconditionFailed(
            f"'{branch}' was not forked from '{base}'!",
            hint="Consider the 'cherry-pick' command instead",
        ) from e

    return with_temp_branch(ctx, fork, lambda: None, onto=ctx.repo.rev_parse(base))


def amend(ctx: RepositoryContext, selector: str, extra_args: Sequence[str] = ()) -> Transaction:
    commit = resolve(ctx, selector)

    if classify(ctx.repo.message(commit)):
        raise PreconditionFailed(
            "cannot 'amend' a scripted step!",
            hint="Consider the 'edit' command instead",
        )

    return with_temp_branch(ctx, commit, lambda: ctx.repo.amend(extra_args))


def edit(
    ctx: RepositoryContext,
    selector: str,
    command: str,
    user_message: Optional[str] = None,
) -> Transaction:
    commit = resolve(ctx, selector)

    step = decode(ctx.repo.message(commit))
    if isinstance(step, Manual):
        raise PreconditionFailed(
            "cannot 'edit' a manual commit!",
            hint="Consider the 'amend' command instead",
        )

    # the step is rebuilt on its parent
    if not ctx.repo.has_parent(commit):
        raise PreconditionFailed(f"cannot 'edit' root commit {commit}: it has no parent")

    ensure_clean(ctx)

    if user_message is None:
        user_message = step.user_message
        print(f"reusing previous message: {user_message}")

    msg = encode(user_message, command)

    def reapply() -> None:
        ctx.repo.reset_hard("HEAD^")
        apply_step(ctx, msg, command)

    return with_temp_branch(ctx, commit, reapply)
