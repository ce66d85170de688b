# preparator/selector.py
"""
Commit selector resolution.

Selector format:
- +n  0-based index of the commits after the fork point with the base (fork point excluded)
- -n  n commits behind the branch tip (-0 is the tip)
- anything else is a commit-ish

Responsibilities:
- Turn a selector into a full commit id

This module does NOT:
- mutate the repository
"""

from __future__ import annotations

from preparator.context import RepositoryContext
from preparator.repo import GitRepositoryError


class SelectorResolutionError(RuntimeError):
    pass


class NotFound(SelectorResolutionError):
    pass


class OutOfRange(SelectorResolutionError):
    pass


def resolve(ctx: RepositoryContext, selector: str) -> str:
    if selector.startswith("+"):
        return _from_fork_point(ctx, selector)

    if selector.startswith("-"):
        n = _parse_index(selector)
        return _rev_parse(ctx, f"HEAD~{n}", selector)

    return _rev_parse(ctx, selector, selector)


def _from_fork_point(ctx: RepositoryContext, selector: str) -> str:
    idx = _parse_index(selector)

    try:
        fork = ctx.repo.fork_point(ctx.config.base)
    except GitRepositoryError as e:
        raise NotFound(f"no fork point between '{ctx.config.base}' and HEAD") from e

    # the fork point itself is excluded from this list
    commits = ctx.repo.rev_list(f"{fork}..HEAD")

    if idx >= len(commits):
        raise OutOfRange(f"invalid selector: {idx} [only {len(commits)} commits since fork-point]")

    return commits[idx]


def _parse_index(selector: str) -> int:
    digits = selector[1:]
    if not (digits.isascii() and digits.isdigit()):
        raise SelectorResolutionError(f"invalid selector: {selector!r}")
    return int(digits)


def _rev_parse(ctx: RepositoryContext, commitish: str, selector: str) -> str:
    try:
        return ctx.repo.rev_parse(commitish)
    except GitRepositoryError as e:
        raise NotFound(f"no commit matches selector: {selector}") from e


def resolve_commitish(ctx: RepositoryContext, commitish: str) -> str:
    """
    Plain commit-ish lookup, without the +n/-n forms.
    """
    try:
        return ctx.repo.rev_parse(commitish)
    except GitRepositoryError as e:
        raise NotFound(f"no commit matches: {commitish}") from e
