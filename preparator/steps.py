# preparator/steps.py
"""
Step listing.

Responsibilities:
- Collect the commits after the fork point with a base
- Render a deterministic, human readable table of them

This module does NOT:
- modify the repository
- run commands
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from preparator.codec import classify
from preparator.context import PreconditionFailed, RepositoryContext
from preparator.repo import GitRepositoryError


@dataclass(frozen=True)
class StepEntry:
    index: int
    from_tip: int
    hash_prefix: str
    scripted: bool
    subject: str


def build_entries(
    ctx: RepositoryContext,
    base: Optional[str] = None,
    *,
    hash_len: int = 12,
) -> List[StepEntry]:
    """
    One entry per commit after the fork point, oldest first.

    Raises:
        ValueError: if hash_len is invalid.
    """
    if hash_len <= 0:
        raise ValueError("hash_len must be a positive integer")

    base = base or ctx.config.base

    try:
        fork = ctx.repo.fork_point(base)
    except GitRepositoryError as e:
        raise PreconditionFailed(f"'{ctx.branch}' was not forked from '{base}'!") from e

    ids = ctx.repo.rev_list(f"{fork}..HEAD")
    total = len(ids)

    entries: List[StepEntry] = []
    for c in ctx.repo.log(ids):
        entries.append(
            StepEntry(
                index=c.index,
                from_tip=total - 1 - c.index,
                hash_prefix=c.hash[:hash_len],
                scripted=classify(ctx.repo.message(c.hash)),
                subject=c.subject,
            )
        )

    return entries


def render_steps_report(
    *,
    branch: str,
    base: str,
    entries: Sequence[StepEntry],
    hash_len: int,
) -> str:
    """
    Render the step list as plain text.
    """
    lines: List[str] = []

    lines.append(f"Branch: {branch}")
    lines.append(f"Base: {base}")
    lines.append(f"Commits since fork point: {len(entries)}")
    lines.append(f"Scripted steps: {sum(1 for e in entries if e.scripted)}")

    if not entries:
        return "\n".join(lines)

    lines.append("")
    lines.append(f"Hash shown as {hash_len} character prefix")
    lines.append("")

    headers = ["+n", "-n", "hash", "kind", "subject"]

    rows: List[List[str]] = []
    for e in sorted(entries, key=lambda x: x.index):
        rows.append(
            [
                f"+{e.index}",
                f"-{e.from_tip}",
                e.hash_prefix,
                "scripted" if e.scripted else "manual",
                e.subject,
            ]
        )

    lines.extend(_format_table(headers, rows))
    return "\n".join(lines)


def _format_table(headers: List[str], rows: List[List[str]]) -> List[str]:
    widths = [len(h) for h in headers]

    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(items: List[str]) -> str:
        return "  ".join(items[i].ljust(widths[i]) for i in range(len(items))).rstrip()

    lines: List[str] = []
    lines.append(fmt_row(headers))
    lines.append(fmt_row(["-" * w for w in widths]))

    for row in rows:
        lines.append(fmt_row(row))

    return lines
