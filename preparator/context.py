# preparator/context.py
"""
Per-invocation repository context.

Responsibilities:
- Gather repository root, current branch and configuration once per invocation
- Carry the untracked-file confirmation callback
- Enforce the clean working tree precondition

This module does NOT:
- resolve selectors
- create commits
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from preparator.config import Config, find_config, load_config
from preparator.prompt import Confirm, InputFn, confirm_for_policy
from preparator.repo import Repository, find_repository_root
from preparator.validation import validate_config


class PreconditionFailed(RuntimeError):
    """
    The repository is not in a state the requested operation accepts.

    Attributes:
        hint: optional follow-up suggestion shown to the operator
    """

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        self.hint = hint
        super().__init__(message)


@dataclass(frozen=True)
class RepositoryContext:
    repo: Repository
    config: Config
    branch: str
    confirm: Confirm


def build_context(
    repo_path: Path,
    config_path: Optional[Path] = None,
    input_fn: InputFn = input,
) -> RepositoryContext:
    root = find_repository_root(repo_path.expanduser().resolve())
    cfg = validate_config(load_config(find_config(root, config_path)))
    repo = Repository(root)

    return RepositoryContext(
        repo=repo,
        config=cfg,
        branch=repo.current_branch(),
        confirm=confirm_for_policy(cfg.untracked_files, input_fn),
    )


def ensure_clean(ctx: RepositoryContext) -> None:
    if ctx.repo.has_local_changes():
        raise PreconditionFailed(
            "Working copy has local changes!",
            hint="Please commit or stash your changes before running a scripted step.",
        )
