# preparator/repo.py
"""
Repository access.

Wraps the handful of git commands the rewrite tool relies on.
Handles Git Bash ↔ Windows path normalisation.

Responsibilities:
- Read commit ids, messages and ranges
- Report working tree state (diff status, untracked files)
- Create commits, cherry-pick, checkout, reset and rename branches

This module does NOT:
- know about scripted steps
- run scripted commands
- decide what to replay
"""

from dataclasses import dataclass
from subprocess import run, PIPE, CalledProcessError
from typing import List, Optional, Sequence
from pathlib import Path
import os


# Single source of truth for git field separation
_FIELD_SEP = "\x00"


@dataclass(frozen=True)
class Commit:
    hash: str
    index: int
    subject: str = ""


class GitRepositoryError(RuntimeError):
    pass


def _normalise_repo_path(repo_path: Path) -> Path:
    """
    Convert Git Bash paths (/c/Users/...) to native Windows paths (C:\\Users\\...).
    No-op on non-Windows systems.
    """
    if os.name != "nt":
        return repo_path

    p = str(repo_path)

    if p.startswith("/") and len(p) >= 3 and p[2] == "/":
        drive = p[1]
        if drive.isalpha():
            return Path(f"{drive.upper()}:/{p[3:]}")

    return Path(p)


def _run_git_command(
    repo_path: Path,
    args: List[str],
    stdin: Optional[str] = None,
    strip: bool = True,
) -> str:
    repo_path = _normalise_repo_path(repo_path)

    try:
        result = run(
            ["git", "-C", str(repo_path)] + args,
            input=stdin,
            stdout=PIPE,
            stderr=PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=True,
        )
        if not strip:
            return result.stdout
        # Do not strip spaces — only remove trailing newlines
        return result.stdout.rstrip("\n")
    except CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise GitRepositoryError(stderr if stderr else "git command failed") from e


def _run_git_interactive(repo_path: Path, args: List[str]) -> int:
    """
    Run git attached to the terminal (editor, conflict reports) and return its exit code.
    """
    repo_path = _normalise_repo_path(repo_path)
    return run(["git", "-C", str(repo_path)] + args).returncode


def find_repository_root(path: Path) -> Path:
    try:
        top = _run_git_command(path, ["rev-parse", "--show-toplevel"])
    except GitRepositoryError as e:
        raise GitRepositoryError(f"Not a git repository: {path}") from e
    return Path(top)


class Repository:
    """
    A git working copy, addressed by its root directory.
    """

    def __init__(self, root: Path) -> None:
        self.root = root

    def _git(self, *args: str, stdin: Optional[str] = None) -> str:
        return _run_git_command(self.root, list(args), stdin=stdin)

    # -----------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------

    def current_branch(self) -> str:
        branch = self._git("branch", "--show-current")
        if not branch:
            raise GitRepositoryError("HEAD is detached; check out a branch first")
        return branch

    def rev_parse(self, commitish: str) -> str:
        return self._git("rev-parse", "--verify", "--quiet", f"{commitish}^{{commit}}")

    def rev_list(self, revision_range: str) -> List[str]:
        """
        Commit ids in the range, oldest -> newest.
        """
        out = self._git("rev-list", "--reverse", revision_range)
        return out.split() if out else []

    def has_parent(self, commit: str) -> bool:
        try:
            self.rev_parse(f"{commit}^")
        except GitRepositoryError:
            return False
        return True

    def is_ancestor(self, commit: str, descendant: str) -> bool:
        """
        True iff commit is reachable from descendant (a commit is its own ancestor).
        """
        repo_path = _normalise_repo_path(self.root)
        result = run(
            ["git", "-C", str(repo_path), "merge-base", "--is-ancestor", commit, descendant],
            stdout=PIPE,
            stderr=PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        stderr = (result.stderr or "").strip()
        raise GitRepositoryError(stderr if stderr else "git merge-base --is-ancestor failed")

    def fork_point(self, base: str, branch: str = "HEAD") -> str:
        return self._git("merge-base", "--fork-point", base, branch)

    def message(self, commit: str) -> str:
        """
        Raw commit message, exactly as stored in the commit object.
        """
        raw = self._git_raw("cat-file", "commit", commit)
        _headers, sep, body = raw.partition("\n\n")
        return body if sep else ""

    def has_local_changes(self) -> bool:
        return bool(self._git("diff", "--name-only", "HEAD"))

    def untracked_files(self) -> List[str]:
        """
        Untracked, non-ignored paths relative to the repository root, sorted.
        """
        out = self._git_raw("ls-files", "--others", "--exclude-standard", "-z")
        return sorted(p for p in out.split(_FIELD_SEP) if p)

    def log(self, commits: Sequence[str]) -> List[Commit]:
        """
        Load subject lines for the given commits, preserving their order.
        """
        if not commits:
            return []

        raw = self._git("show", "-s", "--format=%H%x00%s", *commits)

        result: List[Commit] = []
        for idx, line in enumerate(raw.splitlines()):
            parts = line.split(_FIELD_SEP)
            if len(parts) != 2:
                raise GitRepositoryError(f"Malformed git log line: {line!r}")
            result.append(Commit(hash=parts[0], index=idx, subject=parts[1]))

        return result

    # -----------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------

    def stage(self, paths: Sequence[str]) -> None:
        if paths:
            self._git("add", "--", *paths)

    def commit_all(self, message: str) -> str:
        """
        Commit staged paths plus every tracked modification; returns the new commit id.

        The message is written verbatim so scripted-step framing survives.
        """
        self._git("commit", "--all", "--allow-empty", "--cleanup=verbatim", "--file=-", stdin=message)
        return self.rev_parse("HEAD")

    def amend(self, extra_args: Sequence[str]) -> None:
        code = _run_git_interactive(self.root, ["commit", "--amend", *extra_args])
        if code != 0:
            raise GitRepositoryError(f"git commit --amend failed with exit code {code}")

    def cherry_pick(self, commit: str) -> bool:
        """
        Native cherry-pick onto HEAD. Returns False when git stops (conflict or refusal).
        """
        return _run_git_interactive(self.root, ["cherry-pick", "--allow-empty", commit]) == 0

    def checkout(self, ref: str, new_branch: Optional[str] = None) -> None:
        if new_branch is None:
            self._git("checkout", ref)
        else:
            self._git("checkout", "-b", new_branch, ref)

    def reset_hard(self, ref: str) -> None:
        self._git("reset", "--hard", ref)

    def rename_branch(self, old: str, new: str) -> None:
        self._git("branch", "-M", old, new)

    def _git_raw(self, *args: str) -> str:
        return _run_git_command(self.root, list(args), strip=False)
