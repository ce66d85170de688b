"""Shared fixtures: throw-away git repositories and contexts over them."""

import subprocess
from pathlib import Path

import pytest

from preparator.config import Config
from preparator.context import RepositoryContext
from preparator.repo import Repository


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(repo), *args],
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.rstrip("\n")


def commit_file(repo: Path, name: str, content: str, message: str) -> str:
    (repo / name).write_text(content)
    git(repo, "add", "--", name)
    git(repo, "commit", "-q", "-m", message)
    return git(repo, "rev-parse", "HEAD")


@pytest.fixture(autouse=True)
def _isolated_git_env(monkeypatch, tmp_path_factory):
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_EDITOR", "true")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Committer")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "committer@example.com")


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Repository with a single commit on master."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    git(repo, "config", "commit.gpgsign", "false")
    commit_file(repo, "README", "readme\n", "initial")
    return repo


@pytest.fixture
def feature_repo(git_repo: Path) -> Path:
    """git_repo with a 'feature' branch checked out at master."""
    git(git_repo, "checkout", "-q", "-b", "feature")
    return git_repo


@pytest.fixture
def make_ctx():
    """Build a context over a real repository; new untracked files are accepted by default."""

    def _make(repo: Path, confirm=None, config: Config = Config()) -> RepositoryContext:
        repository = Repository(repo)
        return RepositoryContext(
            repo=repository,
            config=config,
            branch=repository.current_branch(),
            confirm=confirm or (lambda paths: True),
        )

    return _make
