import pytest

from conftest import commit_file, git
from preparator.apply import CommandFailed
from preparator.codec import Scripted, decode, encode
from preparator.config import Config
from preparator.context import PreconditionFailed
from preparator.rewrite import add, amend, edit, rebase, with_temp_branch


def _temp_branches(repo, prefix="next-"):
    return git(repo, "branch", "--list", f"{prefix}*", "--format=%(refname:short)").split()


def _subjects(repo, revision_range):
    return git(repo, "log", "--reverse", "--format=%s", revision_range).splitlines()


@pytest.fixture
def versioned_feature(git_repo, make_ctx):
    """master has version.txt=v1; feature adds a manual commit and a scripted copy of version.txt."""
    commit_file(git_repo, "version.txt", "v1\n", "v1")
    git(git_repo, "checkout", "-q", "-b", "feature")
    commit_file(git_repo, "a.txt", "a\n", "add a")
    add(make_ctx(git_repo), "copy version", "cp version.txt out.txt")
    return git_repo


def test_with_temp_branch_noop_keeps_history(feature_repo, make_ctx):
    commit_file(feature_repo, "a.txt", "a\n", "add a")
    commit_file(feature_repo, "b.txt", "b\n", "add b")
    ctx = make_ctx(feature_repo)

    tx = with_temp_branch(ctx, git(feature_repo, "rev-parse", "HEAD~1"), lambda: None)

    assert tx.branch == "feature"
    assert tx.staging_branch.startswith("next-feature.")
    assert len(tx.staging_branch) == len("next-feature.") + 16
    assert git(feature_repo, "branch", "--show-current") == "feature"
    assert _subjects(feature_repo, "master..feature") == ["add a", "add b"]
    assert _temp_branches(feature_repo) == []


def test_temp_branch_prefix_from_config(feature_repo, make_ctx):
    commit_file(feature_repo, "a.txt", "a\n", "add a")
    ctx = make_ctx(feature_repo, config=Config(temp_branch_prefix="wip/"))

    tx = with_temp_branch(ctx, "HEAD", lambda: None)

    assert tx.staging_branch.startswith("wip/feature.")


def test_rebase_regenerates_scripted_steps(versioned_feature, make_ctx):
    repo = versioned_feature
    git(repo, "checkout", "-q", "master")
    master_tip = commit_file(repo, "version.txt", "v2\n", "v2")
    git(repo, "checkout", "-q", "feature")

    rebase(make_ctx(repo))

    assert git(repo, "merge-base", "master", "feature") == master_tip
    assert _subjects(repo, "master..feature") == ["add a", "copy version"]
    assert git(repo, "show", "feature:out.txt") == "v2"
    assert git(repo, "branch", "--show-current") == "feature"
    assert _temp_branches(repo) == []


def test_rebase_checks_out_named_branch(versioned_feature, make_ctx):
    repo = versioned_feature
    git(repo, "checkout", "-q", "master")
    master_tip = commit_file(repo, "version.txt", "v2\n", "v2")

    rebase(make_ctx(repo), "master", "feature")

    assert git(repo, "branch", "--show-current") == "feature"
    assert git(repo, "rev-parse", "feature~2") == master_tip
    assert git(repo, "show", "feature:out.txt") == "v2"


def test_failed_rebase_leaves_branch_untouched(git_repo, make_ctx):
    git(git_repo, "checkout", "-q", "-b", "feature")
    add(make_ctx(git_repo), "guarded", "if [ -f blocker.txt ]; then exit 3; fi; echo hi > b.txt")
    old_tip = git(git_repo, "rev-parse", "feature")

    git(git_repo, "checkout", "-q", "master")
    commit_file(git_repo, "blocker.txt", "x\n", "blocker")
    git(git_repo, "checkout", "-q", "feature")

    with pytest.raises(CommandFailed):
        rebase(make_ctx(git_repo))

    assert git(git_repo, "rev-parse", "feature") == old_tip
    # the staging branch is kept for inspection
    current = git(git_repo, "branch", "--show-current")
    assert current.startswith("next-feature.")
    assert _temp_branches(git_repo) == [current]


def test_rebase_requires_fork_point(feature_repo, make_ctx):
    commit_file(feature_repo, "a.txt", "a\n", "add a")
    git(feature_repo, "checkout", "-q", "--orphan", "lonely")
    git(feature_repo, "commit", "-q", "--allow-empty", "-m", "unrelated")
    git(feature_repo, "checkout", "-q", "-f", "feature")

    with pytest.raises(PreconditionFailed) as exc:
        rebase(make_ctx(feature_repo), "lonely")

    assert "cherry-pick" in exc.value.hint


def test_rebase_requires_clean_tree(versioned_feature, make_ctx):
    (versioned_feature / "a.txt").write_text("dirty\n")

    with pytest.raises(PreconditionFailed):
        rebase(make_ctx(versioned_feature))


def test_amend_manual_commit(versioned_feature, make_ctx):
    repo = versioned_feature
    scripted_msg = make_ctx(repo).repo.message("feature")

    amend(make_ctx(repo), "+0", ["-m", "add a, renamed"])

    assert _subjects(repo, "master..feature") == ["add a, renamed", "copy version"]
    assert make_ctx(repo).repo.message("feature") == scripted_msg
    assert _temp_branches(repo) == []


def test_amend_folds_staged_changes(feature_repo, make_ctx):
    commit_file(feature_repo, "a.txt", "a\n", "add a")
    add(make_ctx(feature_repo), "copy a", "cat a.txt > b.txt")

    (feature_repo / "a.txt").write_text("changed\n")
    git(feature_repo, "add", "a.txt")

    amend(make_ctx(feature_repo), "-1", ["--no-edit"])

    assert git(feature_repo, "show", "feature~1:a.txt") == "changed"
    assert git(feature_repo, "show", "feature:b.txt") == "changed"
    assert _subjects(feature_repo, "master..feature") == ["add a", "copy a"]


def test_amend_rejects_scripted_step(versioned_feature, make_ctx):
    tip = git(versioned_feature, "rev-parse", "feature")

    with pytest.raises(PreconditionFailed) as exc:
        amend(make_ctx(versioned_feature), "-0", ["--no-edit"])

    assert "scripted" in str(exc.value)
    assert "'edit'" in exc.value.hint
    assert git(versioned_feature, "rev-parse", "feature") == tip


def test_edit_rejects_manual_commit(versioned_feature, make_ctx):
    with pytest.raises(PreconditionFailed) as exc:
        edit(make_ctx(versioned_feature), "+0", "true")

    assert "manual" in str(exc.value)
    assert "'amend'" in exc.value.hint


def test_edit_reuses_message(feature_repo, make_ctx, capsys):
    add(make_ctx(feature_repo), "make out", "echo one > out.txt")
    commit_file(feature_repo, "c.txt", "c\n", "add c")

    edit(make_ctx(feature_repo), "+0", "echo two > out.txt")

    ctx = make_ctx(feature_repo)
    assert decode(ctx.repo.message("feature~1")) == Scripted("make out", "echo two > out.txt")
    assert git(feature_repo, "show", "feature:out.txt") == "two"
    assert git(feature_repo, "show", "feature:c.txt") == "c"
    assert git(feature_repo, "rev-parse", "feature~2") == git(feature_repo, "rev-parse", "master")
    assert "reusing previous message: make out" in capsys.readouterr().out


def test_edit_with_new_message(feature_repo, make_ctx):
    add(make_ctx(feature_repo), "make out", "echo one > out.txt")

    edit(make_ctx(feature_repo), "-0", "echo three > out.txt", user_message="make out, third try")

    ctx = make_ctx(feature_repo)
    assert decode(ctx.repo.message("feature")) == Scripted("make out, third try", "echo three > out.txt")
    assert git(feature_repo, "show", "feature:out.txt") == "three"
    assert git(feature_repo, "rev-parse", "feature~1") == git(feature_repo, "rev-parse", "master")


def test_edit_requires_clean_tree(feature_repo, make_ctx):
    add(make_ctx(feature_repo), "make out", "echo one > out.txt")
    (feature_repo / "out.txt").write_text("dirty\n")

    with pytest.raises(PreconditionFailed):
        edit(make_ctx(feature_repo), "-0", "true")


def test_edit_rejects_root_commit(tmp_path, make_ctx):
    repo = tmp_path / "rootless"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    git(repo, "config", "commit.gpgsign", "false")
    git(repo, "commit", "-q", "--allow-empty", "-m", encode("seed", "true"))

    with pytest.raises(PreconditionFailed) as exc:
        edit(make_ctx(repo), "-0", "echo hi > b.txt")

    assert "root commit" in str(exc.value)
    assert git(repo, "branch", "--show-current") == "master"
    assert _temp_branches(repo) == []


def test_amend_rejects_commit_from_other_branch(feature_repo, make_ctx):
    commit_file(feature_repo, "a.txt", "a\n", "add a")
    tip = git(feature_repo, "rev-parse", "feature")
    git(feature_repo, "checkout", "-q", "master")
    elsewhere = commit_file(feature_repo, "m.txt", "m\n", "on master")
    git(feature_repo, "checkout", "-q", "feature")

    with pytest.raises(PreconditionFailed) as exc:
        amend(make_ctx(feature_repo), elsewhere, ["--no-edit"])

    assert "not part of branch 'feature'" in str(exc.value)
    assert git(feature_repo, "rev-parse", "feature") == tip
    assert git(feature_repo, "branch", "--show-current") == "feature"
    assert _temp_branches(feature_repo) == []
