"""GitClient のテスト（本物の git を使う。無ければ skip）。"""

import subprocess
from pathlib import Path

from gitwizard.vcs import IN_PROGRESS_MERGE, IN_PROGRESS_NONE, IN_PROGRESS_REBASE, GitClient


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


def test_repo_root_and_remote(cloned_repo: tuple[Path, Path], tmp_path: Path) -> None:
    remote, work = cloned_repo
    git = GitClient(work)
    assert git.is_repo_root() is True
    assert git.remote_url("origin") == str(remote)
    assert git.remote_url("upstream") is None
    assert GitClient(work / "missing").is_repo_root() is False


def test_clean_tree_requires_both_diffs_empty(cloned_repo: tuple[Path, Path]) -> None:
    _, work = cloned_repo
    git = GitClient(work)
    assert git.working_tree_clean() is True

    (work / "README.md").write_text("changed\n", encoding="utf-8")
    assert git.diff_is_empty(staged=False) is False
    assert git.working_tree_clean() is False

    _git(work, "add", "README.md")
    assert git.diff_is_empty(staged=False) is True
    assert git.diff_is_empty(staged=True) is False
    assert git.working_tree_clean() is False


def test_untracked_file_does_not_dirty_tree(cloned_repo: tuple[Path, Path]) -> None:
    _, work = cloned_repo
    (work / "new.txt").write_text("x", encoding="utf-8")
    assert GitClient(work).working_tree_clean() is True


def test_in_progress_detection(cloned_repo: tuple[Path, Path]) -> None:
    _, work = cloned_repo
    git = GitClient(work)
    assert git.in_progress_operation() == IN_PROGRESS_NONE

    (work / ".git" / "rebase-merge").mkdir()
    assert git.in_progress_operation() == IN_PROGRESS_REBASE

    (work / ".git" / "MERGE_HEAD").write_text("0" * 40, encoding="utf-8")
    assert git.in_progress_operation() == IN_PROGRESS_MERGE


def test_refs_and_counts(cloned_repo: tuple[Path, Path]) -> None:
    _, work = cloned_repo
    git = GitClient(work)
    assert git.ref_exists("refs/heads/main") is True
    assert git.ref_exists("refs/heads/nope") is False
    assert git.ref_exists("refs/remotes/origin/main") is True
    assert git.has_upstream() is True
    assert git.left_right_count("main", "origin/main") == "0\t0"
    assert git.refs_diff_is_empty("origin/main", "main") is True

    (work / "a.txt").write_text("a", encoding="utf-8")
    _git(work, "add", "a.txt")
    _git(work, "commit", "-m", "a")
    assert git.left_right_count("main", "origin/main") == "1\t0"
    assert git.refs_diff_is_empty("origin/main", "main") is False
    assert git.is_ancestor("origin/main", "main") is True
    assert git.is_ancestor("main", "origin/main") is False


def test_cherry_lists_unapplied_patches(cloned_repo: tuple[Path, Path]) -> None:
    _, work = cloned_repo
    git = GitClient(work)
    _git(work, "switch", "-c", "feature/x")
    (work / "b.txt").write_text("b", encoding="utf-8")
    _git(work, "add", "b.txt")
    _git(work, "commit", "-m", "b")

    lines = git.cherry("origin/main", "feature/x")
    assert len(lines) == 1
    assert lines[0].startswith("+ ")
    assert git.has_upstream() is False


def test_left_right_count_failure_is_empty(cloned_repo: tuple[Path, Path]) -> None:
    _, work = cloned_repo
    assert GitClient(work).left_right_count("main", "origin/nope") == ""
