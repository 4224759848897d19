from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

import pytest
from doubles import FakeGit, RecordingRunner, ScriptedUi

from gitwizard.config import LoggingConfig, WizardConfig
from gitwizard.gate import CommandGate


@pytest.fixture()
def config(tmp_path: Path) -> WizardConfig:
    return WizardConfig(logging=LoggingConfig(dir=tmp_path / "logs"))


@pytest.fixture()
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture()
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture()
def make_gate(runner: RecordingRunner) -> Callable[[ScriptedUi], CommandGate]:
    def _make(ui: ScriptedUi) -> CommandGate:
        return CommandGate(ui, runner)

    return _make


def _git(cwd: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", *args], cwd=cwd, text=True, capture_output=True, check=True
    )
    return proc.stdout.strip()


@pytest.fixture()
def git_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """本物の git を使うテスト用。git が無ければ skip。"""
    if shutil.which("git") is None:
        pytest.skip("git not available")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "wizard")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "wizard@example.invalid")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "wizard")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "wizard@example.invalid")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")


@pytest.fixture()
def cloned_repo(git_env: None, tmp_path: Path) -> tuple[Path, Path]:
    """(bare remote, 作業コピー) を作る。main に1コミット、origin/main を追跡済み。"""
    remote = tmp_path / "remote.git"
    work = tmp_path / "work"
    subprocess.run(
        ["git", "init", "--bare", "-b", "main", str(remote)],
        check=True,
        capture_output=True,
    )
    work.mkdir()
    _git(work, "init", "-b", "main")
    _git(work, "remote", "add", "origin", str(remote))
    (work / "README.md").write_text("hello\n", encoding="utf-8")
    _git(work, "add", "-A")
    _git(work, "commit", "-m", "init")
    _git(work, "push", "-u", "origin", "main")
    return remote, work
