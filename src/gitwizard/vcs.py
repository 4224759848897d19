"""git への問い合わせ（読み取り専用クエリ）。

方針:
- ここは「状態を調べる」操作だけを持つ。リポジトリを変更するコマンドは
  必ず CommandGate（gate.py）経由で、ユーザー承認つきで実行する
- 1つの論理操作 = 1メソッド。テストでは FakeGit（メモリ上の実装）に差し替える
- 真偽を返すプローブ（diff --quiet など）は例外を投げない
- 出力を使うクエリ（run）は非ゼロ終了で RuntimeError
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

IN_PROGRESS_NONE = "none"
IN_PROGRESS_MERGE = "merge"
IN_PROGRESS_REBASE = "rebase"


class VersionControlClient(ABC):
    """リポジトリのクエリ。実装: GitClient（本物） / tests の FakeGit。"""

    @abstractmethod
    def is_repo_root(self) -> bool:
        """カレントが作業コピーのルート（.git がある）なら True。"""

    @abstractmethod
    def remote_url(self, remote: str) -> str | None:
        """remote の URL。未設定なら None。"""

    @abstractmethod
    def in_progress_operation(self) -> str:
        """IN_PROGRESS_NONE / IN_PROGRESS_MERGE / IN_PROGRESS_REBASE のいずれか。"""

    @abstractmethod
    def diff_is_empty(self, *, staged: bool) -> bool:
        """staged=False: 作業ツリー vs index、staged=True: index vs HEAD。"""

    @abstractmethod
    def refs_diff_is_empty(self, base: str, head: str) -> bool:
        """`git diff --quiet base..head` の結果。"""

    @abstractmethod
    def check_ref_format(self, name: str) -> tuple[bool, str]:
        """ブランチ名として妥当か（git の参照名文法）と診断メッセージ。"""

    @abstractmethod
    def ref_exists(self, ref: str) -> bool:
        """完全な参照名（refs/heads/x, refs/remotes/origin/x）の存在確認。"""

    @abstractmethod
    def has_upstream(self) -> bool:
        """現在のブランチに upstream が設定済みか。"""

    @abstractmethod
    def left_right_count(self, left: str, right: str) -> str:
        """`git rev-list --left-right --count left...right` の生出力。失敗時は空文字。"""

    @abstractmethod
    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """ancestor が descendant の祖先なら True。"""

    @abstractmethod
    def cherry(self, upstream: str, head: str) -> list[str]:
        """`git cherry -v upstream head` の行。失敗時は RuntimeError。"""

    def working_tree_clean(self) -> bool:
        # unstaged / staged の両方が空のときだけ clean
        return self.diff_is_empty(staged=False) and self.diff_is_empty(staged=True)


@dataclass
class GitClient(VersionControlClient):
    path: Path = field(default_factory=lambda: Path("."))

    def _probe(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            ["git", *args],
            cwd=self.path,
            text=True,
            capture_output=True,
            check=False,
        )

    def run(self, args: list[str]) -> str:
        proc = self._probe(args)
        if proc.returncode != 0:
            raise RuntimeError(proc.stderr.strip() or "git failed")
        return proc.stdout.strip()

    def is_repo_root(self) -> bool:
        return (self.path / ".git").exists()

    def remote_url(self, remote: str) -> str | None:
        try:
            url = self.run(["remote", "get-url", remote])
        except RuntimeError:
            return None
        return url or None

    def in_progress_operation(self) -> str:
        git_dir = self.path / ".git"
        if (git_dir / "MERGE_HEAD").exists():
            return IN_PROGRESS_MERGE
        if (git_dir / "rebase-merge").is_dir() or (git_dir / "rebase-apply").is_dir():
            return IN_PROGRESS_REBASE
        return IN_PROGRESS_NONE

    def diff_is_empty(self, *, staged: bool) -> bool:
        args = ["diff", "--quiet"]
        if staged:
            args.append("--cached")
        return self._probe(args).returncode == 0

    def refs_diff_is_empty(self, base: str, head: str) -> bool:
        return self._probe(["diff", "--quiet", f"{base}..{head}"]).returncode == 0

    def check_ref_format(self, name: str) -> tuple[bool, str]:
        proc = self._probe(["check-ref-format", "--branch", name])
        diagnostic = (proc.stderr or "").strip()
        return proc.returncode == 0, diagnostic

    def ref_exists(self, ref: str) -> bool:
        return self._probe(["show-ref", "--verify", "--quiet", ref]).returncode == 0

    def has_upstream(self) -> bool:
        proc = self._probe(["rev-parse", "--abbrev-ref", "--symbolic-full-name", "@{u}"])
        return proc.returncode == 0

    def left_right_count(self, left: str, right: str) -> str:
        proc = self._probe(["rev-list", "--left-right", "--count", f"{left}...{right}"])
        if proc.returncode != 0:
            return ""
        return proc.stdout.rstrip("\n")

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        proc = self._probe(["merge-base", "--is-ancestor", ancestor, descendant])
        return proc.returncode == 0

    def cherry(self, upstream: str, head: str) -> list[str]:
        out = self.run(["cherry", "-v", upstream, head])
        return [line for line in out.splitlines() if line.strip()]
