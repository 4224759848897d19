"""プリフライト: ウィザードを始めてよいリポジトリかを確かめる。

- ルートに .git があること
- merge / rebase が途中で止まっていないこと（止まっていれば中止を提案）
- 設定された remote（デフォルト origin）があること
- 作業ツリーが clean であること（汚れていれば stash / restore / commit を提案）

続行できないときは FatalPrecondition を投げる。CLI がそれを exit 1 にする。
状態はキャッシュしない。救済コマンドの後は必ず問い合わせ直す。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from gitwizard.config import WizardConfig
from gitwizard.errors import FatalPrecondition
from gitwizard.gate import CommandGate
from gitwizard.ui import Ui
from gitwizard.vcs import IN_PROGRESS_NONE, VersionControlClient

log = logging.getLogger(__name__)

PROMPT_ABORT_IN_PROGRESS = "途中の rebase/merge を中止しますか？"
PROMPT_STASH = "A: 全部 stash する（未追跡ファイルも含む）？"
PROMPT_RESTORE = "B: 全部元に戻す（git restore -SW .）？"
PROMPT_COMMIT = "C: この変更をコミットする（今は非推奨）？"


@dataclass(frozen=True)
class RepositoryState:
    has_vcs_root: bool
    has_origin_remote: bool
    in_progress_operation: str
    working_tree_clean: bool


class PreflightChecker:
    def __init__(
        self,
        git: VersionControlClient,
        gate: CommandGate,
        ui: Ui,
        config: WizardConfig | None = None,
    ) -> None:
        self.git = git
        self.gate = gate
        self.ui = ui
        self.config = config or WizardConfig()

    def inspect(self) -> RepositoryState:
        """今のリポジトリ状態を毎回問い合わせ直す。救済コマンドの後の再確認に使う。"""
        if not self.git.is_repo_root():
            return RepositoryState(
                has_vcs_root=False,
                has_origin_remote=False,
                in_progress_operation=IN_PROGRESS_NONE,
                working_tree_clean=False,
            )
        return RepositoryState(
            has_vcs_root=True,
            has_origin_remote=self.git.remote_url(self.config.remote) is not None,
            in_progress_operation=self.git.in_progress_operation(),
            working_tree_clean=self.git.working_tree_clean(),
        )

    def run_all(self) -> None:
        self.ensure_repo_root()
        self.ensure_no_in_progress_operation()
        self.ensure_origin_remote()

    def ensure_repo_root(self) -> None:
        if not self.git.is_repo_root():
            raise FatalPrecondition(
                "❌ ここは Git リポジトリではありません。プロジェクトのルート（.git のある場所）で実行してください。"
            )

    def ensure_no_in_progress_operation(self) -> None:
        op = self.git.in_progress_operation()
        if op == IN_PROGRESS_NONE:
            return

        log.warning("in-progress operation detected: %s", op)
        self.ui.warn(f"⚠️ {op} が進行中です。")
        if not self.ui.confirm(PROMPT_ABORT_IN_PROGRESS, default=True):
            raise FatalPrecondition("中断しました: 先にこの rebase/merge を片付けてください。")

        # 存在しない操作の abort は失敗するが、それは許容する
        for argv in (["git", "merge", "--abort"], ["git", "rebase", "--abort"]):
            rc = self.gate.execute(argv)
            if rc != 0:
                log.info("abort returned %s (tolerated): %s", rc, " ".join(argv))

        remaining = self.inspect().in_progress_operation
        if remaining != IN_PROGRESS_NONE:
            raise FatalPrecondition(
                f"{remaining} がまだ進行中です。手動で解決してください。",
                remediation=f"git {remaining} --abort",
            )

    def ensure_origin_remote(self) -> str:
        remote = self.config.remote
        url = self.git.remote_url(remote)
        if not url:
            raise FatalPrecondition(
                f"❌ remote '{remote}' が設定されていません。",
                remediation=f"git remote add {remote} <url>",
            )
        self.ui.info(f"remote {remote}: {url}")
        return url

    def ensure_clean_working_tree(self) -> None:
        self.ui.section("作業ツリーが clean か確認")
        if self.git.working_tree_clean():
            self.ui.info("✅ clean です。")
            return

        self.ui.warn("⚠️ ローカルの変更があります。")
        self.gate.execute(["git", "status", "-sb"])

        messages = self.config.messages
        if self.ui.confirm(PROMPT_STASH, default=True):
            self.gate.execute(
                ["git", "stash", "push", "-m", messages.stash, "--include-untracked"]
            )
        elif self.ui.confirm(PROMPT_RESTORE, default=False):
            self.gate.execute(["git", "restore", "-SW", "."])
        elif self.ui.confirm(PROMPT_COMMIT, default=False):
            self.gate.execute(["git", "add", "-A"])
            msg = self.ui.ask(
                f"コミットメッセージ（デフォルト '{messages.wip_commit_default}'）",
            ).strip()
            self.gate.execute(["git", "commit", "-m", msg or messages.wip_commit_default])
        else:
            raise FatalPrecondition("中止します: 作業ツリーが clean ではありません。")

        # 1回だけ再確認する。ループはしない
        if not self.inspect().working_tree_clean:
            raise FatalPrecondition(
                "まだ clean ではありません。中止します。",
                remediation="git status",
            )
        self.ui.info("✅ clean です。")
