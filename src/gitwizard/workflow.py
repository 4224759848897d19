"""ワークフロー状態機械: main 同期 → ブランチ → commit/push → rebase → 外部 merge 待ち → 再同期 → 後片付け → 最終検証。

- 自動 merge はしない。merge は GitHub 等のレビュー画面で人間が行う
- リポジトリを変更するコマンドは全部 CommandGate 経由（1コマンドごとに承認）
- 状態遷移は next_stage(stage, proceed) の純関数。各段階のハンドラは bool を返す
- チェックポイント（develop / rebase / 外部 merge 待ち）で「いいえ」なら
  STAGE_PAUSED で正常終了（exit 0）。あとで再実行して続きから
- ブランチ名はグローバル変数ではなく WorkflowContext に持つ
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from gitwizard.branch_name import ask_branch_name
from gitwizard.config import WizardConfig
from gitwizard.errors import CommandFailure
from gitwizard.gate import CommandGate
from gitwizard.links import cname_notice, compare_url
from gitwizard.preflight import PreflightChecker
from gitwizard.ui import Ui
from gitwizard.vcs import VersionControlClient
from gitwizard.verify import FinalVerifier, VerificationReport

log = logging.getLogger(__name__)

STAGE_SYNC_MAIN = "sync_main"
STAGE_OBTAIN_BRANCH = "obtain_branch"
STAGE_DEVELOP = "develop"
STAGE_COMMIT_AND_PUSH = "commit_and_push"
STAGE_REBASE_BEFORE_REVIEW = "rebase_before_review"
STAGE_AWAIT_EXTERNAL_MERGE = "await_external_merge"
STAGE_RESYNC_MAIN = "resync_main"
STAGE_CLEANUP = "cleanup"
STAGE_FINAL_VERIFICATION = "final_verification"
STAGE_PAUSED = "paused"
STAGE_DONE = "done"

STAGE_ORDER = [
    STAGE_SYNC_MAIN,
    STAGE_OBTAIN_BRANCH,
    STAGE_DEVELOP,
    STAGE_COMMIT_AND_PUSH,
    STAGE_REBASE_BEFORE_REVIEW,
    STAGE_AWAIT_EXTERNAL_MERGE,
    STAGE_RESYNC_MAIN,
    STAGE_CLEANUP,
    STAGE_FINAL_VERIFICATION,
]

CHECKPOINT_STAGES = frozenset(
    {STAGE_DEVELOP, STAGE_REBASE_BEFORE_REVIEW, STAGE_AWAIT_EXTERNAL_MERGE}
)

PROMPT_CREATE_BRANCH = "新しいブランチを作成しますか？（いいえ = 既存ブランチを再開）"
PROMPT_READY_TO_COMMIT = "commit/push に進みますか？"
PROMPT_COMMIT = "コミットしますか？"
PROMPT_PUSH = "ブランチを remote に push しますか？"
PROMPT_REBASE_NOW = "今 rebase しますか？"
PROMPT_SHOW_STATUS = "git status を表示しますか？"
PROMPT_REBASE_CONTINUE = "'git rebase --continue' を試しますか？"
PROMPT_PUSH_AFTER_REBASE = "rebase 後の変更を push しますか（--force-with-lease）？"
PROMPT_MERGED = "PR が MERGE されたら「はい」で続行します。"
PROMPT_DELETE_LOCAL = "ローカルブランチを削除しますか？"
PROMPT_DELETE_REMOTE = "リモートブランチを削除しますか？"

REBASE_DONE = "rebased"
REBASE_CONFLICT = "conflict"
REBASE_FETCH_FAILED = "fetch_failed"


def next_stage(stage: str, proceed: bool) -> str:
    """現在の段階とハンドラの結果から次の段階を決める。"""
    if stage in (STAGE_PAUSED, STAGE_DONE):
        return stage
    if not proceed and stage in CHECKPOINT_STAGES:
        return STAGE_PAUSED
    idx = STAGE_ORDER.index(stage)
    if idx + 1 < len(STAGE_ORDER):
        return STAGE_ORDER[idx + 1]
    return STAGE_DONE


@dataclass
class WorkflowContext:
    branch: str | None = None
    stage: str = STAGE_SYNC_MAIN
    completed: list[str] = field(default_factory=list)
    report: VerificationReport | None = None

    @property
    def paused(self) -> bool:
        return self.stage == STAGE_PAUSED

    @property
    def exit_code(self) -> int:
        if self.report is not None and not self.report.passed:
            return 1
        return 0


def rebase_flow(gate: CommandGate, ui: Ui, *, remote: str, onto: str) -> str:
    """fetch してから onto に rebase する。

    衝突しても自動解決はしない。status 表示と --continue を各1回だけ提案する。
    結果にかかわらずウィザードは止めない（本当に終わったかは最終検証で確かめる）。
    """
    if gate.execute(["git", "fetch", remote]) != 0:
        ui.warn("fetch に失敗しました。rebase は行いません。")
        return REBASE_FETCH_FAILED

    if gate.execute(["git", "rebase", onto]) == 0:
        ui.info("rebase 完了。")
        return REBASE_DONE

    ui.warn("rebase 中に衝突が見つかりました。")
    ui.warn("ファイルを解決してから: git add <files> ; git rebase --continue")
    if ui.confirm(PROMPT_SHOW_STATUS, default=True):
        gate.execute(["git", "status"])
    if ui.confirm(PROMPT_REBASE_CONTINUE, default=True):
        gate.execute(["git", "rebase", "--continue"])
    return REBASE_CONFLICT


class WorkflowStateMachine:
    def __init__(
        self,
        *,
        git: VersionControlClient,
        gate: CommandGate,
        ui: Ui,
        config: WizardConfig | None = None,
        root: Path | None = None,
        preflight: PreflightChecker | None = None,
        verifier: FinalVerifier | None = None,
    ) -> None:
        self.git = git
        self.gate = gate
        self.ui = ui
        self.config = config or WizardConfig()
        self.root = root or Path(".")
        self.preflight = preflight or PreflightChecker(git, gate, ui, self.config)
        self.verifier = verifier or FinalVerifier(git, gate, ui, self.config)
        self._handlers: dict[str, Callable[[WorkflowContext], bool]] = {
            STAGE_SYNC_MAIN: self.sync_main,
            STAGE_OBTAIN_BRANCH: self.obtain_branch,
            STAGE_DEVELOP: self.develop,
            STAGE_COMMIT_AND_PUSH: self.commit_and_push,
            STAGE_REBASE_BEFORE_REVIEW: self.rebase_before_review,
            STAGE_AWAIT_EXTERNAL_MERGE: self.await_external_merge,
            STAGE_RESYNC_MAIN: self.resync_main,
            STAGE_CLEANUP: self.cleanup,
            STAGE_FINAL_VERIFICATION: self.final_verification,
        }

    def run(self, ctx: WorkflowContext | None = None) -> WorkflowContext:
        ctx = ctx or WorkflowContext()

        self.preflight.run_all()
        self.ui.section("0) プリフライト")
        self.gate.execute(["git", "rev-parse", "--abbrev-ref", "HEAD"])
        self.gate.execute(["git", "remote", "-v"])

        while ctx.stage not in (STAGE_PAUSED, STAGE_DONE):
            stage = ctx.stage
            proceed = self._handlers[stage](ctx)
            if proceed:
                ctx.completed.append(stage)
            ctx.stage = next_stage(stage, proceed)
            log.info("stage %s -> %s (proceed=%s)", stage, ctx.stage, proceed)

        return ctx

    # --- 各段階 -------------------------------------------------------------

    def sync_main(self, ctx: WorkflowContext) -> bool:
        main = self.config.main_branch
        self.ui.section(f"1) 最新の {main} に合わせる")
        # 汚れたまま switch すると変更が main に持ち越されるので先に確認する
        self.preflight.ensure_clean_working_tree()
        self._pull_main()

        found, notice = cname_notice(self.root)
        if found:
            self.ui.info(notice)
        else:
            self.ui.warn(notice)
        return True

    def obtain_branch(self, ctx: WorkflowContext) -> bool:
        self.ui.section("2) 作業ブランチを作成（または再開）")
        if self.ui.confirm(PROMPT_CREATE_BRANCH, default=True):
            name = ask_branch_name(
                self.ui, self.git, "ブランチ名（例: feature/maj-menu-responsive）"
            )
            if self.git.ref_exists(f"refs/heads/{name}"):
                self.ui.warn("そのブランチはローカルに既にあります。切り替えます。")
                argv = ["git", "switch", name]
            else:
                argv = ["git", "switch", "-c", name]
        else:
            name = ask_branch_name(self.ui, self.git, "再開するブランチ名", show_hint=False)
            # 存在確認はしない。無ければ switch の失敗として報告する
            argv = ["git", "switch", name]

        ctx.branch = name
        rc = self.gate.execute(argv)
        if rc != 0:
            raise CommandFailure(" ".join(argv), rc)
        return True

    def develop(self, ctx: WorkflowContext) -> bool:
        self.ui.section("3) エディタで作業してください。準備ができたら先へ進みます。")
        if self.ui.confirm(PROMPT_READY_TO_COMMIT, default=True):
            return True
        self.ui.warn("OK、あとで再実行してください。")
        return False

    def commit_and_push(self, ctx: WorkflowContext) -> bool:
        self.ui.section("4) 作業を確定（commit & push）")
        self.gate.execute(["git", "add", "-A"])
        self.gate.execute(["git", "status", "-sb"])

        if self.ui.confirm(PROMPT_COMMIT, default=True):
            default_msg = self.config.messages.commit_default
            msg = self.ui.ask(f"コミットメッセージ（デフォルト '{default_msg}'）").strip()
            self.gate.execute(["git", "commit", "-m", msg or default_msg])

        if self.ui.confirm(PROMPT_PUSH, default=True):
            if self.git.has_upstream():
                self.gate.execute(["git", "push"])
            else:
                self.gate.execute(["git", "push", "-u", self.config.remote, self._branch(ctx)])

        self._print_compare_link(ctx)
        return True

    def rebase_before_review(self, ctx: WorkflowContext) -> bool:
        onto = self.config.remote_main
        self.ui.section(f"5) PR の前に {onto} へ rebase（推奨）")
        if not self.ui.confirm(PROMPT_REBASE_NOW, default=True):
            self.ui.warn("OK、rebase の準備ができたら再実行してください。")
            return False

        rebase_flow(self.gate, self.ui, remote=self.config.remote, onto=onto)
        if self.ui.confirm(PROMPT_PUSH_AFTER_REBASE, default=True):
            self.gate.execute(["git", "push", "--force-with-lease"])

        self._print_compare_link(ctx)
        return True

    def await_external_merge(self, ctx: WorkflowContext) -> bool:
        self.ui.section("6) GitHub で PR を作成/更新し、準備ができたら MERGE してください。")
        if self.ui.confirm(PROMPT_MERGED, default=True):
            return True
        self.ui.warn("OK、merge 後に再実行してください。")
        return False

    def resync_main(self, ctx: WorkflowContext) -> bool:
        self.ui.section(f"7) merge 後のローカル {self.config.main_branch} を同期")
        self._pull_main()
        return True

    def cleanup(self, ctx: WorkflowContext) -> bool:
        self.ui.section("8) 作業ブランチの後片付け")
        branch = self._branch(ctx)

        self.ui.info(f"ブランチ: {branch}")
        if self.ui.confirm(PROMPT_DELETE_LOCAL, default=True):
            if self.gate.execute(["git", "branch", "-d", branch]) != 0:
                self.ui.warn("ローカル削除が拒否されました（まだ merge されていない？）")
        if self.ui.confirm(PROMPT_DELETE_REMOTE, default=True):
            if self.gate.execute(["git", "push", self.config.remote, "--delete", branch]) != 0:
                self.ui.warn("リモート削除が拒否されました。")
        return True

    def final_verification(self, ctx: WorkflowContext) -> bool:
        ctx.report = self.verifier.run(ctx.branch)
        if not ctx.report.passed:
            self.ui.error("❌ 最終検証がすべては通りませんでした。修正して `gitwizard verify` を再実行してください。")
        return True

    # --- 補助 ---------------------------------------------------------------

    def _pull_main(self) -> None:
        self.gate.execute(["git", "switch", self.config.main_branch])
        self.gate.execute(["git", "fetch", self.config.remote])
        if self.gate.execute(["git", "pull", "--ff-only"]) != 0:
            self.ui.warn("fast-forward できませんでした。履歴が分岐しています。手動で確認してください。")

    def _branch(self, ctx: WorkflowContext) -> str:
        if not ctx.branch:
            raise RuntimeError("branch is not chosen yet")
        return ctx.branch

    def _print_compare_link(self, ctx: WorkflowContext) -> None:
        url = self.git.remote_url(self.config.remote) or ""
        link = compare_url(url, self._branch(ctx), main_branch=self.config.main_branch)
        if link:
            self.ui.info(f"➡️  PR を作成/更新: {link}")
        else:
            self.ui.warn(f"remote URL から PR の URL を作れませんでした: {url}")
