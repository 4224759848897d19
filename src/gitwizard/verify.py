"""最終検証: 後片付けのあと、全部が最新で揃っているかを確かめる。

1. main と origin/main のコミット数が左右とも 0
2. 作業ツリーが clean
3. origin/main..main の内容 diff が空
4. 作業ブランチの変更が origin/main に取り込まれている
   - リモートブランチが無い → merge 後に削除されたとみなして OK
   - origin/main の祖先 → 通常 merge で OK
   - それ以外 → `git cherry` で未適用（'+'）のパッチが 0 件なら OK（squash / rebase merge）

最初に失敗した項目で止める。例外は投げず、VerificationReport で返す。
何も巻き戻さない（診断のみ）。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from gitwizard.config import WizardConfig
from gitwizard.gate import CommandGate
from gitwizard.ui import Ui
from gitwizard.vcs import VersionControlClient

log = logging.getLogger(__name__)

CHECK_MAIN_ALIGNMENT = "main_alignment"
CHECK_CLEAN_TREE = "clean_tree"
CHECK_NO_CONTENT_DIFF = "no_content_diff"
CHECK_BRANCH_INTEGRATION = "branch_integration"

_ALIGNED = {"0\t0", "0 0"}


@dataclass(frozen=True)
class VerificationOutcome:
    name: str
    passed: bool
    detail: str = ""


@dataclass
class VerificationReport:
    outcomes: list[VerificationOutcome] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return bool(self.outcomes) and all(o.passed for o in self.outcomes)

    @property
    def failures(self) -> list[VerificationOutcome]:
        return [o for o in self.outcomes if not o.passed]


def is_aligned_count(left_right: str) -> bool:
    return left_right in _ALIGNED


def count_unapplied_patches(cherry_lines: list[str]) -> int:
    return sum(1 for line in cherry_lines if line.startswith("+"))


class FinalVerifier:
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

    def run(self, branch: str | None = None, *, fetch: bool = True) -> VerificationReport:
        self.ui.section("最終検証: すべて最新になっているか")
        if fetch:
            self.gate.execute(["git", "fetch", self.config.remote])

        checks = [
            ("#1 main == " + self.config.remote_main, self.check_main_alignment),
            ("#2 作業ツリーが clean", self.check_clean_tree),
            ("#3 main と " + self.config.remote_main + " に diff が無い", self.check_no_content_diff),
        ]
        if branch:
            checks.append(
                (
                    f"#4 '{branch}' の変更が {self.config.remote_main} に取り込まれている",
                    lambda: self.check_branch_integration(branch),
                )
            )

        report = VerificationReport()
        for title, check in checks:
            self.ui.section(f"Check {title}")
            outcome = check()
            report.outcomes.append(outcome)
            log.info("check %s passed=%s (%s)", outcome.name, outcome.passed, outcome.detail)
            if not outcome.passed:
                self.ui.error(f"❌ {outcome.detail}")
                return report
            self.ui.info(f"OK: {outcome.detail}")

        self.ui.section("✅ 完了: すべて最新です。")
        return report

    def check_main_alignment(self) -> VerificationOutcome:
        main = self.config.main_branch
        lr = self.git.left_right_count(main, self.config.remote_main)
        self.ui.info(f"rev-list: {lr or '?'}")
        if is_aligned_count(lr):
            return VerificationOutcome(CHECK_MAIN_ALIGNMENT, True, "ahead 0 / behind 0")
        return VerificationOutcome(
            CHECK_MAIN_ALIGNMENT,
            False,
            f"{main} が {self.config.remote_main} と揃っていません。修正: git pull --ff-only",
        )

    def check_clean_tree(self) -> VerificationOutcome:
        if self.git.working_tree_clean():
            return VerificationOutcome(CHECK_CLEAN_TREE, True, "clean")
        return VerificationOutcome(
            CHECK_CLEAN_TREE, False, "ローカルの変更があります。片付けるかコミットしてください。"
        )

    def check_no_content_diff(self) -> VerificationOutcome:
        if self.git.refs_diff_is_empty(self.config.remote_main, self.config.main_branch):
            return VerificationOutcome(CHECK_NO_CONTENT_DIFF, True, "diff なし")
        return VerificationOutcome(
            CHECK_NO_CONTENT_DIFF,
            False,
            f"{self.config.main_branch} と {self.config.remote_main} に差分があります。",
        )

    def check_branch_integration(self, branch: str) -> VerificationOutcome:
        remote_branch = f"{self.config.remote}/{branch}"
        if not self.git.ref_exists(f"refs/remotes/{remote_branch}"):
            self.ui.warn(f"リモートブランチ '{remote_branch}' がありません（merge 後に削除済み？）。")
            return VerificationOutcome(
                CHECK_BRANCH_INTEGRATION, True, "リモートブランチ削除済みとみなします"
            )

        if self.git.is_ancestor(remote_branch, self.config.remote_main):
            return VerificationOutcome(CHECK_BRANCH_INTEGRATION, True, "通常 merge 済み")

        try:
            lines = self.git.cherry(self.config.remote_main, remote_branch)
        except RuntimeError as e:
            return VerificationOutcome(
                CHECK_BRANCH_INTEGRATION, False, f"git cherry に失敗しました: {e}"
            )

        remaining = count_unapplied_patches(lines)
        self.ui.info(f"git cherry '+' の残り: {remaining}")
        if remaining > 0:
            return VerificationOutcome(
                CHECK_BRANCH_INTEGRATION,
                False,
                f"'{branch}' のパッチが {self.config.remote_main} にありません（PR 未 merge？）",
            )
        return VerificationOutcome(CHECK_BRANCH_INTEGRATION, True, "squash/rebase で取り込み済み")
