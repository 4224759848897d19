"""ブランチ名の正規化と検証。

- 正規化: 紛れ込んだ CR（\\r）を全部消してから前後の空白を落とす
- 検証: git の参照名文法（`git check-ref-format --branch`）に任せる。
  ここで文法を再実装しない
"""

from __future__ import annotations

from dataclasses import dataclass

from gitwizard.ui import Ui
from gitwizard.vcs import VersionControlClient

# 表示用の注意書き。大文字は git の文法上は許されるので検証には使わない
NAMING_HINT = "注意: 空白・大文字・先頭/末尾の '/'・'..'・'.lock' 接尾辞は避けてください。"


@dataclass(frozen=True)
class BranchName:
    raw: str
    normalized: str
    valid: bool
    diagnostic: str = ""


def normalize_branch_name(raw: str) -> str:
    return raw.replace("\r", "").strip()


def validate_branch_name(git: VersionControlClient, raw: str) -> BranchName:
    normalized = normalize_branch_name(raw)
    if not normalized:
        return BranchName(raw=raw, normalized="", valid=False, diagnostic="empty")
    ok, diagnostic = git.check_ref_format(normalized)
    return BranchName(raw=raw, normalized=normalized, valid=ok, diagnostic=diagnostic)


def ask_branch_name(
    ui: Ui,
    git: VersionControlClient,
    message: str,
    *,
    show_hint: bool = True,
) -> str:
    """空でなく妥当な名前が入力されるまで聞き直す。空はデフォルト補完しない。"""
    while True:
        name = validate_branch_name(git, ui.ask(message))
        if not name.normalized:
            ui.error("入力が空です。もう一度入力してください。")
            continue
        if name.valid:
            return name.normalized
        ui.error(f"不正なブランチ名: '{name.normalized}'")
        if name.diagnostic:
            ui.warn(name.diagnostic)
        if show_hint:
            ui.warn(NAMING_HINT)
