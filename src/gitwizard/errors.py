"""ウィザードの例外。

- FatalPrecondition: 続行できない前提条件（リポジトリ無し / origin 無し / 未解決の merge・rebase / 汚れた作業ツリー）
- CommandFailure: 後続ステップが成功を前提にしているコマンドの失敗

ユーザーの「いいえ」は例外にしない（bool で返す）。
最終検証の失敗も例外ではなく VerificationReport で返す。
"""

from __future__ import annotations


class WizardError(Exception):
    """gitwizard の例外の基底。CLI が捕まえて exit 1 にする。"""


class FatalPrecondition(WizardError):
    def __init__(self, message: str, *, remediation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.remediation = remediation


class CommandFailure(WizardError):
    def __init__(self, command: str, exit_code: int) -> None:
        super().__init__(f"コマンドが失敗しました (exit {exit_code}): {command}")
        self.command = command
        self.exit_code = exit_code
