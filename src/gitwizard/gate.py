"""CommandGate: 変更を伴うコマンドは必ずここを通す。

1. コマンド文字列をそのまま表示
2. 実行してよいか確認（デフォルトは呼び出し側で指定）
3. 承認されたら子プロセスで実行し、終了コードを表示してそのまま返す

- 断られた場合は何もせず 0 を返す（呼び出し側は「スキップ」として扱う）
- 非ゼロ終了でも例外にしない。致命的かどうかは呼び出し側が決める
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from gitwizard.ui import Ui

log = logging.getLogger(__name__)

CONFIRM_EXECUTE = "このコマンドを実行しますか？"

Runner = Callable[[list[str]], int]


def subprocess_runner(argv: list[str]) -> int:
    """親の環境・標準入出力を引き継いで実行する。"""
    try:
        proc = subprocess.run(argv, check=False)
    except FileNotFoundError:
        log.error("executable not found: %s", argv[0])
        return 127
    return proc.returncode


@dataclass
class ProposedCommand:
    argv: list[str]
    approved: bool = False
    exit_code: int | None = None

    @property
    def text(self) -> str:
        return shlex.join(self.argv)


class CommandGate:
    def __init__(self, ui: Ui, runner: Runner = subprocess_runner) -> None:
        self.ui = ui
        self.runner = runner
        self.history: list[ProposedCommand] = []

    def execute(self, argv: Sequence[str], *, default: bool = True) -> int:
        cmd = ProposedCommand(argv=list(argv))
        self.history.append(cmd)

        self.ui.command(cmd.text)
        if not self.ui.confirm(CONFIRM_EXECUTE, default=default):
            log.info("command skipped: %s", cmd.text)
            self.ui.warn("コマンドをスキップしました。")
            return 0

        cmd.approved = True
        log.info("command approved: %s", cmd.text)
        cmd.exit_code = self.runner(cmd.argv)
        log.info("command exit=%s: %s", cmd.exit_code, cmd.text)
        self.ui.info(f"終了コード: {cmd.exit_code}")
        return cmd.exit_code

    def executed(self) -> list[ProposedCommand]:
        """承認されて実際に走ったコマンドだけ。"""
        return [c for c in self.history if c.approved]
