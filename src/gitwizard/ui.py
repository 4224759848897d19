"""対話 UI。

ウィザードの各段階は Ui を受け取って表示・確認・入力を行う。
本番は RichUi（rich で表示、typer で入力）、テストは台本どおりに答える ScriptedUi。
"""

from __future__ import annotations

from typing import Protocol

import typer
from rich.console import Console


class Ui(Protocol):
    def section(self, title: str) -> None: ...

    def info(self, line: str) -> None: ...

    def warn(self, line: str) -> None: ...

    def error(self, line: str) -> None: ...

    def command(self, text: str) -> None:
        """提案コマンドをそのまま表示する。"""
        ...

    def confirm(self, message: str, *, default: bool = True) -> bool: ...

    def ask(self, message: str, *, default: str = "") -> str: ...


class RichUi:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def _print(self, text: str, style: str | None = None) -> None:
        # git の出力やブランチ名に [..] が含まれても markup として解釈させない
        self.console.print(text, style=style, markup=False, highlight=False, soft_wrap=True)

    def section(self, title: str) -> None:
        self.console.print()
        self._print(title, style="bold")

    def info(self, line: str) -> None:
        self._print(line)

    def warn(self, line: str) -> None:
        self._print(line, style="yellow")

    def error(self, line: str) -> None:
        self._print(line, style="red")

    def command(self, text: str) -> None:
        self._print("\n------------------------------", style="dim")
        self._print("提案コマンド:", style="bold")
        self._print(text, style="cyan")
        self._print("------------------------------", style="dim")

    def confirm(self, message: str, *, default: bool = True) -> bool:
        return typer.confirm(message, default=default)

    def ask(self, message: str, *, default: str = "") -> str:
        return str(typer.prompt(message, default=default, show_default=False))
