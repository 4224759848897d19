"""gitwizard CLI エントリポイント。

`gitwizard` だけで対話ウィザードを起動する（引数なし、標準入出力のみ）。
`gitwizard verify` は最終検証だけをやり直す。

終了コード: 0 = 完了 / 一時停止、1 = 前提条件エラー・コマンド失敗・最終検証失敗
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console

from gitwizard.branch_name import validate_branch_name
from gitwizard.config import WizardConfig, load_config
from gitwizard.errors import FatalPrecondition, WizardError
from gitwizard.gate import CommandGate, Runner, subprocess_runner
from gitwizard.logging_setup import setup_logging
from gitwizard.preflight import PreflightChecker
from gitwizard.ui import RichUi
from gitwizard.vcs import GitClient, VersionControlClient
from gitwizard.verify import FinalVerifier
from gitwizard.workflow import WorkflowStateMachine

APP_HELP = "🧭 gitwizard: 自動 merge をしない、確認つきの feature ブランチ・ウィザード"

app = typer.Typer(add_completion=False, help=APP_HELP, invoke_without_command=True)
console = Console()
log = logging.getLogger(__name__)


@dataclass
class Session:
    config: WizardConfig
    ui: RichUi
    git: VersionControlClient
    gate: CommandGate


def build_session(
    config: WizardConfig,
    *,
    git: VersionControlClient | None = None,
    runner: Runner = subprocess_runner,
) -> Session:
    ui = RichUi(console)
    return Session(
        config=config,
        ui=ui,
        git=git or GitClient(),
        gate=CommandGate(ui, runner),
    )


def _fail(ui: RichUi, e: WizardError) -> None:
    ui.error(str(e))
    if isinstance(e, FatalPrecondition) and e.remediation:
        ui.info(f"対処: {e.remediation}")
    log.error("aborted: %s", e)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", help="設定ファイル（デフォルト: gitwizard.toml）"),
    log_level: str | None = typer.Option(None, "--log-level", help="ログレベル (DEBUG / INFO / ...)"),
) -> None:
    """対話ウィザードを起動する。"""
    cfg = load_config(config)
    if log_level:
        cfg.logging.level = log_level.upper()
    setup_logging(log_dir=cfg.logging.dir, level=cfg.logging.level)

    session = build_session(cfg)
    ctx.obj = session
    if ctx.invoked_subcommand is not None:
        return

    machine = WorkflowStateMachine(
        git=session.git, gate=session.gate, ui=session.ui, config=cfg
    )
    try:
        result = machine.run()
    except WizardError as e:
        _fail(session.ui, e)
        return

    log.info("wizard finished stage=%s exit=%s", result.stage, result.exit_code)
    raise typer.Exit(code=result.exit_code)


@app.command()
def verify(
    ctx: typer.Context,
    branch: str | None = typer.Option(None, "--branch", help="取り込み確認する作業ブランチ名"),
    fetch: bool = typer.Option(True, "--fetch/--no-fetch", help="検証前に fetch を提案する"),
) -> None:
    """最終検証だけを実行する。"""
    session: Session = ctx.obj
    preflight = PreflightChecker(session.git, session.gate, session.ui, session.config)
    try:
        preflight.ensure_repo_root()
        preflight.ensure_origin_remote()
    except WizardError as e:
        _fail(session.ui, e)
        return

    target: str | None = None
    if branch is not None:
        name = validate_branch_name(session.git, branch)
        if not name.valid:
            session.ui.error(f"❌ 不正なブランチ名: '{name.normalized}'")
            if name.diagnostic:
                session.ui.warn(name.diagnostic)
            log.error("verify: invalid branch name %r", branch)
            raise typer.Exit(code=1)
        target = name.normalized

    report = FinalVerifier(session.git, session.gate, session.ui, session.config).run(
        target, fetch=fetch
    )
    if not report.passed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
