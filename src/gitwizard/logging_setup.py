"""logging の初期化。

- 詳細ログ: `~/.gitwizard/logs/gitwizard.log`（設定で変更可）
- 人間向けの表示は rich の Console（ui.RichUi）が担当

目的:
- どのコマンドが提案され、承認され、何を返したかを後から追えるようにする

ログは作業ツリーの外に置く（検証対象のリポジトリを汚さない）。
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "gitwizard.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_handler: RotatingFileHandler | None = None


def current_log_path() -> Path | None:
    if _handler is None:
        return None
    return Path(_handler.baseFilename)


def setup_logging(*, log_dir: Path, level: str = "INFO") -> Path:
    """root logger にファイルハンドラを1つだけ付ける。

    同じファイルならレベルだけ更新する。別のディレクトリを渡されたら
    古いハンドラを外して付け替える（1プロセスで複数回 CLI を呼ぶテスト向け）。
    """
    global _handler

    log_dir = log_dir.expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = (log_dir / LOG_FILE_NAME).resolve()
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    if _handler is not None and Path(_handler.baseFilename) == log_path:
        return log_path

    if _handler is not None:
        root_logger.removeHandler(_handler)
        _handler.close()

    handler = RotatingFileHandler(
        log_path,
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    root_logger.addHandler(handler)
    _handler = handler

    logging.getLogger(__name__).info("logging to %s (level=%s)", log_path, level.upper())
    return log_path
