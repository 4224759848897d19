"""logging 初期化のテスト。"""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from gitwizard import logging_setup
from gitwizard.logging_setup import current_log_path, setup_logging


@pytest.fixture()
def fresh_logging() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    before = logging_setup._handler
    logging_setup._handler = None
    yield
    if logging_setup._handler is not None:
        root.removeHandler(logging_setup._handler)
        logging_setup._handler.close()
    logging_setup._handler = before
    root.setLevel(level)


def _our_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h is logging_setup._handler]


def test_writes_resolved_path_to_log(tmp_path: Path, fresh_logging: None) -> None:
    path = setup_logging(log_dir=tmp_path / "logs", level="debug")

    assert path == (tmp_path / "logs" / "gitwizard.log").resolve()
    assert current_log_path() == path
    assert logging.getLogger().level == logging.DEBUG
    logging_setup._handler.flush()
    assert f"logging to {path}" in path.read_text(encoding="utf-8")


def test_same_dir_only_updates_level(tmp_path: Path, fresh_logging: None) -> None:
    setup_logging(log_dir=tmp_path, level="INFO")
    first = logging_setup._handler
    setup_logging(log_dir=tmp_path, level="WARNING")

    assert logging_setup._handler is first
    assert logging.getLogger().level == logging.WARNING
    assert len(_our_handlers()) == 1


def test_other_dir_replaces_handler(tmp_path: Path, fresh_logging: None) -> None:
    setup_logging(log_dir=tmp_path / "a")
    first = logging_setup._handler
    path = setup_logging(log_dir=tmp_path / "b")

    assert first not in logging.getLogger().handlers
    assert current_log_path() == path
    assert path.parent == (tmp_path / "b").resolve()
    assert len(_our_handlers()) == 1
