"""ウィザードの設定。

設定ファイル: `gitwizard.toml`（カレントディレクトリ、任意）

```toml
[repo]
main_branch = "main"
remote = "origin"

[messages]
commit_default = "update"
wip_commit_default = "chore: WIP"
stash = "wizard: WIP"

[logging]
level = "INFO"
dir = "~/.gitwizard/logs"
```

ファイルが無ければ全てデフォルト。ログは作業ツリーを汚さないよう
リポジトリの外（ホーム配下）に書く。
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_CONFIG_FILE = "gitwizard.toml"


@dataclass
class MessageDefaults:
    commit_default: str = "update"
    wip_commit_default: str = "chore: WIP"
    stash: str = "wizard: WIP"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    dir: Path = field(default_factory=lambda: Path.home() / ".gitwizard" / "logs")


@dataclass
class WizardConfig:
    main_branch: str = "main"
    remote: str = "origin"
    messages: MessageDefaults = field(default_factory=MessageDefaults)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def remote_main(self) -> str:
        return f"{self.remote}/{self.main_branch}"


def _non_empty(value: object, default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text or default


def load_config(path: Path | None = None) -> WizardConfig:
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
    if not path.exists():
        return WizardConfig()

    raw = tomllib.loads(path.read_text(encoding="utf-8"))

    repo = raw.get("repo", {})
    messages = raw.get("messages", {})
    log = raw.get("logging", {})

    defaults = WizardConfig()
    log_dir = log.get("dir")

    return WizardConfig(
        main_branch=_non_empty(repo.get("main_branch"), defaults.main_branch),
        remote=_non_empty(repo.get("remote"), defaults.remote),
        messages=MessageDefaults(
            commit_default=_non_empty(
                messages.get("commit_default"), defaults.messages.commit_default
            ),
            wip_commit_default=_non_empty(
                messages.get("wip_commit_default"), defaults.messages.wip_commit_default
            ),
            stash=_non_empty(messages.get("stash"), defaults.messages.stash),
        ),
        logging=LoggingConfig(
            level=_non_empty(log.get("level"), defaults.logging.level).upper(),
            dir=Path(str(log_dir)).expanduser() if log_dir else defaults.logging.dir,
        ),
    )
