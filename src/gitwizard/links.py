"""PR 比較リンクと CNAME の案内（表示用の補助）。"""

from __future__ import annotations

import re
from pathlib import Path

_HTTPS_REMOTE = re.compile(
    r"^https://(?:[^/@]+@)?(?P<host>[^/@]+)/(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?$"
)


def compare_url(remote_url: str, branch: str, *, main_branch: str = "main") -> str | None:
    """`https://<host>/<owner>/<repo>[.git]` 形式のときだけ compare URL を返す。
    URL に埋め込まれた認証情報（user:token@）はリンクに含めない。

    >>> compare_url("https://github.com/acme/widgets.git", "feature/x")
    'https://github.com/acme/widgets/compare/main...feature/x?expand=1'
    """
    m = _HTTPS_REMOTE.match(remote_url.strip())
    if m is None:
        return None
    return (
        f"https://{m['host']}/{m['owner']}/{m['repo']}"
        f"/compare/{main_branch}...{branch}?expand=1"
    )


def cname_notice(root: Path) -> tuple[bool, str]:
    path = root / "CNAME"
    if path.is_file():
        try:
            content = path.read_text(encoding="utf-8").strip()
        except OSError:
            content = ""
        return True, f"ルートに CNAME があります: {content}"
    return False, "⚠️ ルートに CNAME がありません。独自ドメインを使うなら作成してください。"
