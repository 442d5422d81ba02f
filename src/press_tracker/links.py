"""ディープリンク処理モジュール

アプリのスキームまたは登録済みホストのURLかを判定し、マッチIDを取り出す。
不正なURLは例外にせず「対象外」として扱う。
"""

import logging
import re
from urllib.parse import urlparse

from .config import Settings

logger = logging.getLogger(__name__)


def _path_matches(path: str, patterns: list[str]) -> bool:
    for pattern in patterns:
        regex = re.escape(pattern).replace(r"\*", ".*")
        if re.fullmatch(regex, path):
            return True
    return False


def matches_deep_link(url: str, settings: Settings) -> bool:
    """URLがアプリで扱うディープリンクかを判定する

    Args:
        url: 判定するURL
        settings: アプリケーション設定

    Returns:
        bool: 扱うURLの場合True

    Examples:
        >>> settings = Settings()
        >>> matches_deep_link("presstracker://match/abc", settings)
        True
        >>> matches_deep_link("https://example.com/match/abc", settings)
        False
    """
    if url.startswith(settings.deep_link_scheme):
        return True

    try:
        parsed = urlparse(url)
        host = parsed.hostname or ""
    except ValueError as e:
        logger.warning("URLを解析できません: %s (%s)", url, e)
        return False

    if not any(host == h or host.endswith(f".{h}") for h in settings.deep_link_hosts):
        return False
    if not settings.deep_link_paths:
        return True
    return _path_matches(parsed.path, settings.deep_link_paths)


def match_id_from_link(url: str, settings: Settings) -> str | None:
    """ディープリンクからマッチIDを取り出す

    ``presstracker://match/<id>`` や ``https://presstracker.app/match/<id>`` に対応する。

    Args:
        url: ディープリンク
        settings: アプリケーション設定

    Returns:
        str | None: マッチID(マッチへのリンクでない場合はNone)
    """
    if not matches_deep_link(url, settings):
        return None

    if url.startswith(settings.deep_link_scheme):
        path = url[len(settings.deep_link_scheme) :]
    else:
        path = urlparse(url).path
    path = path.split("?", 1)[0].split("#", 1)[0]

    segments = [segment for segment in path.split("/") if segment]
    if len(segments) >= 2 and segments[0] == "match":
        return segments[1]
    return None
