"""保存処理モジュール

マッチ一覧を1つのJSONファイルにまとめて保存・読み込みする。
マッチは常に丸ごと読み書きし、部分更新は行わない。
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from .config import Settings
from .models import Match
from .presses import PressTrackerError

logger = logging.getLogger(__name__)


class MatchNotFoundError(PressTrackerError):
    """指定IDのマッチが見つからない場合の例外"""

    pass


class MatchStore:
    """JSONファイルを使ったマッチ保存クラス

    ファイルは ``{collection_key: [match, ...]}`` の形で保存する。
    読み込み失敗は「データなし」、書き込み失敗はログに残して False を返す。
    """

    def __init__(self, path: Path, collection_key: str = "golf_match_tracker_matches"):
        """初期化

        Args:
            path: 保存先JSONファイルのパス
            collection_key: マッチ一覧を格納するキー
        """
        self.path = path
        self.collection_key = collection_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "MatchStore":
        """設定から保存クラスを作成する"""
        return cls(settings.storage_path, settings.storage_key)

    def _read_raw(self) -> dict:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"保存ファイルの形式が不正です: {self.path}")
        return data

    def _write_raw(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def load_all(self) -> list[Match]:
        """保存済みの全マッチを読み込む

        Returns:
            list[Match]: マッチ一覧(ファイルが無い・読み込めない場合は空)
        """
        try:
            items = self._read_raw().get(self.collection_key, [])
            matches = [Match.model_validate(item) for item in items]
        except (OSError, ValueError, ValidationError) as e:
            logger.error("マッチの読み込みに失敗しました: %s (%s)", self.path, e)
            return []

        logger.debug("マッチを読み込みました: %s (%d件)", self.path, len(matches))
        return matches

    def save_all(self, matches: list[Match]) -> bool:
        """マッチ一覧を丸ごと置き換えて保存する

        Args:
            matches: 保存するマッチ一覧

        Returns:
            bool: 保存できた場合True
        """
        try:
            try:
                data = self._read_raw()
            except ValueError:
                data = {}
            data[self.collection_key] = [match.to_dict() for match in matches]
            self._write_raw(data)
        except OSError as e:
            logger.error("マッチの保存に失敗しました: %s (%s)", self.path, e)
            return False

        logger.info("マッチを保存しました: %s (%d件)", self.path, len(matches))
        return True

    def get_by_id(self, match_id: str) -> Match | None:
        """IDでマッチを取得する"""
        return next((m for m in self.load_all() if m.id == match_id), None)

    def require(self, match_id: str) -> Match:
        """IDでマッチを取得する(見つからない場合は例外)

        Raises:
            MatchNotFoundError: マッチが存在しない場合
        """
        match = self.get_by_id(match_id)
        if match is None:
            raise MatchNotFoundError(f"マッチが見つかりません: {match_id}")
        return match

    def save_match(self, match: Match) -> bool:
        """マッチを追加または上書き保存する

        Args:
            match: 保存するマッチ

        Returns:
            bool: 保存できた場合True
        """
        matches = self.load_all()
        for index, current in enumerate(matches):
            if current.id == match.id:
                matches[index] = match
                break
        else:
            matches.append(match)
        return self.save_all(matches)

    def delete_match(self, match_id: str) -> bool:
        """マッチを削除する"""
        matches = self.load_all()
        remaining = [m for m in matches if m.id != match_id]
        if len(remaining) == len(matches):
            logger.warning("削除対象のマッチが見つかりません: %s", match_id)
        return self.save_all(remaining)

    def clear_all(self) -> bool:
        """保存済みのマッチをすべて削除する"""
        try:
            data = self._read_raw()
            data.pop(self.collection_key, None)
            self._write_raw(data)
        except (OSError, ValueError) as e:
            logger.error("マッチの全削除に失敗しました: %s (%s)", self.path, e)
            return False

        logger.info("マッチをすべて削除しました: %s", self.path)
        return True
