"""設定管理モジュール

環境変数から設定を読み込み、アプリケーション全体で使用する設定を提供する。
設定は起動時に一度だけ生成し、以降は引数として各処理へ渡す。
"""

import logging
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """アプリケーション設定

    環境変数(PRESS_TRACKER_ 接頭辞)または.envファイルから設定を読み込む。
    """

    model_config = SettingsConfigDict(
        env_prefix="PRESS_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # 保存先
    storage_path: Path = Field(
        default=Path("data") / "matches.json",
        description="マッチ保存用JSONファイルのパス",
    )
    storage_key: str = Field(
        default="golf_match_tracker_matches",
        description="マッチ一覧を格納するコレクションキー",
    )

    # 賭け設定
    default_bet_amount: float = Field(
        default=10.0,
        description="対応するゲーム形式が無い場合の賭け金(設定ミスの目印)",
    )

    # チーム表示
    team_colors: list[str] = Field(
        default_factory=lambda: ["#007AFF", "#34AADC", "#5856D6"],
        description="チーム順に割り当てる表示色",
    )

    # ディープリンク
    deep_link_scheme: str = Field(
        default="presstracker://",
        description="ディープリンクのスキーム",
    )
    deep_link_hosts: list[str] = Field(
        default_factory=lambda: ["presstracker.app", "www.presstracker.app"],
        description="ユニバーサルリンクとして受け付けるホスト",
    )
    deep_link_paths: list[str] = Field(
        default_factory=lambda: ["/match/*", "/profile/*", "/settings", "/history"],
        description="受け付けるパス(* はワイルドカード)",
    )

    debug: bool = Field(
        default=False,
        description="デバッグモード(true: デバッグ情報出力)",
    )


def get_settings() -> Settings:
    """設定インスタンスを取得する

    Returns:
        Settings: アプリケーション設定
    """
    return Settings()


def setup_logging(debug: bool = False) -> None:
    """ロギングを設定する

    Args:
        debug: デバッグモードの場合True
    """
    level = logging.DEBUG if debug else logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
