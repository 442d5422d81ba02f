"""データモデルモジュール

マッチ・チーム・ホール・プレスの型定義とバリデーションを提供する。
保存形式(JSON)のフィールド名はキャメルケースを維持し、
Python側の属性名はスネークケースで扱う。
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

HOLE_COUNT = 18

PressType = Literal["front9", "back9", "total18"]
FormatType = Literal["front", "back", "total"]
PlayFormat = Literal["match", "stroke"]
PressStatus = Literal["pending", "leading", "decided"]

# プレス種別ごとの対象ホール範囲(0始まり、両端を含む)
SEGMENT_RANGES: dict[str, tuple[int, int]] = {
    "front9": (0, 8),
    "back9": (9, 17),
    "total18": (0, 17),
}

# ゲーム形式とプレス種別の対応
FORMAT_TO_PRESS_TYPE: dict[str, str] = {
    "front": "front9",
    "back": "back9",
    "total": "total18",
}
PRESS_TYPE_TO_FORMAT: dict[str, str] = {
    press_type: format_type for format_type, press_type in FORMAT_TO_PRESS_TYPE.items()
}

# 表示用ラベル
PRESS_TYPE_LABELS: dict[str, str] = {
    "front9": "Front 9",
    "back9": "Back 9",
    "total18": "Total 18",
}
ORIGINAL_BET_LABEL = "Original Bet"
PRESS_LABEL = "Press"


def normalize_press_type(value: str) -> str:
    """プレス種別を正規の表記(front9/back9/total18)に変換する

    "front" や "Front 9" などの別表記もここで吸収する。
    プレス種別を受け取る箇所はすべてこの関数を通すこと。

    Args:
        value: 入力されたプレス種別

    Returns:
        str: 正規化されたプレス種別

    Raises:
        ValueError: 既知の種別に当てはまらない場合

    Examples:
        >>> normalize_press_type("front")
        'front9'
        >>> normalize_press_type("back9")
        'back9'
    """
    key = str(value).strip().lower()
    for format_type, press_type in FORMAT_TO_PRESS_TYPE.items():
        if format_type in key:
            return press_type
    raise ValueError(f"不明なプレス種別です: {value!r}")


def segment_range(press_type: str) -> tuple[int, int]:
    """プレス種別の対象ホール範囲を返す

    Args:
        press_type: プレス種別

    Returns:
        tuple[int, int]: (開始ホールindex, 終了ホールindex)
    """
    return SEGMENT_RANGES[normalize_press_type(press_type)]


class RecordModel(BaseModel):
    """保存レコード共通の設定を持つ基底モデル"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_dict(self) -> dict:
        """辞書形式に変換(JSON出力用)

        Returns:
            dict: キャメルケースのキーを持つ辞書表現
        """
        return self.model_dump(by_alias=True, mode="json")


class Team(RecordModel):
    """チーム"""

    id: str = Field(..., description="チームID")
    name: str = Field(..., min_length=1, description="チーム名")
    color: str = Field(default="#CCCCCC", description="表示色")
    initial: str = Field(default="", description="頭文字")
    scores: list[int | None] = Field(
        default_factory=lambda: [None] * HOLE_COUNT,
        description="各ホールの打数(未入力はNone)",
    )

    @field_validator("scores")
    @classmethod
    def _check_scores_length(cls, value: list[int | None]) -> list[int | None]:
        if len(value) != HOLE_COUNT:
            raise ValueError(f"scoresは{HOLE_COUNT}ホール分必要です: {len(value)}")
        return value

    @model_validator(mode="after")
    def _fill_initial(self) -> "Team":
        if not self.initial:
            self.initial = self.name[0].upper()
        return self


class HoleScore(RecordModel):
    """1ホール・1チーム分の打数"""

    team_id: str
    score: int | None = None


class Hole(RecordModel):
    """ホール"""

    number: int = Field(..., ge=1, le=HOLE_COUNT, description="ホール番号(1始まり)")
    scores: list[HoleScore] = Field(default_factory=list)
    is_complete: bool = False

    def score_for(self, team_id: str) -> int | None:
        """指定チームの打数を返す(未入力・該当なしはNone)"""
        for entry in self.scores:
            if entry.team_id == team_id:
                return entry.score
        return None


class GameFormat(RecordModel):
    """ゲーム形式(フロント9/バック9/トータル18)と基本賭け金"""

    type: FormatType
    bet_amount: float = Field(default=0.0, ge=0)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        return PRESS_TYPE_TO_FORMAT[normalize_press_type(value)]


class Press(RecordModel):
    """プレス(元の賭け、またはプレイヤーが途中で掛けた倍賭け)"""

    id: str
    from_team_id: str = Field(..., description="プレスを掛けるチーム")
    to_team_id: str = Field(..., description="プレスを掛けられるチーム")
    hole_index: int = Field(..., ge=0, lt=HOLE_COUNT, description="開始ホール(0始まり)")
    press_type: PressType
    is_original_bet: bool | None = Field(
        default=None,
        description="作成時の記録用。判定には presses.is_original_bet() を使う",
    )

    @field_validator("press_type", mode="before")
    @classmethod
    def _normalize_press_type(cls, value: str) -> str:
        return normalize_press_type(value)

    @model_validator(mode="after")
    def _check_press(self) -> "Press":
        if self.from_team_id == self.to_team_id:
            raise ValueError("プレスを掛けるチームと掛けられるチームが同じです")
        start, end = SEGMENT_RANGES[self.press_type]
        if not start <= self.hole_index <= end:
            raise ValueError(
                f"{self.press_type}のプレスはホールindex {start}〜{end} の範囲で"
                f"開始する必要があります: {self.hole_index}"
            )
        return self


class Match(RecordModel):
    """マッチ(チーム・ホール・ゲーム形式・プレスを保持する集約)"""

    id: str
    title: str
    teams: list[Team] = Field(..., min_length=2, max_length=3)
    holes: list[Hole]
    game_formats: list[GameFormat] = Field(..., min_length=1, max_length=3)
    presses: list[Press] = Field(default_factory=list)
    play_format: PlayFormat = "match"
    enable_presses: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    is_complete: bool = Field(default=False, description="ユーザー操作で付ける完了フラグ")

    @model_validator(mode="after")
    def _check_match(self) -> "Match":
        team_ids = [team.id for team in self.teams]
        if len(set(team_ids)) != len(team_ids):
            raise ValueError("チームIDが重複しています")
        if len(self.holes) != HOLE_COUNT:
            raise ValueError(f"holesは{HOLE_COUNT}ホール分必要です: {len(self.holes)}")
        if sorted(hole.number for hole in self.holes) != list(range(1, HOLE_COUNT + 1)):
            raise ValueError(f"ホール番号は1〜{HOLE_COUNT}を1つずつ持つ必要があります")
        return self

    def team_by_id(self, team_id: str) -> Team | None:
        """IDでチームを探す"""
        return next((team for team in self.teams if team.id == team_id), None)


class MatchPlayResult(RecordModel):
    """マッチプレー集計結果"""

    team1_wins: int = 0
    team2_wins: int = 0
    halved_holes: int = 0
    completed_holes: int = 0
    holes_remaining: int = 0
    is_match_over: bool = False
    status: str = "All Square"
    is_valid: bool = True
    leader_id: str | None = None


class TeamStrokeResult(RecordModel):
    """ストロークプレーのチーム別集計"""

    team_id: str
    team_name: str
    total_score: int = 0
    completed_holes: int = 0
    average: float = 0.0


class StrokePlayResult(RecordModel):
    """ストロークプレー集計結果"""

    teams: list[TeamStrokeResult] = Field(default_factory=list)
    team_leading: str | None = None
    leading_by: int | None = None
    status: str = "Scores not available"
    is_complete: bool = False


class PressWithResults(RecordModel):
    """精算状態付きのプレス(表示側はこれだけを参照する)"""

    id: str
    from_team_id: str
    from_team_name: str
    from_team_color: str
    to_team_id: str
    to_team_name: str
    to_team_color: str
    hole_index: int
    hole_number: int
    press_type: PressType
    is_original_bet: bool
    type_label: str = Field(..., description="種別の表示名(Front 9など)")
    kind_label: str = Field(..., description="Original Bet または Press")
    amount: float
    status: PressStatus
    status_text: str
    winner: str | None = None
    completed_holes: int = 0
    holes_remaining: int = 0


class TeamRunningTotal(RecordModel):
    """スコアカード用のチーム別打数合計(未入力ホールは数えない)"""

    team_id: str
    team_name: str
    front9: int = 0
    back9: int = 0
    total18: int = 0
    holes_played: int = 0


class GroupedPresses(RecordModel):
    """プレス種別ごとにまとめた精算結果"""

    front9: list[PressWithResults] = Field(default_factory=list)
    back9: list[PressWithResults] = Field(default_factory=list)
    total18: list[PressWithResults] = Field(default_factory=list)

    def all(self) -> list[PressWithResults]:
        """全種別のプレスを表示順で返す"""
        return [*self.front9, *self.back9, *self.total18]


class PressOffer(RecordModel):
    """ホール完了時にユーザーへ提示するプレス判断の情報"""

    hole_index: int
    game_type: PressType
    status_message: str
    holes_remaining: int = Field(default=0, description="区間内の残りホール数")
