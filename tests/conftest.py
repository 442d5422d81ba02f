"""テスト共通フィクスチャ"""

from collections.abc import Callable

import pytest

from press_tracker.config import Settings
from press_tracker.models import (
    HOLE_COUNT,
    GameFormat,
    Hole,
    HoleScore,
    Match,
    Team,
)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """テスト用の設定(保存先は一時ディレクトリ)"""
    return Settings(storage_path=tmp_path / "matches.json")


@pytest.fixture
def make_match() -> Callable[..., Match]:
    """IDを固定したマッチを作るファクトリ"""

    def _make(
        team_count: int = 2,
        play_format: str = "match",
        formats: tuple[str, ...] = ("front", "back", "total"),
        enable_presses: bool = True,
    ) -> Match:
        teams = [
            Team(id=f"t{i + 1}", name=name)
            for i, name in enumerate(["Eagles", "Hawks", "Owls"][:team_count])
        ]
        holes = [
            Hole(number=i + 1, scores=[HoleScore(team_id=t.id) for t in teams])
            for i in range(HOLE_COUNT)
        ]
        return Match(
            id="m1",
            title="Saturday Game",
            teams=teams,
            holes=holes,
            game_formats=[
                GameFormat(type=f, bet_amount=amount)
                for f, amount in zip(formats, (5.0, 10.0, 20.0))
            ],
            play_format=play_format,
            enable_presses=enable_presses,
            created_at="2026-10-18T09:00:00",
        )

    return _make


@pytest.fixture
def play_holes() -> Callable[[Match, dict[int, tuple[int, ...]]], Match]:
    """ホール番号(1始まり)ごとの打数をマッチに書き込むファクトリ"""

    def _play(match: Match, scores: dict[int, tuple[int, ...]]) -> Match:
        for number, strokes in scores.items():
            hole = match.holes[number - 1]
            hole.scores = [
                HoleScore(team_id=team.id, score=score)
                for team, score in zip(match.teams, strokes)
            ]
            hole.is_complete = all(s is not None for s in strokes) and len(strokes) == len(
                match.teams
            )
            for team, score in zip(match.teams, strokes):
                team.scores[number - 1] = score
        return match

    return _play
