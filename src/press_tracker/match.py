"""マッチ集約モジュール

マッチの作成、スコア入力、ホール完了時のプレス判断(状態遷移)をまとめる。
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from enum import Enum

from .config import Settings, get_settings
from .models import (
    HOLE_COUNT,
    GameFormat,
    GroupedPresses,
    Hole,
    HoleScore,
    Match,
    Press,
    PressOffer,
    Team,
)
from .presses import (
    PressTrackerError,
    UnknownTeamError,
    add_press,
    create_original_bets,
    ensure_pressable,
    generate_id,
    settle_presses,
)
from .scoring import (
    evaluate_match_play,
    evaluate_stroke_play,
    holes_in_range,
    is_hole_complete,
    parse_score,
)
from .storage import MatchStore

logger = logging.getLogger(__name__)

FRONT_NINE_LAST = 8


class MatchSetupError(PressTrackerError):
    """マッチ作成時の入力が不正な場合の例外"""

    pass


class SessionStateError(PressTrackerError):
    """現在の状態では受け付けられない操作をした場合の例外"""

    pass


class HoleState(Enum):
    """スコア入力画面から見たホールの状態"""

    UNSCORED = "unscored"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


class SessionPhase(Enum):
    """スコア入力セッションの段階"""

    SCORING = "scoring"
    PRESS_DECISION = "press_decision"
    FINISHED = "finished"


def create_match(
    team_names: Sequence[str],
    game_formats: Iterable[GameFormat | Mapping],
    *,
    title: str = "",
    play_format: str = "match",
    enable_presses: bool = True,
    settings: Settings | None = None,
) -> Match:
    """新しいマッチを作成する

    チームに色と頭文字を割り当て、18ホール分の空スコアと
    有効なゲーム形式ごとのオリジナルベットを用意する。

    Args:
        team_names: チーム名(2〜3チーム。空欄は "Team N" になる)
        game_formats: 有効にするゲーム形式
        title: マッチ名(省略時は日付から生成)
        play_format: "match" または "stroke"
        enable_presses: プレスを有効にする場合True
        settings: アプリケーション設定

    Returns:
        Match: 作成したマッチ

    Raises:
        MatchSetupError: チーム数・チーム名・ゲーム形式が不正な場合
    """
    settings = settings or get_settings()

    if not 2 <= len(team_names) <= 3:
        raise MatchSetupError(f"チーム数は2または3です: {len(team_names)}")

    names = [name.strip() or f"Team {i + 1}" for i, name in enumerate(team_names)]
    if len(set(names)) != len(names):
        raise MatchSetupError("チーム名が重複しています")

    formats = [GameFormat.model_validate(f) for f in game_formats]
    if not formats:
        raise MatchSetupError("ゲーム形式を1つ以上選択してください")
    if len({f.type for f in formats}) != len(formats):
        raise MatchSetupError("同じゲーム形式が重複しています")

    colors = settings.team_colors
    teams = [
        Team(id=generate_id(), name=name, color=colors[i % len(colors)])
        for i, name in enumerate(names)
    ]
    holes = [
        Hole(number=i + 1, scores=[HoleScore(team_id=team.id) for team in teams])
        for i in range(HOLE_COUNT)
    ]
    created_at = datetime.now()

    match = Match(
        id=generate_id(),
        title=title or f"Match {created_at:%Y-%m-%d}",
        teams=teams,
        holes=holes,
        game_formats=formats,
        play_format=play_format,
        enable_presses=enable_presses,
        created_at=created_at,
    )
    match.presses = create_original_bets(match)

    logger.info(
        "マッチを作成しました: %s (%dチーム, オリジナルベット%d件)",
        match.id,
        len(teams),
        len(match.presses),
    )
    return match


def _hole_at(match: Match, hole_index: int) -> Hole:
    if not 0 <= hole_index < HOLE_COUNT:
        raise ValueError(f"ホールindexが範囲外です: {hole_index}")
    hole = next((hole for hole in match.holes if hole.number == hole_index + 1), None)
    if hole is None:
        raise ValueError(f"ホール{hole_index + 1}が見つかりません")
    return hole


def record_hole_scores(
    match: Match,
    hole_index: int,
    entries: Mapping[str, str | int | None],
) -> Hole:
    """1ホール分の入力スコアをマッチに反映する

    entries に含まれないチームは既存の打数をそのまま残す。

    Args:
        match: 対象マッチ(holes と teams.scores が更新される)
        hole_index: ホールindex(0始まり)
        entries: チームIDごとの入力値(文字列のまま渡してよい)

    Returns:
        Hole: 更新後のホール

    Raises:
        UnknownTeamError: マッチに存在しないチームIDが含まれる場合
        ValueError: ホールindexが範囲外、または該当ホールが無い場合
    """
    unknown = [team_id for team_id in entries if match.team_by_id(team_id) is None]
    if unknown:
        raise UnknownTeamError(f"マッチ {match.id} に存在しないチームです: {unknown}")

    hole = _hole_at(match, hole_index)
    parsed = {
        team.id: parse_score(entries[team.id]) if team.id in entries else hole.score_for(team.id)
        for team in match.teams
    }

    hole.scores = [HoleScore(team_id=team_id, score=score) for team_id, score in parsed.items()]
    for team in match.teams:
        team.scores[hole_index] = parsed[team.id]
    hole.is_complete = is_hole_complete(hole, match.teams)

    logger.debug("ホール%dのスコアを記録しました: %s", hole.number, parsed)
    return hole


def running_status(match: Match, hole_index: int) -> PressOffer | None:
    """現在の区間(前半/後半)の途中経過を team1 の視点で返す

    Args:
        match: 対象マッチ
        hole_index: 直前に完了したホールのindex

    Returns:
        PressOffer | None: 途中経過。2チームでない場合はNone
    """
    if len(match.teams) != 2:
        return None

    team1, team2 = match.teams
    on_front_nine = hole_index <= FRONT_NINE_LAST
    start = 0 if on_front_nine else FRONT_NINE_LAST + 1
    end = FRONT_NINE_LAST if on_front_nine else HOLE_COUNT - 1
    game_type = "front9" if on_front_nine else "back9"
    relevant = [h for h in holes_in_range(match.holes, start, hole_index) if h.is_complete]

    if match.play_format == "match":
        result = evaluate_match_play(match.teams, relevant, range_size=end - start + 1)
        remaining = result.holes_remaining
        margin = result.team1_wins - result.team2_wins
        if margin > 0:
            message = f"{team1.name} is {margin} UP"
        elif margin < 0:
            message = f"{team1.name} is {-margin} DOWN"
        else:
            message = "Match is tied (All Square)"
    else:
        result = evaluate_stroke_play(match.teams, relevant)
        totals = {r.team_id: r.total_score for r in result.teams}
        remaining = end - start + 1 - min(r.completed_holes for r in result.teams)
        diff = totals[team1.id] - totals[team2.id]
        if diff < 0:
            message = f"{team1.name} is leading by {-diff} strokes"
        elif diff > 0:
            message = f"{team1.name} is trailing by {diff} strokes"
        else:
            message = "Match is tied"

    return PressOffer(
        hole_index=hole_index,
        game_type=game_type,
        status_message=message,
        holes_remaining=remaining,
    )


def first_incomplete_hole_index(match: Match) -> int | None:
    """最初の未完了ホールのindexを返す(全ホール完了ならNone)"""
    for hole in sorted(match.holes, key=lambda h: h.number):
        if not hole.is_complete:
            return hole.number - 1
    return None


def finish_match(match: Match) -> Match:
    """マッチを完了にする

    完了フラグはユーザー操作でのみ付ける。ホールの入力状況からは導出しない。
    """
    match.is_complete = True
    logger.info("マッチを完了にしました: %s", match.id)
    return match


def matches_by_state(matches: Iterable[Match]) -> tuple[list[Match], list[Match]]:
    """マッチを進行中と完了済みに分ける

    Returns:
        tuple[list[Match], list[Match]]: (進行中, 完了済み)
    """
    active: list[Match] = []
    completed: list[Match] = []
    for match in matches:
        (completed if match.is_complete else active).append(match)
    return active, completed


class ScoringSession:
    """ホールごとのスコア入力とプレス判断を管理するクラス

    現在のホールと保留中のプレス判断はこのクラスだけが持つ。
    ホールが完了すると、プレスが有効な2チームのマッチではプレス判断に進み、
    受諾・見送りのどちらでも次のホールへ進む。最終ホールの後は FINISHED で終了。
    """

    def __init__(
        self,
        match: Match,
        settings: Settings | None = None,
        store: MatchStore | None = None,
        hole_index: int = 0,
    ):
        """初期化

        Args:
            match: 対象マッチ
            settings: アプリケーション設定
            store: 変更のたびに保存する場合の保存先
            hole_index: 開始ホールのindex
        """
        if not 0 <= hole_index < HOLE_COUNT:
            raise ValueError(f"ホールindexが範囲外です: {hole_index}")
        self.match = match
        self.settings = settings or get_settings()
        self.store = store
        self._hole_index = hole_index
        self._phase = SessionPhase.SCORING
        self._pending_offer: PressOffer | None = None

    @classmethod
    def resume(
        cls,
        match: Match,
        settings: Settings | None = None,
        store: MatchStore | None = None,
    ) -> "ScoringSession":
        """最初の未完了ホールからセッションを再開する"""
        index = first_incomplete_hole_index(match)
        session = cls(match, settings, store, HOLE_COUNT - 1 if index is None else index)
        if index is None:
            session._phase = SessionPhase.FINISHED
        return session

    @property
    def current_hole_index(self) -> int:
        return self._hole_index

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def pending_offer(self) -> PressOffer | None:
        return self._pending_offer

    @property
    def presses_allowed(self) -> bool:
        """プレスを提示できるマッチかどうか"""
        return self.match.enable_presses and len(self.match.teams) == 2

    def hole_state(self, hole_index: int | None = None) -> HoleState:
        """ホールの入力状態を返す(省略時は現在のホール)"""
        index = self._hole_index if hole_index is None else hole_index
        hole = _hole_at(self.match, index)
        if hole.is_complete:
            return HoleState.COMPLETE
        if all(entry.score is None for entry in hole.scores):
            return HoleState.UNSCORED
        return HoleState.INCOMPLETE

    def _require_phase(self, phase: SessionPhase) -> None:
        if self._phase is not phase:
            raise SessionStateError(
                f"{phase.value} の状態ではありません(現在: {self._phase.value})"
            )

    def _save(self) -> None:
        if self.store is not None:
            self.store.save_match(self.match)

    def _advance(self) -> None:
        self._pending_offer = None
        if self._hole_index < HOLE_COUNT - 1:
            self._hole_index += 1
            self._phase = SessionPhase.SCORING
        else:
            self._phase = SessionPhase.FINISHED
            logger.info("最終ホールまで入力しました: %s", self.match.id)

    def go_to_hole(self, hole_index: int) -> None:
        """入力するホールを移動する"""
        self._require_phase(SessionPhase.SCORING)
        _hole_at(self.match, hole_index)
        self._hole_index = hole_index

    def enter_scores(self, entries: Mapping[str, str | int | None]) -> HoleState:
        """現在のホールのスコアを入力する

        Args:
            entries: チームIDごとの入力値

        Returns:
            HoleState: 入力後のホールの状態
        """
        self._require_phase(SessionPhase.SCORING)
        record_hole_scores(self.match, self._hole_index, entries)
        self._save()

        state = self.hole_state()
        if state is not HoleState.COMPLETE:
            return state

        if self.presses_allowed:
            self._pending_offer = running_status(self.match, self._hole_index)
            self._phase = SessionPhase.PRESS_DECISION
        else:
            self._advance()
        return state

    def accept_press(
        self,
        from_team_id: str,
        to_team_id: str,
        press_type: str | None = None,
    ) -> Press:
        """プレスを受け付けて次のホールへ進む

        Args:
            from_team_id: プレスを掛けるチーム
            to_team_id: プレスを掛けられるチーム
            press_type: プレス種別(省略時は現在の区間)

        Returns:
            Press: 作成したプレス

        Raises:
            PressNotAllowedError: プレスを扱えないマッチの場合
            SessionStateError: プレス判断中でない場合
        """
        ensure_pressable(self.match)
        self._require_phase(SessionPhase.PRESS_DECISION)

        press = add_press(
            self.match,
            {
                "fromTeamId": from_team_id,
                "toTeamId": to_team_id,
                "holeIndex": self._hole_index,
                "pressType": press_type or self._pending_offer.game_type,
            },
        )
        self._save()
        self._advance()
        return press

    def decline_press(self) -> None:
        """プレスを見送って次のホールへ進む"""
        ensure_pressable(self.match)
        self._require_phase(SessionPhase.PRESS_DECISION)
        self._advance()

    def press_summary(self) -> GroupedPresses:
        """現在のプレス精算結果を返す"""
        return settle_presses(self.match, self.settings)
