"""スコア集計モジュール

ホールごとの打数からマッチプレー・ストロークプレーの状況を算出する。
どの関数も入力を変更せず、不完全なデータは「未完了」として扱い例外を出さない。
"""

import logging
import re
from collections.abc import Iterable, Sequence

from .models import (
    HOLE_COUNT,
    Hole,
    MatchPlayResult,
    SEGMENT_RANGES,
    Match,
    StrokePlayResult,
    Team,
    TeamRunningTotal,
    TeamStrokeResult,
)

logger = logging.getLogger(__name__)

INVALID_TEAMS_STATUS = "Invalid number of teams"
ALL_SQUARE = "All Square"
TIED = "tied"
SCORES_NOT_AVAILABLE = "Scores not available"


def parse_score(value: str | int | None) -> int | None:
    """入力されたスコアを打数に変換する

    ユーザー入力の文字列が打数になるのはここだけ。数字以外の文字は取り除く。

    Args:
        value: 入力値(文字列・数値・None)

    Returns:
        int | None: 打数(未入力または0の場合はNone)

    Examples:
        >>> parse_score("5")
        5
        >>> parse_score(" 1a2 ")
        12
        >>> parse_score("") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value if value > 0 else None

    digits = re.sub(r"\D", "", str(value))
    if not digits:
        return None
    score = int(digits)
    return score if score > 0 else None


def is_hole_complete(hole: Hole, teams: Iterable[Team]) -> bool:
    """全チームの打数が入力済みかどうかを判定する"""
    return all(hole.score_for(team.id) is not None for team in teams)


def holes_in_range(holes: Sequence[Hole], start: int, end: int) -> list[Hole]:
    """ホールindexが start〜end(両端含む)のホールをホール番号順に返す

    Args:
        holes: マッチの全ホール
        start: 開始index(0始まり)
        end: 終了index(0始まり)

    Returns:
        list[Hole]: 範囲内のホール
    """
    selected = [hole for hole in holes if start <= hole.number - 1 <= end]
    return sorted(selected, key=lambda hole: hole.number)


def _scored_pair(hole: Hole, team1: Team, team2: Team) -> tuple[int, int] | None:
    if not hole.is_complete:
        return None
    score1 = hole.score_for(team1.id)
    score2 = hole.score_for(team2.id)
    if score1 is None or score2 is None:
        return None
    return score1, score2


def evaluate_match_play(
    teams: Sequence[Team],
    holes: Sequence[Hole],
    range_size: int | None = None,
) -> MatchPlayResult:
    """マッチプレーの状況を算出する

    完了済みで両チームの打数が揃っているホールだけを数える。
    少ない打数のチームがそのホールの勝ち、同数ならハーフ。

    Args:
        teams: 対戦する2チーム(先頭がteam1)
        holes: 集計範囲のホール
        range_size: 集計範囲のホール数(省略時は holes の件数)

    Returns:
        MatchPlayResult: 集計結果。チーム数が2でない場合は is_valid=False
    """
    if len(teams) != 2:
        logger.debug("マッチプレーはチーム数2のみ対応: %d", len(teams))
        return MatchPlayResult(is_valid=False, status=INVALID_TEAMS_STATUS)

    team1, team2 = teams
    result = MatchPlayResult()

    for hole in sorted(holes, key=lambda h: h.number):
        pair = _scored_pair(hole, team1, team2)
        if pair is None:
            continue
        score1, score2 = pair
        if score1 < score2:
            result.team1_wins += 1
        elif score2 < score1:
            result.team2_wins += 1
        else:
            result.halved_holes += 1
        result.completed_holes += 1

    size = len(holes) if range_size is None else range_size
    result.holes_remaining = max(size - result.completed_holes, 0)

    margin = result.team1_wins - result.team2_wins
    result.is_match_over = abs(margin) > result.holes_remaining
    if margin > 0:
        result.status = f"{team1.name} {margin} UP"
        result.leader_id = team1.id
    elif margin < 0:
        result.status = f"{team2.name} {-margin} UP"
        result.leader_id = team2.id

    logger.debug(
        "マッチプレー集計: %s (完了 %d / 残り %d)",
        result.status,
        result.completed_holes,
        result.holes_remaining,
    )
    return result


def evaluate_stroke_play(
    teams: Sequence[Team],
    holes: Sequence[Hole],
    all_holes: Sequence[Hole] | None = None,
) -> StrokePlayResult:
    """ストロークプレーの状況を算出する

    Args:
        teams: 全チーム
        holes: 集計範囲のホール
        all_holes: マッチ全体のホール(完了判定用。省略時は holes)

    Returns:
        StrokePlayResult: チーム別合計と首位情報
    """
    team_results: list[TeamStrokeResult] = []
    for team in teams:
        total = 0
        completed = 0
        for hole in holes:
            if not hole.is_complete:
                continue
            score = hole.score_for(team.id)
            if score is None:
                continue
            total += score
            completed += 1
        team_results.append(
            TeamStrokeResult(
                team_id=team.id,
                team_name=team.name,
                total_score=total,
                completed_holes=completed,
                average=total / completed if completed else 0.0,
            )
        )

    whole_match = holes if all_holes is None else all_holes
    result = StrokePlayResult(
        teams=team_results,
        is_complete=len(whole_match) == HOLE_COUNT
        and all(hole.is_complete for hole in whole_match),
    )

    scored = sorted(
        (r for r in team_results if r.completed_holes > 0),
        key=lambda r: r.total_score,
    )
    if len(scored) < 2:
        result.status = SCORES_NOT_AVAILABLE
        return result

    best, runner_up = scored[0], scored[1]
    if best.total_score == runner_up.total_score:
        result.status = TIED
    else:
        result.team_leading = best.team_id
        result.leading_by = runner_up.total_score - best.total_score
        result.status = f"{best.team_name} leads by {result.leading_by}"

    logger.debug("ストロークプレー集計: %s", result.status)
    return result


def running_totals(match: Match) -> list[TeamRunningTotal]:
    """スコアカード表示用に、チームごとの前半・後半・合計の打数を返す

    Team.scores の未入力ホール(None)は合計にも holes_played にも含めない。
    ホールの完了状態は見ないので、入力途中のホールも数える。

    Args:
        match: 対象マッチ

    Returns:
        list[TeamRunningTotal]: match.teams と同じ順のチーム別合計
    """
    totals = []
    for team in match.teams:
        sums = {}
        for press_type, (start, end) in SEGMENT_RANGES.items():
            sums[press_type] = sum(s for s in team.scores[start : end + 1] if s is not None)
        totals.append(
            TeamRunningTotal(
                team_id=team.id,
                team_name=team.name,
                holes_played=sum(1 for s in team.scores if s is not None),
                **sums,
            )
        )
    return totals
