"""プレス台帳・精算モジュール

元の賭け(オリジナルベット)とプレイヤーが掛けたプレスを区別し、
ホールごとの打数から各プレスの状況と勝者を算出する。
プレスはそれぞれ自分の対象範囲だけで独立に精算される。
"""

import logging
import uuid
from collections.abc import Mapping, Sequence

from .config import Settings, get_settings
from .models import (
    FORMAT_TO_PRESS_TYPE,
    ORIGINAL_BET_LABEL,
    PRESS_LABEL,
    PRESS_TYPE_LABELS,
    PRESS_TYPE_TO_FORMAT,
    SEGMENT_RANGES,
    GameFormat,
    GroupedPresses,
    Match,
    Press,
    PressWithResults,
    normalize_press_type,
)
from .scoring import evaluate_match_play, evaluate_stroke_play, holes_in_range

logger = logging.getLogger(__name__)

HALVED = "Halved"


class PressTrackerError(Exception):
    """press_tracker の基底例外"""

    pass


class PressNotAllowedError(PressTrackerError):
    """プレスを受け付けられないマッチでプレスしようとした場合の例外"""

    pass


class UnknownTeamError(PressTrackerError):
    """マッチに存在しないチームを参照した場合の例外"""

    pass


def generate_id() -> str:
    """一意なIDを生成する"""
    return uuid.uuid4().hex[:12]


def is_original_bet(press: Press) -> bool:
    """プレスがオリジナルベットかどうかを判定する

    開始ホールがプレス種別の最初のホール(front9/total18: 0, back9: 9)と
    一致するものをオリジナルベットとみなす。保存された is_original_bet は参照しない。

    Args:
        press: 判定対象のプレス

    Returns:
        bool: オリジナルベットの場合True
    """
    start, _end = SEGMENT_RANGES[normalize_press_type(press.press_type)]
    return press.hole_index == start


def bet_amount_for(
    press_type: str,
    game_formats: Sequence[GameFormat],
    default: float,
) -> float:
    """プレス種別に対応するゲーム形式の賭け金を返す

    Args:
        press_type: プレス種別
        game_formats: マッチのゲーム形式
        default: 対応する形式が無い場合の賭け金(通常は Settings.default_bet_amount)

    Returns:
        float: 賭け金
    """
    format_type = PRESS_TYPE_TO_FORMAT[normalize_press_type(press_type)]
    for game_format in game_formats:
        if game_format.type == format_type:
            return game_format.bet_amount

    logger.warning(
        "ゲーム形式 %s が有効になっていません。既定の賭け金 %.2f を使用します",
        format_type,
        default,
    )
    return default


def ensure_pressable(match: Match) -> None:
    """マッチでプレスを扱えるか確認する

    Raises:
        PressNotAllowedError: プレス無効、またはチーム数が2でない場合
    """
    if not match.enable_presses:
        raise PressNotAllowedError(f"マッチ {match.id} はプレスが無効です")
    if len(match.teams) != 2:
        raise PressNotAllowedError(
            f"プレスは2チームのマッチのみ対応しています(チーム数: {len(match.teams)})"
        )


def create_original_bets(match: Match) -> list[Press]:
    """有効なゲーム形式ごとにオリジナルベットを作成する

    team1 が team2 にプレスを掛ける形で、各区間の最初のホールから開始する。
    2チームでプレスが有効なマッチ以外では空のリストを返す。

    Args:
        match: 対象マッチ

    Returns:
        list[Press]: 作成したオリジナルベット
    """
    if not match.enable_presses or len(match.teams) != 2:
        return []

    team1, team2 = match.teams
    bets = []
    for game_format in match.game_formats:
        press_type = FORMAT_TO_PRESS_TYPE[game_format.type]
        start, _end = SEGMENT_RANGES[press_type]
        bets.append(
            Press(
                id=generate_id(),
                from_team_id=team1.id,
                to_team_id=team2.id,
                hole_index=start,
                press_type=press_type,
                is_original_bet=True,
            )
        )
    return bets


def add_press(match: Match, press_data: Mapping) -> Press:
    """プレス入力(IDなし)からプレスを作成してマッチに追加する

    Args:
        match: 対象マッチ(presses が更新される)
        press_data: fromTeamId / toTeamId / holeIndex / pressType を持つ入力

    Returns:
        Press: 追加したプレス

    Raises:
        PressNotAllowedError: プレスを扱えないマッチの場合
        UnknownTeamError: 存在しないチームを参照している場合
        pydantic.ValidationError: 入力が不正な場合
    """
    ensure_pressable(match)

    press = Press.model_validate({**press_data, "id": generate_id()})
    for team_id in (press.from_team_id, press.to_team_id):
        if match.team_by_id(team_id) is None:
            raise UnknownTeamError(f"チーム {team_id} はマッチ {match.id} に存在しません")

    press.is_original_bet = is_original_bet(press)
    match.presses.append(press)
    logger.info(
        "プレスを追加しました: %s (%s, ホール%d)",
        press.id,
        press.press_type,
        press.hole_index + 1,
    )
    return press


def _status_for(decided: bool, has_leader: bool) -> str:
    if decided:
        return "decided"
    return "leading" if has_leader else "pending"


def settle_press(
    press: Press,
    match: Match,
    settings: Settings | None = None,
) -> PressWithResults | None:
    """1件のプレスの状況と勝者を算出する

    対象範囲はプレスの開始ホールから区間の最終ホールまで。
    マッチプレーは逆転不可能になった時点、またはすべてのホールが終わった時点で決着。
    ストロークプレーは範囲内のホールがすべて終わるまで決着しない。

    Args:
        press: 精算対象のプレス
        match: プレスを含むマッチ
        settings: アプリケーション設定(賭け金の既定値に使う)

    Returns:
        PressWithResults | None: 精算結果。存在しないチームを参照する場合はNone
    """
    settings = settings or get_settings()
    from_team = match.team_by_id(press.from_team_id)
    to_team = match.team_by_id(press.to_team_id)
    if from_team is None or to_team is None:
        logger.warning("存在しないチームを参照するプレスをスキップします: %s", press.id)
        return None

    segment_start, segment_end = SEGMENT_RANGES[press.press_type]
    start = max(press.hole_index, segment_start)
    range_size = segment_end - start + 1
    window = holes_in_range(match.holes, start, segment_end)
    names = {from_team.id: from_team.name, to_team.id: to_team.name}

    if match.play_format == "match":
        result = evaluate_match_play([from_team, to_team], window, range_size)
        completed = result.completed_holes
        remaining = result.holes_remaining
        leader = result.leader_id
        margin = abs(result.team1_wins - result.team2_wins)
        decided = result.is_match_over or remaining == 0
        if decided and leader is not None:
            if remaining > 0:
                status_text = f"{names[leader]} wins {margin}&{remaining}"
            else:
                status_text = f"{names[leader]} wins {margin} UP"
        elif decided:
            status_text = HALVED
        else:
            status_text = result.status
    else:
        result = evaluate_stroke_play([from_team, to_team], window)
        completed = min(team.completed_holes for team in result.teams)
        remaining = range_size - completed
        leader = result.team_leading
        decided = remaining == 0
        if decided and leader is not None:
            status_text = f"{names[leader]} wins by {result.leading_by}"
        elif decided:
            status_text = HALVED
        else:
            status_text = result.status

    original = is_original_bet(press)
    return PressWithResults(
        id=press.id,
        from_team_id=from_team.id,
        from_team_name=from_team.name,
        from_team_color=from_team.color,
        to_team_id=to_team.id,
        to_team_name=to_team.name,
        to_team_color=to_team.color,
        hole_index=press.hole_index,
        hole_number=press.hole_index + 1,
        press_type=press.press_type,
        is_original_bet=original,
        type_label=PRESS_TYPE_LABELS[press.press_type],
        kind_label=ORIGINAL_BET_LABEL if original else PRESS_LABEL,
        amount=bet_amount_for(press.press_type, match.game_formats, settings.default_bet_amount),
        status=_status_for(decided, leader is not None),
        status_text=status_text,
        winner=leader if decided else None,
        completed_holes=completed,
        holes_remaining=remaining,
    )


def settle_presses(
    match: Match,
    settings: Settings | None = None,
) -> GroupedPresses:
    """マッチの全プレスを精算し、種別ごとにまとめる

    各グループ内はオリジナルベットが先、その後は開始ホール順に並べる。

    Args:
        match: 対象マッチ
        settings: アプリケーション設定(賭け金の既定値に使う)

    Returns:
        GroupedPresses: 種別ごとの精算結果
    """
    settings = settings or get_settings()
    grouped = GroupedPresses()
    for press in match.presses:
        settled = settle_press(press, match, settings)
        if settled is not None:
            getattr(grouped, settled.press_type).append(settled)

    for press_type in SEGMENT_RANGES:
        getattr(grouped, press_type).sort(
            key=lambda p: (not p.is_original_bet, p.hole_number)
        )
    return grouped


def press_ledger_totals(grouped: GroupedPresses) -> dict[str, float]:
    """決着したプレスからチームごとの収支を集計する

    Args:
        grouped: settle_presses() の結果

    Returns:
        dict[str, float]: チームIDごとの収支(勝ちはプラス、負けはマイナス)
    """
    totals: dict[str, float] = {}
    for press in grouped.all():
        totals.setdefault(press.from_team_id, 0.0)
        totals.setdefault(press.to_team_id, 0.0)
        if press.status != "decided" or press.winner is None:
            continue
        loser = press.to_team_id if press.winner == press.from_team_id else press.from_team_id
        totals[press.winner] += press.amount
        totals[loser] -= press.amount
    return totals
