"""match.pyのテスト"""

import pytest

from press_tracker.match import (
    HoleState,
    MatchSetupError,
    ScoringSession,
    SessionPhase,
    SessionStateError,
    create_match,
    finish_match,
    first_incomplete_hole_index,
    matches_by_state,
    record_hole_scores,
    running_status,
)
from press_tracker.presses import PressNotAllowedError, UnknownTeamError, is_original_bet
from press_tracker.storage import MatchStore


class TestCreateMatch:
    """create_match関数のテスト"""

    def test_create_two_team_match(self, settings):
        """チーム・ホール・オリジナルベットが用意されること"""
        match = create_match(
            ["Eagles", "Hawks"],
            [{"type": "front", "betAmount": 5}, {"type": "back", "betAmount": 5}],
            title="Saturday",
            settings=settings,
        )

        assert match.title == "Saturday"
        assert [t.color for t in match.teams] == ["#007AFF", "#34AADC"]
        assert [t.initial for t in match.teams] == ["E", "H"]
        assert len(match.holes) == 18
        assert all(len(h.scores) == 2 and not h.is_complete for h in match.holes)
        assert [(p.press_type, p.hole_index) for p in match.presses] == [
            ("front9", 0),
            ("back9", 9),
        ]
        assert all(is_original_bet(p) for p in match.presses)
        assert match.is_complete is False

    def test_blank_names_get_placeholders(self, settings):
        """空欄のチーム名は Team N になること"""
        match = create_match(["", "Hawks", " "], [{"type": "total", "betAmount": 1}], settings=settings)

        assert [t.name for t in match.teams] == ["Team 1", "Hawks", "Team 3"]
        assert match.presses == []
        assert match.title.startswith("Match ")

    @pytest.mark.parametrize(
        ("names", "formats"),
        [
            (["Solo"], [{"type": "front", "betAmount": 1}]),
            (["A", "B", "C", "D"], [{"type": "front", "betAmount": 1}]),
            (["Same", "Same"], [{"type": "front", "betAmount": 1}]),
            (["A", "B"], []),
            (["A", "B"], [{"type": "front", "betAmount": 1}, {"type": "front9", "betAmount": 2}]),
        ],
    )
    def test_invalid_setup(self, settings, names, formats):
        """不正な入力はMatchSetupErrorになること"""
        with pytest.raises(MatchSetupError):
            create_match(names, formats, settings=settings)

    def test_presses_disabled(self, settings):
        """プレス無効の場合はオリジナルベットを作らないこと"""
        match = create_match(
            ["A", "B"], [{"type": "front", "betAmount": 1}], enable_presses=False, settings=settings
        )

        assert match.presses == []


class TestRecordHoleScores:
    """record_hole_scores関数のテスト"""

    def test_complete_hole(self, make_match):
        """全チーム入力で完了になり、チームのスコアにも反映されること"""
        match = make_match()

        hole = record_hole_scores(match, 3, {"t1": "4", "t2": "5"})

        assert hole.number == 4
        assert hole.is_complete is True
        assert hole.score_for("t1") == 4
        assert match.teams[1].scores[3] == 5

    def test_partial_hole(self, make_match):
        """一部のみの入力では未完了になること"""
        match = make_match()

        hole = record_hole_scores(match, 0, {"t1": "4", "t2": ""})

        assert hole.is_complete is False
        assert hole.score_for("t2") is None

    def test_unknown_team(self, make_match):
        """存在しないチームIDはエラーになること"""
        with pytest.raises(UnknownTeamError):
            record_hole_scores(make_match(), 0, {"t1": "4", "zz": "5"})

    def test_hole_out_of_range(self, make_match):
        """範囲外のホールはエラーになること"""
        with pytest.raises(ValueError):
            record_hole_scores(make_match(), 18, {"t1": "4"})

    def test_missing_hole_raises_value_error(self, make_match):
        """該当番号のホールが無い場合はValueErrorになること"""
        match = make_match()
        match.holes.pop(4)

        with pytest.raises(ValueError, match="ホール5"):
            record_hole_scores(match, 4, {"t1": "4"})

    def test_teams_entered_separately(self, make_match):
        """チームごとに分けて入力しても先の打数が残ること"""
        match = make_match()

        record_hole_scores(match, 2, {"t1": "4"})
        hole = record_hole_scores(match, 2, {"t2": "5"})

        assert hole.score_for("t1") == 4
        assert hole.score_for("t2") == 5
        assert hole.is_complete is True
        assert match.teams[0].scores[2] == 4

    def test_explicit_blank_clears_score(self, make_match):
        """空文字を渡したチームの打数は消えること"""
        match = make_match()
        record_hole_scores(match, 0, {"t1": "4", "t2": "5"})

        hole = record_hole_scores(match, 0, {"t2": ""})

        assert hole.score_for("t1") == 4
        assert hole.score_for("t2") is None
        assert hole.is_complete is False


class TestRunningStatus:
    """running_status関数のテスト"""

    def test_match_play_messages(self, make_match, play_holes):
        """team1の視点でUP/DOWNを表すこと"""
        match = play_holes(make_match(), {1: (3, 4), 2: (3, 4)})
        assert running_status(match, 1).status_message == "Eagles is 2 UP"

        play_holes(match, {3: (5, 4), 4: (5, 4), 5: (5, 4)})
        offer = running_status(match, 4)
        assert offer.status_message == "Eagles is 1 DOWN"
        assert offer.game_type == "front9"

    def test_back_nine_only_counts_back(self, make_match, play_holes):
        """後半は10番以降だけで集計すること"""
        match = play_holes(make_match(), {n: (3, 5) for n in range(1, 10)})
        play_holes(match, {10: (4, 4)})

        offer = running_status(match, 9)

        assert offer.game_type == "back9"
        assert offer.status_message == "Match is tied (All Square)"

    def test_stroke_play_messages(self, make_match, play_holes):
        """ストロークプレーでは打数差を表すこと"""
        match = play_holes(make_match(play_format="stroke"), {1: (4, 6)})
        assert running_status(match, 0).status_message == "Eagles is leading by 2 strokes"

        play_holes(match, {2: (7, 4)})
        assert running_status(match, 1).status_message == "Eagles is trailing by 1 strokes"

    def test_holes_remaining_counts_whole_nine(self, make_match, play_holes):
        """残りホール数は区間の9ホールから数えること"""
        match = play_holes(make_match(), {1: (3, 4), 2: (3, 4), 3: (4, 4)})

        offer = running_status(match, 2)

        assert offer.holes_remaining == 6

    def test_holes_remaining_back_nine(self, make_match, play_holes):
        """後半は10〜18番の中で残りを数えること"""
        match = play_holes(make_match(), {n: (4, 4) for n in range(1, 12)})

        assert running_status(match, 10).holes_remaining == 7

    def test_holes_remaining_stroke_play(self, make_match, play_holes):
        """ストロークプレーでも区間の残りホール数を返すこと"""
        match = play_holes(make_match(play_format="stroke"), {1: (4, 6), 2: (5, 5)})

        assert running_status(match, 1).holes_remaining == 7

    def test_three_teams(self, make_match):
        """3チームでは途中経過を返さないこと"""
        assert running_status(make_match(team_count=3), 0) is None


class TestMatchHelpers:
    """マッチ補助関数のテスト"""

    def test_first_incomplete_hole_index(self, make_match, play_holes):
        """最初の未完了ホールを返すこと"""
        match = play_holes(make_match(), {1: (4, 4), 2: (4, 4), 4: (4, 4)})

        assert first_incomplete_hole_index(match) == 2

        play_holes(match, {n: (4, 4) for n in range(1, 19)})
        assert first_incomplete_hole_index(match) is None

    def test_finish_match_is_manual(self, make_match, play_holes):
        """全ホール完了でも完了フラグは自動で付かないこと"""
        match = play_holes(make_match(), {n: (4, 4) for n in range(1, 19)})
        assert match.is_complete is False

        finish_match(match)
        assert match.is_complete is True

    def test_matches_by_state(self, make_match):
        """進行中と完了済みに分けること"""
        active = make_match()
        done = finish_match(make_match())

        assert matches_by_state([active, done]) == ([active], [done])


class TestScoringSession:
    """ScoringSessionクラスのテスト"""

    def test_complete_hole_offers_press(self, make_match):
        """ホールが完了するとプレス判断に進むこと"""
        session = ScoringSession(make_match())

        state = session.enter_scores({"t1": "3", "t2": "4"})

        assert state is HoleState.COMPLETE
        assert session.phase is SessionPhase.PRESS_DECISION
        assert session.pending_offer.status_message == "Eagles is 1 UP"
        assert session.current_hole_index == 0

    def test_partial_hole_stays(self, make_match):
        """未完了のホールでは同じホールに留まること"""
        session = ScoringSession(make_match())

        state = session.enter_scores({"t1": "3"})

        assert state is HoleState.INCOMPLETE
        assert session.phase is SessionPhase.SCORING
        assert session.current_hole_index == 0

    def test_hole_state_unscored(self, make_match):
        """未入力のホールはUNSCOREDになること"""
        assert ScoringSession(make_match()).hole_state(5) is HoleState.UNSCORED

    def test_accept_press(self, make_match):
        """プレスを受け付けると完了ホールから始まるプレスができ、次へ進むこと"""
        match = make_match()
        session = ScoringSession(match)
        for _ in range(3):
            session.enter_scores({"t1": "3", "t2": "4"})
            session.decline_press()
        session.enter_scores({"t1": "4", "t2": "4"})

        press = session.accept_press("t2", "t1")

        assert press.hole_index == 3
        assert press.press_type == "front9"
        assert is_original_bet(press) is False
        assert match.presses[-1] is press
        assert session.current_hole_index == 4
        assert session.phase is SessionPhase.SCORING
        assert session.pending_offer is None

    def test_accept_press_with_type(self, make_match):
        """区間と異なる種別でプレスできること"""
        session = ScoringSession(make_match(), hole_index=10)
        session.enter_scores({"t1": "4", "t2": "5"})

        press = session.accept_press("t2", "t1", "total")

        assert press.press_type == "total18"
        assert press.hole_index == 10

    def test_decline_advances_without_press(self, make_match):
        """見送ると何も追加せずに次へ進むこと"""
        match = make_match()
        session = ScoringSession(match)
        session.enter_scores({"t1": "3", "t2": "4"})

        session.decline_press()

        assert match.presses == []
        assert session.current_hole_index == 1

    def test_decline_on_last_hole_finishes(self, make_match):
        """最終ホールで見送ると終了状態になること"""
        session = ScoringSession(make_match(), hole_index=17)
        session.enter_scores({"t1": "3", "t2": "4"})

        session.decline_press()

        assert session.phase is SessionPhase.FINISHED
        assert session.current_hole_index == 17
        with pytest.raises(SessionStateError):
            session.enter_scores({"t1": "3", "t2": "4"})

    def test_press_outside_decision_raises(self, make_match):
        """プレス判断中でない場合はプレスできないこと"""
        session = ScoringSession(make_match())

        with pytest.raises(SessionStateError):
            session.accept_press("t1", "t2")

    def test_three_teams_skip_presses(self, make_match):
        """3チームではプレス判断なしで次へ進み、プレスはエラーになること"""
        match = make_match(team_count=3)
        session = ScoringSession(match)

        session.enter_scores({"t1": "3", "t2": "4", "t3": "5"})

        assert session.phase is SessionPhase.SCORING
        assert session.current_hole_index == 1
        with pytest.raises(PressNotAllowedError):
            session.accept_press("t1", "t2")

    def test_presses_disabled_skip_decision(self, make_match):
        """プレス無効ではプレス判断なしで次へ進むこと"""
        session = ScoringSession(make_match(enable_presses=False))

        session.enter_scores({"t1": "3", "t2": "4"})

        assert session.phase is SessionPhase.SCORING
        assert session.current_hole_index == 1

    def test_resume(self, make_match, play_holes):
        """最初の未完了ホールから再開すること"""
        match = play_holes(make_match(), {1: (4, 4), 2: (4, 4)})

        session = ScoringSession.resume(match)

        assert session.current_hole_index == 2
        assert session.phase is SessionPhase.SCORING

    def test_resume_finished_round(self, make_match, play_holes):
        """全ホール完了のマッチは終了状態で再開すること"""
        match = play_holes(make_match(), {n: (4, 4) for n in range(1, 19)})

        assert ScoringSession.resume(match).phase is SessionPhase.FINISHED

    def test_go_to_hole(self, make_match):
        """スコア入力中はホールを移動できること"""
        session = ScoringSession(make_match())

        session.go_to_hole(7)

        assert session.current_hole_index == 7
        with pytest.raises(ValueError):
            session.go_to_hole(18)

    def test_saves_to_store(self, make_match, tmp_path):
        """保存先を渡した場合は変更のたびに保存されること"""
        store = MatchStore(tmp_path / "matches.json")
        session = ScoringSession(make_match(), store=store)

        session.enter_scores({"t1": "3", "t2": "4"})
        session.accept_press("t2", "t1")

        saved = store.require("m1")
        assert saved.holes[0].is_complete is True
        assert [p.hole_index for p in saved.presses] == [0]

    def test_press_summary(self, make_match, settings):
        """セッションからプレス精算結果を取得できること"""
        match = make_match(formats=("front",))
        session = ScoringSession(match, settings=settings)
        session.enter_scores({"t1": "3", "t2": "4"})
        session.decline_press()
        session.enter_scores({"t1": "5", "t2": "4"})
        session.accept_press("t2", "t1")

        summary = session.press_summary()

        assert [p.hole_number for p in summary.front9] == [2]
        assert summary.front9[0].amount == 5.0
        assert summary.front9[0].status == "leading"
        assert summary.front9[0].status_text == "Hawks 1 UP"
        assert summary.back9 == []
