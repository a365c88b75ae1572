from decimal import Decimal

import pytest

from bolao_core import (
    AccumulateReason,
    AlreadyResolved,
    EngineConfig,
    InvalidInput,
    MatchOutcome,
    PrematureResolution,
    PrizePoolAccumulator,
    QuizAnswer,
    QuizQuestion,
    WinCondition,
    estimated_prize,
    grade_quiz_answers,
    next_round,
    open_round,
    prize_per_winner,
    resolve_exact_score_round,
    resolve_threshold_round,
    round_total_prize,
)
from bolao_core.types import Prediction


def _decisive(home_score, away_score, finished=True):
    # The designated club "FLA" plays at home.
    return MatchOutcome(
        match_id="tm-1",
        home_team_id="FLA",
        away_team_id="VAS",
        home_score=home_score,
        away_score=away_score,
        finished=finished,
    )


def _pred(ticket, home, away):
    return Prediction(
        prediction_id=f"p-{ticket}",
        match_id="tm-1",
        ticket_id=ticket,
        predicted_home=home,
        predicted_away=away,
    )


def _state(contributions="100", previous="0"):
    return open_round("jackpot-1", 1, Decimal(contributions), Decimal(previous))


def test_exact_score_with_designated_win_resolves_round():
    out = resolve_exact_score_round(
        _state(), _decisive(2, 1), "FLA", [_pred("t1", 2, 1), _pred("t2", 1, 0), _pred("t3", 2, 1)]
    )
    assert out.resolved is True
    assert out.winners == ("t1", "t3")
    assert out.reason is None
    assert out.state.closed is True
    assert out.new_accumulated == Decimal("0")


def test_designated_team_loss_carries_over_even_with_exact_prediction():
    out = resolve_exact_score_round(
        _state(), _decisive(0, 1), "FLA", [_pred("t1", 0, 1)]
    )
    assert out.resolved is False
    assert out.winners == ()
    assert out.reason == AccumulateReason.TEAM_LOST


def test_away_designated_team_wins_with_away_scoreline():
    out = resolve_exact_score_round(_state(), _decisive(0, 1), "VAS", [_pred("t1", 0, 1)])
    assert out.winners == ("t1",)


def test_draw_carries_over_unless_allowed():
    preds = [_pred("t1", 1, 1)]
    out = resolve_exact_score_round(_state(), _decisive(1, 1), "FLA", preds)
    assert out.reason == AccumulateReason.DRAW_NOT_ALLOWED
    out = resolve_exact_score_round(_state(), _decisive(1, 1), "FLA", preds, allow_draws=True)
    assert out.winners == ("t1",)


def test_no_exact_prediction_carries_over():
    out = resolve_exact_score_round(_state(), _decisive(3, 0), "FLA", [_pred("t1", 2, 0)])
    assert out.reason == AccumulateReason.NO_WINNERS


def test_carry_over_conserves_money_exactly():
    state = _state(contributions="70.10", previous="129.95")
    out = resolve_exact_score_round(state, _decisive(0, 2), "FLA", [])
    assert out.new_accumulated == Decimal("70.10") + Decimal("129.95")
    nxt = next_round(out.state, contributions=Decimal("50"))
    assert nxt.round_number == 2
    assert nxt.previous_accumulated == Decimal("200.05")
    assert nxt.accumulated_amount == Decimal("50")
    assert nxt.closed is False


def test_resolved_round_resets_next_previous_accumulated():
    state = _state(contributions="100", previous="300")
    out = resolve_exact_score_round(state, _decisive(1, 0), "FLA", [_pred("t1", 1, 0)])
    assert next_round(out.state).previous_accumulated == Decimal("0")


def test_unfinished_match_is_premature():
    with pytest.raises(PrematureResolution):
        resolve_exact_score_round(_state(), _decisive(None, None, finished=False), "FLA", [])


def test_settled_round_cannot_be_resolved_again():
    out = resolve_exact_score_round(_state(), _decisive(0, 0), "FLA", [])
    with pytest.raises(AlreadyResolved):
        resolve_exact_score_round(out.state, _decisive(0, 0), "FLA", [])


def test_open_round_cannot_seed_next_round():
    with pytest.raises(PrematureResolution):
        next_round(_state())


def test_designated_team_must_play_the_match():
    with pytest.raises(InvalidInput):
        resolve_exact_score_round(_state(), _decisive(1, 0), "BOT", [])


def test_grade_quiz_answers():
    questions = [QuizQuestion("q1", "A"), QuizQuestion("q2", "C")]
    answers = [
        QuizAnswer("t1", "q1", "A"),
        QuizAnswer("t1", "q2", "C"),
        QuizAnswer("t2", "q1", "B"),
        QuizAnswer("t2", "q2", "C"),
        QuizAnswer("t3", "q1", "D"),
    ]
    assert grade_quiz_answers(questions, answers) == {"t1": 2, "t2": 1, "t3": 0}


def test_grade_requires_every_answer_key():
    with pytest.raises(PrematureResolution):
        grade_quiz_answers([QuizQuestion("q1", None)], [])
    with pytest.raises(InvalidInput):
        grade_quiz_answers([QuizQuestion("q1", "A")], [QuizAnswer("t1", "q9", "A")])


def test_repeated_answer_to_one_question_is_rejected():
    questions = [QuizQuestion("q1", "A")]
    with pytest.raises(InvalidInput):
        grade_quiz_answers(questions, [QuizAnswer("t1", "q1", "A")] * 3)
    # Covering every option of one question is the same abuse.
    with pytest.raises(InvalidInput):
        grade_quiz_answers(
            questions, [QuizAnswer("t1", "q1", option) for option in "ABCD"]
        )
    # Different tickets may give the same answer.
    both = [QuizAnswer("t1", "q1", "A"), QuizAnswer("t2", "q1", "A")]
    assert grade_quiz_answers(questions, both) == {"t1": 1, "t2": 1}


def test_threshold_round_winner_when_total_reaches_threshold():
    out = resolve_threshold_round(
        _state(), totals_before={"t1": 8, "t2": 3}, round_points={"t1": 2, "t2": 5}
    )
    assert out.resolved is True
    assert out.winners == ("t1",)
    assert out.totals == {"t1": 10, "t2": 8}


def test_threshold_round_without_winner_carries_money_but_keeps_points():
    state = _state(contributions="40", previous="60")
    out = resolve_threshold_round(state, totals_before={"t1": 4}, round_points={"t1": 3, "t2": 2})
    assert out.resolved is False
    assert out.reason == AccumulateReason.NO_WINNERS
    assert out.totals == {"t1": 7, "t2": 2}
    assert out.new_accumulated == Decimal("100")
    assert next_round(out.state).previous_accumulated == Decimal("100")


def test_ticket_already_over_threshold_needs_points_this_round():
    out = resolve_threshold_round(_state(), totals_before={"t1": 12}, round_points={"t1": 0})
    assert out.resolved is False


def test_threshold_round_failure_modes():
    with pytest.raises(PrematureResolution):
        resolve_threshold_round(_state(), {}, {}, finished=False)
    settled = resolve_threshold_round(_state(), {}, {})
    with pytest.raises(AlreadyResolved):
        resolve_threshold_round(settled.state, {}, {})


def test_prize_arithmetic():
    assert round_total_prize(Decimal("10"), 7, Decimal("35.50")) == Decimal("105.50")
    assert prize_per_winner(Decimal("100"), 3, Decimal("10")) == Decimal("30.00")
    assert prize_per_winner(Decimal("100"), 3) == Decimal("33.33")
    assert prize_per_winner(Decimal("100"), 0, Decimal("10")) == Decimal("0")
    assert estimated_prize(Decimal("20"), 10, Decimal("5"), Decimal("50")) == Decimal("240")
    with pytest.raises(InvalidInput):
        prize_per_winner(Decimal("100"), 1, Decimal("101"))
    with pytest.raises(InvalidInput):
        round_total_prize(Decimal("-1"), 1)


def test_accumulator_binds_win_condition_and_config():
    config = EngineConfig(jackpot_threshold=5, admin_fee_percent=Decimal("20"))
    quiz = PrizePoolAccumulator(WinCondition.THRESHOLD, config)
    out = quiz.resolve_quiz_round(_state(contributions="50"), {"t1": 3}, {"t1": 2, "t2": 5})
    assert out.winners == ("t1", "t2")
    assert quiz.payout(out) == Decimal("20.00")
    with pytest.raises(InvalidInput):
        quiz.resolve_decisive_match(_state(), _decisive(1, 0), "FLA", [])

    decisive = PrizePoolAccumulator(WinCondition.EXACT_SCORE, EngineConfig(allow_draws=True))
    out = decisive.resolve_decisive_match(_state(), _decisive(2, 2), "FLA", [_pred("t9", 2, 2)])
    assert out.winners == ("t9",)
    assert decisive.next_round(out.state).previous_accumulated == Decimal("0")
