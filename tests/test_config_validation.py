from decimal import Decimal

import pytest
from pydantic import ValidationError

from bolao_core import EngineConfig, InputValidator, InvalidInput, MatchOutcome, ScoringLadder
from bolao_core.types import Prediction, QuizAnswer


def test_default_config_constants():
    config = EngineConfig()
    assert (config.ladder.exact, config.ladder.goal_difference, config.ladder.winner, config.ladder.miss) == (5, 3, 1, 0)
    assert config.jackpot_threshold == 10
    assert config.min_team_floor == 4
    assert config.classified_per_group == 2
    assert config.allow_draws is False
    assert config.admin_fee_percent == Decimal("0")


def test_from_mapping_validates_and_wraps_errors():
    config = EngineConfig.from_mapping({"jackpot_threshold": 12, "admin_fee_percent": "7.5"})
    assert config.jackpot_threshold == 12
    assert config.admin_fee_percent == Decimal("7.5")

    with pytest.raises(InvalidInput):
        EngineConfig.from_mapping({"ladder": {"exact": 1, "goal_difference": 3}})
    with pytest.raises(InvalidInput):
        EngineConfig.from_mapping({"admin_fee_percent": 150})
    with pytest.raises(InvalidInput):
        EngineConfig.from_mapping({"min_team_floor": 0})


def test_ladder_must_be_monotonic():
    with pytest.raises(ValidationError):
        ScoringLadder(exact=3, goal_difference=5)


def test_config_is_frozen():
    config = EngineConfig()
    with pytest.raises(ValidationError):
        config.jackpot_threshold = 3


def test_outcome_validation():
    ok = InputValidator.outcome(MatchOutcome(" m1 ", "A", "B", 1, 0, True))
    assert ok.match_id == "m1"
    with pytest.raises(InvalidInput):
        InputValidator.outcome(MatchOutcome("m1", "A", "B", None, None, True))
    with pytest.raises(InvalidInput):
        InputValidator.outcome(MatchOutcome("m1", "A", "B", 1, None, False))
    with pytest.raises(InvalidInput):
        InputValidator.outcome(MatchOutcome("m1", "A", "B", True, 0, True))


def test_prediction_and_answer_validation():
    with pytest.raises(InvalidInput):
        InputValidator.prediction(Prediction("p1", "m1", "t1", -2, 0))
    answer = InputValidator.quiz_answer(QuizAnswer("t1", "q1", "  B "))
    assert answer.selected_answer == "B"
    with pytest.raises(InvalidInput):
        InputValidator.quiz_answer(QuizAnswer("t1", "q1", "   "))
    assert InputValidator.scoreline(2, 0) == (2, 0)
    with pytest.raises(InvalidInput):
        InputValidator.scoreline(2, -1)
