"""Prediction scoring ladder.

Exact scoreline > right winner and goal difference > right winner > miss.
Default ladder is 5/3/1/0; any ladder can be injected via ``EngineConfig``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from .config import DEFAULT_LADDER, ScoringLadder
from .validation import InputValidator

MatchResult = Literal["home", "away", "draw"]


class ScoringRule(str, Enum):
    EXACT_SCORE = "exact_score"
    WINNER_AND_GOAL_DIFFERENCE = "winner_and_goal_difference"
    WINNER_ONLY = "winner_only"
    MISS = "miss"


RULE_LABELS = {
    ScoringRule.EXACT_SCORE: "Exact score",
    ScoringRule.WINNER_AND_GOAL_DIFFERENCE: "Winner + goal difference",
    ScoringRule.WINNER_ONLY: "Winner only",
    ScoringRule.MISS: "No hit",
}


@dataclass(frozen=True)
class PointsBreakdown:
    points: int
    rule: ScoringRule

    @property
    def label(self) -> str:
        return RULE_LABELS[self.rule]


def match_result(home: int, away: int) -> MatchResult:
    if home > away:
        return "home"
    if home < away:
        return "away"
    return "draw"


def describe(
    predicted_home: int,
    predicted_away: int,
    actual_home: int,
    actual_away: int,
    ladder: ScoringLadder = DEFAULT_LADDER,
) -> PointsBreakdown:
    """Score a prediction and report which rule applied."""
    predicted_home, predicted_away = InputValidator.scoreline(predicted_home, predicted_away)
    actual_home, actual_away = InputValidator.scoreline(actual_home, actual_away)

    if predicted_home == actual_home and predicted_away == actual_away:
        return PointsBreakdown(ladder.exact, ScoringRule.EXACT_SCORE)

    same_result = match_result(predicted_home, predicted_away) == match_result(
        actual_home, actual_away
    )
    if not same_result:
        return PointsBreakdown(ladder.miss, ScoringRule.MISS)

    # Any two different draws share goal difference 0.
    if predicted_home - predicted_away == actual_home - actual_away:
        return PointsBreakdown(ladder.goal_difference, ScoringRule.WINNER_AND_GOAL_DIFFERENCE)
    return PointsBreakdown(ladder.winner, ScoringRule.WINNER_ONLY)


def score(
    predicted_home: int,
    predicted_away: int,
    actual_home: int,
    actual_away: int,
    ladder: ScoringLadder = DEFAULT_LADDER,
) -> int:
    return describe(predicted_home, predicted_away, actual_home, actual_away, ladder).points


def scoring_rules(ladder: ScoringLadder = DEFAULT_LADDER) -> list[tuple[int, str]]:
    """(points, label) rows, highest tier first."""
    return [
        (ladder.exact, RULE_LABELS[ScoringRule.EXACT_SCORE]),
        (ladder.goal_difference, RULE_LABELS[ScoringRule.WINNER_AND_GOAL_DIFFERENCE]),
        (ladder.winner, RULE_LABELS[ScoringRule.WINNER_ONLY]),
        (ladder.miss, RULE_LABELS[ScoringRule.MISS]),
    ]
