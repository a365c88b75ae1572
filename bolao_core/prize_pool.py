"""Jackpot carry-over engine (pure, no DB).

Each round of a jackpot competition opens with the money paid into it plus
whatever earlier rounds failed to pay out. Once the deciding input is known
the round either pays out (``resolved``) or carries its whole pool over to
the next round. Two win conditions share this shape:

- EXACT_SCORE: one decisive match for a designated team. The pool pays out
  only when that team wins (or draws, where draws are allowed) and at least
  one ticket predicted the exact scoreline.
- THRESHOLD: quiz rounds of one point per correct answer. Running totals
  persist across rounds; the pool pays out as soon as a ticket that scored
  this round reaches the threshold.

Points are never reset; only the money pool carries over or resets.
Money is ``Decimal`` throughout so carried amounts are conserved exactly.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import AlreadyResolved, InvalidInput, PrematureResolution
from .types import (
    AccumulateReason,
    JackpotState,
    MatchOutcome,
    Prediction,
    QuizAnswer,
    QuizQuestion,
    WinCondition,
)

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class JackpotOutcome:
    """Result of settling one jackpot round."""

    # Settled copy of the round state (closed=True).
    state: JackpotState
    win_condition: WinCondition
    winners: Tuple[str, ...] = ()
    reason: Optional[AccumulateReason] = None
    # THRESHOLD only: points earned this round and running totals afterwards.
    round_points: Dict[str, int] = field(default_factory=dict)
    totals: Dict[str, int] = field(default_factory=dict)

    @property
    def resolved(self) -> bool:
        return self.state.resolved

    @property
    def new_accumulated(self) -> Decimal:
        """Amount handed to the next round."""
        return ZERO if self.state.resolved else self.state.pool_total


def to_money(value: object) -> Decimal:
    if isinstance(value, bool):
        raise InvalidInput(f"invalid amount: {value!r}")
    try:
        # str() first so floats keep their printed value.
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidInput(f"invalid amount: {value!r}") from e
    if not amount.is_finite() or amount < 0:
        raise InvalidInput(f"amount must be a non-negative number, got {value!r}")
    return amount


def round_total_prize(
    entry_fee: object, active_tickets: int, previous_accumulated: object = ZERO
) -> Decimal:
    """Entry fee x active tickets + amount inherited from earlier rounds."""
    if active_tickets < 0:
        raise InvalidInput("active ticket count cannot be negative")
    return to_money(entry_fee) * active_tickets + to_money(previous_accumulated)


def prize_per_winner(total_prize: object, winners_count: int, admin_fee_percent: object = ZERO) -> Decimal:
    """Split the pool after the admin fee; cents are rounded down so payouts never exceed the pool."""
    if winners_count < 0:
        raise InvalidInput("winners count cannot be negative")
    fee = to_money(admin_fee_percent)
    if fee > HUNDRED:
        raise InvalidInput("admin fee cannot exceed 100%")
    if winners_count == 0:
        return ZERO
    after_fee = to_money(total_prize) * (1 - fee / HUNDRED)
    return (after_fee / winners_count).quantize(CENTS, rounding=ROUND_DOWN)


def estimated_prize(
    entry_fee: object,
    participant_count: int,
    admin_fee_percent: object = ZERO,
    initial_prize: object = ZERO,
) -> Decimal:
    """Initial prize + entry fees - admin fee on the entry fees."""
    if participant_count < 0:
        raise InvalidInput("participant count cannot be negative")
    from_fees = to_money(entry_fee) * participant_count
    admin_fee = from_fees * to_money(admin_fee_percent) / HUNDRED
    return to_money(initial_prize) + from_fees - admin_fee


def open_round(
    competition_id: str,
    round_number: int,
    contributions: object = ZERO,
    previous_accumulated: object = ZERO,
) -> JackpotState:
    if round_number < 1:
        raise InvalidInput("round numbers start at 1")
    return JackpotState(
        competition_id=competition_id,
        round_number=round_number,
        accumulated_amount=to_money(contributions),
        previous_accumulated=to_money(previous_accumulated),
    )


def next_round(settled: JackpotState, contributions: object = ZERO) -> JackpotState:
    """Open the round after ``settled``: inherit its pool on carry-over, start at zero after a payout."""
    if not settled.closed:
        raise PrematureResolution(
            f"round {settled.round_number} of {settled.competition_id} is still open"
        )
    previous = ZERO if settled.resolved else settled.pool_total
    return open_round(
        settled.competition_id, settled.round_number + 1, contributions, previous
    )


def _require_open(state: JackpotState) -> None:
    if state.closed:
        raise AlreadyResolved(
            f"round {state.round_number} of {state.competition_id} was already settled"
        )


def _settle(state: JackpotState, resolved: bool) -> JackpotState:
    return replace(state, resolved=resolved, closed=True)


def exact_score_winners(
    outcome: MatchOutcome,
    designated_team_id: str,
    predictions: Sequence[Prediction],
    allow_draws: bool = False,
) -> tuple[tuple[str, ...], Optional[AccumulateReason]]:
    """
    Winning tickets for a decisive match, or the reason the pool carries over.

    A ticket wins only with the exact scoreline, and only when the designated
    team did not lose (a draw counts only when ``allow_draws``).
    """
    if designated_team_id == outcome.home_team_id:
        designated_is_home = True
    elif designated_team_id == outcome.away_team_id:
        designated_is_home = False
    else:
        raise InvalidInput(
            f"team {designated_team_id} does not play match {outcome.match_id}"
        )
    home, away = outcome.home_score, outcome.away_score
    if home is None or away is None:
        raise PrematureResolution(f"match {outcome.match_id} has no scoreline yet")

    is_draw = home == away
    team_won = home > away if designated_is_home else away > home
    if not team_won and not is_draw:
        return (), AccumulateReason.TEAM_LOST
    if is_draw and not allow_draws:
        return (), AccumulateReason.DRAW_NOT_ALLOWED

    winners: dict[str, None] = {}
    for prediction in predictions:
        if prediction.match_id != outcome.match_id:
            raise InvalidInput(
                f"prediction {prediction.prediction_id} belongs to match {prediction.match_id}"
            )
        if prediction.predicted_home == home and prediction.predicted_away == away:
            winners.setdefault(prediction.ticket_id, None)
    if not winners:
        return (), AccumulateReason.NO_WINNERS
    return tuple(winners), None


def resolve_exact_score_round(
    state: JackpotState,
    outcome: MatchOutcome,
    designated_team_id: str,
    predictions: Sequence[Prediction],
    allow_draws: bool = False,
) -> JackpotOutcome:
    _require_open(state)
    if not outcome.finished:
        raise PrematureResolution(f"match {outcome.match_id} is not finished")

    winners, reason = exact_score_winners(
        outcome, designated_team_id, predictions, allow_draws
    )
    settled = _settle(state, resolved=bool(winners))
    result = JackpotOutcome(
        state=settled,
        win_condition=WinCondition.EXACT_SCORE,
        winners=winners,
        reason=reason,
    )
    if winners:
        logger.info(
            f"Jackpot round {state.round_number} of {state.competition_id} resolved: "
            f"{len(winners)} winner(s) share {settled.pool_total}"
        )
    else:
        logger.info(
            f"Jackpot round {state.round_number} of {state.competition_id} carried over "
            f"({reason.value}): {result.new_accumulated}"
        )
    return result


def grade_quiz_answers(
    questions: Sequence[QuizQuestion], answers: Iterable[QuizAnswer]
) -> dict[str, int]:
    """
    One point per correct answer, keyed by ticket.

    Every ticket that answered appears, with 0 when nothing was right.

    Raises:
      PrematureResolution: a question has no answer key yet.
      InvalidInput: an answer refers to a question outside the round, or a
        ticket answered the same question more than once.
    """
    answer_key: dict[str, str] = {}
    for question in questions:
        if question.correct_answer is None:
            raise PrematureResolution(
                f"question {question.question_id} has no correct answer set"
            )
        answer_key[question.question_id] = question.correct_answer

    answers = list(answers)
    seen: set[tuple[str, str]] = set()
    for answer in answers:
        if answer.question_id not in answer_key:
            raise InvalidInput(f"answer to unknown question {answer.question_id}")
        pair = (answer.ticket_id, answer.question_id)
        if pair in seen:
            raise InvalidInput(
                f"ticket {answer.ticket_id} answered question {answer.question_id} twice"
            )
        seen.add(pair)

    points: dict[str, int] = {}
    for answer in answers:
        hit = 1 if answer_key[answer.question_id] == answer.selected_answer else 0
        points[answer.ticket_id] = points.get(answer.ticket_id, 0) + hit
    return points


def threshold_winners(
    totals_before: Mapping[str, int],
    round_points: Mapping[str, int],
    threshold: int,
) -> tuple[tuple[str, ...], dict[str, int]]:
    """Tickets that scored this round and reached ``threshold``, plus the new running totals."""
    totals = dict(totals_before)
    winners: list[str] = []
    for ticket_id, earned in round_points.items():
        if earned < 0:
            raise InvalidInput(f"ticket {ticket_id} earned negative points")
        new_total = totals.get(ticket_id, 0) + earned
        totals[ticket_id] = new_total
        if earned > 0 and new_total >= threshold:
            winners.append(ticket_id)
    return tuple(winners), totals


def resolve_threshold_round(
    state: JackpotState,
    totals_before: Mapping[str, int],
    round_points: Mapping[str, int],
    threshold: int = DEFAULT_CONFIG.jackpot_threshold,
    finished: bool = True,
) -> JackpotOutcome:
    _require_open(state)
    if not finished:
        raise PrematureResolution(
            f"quiz round {state.round_number} of {state.competition_id} is not finished"
        )
    if threshold < 1:
        raise InvalidInput("threshold must be positive")

    winners, totals = threshold_winners(totals_before, round_points, threshold)
    settled = _settle(state, resolved=bool(winners))
    result = JackpotOutcome(
        state=settled,
        win_condition=WinCondition.THRESHOLD,
        winners=winners,
        reason=None if winners else AccumulateReason.NO_WINNERS,
        round_points=dict(round_points),
        totals=totals,
    )
    logger.info(
        f"Quiz round {state.round_number} of {state.competition_id}: "
        f"{'winners ' + ', '.join(winners) if winners else 'no winner, pool carried over'}"
    )
    return result


class PrizePoolAccumulator:
    """Binds one win condition and the engine constants to the functions above."""

    def __init__(self, win_condition: WinCondition, config: EngineConfig = DEFAULT_CONFIG):
        self.win_condition = WinCondition(win_condition)
        self.config = config

    def _require(self, expected: WinCondition) -> None:
        if self.win_condition != expected:
            raise InvalidInput(
                f"accumulator configured for {self.win_condition.value}, not {expected.value}"
            )

    def resolve_decisive_match(
        self,
        state: JackpotState,
        outcome: MatchOutcome,
        designated_team_id: str,
        predictions: Sequence[Prediction],
    ) -> JackpotOutcome:
        self._require(WinCondition.EXACT_SCORE)
        return resolve_exact_score_round(
            state, outcome, designated_team_id, predictions, self.config.allow_draws
        )

    def resolve_quiz_round(
        self,
        state: JackpotState,
        totals_before: Mapping[str, int],
        round_points: Mapping[str, int],
        finished: bool = True,
    ) -> JackpotOutcome:
        self._require(WinCondition.THRESHOLD)
        return resolve_threshold_round(
            state, totals_before, round_points, self.config.jackpot_threshold, finished
        )

    def next_round(self, settled: JackpotState, contributions: object = ZERO) -> JackpotState:
        return next_round(settled, contributions)

    def payout(self, outcome: JackpotOutcome) -> Decimal:
        """Amount each winner receives after the configured admin fee."""
        return prize_per_winner(
            outcome.state.pool_total, len(outcome.winners), self.config.admin_fee_percent
        )
