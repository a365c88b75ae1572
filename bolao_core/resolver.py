"""Competition resolution (pure, no persistence).

This module turns a finalized match or quiz round into a ChangeSet.
All work happens on the snapshots passed in; nothing is written anywhere.

Architecture:
- The caller loads everything the resolver needs and builds a request
  (MatchResolution or RoundFinalization)
- CompetitionResolver.resolve() validates the whole request first, then scores,
  aggregates and settles, and returns a ChangeSet
- The caller persists the ChangeSet and decides what to notify/audit from it

State machine per match/round:
- Pending (not finished) -> Finished (scored, immutable)
- There is no reopen path; corrections are administrative overrides outside
  the resolver

Format handling (explicit RoundFormat tag, never inferred from names):
- SCORE_PREDICTION: ladder points per prediction, ticket totals resummed
- GROUP_STAGE: as above + full standings recompute for the group
- KNOCKOUT: as above + advancing team
- SINGLE_DECISIVE_MATCH: exact-score jackpot only (no ladder points)
- THRESHOLD_QUIZ: quiz grading + threshold jackpot (RoundFinalization)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import AlreadyResolved, InvalidInput, PrematureResolution
from .knockout import advancing_team
from .prize_pool import JackpotOutcome, PrizePoolAccumulator, grade_quiz_answers
from .schedule import round_quota
from .scoring import ScoringRule, describe
from .standings import aggregate, standing_payload, teams_from_matches
from .types import (
    ChangeSetPayload,
    GroupStanding,
    JackpotState,
    MatchOutcome,
    ParticipantTicket,
    Prediction,
    QuizAnswer,
    QuizQuestion,
    RoundFormat,
    RoundQuota,
    WinCondition,
)
from .validation import InputValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecisiveRound:
    """Jackpot data for a SINGLE_DECISIVE_MATCH round."""

    designated_team_id: str
    jackpot: JackpotState


@dataclass(frozen=True)
class MatchResolution:
    """Everything needed to resolve one finished match."""

    # The outcome as entered now (finished=True, both scores set).
    outcome: MatchOutcome
    # Predictions bound to this match.
    predictions: Sequence[Prediction] = ()
    # Finished flag as currently persisted; True means the match was already resolved.
    stored_finished: bool = False
    # ticket_id -> all predictions of that ticket, for the full resum.
    ticket_predictions: Mapping[str, Sequence[Prediction]] = field(default_factory=dict)
    # GROUP_STAGE only: registered teams (registration order) and the group's matches.
    group_teams: Sequence[str] = ()
    group_matches: Sequence[MatchOutcome] = ()
    # SINGLE_DECISIVE_MATCH only.
    decisive: Optional[DecisiveRound] = None


@dataclass(frozen=True)
class RoundFinalization:
    """Everything needed to finalize one quiz round."""

    jackpot: JackpotState
    questions: Sequence[QuizQuestion]
    answers: Sequence[QuizAnswer]
    # Running totals per ticket before this round.
    ticket_totals: Mapping[str, int] = field(default_factory=dict)
    # False while any question of the round is still open.
    finished: bool = True

    @property
    def subject_id(self) -> str:
        return f"{self.jackpot.competition_id}:{self.jackpot.round_number}"


ResolutionRequest = Union[MatchResolution, RoundFinalization]


@dataclass(frozen=True)
class PointDelta:
    ticket_id: str
    points: int
    # None for quiz rounds, where points are per ticket rather than per prediction.
    prediction_id: Optional[str] = None
    rule: Optional[ScoringRule] = None


@dataclass(frozen=True)
class ChangeSet:
    """Everything a caller must persist after one resolution."""

    subject_id: str
    round_format: RoundFormat
    point_deltas: Tuple[PointDelta, ...] = ()
    ticket_totals: Dict[str, int] = field(default_factory=dict)
    # Bound predictions with points_earned filled in.
    scored_predictions: Tuple[Prediction, ...] = ()
    finished_outcome: Optional[MatchOutcome] = None
    group_id: Optional[str] = None
    standings: Tuple[GroupStanding, ...] = ()
    advancing_team_id: Optional[str] = None
    jackpot: Optional[JackpotOutcome] = None
    next_jackpot: Optional[JackpotState] = None
    prize_per_winner: Optional[Decimal] = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.point_deltas or self.standings or self.jackpot or self.advancing_team_id
        )

    def updated_tickets(
        self, tickets: Mapping[str, ParticipantTicket]
    ) -> list[ParticipantTicket]:
        """Copies of the affected tickets carrying their recomputed totals."""
        return [
            replace(tickets[ticket_id], total_points=total)
            for ticket_id, total in self.ticket_totals.items()
            if ticket_id in tickets
        ]

    def to_payload(self) -> ChangeSetPayload:
        payload: ChangeSetPayload = {
            "subjectId": self.subject_id,
            "roundFormat": self.round_format.value,
            "pointDeltas": [
                {
                    "ticketId": delta.ticket_id,
                    "predictionId": delta.prediction_id,
                    "points": delta.points,
                    "rule": delta.rule.value if delta.rule else None,
                }
                for delta in self.point_deltas
            ],
            "ticketTotals": dict(self.ticket_totals),
        }
        if self.round_format == RoundFormat.GROUP_STAGE:
            payload["groupId"] = self.group_id
            payload["standings"] = [standing_payload(row) for row in self.standings]
        if self.round_format == RoundFormat.KNOCKOUT:
            payload["advancingTeamId"] = self.advancing_team_id
        if self.jackpot is not None:
            payload["jackpot"] = _jackpot_payload(self.jackpot.state)
            payload["nextJackpot"] = (
                _jackpot_payload(self.next_jackpot) if self.next_jackpot else None
            )
            payload["winners"] = list(self.jackpot.winners)
            payload["accumulateReason"] = (
                self.jackpot.reason.value if self.jackpot.reason else None
            )
            payload["prizePerWinner"] = (
                str(self.prize_per_winner) if self.prize_per_winner is not None else None
            )
        return payload


def _jackpot_payload(state: JackpotState) -> Dict[str, object]:
    return {
        "competitionId": state.competition_id,
        "roundNumber": state.round_number,
        "accumulatedAmount": str(state.accumulated_amount),
        "previousAccumulated": str(state.previous_accumulated),
        "resolved": state.resolved,
        "closed": state.closed,
    }


class CompetitionResolver:
    """Stateless orchestrator; safe to share between request handlers."""

    def __init__(self, config: EngineConfig = DEFAULT_CONFIG):
        self.config = config

    def resolve(self, request: ResolutionRequest) -> ChangeSet:
        if isinstance(request, MatchResolution):
            return self._resolve_match(request)
        if isinstance(request, RoundFinalization):
            return self._finalize_round(request)
        raise InvalidInput(f"cannot resolve {type(request).__name__}")

    def round_quota(self, group_id: str, registered_team_count: int) -> RoundQuota:
        """Schedule size for a group, applying the configured minimum team floor."""
        return round_quota(group_id, registered_team_count, self.config.min_team_floor)

    # ---- matches ----

    def _validate_match(self, request: MatchResolution) -> tuple[MatchOutcome, list[Prediction]]:
        outcome = InputValidator.outcome(request.outcome)
        if request.stored_finished:
            raise AlreadyResolved(f"match {outcome.match_id} was already resolved")
        if not outcome.finished:
            raise PrematureResolution(f"match {outcome.match_id} is not finished")

        predictions = [InputValidator.prediction(p) for p in request.predictions]
        for prediction in predictions:
            if prediction.match_id != outcome.match_id:
                raise InvalidInput(
                    f"prediction {prediction.prediction_id} belongs to match {prediction.match_id}"
                )
            if prediction.scored:
                raise AlreadyResolved(
                    f"prediction {prediction.prediction_id} was already scored"
                )

        fmt = outcome.round_format
        if fmt == RoundFormat.SINGLE_DECISIVE_MATCH:
            if request.decisive is None:
                raise InvalidInput("SINGLE_DECISIVE_MATCH requires jackpot data")
        elif request.decisive is not None:
            raise InvalidInput(f"{fmt.value} matches do not carry a jackpot")
        else:
            missing = sorted(
                {p.ticket_id for p in predictions} - set(request.ticket_predictions)
            )
            if missing:
                raise InvalidInput(f"missing prediction history for tickets {missing}")
            for ticket_id, history in request.ticket_predictions.items():
                for past in history:
                    if past.ticket_id != ticket_id:
                        raise InvalidInput(
                            f"prediction {past.prediction_id} of ticket {past.ticket_id} "
                            f"listed in the history of ticket {ticket_id}"
                        )

        if fmt == RoundFormat.GROUP_STAGE:
            for match in request.group_matches:
                if match.group_id is not None and match.group_id != outcome.group_id:
                    raise InvalidInput(
                        f"match {match.match_id} belongs to group {match.group_id}"
                    )
        return outcome, predictions

    def _score_predictions(
        self, outcome: MatchOutcome, predictions: Sequence[Prediction]
    ) -> tuple[list[PointDelta], list[Prediction]]:
        deltas: list[PointDelta] = []
        scored: list[Prediction] = []
        for prediction in predictions:
            breakdown = describe(
                prediction.predicted_home,
                prediction.predicted_away,
                outcome.home_score,
                outcome.away_score,
                self.config.ladder,
            )
            deltas.append(
                PointDelta(
                    ticket_id=prediction.ticket_id,
                    points=breakdown.points,
                    prediction_id=prediction.prediction_id,
                    rule=breakdown.rule,
                )
            )
            scored.append(
                Prediction(
                    prediction_id=prediction.prediction_id,
                    match_id=prediction.match_id,
                    ticket_id=prediction.ticket_id,
                    predicted_home=prediction.predicted_home,
                    predicted_away=prediction.predicted_away,
                    points_earned=breakdown.points,
                )
            )
        return deltas, scored

    @staticmethod
    def _resum_totals(
        scored: Sequence[Prediction],
        ticket_predictions: Mapping[str, Sequence[Prediction]],
    ) -> dict[str, int]:
        fresh = {p.prediction_id: p for p in scored}
        totals: dict[str, int] = {}
        for ticket_id in dict.fromkeys(p.ticket_id for p in scored):
            history = {p.prediction_id: p for p in ticket_predictions[ticket_id]}
            history.update(
                (pid, p) for pid, p in fresh.items() if p.ticket_id == ticket_id
            )
            totals[ticket_id] = sum(p.points_earned or 0 for p in history.values())
        return totals

    def _group_standings(
        self, outcome: MatchOutcome, request: MatchResolution
    ) -> list[GroupStanding]:
        matches = [m for m in request.group_matches if m.match_id != outcome.match_id]
        matches.append(outcome)
        teams = list(request.group_teams) or teams_from_matches(matches)
        return aggregate(teams, matches, self.config.classified_per_group)

    def _resolve_match(self, request: MatchResolution) -> ChangeSet:
        outcome, predictions = self._validate_match(request)
        fmt = outcome.round_format

        if fmt == RoundFormat.SINGLE_DECISIVE_MATCH:
            decisive = request.decisive
            pool = PrizePoolAccumulator(WinCondition.EXACT_SCORE, self.config)
            settled = pool.resolve_decisive_match(
                decisive.jackpot, outcome, decisive.designated_team_id, predictions
            )
            return ChangeSet(
                subject_id=outcome.match_id,
                round_format=fmt,
                finished_outcome=outcome,
                jackpot=settled,
                next_jackpot=pool.next_round(settled.state),
                prize_per_winner=pool.payout(settled),
            )

        deltas, scored = self._score_predictions(outcome, predictions)
        totals = self._resum_totals(scored, request.ticket_predictions)

        standings: list[GroupStanding] = []
        if fmt == RoundFormat.GROUP_STAGE:
            standings = self._group_standings(outcome, request)

        winner = advancing_team(outcome) if fmt == RoundFormat.KNOCKOUT else None

        logger.info(
            f"Resolved match {outcome.match_id} ({fmt.value}) "
            f"{outcome.home_score}-{outcome.away_score}: "
            f"{len(deltas)} prediction(s) scored"
        )
        return ChangeSet(
            subject_id=outcome.match_id,
            round_format=fmt,
            point_deltas=tuple(deltas),
            ticket_totals=totals,
            scored_predictions=tuple(scored),
            finished_outcome=outcome,
            group_id=outcome.group_id if fmt == RoundFormat.GROUP_STAGE else None,
            standings=tuple(standings),
            advancing_team_id=winner,
        )

    # ---- quiz rounds ----

    def _finalize_round(self, request: RoundFinalization) -> ChangeSet:
        if request.jackpot.closed:
            raise AlreadyResolved(
                f"quiz round {request.subject_id} was already finalized"
            )
        if not request.finished:
            raise PrematureResolution(f"quiz round {request.subject_id} is not finished")
        answers = [InputValidator.quiz_answer(a) for a in request.answers]
        round_points = grade_quiz_answers(request.questions, answers)

        pool = PrizePoolAccumulator(WinCondition.THRESHOLD, self.config)
        settled = pool.resolve_quiz_round(
            request.jackpot, request.ticket_totals, round_points, request.finished
        )
        deltas = tuple(
            PointDelta(ticket_id=ticket_id, points=points)
            for ticket_id, points in round_points.items()
        )
        return ChangeSet(
            subject_id=request.subject_id,
            round_format=RoundFormat.THRESHOLD_QUIZ,
            point_deltas=deltas,
            ticket_totals={t: settled.totals[t] for t in round_points},
            jackpot=settled,
            next_jackpot=pool.next_round(settled.state),
            prize_per_winner=pool.payout(settled),
        )
