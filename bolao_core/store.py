"""Persistence collaborator contract and load-then-resolve helpers.

The engine only ever calls ``load_*``. The ``save_*`` methods belong to the
same contract because callers persist a ChangeSet through them.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from .resolver import (
    ChangeSet,
    CompetitionResolver,
    DecisiveRound,
    MatchResolution,
    RoundFinalization,
)
from .types import (
    GroupStanding,
    JackpotState,
    MatchOutcome,
    Prediction,
    QuizAnswer,
    QuizQuestion,
    RoundFormat,
)

logger = logging.getLogger(__name__)


class CompetitionStore(Protocol):
    def load_match(self, match_id: str) -> Optional[MatchOutcome]:
        ...

    def load_finished_matches(self, group_id: str) -> Sequence[MatchOutcome]:
        ...

    def load_group_teams(self, group_id: str) -> Sequence[str]:
        ...

    def load_predictions(self, match_id: str) -> Sequence[Prediction]:
        ...

    def load_ticket_predictions(self, ticket_id: str) -> Sequence[Prediction]:
        ...

    def load_ticket_total(self, ticket_id: str) -> int:
        ...

    def load_decisive_round(self, match_id: str) -> Optional[DecisiveRound]:
        ...

    def save_outcome(self, outcome: MatchOutcome) -> None:
        ...

    def save_predictions(self, predictions: Sequence[Prediction]) -> None:
        ...

    def save_ticket_total(self, ticket_id: str, total: int) -> None:
        ...

    def save_standings(self, group_id: str, standings: Sequence[GroupStanding]) -> None:
        ...

    def save_jackpot(self, state: JackpotState) -> None:
        ...


def resolve_from_store(
    resolver: CompetitionResolver,
    store: CompetitionStore,
    outcome: MatchOutcome,
) -> ChangeSet:
    """Load everything ``outcome`` needs and resolve it; nothing is saved."""
    stored = store.load_match(outcome.match_id)
    predictions = list(store.load_predictions(outcome.match_id))

    decisive = None
    ticket_predictions: dict[str, Sequence[Prediction]] = {}
    if outcome.round_format == RoundFormat.SINGLE_DECISIVE_MATCH:
        decisive = store.load_decisive_round(outcome.match_id)
    else:
        for ticket_id in dict.fromkeys(p.ticket_id for p in predictions):
            ticket_predictions[ticket_id] = list(store.load_ticket_predictions(ticket_id))

    group_teams: Sequence[str] = ()
    group_matches: Sequence[MatchOutcome] = ()
    if outcome.round_format == RoundFormat.GROUP_STAGE and outcome.group_id:
        group_teams = list(store.load_group_teams(outcome.group_id))
        group_matches = list(store.load_finished_matches(outcome.group_id))

    logger.debug(
        f"Loaded match {outcome.match_id}: {len(predictions)} prediction(s), "
        f"{len(group_matches)} group match(es)"
    )
    return resolver.resolve(
        MatchResolution(
            outcome=outcome,
            predictions=predictions,
            stored_finished=bool(stored and stored.finished),
            ticket_predictions=ticket_predictions,
            group_teams=group_teams,
            group_matches=group_matches,
            decisive=decisive,
        )
    )


def finalize_round_from_store(
    resolver: CompetitionResolver,
    store: CompetitionStore,
    jackpot: JackpotState,
    questions: Sequence[QuizQuestion],
    answers: Sequence[QuizAnswer],
    finished: bool = True,
) -> ChangeSet:
    """Load running totals for every answering ticket and finalize the quiz round."""
    ticket_totals = {
        ticket_id: store.load_ticket_total(ticket_id)
        for ticket_id in dict.fromkeys(a.ticket_id for a in answers)
    }
    return resolver.resolve(
        RoundFinalization(
            jackpot=jackpot,
            questions=questions,
            answers=answers,
            ticket_totals=ticket_totals,
            finished=finished,
        )
    )
