from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal

import pytest

from bolao_core import (
    AlreadyResolved,
    CompetitionResolver,
    DecisiveRound,
    MatchOutcome,
    Prediction,
    QuizAnswer,
    QuizQuestion,
    RoundFormat,
    finalize_round_from_store,
    open_round,
    resolve_from_store,
)


@dataclass
class _MemoryStore:
    matches: dict[str, MatchOutcome] = field(default_factory=dict)
    predictions: list[Prediction] = field(default_factory=list)
    group_teams: dict[str, list[str]] = field(default_factory=dict)
    totals: dict[str, int] = field(default_factory=dict)
    decisive: dict[str, DecisiveRound] = field(default_factory=dict)
    saves: list[str] = field(default_factory=list)

    def load_match(self, match_id):
        return self.matches.get(match_id)

    def load_finished_matches(self, group_id):
        return [m for m in self.matches.values() if m.group_id == group_id and m.finished]

    def load_group_teams(self, group_id):
        return self.group_teams.get(group_id, [])

    def load_predictions(self, match_id):
        return [p for p in self.predictions if p.match_id == match_id]

    def load_ticket_predictions(self, ticket_id):
        return [p for p in self.predictions if p.ticket_id == ticket_id]

    def load_ticket_total(self, ticket_id):
        return self.totals.get(ticket_id, 0)

    def load_decisive_round(self, match_id):
        return self.decisive.get(match_id)

    def save_outcome(self, outcome):
        self.saves.append("outcome")
        self.matches[outcome.match_id] = outcome

    def save_predictions(self, predictions):
        self.saves.append("predictions")
        scored = {p.prediction_id: p for p in predictions}
        self.predictions = [scored.get(p.prediction_id, p) for p in self.predictions]

    def save_ticket_total(self, ticket_id, total):
        self.saves.append("ticket_total")
        self.totals[ticket_id] = total

    def save_standings(self, group_id, standings):
        self.saves.append("standings")

    def save_jackpot(self, state):
        self.saves.append("jackpot")


def _group_store():
    pending = MatchOutcome("g2", "A", "B", None, None, False, "G-A", RoundFormat.GROUP_STAGE)
    played = MatchOutcome("g1", "C", "D", 2, 2, True, "G-A", RoundFormat.GROUP_STAGE)
    return _MemoryStore(
        matches={"g1": played, "g2": pending},
        predictions=[
            Prediction("p1", "g1", "t1", 2, 2, 5),
            Prediction("p2", "g2", "t1", 1, 0),
            Prediction("p3", "g2", "t2", 0, 0),
        ],
        group_teams={"G-A": ["A", "B", "C", "D"]},
    )


def test_resolve_from_store_loads_but_never_saves():
    store = _group_store()
    entered = replace(store.matches["g2"], home_score=1, away_score=0, finished=True)
    changes = resolve_from_store(CompetitionResolver(), store, entered)
    assert store.saves == []
    assert changes.ticket_totals == {"t1": 10, "t2": 0}
    assert [row.team_id for row in changes.standings] == ["A", "C", "D", "B"]


def test_persisted_result_cannot_be_resolved_again():
    store = _group_store()
    entered = replace(store.matches["g2"], home_score=1, away_score=0, finished=True)
    resolver = CompetitionResolver()
    changes = resolve_from_store(resolver, store, entered)

    # Caller-side persistence.
    store.save_outcome(changes.finished_outcome)
    store.save_predictions(changes.scored_predictions)
    for ticket_id, total in changes.ticket_totals.items():
        store.save_ticket_total(ticket_id, total)

    with pytest.raises(AlreadyResolved):
        resolve_from_store(resolver, store, entered)
    assert store.totals == {"t1": 10, "t2": 0}


def test_resolve_from_store_settles_decisive_jackpot():
    jackpot = open_round("club", 1, Decimal("50"))
    store = _MemoryStore(
        matches={"tm": MatchOutcome("tm", "FLA", "VAS", None, None, False)},
        predictions=[Prediction("p1", "tm", "t1", 1, 0)],
        decisive={"tm": DecisiveRound("FLA", jackpot)},
    )
    entered = MatchOutcome("tm", "FLA", "VAS", 1, 0, True, None, RoundFormat.SINGLE_DECISIVE_MATCH)
    changes = resolve_from_store(CompetitionResolver(), store, entered)
    assert changes.jackpot.winners == ("t1",)
    assert store.saves == []


def test_finalize_round_from_store_uses_stored_totals():
    store = _MemoryStore(totals={"t1": 9})
    changes = finalize_round_from_store(
        CompetitionResolver(),
        store,
        open_round("quiz", 2, Decimal("30")),
        [QuizQuestion("q1", "B")],
        [QuizAnswer("t1", "q1", "B"), QuizAnswer("t2", "q1", "C")],
    )
    assert changes.ticket_totals == {"t1": 10, "t2": 0}
    assert changes.jackpot.winners == ("t1",)
