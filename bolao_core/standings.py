"""Group-stage table engine.

Single source of truth for group standings:
- 3 points per win, 1 per draw.
- Order: points, then goal difference, then goals scored (all descending).
- Ties surviving all three keys keep team registration order.
- Teams without finished matches are still listed with zeroed counters.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .errors import InvalidInput
from .types import GroupStanding, MatchOutcome, StandingPayload

logger = logging.getLogger(__name__)

WIN_POINTS = 3
DRAW_POINTS = 1


@dataclass
class _TeamTally:
    team_id: str
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def points(self) -> int:
        return self.won * WIN_POINTS + self.drawn * DRAW_POINTS

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def record(self, scored: int, conceded: int) -> None:
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.won += 1
        elif scored < conceded:
            self.lost += 1
        else:
            self.drawn += 1


def _percentage(points: int, played: int) -> int:
    # Half-up rounding of points / (played * 3) * 100, in integers only.
    if played == 0:
        return 0
    available = played * WIN_POINTS
    return (2 * points * 100 + available) // (2 * available)


def _sort_key(tally: _TeamTally) -> tuple[int, int, int]:
    return (-tally.points, -tally.goal_difference, -tally.goals_for)


def _ordered_team_ids(teams: Iterable[str]) -> list[str]:
    if isinstance(teams, (set, frozenset)):
        # Unordered input has no registration order; fall back to id order.
        teams = sorted(teams)
    seen: dict[str, None] = {}
    for team_id in teams:
        if not isinstance(team_id, str) or not team_id:
            raise InvalidInput(f"invalid team id: {team_id!r}")
        seen.setdefault(team_id, None)
    return list(seen)


def _to_standing(tally: _TeamTally, position: int, classified_count: int) -> GroupStanding:
    return GroupStanding(
        team_id=tally.team_id,
        played=tally.played,
        won=tally.won,
        drawn=tally.drawn,
        lost=tally.lost,
        goals_for=tally.goals_for,
        goals_against=tally.goals_against,
        goal_difference=tally.goal_difference,
        points=tally.points,
        percentage=_percentage(tally.points, tally.played),
        position=position,
        classified=position <= classified_count,
    )


def aggregate(
    teams: Iterable[str],
    finished_matches: Sequence[MatchOutcome],
    classified_count: int = 0,
) -> list[GroupStanding]:
    """
    Compute the ordered standings table for one group.

    Args:
      teams: team ids in registration order (a set is ordered by id).
      finished_matches: group matches; entries with ``finished=False`` are ignored.
      classified_count: leading positions flagged as ``classified``.

    Raises:
      InvalidInput: empty team set, a match naming an unknown team,
        a team playing itself, or a finished match without a scoreline.
    """
    team_ids = _ordered_team_ids(teams)
    if not team_ids:
        raise InvalidInput("standings require at least one team")
    if classified_count < 0:
        raise InvalidInput("classified_count must be non-negative")

    tallies = {team_id: _TeamTally(team_id=team_id) for team_id in team_ids}

    for match in finished_matches:
        if not match.finished:
            continue
        home = tallies.get(match.home_team_id)
        away = tallies.get(match.away_team_id)
        if home is None or away is None:
            raise InvalidInput(
                f"match {match.match_id} names a team outside the group: "
                f"{match.home_team_id} x {match.away_team_id}"
            )
        if home is away:
            raise InvalidInput(f"match {match.match_id} has {match.home_team_id} playing itself")
        if match.home_score is None or match.away_score is None:
            raise InvalidInput(f"finished match {match.match_id} has no scoreline")
        if match.home_score < 0 or match.away_score < 0:
            raise InvalidInput(f"match {match.match_id} has a negative score")
        home.record(match.home_score, match.away_score)
        away.record(match.away_score, match.home_score)

    # list.sort is stable: ties keep registration order.
    ordered = sorted(tallies.values(), key=_sort_key)
    table = [
        _to_standing(tally, position, classified_count)
        for position, tally in enumerate(ordered, start=1)
    ]
    logger.debug(
        f"Standings computed for {len(table)} teams: "
        f"{[(row.team_id, row.points) for row in table]}"
    )
    return table


def teams_from_matches(matches: Iterable[MatchOutcome]) -> list[str]:
    """Team ids in first-appearance order, including unfinished fixtures."""
    seen: dict[str, None] = {}
    for match in matches:
        seen.setdefault(match.home_team_id, None)
        seen.setdefault(match.away_team_id, None)
    return list(seen)


def standing_payload(row: GroupStanding) -> StandingPayload:
    return {
        "teamId": row.team_id,
        "played": row.played,
        "won": row.won,
        "drawn": row.drawn,
        "lost": row.lost,
        "goalsFor": row.goals_for,
        "goalsAgainst": row.goals_against,
        "goalDifference": row.goal_difference,
        "points": row.points,
        "percentage": row.percentage,
        "position": row.position,
        "classified": row.classified,
    }
