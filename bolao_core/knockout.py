"""Knockout-phase helpers: match winners, group qualifiers and the qualifier draw."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .errors import InvalidInput, PrematureResolution
from .types import GroupStanding, MatchOutcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Qualifier:
    group_id: str
    position: int
    team_id: str


@dataclass(frozen=True)
class Matchup:
    home: Qualifier
    away: Qualifier


def advancing_team(outcome: MatchOutcome) -> Optional[str]:
    """Winner of a finished knockout match; None when the score is level."""
    if not outcome.finished or outcome.home_score is None or outcome.away_score is None:
        raise PrematureResolution(f"match {outcome.match_id} is not finished")
    if outcome.home_score > outcome.away_score:
        return outcome.home_team_id
    if outcome.away_score > outcome.home_score:
        return outcome.away_team_id
    return None


def qualifiers(standings_by_group: Mapping[str, Sequence[GroupStanding]]) -> list[Qualifier]:
    """Classified teams of every group, by group id then position."""
    found: list[Qualifier] = []
    for group_id in sorted(standings_by_group):
        for row in standings_by_group[group_id]:
            if row.classified:
                found.append(Qualifier(group_id=group_id, position=row.position, team_id=row.team_id))
    return found


def _pair_remaining(
    remaining: list[Qualifier], avoid_same_group: bool
) -> list[Matchup]:
    matchups: list[Matchup] = []
    i = 0
    while i + 1 < len(remaining):
        home = remaining[i]
        if avoid_same_group and remaining[i + 1].group_id == home.group_id:
            for j in range(i + 2, len(remaining)):
                if remaining[j].group_id != home.group_id:
                    remaining[i + 1], remaining[j] = remaining[j], remaining[i + 1]
                    break
        matchups.append(Matchup(home=home, away=remaining[i + 1]))
        i += 2
    return matchups


def draw_matchups(
    teams: Sequence[Qualifier],
    *,
    cross_groups: bool = True,
    avoid_same_group: bool = True,
    rng: random.Random | None = None,
) -> list[Matchup]:
    """
    Pair qualifiers for the first knockout round.

    Group winners meet runners-up of another group (1A x 2B) when
    ``cross_groups``; everyone left is paired in order, swapping partners to
    avoid same-group ties when possible. Pass a seeded ``rng`` to shuffle;
    without one the draw is fully deterministic. An odd team out is left
    unpaired.
    """
    keys = [(team.group_id, team.position, team.team_id) for team in teams]
    if len(set(keys)) != len(keys):
        raise InvalidInput("duplicate qualifier in draw")

    def shuffled(items: list[Qualifier]) -> list[Qualifier]:
        items = list(items)
        if rng is not None:
            rng.shuffle(items)
        return items

    firsts = [team for team in teams if team.position == 1]
    seconds = [team for team in teams if team.position == 2]
    others = [team for team in teams if team.position > 2]

    if not firsts and not seconds:
        return _pair_remaining(shuffled(list(teams)), avoid_same_group=False)

    matchups: list[Matchup] = []
    used: set[tuple[str, int, str]] = set()

    def key(team: Qualifier) -> tuple[str, int, str]:
        return (team.group_id, team.position, team.team_id)

    if cross_groups and firsts and seconds:
        runner_ups = shuffled(seconds)
        for first in shuffled(firsts):
            opponent = None
            if avoid_same_group:
                opponent = next(
                    (s for s in runner_ups if s.group_id != first.group_id and key(s) not in used),
                    None,
                )
            if opponent is None:
                opponent = next((s for s in runner_ups if key(s) not in used), None)
            if opponent is not None:
                matchups.append(Matchup(home=first, away=opponent))
                used.add(key(first))
                used.add(key(opponent))

    remaining = [team for team in firsts + seconds + others if key(team) not in used]
    matchups.extend(_pair_remaining(shuffled(remaining), avoid_same_group))
    logger.debug(
        f"Knockout draw: {[(m.home.team_id, m.away.team_id) for m in matchups]}"
    )
    return matchups
