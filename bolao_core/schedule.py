"""Round-robin schedule sizing.

The sizing functions take the team count as given. Applying a minimum team
floor is the caller's job; ``round_quota`` is that caller-side helper.
"""
from __future__ import annotations

import logging
from typing import Iterable, Mapping

from .errors import InvalidInput
from .standings import teams_from_matches
from .types import MatchOutcome, RoundQuota

logger = logging.getLogger(__name__)


def _require_team_count(team_count: int) -> None:
    if isinstance(team_count, bool) or not isinstance(team_count, int) or team_count <= 0:
        raise InvalidInput(f"team count must be a positive int, got {team_count!r}")


def matches_per_round(team_count: int) -> int:
    _require_team_count(team_count)
    if team_count <= 2:
        return 1
    return team_count // 2


def total_rounds(team_count: int) -> int:
    """Rounds for every team to meet every other team once."""
    _require_team_count(team_count)
    return max(team_count - 1, 1)


def round_quota(group_id: str, registered_team_count: int, min_teams: int) -> RoundQuota:
    """Size a group, raising the registered count to ``min_teams`` first."""
    if registered_team_count < 0:
        raise InvalidInput("registered team count cannot be negative")
    _require_team_count(min_teams)
    team_count = max(registered_team_count, min_teams)
    quota = RoundQuota(
        group_id=group_id,
        team_count=team_count,
        matches_per_round=matches_per_round(team_count),
        total_rounds_needed=total_rounds(team_count),
    )
    logger.debug(f"Round quota for group {group_id}: {quota}")
    return quota


def round_quotas_for_groups(
    matches_by_group: Mapping[str, Iterable[MatchOutcome]],
    min_teams: int,
) -> dict[str, RoundQuota]:
    """Quota per group, counting every team that appears in any fixture."""
    return {
        group_id: round_quota(group_id, len(teams_from_matches(matches)), min_teams)
        for group_id, matches in sorted(matches_by_group.items())
    }
