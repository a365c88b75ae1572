from .config import DEFAULT_CONFIG, EngineConfig, ScoringLadder
from .errors import AlreadyResolved, InvalidInput, PrematureResolution, ResolutionError
from .knockout import Matchup, Qualifier, advancing_team, draw_matchups, qualifiers
from .prize_pool import (
    JackpotOutcome,
    PrizePoolAccumulator,
    estimated_prize,
    grade_quiz_answers,
    next_round,
    open_round,
    prize_per_winner,
    resolve_exact_score_round,
    resolve_threshold_round,
    round_total_prize,
    threshold_winners,
)
from .resolver import (
    ChangeSet,
    CompetitionResolver,
    DecisiveRound,
    MatchResolution,
    PointDelta,
    RoundFinalization,
)
from .schedule import matches_per_round, round_quota, round_quotas_for_groups, total_rounds
from .scoring import PointsBreakdown, ScoringRule, describe, match_result, score, scoring_rules
from .standings import aggregate, standing_payload, teams_from_matches
from .store import CompetitionStore, finalize_round_from_store, resolve_from_store
from .types import (
    AccumulateReason,
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

__all__ = [
    "DEFAULT_CONFIG",
    "EngineConfig",
    "ScoringLadder",
    "AlreadyResolved",
    "InvalidInput",
    "PrematureResolution",
    "ResolutionError",
    "Matchup",
    "Qualifier",
    "advancing_team",
    "draw_matchups",
    "qualifiers",
    "JackpotOutcome",
    "PrizePoolAccumulator",
    "estimated_prize",
    "grade_quiz_answers",
    "next_round",
    "open_round",
    "prize_per_winner",
    "resolve_exact_score_round",
    "resolve_threshold_round",
    "round_total_prize",
    "threshold_winners",
    "ChangeSet",
    "CompetitionResolver",
    "DecisiveRound",
    "MatchResolution",
    "PointDelta",
    "RoundFinalization",
    "matches_per_round",
    "round_quota",
    "round_quotas_for_groups",
    "total_rounds",
    "PointsBreakdown",
    "ScoringRule",
    "describe",
    "match_result",
    "score",
    "scoring_rules",
    "aggregate",
    "standing_payload",
    "teams_from_matches",
    "CompetitionStore",
    "finalize_round_from_store",
    "resolve_from_store",
    "AccumulateReason",
    "GroupStanding",
    "JackpotState",
    "MatchOutcome",
    "ParticipantTicket",
    "Prediction",
    "QuizAnswer",
    "QuizQuestion",
    "RoundFormat",
    "RoundQuota",
    "WinCondition",
    "InputValidator",
]
