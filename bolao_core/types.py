"""Type definitions for matches, predictions, tickets and derived tables."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, TypedDict


class RoundFormat(str, Enum):
    """Explicit format tag carried by every round (no name-prefix guessing)."""

    SCORE_PREDICTION = "score_prediction"
    GROUP_STAGE = "group_stage"
    KNOCKOUT = "knockout"
    THRESHOLD_QUIZ = "threshold_quiz"
    SINGLE_DECISIVE_MATCH = "single_decisive_match"


class WinCondition(str, Enum):
    EXACT_SCORE = "exact_score"
    THRESHOLD = "threshold"


class AccumulateReason(str, Enum):
    """Why a jackpot round carried its pool over instead of paying out."""

    TEAM_LOST = "team_lost"
    DRAW_NOT_ALLOWED = "draw_not_allowed"
    NO_WINNERS = "no_winners"


@dataclass(frozen=True)
class MatchOutcome:
    match_id: str
    home_team_id: str
    away_team_id: str
    # Both scores are None until the result is entered.
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    finished: bool = False
    group_id: Optional[str] = None
    round_format: RoundFormat = RoundFormat.SCORE_PREDICTION


@dataclass(frozen=True)
class Prediction:
    prediction_id: str
    match_id: str
    ticket_id: str
    predicted_home: int
    predicted_away: int
    # None until the owning match is finished, then set exactly once.
    points_earned: Optional[int] = None

    @property
    def scored(self) -> bool:
        return self.points_earned is not None


@dataclass(frozen=True)
class ParticipantTicket:
    ticket_id: str
    participant_id: str
    total_points: int = 0


@dataclass(frozen=True)
class GroupStanding:
    team_id: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    percentage: int
    position: int
    # Inside the qualifying places for the next phase.
    classified: bool = False


@dataclass(frozen=True)
class RoundQuota:
    group_id: str
    team_count: int
    matches_per_round: int
    total_rounds_needed: int


@dataclass(frozen=True)
class JackpotState:
    competition_id: str
    round_number: int
    # Money paid into this round (entry fee x active tickets).
    accumulated_amount: Decimal = Decimal("0")
    # Money inherited from earlier rounds that had no winner.
    previous_accumulated: Decimal = Decimal("0")
    # True once somebody won this round's pool.
    resolved: bool = False
    # True once the deciding outcome was applied, whether or not it paid out.
    closed: bool = False

    @property
    def pool_total(self) -> Decimal:
        return self.accumulated_amount + self.previous_accumulated


@dataclass(frozen=True)
class QuizQuestion:
    question_id: str
    # None until the administrator sets the answer key.
    correct_answer: Optional[str] = None


@dataclass(frozen=True)
class QuizAnswer:
    ticket_id: str
    question_id: str
    selected_answer: str


class StandingPayload(TypedDict):
    teamId: str
    played: int
    won: int
    drawn: int
    lost: int
    goalsFor: int
    goalsAgainst: int
    goalDifference: int
    points: int
    percentage: int
    position: int
    classified: bool


class ChangeSetPayload(TypedDict, total=False):
    """Plain-dict rendering of a ChangeSet handed to persistence/notification callers."""

    # Match or quiz round the change-set belongs to
    subjectId: str
    roundFormat: str

    # Per-prediction point awards
    pointDeltas: List[Dict[str, object]]
    # ticketId -> recomputed total
    ticketTotals: Dict[str, int]

    # GROUP_STAGE only
    groupId: Optional[str]
    standings: List[StandingPayload]

    # KNOCKOUT only
    advancingTeamId: Optional[str]

    # Jackpot-governed rounds only
    jackpot: Optional[Dict[str, object]]
    nextJackpot: Optional[Dict[str, object]]
    winners: List[str]
    accumulateReason: Optional[str]
    # Decimal rendered as a string, "0" when the pool carried over
    prizePerWinner: Optional[str]
