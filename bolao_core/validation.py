"""
Input validation schemas using Pydantic v2
Validates match outcomes, predictions and quiz answers before resolution
"""

import logging
from typing import Optional, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import InvalidInput
from .types import MatchOutcome, Prediction, QuizAnswer, RoundFormat

logger = logging.getLogger(__name__)

# Generous upper bound for a football/futsal scoreline
MAX_GOALS = 999

# ==================== VALIDATOR FUNCTIONS ====================


def _strip_identifier(v: str) -> str:
    v = v.strip()
    if len(v) == 0:
        raise ValueError("identifier cannot be empty")
    return v


class ValidatedScoreline(BaseModel):
    """A pair of non-negative goal counts"""

    home: StrictInt = Field(..., ge=0, le=MAX_GOALS, description="Home goals")
    away: StrictInt = Field(..., ge=0, le=MAX_GOALS, description="Away goals")

    model_config = ConfigDict(frozen=True)


class ValidatedOutcome(BaseModel):
    """Match outcome as entered by an administrator"""

    match_id: str = Field(..., min_length=1, max_length=64)
    home_team_id: str = Field(..., min_length=1, max_length=64)
    away_team_id: str = Field(..., min_length=1, max_length=64)
    home_score: Optional[StrictInt] = Field(None, ge=0, le=MAX_GOALS)
    away_score: Optional[StrictInt] = Field(None, ge=0, le=MAX_GOALS)
    finished: StrictBool = False
    group_id: Optional[str] = Field(None, min_length=1, max_length=64)
    round_format: RoundFormat = RoundFormat.SCORE_PREDICTION

    @field_validator("match_id", "home_team_id", "away_team_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        return _strip_identifier(v)

    @model_validator(mode="after")
    def validate_outcome_fields(self) -> Self:
        """Validate cross-field rules"""
        if self.home_team_id == self.away_team_id:
            raise ValueError("a team cannot play itself")

        if self.finished and (self.home_score is None or self.away_score is None):
            raise ValueError("a finished match requires both scores")

        if (self.home_score is None) != (self.away_score is None):
            raise ValueError("scores must be entered together")

        if self.round_format == RoundFormat.GROUP_STAGE and self.group_id is None:
            raise ValueError("GROUP_STAGE matches require group_id")

        return self

    def to_outcome(self) -> MatchOutcome:
        return MatchOutcome(
            match_id=self.match_id,
            home_team_id=self.home_team_id,
            away_team_id=self.away_team_id,
            home_score=self.home_score,
            away_score=self.away_score,
            finished=self.finished,
            group_id=self.group_id,
            round_format=self.round_format,
        )


class ValidatedPrediction(BaseModel):
    prediction_id: str = Field(..., min_length=1, max_length=64)
    match_id: str = Field(..., min_length=1, max_length=64)
    ticket_id: str = Field(..., min_length=1, max_length=64)
    predicted_home: StrictInt = Field(..., ge=0, le=MAX_GOALS)
    predicted_away: StrictInt = Field(..., ge=0, le=MAX_GOALS)
    points_earned: Optional[StrictInt] = Field(None, ge=0)

    def to_prediction(self) -> Prediction:
        return Prediction(
            prediction_id=self.prediction_id,
            match_id=self.match_id,
            ticket_id=self.ticket_id,
            predicted_home=self.predicted_home,
            predicted_away=self.predicted_away,
            points_earned=self.points_earned,
        )


class ValidatedQuizAnswer(BaseModel):
    ticket_id: str = Field(..., min_length=1, max_length=64)
    question_id: str = Field(..., min_length=1, max_length=64)
    selected_answer: str = Field(..., min_length=1, max_length=255)

    @field_validator("selected_answer")
    @classmethod
    def validate_selected_answer(cls, v: str) -> str:
        # Answer keys are compared verbatim; only surrounding whitespace is dropped.
        return _strip_identifier(v)


class InputValidator:
    """Converts dataclass inputs through the schemas above"""

    @staticmethod
    def _fields(obj: object) -> dict:
        return {name: getattr(obj, name) for name in obj.__dataclass_fields__}

    @staticmethod
    def outcome(outcome: MatchOutcome) -> MatchOutcome:
        """
        Validate a match outcome

        Raises:
            InvalidInput: If validation fails
        """
        try:
            return ValidatedOutcome(**InputValidator._fields(outcome)).to_outcome()
        except ValidationError as e:
            logger.warning(f"Outcome validation failed: {e}")
            raise InvalidInput(f"Invalid outcome: {e}") from e

    @staticmethod
    def prediction(prediction: Prediction) -> Prediction:
        try:
            return ValidatedPrediction(
                **InputValidator._fields(prediction)
            ).to_prediction()
        except ValidationError as e:
            logger.warning(f"Prediction validation failed: {e}")
            raise InvalidInput(f"Invalid prediction: {e}") from e

    @staticmethod
    def quiz_answer(answer: QuizAnswer) -> QuizAnswer:
        try:
            validated = ValidatedQuizAnswer(**InputValidator._fields(answer))
        except ValidationError as e:
            logger.warning(f"Quiz answer validation failed: {e}")
            raise InvalidInput(f"Invalid quiz answer: {e}") from e
        return QuizAnswer(
            ticket_id=validated.ticket_id,
            question_id=validated.question_id,
            selected_answer=validated.selected_answer,
        )

    @staticmethod
    def scoreline(home: int, away: int) -> tuple[int, int]:
        try:
            validated = ValidatedScoreline(home=home, away=away)
        except ValidationError as e:
            logger.warning(f"Scoreline validation failed: {e}")
            raise InvalidInput(f"Invalid scoreline: {e}") from e
        return validated.home, validated.away


# ==================== EXPORT ====================

__all__ = [
    "ValidatedScoreline",
    "ValidatedOutcome",
    "ValidatedPrediction",
    "ValidatedQuizAnswer",
    "InputValidator",
]
