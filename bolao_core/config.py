"""
Engine configuration using Pydantic v2
Every tunable constant lives here and is injected at engine construction
"""

import logging
from decimal import Decimal
from typing import Any, Mapping, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .errors import InvalidInput

logger = logging.getLogger(__name__)


class ScoringLadder(BaseModel):
    """Points awarded per prediction accuracy tier"""

    exact: int = Field(5, ge=0, description="Exact scoreline")
    goal_difference: int = Field(
        3, ge=0, description="Right winner/draw and right goal difference"
    )
    winner: int = Field(1, ge=0, description="Right winner/draw only")
    miss: int = Field(0, ge=0, description="Wrong winner/draw")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_monotonic(self) -> Self:
        """A more accurate prediction must never earn fewer points"""
        if not (self.exact >= self.goal_difference >= self.winner >= self.miss):
            raise ValueError(
                "ladder must satisfy exact >= goal_difference >= winner >= miss, "
                f"got {self.exact}/{self.goal_difference}/{self.winner}/{self.miss}"
            )
        return self


class EngineConfig(BaseModel):
    """Constants shared by every competition format"""

    ladder: ScoringLadder = Field(default_factory=ScoringLadder)

    # Quiz running total that wins the pool
    jackpot_threshold: int = Field(10, ge=1, le=1000)

    # Caller-side floor applied before sizing a group schedule
    min_team_floor: int = Field(4, ge=1, le=64)

    # Places per group flagged as classified for the knockout phase
    classified_per_group: int = Field(2, ge=0, le=64)

    # Whether a draw by the designated team can pay out an exact-score jackpot
    allow_draws: bool = False

    # Percent kept by the organizer before a pool is split among winners
    admin_fee_percent: Decimal = Field(Decimal("0"), ge=0, le=100)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """
        Validate a plain mapping (e.g. loaded from settings)

        Raises:
            InvalidInput: If validation fails
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            logger.warning(f"Engine config validation failed: {e}")
            raise InvalidInput(f"Invalid engine config: {e}") from e


DEFAULT_LADDER = ScoringLadder()
DEFAULT_CONFIG = EngineConfig()


__all__ = [
    "ScoringLadder",
    "EngineConfig",
    "DEFAULT_LADDER",
    "DEFAULT_CONFIG",
]
