"""
Game rule configuration and validation.
"""

import os

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_SCORE_LIMIT, HAND_SIZE, MAX_PLAYERS, MIN_PLAYERS, TURN_TIMEOUT_SECONDS


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    score_limit: int = Field(
        default=DEFAULT_SCORE_LIMIT,
        ge=1,
        le=10000,
        description="Game ends once any player's total reaches this score"
    )
    min_players: int = Field(
        default=MIN_PLAYERS,
        ge=MIN_PLAYERS,
        le=MAX_PLAYERS,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=MAX_PLAYERS,
        ge=MIN_PLAYERS,
        le=MAX_PLAYERS,
        description="Maximum number of players allowed in a room"
    )
    hand_size: int = Field(
        default=HAND_SIZE,
        ge=1,
        le=HAND_SIZE,
        description="Cards dealt to each player per round"
    )
    turn_timeout: float = Field(
        default=TURN_TIMEOUT_SECONDS,
        gt=0,
        le=300,
        description="Seconds a player has before their turn is passed"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't drop below minimum."""
        min_players = info.data.get('min_players', MIN_PLAYERS)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


def rules_from_env() -> RuleConfig:
    overrides = {}
    if os.getenv("LEASTCOUNT_SCORE_LIMIT"):
        overrides["score_limit"] = int(os.environ["LEASTCOUNT_SCORE_LIMIT"])
    if os.getenv("LEASTCOUNT_TURN_TIMEOUT"):
        overrides["turn_timeout"] = float(os.environ["LEASTCOUNT_TURN_TIMEOUT"])
    return create_rules(**overrides)
