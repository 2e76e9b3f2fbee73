"""
Configuration - Tunable game constants.

Defaults reproduce the classic rules. Any field can be overridden from
the environment as GRIDWAR_<FIELD_NAME> (e.g. GRIDWAR_MAP_WIDTH=30), or
by keyword when calling GameConfig.from_env().
"""

from __future__ import annotations
import logging
import os
from typing import Any, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "GRIDWAR_"


class GameConfig(BaseModel):
    """Validated session settings."""
    map_width: int = Field(20, ge=1)
    map_height: int = Field(20, ge=1)
    player_count: int = Field(2, ge=2)

    starting_resources: int = Field(500, ge=0)
    base_production_rate: int = Field(10, ge=0)
    apply_base_production: bool = False

    critical_hit_chance: float = Field(0.15, ge=0.0, le=1.0)
    critical_hit_multiplier: float = Field(1.5, ge=1.0)
    severe_wound_percent: int = Field(25, ge=0, le=100)

    food_per_unit: int = Field(2, ge=0)
    kill_score: int = Field(10, ge=0)
    building_destroy_score: int = Field(25, ge=0)
    enforce_movement_allowance: bool = True

    max_turns: int = Field(100, ge=1)
    max_bot_actions_per_turn: int = Field(50, ge=1)

    seed: Optional[int] = None
    log_level: str = "INFO"

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, **overrides: Any) -> GameConfig:
        """Build from GRIDWAR_* environment variables, then keyword overrides."""
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is not None:
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def configure_logging(level: str = "INFO"):
    """Root logging setup for entry points. Library code only gets loggers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
