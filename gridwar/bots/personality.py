"""
Bot Personalities - Configurable play styles.

Personalities adjust:
- Evaluation weights (what the bot values)
- Risk tolerance (how far from the best-scored command it may stray)
- Aggression (how many attacks it commits to per turn)
- Randomness (for unpredictability)
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
import random

from .evaluator import EvaluationWeights


@dataclass
class Personality:
    """A bot play style."""
    name: str
    description: str = ""

    weights: EvaluationWeights = field(default_factory=EvaluationWeights)

    risk_tolerance: float = 0.2  # 0 = always the best command, 1 = anything scored
    attacks_per_turn: int = 2
    randomness: float = 0.05  # Probability of a random command

    # Multipliers keyed by ActionType value
    action_preferences: dict[str, float] = field(default_factory=dict)


# ============================================================================
# Predefined Personalities
# ============================================================================

BALANCED = Personality(
    name="Balanced",
    description="Builds an economy and fights when the odds are good",
    attacks_per_turn=2,
    action_preferences={
        "attack_unit": 1.0,
        "attack_building": 1.0,
        "train_unit": 1.0,
        "construct_building": 1.0,
        "move_unit": 1.0,
    },
)


AGGRESSIVE = Personality(
    name="Aggressive",
    description="Throws everything at the enemy army",
    weights=EvaluationWeights(
        kill_value=60.0,
        damage_value=2.5,
        building_kill_value=80.0,
        farm_value=15.0,
        production_value=4.0,
    ),
    risk_tolerance=0.3,
    attacks_per_turn=4,
    randomness=0.05,
    action_preferences={
        "attack_unit": 1.5,
        "attack_building": 1.3,
        "train_unit": 1.2,
        "construct_building": 0.7,
    },
)


BUILDER = Personality(
    name="Builder",
    description="Grows production first and rarely picks a fight",
    weights=EvaluationWeights(
        farm_value=35.0,
        camp_value=35.0,
        production_value=14.0,
        duplicate_penalty=0.5,
        kill_value=30.0,
    ),
    risk_tolerance=0.1,
    attacks_per_turn=1,
    randomness=0.05,
    action_preferences={
        "attack_unit": 0.8,
        "attack_building": 0.5,
        "construct_building": 1.5,
    },
)


CHAOTIC = Personality(
    name="Chaotic",
    description="Unpredictable play with high randomness",
    risk_tolerance=0.9,
    attacks_per_turn=3,
    randomness=0.4,
)


PERSONALITIES: dict[str, Personality] = {
    "balanced": BALANCED,
    "aggressive": AGGRESSIVE,
    "builder": BUILDER,
    "chaotic": CHAOTIC,
}


def create_random_personality(
    name: str = "Random",
    base: Personality | None = None,
    variance: float = 0.3,
    seed: int | None = None,
) -> Personality:
    """
    Create a personality with random variations.

    Args:
        name: Name for the personality
        base: Base personality to vary from (default: BALANCED)
        variance: How much to vary (0-1)
        seed: Random seed for reproducibility
    """
    rng = random.Random(seed)
    base = base or BALANCED

    def vary(value: float) -> float:
        # Sign-preserving while variance <= 1
        return value + value * variance * (rng.random() * 2 - 1)

    new_weights = EvaluationWeights(**{
        f.name: vary(getattr(base.weights, f.name)) for f in fields(EvaluationWeights)
    })

    return Personality(
        name=name,
        description=f"Random variation of {base.name}",
        weights=new_weights,
        risk_tolerance=min(1.0, max(0.0, vary(base.risk_tolerance))),
        attacks_per_turn=max(1, round(vary(base.attacks_per_turn))),
        randomness=min(1.0, max(0.0, vary(base.randomness))),
        action_preferences={k: vary(v) for k, v in base.action_preferences.items()},
    )
