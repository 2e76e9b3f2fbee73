"""
Units - Archetype stat tables, damage policies, and runtime unit state.

Archetypes are a closed set. Each maps to an immutable stat table and a
damage policy; damage computation dispatches on the policy tag.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .resources import ResourceKind

if TYPE_CHECKING:
    import random


class DamagePolicy(Enum):
    """How a unit archetype turns attack and defense into damage."""
    BALANCED = "balanced"
    RANGED_BONUS = "ranged_bonus"
    CHARGE_BONUS = "charge_bonus"


class UnitArchetype(Enum):
    """The trainable unit kinds."""
    SOLDIER = "soldier"
    ARCHER = "archer"
    CAVALRY = "cavalry"


@dataclass(frozen=True)
class UnitStats:
    """Immutable template data for a unit archetype."""
    display_name: str
    max_health: int
    attack: int
    defense: int
    range: int
    cost: int  # gold
    movement: int
    damage_policy: DamagePolicy


UNIT_STATS: dict[UnitArchetype, UnitStats] = {
    UnitArchetype.SOLDIER: UnitStats(
        display_name="Soldier",
        max_health=20,
        attack=10,
        defense=5,
        range=1,
        cost=50,
        movement=3,
        damage_policy=DamagePolicy.BALANCED,
    ),
    UnitArchetype.ARCHER: UnitStats(
        display_name="Archer",
        max_health=15,
        attack=12,
        defense=3,
        range=4,
        cost=60,
        movement=2,
        damage_policy=DamagePolicy.RANGED_BONUS,
    ),
    UnitArchetype.CAVALRY: UnitStats(
        display_name="Cavalry",
        max_health=25,
        attack=14,
        defense=4,
        range=1,
        cost=80,
        movement=5,
        damage_policy=DamagePolicy.CHARGE_BONUS,
    ),
}


# ============================================================================
# Damage policies
# ============================================================================

def _balanced(attack: int, defense: int, rng: random.Random) -> int:
    return max(1, attack - defense + rng.randint(-2, 2))


def _ranged_bonus(attack: int, defense: int, rng: random.Random) -> int:
    return max(1, 2 * max(1, attack - defense) + rng.randint(-3, 3))


def _charge_bonus(attack: int, defense: int, rng: random.Random) -> int:
    return max(2, max(1, attack - defense) + 5 + rng.randint(-2, 3))


DAMAGE_POLICIES: dict[DamagePolicy, Callable[[int, int, random.Random], int]] = {
    DamagePolicy.BALANCED: _balanced,
    DamagePolicy.RANGED_BONUS: _ranged_bonus,
    DamagePolicy.CHARGE_BONUS: _charge_bonus,
}

DAMAGE_FLOORS: dict[DamagePolicy, int] = {
    DamagePolicy.BALANCED: 1,
    DamagePolicy.RANGED_BONUS: 1,
    DamagePolicy.CHARGE_BONUS: 2,
}


def roll_damage(policy: DamagePolicy, attack: int, defense: int, rng: random.Random) -> int:
    """Base (pre-critical) damage for one strike."""
    return DAMAGE_POLICIES[policy](attack, defense, rng)


# ============================================================================
# Runtime state
# ============================================================================

@dataclass(eq=False)
class Unit:
    """
    A unit on the battlefield.

    unit_id and owner_id are assigned once, when the unit joins a
    player's roster. Units compare by identity.
    """
    archetype: UnitArchetype
    health: int
    unit_id: int = 0
    owner_id: int | None = None
    moved_this_turn: bool = False

    @property
    def stats(self) -> UnitStats:
        return UNIT_STATS[self.archetype]

    @property
    def name(self) -> str:
        return self.stats.display_name

    @property
    def max_health(self) -> int:
        return self.stats.max_health

    @property
    def attack(self) -> int:
        return self.stats.attack

    @property
    def defense(self) -> int:
        return self.stats.defense

    @property
    def range(self) -> int:
        return self.stats.range

    @property
    def movement(self) -> int:
        return self.stats.movement

    @property
    def damage_policy(self) -> DamagePolicy:
        return self.stats.damage_policy

    @property
    def training_cost(self) -> dict[ResourceKind, int]:
        return {ResourceKind.GOLD: self.stats.cost}

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    @property
    def health_percentage(self) -> int:
        return self.health * 100 // self.max_health

    def take_damage(self, amount: int) -> int:
        """Lose up to amount health, never below zero. Returns health lost."""
        lost = min(self.health, max(0, amount))
        self.health -= lost
        return lost

    def heal(self, amount: int) -> int:
        """Regain health up to max. Returns health gained."""
        gained = min(self.max_health - self.health, max(0, amount))
        self.health += gained
        return gained

    def compute_damage(self, target: Unit, rng: random.Random) -> int:
        return roll_damage(self.damage_policy, self.attack, target.defense, rng)

    def describe(self) -> str:
        return (
            f"#{self.unit_id} {self.name} "
            f"HP {self.health}/{self.max_health} "
            f"ATK {self.attack} DEF {self.defense} RNG {self.range}"
        )


def create_unit(type_id: str) -> Unit | None:
    """Case-insensitive archetype lookup. Unknown identifiers yield None."""
    try:
        archetype = UnitArchetype(type_id.strip().lower())
    except ValueError:
        return None
    return Unit(archetype=archetype, health=UNIT_STATS[archetype].max_health)


def available_unit_types() -> list[str]:
    return [stats.display_name for stats in UNIT_STATS.values()]
