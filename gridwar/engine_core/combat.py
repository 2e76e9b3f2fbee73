"""
Combat Resolver - Unit-versus-unit damage resolution.

One strike:
1. Roll a critical hit against a fixed probability
2. Compute base damage with the attacker's damage policy
3. On a critical, multiply by the critical multiplier (truncated)
4. Apply to the defender, flooring health at zero

Preconditions (both alive, different owners, attacker range >= 1) are
checked here; a violated precondition is a silent no-op. Attacks on
buildings never come through this class.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import random

from .units import Unit

log = logging.getLogger(__name__)


CRITICAL_HIT_CHANCE = 0.15
CRITICAL_HIT_MULTIPLIER = 1.5
SEVERE_WOUND_PERCENT = 25
MAX_SKIRMISH_ROUNDS = 20


class CombatListener:
    """
    Receives combat notifications. Purely informational.

    Override the hooks you care about; the defaults do nothing.
    """

    def on_attack(self, attacker: Unit, defender: Unit, damage: int, critical: bool):
        pass

    def on_unit_killed(self, unit: Unit, killer: Unit):
        pass

    def on_unit_wounded(self, unit: Unit, health_percent: int):
        pass


@dataclass
class CombatOutcome:
    """What one resolved strike did."""
    attacker: Unit
    defender: Unit
    damage: int
    critical: bool
    killed: bool


class CombatResolver:
    """
    Resolves strikes between units.

    The rng is the only source of randomness; inject a seeded one for
    reproducible outcomes.
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        listener: CombatListener | None = None,
        critical_chance: float = CRITICAL_HIT_CHANCE,
        critical_multiplier: float = CRITICAL_HIT_MULTIPLIER,
        wound_threshold: int = SEVERE_WOUND_PERCENT,
    ):
        self.rng = rng or random.Random()
        self.listener = listener
        self.critical_chance = critical_chance
        self.critical_multiplier = critical_multiplier
        self.wound_threshold = wound_threshold

    def can_attack(self, attacker: Unit, defender: Unit) -> bool:
        return (
            attacker.is_alive
            and defender.is_alive
            and attacker.owner_id != defender.owner_id
            and attacker.range >= 1
        )

    def strike(self, attacker: Unit, defender: Unit) -> CombatOutcome | None:
        """Resolve one strike. Returns None if the preconditions do not hold."""
        if not self.can_attack(attacker, defender):
            return None

        critical = self.rng.random() < self.critical_chance
        damage = attacker.compute_damage(defender, self.rng)
        if critical:
            damage = int(damage * self.critical_multiplier)

        before = defender.health_percentage
        defender.take_damage(damage)
        killed = defender.health == 0

        log.debug(
            "%s #%d hits %s #%d for %d%s (%d hp left)",
            attacker.name, attacker.unit_id, defender.name, defender.unit_id,
            damage, " (critical)" if critical else "", defender.health,
        )

        if self.listener is not None:
            self.listener.on_attack(attacker, defender, damage, critical)
            if killed:
                self.listener.on_unit_killed(defender, attacker)
            elif before > self.wound_threshold >= defender.health_percentage:
                self.listener.on_unit_wounded(defender, defender.health_percentage)

        return CombatOutcome(attacker, defender, damage, critical, killed)

    def resolve(self, attacker: Unit, defender: Unit) -> bool:
        """One strike. True iff the defender is dead afterwards."""
        outcome = self.strike(attacker, defender)
        return outcome is not None and outcome.killed

    def simulate_skirmish(
        self,
        first: Unit,
        second: Unit,
        max_rounds: int = MAX_SKIRMISH_ROUNDS,
    ) -> Unit | None:
        """
        Alternate strikes, first unit opening, until one dies.

        Returns the survivor, or None if both still stand after max_rounds
        (or the pair cannot fight at all).
        """
        for _ in range(max_rounds):
            if not self.can_attack(first, second):
                return None
            if self.resolve(first, second):
                return first
            if self.resolve(second, first):
                return second
        return None
