"""
Bot Policy - How a computer seat picks its next command.

The game loop hands a policy the running coordinator and the commands
that would currently be accepted; the policy answers with one
BotDecision. It is asked again after every applied command until it
chooses END_TURN (or the loop's per-turn cap cuts it off).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import random
from typing import TYPE_CHECKING, Any

from ..engine_core.action import ActionType

if TYPE_CHECKING:
    from ..engine_core.action import Action
    from ..engine_core.coordinator import TurnCoordinator


@dataclass
class BotDecision:
    """The chosen command plus why it was chosen."""
    action: Action
    explanation: str = ""
    confidence: float = 1.0

    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


def _require_options(legal_actions: list[Action]):
    if not legal_actions:
        raise ValueError("No legal actions available")


def _end_turn_in(legal_actions: list[Action]) -> Action:
    for action in legal_actions:
        if action.action_type == ActionType.END_TURN:
            return action
    return legal_actions[-1]


class BotPolicy(ABC):
    """Base class for every computer opponent."""

    @abstractmethod
    def select_action(
        self,
        coordinator: TurnCoordinator,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Pick one of legal_actions for the coordinator's current player.

        Raises ValueError when legal_actions is empty.
        """

    def get_name(self) -> str:
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """Uniform choice over the legal commands. A baseline for comparisons."""

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(self, coordinator, legal_actions):
        _require_options(legal_actions)
        count = len(legal_actions)
        return BotDecision(
            action=self.rng.choice(legal_actions),
            explanation=f"Uniform pick among {count} commands",
            confidence=1.0 / count,
            evaluated_actions=count,
        )


class FirstLegalPolicy(BotPolicy):
    """Always the first legal command; fully deterministic."""

    def select_action(self, coordinator, legal_actions):
        _require_options(legal_actions)
        return BotDecision(
            action=legal_actions[0],
            explanation="First command offered",
            evaluated_actions=1,
        )


class RaiderPolicy(BotPolicy):
    """
    The classic opponent: one random unit strikes one random enemy unit,
    then the turn ends.
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)
        self._last_raid: tuple[int, int] | None = None

    def select_action(self, coordinator, legal_actions):
        _require_options(legal_actions)

        turn_key = (coordinator.turn_number, coordinator.current_player_index)
        raids = [a for a in legal_actions if a.action_type == ActionType.ATTACK_UNIT]
        if raids and self._last_raid != turn_key:
            self._last_raid = turn_key
            return BotDecision(
                action=self.rng.choice(raids),
                explanation="Raiding a random enemy unit",
                evaluated_actions=len(raids),
            )
        return BotDecision(action=_end_turn_in(legal_actions), explanation="Raid over, ending turn")
