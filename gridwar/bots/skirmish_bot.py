"""
Skirmish Bot - Heuristic AI opponent.

This bot:
- Scores every valid command with the HeuristicEvaluator
- Applies personality preferences and an attack budget per turn
- Ends its turn once nothing beats the end-turn baseline

The bot does NOT:
- Look ahead (the coordinator mutates in place)
- Plan routes (moves are one step towards the nearest enemy)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging
import random

from ..engine_core.action import ActionType
from .evaluator import HeuristicEvaluator
from .personality import BALANCED, PERSONALITIES, Personality
from .policy import BotDecision, BotPolicy

if TYPE_CHECKING:
    from ..engine_core.action import Action
    from ..engine_core.coordinator import TurnCoordinator

log = logging.getLogger(__name__)

ATTACKS = {ActionType.ATTACK_UNIT, ActionType.ATTACK_BUILDING}


@dataclass
class SkirmishBot(BotPolicy):
    """
    AI player with heuristic scoring.

    Usage:
        bot = SkirmishBot(player_id=1, personality=AGGRESSIVE, rng=random.Random(7))
        decision = bot.select_action(coordinator, legal_actions(coordinator))
        coordinator.apply(decision.action)
    """
    player_id: int
    personality: Personality = None  # type: ignore
    evaluator: HeuristicEvaluator = None  # type: ignore
    rng: random.Random = None  # type: ignore
    _turn_key: tuple[int, int] | None = field(default=None, repr=False)
    _attacks_this_turn: int = field(default=0, repr=False)

    def __post_init__(self):
        if self.personality is None:
            self.personality = BALANCED
        if self.evaluator is None:
            self.evaluator = HeuristicEvaluator(weights=self.personality.weights)
        if self.rng is None:
            self.rng = random.Random()

    def select_action(
        self,
        coordinator: TurnCoordinator,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Select a command.

        Process:
        1. Drop attacks once this turn's attack budget is spent
        2. Maybe pick at random (personality.randomness)
        3. Score the rest, apply preferences
        4. Pick among the top scorers, or end the turn if none beats the baseline
        """
        if not legal_actions:
            raise ValueError("No legal actions available")

        self._track_turn(coordinator)
        candidates = legal_actions
        if self._attacks_this_turn >= self.personality.attacks_per_turn:
            candidates = [a for a in legal_actions if a.action_type not in ATTACKS]
        if not candidates:
            candidates = legal_actions

        if self.rng.random() < self.personality.randomness:
            action = self.rng.choice(candidates)
            return self._decide(
                action,
                explanation=f"Random action (personality: {self.personality.name})",
                score=0.0,
                num_evaluated=0,
            )

        player = coordinator.current_player
        baseline = self.evaluator.weights.end_turn_value
        scored: list[tuple[Action, float]] = []
        end_turn: Action | None = None
        for action in candidates:
            if action.action_type == ActionType.END_TURN:
                end_turn = action
                continue
            score = self.evaluator.evaluate_action(coordinator, action, player)
            score *= self.personality.action_preferences.get(action.action_type.value, 1.0)
            if score > baseline:
                scored.append((action, score))

        if not scored:
            action = end_turn or candidates[-1]
            return self._decide(action, "Nothing worth doing, ending turn", baseline, len(candidates))

        scored.sort(key=lambda x: x[1], reverse=True)
        action, score = self._select_with_variance(scored)
        return self._decide(action, self._generate_explanation(action, score), score, len(candidates))

    def _track_turn(self, coordinator: TurnCoordinator):
        key = (coordinator.turn_number, coordinator.current_player_index)
        if key != self._turn_key:
            self._turn_key = key
            self._attacks_this_turn = 0

    def _select_with_variance(
        self,
        scored_actions: list[tuple[Action, float]],
    ) -> tuple[Action, float]:
        """
        Select from the top actions with some variance.

        Higher risk_tolerance = more likely to pick a weaker action.
        """
        if len(scored_actions) == 1:
            return scored_actions[0]

        top_n = max(1, int(len(scored_actions) * self.personality.risk_tolerance))
        top_actions = scored_actions[:top_n]

        min_score = min(s for _, s in top_actions)
        weights = [max(0.1, s - min_score + 1) for _, s in top_actions]

        total = sum(weights)
        r = self.rng.random() * total
        cumulative = 0.0
        for (action, score), weight in zip(top_actions, weights):
            cumulative += weight
            if r <= cumulative:
                return action, score

        return top_actions[0]

    def _decide(
        self,
        action: Action,
        explanation: str,
        score: float,
        num_evaluated: int,
    ) -> BotDecision:
        if action.action_type in ATTACKS:
            self._attacks_this_turn += 1
        log.debug("Bot %d (%s): %s", self.player_id, self.personality.name, explanation)
        return BotDecision(
            action=action,
            explanation=explanation,
            confidence=self._calculate_confidence(score, num_evaluated),
            evaluated_actions=num_evaluated,
            best_score=score,
        )

    def _generate_explanation(self, action: Action, score: float) -> str:
        return f"{action.describe()} (score: {score:.1f}, {self.personality.name})"

    def _calculate_confidence(self, score: float, num_evaluated: int) -> float:
        if num_evaluated <= 1:
            return 1.0
        return min(1.0, max(0.1, score / 100))

    def get_name(self) -> str:
        return f"SkirmishBot({self.personality.name})"


def create_bot_roster(
    player_ids: list[int],
    personalities: list[str] | None = None,
    seed: int | None = None,
) -> dict[int, SkirmishBot]:
    """
    One bot per player id, cycling through the named personalities.

    Each bot gets its own rng derived from seed.
    """
    names = personalities or list(PERSONALITIES.keys())
    master = random.Random(seed)
    return {
        pid: SkirmishBot(
            player_id=pid,
            personality=PERSONALITIES[names[i % len(names)]],
            rng=random.Random(master.randrange(2 ** 32)),
        )
        for i, pid in enumerate(player_ids)
    }
