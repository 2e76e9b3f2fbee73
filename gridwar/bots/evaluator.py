"""
Heuristic Evaluator - Scores positions and candidate commands for bots.

The evaluator assigns numbers based on:
- Material (unit health, buildings, stockpiled resources, score)
- Opportunity (kills and damage a command is expected to deal)
- Economy (food security, production, training capability)

Commands are scored by their expected effect rather than by applying them:
the coordinator mutates in place, so there is no cheap copy to look ahead on.
Weights can be adjusted to create different personalities.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..engine_core.action import ActionType
from ..engine_core.buildings import BuildingKind, resolve_building_kind
from ..engine_core.resources import ResourceKind
from ..engine_core.units import DAMAGE_FLOORS, UnitArchetype

if TYPE_CHECKING:
    from ..engine_core.action import Action
    from ..engine_core.coordinator import TurnCoordinator
    from ..engine_core.state import Player


@dataclass
class EvaluationWeights:
    """
    Weights for the heuristic evaluator.

    Higher values = more importance.
    """
    # Position
    unit_health: float = 1.0  # Per point of health on the field
    building_value: float = 15.0  # Per building owned
    resource_value: float = 0.02  # Per unit of any resource
    score_per_point: float = 1.0
    opponent_penalty: float = -0.8  # Multiply average opponent score by this

    # Combat
    kill_value: float = 40.0
    damage_value: float = 1.5  # Per expected point of damage
    building_damage_value: float = 0.6  # Per point of damage to a building
    building_kill_value: float = 60.0

    # Economy
    train_value: float = 20.0
    farm_value: float = 25.0  # When food is short
    camp_value: float = 30.0  # When no training is possible
    production_value: float = 8.0  # Mine, sawmill, command center
    duplicate_penalty: float = 0.3  # Multiplier when one of the kind is already in progress

    # Movement
    approach_value: float = 6.0  # Per cell closed towards the nearest enemy

    # Baseline for ending the turn; commands below it are not worth doing
    end_turn_value: float = 5.0


@dataclass
class StateEvaluation:
    """Result of evaluating a position."""
    total_score: float
    player_scores: dict[int, float] = field(default_factory=dict)
    feature_breakdown: dict[str, float] = field(default_factory=dict)


class HeuristicEvaluator:
    """Evaluates positions and commands using weighted heuristics."""

    def __init__(self, weights: EvaluationWeights | None = None):
        self.weights = weights or EvaluationWeights()

    def evaluate(self, coordinator: TurnCoordinator, for_player_id: int) -> StateEvaluation:
        """
        Evaluate the position from one player's perspective.

        Positive is good for the player.
        """
        player_scores = {
            p.player_id: self._evaluate_player(p) for p in coordinator.players
        }
        my_score = player_scores.get(for_player_id, 0.0)
        opponent_scores = [s for pid, s in player_scores.items() if pid != for_player_id]

        relative_score = my_score
        if opponent_scores:
            avg_opponent = sum(opponent_scores) / len(opponent_scores)
            relative_score += self.weights.opponent_penalty * avg_opponent

        features = {"own": my_score, "relative_score": relative_score}

        if coordinator.is_game_over:
            winner = coordinator.winner
            if winner is not None and winner.player_id == for_player_id:
                relative_score += 1000
            elif winner is not None:
                relative_score -= 1000

        return StateEvaluation(
            total_score=relative_score,
            player_scores=player_scores,
            feature_breakdown=features,
        )

    def _evaluate_player(self, player: Player) -> float:
        w = self.weights
        score = sum(u.health for u in player.units) * w.unit_health
        score += len(player.buildings) * w.building_value
        score += sum(player.ledger.snapshot().values()) * w.resource_value
        score += player.score * w.score_per_point
        return score

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def evaluate_action(
        self,
        coordinator: TurnCoordinator,
        action: Action,
        player: Player,
    ) -> float:
        """Expected worth of a command for player."""
        scorers = {
            ActionType.ATTACK_UNIT: self._score_attack_unit,
            ActionType.ATTACK_BUILDING: self._score_attack_building,
            ActionType.TRAIN_UNIT: self._score_train,
            ActionType.CONSTRUCT_BUILDING: self._score_construct,
            ActionType.MOVE_UNIT: self._score_move,
        }
        scorer = scorers.get(action.action_type)
        if scorer is None:
            return self.weights.end_turn_value
        return scorer(coordinator, action, player)

    def _score_attack_unit(self, coordinator: TurnCoordinator, action: Action, player: Player) -> float:
        attacker = player.get_unit(action.payload.unit_id)
        target_player = coordinator.get_player(action.payload.target_player_id)
        defender = target_player.get_unit(action.payload.target_unit_id) if target_player else None
        if attacker is None or defender is None:
            return 0.0
        expected = max(DAMAGE_FLOORS[attacker.damage_policy], attacker.attack - defender.defense)
        if expected >= defender.health:
            return self.weights.kill_value + defender.attack
        return expected * self.weights.damage_value + (defender.max_health - defender.health) * 0.5

    def _score_attack_building(
        self, coordinator: TurnCoordinator, action: Action, player: Player,
    ) -> float:
        attacker = player.get_unit(action.payload.unit_id)
        target_player = coordinator.get_player(action.payload.target_player_id)
        building = (
            target_player.get_building(action.payload.target_building_id) if target_player else None
        )
        if attacker is None or building is None:
            return 0.0
        applied = max(1, attacker.attack - building.armor)
        if applied >= building.health:
            return self.weights.building_kill_value
        return applied * self.weights.building_damage_value

    def _score_train(self, coordinator: TurnCoordinator, action: Action, player: Player) -> float:
        w = self.weights
        food = player.ledger.quantity(ResourceKind.FOOD)
        upkeep = (len(player.units) + 1) * coordinator.config.food_per_unit
        if food < upkeep * 3:
            return 0.0
        enemy_units = sum(len(p.units) for p in coordinator.opponents_of(player))
        bonus = 5.0 if len(player.units) <= enemy_units else 0.0
        archetype = UnitArchetype(action.payload.type_id.lower())
        return w.train_value + bonus + archetype_preference(archetype)

    def _score_construct(self, coordinator: TurnCoordinator, action: Action, player: Player) -> float:
        w = self.weights
        kind = resolve_building_kind(action.payload.type_id)
        if kind == BuildingKind.FARM:
            food = player.ledger.quantity(ResourceKind.FOOD)
            short = food < len(player.units) * coordinator.config.food_per_unit * 10
            value = w.farm_value if short else w.production_value * 0.5
        elif kind == BuildingKind.TRAINING_CAMP:
            has_camp = any(b.stats.enables_training for b in player.buildings)
            value = w.camp_value if not has_camp else 0.0
        else:
            value = w.production_value

        if any(b.kind == kind and not b.constructed for b in player.buildings):
            value *= w.duplicate_penalty
        return value

    def _score_move(self, coordinator: TurnCoordinator, action: Action, player: Player) -> float:
        unit = player.get_unit(action.payload.unit_id)
        origin = coordinator.unit_position(unit) if unit else None
        if origin is None:
            return 0.0
        enemies = []
        for opponent in coordinator.opponents_of(player):
            for enemy in opponent.units:
                pos = coordinator.unit_position(enemy)
                if pos is not None:
                    enemies.append(pos)
        if not enemies:
            return 0.0
        before = min(origin.manhattan_distance(e) for e in enemies)
        after = min(action.payload.target.manhattan_distance(e) for e in enemies)
        return (before - after) * self.weights.approach_value


def archetype_preference(archetype: UnitArchetype) -> float:
    """Small tie-breaker so bots field a mix leaning on cheaper units."""
    return {
        UnitArchetype.SOLDIER: 2.0,
        UnitArchetype.ARCHER: 3.0,
        UnitArchetype.CAVALRY: 1.0,
    }[archetype]
