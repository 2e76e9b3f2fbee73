"""
Action Generator - Enumerates the commands the current player may issue.

Candidates are built from the current state and filtered through the
coordinator's own validation, so everything returned would be accepted
by apply(). END_TURN is always present while the game is running.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .action import Action
from .buildings import BUILDING_STATS
from .units import UNIT_STATS

if TYPE_CHECKING:
    from .coordinator import TurnCoordinator
    from .state import Player


def legal_actions(coordinator: TurnCoordinator, include_moves: bool = True) -> list[Action]:
    """All valid commands for the current player, END_TURN last."""
    if coordinator.is_game_over:
        return []

    player = coordinator.current_player
    candidates: list[Action] = []
    candidates.extend(_training_actions(player))
    candidates.extend(_construction_actions(player))
    candidates.extend(_attack_actions(coordinator, player))
    if include_moves:
        candidates.extend(_move_actions(coordinator, player))

    actions = [a for a in candidates if coordinator.validate(a) is None]
    actions.append(Action.end_turn(player.player_id))
    return actions


def _training_actions(player: Player) -> list[Action]:
    return [Action.train_unit(player.player_id, archetype.value) for archetype in UNIT_STATS]


def _construction_actions(player: Player) -> list[Action]:
    return [Action.construct_building(player.player_id, kind.value) for kind in BUILDING_STATS]


def _attack_actions(coordinator: TurnCoordinator, player: Player) -> list[Action]:
    actions = []
    for unit in player.units:
        for opponent in coordinator.opponents_of(player):
            for target in opponent.units:
                actions.append(Action.attack_unit(
                    player.player_id, unit.unit_id, opponent.player_id, target.unit_id,
                ))
            for building in opponent.buildings:
                actions.append(Action.attack_building(
                    player.player_id, unit.unit_id, opponent.player_id, building.building_id,
                ))
    return actions


def _move_actions(coordinator: TurnCoordinator, player: Player) -> list[Action]:
    """One-step moves to neighbouring cells."""
    grid = coordinator.grid
    actions = []
    for unit in player.units:
        if unit.moved_this_turn:
            continue
        origin = coordinator.unit_position(unit)
        if origin is None:
            continue
        for pos in origin.adjacent(grid.width, grid.height):
            if grid.is_passable(pos):
                actions.append(Action.move_unit(player.player_id, unit.unit_id, pos.x, pos.y))
    return actions
