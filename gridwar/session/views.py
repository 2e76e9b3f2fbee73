"""
State Views - Read-only snapshots of a running session.

Pydantic models so front ends can render or serialize them
(model_dump / model_dump_json) without touching live engine objects.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from ..engine_core.buildings import Building
    from ..engine_core.coordinator import TurnCoordinator
    from ..engine_core.grid import Position
    from ..engine_core.state import Player
    from ..engine_core.units import Unit


class UnitView(BaseModel):
    """A unit as shown to players."""
    unit_id: int
    name: str
    health: int
    max_health: int
    attack: int
    defense: int
    range: int
    movement: int
    moved_this_turn: bool = False
    x: Optional[int] = None
    y: Optional[int] = None

    model_config = {"from_attributes": True}


class BuildingView(BaseModel):
    """A building as shown to players."""
    building_id: int
    name: str
    health: int
    max_health: int
    armor: int
    constructed: bool
    remaining_construction: int
    x: Optional[int] = None
    y: Optional[int] = None

    model_config = {"from_attributes": True}


class PlayerView(BaseModel):
    """A player with roster and stockpile."""
    player_id: int
    name: str
    faction: str
    is_human: bool
    score: int = 0
    defeated: bool = False
    resources: dict[str, int] = Field(default_factory=dict)
    units: list[UnitView] = Field(default_factory=list)
    buildings: list[BuildingView] = Field(default_factory=list)


class GameStateView(BaseModel):
    """The whole session at one instant."""
    turn_number: int
    current_player_index: int
    phase: str
    width: int
    height: int
    winner_id: Optional[int] = None
    players: list[PlayerView] = Field(default_factory=list)


def _xy(pos: Position | None) -> dict[str, int | None]:
    if pos is None:
        return {"x": None, "y": None}
    return {"x": pos.x, "y": pos.y}


def unit_view(coordinator: TurnCoordinator, unit: Unit) -> UnitView:
    return UnitView(
        unit_id=unit.unit_id,
        name=unit.name,
        health=unit.health,
        max_health=unit.max_health,
        attack=unit.attack,
        defense=unit.defense,
        range=unit.range,
        movement=unit.movement,
        moved_this_turn=unit.moved_this_turn,
        **_xy(coordinator.unit_position(unit)),
    )


def building_view(coordinator: TurnCoordinator, building: Building) -> BuildingView:
    return BuildingView(
        building_id=building.building_id,
        name=building.name,
        health=building.health,
        max_health=building.max_health,
        armor=building.armor,
        constructed=building.constructed,
        remaining_construction=max(0, building.remaining_construction),
        **_xy(coordinator.building_position(building)),
    )


def player_view(coordinator: TurnCoordinator, player: Player) -> PlayerView:
    return PlayerView(
        player_id=player.player_id,
        name=player.name,
        faction=player.faction.display_name,
        is_human=player.is_human,
        score=player.score,
        defeated=player.defeated,
        resources=player.ledger.snapshot(),
        units=[unit_view(coordinator, u) for u in player.units],
        buildings=[building_view(coordinator, b) for b in player.buildings],
    )


def build_state_view(coordinator: TurnCoordinator) -> GameStateView:
    """Snapshot the whole session."""
    return GameStateView(
        turn_number=coordinator.turn_number,
        current_player_index=coordinator.current_player_index,
        phase=coordinator.phase.value,
        width=coordinator.grid.width,
        height=coordinator.grid.height,
        winner_id=coordinator.winner.player_id if coordinator.winner else None,
        players=[player_view(coordinator, p) for p in coordinator.players],
    )
