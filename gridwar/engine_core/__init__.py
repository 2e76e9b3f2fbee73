"""
Engine Core - Grid, entities, resources, combat and the turn coordinator.
"""

from .grid import Grid, Cell, Position, TerrainKind, UnitOccupant, BuildingOccupant
from .resources import ResourceKind, ResourceLedger
from .units import Unit, UnitArchetype, DamagePolicy, create_unit, available_unit_types
from .buildings import Building, BuildingKind, create_building, available_building_types
from .state import GamePhase, Faction, Player
from .combat import CombatResolver, CombatListener, CombatOutcome
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .coordinator import TurnCoordinator
from .action_generator import legal_actions

__all__ = [
    "Grid",
    "Cell",
    "Position",
    "TerrainKind",
    "UnitOccupant",
    "BuildingOccupant",
    "ResourceKind",
    "ResourceLedger",
    "Unit",
    "UnitArchetype",
    "DamagePolicy",
    "create_unit",
    "available_unit_types",
    "Building",
    "BuildingKind",
    "create_building",
    "available_building_types",
    "GamePhase",
    "Faction",
    "Player",
    "CombatResolver",
    "CombatListener",
    "CombatOutcome",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "TurnCoordinator",
    "legal_actions",
]
