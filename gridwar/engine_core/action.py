"""
Action System - Commands, payloads, and results.

Every player command flows through TurnCoordinator.apply() as an Action
and comes back as an ActionResult. Rejected commands never partially
apply; the result carries a reason and an ErrorCode.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .grid import Position

if TYPE_CHECKING:
    from .combat import CombatOutcome


class ActionType(Enum):
    """Types of player commands."""
    TRAIN_UNIT = "train_unit"
    CONSTRUCT_BUILDING = "construct_building"
    MOVE_UNIT = "move_unit"
    ATTACK_UNIT = "attack_unit"
    ATTACK_BUILDING = "attack_building"
    END_TURN = "end_turn"


class ErrorCode(str, Enum):
    """Structured rejection reasons."""
    GAME_OVER = "GAME_OVER"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
    UNKNOWN_TYPE = "UNKNOWN_TYPE"
    UNKNOWN_UNIT = "UNKNOWN_UNIT"
    UNKNOWN_BUILDING = "UNKNOWN_BUILDING"
    INSUFFICIENT_RESOURCES = "INSUFFICIENT_RESOURCES"
    MISSING_PREREQUISITE = "MISSING_PREREQUISITE"
    OUT_OF_BOUNDS = "OUT_OF_BOUNDS"
    BLOCKED = "BLOCKED"
    ALREADY_MOVED = "ALREADY_MOVED"
    TOO_FAR = "TOO_FAR"
    NO_DEPLOY_SPACE = "NO_DEPLOY_SPACE"
    INVALID_TARGET = "INVALID_TARGET"
    NO_HANDLER = "NO_HANDLER"


@dataclass
class ActionPayload:
    """
    Parameters of a command.

    Different action types use different fields; the coordinator
    validates what each one needs.
    """
    player_id: int | None = None

    # Train / construct
    type_id: str | None = None

    # Acting unit
    unit_id: int | None = None

    # Attack targets
    target_player_id: int | None = None
    target_unit_id: int | None = None
    target_building_id: int | None = None

    # Move destination or build site
    target: Position | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """A complete command from one player."""
    action_type: ActionType
    payload: ActionPayload

    @property
    def player_id(self) -> int | None:
        return self.payload.player_id

    @classmethod
    def train_unit(cls, player_id: int, unit_type: str) -> Action:
        """Factory for unit training."""
        return cls(
            action_type=ActionType.TRAIN_UNIT,
            payload=ActionPayload(player_id=player_id, type_id=unit_type),
        )

    @classmethod
    def construct_building(
        cls,
        player_id: int,
        building_type: str,
        at: Position | None = None,
    ) -> Action:
        """Factory for construction. Without a site, the nearest free cell is used."""
        return cls(
            action_type=ActionType.CONSTRUCT_BUILDING,
            payload=ActionPayload(player_id=player_id, type_id=building_type, target=at),
        )

    @classmethod
    def move_unit(cls, player_id: int, unit_id: int, x: int, y: int) -> Action:
        """Factory for movement."""
        return cls(
            action_type=ActionType.MOVE_UNIT,
            payload=ActionPayload(player_id=player_id, unit_id=unit_id, target=Position(x, y)),
        )

    @classmethod
    def attack_unit(
        cls,
        player_id: int,
        unit_id: int,
        target_player_id: int,
        target_unit_id: int,
    ) -> Action:
        """Factory for unit-versus-unit attack."""
        return cls(
            action_type=ActionType.ATTACK_UNIT,
            payload=ActionPayload(
                player_id=player_id,
                unit_id=unit_id,
                target_player_id=target_player_id,
                target_unit_id=target_unit_id,
            ),
        )

    @classmethod
    def attack_building(
        cls,
        player_id: int,
        unit_id: int,
        target_player_id: int,
        target_building_id: int,
    ) -> Action:
        """Factory for an attack on a building."""
        return cls(
            action_type=ActionType.ATTACK_BUILDING,
            payload=ActionPayload(
                player_id=player_id,
                unit_id=unit_id,
                target_player_id=target_player_id,
                target_building_id=target_building_id,
            ),
        )

    @classmethod
    def end_turn(cls, player_id: int) -> Action:
        """Factory for ending the turn."""
        return cls(
            action_type=ActionType.END_TURN,
            payload=ActionPayload(player_id=player_id),
        )

    def describe(self) -> str:
        p = self.payload
        if self.action_type in (ActionType.TRAIN_UNIT, ActionType.CONSTRUCT_BUILDING):
            where = f" at {p.target}" if p.target else ""
            return f"{self.action_type.value} {p.type_id}{where}"
        if self.action_type == ActionType.MOVE_UNIT:
            return f"move unit #{p.unit_id} to {p.target}"
        if self.action_type == ActionType.ATTACK_UNIT:
            return f"unit #{p.unit_id} attacks player {p.target_player_id} unit #{p.target_unit_id}"
        if self.action_type == ActionType.ATTACK_BUILDING:
            return (f"unit #{p.unit_id} attacks player {p.target_player_id} "
                    f"building #{p.target_building_id}")
        return self.action_type.value


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action was applied
    - Reason and code (if rejected)
    - Human-readable changes (for presentation)
    - The combat outcome (for unit attacks)
    """
    success: bool
    error: str | None = None
    error_code: ErrorCode | None = None
    state_changes: list[str] = field(default_factory=list)
    combat: CombatOutcome | None = None

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a rejection."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(
        cls,
        changes: list[str] | None = None,
        combat: CombatOutcome | None = None,
    ) -> ActionResult:
        """Create a success result."""
        return cls(success=True, state_changes=changes or [], combat=combat)
