"""
Presentation Port - What the game loop needs from a user interface.

The engine never parses input or formats output itself. A console, a
test script or any other front end implements this interface.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .views import GameStateView


class MenuChoice(Enum):
    """Human turn menu. Value is the number shown to the player."""
    VIEW_UNITS = 1
    VIEW_BUILDINGS = 2
    VIEW_MAP = 3
    TRAIN_UNIT = 4
    CONSTRUCT_BUILDING = 5
    MOVE_UNIT = 6
    ATTACK_UNIT = 7
    ATTACK_BUILDING = 8
    END_TURN = 9
    QUIT = 0

    @property
    def label(self) -> str:
        return self.name.replace("_", " ").title()


class PresentationPort(ABC):
    """
    Supplies player decisions and displays results.

    Index choices are 0-based positions in the list that was shown.
    """

    @abstractmethod
    def choose_action(self, options: list[MenuChoice]) -> int:
        """Menu number picked by the player."""

    @abstractmethod
    def choose_unit_type(self, types: list[str]) -> str:
        """Unit type identifier."""

    @abstractmethod
    def choose_building_type(self, types: list[str]) -> str:
        """Building type identifier."""

    @abstractmethod
    def choose_target(self) -> tuple[int, int]:
        """Grid (x, y) target."""

    @abstractmethod
    def choose_index(self, prompt: str, items: list[str]) -> int:
        """Position in a displayed list of units, buildings or players."""

    @abstractmethod
    def show_message(self, message: str):
        pass

    @abstractmethod
    def show_error(self, message: str):
        pass

    def show_state(self, view: GameStateView):
        """Display a state snapshot. Defaults to the current player's status line."""
        current = view.players[view.current_player_index]
        self.show_message(
            f"Turn {view.turn_number} - {current.name}: "
            + ", ".join(f"{k} {v}" for k, v in current.resources.items())
        )

    def show_map(self, rows: list[str]):
        for row in rows:
            self.show_message(row)
