"""
Game State - Phases, factions, and players.

A Player exclusively owns its units and buildings. Ids are assigned when
an entity joins the roster: monotonic per player, starting at 1.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .buildings import Building
from .resources import ResourceLedger
from .units import Unit


class GamePhase(Enum):
    """Phases of a game session."""
    PLAYING = "playing"
    GAME_OVER = "game_over"


class Faction(Enum):
    """Playable factions. Value is (display name, strength bonus, description)."""
    EMPIRE = ("Empire", 1.0, "Disciplined legions with a balanced economy")
    KINGDOM = ("Kingdom", 1.1, "Heavy armour and proud knights")
    REBELLION = ("Rebellion", 0.9, "Scrappy irregulars who strike from cover")

    @property
    def display_name(self) -> str:
        return self.value[0]

    @property
    def strength_bonus(self) -> float:
        # Cosmetic for now; combat does not read it
        return self.value[1]

    @property
    def description(self) -> str:
        return self.value[2]

    @classmethod
    def for_index(cls, index: int) -> Faction:
        """Round-robin faction assignment."""
        factions = list(cls)
        return factions[index % len(factions)]


@dataclass(eq=False)
class Player:
    """A participant: faction, ledger, roster of units and buildings."""
    player_id: int
    name: str
    faction: Faction
    ledger: ResourceLedger
    is_human: bool = True
    units: list[Unit] = field(default_factory=list)
    buildings: list[Building] = field(default_factory=list)
    score: int = 0
    defeated: bool = False
    next_unit_id: int = 1
    next_building_id: int = 1

    def add_unit(self, unit: Unit) -> Unit:
        if unit.owner_id is not None and unit.owner_id != self.player_id:
            raise ValueError(f"{unit.name} already belongs to player {unit.owner_id}")
        unit.owner_id = self.player_id
        unit.unit_id = self.next_unit_id
        self.next_unit_id += 1
        self.units.append(unit)
        return unit

    def remove_unit(self, unit: Unit) -> bool:
        if unit in self.units:
            self.units.remove(unit)
            return True
        return False

    def get_unit(self, unit_id: int) -> Unit | None:
        for unit in self.units:
            if unit.unit_id == unit_id:
                return unit
        return None

    def add_building(self, building: Building) -> Building:
        if building.owner_id is not None and building.owner_id != self.player_id:
            raise ValueError(f"{building.name} already belongs to player {building.owner_id}")
        building.owner_id = self.player_id
        building.building_id = self.next_building_id
        self.next_building_id += 1
        self.buildings.append(building)
        return building

    def remove_building(self, building: Building) -> bool:
        if building in self.buildings:
            self.buildings.remove(building)
            return True
        return False

    def get_building(self, building_id: int) -> Building | None:
        for building in self.buildings:
            if building.building_id == building_id:
                return building
        return None

    @property
    def is_active(self) -> bool:
        """Still in the game: has at least one unit or one building."""
        return bool(self.units) or bool(self.buildings)

    def has_training_capability(self) -> bool:
        return any(b.constructed and b.stats.enables_training for b in self.buildings)

    def add_score(self, points: int):
        self.score += points

    def status(self) -> str:
        return (
            f"{self.name} ({self.faction.display_name}) - "
            f"Units: {len(self.units)}, Buildings: {len(self.buildings)}, Score: {self.score}"
        )
