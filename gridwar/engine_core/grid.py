"""
Grid - The battlefield.

A fixed width x height collection of cells. Each cell has:
- A terrain kind (passability and a resource-bonus flavor value)
- At most one occupant, tagged as a unit or a building

Out-of-bounds lookups return None, never a default cell.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Iterator, Union

if TYPE_CHECKING:
    import random


# Probability that a generated cell gets the common terrain kind
COMMON_TERRAIN_WEIGHT = 0.6


class TerrainKind(Enum):
    """Terrain kinds. Value is (passable, resource_bonus)."""
    GRASS = (True, 1.0)
    WATER = (False, 0.5)
    MOUNTAIN = (True, 1.3)
    FOREST = (True, 1.1)
    DESERT = (True, 0.8)
    SWAMP = (True, 1.5)

    @property
    def passable(self) -> bool:
        return self.value[0]

    @property
    def resource_bonus(self) -> float:
        return self.value[1]

    @property
    def symbol(self) -> str:
        return self.name[0]


@dataclass(frozen=True)
class Position:
    """An (x, y) grid coordinate."""
    x: int
    y: int

    def manhattan_distance(self, other: Position) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def euclidean_distance(self, other: Position) -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5

    def adjacent(self, width: int, height: int) -> list[Position]:
        """The up-to-8 neighbouring positions that lie inside a width x height grid."""
        neighbours = []
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = self.x + dx, self.y + dy
                if 0 <= nx < width and 0 <= ny < height:
                    neighbours.append(Position(nx, ny))
        return neighbours

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


@dataclass(frozen=True)
class UnitOccupant:
    """A cell occupied by a unit, identified by owner and per-owner unit id."""
    unit_id: int
    owner_id: int


@dataclass(frozen=True)
class BuildingOccupant:
    """A cell occupied by a building, identified by owner and per-owner building id."""
    building_id: int
    owner_id: int


Occupant = Union[UnitOccupant, BuildingOccupant]


@dataclass
class Cell:
    """A single grid cell."""
    position: Position
    terrain: TerrainKind = TerrainKind.GRASS
    occupant: Occupant | None = None

    @property
    def is_empty(self) -> bool:
        return self.occupant is None

    @property
    def is_passable(self) -> bool:
        """Passable only if the terrain allows it and nothing stands here."""
        return self.terrain.passable and self.occupant is None


class Grid:
    """
    Fixed-size 2D cell collection.

    Every in-bounds position has exactly one Cell. The grid does not know
    about Unit or Building objects, only their tagged occupant references;
    resolving an occupant to an entity is the coordinator's job.
    """

    def __init__(
        self,
        width: int,
        height: int,
        terrain: dict[Position, TerrainKind] | None = None,
    ):
        if width < 1 or height < 1:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        terrain = terrain or {}
        self._cells: dict[Position, Cell] = {}
        for y in range(height):
            for x in range(width):
                pos = Position(x, y)
                self._cells[pos] = Cell(pos, terrain.get(pos, TerrainKind.GRASS))

    @classmethod
    def generate(cls, width: int, height: int, rng: random.Random) -> Grid:
        """
        Create a grid with random terrain.

        Each cell independently gets GRASS with probability
        COMMON_TERRAIN_WEIGHT, otherwise a uniform pick over all kinds.
        """
        kinds = list(TerrainKind)
        terrain = {}
        for y in range(height):
            for x in range(width):
                if rng.random() < COMMON_TERRAIN_WEIGHT:
                    terrain[Position(x, y)] = TerrainKind.GRASS
                else:
                    terrain[Position(x, y)] = rng.choice(kinds)
        return cls(width, height, terrain)

    def in_bounds(self, pos: Position) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def get_cell(self, pos: Position) -> Cell | None:
        return self._cells.get(pos)

    def cells(self) -> Iterator[Cell]:
        """Cells in row-major order."""
        for y in range(self.height):
            for x in range(self.width):
                yield self._cells[Position(x, y)]

    def is_passable(self, pos: Position) -> bool:
        cell = self.get_cell(pos)
        return cell is not None and cell.is_passable

    def occupant_at(self, pos: Position) -> Occupant | None:
        cell = self.get_cell(pos)
        return cell.occupant if cell else None

    def place(self, pos: Position, occupant: Occupant) -> bool:
        """Put an occupant on a passable, empty cell. Returns False otherwise."""
        cell = self.get_cell(pos)
        if cell is None or not cell.is_passable:
            return False
        cell.occupant = occupant
        return True

    def clear(self, pos: Position) -> Occupant | None:
        """Empty a cell, returning what was there."""
        cell = self.get_cell(pos)
        if cell is None:
            return None
        previous = cell.occupant
        cell.occupant = None
        return previous

    def find(self, occupant: Occupant) -> Position | None:
        for cell in self._cells.values():
            if cell.occupant == occupant:
                return cell.position
        return None

    def remove(self, occupant: Occupant) -> bool:
        """Clear whichever cell holds the occupant."""
        pos = self.find(occupant)
        if pos is None:
            return False
        self.clear(pos)
        return True

    def nearest_free_cell(self, home_row: int) -> Position | None:
        """
        First passable, empty cell scanning rows outward from home_row.

        Rows closer to home_row come first; within a row, lower x first.
        """
        rows = sorted(range(self.height), key=lambda y: (abs(y - home_row), y))
        for y in rows:
            for x in range(self.width):
                pos = Position(x, y)
                if self._cells[pos].is_passable:
                    return pos
        return None

    def render(self) -> list[str]:
        """One string per row: owner index for units, '#' for buildings, else terrain."""
        lines = []
        for y in range(self.height):
            row = []
            for x in range(self.width):
                cell = self._cells[Position(x, y)]
                if isinstance(cell.occupant, UnitOccupant):
                    row.append(str(cell.occupant.owner_id))
                elif isinstance(cell.occupant, BuildingOccupant):
                    row.append("#")
                else:
                    row.append(cell.terrain.symbol if cell.terrain != TerrainKind.GRASS else ".")
            lines.append("".join(row))
        return lines
