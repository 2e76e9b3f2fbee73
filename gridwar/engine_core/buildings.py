"""
Buildings - Archetype stat tables and the construction lifecycle.

A building is UnderConstruction(remaining > 0) until enough end-of-turn
ticks have passed, then Constructed. Only constructed buildings produce.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging

from .resources import CostBundle, ResourceKind, ResourceLedger

log = logging.getLogger(__name__)


class BuildingKind(Enum):
    """The constructible building kinds."""
    COMMAND_CENTER = "command_center"
    TRAINING_CAMP = "training_camp"
    MINE = "mine"
    FARM = "farm"
    SAWMILL = "sawmill"


@dataclass(frozen=True)
class BuildingStats:
    """Immutable template data for a building kind."""
    display_name: str
    max_health: int
    armor: int
    cost: CostBundle
    construction_time: int
    output_kind: ResourceKind | None = None
    output_rate: int = 0
    enables_training: bool = False


BUILDING_STATS: dict[BuildingKind, BuildingStats] = {
    BuildingKind.COMMAND_CENTER: BuildingStats(
        display_name="Command Center",
        max_health=100,
        armor=5,
        cost={ResourceKind.GOLD: 200, ResourceKind.WOOD: 150, ResourceKind.STONE: 100},
        construction_time=5,
        output_kind=ResourceKind.GOLD,
        output_rate=5,
    ),
    BuildingKind.TRAINING_CAMP: BuildingStats(
        display_name="Training Camp",
        max_health=60,
        armor=3,
        cost={ResourceKind.GOLD: 100, ResourceKind.WOOD: 75},
        construction_time=4,
        enables_training=True,
    ),
    BuildingKind.MINE: BuildingStats(
        display_name="Mine",
        max_health=40,
        armor=2,
        cost={ResourceKind.GOLD: 50, ResourceKind.WOOD: 50},
        construction_time=3,
        output_kind=ResourceKind.STONE,
        output_rate=15,
    ),
    BuildingKind.FARM: BuildingStats(
        display_name="Farm",
        max_health=35,
        armor=1,
        cost={ResourceKind.GOLD: 30, ResourceKind.WOOD: 40},
        construction_time=2,
        output_kind=ResourceKind.FOOD,
        output_rate=20,
    ),
    BuildingKind.SAWMILL: BuildingStats(
        display_name="Sawmill",
        max_health=40,
        armor=2,
        cost={ResourceKind.GOLD: 40, ResourceKind.STONE: 30},
        construction_time=3,
        output_kind=ResourceKind.WOOD,
        output_rate=18,
    ),
}

_ALIASES: dict[str, BuildingKind] = {
    "commandcenter": BuildingKind.COMMAND_CENTER,
    "command_center": BuildingKind.COMMAND_CENTER,
    "command": BuildingKind.COMMAND_CENTER,
    "trainingcamp": BuildingKind.TRAINING_CAMP,
    "training_camp": BuildingKind.TRAINING_CAMP,
    "training": BuildingKind.TRAINING_CAMP,
    "mine": BuildingKind.MINE,
    "farm": BuildingKind.FARM,
    "sawmill": BuildingKind.SAWMILL,
}


@dataclass(eq=False)
class Building:
    """
    A building owned by a player.

    constructed is True iff remaining_construction <= 0 or the building
    was force-completed. Destroyed buildings are removed by the coordinator.
    """
    kind: BuildingKind
    health: int
    remaining_construction: int
    constructed: bool = False
    building_id: int = 0
    owner_id: int | None = None
    _completion_announced: bool = field(default=False, repr=False)

    @property
    def stats(self) -> BuildingStats:
        return BUILDING_STATS[self.kind]

    @property
    def name(self) -> str:
        return self.stats.display_name

    @property
    def max_health(self) -> int:
        return self.stats.max_health

    @property
    def armor(self) -> int:
        return self.stats.armor

    @property
    def cost(self) -> CostBundle:
        return self.stats.cost

    @property
    def is_destroyed(self) -> bool:
        return self.health == 0

    def tick_construction(self) -> bool:
        """Advance construction by one turn. Returns True if now constructed."""
        if self.constructed:
            return True
        self.remaining_construction -= 1
        if self.remaining_construction <= 0:
            self._complete()
        return self.constructed

    def force_complete(self):
        self.remaining_construction = 0
        self._complete()

    def _complete(self):
        self.constructed = True
        if not self._completion_announced:
            self._completion_announced = True
            log.info("%s #%d construction complete (owner %s)",
                     self.name, self.building_id, self.owner_id)

    def produce(self, ledger: ResourceLedger) -> int:
        """Credit one turn of output to ledger. Returns the amount credited."""
        if not self.constructed or self.stats.output_kind is None:
            return 0
        ledger.credit(self.stats.output_kind, self.stats.output_rate)
        return self.stats.output_rate

    def take_damage(self, damage: int) -> int:
        """Armor-mitigated hit; at least 1 point always lands. Returns damage applied."""
        applied = max(1, damage - self.armor)
        self.health = max(0, self.health - applied)
        return applied

    def describe(self) -> str:
        status = "ready" if self.constructed else f"{self.remaining_construction} turns left"
        return f"#{self.building_id} {self.name} HP {self.health}/{self.max_health} ({status})"


def resolve_building_kind(type_id: str) -> BuildingKind | None:
    return _ALIASES.get(type_id.strip().lower().replace(" ", ""))


def create_building(type_id: str) -> Building | None:
    """Case-insensitive lookup with aliases. Unknown identifiers yield None."""
    kind = resolve_building_kind(type_id)
    if kind is None:
        return None
    stats = BUILDING_STATS[kind]
    return Building(
        kind=kind,
        health=stats.max_health,
        remaining_construction=stats.construction_time,
    )


def available_building_types() -> list[str]:
    return [stats.display_name for stats in BUILDING_STATS.values()]
