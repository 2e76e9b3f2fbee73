"""
Pytest fixtures for GridWar tests.
"""

import random

import pytest

from ..config import GameConfig
from ..engine_core.coordinator import TurnCoordinator
from ..engine_core.grid import Grid
from ..engine_core.resources import ResourceLedger
from ..engine_core.state import Faction, Player
from ..session.presentation import PresentationPort


class ScriptedRandom:
    """
    Stand-in rng with fixed outcomes.

    random() replays rolls in a cycle (default: never a critical hit);
    randint() always returns variance clamped into the requested range.
    """

    def __init__(self, rolls=(0.99,), variance=0):
        self.rolls = list(rolls)
        self.variance = variance
        self._index = 0

    def random(self):
        value = self.rolls[self._index % len(self.rolls)]
        self._index += 1
        return value

    def randint(self, a, b):
        return max(a, min(b, self.variance))

    def choice(self, seq):
        return seq[0]


class ScriptedPresentation(PresentationPort):
    """Replays scripted answers and records everything shown."""

    def __init__(self, actions, unit_types=(), building_types=(), targets=(), indexes=()):
        self.actions = list(actions)
        self.unit_types = list(unit_types)
        self.building_types = list(building_types)
        self.targets = list(targets)
        self.indexes = list(indexes)
        self.messages: list[str] = []
        self.errors: list[str] = []
        self.states = []

    def choose_action(self, options):
        return self.actions.pop(0)

    def choose_unit_type(self, types):
        return self.unit_types.pop(0)

    def choose_building_type(self, types):
        return self.building_types.pop(0)

    def choose_target(self):
        return self.targets.pop(0)

    def choose_index(self, prompt, items):
        return self.indexes.pop(0)

    def show_message(self, message):
        self.messages.append(message)

    def show_error(self, message):
        self.errors.append(message)

    def show_state(self, view):
        self.states.append(view)


def build_coordinator(
    width: int = 10,
    height: int = 10,
    player_count: int = 2,
    rng=None,
    forces: bool = True,
    config: GameConfig | None = None,
) -> TurnCoordinator:
    """
    All-grass coordinator with deterministic combat.

    With forces on a 10x10 map, player 1 holds (0,0), (1,0), (2,0) and its
    command center at (3,0); player 2 mirrors that on row 9.
    """
    config = config or GameConfig()
    players = [
        Player(
            player_id=i,
            name=f"Player {i + 1}",
            faction=Faction.for_index(i),
            ledger=ResourceLedger.with_defaults(
                config.starting_resources, config.base_production_rate,
            ),
        )
        for i in range(player_count)
    ]
    coordinator = TurnCoordinator(
        Grid(width, height), players, config=config, rng=rng or ScriptedRandom(),
    )
    if forces:
        coordinator.deploy_starting_forces()
    return coordinator


@pytest.fixture
def rng() -> random.Random:
    """Seeded rng for reproducible randomness."""
    return random.Random(1234)


@pytest.fixture
def coordinator() -> TurnCoordinator:
    """Two players on an all-grass 10x10 map, no critical hits, zero variance."""
    return build_coordinator()


@pytest.fixture
def session_coordinator() -> TurnCoordinator:
    """A full 20x20 two-player session with generated terrain."""
    return TurnCoordinator.initialize_session(20, 20, 2, rng=random.Random(42))


@pytest.fixture
def config() -> GameConfig:
    return GameConfig(seed=7, max_turns=5)
