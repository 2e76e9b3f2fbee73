"""
Tests for the turn coordinator.

Tests:
- Session bootstrap and starting forces
- Command validation and all-or-nothing application
- End-of-turn ordering: production, construction, movement reset, upkeep
- Turn cycling and win detection
"""

import random

import pytest

from ..config import GameConfig
from ..engine_core.action import Action, ActionType, ErrorCode
from ..engine_core.action_generator import legal_actions
from ..engine_core.buildings import BuildingKind, create_building
from ..engine_core.grid import BuildingOccupant, Position, TerrainKind, UnitOccupant
from ..engine_core.resources import ResourceKind, ResourceLedger
from ..engine_core.state import Faction, GamePhase
from ..engine_core.coordinator import TurnCoordinator
from ..engine_core.units import UnitArchetype, create_unit
from .conftest import build_coordinator


def give_training_camp(coordinator, player):
    camp = player.add_building(create_building("training"))
    camp.force_complete()
    return camp


def recruit(coordinator, player, type_id="soldier"):
    """Add a unit straight to the roster and the grid."""
    unit = player.add_unit(create_unit(type_id))
    site = coordinator.grid.nearest_free_cell(coordinator.home_row(player))
    coordinator.grid.place(site, UnitOccupant(unit.unit_id, player.player_id))
    return unit


class TestSessionBootstrap:
    """Tests for initialize_session and starting forces."""

    def test_fresh_session_scenario(self, session_coordinator):
        """20x20, 2 players, 3 units and a finished command center each, 500 of everything."""
        coordinator = session_coordinator
        assert coordinator.grid.width == 20 and coordinator.grid.height == 20
        assert len(coordinator.players) == 2
        assert coordinator.phase == GamePhase.PLAYING
        assert coordinator.turn_number == 1
        assert coordinator.current_player_index == 0

        for player in coordinator.players:
            archetypes = [u.archetype for u in player.units]
            assert archetypes == [UnitArchetype.SOLDIER, UnitArchetype.SOLDIER, UnitArchetype.ARCHER]
            assert [u.unit_id for u in player.units] == [1, 2, 3]
            assert len(player.buildings) == 1
            assert player.buildings[0].kind == BuildingKind.COMMAND_CENTER
            assert player.buildings[0].constructed
            for kind in ResourceKind:
                assert player.ledger.quantity(kind) == 500

    def test_starting_forces_are_on_the_map(self, session_coordinator):
        coordinator = session_coordinator
        positions = set()
        for player in coordinator.players:
            for unit in player.units:
                pos = coordinator.unit_position(unit)
                assert pos is not None
                assert coordinator.grid.get_cell(pos).terrain.passable
                positions.add(pos)
            assert coordinator.building_position(player.buildings[0]) is not None
        assert len(positions) == 6

    def test_players_start_on_opposite_edges(self, coordinator):
        p1, p2 = coordinator.players
        assert coordinator.unit_position(p1.units[0]) == Position(0, 0)
        assert coordinator.unit_position(p2.units[0]) == Position(0, 9)
        assert coordinator.building_position(p1.buildings[0]) == Position(3, 0)

    def test_round_robin_factions_and_names(self):
        coordinator = TurnCoordinator.initialize_session(8, 8, 4, rng=random.Random(1))
        assert [p.faction for p in coordinator.players] == [
            Faction.EMPIRE, Faction.KINGDOM, Faction.REBELLION, Faction.EMPIRE,
        ]
        assert [p.name for p in coordinator.players] == [
            "Player 1", "Player 2", "Player 3", "Player 4",
        ]

    def test_needs_two_players(self):
        with pytest.raises(ValueError):
            TurnCoordinator.initialize_session(10, 10, 1)

    def test_config_supplies_defaults(self):
        config = GameConfig(map_width=6, map_height=5, player_count=3, starting_resources=50)
        coordinator = TurnCoordinator.initialize_session(config=config, rng=random.Random(2))
        assert (coordinator.grid.width, coordinator.grid.height) == (6, 5)
        assert len(coordinator.players) == 3
        assert coordinator.players[2].ledger.quantity(ResourceKind.GOLD) == 50

    def test_independent_sessions(self):
        a = build_coordinator()
        b = build_coordinator()
        a.apply(Action.end_turn(0))
        assert a.current_player_index == 1
        assert b.current_player_index == 0


class TestCommandGuards:
    """Tests for checks shared by every command."""

    def test_not_your_turn(self, coordinator):
        result = coordinator.apply(Action.end_turn(1))
        assert not result.success
        assert result.error_code == ErrorCode.NOT_YOUR_TURN
        assert coordinator.current_player_index == 0

    def test_unknown_player(self, coordinator):
        result = coordinator.apply(Action.end_turn(7))
        assert result.error_code == ErrorCode.UNKNOWN_PLAYER

    def test_successful_commands_are_recorded(self, coordinator):
        coordinator.apply(Action.end_turn(1))
        coordinator.apply(Action.end_turn(0))
        assert [a.action_type for a in coordinator.history] == [ActionType.END_TURN]


class TestTraining:
    """Tests for TRAIN_UNIT."""

    def test_training_needs_a_training_camp(self, coordinator):
        """Rejected without a constructed camp, however rich the player is."""
        player = coordinator.current_player
        player.ledger.credit(ResourceKind.GOLD, 10_000)
        before = player.ledger.snapshot()

        result = coordinator.apply(Action.train_unit(0, "soldier"))
        assert not result.success
        assert result.error_code == ErrorCode.MISSING_PREREQUISITE
        assert player.ledger.snapshot() == before
        assert len(player.units) == 3

    def test_unfinished_camp_does_not_count(self, coordinator):
        player = coordinator.current_player
        player.add_building(create_building("training"))
        result = coordinator.apply(Action.train_unit(0, "archer"))
        assert result.error_code == ErrorCode.MISSING_PREREQUISITE

    def test_training_with_camp(self, coordinator):
        player = coordinator.current_player
        give_training_camp(coordinator, player)

        result = coordinator.apply(Action.train_unit(0, "Cavalry"))
        assert result.success
        unit = player.units[-1]
        assert unit.archetype == UnitArchetype.CAVALRY
        assert unit.unit_id == 4
        assert unit.owner_id == 0
        assert player.ledger.quantity(ResourceKind.GOLD) == 420
        assert coordinator.unit_position(unit) == Position(4, 0)

    def test_unknown_unit_type(self, coordinator):
        give_training_camp(coordinator, coordinator.current_player)
        result = coordinator.apply(Action.train_unit(0, "wizard"))
        assert result.error_code == ErrorCode.UNKNOWN_TYPE

    def test_insufficient_gold(self, coordinator):
        player = coordinator.current_player
        give_training_camp(coordinator, player)
        player.ledger = ResourceLedger({ResourceKind.GOLD: 59})
        result = coordinator.apply(Action.train_unit(0, "archer"))
        assert result.error_code == ErrorCode.INSUFFICIENT_RESOURCES
        assert player.ledger.quantity(ResourceKind.GOLD) == 59
        assert len(player.units) == 3

    def test_no_room_to_deploy(self):
        coordinator = build_coordinator(width=2, height=2)
        player = coordinator.current_player
        give_training_camp(coordinator, player)
        before = player.ledger.snapshot()
        result = coordinator.apply(Action.train_unit(0, "soldier"))
        assert result.error_code == ErrorCode.NO_DEPLOY_SPACE
        assert player.ledger.snapshot() == before


class TestConstruction:
    """Tests for CONSTRUCT_BUILDING."""

    def test_construct_spends_and_places(self, coordinator):
        player = coordinator.current_player
        result = coordinator.apply(Action.construct_building(0, "farm"))
        assert result.success
        farm = player.buildings[-1]
        assert farm.kind == BuildingKind.FARM
        assert not farm.constructed
        assert farm.building_id == 2
        assert player.ledger.quantity(ResourceKind.GOLD) == 470
        assert player.ledger.quantity(ResourceKind.WOOD) == 460
        assert coordinator.building_position(farm) == Position(4, 0)

    def test_construct_at_site(self, coordinator):
        result = coordinator.apply(Action.construct_building(0, "mine", at=Position(5, 5)))
        assert result.success
        assert coordinator.grid.occupant_at(Position(5, 5)) == BuildingOccupant(2, 0)

    def test_unaffordable_building(self, coordinator):
        player = coordinator.current_player
        player.ledger = ResourceLedger({ResourceKind.GOLD: 500, ResourceKind.WOOD: 500})
        before = player.ledger.snapshot()
        result = coordinator.apply(Action.construct_building(0, "command"))
        assert result.error_code == ErrorCode.INSUFFICIENT_RESOURCES
        assert player.ledger.snapshot() == before
        assert len(player.buildings) == 1

    def test_bad_sites_are_rejected_before_spending(self, coordinator):
        player = coordinator.current_player
        coordinator.grid.get_cell(Position(6, 6)).terrain = TerrainKind.WATER
        before = player.ledger.snapshot()

        outside = coordinator.apply(Action.construct_building(0, "farm", at=Position(10, 0)))
        water = coordinator.apply(Action.construct_building(0, "farm", at=Position(6, 6)))
        occupied = coordinator.apply(Action.construct_building(0, "farm", at=Position(0, 0)))

        assert outside.error_code == ErrorCode.OUT_OF_BOUNDS
        assert water.error_code == ErrorCode.BLOCKED
        assert occupied.error_code == ErrorCode.BLOCKED
        assert player.ledger.snapshot() == before

    def test_unknown_building_type(self, coordinator):
        result = coordinator.apply(Action.construct_building(0, "castle"))
        assert result.error_code == ErrorCode.UNKNOWN_TYPE


class TestMovement:
    """Tests for MOVE_UNIT."""

    def test_move_updates_grid(self, coordinator):
        unit = coordinator.current_player.units[0]
        result = coordinator.apply(Action.move_unit(0, unit.unit_id, 0, 2))
        assert result.success
        assert coordinator.unit_position(unit) == Position(0, 2)
        assert coordinator.grid.occupant_at(Position(0, 0)) is None
        assert unit.moved_this_turn

    def test_move_rejections(self, coordinator):
        coordinator.grid.get_cell(Position(0, 1)).terrain = TerrainKind.WATER
        cases = [
            (Action.move_unit(0, 1, 0, -1), ErrorCode.OUT_OF_BOUNDS),
            (Action.move_unit(0, 1, 0, 1), ErrorCode.BLOCKED),  # water
            (Action.move_unit(0, 1, 1, 0), ErrorCode.BLOCKED),  # own soldier
            (Action.move_unit(0, 3, 2, 3), ErrorCode.TOO_FAR),  # archer moves 2
            (Action.move_unit(0, 9, 5, 5), ErrorCode.UNKNOWN_UNIT),
        ]
        for action, code in cases:
            result = coordinator.apply(action)
            assert not result.success
            assert result.error_code == code
        assert coordinator.unit_position(coordinator.current_player.units[0]) == Position(0, 0)

    def test_one_move_per_turn(self, coordinator):
        unit = coordinator.current_player.units[0]
        assert coordinator.apply(Action.move_unit(0, unit.unit_id, 0, 1)).success
        result = coordinator.apply(Action.move_unit(0, unit.unit_id, 0, 2))
        assert result.error_code == ErrorCode.ALREADY_MOVED

    def test_movement_resets_at_end_of_turn(self, coordinator):
        unit = coordinator.current_player.units[0]
        coordinator.apply(Action.move_unit(0, unit.unit_id, 0, 1))
        coordinator.end_turn_for(coordinator.current_player)
        assert not unit.moved_this_turn

    def test_allowance_can_be_disabled(self):
        coordinator = build_coordinator(config=GameConfig(enforce_movement_allowance=False))
        assert coordinator.apply(Action.move_unit(0, 3, 8, 7)).success


class TestCombat:
    """Tests for ATTACK_UNIT and ATTACK_BUILDING."""

    def test_attack_damages_enemy(self, coordinator):
        enemy = coordinator.players[1].units[0]
        result = coordinator.apply(Action.attack_unit(0, 1, 1, 1))
        assert result.success
        assert result.combat.damage == 5
        assert enemy.health == 15

    def test_kill_removes_unit_and_scores(self, coordinator):
        p1, p2 = coordinator.players
        enemy = p2.units[0]
        enemy.health = 3
        result = coordinator.apply(Action.attack_unit(0, 1, 1, enemy.unit_id))
        assert result.success and result.combat.killed
        assert enemy not in p2.units
        assert coordinator.grid.occupant_at(Position(0, 9)) is None
        assert p1.score == 10

    def test_cannot_attack_own_units(self, coordinator):
        result = coordinator.apply(Action.attack_unit(0, 1, 0, 2))
        assert result.error_code == ErrorCode.INVALID_TARGET
        assert coordinator.players[0].units[1].health == 20

    def test_missing_targets(self, coordinator):
        assert coordinator.apply(Action.attack_unit(0, 1, 1, 42)).error_code == ErrorCode.UNKNOWN_UNIT
        assert coordinator.apply(Action.attack_unit(0, 42, 1, 1)).error_code == ErrorCode.UNKNOWN_UNIT
        assert coordinator.apply(Action.attack_unit(0, 1, 5, 1)).error_code == ErrorCode.UNKNOWN_PLAYER
        assert (
            coordinator.apply(Action.attack_building(0, 1, 1, 42)).error_code
            == ErrorCode.UNKNOWN_BUILDING
        )

    def test_dead_attacker_is_rejected(self, coordinator):
        coordinator.players[0].units[0].health = 0
        result = coordinator.apply(Action.attack_unit(0, 1, 1, 1))
        assert result.error_code == ErrorCode.INVALID_TARGET
        assert coordinator.players[1].units[0].health == 20

    def test_building_takes_raw_attack_minus_armor(self, coordinator):
        """Archer (12 attack) against a command center (armor 5): 7, no variance, no crit."""
        center = coordinator.players[1].buildings[0]
        result = coordinator.apply(Action.attack_building(0, 3, 1, center.building_id))
        assert result.success
        assert center.health == 93

    def test_destroyed_building_is_removed(self, coordinator):
        p1, p2 = coordinator.players
        center = p2.buildings[0]
        center.health = 2
        coordinator.apply(Action.attack_building(0, 1, 1, center.building_id))
        assert p2.buildings == []
        assert coordinator.grid.occupant_at(Position(3, 9)) is None
        assert p1.score == 25


class TestEndOfTurn:
    """Tests for end_turn_for ordering."""

    def test_constructed_buildings_produce(self, coordinator):
        player = coordinator.current_player
        coordinator.end_turn_for(player)
        assert player.ledger.quantity(ResourceKind.GOLD) == 505

    def test_construction_finishing_this_turn_does_not_produce_yet(self, coordinator):
        player = coordinator.current_player
        farm = player.add_building(create_building("farm"))
        farm.remaining_construction = 1

        coordinator.end_turn_for(player)
        assert farm.constructed
        assert player.ledger.quantity(ResourceKind.FOOD) == 500

        coordinator.end_turn_for(player)
        assert player.ledger.quantity(ResourceKind.FOOD) == 520

    def test_base_production_is_opt_in(self):
        coordinator = build_coordinator(config=GameConfig(apply_base_production=True))
        player = coordinator.current_player
        coordinator.end_turn_for(player)
        assert player.ledger.quantity(ResourceKind.WOOD) == 510
        assert player.ledger.quantity(ResourceKind.GOLD) == 515

    def test_starvation_empties_roster(self):
        """No food and 10 units: (20 - 0) // 2 = 10 units lost, oldest first."""
        coordinator = build_coordinator(forces=False)
        player = coordinator.current_player
        for _ in range(10):
            recruit(coordinator, player)
        player.ledger = ResourceLedger({ResourceKind.FOOD: 0})

        coordinator.end_turn_for(player)
        assert player.units == []
        assert all(cell.occupant is None for cell in coordinator.grid.cells())

    def test_partial_starvation_removes_oldest(self):
        coordinator = build_coordinator(forces=False)
        player = coordinator.current_player
        units = [recruit(coordinator, player) for _ in range(4)]
        player.ledger = ResourceLedger({ResourceKind.FOOD: 5})  # needs 8

        coordinator.end_turn_for(player)
        assert player.units == units[1:]
        assert coordinator.unit_position(units[0]) is None

    def test_enough_food_keeps_everyone(self, coordinator):
        player = coordinator.current_player
        player.ledger = ResourceLedger({ResourceKind.FOOD: 6})
        coordinator.end_turn_for(player)
        assert len(player.units) == 3
        assert player.ledger.quantity(ResourceKind.FOOD) == 6


class TestTurnCycling:
    """Tests for advance_turn."""

    @pytest.mark.parametrize("player_count", [2, 3, 4])
    def test_full_cycles_increment_turn(self, player_count):
        coordinator = build_coordinator(width=12, height=12, player_count=player_count)
        for k in range(1, 4):
            for _ in range(player_count):
                coordinator.advance_turn()
            assert coordinator.current_player_index == 0
            assert coordinator.turn_number == 1 + k

    def test_turn_counter_only_moves_on_wrap(self, coordinator):
        coordinator.advance_turn()
        assert coordinator.current_player_index == 1
        assert coordinator.turn_number == 1

    def test_end_turn_command_advances(self, coordinator):
        result = coordinator.apply(Action.end_turn(0))
        assert result.success
        assert coordinator.current_player is coordinator.players[1]


class TestWinCondition:
    """Tests for elimination and game over."""

    def test_eliminated_player_loses(self, coordinator):
        p1, p2 = coordinator.players
        p2.units.clear()
        p2.buildings.clear()

        coordinator.advance_turn()
        assert coordinator.phase == GamePhase.GAME_OVER
        assert coordinator.winner is p1
        assert p2.defeated

    def test_buildings_alone_keep_a_player_alive(self, coordinator):
        coordinator.players[1].units.clear()
        coordinator.advance_turn()
        assert coordinator.phase == GamePhase.PLAYING

    def test_nobody_left_means_no_winner(self, coordinator):
        for player in coordinator.players:
            player.units.clear()
            player.buildings.clear()
        coordinator.advance_turn()
        assert coordinator.is_game_over
        assert coordinator.winner is None

    def test_starvation_can_end_the_game(self):
        coordinator = build_coordinator(forces=False)
        p1, p2 = coordinator.players
        recruit(coordinator, p1)
        recruit(coordinator, p2)
        p1.ledger = ResourceLedger({ResourceKind.FOOD: 0})

        coordinator.advance_turn()
        assert coordinator.is_game_over
        assert coordinator.winner is p2

    def test_no_commands_after_game_over(self, coordinator):
        coordinator.players[1].units.clear()
        coordinator.players[1].buildings.clear()
        coordinator.advance_turn()

        result = coordinator.apply(Action.end_turn(coordinator.current_player.player_id))
        assert result.error_code == ErrorCode.GAME_OVER
        turn = coordinator.turn_number
        assert coordinator.advance_turn() == []
        assert coordinator.turn_number == turn

    def test_turn_limit_awards_the_leader(self, coordinator):
        coordinator.players[1].add_score(30)
        coordinator.finish_by_turn_limit()
        assert coordinator.is_game_over
        assert coordinator.winner is coordinator.players[1]
        assert "Player 2 wins" in coordinator.result_summary()

    def test_turn_limit_tie_has_no_winner(self, coordinator):
        coordinator.finish_by_turn_limit()
        assert coordinator.winner is None
        assert coordinator.result_summary() == "No winner"


class TestLegalActions:
    """Tests for the action generator."""

    def test_every_generated_action_is_valid(self, coordinator):
        actions = legal_actions(coordinator)
        assert actions[-1].action_type == ActionType.END_TURN
        for action in actions[:-1]:
            assert coordinator.validate(action) is None

    def test_no_training_without_camp(self, coordinator):
        types = {a.action_type for a in legal_actions(coordinator)}
        assert ActionType.TRAIN_UNIT not in types
        assert ActionType.CONSTRUCT_BUILDING in types
        assert ActionType.ATTACK_UNIT in types
        assert ActionType.ATTACK_BUILDING in types
        assert ActionType.MOVE_UNIT in types

    def test_training_appears_with_camp(self, coordinator):
        give_training_camp(coordinator, coordinator.current_player)
        trains = [a for a in legal_actions(coordinator) if a.action_type == ActionType.TRAIN_UNIT]
        assert len(trains) == 3

    def test_moves_can_be_left_out(self, coordinator):
        types = {a.action_type for a in legal_actions(coordinator, include_moves=False)}
        assert ActionType.MOVE_UNIT not in types

    def test_nothing_after_game_over(self, coordinator):
        coordinator.finish_by_turn_limit()
        assert legal_actions(coordinator) == []
