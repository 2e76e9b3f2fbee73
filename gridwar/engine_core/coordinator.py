"""
Turn Coordinator - The single owner of game state transitions.

The coordinator:
- Owns the grid, the ordered players, the current-player cursor and the turn counter
- Validates and applies player commands (all-or-nothing)
- Runs end-of-turn processing: production, construction, movement reset, upkeep
- Detects the win condition after every turn advance

All mutation goes through apply() or advance_turn(). One coordinator is one
game session; independent sessions are independent instances.
"""

from __future__ import annotations
import logging
import random
from typing import Callable, Iterable

from ..config import GameConfig
from .action import Action, ActionResult, ActionType, ErrorCode
from .buildings import Building, create_building
from .combat import CombatListener, CombatResolver
from .grid import BuildingOccupant, Grid, Position, UnitOccupant
from .resources import ResourceKind, ResourceLedger, format_cost
from .state import Faction, GamePhase, Player
from .units import Unit, create_unit

log = logging.getLogger(__name__)


STARTING_UNITS = ("soldier", "soldier", "archer")
STARTING_BUILDING = "command_center"


class TurnCoordinator:
    """
    Root of a game session.

    Usage:
        coordinator = TurnCoordinator.initialize_session(20, 20, 2)
        result = coordinator.apply(Action.train_unit(0, "archer"))
        if not result.success:
            show_error(result.error)
        coordinator.apply(Action.end_turn(0))
    """

    def __init__(
        self,
        grid: Grid,
        players: list[Player],
        config: GameConfig | None = None,
        rng: random.Random | None = None,
        listener: CombatListener | None = None,
    ):
        if len(players) < 2:
            raise ValueError(f"A session needs at least 2 players, got {len(players)}")
        self.config = config or GameConfig()
        self.grid = grid
        self.players = players
        self.rng = rng or random.Random(self.config.seed)
        self.combat = CombatResolver(
            rng=self.rng,
            listener=listener,
            critical_chance=self.config.critical_hit_chance,
            critical_multiplier=self.config.critical_hit_multiplier,
            wound_threshold=self.config.severe_wound_percent,
        )

        self.current_player_index = 0
        self.turn_number = 1
        self.phase = GamePhase.PLAYING
        self.winner: Player | None = None
        self.history: list[Action] = []

    @classmethod
    def initialize_session(
        cls,
        width: int | None = None,
        height: int | None = None,
        player_count: int | None = None,
        config: GameConfig | None = None,
        rng: random.Random | None = None,
        listener: CombatListener | None = None,
        human_players: Iterable[int] = (0,),
        starting_forces: bool = True,
    ) -> TurnCoordinator:
        """
        Create a fresh session.

        Generates terrain, creates players with round-robin factions and
        full starting ledgers, then deploys each player's starting forces.
        Arguments left as None fall back to the config.
        """
        config = config or GameConfig()
        width = width if width is not None else config.map_width
        height = height if height is not None else config.map_height
        player_count = player_count if player_count is not None else config.player_count
        if player_count < 2:
            raise ValueError(f"A session needs at least 2 players, got {player_count}")

        rng = rng or random.Random(config.seed)
        grid = Grid.generate(width, height, rng)
        humans = set(human_players)
        players = [
            Player(
                player_id=i,
                name=f"Player {i + 1}",
                faction=Faction.for_index(i),
                ledger=ResourceLedger.with_defaults(
                    config.starting_resources, config.base_production_rate,
                ),
                is_human=i in humans,
            )
            for i in range(player_count)
        ]

        coordinator = cls(grid, players, config=config, rng=rng, listener=listener)
        if starting_forces:
            coordinator.deploy_starting_forces()
        log.info("Session started: %dx%d grid, %d players", width, height, player_count)
        return coordinator

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def is_game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def get_player(self, player_id: int | None) -> Player | None:
        for player in self.players:
            if player.player_id == player_id:
                return player
        return None

    def opponents_of(self, player: Player) -> list[Player]:
        return [p for p in self.players if p is not player]

    def home_row(self, player: Player) -> int:
        """Player 0 at the top row, the last player at the bottom, others spread between."""
        index = self.players.index(player)
        return round(index * (self.grid.height - 1) / (len(self.players) - 1))

    def unit_position(self, unit: Unit) -> Position | None:
        return self.grid.find(UnitOccupant(unit.unit_id, unit.owner_id))

    def building_position(self, building: Building) -> Position | None:
        return self.grid.find(BuildingOccupant(building.building_id, building.owner_id))

    def entity_at(self, pos: Position) -> Unit | Building | None:
        occupant = self.grid.occupant_at(pos)
        if occupant is None:
            return None
        owner = self.get_player(occupant.owner_id)
        if owner is None:
            return None
        if isinstance(occupant, UnitOccupant):
            return owner.get_unit(occupant.unit_id)
        return owner.get_building(occupant.building_id)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def deploy_starting_forces(self):
        """Give every player two soldiers, an archer and a finished command center."""
        for player in self.players:
            for type_id in STARTING_UNITS:
                unit = player.add_unit(create_unit(type_id))
                self._place_near_home(player, UnitOccupant(unit.unit_id, player.player_id))

            building = player.add_building(create_building(STARTING_BUILDING))
            building.force_complete()
            self._place_near_home(player, BuildingOccupant(building.building_id, player.player_id))

    def _place_near_home(self, player: Player, occupant: UnitOccupant | BuildingOccupant):
        site = self.grid.nearest_free_cell(self.home_row(player))
        if site is None:
            log.warning("No free cell for %s of %s; left off the map", occupant, player.name)
            return
        self.grid.place(site, occupant)

    # ------------------------------------------------------------------
    # Command processing
    # ------------------------------------------------------------------

    def apply(self, action: Action) -> ActionResult:
        """
        Validate and apply one command.

        Returns a rejection (state untouched) or a success with the
        human-readable changes.
        """
        rejection = self.validate(action)
        if rejection is not None:
            log.debug("Rejected %s: %s", action.describe(), rejection.error)
            return rejection

        handler = self._get_handler(action.action_type)
        result = handler(self.current_player, action)
        if result.success:
            self.history.append(action)
            log.debug("Applied %s for %s", action.describe(), self.current_player.name)
        return result

    def validate(self, action: Action) -> ActionResult | None:
        """The rejection apply() would return, or None if the command is valid."""
        if self.is_game_over:
            return ActionResult.failure("Game is over - no actions allowed", ErrorCode.GAME_OVER)

        player = self.get_player(action.player_id)
        if player is None:
            return ActionResult.failure(
                f"Player {action.player_id} not found", ErrorCode.UNKNOWN_PLAYER,
            )
        if player is not self.current_player:
            return ActionResult.failure(f"Not {player.name}'s turn", ErrorCode.NOT_YOUR_TURN)

        validator = self._get_validator(action.action_type)
        if validator is None:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}", ErrorCode.NO_HANDLER,
            )
        return validator(player, action)

    def _get_validator(
        self, action_type: ActionType,
    ) -> Callable[[Player, Action], ActionResult | None] | None:
        validators = {
            ActionType.TRAIN_UNIT: self._validate_train,
            ActionType.CONSTRUCT_BUILDING: self._validate_construct,
            ActionType.MOVE_UNIT: self._validate_move,
            ActionType.ATTACK_UNIT: self._validate_attack_unit,
            ActionType.ATTACK_BUILDING: self._validate_attack_building,
            ActionType.END_TURN: lambda player, action: None,
        }
        return validators.get(action_type)

    def _get_handler(self, action_type: ActionType) -> Callable[[Player, Action], ActionResult]:
        handlers = {
            ActionType.TRAIN_UNIT: self._handle_train,
            ActionType.CONSTRUCT_BUILDING: self._handle_construct,
            ActionType.MOVE_UNIT: self._handle_move,
            ActionType.ATTACK_UNIT: self._handle_attack_unit,
            ActionType.ATTACK_BUILDING: self._handle_attack_building,
            ActionType.END_TURN: self._handle_end_turn,
        }
        return handlers[action_type]

    # Training ----------------------------------------------------------

    def _validate_train(self, player: Player, action: Action) -> ActionResult | None:
        type_id = action.payload.type_id or ""
        unit = create_unit(type_id)
        if unit is None:
            return ActionResult.failure(f"Unknown unit type: {type_id}", ErrorCode.UNKNOWN_TYPE)
        if not player.has_training_capability():
            return ActionResult.failure(
                "Training requires a completed Training Camp", ErrorCode.MISSING_PREREQUISITE,
            )
        if not player.ledger.can_afford(unit.training_cost):
            return ActionResult.failure(
                f"Not enough resources for {unit.name} ({format_cost(unit.training_cost)})",
                ErrorCode.INSUFFICIENT_RESOURCES,
            )
        if self.grid.nearest_free_cell(self.home_row(player)) is None:
            return ActionResult.failure("No free cell to deploy the unit", ErrorCode.NO_DEPLOY_SPACE)
        return None

    def _handle_train(self, player: Player, action: Action) -> ActionResult:
        unit = create_unit(action.payload.type_id)
        player.ledger.spend(unit.training_cost)
        player.add_unit(unit)
        site = self.grid.nearest_free_cell(self.home_row(player))
        self.grid.place(site, UnitOccupant(unit.unit_id, player.player_id))
        return ActionResult.ok([f"{player.name} trained {unit.name} #{unit.unit_id} at {site}"])

    # Construction ------------------------------------------------------

    def _validate_construct(self, player: Player, action: Action) -> ActionResult | None:
        type_id = action.payload.type_id or ""
        building = create_building(type_id)
        if building is None:
            return ActionResult.failure(
                f"Unknown building type: {type_id}", ErrorCode.UNKNOWN_TYPE,
            )
        if not player.ledger.can_afford(building.cost):
            return ActionResult.failure(
                f"Not enough resources for {building.name} ({format_cost(building.cost)})",
                ErrorCode.INSUFFICIENT_RESOURCES,
            )
        site = action.payload.target
        if site is not None:
            if not self.grid.in_bounds(site):
                return ActionResult.failure(f"{site} is outside the map", ErrorCode.OUT_OF_BOUNDS)
            if not self.grid.is_passable(site):
                return ActionResult.failure(f"Cannot build at {site}", ErrorCode.BLOCKED)
        elif self.grid.nearest_free_cell(self.home_row(player)) is None:
            return ActionResult.failure("No free cell to build on", ErrorCode.NO_DEPLOY_SPACE)
        return None

    def _handle_construct(self, player: Player, action: Action) -> ActionResult:
        building = create_building(action.payload.type_id)
        player.ledger.spend(building.cost)
        player.add_building(building)
        site = action.payload.target or self.grid.nearest_free_cell(self.home_row(player))
        self.grid.place(site, BuildingOccupant(building.building_id, player.player_id))
        return ActionResult.ok([
            f"{player.name} started {building.name} #{building.building_id} at {site} "
            f"({building.remaining_construction} turns)"
        ])

    # Movement ----------------------------------------------------------

    def _validate_move(self, player: Player, action: Action) -> ActionResult | None:
        unit = player.get_unit(action.payload.unit_id)
        if unit is None:
            return ActionResult.failure(
                f"No unit #{action.payload.unit_id} in your army", ErrorCode.UNKNOWN_UNIT,
            )
        if not unit.is_alive:
            return ActionResult.failure(f"{unit.name} is dead", ErrorCode.INVALID_TARGET)
        if unit.moved_this_turn:
            return ActionResult.failure(
                f"{unit.name} #{unit.unit_id} already moved this turn", ErrorCode.ALREADY_MOVED,
            )

        target = action.payload.target
        if target is None or not self.grid.in_bounds(target):
            return ActionResult.failure(f"{target} is outside the map", ErrorCode.OUT_OF_BOUNDS)
        cell = self.grid.get_cell(target)
        if not cell.terrain.passable:
            return ActionResult.failure(
                f"{cell.terrain.name.title()} at {target} is impassable", ErrorCode.BLOCKED,
            )
        if not cell.is_empty:
            return ActionResult.failure(f"{target} is occupied", ErrorCode.BLOCKED)

        origin = self.unit_position(unit)
        if origin is None:
            return ActionResult.failure(
                f"{unit.name} #{unit.unit_id} is not on the map", ErrorCode.INVALID_TARGET,
            )
        if self.config.enforce_movement_allowance and origin.manhattan_distance(target) > unit.movement:
            return ActionResult.failure(
                f"{unit.name} can move at most {unit.movement} cells", ErrorCode.TOO_FAR,
            )
        return None

    def _handle_move(self, player: Player, action: Action) -> ActionResult:
        unit = player.get_unit(action.payload.unit_id)
        origin = self.unit_position(unit)
        target = action.payload.target
        occupant = self.grid.clear(origin)
        self.grid.place(target, occupant)
        unit.moved_this_turn = True
        return ActionResult.ok([f"{unit.name} #{unit.unit_id} moved {origin} -> {target}"])

    # Combat ------------------------------------------------------------

    def _validate_attack_unit(self, player: Player, action: Action) -> ActionResult | None:
        rejection = self._validate_attacker(player, action)
        if rejection is not None:
            return rejection
        target_player = self.get_player(action.payload.target_player_id)
        defender = target_player.get_unit(action.payload.target_unit_id)
        if defender is None:
            return ActionResult.failure(
                f"{target_player.name} has no unit #{action.payload.target_unit_id}",
                ErrorCode.UNKNOWN_UNIT,
            )
        attacker = player.get_unit(action.payload.unit_id)
        if not self.combat.can_attack(attacker, defender):
            return ActionResult.failure(
                f"{attacker.name} cannot attack {defender.name}", ErrorCode.INVALID_TARGET,
            )
        return None

    def _validate_attack_building(self, player: Player, action: Action) -> ActionResult | None:
        rejection = self._validate_attacker(player, action)
        if rejection is not None:
            return rejection
        target_player = self.get_player(action.payload.target_player_id)
        building = target_player.get_building(action.payload.target_building_id)
        if building is None:
            return ActionResult.failure(
                f"{target_player.name} has no building #{action.payload.target_building_id}",
                ErrorCode.UNKNOWN_BUILDING,
            )
        return None

    def _validate_attacker(self, player: Player, action: Action) -> ActionResult | None:
        attacker = player.get_unit(action.payload.unit_id)
        if attacker is None:
            return ActionResult.failure(
                f"No unit #{action.payload.unit_id} in your army", ErrorCode.UNKNOWN_UNIT,
            )
        if not attacker.is_alive:
            return ActionResult.failure(f"{attacker.name} is dead", ErrorCode.INVALID_TARGET)
        target_player = self.get_player(action.payload.target_player_id)
        if target_player is None:
            return ActionResult.failure(
                f"Player {action.payload.target_player_id} not found", ErrorCode.UNKNOWN_PLAYER,
            )
        if target_player is player:
            return ActionResult.failure("Cannot attack your own forces", ErrorCode.INVALID_TARGET)
        return None

    def _handle_attack_unit(self, player: Player, action: Action) -> ActionResult:
        attacker = player.get_unit(action.payload.unit_id)
        target_player = self.get_player(action.payload.target_player_id)
        defender = target_player.get_unit(action.payload.target_unit_id)

        outcome = self.combat.strike(attacker, defender)
        changes = [
            f"{attacker.name} #{attacker.unit_id} hit {target_player.name}'s "
            f"{defender.name} #{defender.unit_id} for {outcome.damage}"
            + (" (critical!)" if outcome.critical else "")
        ]
        if outcome.killed:
            self._remove_unit(target_player, defender)
            player.add_score(self.config.kill_score)
            changes.append(f"{defender.name} #{defender.unit_id} was killed")
            log.info("%s's %s killed %s's %s",
                     player.name, attacker.name, target_player.name, defender.name)
        return ActionResult.ok(changes, combat=outcome)

    def _handle_attack_building(self, player: Player, action: Action) -> ActionResult:
        attacker = player.get_unit(action.payload.unit_id)
        target_player = self.get_player(action.payload.target_player_id)
        building = target_player.get_building(action.payload.target_building_id)

        # Raw attack: no defense, no variance, no critical
        applied = building.take_damage(attacker.attack)
        changes = [
            f"{attacker.name} #{attacker.unit_id} hit {target_player.name}'s "
            f"{building.name} #{building.building_id} for {applied}"
        ]
        if building.is_destroyed:
            self._remove_building(target_player, building)
            player.add_score(self.config.building_destroy_score)
            changes.append(f"{building.name} #{building.building_id} was destroyed")
            log.info("%s destroyed %s's %s", player.name, target_player.name, building.name)
        return ActionResult.ok(changes)

    def _remove_unit(self, owner: Player, unit: Unit):
        self.grid.remove(UnitOccupant(unit.unit_id, owner.player_id))
        owner.remove_unit(unit)

    def _remove_building(self, owner: Player, building: Building):
        self.grid.remove(BuildingOccupant(building.building_id, owner.player_id))
        owner.remove_building(building)

    # Turn flow ---------------------------------------------------------

    def _handle_end_turn(self, player: Player, action: Action) -> ActionResult:
        changes = [f"{player.name} ended turn {self.turn_number}"]
        changes.extend(self.advance_turn())
        if self.is_game_over:
            changes.append(self.result_summary())
        return ActionResult.ok(changes)

    def end_turn_for(self, player: Player) -> list[str]:
        """
        End-of-turn processing for one player, in order:
        1. Constructed buildings produce
        2. Unfinished buildings advance one construction tick
        3. Units regain their movement
        4. Food upkeep; starving units are lost oldest-first
        """
        changes = []
        ledger = player.ledger
        finished = [b for b in player.buildings if b.constructed]
        unfinished = [b for b in player.buildings if not b.constructed]

        for building in finished:
            building.produce(ledger)
        for building in unfinished:
            if building.tick_construction():
                changes.append(f"{player.name}'s {building.name} is complete")
        if self.config.apply_base_production:
            ledger.apply_production_tick()

        for unit in player.units:
            unit.moved_this_turn = False

        changes.extend(self._apply_upkeep(player))
        return changes

    def _apply_upkeep(self, player: Player) -> list[str]:
        per_unit = self.config.food_per_unit
        required = len(player.units) * per_unit
        available = player.ledger.quantity(ResourceKind.FOOD)
        if available >= required:
            return []

        to_lose = (required - available) // per_unit
        lost = 0
        while lost < to_lose and player.units:
            self._remove_unit(player, player.units[0])
            lost += 1
        if lost == 0:
            return []
        log.info("%s lost %d units to starvation", player.name, lost)
        return [f"{player.name} lost {lost} units to starvation"]

    def advance_turn(self) -> list[str]:
        """
        End the current player's turn and move the cursor.

        The turn counter increments when the cursor wraps to player 0.
        The win condition is checked afterwards. No-op once the game is over.
        """
        if self.is_game_over:
            return []
        changes = self.end_turn_for(self.current_player)
        self.current_player_index = (self.current_player_index + 1) % len(self.players)
        if self.current_player_index == 0:
            self.turn_number += 1
        self.check_win_condition()
        return changes

    def check_win_condition(self) -> bool:
        """
        Mark players with no units and no buildings as defeated; end the game
        when at most one player remains active. Returns whether it is over.
        """
        for player in self.players:
            if not player.is_active and not player.defeated:
                player.defeated = True
                log.info("%s has been eliminated", player.name)

        active = [p for p in self.players if p.is_active]
        if len(active) <= 1:
            self.phase = GamePhase.GAME_OVER
            self.winner = active[0] if active else None
            log.info("Game over on turn %d: %s", self.turn_number, self.result_summary())
        return self.is_game_over

    def finish_by_turn_limit(self):
        """End the game; the highest score among active players wins, ties mean no winner."""
        if self.is_game_over:
            return
        active = [p for p in self.players if p.is_active]
        best = max((p.score for p in active), default=0)
        leaders = [p for p in active if p.score == best]
        self.phase = GamePhase.GAME_OVER
        self.winner = leaders[0] if len(leaders) == 1 else None
        log.info("Turn limit reached: %s", self.result_summary())

    def result_summary(self) -> str:
        if not self.is_game_over:
            return "Game in progress"
        if self.winner is None:
            return "No winner"
        return f"{self.winner.name} wins with score {self.winner.score}"
