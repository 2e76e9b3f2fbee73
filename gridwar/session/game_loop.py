"""
Game Loop - Drives a session turn by turn.

Each turn belongs to one player:
1. Human seats are asked for commands through the PresentationPort menu
   until they end the turn (or quit)
2. Bot seats are asked for decisions until they pick END_TURN, with a
   per-turn action cap as a backstop
3. After every turn the coordinator has already advanced the cursor and
   checked the win condition; the loop stops at GameOver or the turn limit
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import TYPE_CHECKING

from ..engine_core.action import Action, ActionResult
from ..engine_core.action_generator import legal_actions
from ..engine_core.buildings import available_building_types
from ..engine_core.units import available_unit_types
from .presentation import MenuChoice
from .views import build_state_view, player_view

if TYPE_CHECKING:
    from ..engine_core.state import Player
    from .manager import Session
    from .presentation import PresentationPort

log = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    WAITING_HUMAN_ACTION = "waiting_human_action"
    RUNNING_BOT = "running_bot"
    GAME_OVER = "game_over"
    QUIT = "quit"


@dataclass
class TurnResult:
    """
    Result of playing one turn.

    Contains what was attempted and what changed, for display or logs.
    """
    success: bool
    loop_state: LoopState
    player_id: int | None = None

    actions: list[str] = field(default_factory=list)
    state_changes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    winner: int | None = None


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session, presentation=ConsolePresentation())
        final = loop.run()
        print(final.winner)
    """

    def __init__(self, session: Session, presentation: PresentationPort | None = None):
        self.session = session
        self.presentation = presentation
        self.state = LoopState.WAITING_HUMAN_ACTION

    @property
    def coordinator(self):
        return self.session.coordinator

    def run(self, max_turns: int | None = None) -> TurnResult:
        """Play turns until GameOver, a quit, or the turn limit."""
        limit = max_turns or self.session.config.max_turns
        result = TurnResult(success=True, loop_state=self.state)

        while not self.coordinator.is_game_over:
            if self.coordinator.turn_number > limit:
                self.coordinator.finish_by_turn_limit()
                self._notify(self.coordinator.result_summary())
                break
            result = self.play_turn()
            if result.loop_state == LoopState.QUIT or not result.success:
                return result

        return self._game_over_result()

    def play_turn(self) -> TurnResult:
        """Play the current player's whole turn."""
        if self.coordinator.is_game_over:
            return self._game_over_result()

        bot = self.session.bot_for_current_player()
        if bot is not None:
            result = self.run_bot_turn()
        else:
            result = self.run_human_turn()

        if self.coordinator.is_game_over:
            self.state = LoopState.GAME_OVER
            result.loop_state = self.state
            result.winner = self._winner_id()
            self._notify(self.coordinator.result_summary())
        return result

    # ------------------------------------------------------------------
    # Bots
    # ------------------------------------------------------------------

    def run_bot_turn(self) -> TurnResult:
        coordinator = self.coordinator
        player = coordinator.current_player
        bot = self.session.bot_for_current_player()
        if bot is None:
            return TurnResult(
                success=False,
                loop_state=self.state,
                player_id=player.player_id,
                errors=[f"No bot configured for {player.name}"],
            )

        self.state = LoopState.RUNNING_BOT
        result = TurnResult(success=True, loop_state=self.state, player_id=player.player_id)
        cap = self.session.config.max_bot_actions_per_turn

        while not coordinator.is_game_over and coordinator.current_player is player:
            if len(result.actions) >= cap:
                log.warning("%s hit the action cap of %d; ending turn", bot.get_name(), cap)
                action = Action.end_turn(player.player_id)
            else:
                action = bot.select_action(coordinator, legal_actions(coordinator)).action

            outcome = coordinator.apply(action)
            result.actions.append(action.describe())
            if outcome.success:
                result.state_changes.extend(outcome.state_changes)
                for change in outcome.state_changes:
                    self._notify(change)
            else:
                result.errors.append(outcome.error)
                log.warning("%s chose a rejected command: %s", bot.get_name(), outcome.error)
                coordinator.apply(Action.end_turn(player.player_id))

        self.state = LoopState.WAITING_HUMAN_ACTION
        return result

    # ------------------------------------------------------------------
    # Humans
    # ------------------------------------------------------------------

    def run_human_turn(self) -> TurnResult:
        coordinator = self.coordinator
        player = coordinator.current_player
        presentation = self.presentation
        if presentation is None:
            return TurnResult(
                success=False,
                loop_state=self.state,
                player_id=player.player_id,
                errors=["No presentation configured for a human player"],
            )

        self.state = LoopState.WAITING_HUMAN_ACTION
        result = TurnResult(success=True, loop_state=self.state, player_id=player.player_id)
        presentation.show_state(build_state_view(coordinator))
        menu = {choice.value: choice for choice in MenuChoice}

        while not coordinator.is_game_over and coordinator.current_player is player:
            choice = menu.get(presentation.choose_action(list(MenuChoice)))
            if choice is None:
                presentation.show_error("Invalid choice")
                continue
            if choice == MenuChoice.QUIT:
                self.state = LoopState.QUIT
                result.loop_state = self.state
                return result

            action = self._human_command(choice, player)
            if action is None:
                continue
            outcome = coordinator.apply(action)
            result.actions.append(action.describe())
            self._report(outcome, result)

        return result

    def _human_command(self, choice: MenuChoice, player: Player) -> Action | None:
        """Turn a menu choice into a command, or show something and return None."""
        presentation = self.presentation
        pid = player.player_id

        if choice == MenuChoice.VIEW_UNITS:
            view = player_view(self.coordinator, player)
            if not view.units:
                presentation.show_message("You have no units")
            for unit in view.units:
                presentation.show_message(
                    f"#{unit.unit_id} {unit.name} HP {unit.health}/{unit.max_health} "
                    f"at ({unit.x}, {unit.y})"
                )
            return None
        if choice == MenuChoice.VIEW_BUILDINGS:
            if not player.buildings:
                presentation.show_message("You have no buildings")
            for building in player.buildings:
                presentation.show_message(building.describe())
            return None
        if choice == MenuChoice.VIEW_MAP:
            presentation.show_map(self.coordinator.grid.render())
            return None
        if choice == MenuChoice.TRAIN_UNIT:
            return Action.train_unit(pid, presentation.choose_unit_type(available_unit_types()))
        if choice == MenuChoice.CONSTRUCT_BUILDING:
            building_type = presentation.choose_building_type(available_building_types())
            return Action.construct_building(pid, building_type)
        if choice == MenuChoice.MOVE_UNIT:
            unit = self._pick(player.units, "Select unit to move", lambda u: u.describe())
            if unit is None:
                return None
            x, y = presentation.choose_target()
            return Action.move_unit(pid, unit.unit_id, x, y)
        if choice == MenuChoice.ATTACK_UNIT:
            return self._attack_command(player, target_buildings=False)
        if choice == MenuChoice.ATTACK_BUILDING:
            return self._attack_command(player, target_buildings=True)
        return Action.end_turn(pid)

    def _attack_command(self, player: Player, target_buildings: bool) -> Action | None:
        attacker = self._pick(player.units, "Select attacker", lambda u: u.describe())
        if attacker is None:
            return None
        opponents = self.coordinator.opponents_of(player)
        if len(opponents) == 1:
            enemy = opponents[0]
        else:
            enemy = self._pick(opponents, "Select enemy player", lambda p: p.status())
            if enemy is None:
                return None

        if target_buildings:
            building = self._pick(enemy.buildings, "Select target building", lambda b: b.describe())
            if building is None:
                return None
            return Action.attack_building(
                player.player_id, attacker.unit_id, enemy.player_id, building.building_id,
            )
        target = self._pick(enemy.units, "Select target unit", lambda u: u.describe())
        if target is None:
            return None
        return Action.attack_unit(player.player_id, attacker.unit_id, enemy.player_id, target.unit_id)

    def _pick(self, items: list, prompt: str, describe):
        """Ask for an index into items; None (with an error shown) if empty or out of range."""
        if not items:
            self.presentation.show_error("Nothing to select")
            return None
        index = self.presentation.choose_index(prompt, [describe(item) for item in items])
        if not 0 <= index < len(items):
            self.presentation.show_error("Invalid selection")
            return None
        return items[index]

    def _report(self, outcome: ActionResult, result: TurnResult):
        if outcome.success:
            result.state_changes.extend(outcome.state_changes)
            for change in outcome.state_changes:
                self.presentation.show_message(change)
        else:
            result.errors.append(outcome.error)
            self.presentation.show_error(outcome.error)

    # ------------------------------------------------------------------

    def _notify(self, message: str):
        if self.presentation is not None:
            self.presentation.show_message(message)

    def _winner_id(self) -> int | None:
        winner = self.coordinator.winner
        return winner.player_id if winner else None

    def _game_over_result(self) -> TurnResult:
        self.state = LoopState.GAME_OVER
        return TurnResult(
            success=True,
            loop_state=self.state,
            winner=self._winner_id(),
            state_changes=[self.coordinator.result_summary()],
        )
