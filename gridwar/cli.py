"""
GridWar CLI - Command-line interface for the engine.

Usage:
    gridwar play [--bots N] [--seed S]        Play against bots in the terminal
    gridwar simulate [--seed S] [--turns T]   Watch bots play each other
    gridwar archetypes                        List unit and building stats
"""

import argparse
import sys

from pydantic import ValidationError

from .config import GameConfig, configure_logging
from .engine_core.buildings import BUILDING_STATS
from .engine_core.resources import format_cost
from .engine_core.units import UNIT_STATS
from .session import GameLoop, LoopState, PresentationPort, SessionManager
from .session.presentation import MenuChoice


class ConsolePresentation(PresentationPort):
    """Text menus on stdin/stdout."""

    def _ask_int(self, prompt: str) -> int:
        raw = input(prompt).strip()
        try:
            return int(raw)
        except ValueError:
            return -1

    def choose_action(self, options):
        print()
        for option in options:
            print(f"  {option.value}. {option.label}")
        return self._ask_int("Choose: ")

    def choose_unit_type(self, types):
        print("Unit types: " + ", ".join(types))
        return input("Unit type: ").strip()

    def choose_building_type(self, types):
        print("Building types: " + ", ".join(types))
        return input("Building type: ").strip()

    def choose_target(self):
        return self._ask_int("Target x: "), self._ask_int("Target y: ")

    def choose_index(self, prompt, items):
        print(prompt)
        for i, item in enumerate(items, start=1):
            print(f"  {i}. {item}")
        return self._ask_int("Number: ") - 1

    def show_message(self, message):
        print(message)

    def show_error(self, message):
        print(f"Error: {message}")

    def show_state(self, view):
        current = view.players[view.current_player_index]
        print(f"\n=== Turn {view.turn_number}: {current.name} ({current.faction}) ===")
        print("Resources: " + ", ".join(f"{k} {v}" for k, v in current.resources.items()))
        print(f"Units: {len(current.units)}  Buildings: {len(current.buildings)}  "
              f"Score: {current.score}")


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="GridWar - Turn-based grid strategy",
        prog="gridwar",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default from config)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    play_parser = subparsers.add_parser("play", help="Play against bots")
    play_parser.add_argument("--bots", type=int, default=1, help="Number of bot players")
    play_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    play_parser.add_argument("--width", type=int, default=None, help="Map width")
    play_parser.add_argument("--height", type=int, default=None, help="Map height")
    play_parser.add_argument("--personality", action="append", help="Bot personality (repeatable)")

    sim_parser = subparsers.add_parser("simulate", help="Bots play each other")
    sim_parser.add_argument("--players", type=int, default=2, help="Number of bot players")
    sim_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    sim_parser.add_argument("--turns", type=int, default=None, help="Turn limit")
    sim_parser.add_argument("--personality", action="append", help="Bot personality (repeatable)")

    subparsers.add_parser("archetypes", help="List unit and building stats")

    args = parser.parse_args()

    if args.command == "play":
        cmd_play(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "archetypes":
        cmd_archetypes(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load_config(args, **overrides) -> GameConfig:
    try:
        config = GameConfig.from_env(**overrides)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}")
        sys.exit(1)
    configure_logging(args.log_level or config.log_level)
    return config


def cmd_play(args):
    """Human (player 1) against bots."""
    config = _load_config(
        args,
        player_count=args.bots + 1,
        seed=args.seed,
        map_width=args.width,
        map_height=args.height,
    )
    manager = SessionManager()
    session = manager.create_session(
        config=config,
        human_players=(0,),
        bot_personalities=args.personality,
    )

    presentation = ConsolePresentation()
    print("Welcome to GridWar!")
    print(f"You are {session.coordinator.players[0].status()}")
    print(f"Menu: {', '.join(f'{c.value}={c.label}' for c in MenuChoice)}")

    result = GameLoop(session, presentation=presentation).run()
    if result.loop_state == LoopState.QUIT:
        print("Game abandoned.")
        manager.end_session(session.session_id, reason="quit")
    else:
        manager.end_session(session.session_id)


def cmd_simulate(args):
    """Bot-only game, printing every change."""
    config = _load_config(
        args,
        player_count=args.players,
        seed=args.seed,
        max_turns=args.turns,
    )
    manager = SessionManager()
    session = manager.create_session(
        config=config,
        human_players=(),
        bot_personalities=args.personality,
    )

    for pid, bot in session.bots.items():
        print(f"Player {pid + 1}: {bot.get_name()}")

    result = GameLoop(session, presentation=ConsolePresentation()).run()
    coordinator = session.coordinator
    print(f"\nFinished on turn {coordinator.turn_number}: {coordinator.result_summary()}")
    for player in coordinator.players:
        print(f"  {player.status()}")
    manager.end_session(session.session_id)
    return result


def cmd_archetypes(args):
    """Print the unit and building tables."""
    print("Units:")
    for stats in UNIT_STATS.values():
        print(
            f"  {stats.display_name:<10} HP {stats.max_health:>3} ATK {stats.attack:>2} "
            f"DEF {stats.defense:>2} RNG {stats.range} MOV {stats.movement} "
            f"cost {stats.cost} gold ({stats.damage_policy.value})"
        )
    print("Buildings:")
    for stats in BUILDING_STATS.values():
        output = (
            f"+{stats.output_rate} {stats.output_kind.value}/turn"
            if stats.output_kind else "enables training"
        )
        print(
            f"  {stats.display_name:<15} HP {stats.max_health:>3} armor {stats.armor} "
            f"{stats.construction_time} turns, cost {format_cost(stats.cost)}, {output}"
        )


if __name__ == "__main__":
    main()
