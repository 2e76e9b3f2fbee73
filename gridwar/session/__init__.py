"""
Session Module - Runs game sessions.

A session represents one play-through:
- Created with a GameConfig and a seat plan (humans and bots)
- Holds the TurnCoordinator
- Driven turn by turn by the GameLoop through a PresentationPort

Sessions are in-memory only; save and load are not supported.
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult
from .presentation import PresentationPort, MenuChoice
from .views import GameStateView, PlayerView, UnitView, BuildingView, build_state_view

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "PresentationPort",
    "MenuChoice",
    "GameStateView",
    "PlayerView",
    "UnitView",
    "BuildingView",
    "build_state_view",
]
