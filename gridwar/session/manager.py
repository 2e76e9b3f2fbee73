"""
Session Manager - Creates and tracks game sessions.

A session is one play-through:
- Created with a validated GameConfig
- Owns its TurnCoordinator and the bots for non-human seats
- Lives in memory only; ending it drops all state

Sessions are independent: several can run side by side in one process.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
import uuid
from typing import Any

from ..bots import BotPolicy, create_bot_roster
from ..config import GameConfig
from ..engine_core.coordinator import TurnCoordinator
from ..engine_core.combat import CombatListener

log = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ABANDONED = "abandoned"


@dataclass
class Session:
    """
    A running game.

    Contains:
    - The coordinator (all game state)
    - Bots keyed by player id
    - Session metadata
    """
    session_id: str
    coordinator: TurnCoordinator
    config: GameConfig
    created_at: float
    state: SessionState = SessionState.ACTIVE
    bots: dict[int, BotPolicy] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE and not self.coordinator.is_game_over

    def is_human_turn(self) -> bool:
        return self.coordinator.current_player.player_id not in self.bots

    def bot_for_current_player(self) -> BotPolicy | None:
        return self.bots.get(self.coordinator.current_player.player_id)


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions (coordinator + bots)
    - Track active sessions
    - Clean up finished ones
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        config: GameConfig | None = None,
        human_players: tuple[int, ...] = (0,),
        bot_personalities: list[str] | None = None,
        bots: dict[int, BotPolicy] | None = None,
        listener: CombatListener | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            config: Session settings (defaults to GameConfig())
            human_players: Player ids driven through a PresentationPort
            bot_personalities: Personality names cycled over the bot seats
            bots: Explicit policies by player id; overrides generated bots

        Returns:
            New Session with the game already started
        """
        config = config or GameConfig()
        session_id = str(uuid.uuid4())
        rng = random.Random(config.seed)

        coordinator = TurnCoordinator.initialize_session(
            config=config,
            rng=rng,
            listener=listener,
            human_players=human_players,
        )

        bot_ids = [p.player_id for p in coordinator.players if not p.is_human]
        roster: dict[int, BotPolicy] = dict(
            create_bot_roster(bot_ids, bot_personalities, seed=config.seed)
        )
        if bots:
            roster.update(bots)
            for player in coordinator.players:
                if player.player_id in bots:
                    player.is_human = False

        session = Session(
            session_id=session_id,
            coordinator=coordinator,
            config=config,
            created_at=time.time(),
            bots=roster,
        )
        self._sessions[session_id] = session
        log.info("Created session %s (%d bots)", session_id, len(roster))
        return session

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed"):
        """Remove a session. Nothing is persisted."""
        session = self._sessions.pop(session_id, None)
        if session:
            if reason == "completed":
                session.state = SessionState.GAME_OVER
            else:
                session.state = SessionState.ABANDONED
            session.bots.clear()
            log.info("Ended session %s (%s)", session_id, reason)

    def list_active_sessions(self) -> list[str]:
        return [sid for sid, session in self._sessions.items() if session.is_active()]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Drop finished sessions older than max_age_seconds.

        Returns how many were removed.
        """
        current_time = time.time()
        to_remove = [
            sid for sid, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
