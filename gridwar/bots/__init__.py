"""
Bots module - AI opponents.

Provides:
- BotPolicy: Interface for bot decision-making
- RandomPolicy, FirstLegalPolicy, RaiderPolicy: Baselines
- HeuristicEvaluator: Scores positions and commands
- SkirmishBot: Heuristic opponent
- Personality: Configurable play styles
"""

from .policy import BotPolicy, BotDecision, RandomPolicy, FirstLegalPolicy, RaiderPolicy
from .evaluator import HeuristicEvaluator, EvaluationWeights
from .personality import Personality, PERSONALITIES
from .skirmish_bot import SkirmishBot, create_bot_roster

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "RaiderPolicy",
    "HeuristicEvaluator",
    "EvaluationWeights",
    "Personality",
    "PERSONALITIES",
    "SkirmishBot",
    "create_bot_roster",
]
