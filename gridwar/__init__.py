"""
GridWar - Turn-based grid strategy engine

Two or more factions gather resources, construct buildings, train units,
manoeuvre on a grid and fight until one side is eliminated. The engine provides:
- A turn coordinator owning all game state transitions
- Combat resolution with per-archetype damage policies and critical hits
- Heuristic bot opponents with configurable personalities
- A presentation-agnostic game loop and a console front end
"""

__version__ = "0.1.0"
