"""Board vocabulary and the rules-engine boundary."""

from .pieces import (
    CIRCLES,
    GEMS_PER_SIDE,
    SIDES,
    SQUARES,
    Coordinate,
    GameState,
    GemType,
    Piece,
    PlacementRequest,
    format_coordinate,
    opponent_of,
    parse_coordinate,
    singular_side,
)
from .engine import MatchEngine, TerminalResult

__all__ = [
    "CIRCLES",
    "GEMS_PER_SIDE",
    "SIDES",
    "SQUARES",
    "Coordinate",
    "GameState",
    "GemType",
    "Piece",
    "PlacementRequest",
    "format_coordinate",
    "opponent_of",
    "parse_coordinate",
    "singular_side",
    "MatchEngine",
    "TerminalResult",
]
