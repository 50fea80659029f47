"""Board vocabulary shared by the opening book, the arena and simulations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

SQUARES = "squares"
CIRCLES = "circles"
SIDES = (SQUARES, CIRCLES)

# Every side places exactly this many gems during setup
GEMS_PER_SIDE = 8

Coordinate = tuple[int, int]


class GemType(str, Enum):
    RUBY = "ruby"
    PEARL = "pearl"
    AMBER = "amber"
    JADE = "jade"


def singular_side(side: str) -> str:
    """Strip one trailing 's' so 'circles' and 'circle' compare equal."""
    return side[:-1] if side.endswith("s") else side


def opponent_of(side: str) -> str:
    """Plural identifier of the other side."""
    return CIRCLES if singular_side(side) == singular_side(SQUARES) else SQUARES


def parse_coordinate(raw: str | list | tuple) -> Coordinate:
    """Parse a coordinate written as "x,y" or as a two-element sequence.

    Raises:
        ValueError: If the value is not a pair of integers
    """
    if isinstance(raw, str):
        parts = raw.split(",")
    else:
        parts = list(raw)

    if len(parts) != 2:
        raise ValueError(f"Coordinate must have two components, got {raw!r}")

    try:
        return (int(parts[0]), int(parts[1]))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid coordinate {raw!r}") from e


def format_coordinate(coord: Coordinate) -> str:
    return f"{coord[0]},{coord[1]}"


@dataclass(frozen=True)
class Piece:
    """A piece on the board. Non-gem pieces carry no gem type."""

    side: str
    gem: GemType | None = None

    def __post_init__(self):
        object.__setattr__(self, "side", singular_side(self.side))


@dataclass(frozen=True)
class PlacementRequest:
    """One atomic gem placement."""

    gem: GemType
    coordinate: Coordinate


@dataclass(frozen=True)
class GameState:
    """Read-only view of the authoritative board: coordinate -> piece."""

    pieces: Mapping[Coordinate, Piece] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "pieces", dict(self.pieces))

    def is_occupied(self, coord: Coordinate) -> bool:
        return coord in self.pieces

    def with_piece(self, coord: Coordinate, piece: Piece) -> "GameState":
        """Return a new state with one more piece on the board."""
        pieces = dict(self.pieces)
        pieces[coord] = piece
        return GameState(pieces)

    def gem_counts(self, side: str) -> dict[GemType, int]:
        """Count the gems of one side already on the board, per gem type."""
        target = singular_side(side)
        counts = {gem: 0 for gem in GemType}
        for piece in self.pieces.values():
            if piece.side == target and piece.gem is not None:
                counts[piece.gem] += 1
        return counts

    def pieces_of(self, side: str) -> int:
        target = singular_side(side)
        return sum(1 for piece in self.pieces.values() if piece.side == target)
