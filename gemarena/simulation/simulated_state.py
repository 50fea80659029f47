"""
Simulation states: detachable, search-only projections of a game.

A search algorithm explores hypothetical futures on these snapshots instead
of the live GameState. Evaluators accept anything implementing the
SimulationState interface and nothing else.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping

from gemarena.game.pieces import Coordinate, GameState, Piece, singular_side


class SimulationState(ABC):
    """Capability marker for states that are safe to search over."""

    @property
    @abstractmethod
    def piece_count(self) -> int:
        pass

    @property
    @abstractmethod
    def current_player(self) -> str:
        pass

    @property
    @abstractmethod
    def simulation_depth(self) -> int:
        pass

    @abstractmethod
    def pieces_of(self, side: str) -> int:
        pass


@dataclass(frozen=True)
class SimulatedGameState(SimulationState):
    """Frozen copy of a board for search.

    last_action is opaque metadata about the move that produced this state;
    it is never interpreted here.
    """

    pieces: Mapping[Coordinate, Piece]
    side_to_move: str
    current_turn: int = 0
    depth: int = 0
    last_action: Any = None
    parent: "SimulatedGameState | None" = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "pieces", dict(self.pieces))

    @classmethod
    def from_game_state(
        cls, game_state: GameState, side_to_move: str, current_turn: int = 0
    ) -> "SimulatedGameState":
        return cls(
            pieces=game_state.pieces,
            side_to_move=side_to_move,
            current_turn=current_turn,
        )

    def descend(
        self, pieces: Mapping[Coordinate, Piece], side_to_move: str, action: Any = None
    ) -> "SimulatedGameState":
        """Child state one ply deeper. The parent is left untouched."""
        return SimulatedGameState(
            pieces=pieces,
            side_to_move=side_to_move,
            current_turn=self.current_turn + 1,
            depth=self.depth + 1,
            last_action=action,
            parent=self,
        )

    @property
    def piece_count(self) -> int:
        return len(self.pieces)

    @property
    def current_player(self) -> str:
        return self.side_to_move

    @property
    def simulation_depth(self) -> int:
        return self.depth

    def pieces_of(self, side: str) -> int:
        target = singular_side(side)
        return sum(1 for piece in self.pieces.values() if piece.side == target)
