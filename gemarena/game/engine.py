"""
Boundary contract of the external rules engine.

The arena never implements legal-move generation or win detection itself.
It drives whatever engine is plugged in through this interface, one game at
a time, strictly turn by turn.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from gemarena.game.pieces import GameState, PlacementRequest


@dataclass(frozen=True)
class TerminalResult:
    """How a finished game ended, in terms of sides rather than AI ids.

    winner_side is None for a draw.
    """

    winner_side: str | None
    win_condition_type: str | None


class MatchEngine(ABC):
    """Abstract rules engine driven by the arena game runner."""

    @abstractmethod
    def initialize(
        self, seed: int, placements: Mapping[str, list[PlacementRequest]]
    ) -> GameState:
        """Start a new game with the given gem placements per side."""
        pass

    @abstractmethod
    def current_side(self, state: GameState) -> str:
        """Plural identifier of the side to move."""
        pass

    @abstractmethod
    def is_terminal(self, state: GameState) -> bool:
        pass

    @abstractmethod
    def is_legal_move(self, state: GameState, move: Any) -> bool:
        pass

    @abstractmethod
    def apply_move(self, state: GameState, move: Any) -> GameState:
        pass

    @abstractmethod
    def terminal_result(self, state: GameState) -> TerminalResult:
        pass

    def legal_moves(self, state: GameState) -> list[Any]:
        """List legal moves for the side to move.

        Optional: only players that enumerate moves (e.g. RandomPlayer) need it.
        """
        raise NotImplementedError(
            f"{type(self).__name__} does not enumerate legal moves"
        )
