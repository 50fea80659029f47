"""
RandomPlayer: uniform random legal play.

The simplest baseline AI version; every stronger version is measured against
it at some point.
"""

from typing import Any

from gemarena.agents.arena_player import ArenaPlayer, MoveContext
from gemarena.game.pieces import GameState


class RandomPlayer(ArenaPlayer):
    """Picks uniformly among the engine's legal moves using the game rng."""

    def __init__(self, player_id: str = "RANDOM"):
        super().__init__(player_id)

    def select_move(self, state: GameState, context: MoveContext) -> Any | None:
        legal_moves = context.engine.legal_moves(state)
        if not legal_moves:
            return None
        return context.rng.choice(legal_moves)
