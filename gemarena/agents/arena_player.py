"""
Base interface for arena players.

An arena player is one AI version seen from the arena: an id plus a way to
pick a move. How the move is found (search, heuristics, a neural net) is the
player's own business.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from gemarena.game.engine import MatchEngine
from gemarena.game.pieces import GameState


@dataclass
class MoveContext:
    """Per-game context handed to a player on every turn.

    rng is seeded from the game seed and shared by both players, so a game
    replays identically from its seed.
    """

    rng: random.Random
    engine: MatchEngine
    side: str
    turn: int


class ArenaPlayer(ABC):
    """
    Abstract base class for AI versions playing in the arena.

    Players must not mutate the state they are given.
    """

    def __init__(self, player_id: str):
        self.player_id = player_id

    @abstractmethod
    def select_move(self, state: GameState, context: MoveContext) -> Any | None:
        """
        Select the next move for the side in context.side.

        Returns:
            An engine-specific move object, or None if the player cannot move
        """
        pass
