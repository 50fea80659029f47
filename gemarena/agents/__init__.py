"""
Arena players.

This module provides the player interface, the built-in baseline player and
the registry that maps AI version ids to players.
"""

from .arena_player import ArenaPlayer, MoveContext
from .random_player import RandomPlayer
from .player_registry import PlayerRegistry, default_registry

__all__ = [
    'ArenaPlayer',
    'MoveContext',
    'RandomPlayer',
    'PlayerRegistry',
    'default_registry',
]
