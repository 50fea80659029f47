"""
Shared test utilities for gemarena tests.

The arena never ships a rules engine, so tests drive it with PileEngine: a
take-away game where each side removes one or two gems from a pile and the
side taking the last one wins. Scripted players make every outcome
predictable by hand.
"""

import asyncio
import json
from dataclasses import dataclass, replace
from pathlib import Path

import pytest

from gemarena.agents.arena_player import ArenaPlayer
from gemarena.agents.player_registry import PlayerRegistry
from gemarena.agents.random_player import RandomPlayer
from gemarena.arena.arena import Arena
from gemarena.arena.execution_strategies import SequentialExecutionStrategy
from gemarena.game.engine import MatchEngine, TerminalResult
from gemarena.game.pieces import SQUARES, GameState, Piece, opponent_of
from gemarena.opening.book_sources import StaticBookSource
from gemarena.opening.setup_book import DEFAULT_BOOK_DOCUMENT, OpeningBookService

# circles SETUP-001 expanded in order
DEFAULT_CIRCLES_SEQUENCE = [
    ("amber", (-2, 7)),
    ("pearl", (-1, 8)),
    ("pearl", (-3, 8)),
    ("amber", (-2, 9)),
    ("jade", (-5, 7)),
    ("jade", (-5, 8)),
    ("ruby", (-4, 8)),
    ("ruby", (-4, 9)),
]


@dataclass(frozen=True)
class PileState(GameState):
    pile: int = 0
    to_move: str = SQUARES
    last_mover: str | None = None


class PileEngine(MatchEngine):
    """Take-away game. Pile size is 10 + seed % 5."""

    def __init__(self, pile_base: int = 10):
        self.pile_base = pile_base

    def initialize(self, seed, placements):
        board = GameState()
        for side, requests in placements.items():
            for request in requests:
                board = board.with_piece(request.coordinate, Piece(side, request.gem))
        return PileState(pieces=board.pieces, pile=self.pile_base + seed % 5)

    def current_side(self, state):
        return state.to_move

    def is_terminal(self, state):
        return state.pile == 0

    def is_legal_move(self, state, move):
        return move in (1, 2) and move <= state.pile

    def apply_move(self, state, move):
        return replace(
            state,
            pile=state.pile - move,
            to_move=opponent_of(state.to_move),
            last_mover=state.to_move,
        )

    def terminal_result(self, state):
        return TerminalResult(winner_side=state.last_mover, win_condition_type="LAST_GEM")

    def legal_moves(self, state):
        return [move for move in (1, 2) if move <= state.pile]


class EndlessEngine(PileEngine):
    """Moves never shrink the pile, so games only end at the turn cap."""

    def apply_move(self, state, move):
        return replace(state, to_move=opponent_of(state.to_move))


class BrokenEngine(PileEngine):
    def initialize(self, seed, placements):
        raise RuntimeError("engine failed to start")


class OnesPlayer(ArenaPlayer):
    """Always takes one gem."""

    def select_move(self, state, context):
        return 1


class TwosPlayer(ArenaPlayer):
    """Takes two gems whenever it can."""

    def select_move(self, state, context):
        return min(2, state.pile)


class CrashingPlayer(ArenaPlayer):
    def select_move(self, state, context):
        raise RuntimeError("AI blew up")


class IllegalPlayer(ArenaPlayer):
    def select_move(self, state, context):
        return 3


class PassingPlayer(ArenaPlayer):
    def select_move(self, state, context):
        return None


def fake_registry() -> PlayerRegistry:
    """Registry with every scripted player."""
    registry = PlayerRegistry()
    registry.register("ONES", OnesPlayer)
    registry.register("TWOS", TwosPlayer)
    registry.register("CRASHER", CrashingPlayer)
    registry.register("ILLEGAL", IllegalPlayer)
    registry.register("PASSER", PassingPlayer)
    registry.register("RANDOM", RandomPlayer)
    return registry


def make_arena(engine_factory=PileEngine, **kwargs) -> Arena:
    """Arena over the default book with a loaded book service and no progress bars."""
    service = OpeningBookService(StaticBookSource(DEFAULT_BOOK_DOCUMENT))
    asyncio.run(service.load_book())
    kwargs.setdefault("players", fake_registry())
    kwargs.setdefault("execution_strategy", SequentialExecutionStrategy(show_progress=False))
    return Arena(service, engine_factory, **kwargs)


def write_arena_config(directory: Path, results: dict | None = None) -> Path:
    """Write an arena config with one baseline and its results file."""
    archive_dir = directory / "archive"
    archive_dir.mkdir(parents=True, exist_ok=True)
    if results is not None:
        with open(archive_dir / "V1_DEV.json", "w", encoding="utf-8") as f:
            json.dump(results, f)

    config = {
        "seed_ranges": {"DEV": {"start": 100, "count": 4}},
        "historical_archive": [
            {
                "id": "V1",
                "git_tag": "AI_v1.0",
                "date": "2026-02-01",
                "description": "First tuned version",
                "seed_range": "DEV",
                "results_file": "archive/V1_DEV.json",
            },
            {
                "id": "V2",
                "git_tag": "AI_v2.0",
                "results_file": "archive/missing.json",
            },
        ],
    }
    config_path = directory / "arena_config.json"
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(config, f)
    return config_path


@pytest.fixture
def arena():
    return make_arena()


@pytest.fixture
def loaded_service():
    service = OpeningBookService(StaticBookSource(DEFAULT_BOOK_DOCUMENT))
    asyncio.run(service.load_book())
    return service
