"""Executes exactly one arena game."""

import logging
import random
from dataclasses import dataclass
from typing import Callable

from gemarena.agents.arena_player import ArenaPlayer, MoveContext
from gemarena.agents.player_registry import PlayerRegistry
from gemarena.evaluation.result_data import AiVersionIds, GameResult
from gemarena.game.engine import MatchEngine
from gemarena.game.pieces import CIRCLES, SIDES, SQUARES, PlacementRequest, singular_side
from gemarena.opening.setup_book import OpeningBook, placement_sequence, select_setup

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS = 1000

CRASH = "CRASH"
ILLEGAL_MOVE = "ILLEGAL_MOVE"
TURN_LIMIT = "TURN_LIMIT"
ABORTED = "ABORTED"


@dataclass(frozen=True)
class MatchSpec:
    """One planned game. player_a takes the squares seat and moves first."""

    game_index: int
    seed: int
    player_a: str
    player_b: str


@dataclass(frozen=True)
class MatchJob:
    """Everything a worker needs to play games. Read-only for a whole batch."""

    book: OpeningBook
    engine_factory: Callable[[], MatchEngine]
    players: PlayerRegistry
    max_turns: int = DEFAULT_MAX_TURNS


def seed_placements(book: OpeningBook, seed: int) -> dict[str, list[PlacementRequest]]:
    """Initial gem placements for both sides, derived from the seed."""
    return {side: placement_sequence(select_setup(book, side, seed)) for side in SIDES}


def play_game(
    engine: MatchEngine,
    player_a: ArenaPlayer,
    player_b: ArenaPlayer,
    seed: int,
    placements: dict[str, list[PlacementRequest]],
    max_turns: int = DEFAULT_MAX_TURNS,
) -> GameResult:
    """Play one game to completion, turn cap, crash or illegal move.

    A player that raises or returns no move loses by CRASH, a rejected move
    loses by ILLEGAL_MOVE. An engine failure aborts the game without a winner.
    """
    ai_version_ids = AiVersionIds(player_a.player_id, player_b.player_id)
    rng = random.Random(seed)
    turn_count = 0

    def finish(winner_id, condition, crashed=False, illegal_move=False) -> GameResult:
        return GameResult(
            winner_id=winner_id,
            win_condition_type=condition,
            turn_count=turn_count,
            crashed=crashed,
            illegal_move=illegal_move,
            seed=seed,
            ai_version_ids=ai_version_ids,
        )

    try:
        state = engine.initialize(seed, placements)

        while not engine.is_terminal(state) and turn_count < max_turns:
            side = engine.current_side(state)
            active, inactive = _seat(side, player_a, player_b)

            try:
                move = active.select_move(
                    state, MoveContext(rng=rng, engine=engine, side=side, turn=turn_count)
                )
            except Exception:
                logger.warning(
                    "AI %s crashed on turn %d (seed %d)",
                    active.player_id,
                    turn_count,
                    seed,
                    exc_info=True,
                )
                return finish(inactive.player_id, CRASH, crashed=True)

            if move is None:
                logger.warning(
                    "AI %s returned no move on turn %d (seed %d)",
                    active.player_id,
                    turn_count,
                    seed,
                )
                return finish(inactive.player_id, CRASH, crashed=True)

            if not engine.is_legal_move(state, move):
                return finish(inactive.player_id, ILLEGAL_MOVE, illegal_move=True)

            state = engine.apply_move(state, move)
            turn_count += 1

        # The cap wins over a terminal state reached on the last allowed turn
        if turn_count >= max_turns:
            return finish(None, TURN_LIMIT)

        terminal = engine.terminal_result(state)
        if terminal.winner_side is None:
            return finish(None, terminal.win_condition_type)
        winner, _ = _seat(terminal.winner_side, player_a, player_b)
        return finish(winner.player_id, terminal.win_condition_type)

    except Exception:
        logger.warning(
            "Game with seed %d aborted on turn %d", seed, turn_count, exc_info=True
        )
        return finish(None, ABORTED, crashed=True)


def aborted_result(spec: MatchSpec) -> GameResult:
    """Crashed, winnerless result for a planned game that never got played."""
    return GameResult(
        winner_id=None,
        win_condition_type=ABORTED,
        turn_count=0,
        crashed=True,
        illegal_move=False,
        seed=spec.seed,
        ai_version_ids=AiVersionIds(spec.player_a, spec.player_b),
    )


def run_single_match(job: MatchJob, spec: MatchSpec) -> GameResult:
    """Set up and play one planned game; never raises."""
    try:
        placements = seed_placements(job.book, spec.seed)
        engine = job.engine_factory()
        player_a = job.players.create(spec.player_a)
        player_b = job.players.create(spec.player_b)
    except Exception:
        logger.warning(
            "Game %d (seed %d) could not be set up", spec.game_index, spec.seed, exc_info=True
        )
        return aborted_result(spec)

    return play_game(engine, player_a, player_b, spec.seed, placements, job.max_turns)


def _seat(side: str, player_a: ArenaPlayer, player_b: ArenaPlayer) -> tuple[ArenaPlayer, ArenaPlayer]:
    """(player for side, the other player)."""
    normalized = singular_side(side)
    if normalized == singular_side(SQUARES):
        return player_a, player_b
    if normalized == singular_side(CIRCLES):
        return player_b, player_a
    raise ValueError(f"Engine reported unknown side: {side}")
