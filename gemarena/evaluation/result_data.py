"""Data classes for arena results: one game outcome and the running aggregate."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

# Increment when adding/changing serialized result fields
SCHEMA_VERSION = "1.0.0"


@dataclass(frozen=True)
class AiVersionIds:
    """AI version identifiers for the two seats of one game."""

    player_a: str
    player_b: str

    def opponent_of(self, ai_id: str) -> str:
        return self.player_b if ai_id == self.player_a else self.player_a

    def to_dict(self) -> dict:
        return {"playerA": self.player_a, "playerB": self.player_b}

    @classmethod
    def from_dict(cls, data: dict) -> "AiVersionIds":
        return cls(player_a=data["playerA"], player_b=data["playerB"])


@dataclass(frozen=True)
class GameResult:
    """Immutable outcome of a single game. winner_id is None for draws and aborts."""

    winner_id: str | None
    win_condition_type: str | None
    turn_count: int
    crashed: bool
    illegal_move: bool
    seed: int
    ai_version_ids: AiVersionIds

    def __post_init__(self):
        if self.turn_count < 0:
            raise ValueError(f"turn_count must be >= 0, got {self.turn_count}")

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "winnerId": self.winner_id,
            "winConditionType": self.win_condition_type,
            "turnCount": self.turn_count,
            "crashed": self.crashed,
            "illegalMove": self.illegal_move,
            "seed": self.seed,
            "aiVersionIds": self.ai_version_ids.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameResult":
        return cls(
            winner_id=data.get("winnerId"),
            win_condition_type=data.get("winConditionType"),
            turn_count=data["turnCount"],
            crashed=data["crashed"],
            illegal_move=data["illegalMove"],
            seed=data["seed"],
            ai_version_ids=AiVersionIds.from_dict(data["aiVersionIds"]),
        )


@dataclass
class MatchStats:
    """Running aggregate over many games.

    Counters only ever grow. record() and merge() form a commutative fold, so
    the final value does not depend on the order results arrive in.
    """

    games_played: int = 0
    wins_by_ai: dict[str, int] = field(default_factory=dict)
    losses_by_ai: dict[str, int] = field(default_factory=dict)
    draws: int = 0
    crashes: int = 0
    illegal_moves: int = 0
    total_turns: int = 0

    def record(self, result: GameResult) -> None:
        """Fold one game result into the aggregate."""
        self.games_played += 1
        self.total_turns += result.turn_count

        if result.crashed:
            self.crashes += 1
        if result.illegal_move:
            self.illegal_moves += 1

        if result.winner_id is None:
            self.draws += 1
        else:
            loser_id = result.ai_version_ids.opponent_of(result.winner_id)
            self.wins_by_ai[result.winner_id] = self.wins_by_ai.get(result.winner_id, 0) + 1
            self.losses_by_ai[loser_id] = self.losses_by_ai.get(loser_id, 0) + 1

    def merge(self, other: "MatchStats") -> "MatchStats":
        """Combine two independent aggregates into a new one."""
        return MatchStats(
            games_played=self.games_played + other.games_played,
            wins_by_ai=_add_counts(self.wins_by_ai, other.wins_by_ai),
            losses_by_ai=_add_counts(self.losses_by_ai, other.losses_by_ai),
            draws=self.draws + other.draws,
            crashes=self.crashes + other.crashes,
            illegal_moves=self.illegal_moves + other.illegal_moves,
            total_turns=self.total_turns + other.total_turns,
        )

    @classmethod
    def from_results(cls, results: Iterable[GameResult]) -> "MatchStats":
        stats = cls()
        for result in results:
            stats.record(result)
        return stats

    @property
    def average_turns(self) -> float:
        return average_turns(self)

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "gamesPlayed": self.games_played,
            "winsByAI": dict(sorted(self.wins_by_ai.items())),
            "lossesByAI": dict(sorted(self.losses_by_ai.items())),
            "draws": self.draws,
            "crashes": self.crashes,
            "illegalMoves": self.illegal_moves,
            "totalTurns": self.total_turns,
            "averageTurns": self.average_turns,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchStats":
        return cls(
            games_played=data.get("gamesPlayed", 0),
            wins_by_ai=dict(data.get("winsByAI", {})),
            losses_by_ai=dict(data.get("lossesByAI", {})),
            draws=data.get("draws", 0),
            crashes=data.get("crashes", 0),
            illegal_moves=data.get("illegalMoves", 0),
            total_turns=data.get("totalTurns", 0),
        )


def create_game_result(
    winner_id: str | None,
    win_condition_type: str | None,
    turn_count: int,
    crashed: bool,
    illegal_move: bool,
    seed: int,
    ai_version_ids: AiVersionIds,
) -> GameResult:
    return GameResult(
        winner_id=winner_id,
        win_condition_type=win_condition_type,
        turn_count=turn_count,
        crashed=crashed,
        illegal_move=illegal_move,
        seed=seed,
        ai_version_ids=ai_version_ids,
    )


def create_match_stats() -> MatchStats:
    return MatchStats()


def average_turns(stats: MatchStats) -> float:
    """Average turns per game rounded half-up to two decimals; 0 with no games."""
    if stats.games_played == 0:
        return 0
    average = Decimal(stats.total_turns) / Decimal(stats.games_played)
    return float(average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _add_counts(left: dict[str, int], right: dict[str, int]) -> dict[str, int]:
    combined = dict(left)
    for key, count in right.items():
        combined[key] = combined.get(key, 0) + count
    return dict(sorted(combined.items()))
