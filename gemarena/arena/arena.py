"""Arena orchestrator: seeded AI-vs-AI batches folded into match statistics."""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

from gemarena.agents.player_registry import PlayerRegistry, default_registry
from gemarena.arena.execution_strategies import (
    ExecutionStrategy,
    SequentialExecutionStrategy,
)
from gemarena.arena.game_runner import DEFAULT_MAX_TURNS, MatchJob, MatchSpec
from gemarena.errors import UnknownPlayerError
from gemarena.evaluation.anchor_registry import SELF_PLAY, AnchorRegistry
from gemarena.evaluation.historical_archive import HistoricalArchive
from gemarena.evaluation.result_data import GameResult, MatchStats, SCHEMA_VERSION
from gemarena.evaluation.seed_manager import SeedRange, game_seed
from gemarena.game.engine import MatchEngine
from gemarena.opening.setup_book import OpeningBook, OpeningBookService

logger = logging.getLogger(__name__)


@dataclass
class MatchReport:
    """Outcome of one batch between two AI versions."""

    player_a: str
    player_b: str
    base_seed: int
    games_requested: int
    stats: MatchStats
    results: list[GameResult] = field(default_factory=list)
    stopped: bool = False

    @property
    def games_completed(self) -> int:
        return self.stats.games_played

    @property
    def seed_range(self) -> tuple[int, int] | None:
        """First and last planned seed, or None for an empty batch."""
        if self.games_requested < 1:
            return None
        return (self.base_seed, game_seed(self.base_seed, self.games_requested - 1))

    def wins(self, ai_id: str) -> int:
        return self.stats.wins_by_ai.get(ai_id, 0)

    def win_rate(self, ai_id: str) -> float:
        """Share of decisive games won, rounded to three decimals."""
        decisive = self.wins(self.player_a) + self.wins(self.player_b)
        if self.player_a == self.player_b:
            decisive = self.wins(self.player_a)
        if decisive == 0:
            return 0.0
        return round(self.wins(ai_id) / decisive, 3)

    def to_dict(self) -> dict:
        return {
            "schema_version": SCHEMA_VERSION,
            "playerA": self.player_a,
            "playerB": self.player_b,
            "baseSeed": self.base_seed,
            "gamesRequested": self.games_requested,
            "stopped": self.stopped,
            "stats": self.stats.to_dict(),
            "results": [result.to_dict() for result in self.results],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MatchReport":
        return cls(
            player_a=data["playerA"],
            player_b=data["playerB"],
            base_seed=data["baseSeed"],
            games_requested=data["gamesRequested"],
            stats=MatchStats.from_dict(data["stats"]),
            results=[GameResult.from_dict(r) for r in data.get("results", [])],
            stopped=data.get("stopped", False),
        )


@dataclass(frozen=True)
class DeterminismCheck:
    rerun_match: bool
    byte_identical: bool

    def to_dict(self) -> dict:
        return {"rerun_match": self.rerun_match, "byte_identical": self.byte_identical}


@dataclass
class AnchorValidation:
    """Outcome of replaying an anchor's validation batch."""

    anchor_id: str
    validation_mode: str
    opponent_id: str
    expected_rate: float
    actual_rate: float
    drift: float
    tolerance: float
    passed: bool
    report: MatchReport

    def to_dict(self) -> dict:
        stats = self.report.stats
        return {
            "anchor_id": self.anchor_id,
            "validation_mode": self.validation_mode,
            "opponent_id": self.opponent_id,
            "seed_base": self.report.base_seed,
            "games": {
                "requested": self.report.games_requested,
                "completed": stats.games_played,
                "crashes": stats.crashes,
                "illegal_moves": stats.illegal_moves,
            },
            "expected_rate": self.expected_rate,
            "actual_rate": self.actual_rate,
            "drift": self.drift,
            "tolerance": self.tolerance,
            "passed": self.passed,
        }


class Arena:
    """Runs batches of seeded games between two AI versions.

    Main Interface:
    - prepare(): Load the opening book (must finish before any game starts)
    - plan_games(): Seeds and seat assignment for a batch
    - run_match(): Execute a batch and aggregate MatchStats
    - check_determinism(): Re-run a batch and compare aggregates
    - compare_with_baseline(): Put a report next to archived baseline results
    - validate_anchor(): Check an anchor still plays at its recorded strength
    """

    def __init__(
        self,
        book_service: OpeningBookService,
        engine_factory: Callable[[], MatchEngine],
        players: PlayerRegistry | None = None,
        execution_strategy: ExecutionStrategy | None = None,
        max_turns: int = DEFAULT_MAX_TURNS,
        archive: HistoricalArchive | None = None,
        anchors: AnchorRegistry | None = None,
    ):
        if max_turns <= 0:
            raise ValueError("max_turns must be positive")
        self.book_service = book_service
        self.engine_factory = engine_factory
        self.players = players if players is not None else default_registry()
        self.execution_strategy = execution_strategy or SequentialExecutionStrategy()
        self.max_turns = max_turns
        self.archive = archive
        self.anchors = anchors

    # === PUBLIC INTERFACE ===

    async def prepare(self) -> OpeningBook:
        """Load the opening book once. Falls back to the default book on failure."""
        return await self.book_service.load_book()

    def plan_games(
        self, player_a: str, player_b: str, base_seed: int, num_games: int
    ) -> list[MatchSpec]:
        """Plan a batch. Seats alternate each game so neither AI always moves first."""
        if num_games < 0:
            raise ValueError("num_games must be >= 0")

        specs = []
        for game_index in range(num_games):
            first, second = (player_a, player_b) if game_index % 2 == 0 else (player_b, player_a)
            specs.append(
                MatchSpec(
                    game_index=game_index,
                    seed=game_seed(base_seed, game_index),
                    player_a=first,
                    player_b=second,
                )
            )
        return specs

    def run_match(
        self,
        player_a: str,
        player_b: str,
        base_seed: int,
        num_games: int,
        stop_event: threading.Event | None = None,
    ) -> MatchReport:
        """Execute a batch of num_games seeded games between two AI versions.

        Raises:
            BookNotLoadedError: If prepare() has not completed
            UnknownPlayerError: If either AI id is not registered
        """
        return self._run_batch(self.players, player_a, player_b, base_seed, num_games, stop_event)

    def _run_batch(
        self,
        players: PlayerRegistry,
        player_a: str,
        player_b: str,
        base_seed: int,
        num_games: int,
        stop_event: threading.Event | None = None,
    ) -> MatchReport:
        job = self._build_job(players)
        for ai_id in (player_a, player_b):
            if ai_id not in players:
                raise UnknownPlayerError(ai_id, players.list_ids())

        specs = self.plan_games(player_a, player_b, base_seed, num_games)
        logger.info(
            "Starting match %s vs %s: %d games from seed %d",
            player_a,
            player_b,
            num_games,
            base_seed,
        )

        results = self.execution_strategy.run_matches(job, specs, stop_event)
        stats = MatchStats.from_results(results)
        stopped = len(results) < len(specs)

        logger.info(
            "Finished match %s vs %s: %d/%d games, %d crashes, %d illegal moves",
            player_a,
            player_b,
            stats.games_played,
            num_games,
            stats.crashes,
            stats.illegal_moves,
        )

        return MatchReport(
            player_a=player_a,
            player_b=player_b,
            base_seed=base_seed,
            games_requested=num_games,
            stats=stats,
            results=results,
            stopped=stopped,
        )

    def run_seed_range(
        self,
        player_a: str,
        player_b: str,
        seed_range: SeedRange,
        stop_event: threading.Event | None = None,
    ) -> MatchReport:
        return self.run_match(
            player_a, player_b, seed_range.start, seed_range.count, stop_event
        )

    async def run(
        self,
        player_a: str,
        player_b: str,
        base_seed: int,
        num_games: int,
        stop_event: threading.Event | None = None,
    ) -> MatchReport:
        """Await the book, then run the batch off the event loop."""
        await self.prepare()
        return await asyncio.to_thread(
            self.run_match, player_a, player_b, base_seed, num_games, stop_event
        )

    def check_determinism(self, report: MatchReport) -> DeterminismCheck:
        """Re-run the batch behind a report and compare the aggregates."""
        rerun = self.run_match(
            report.player_a, report.player_b, report.base_seed, report.games_requested
        )
        identical = rerun.stats.to_dict() == report.stats.to_dict()
        if not identical:
            logger.error(
                "Determinism check failed for %s vs %s from seed %d",
                report.player_a,
                report.player_b,
                report.base_seed,
            )
        return DeterminismCheck(rerun_match=True, byte_identical=identical)

    def compare_with_baseline(self, report: MatchReport, baseline_id: str) -> dict[str, Any]:
        """Archived results of a historical baseline next to a live report.

        Raises:
            ValueError: If the arena has no historical archive
            UnknownBaselineError: If the baseline id is not archived
            ResultsLoadError: If the archived results cannot be read
        """
        if self.archive is None:
            raise ValueError("Arena was created without a historical archive")

        baseline = self.archive.get(baseline_id)
        return {
            "baseline": {
                "id": baseline.id,
                "version_tag": baseline.version_tag,
                "date": baseline.date,
                "description": baseline.description,
                "seed_range": baseline.seed_range,
                "checkout": self.archive.get_checkout_command(baseline_id),
            },
            "archived_results": self.archive.load_results(baseline_id),
            "live_stats": report.stats.to_dict(),
        }

    def validate_anchor(
        self, anchor_id: str, stop_event: threading.Event | None = None
    ) -> AnchorValidation:
        """Replay an anchor's validation batch and check it for drift.

        Self-play anchors face a mirror of their own policy, vs_opponent
        anchors face their configured opponent. The anchor passes when its
        win rate is within tolerance of the expected rate and no game ended
        in a crash or illegal move. Without decisive games the rate is 0.5.

        Raises:
            ValueError: If the arena has no anchor registry, or an anchor id
                clashes with a registered player
            UnknownAnchorError: If the anchor id is not registered
            UnknownPlayerError: If the anchor's policy or opponent is not registered
        """
        if self.anchors is None:
            raise ValueError("Arena was created without an anchor registry")

        anchor = self.anchors.get(anchor_id)
        players = self.players.with_alias(anchor.id, anchor.policy_name)
        if anchor.validation_mode == SELF_PLAY:
            opponent_id = f"{anchor.id}_MIRROR"
            players = players.with_alias(opponent_id, anchor.policy_name)
        else:
            opponent_id = anchor.validation_opponent
            if opponent_id in self.anchors and opponent_id not in players:
                players = players.with_alias(opponent_id, self.anchors.get(opponent_id).policy_name)

        logger.info(
            "Validating anchor %s (%s vs %s, expected %.3f +/- %.3f)",
            anchor.id,
            anchor.validation_mode,
            opponent_id,
            anchor.expected_rate,
            anchor.tolerance,
        )
        report = self._run_batch(
            players,
            anchor.id,
            opponent_id,
            anchor.validation_seed_base,
            anchor.validation_game_count,
            stop_event,
        )

        decisive = report.wins(anchor.id) + report.wins(opponent_id)
        actual_rate = report.win_rate(anchor.id) if decisive else 0.5
        drift = round(abs(actual_rate - anchor.expected_rate), 3)
        passed = (
            drift <= anchor.tolerance
            and not report.stopped
            and report.stats.crashes == 0
            and report.stats.illegal_moves == 0
        )
        if passed:
            logger.info("Anchor %s is stable (drift %.3f)", anchor.id, drift)
        else:
            logger.error(
                "Anchor %s failed validation: rate %.3f, drift %.3f, %d crashes, %d illegal moves",
                anchor.id,
                actual_rate,
                drift,
                report.stats.crashes,
                report.stats.illegal_moves,
            )

        return AnchorValidation(
            anchor_id=anchor.id,
            validation_mode=anchor.validation_mode,
            opponent_id=opponent_id,
            expected_rate=anchor.expected_rate,
            actual_rate=actual_rate,
            drift=drift,
            tolerance=anchor.tolerance,
            passed=passed,
            report=report,
        )

    # === UTILITIES ===

    def _build_job(self, players: PlayerRegistry) -> MatchJob:
        return MatchJob(
            book=self.book_service.book,
            engine_factory=self.engine_factory,
            players=players,
            max_turns=self.max_turns,
        )
