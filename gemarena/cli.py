"""
gemarena CLI - run seeded matches between two AI versions.

Usage:
    gemarena --player-a CANDIDATE --player-b RANDOM --range BASELINE_S01
    gemarena --player-a RANDOM --seed 12345 --games 100 --compare AI_v0.0_RANDOM
    gemarena --list-baselines
    gemarena --engine rules:Engine --validate-anchor ANCHOR_RANDOM

stdout carries the canonical JSON summary, stderr the human-readable log.
"""

import argparse
import asyncio
import importlib
import json
import logging
import signal
import sys
import threading
import time
from datetime import datetime, timezone

from gemarena.arena.arena import Arena, MatchReport
from gemarena.arena.execution_strategies import ExecutionStrategyFactory
from gemarena.errors import ArenaError
from gemarena.evaluation.anchor_registry import AnchorRegistry
from gemarena.evaluation.historical_archive import HistoricalArchive
from gemarena.evaluation.results_repository import ResultsRepository
from gemarena.evaluation.seed_manager import SeedRangeCatalog
from gemarena.opening.book_sources import BookSourceFactory
from gemarena.opening.setup_book import OpeningBookService
from gemarena.settings import ArenaSettings, load_arena_config

logger = logging.getLogger("gemarena.cli")

DEFAULT_BASE_SEED = 12345
DEFAULT_NUM_GAMES = 500


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Deterministic AI arena - seeded AI-vs-AI matches",
        prog="gemarena",
    )
    parser.add_argument("--player-a", default="RANDOM", help="AI version id in the first seat")
    parser.add_argument("--player-b", help="Opponent AI version id (default: self-play)")
    parser.add_argument("--seed", type=int, default=DEFAULT_BASE_SEED, help="Base seed")
    parser.add_argument("--games", type=int, default=DEFAULT_NUM_GAMES, help="Number of games")
    parser.add_argument("--range", dest="seed_range", help="Named seed range (overrides --seed/--games)")
    parser.add_argument("--engine", help="Rules engine factory as module:attribute")
    parser.add_argument("--players", help="Player registry factory as module:attribute")
    parser.add_argument("--max-turns", type=int, help="Turn cap per game")
    parser.add_argument("--ray", action="store_true", help="Run games in parallel with Ray")
    parser.add_argument("--workers", type=int, help="Parallel workers (default: CPU count)")
    parser.add_argument(
        "--no-determinism-check", action="store_true", help="Skip re-running the match"
    )
    parser.add_argument("--compare", metavar="BASELINE_ID", help="Compare with a historical baseline")
    parser.add_argument("--output", metavar="NAME", help="Save the report under this name")
    parser.add_argument("--list-baselines", action="store_true", help="List historical baselines")
    parser.add_argument("--list-ranges", action="store_true", help="List named seed ranges")
    parser.add_argument("--list-anchors", action="store_true", help="List active anchors")
    parser.add_argument("--list-players", action="store_true", help="List registered players")
    parser.add_argument(
        "--validate-anchor",
        metavar="ANCHOR_ID",
        help="Replay an anchor's validation batch and check for drift",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def load_object(path: str):
    """Import "package.module:attribute"."""
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Expected module:attribute, got {path!r}")
    module = importlib.import_module(module_name)
    return getattr(module, attribute)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = ArenaSettings.from_env()
        _apply_overrides(settings, args)
        settings.validate()

        if args.list_baselines:
            return cmd_list_baselines(settings)
        if args.list_ranges:
            return cmd_list_ranges(settings)
        if args.list_anchors:
            return cmd_list_anchors(settings)

        registry = load_object(settings.players)()
        if args.list_players:
            for player_id in registry.list_ids():
                print(player_id)
            return 0

        if settings.engine is None:
            parser.error("a rules engine is required: pass --engine or set GEMARENA_ENGINE")

        if args.validate_anchor:
            return cmd_validate_anchor(settings, args.validate_anchor, registry)
        return cmd_run(settings, args, registry)

    except (ArenaError, ValueError, ImportError, AttributeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_list_baselines(settings: ArenaSettings) -> int:
    archive = HistoricalArchive(settings.arena_config)
    for baseline_id in archive.list_ids():
        baseline = archive.get(baseline_id)
        print(f"{baseline.id} ({baseline.date}): {baseline.description}")
        print(f"    {archive.get_checkout_command(baseline_id)}")
    return 0


def cmd_list_ranges(settings: ArenaSettings) -> int:
    catalog = SeedRangeCatalog.from_config(load_arena_config(settings.arena_config))
    for name in catalog.list_ids():
        seed_range = catalog.get(name)
        print(f"{name}: seeds {seed_range.start}-{seed_range.end} ({seed_range.count} games)")
    return 0


def cmd_list_anchors(settings: ArenaSettings) -> int:
    anchors = AnchorRegistry(settings.arena_config)
    for anchor_id in anchors.list_ids():
        anchor = anchors.get(anchor_id)
        print(f"{anchor.id} ({anchor.status}): {anchor.description}")
        print(
            f"    policy {anchor.policy_name}, {anchor.validation_mode}, "
            f"expected {anchor.expected_rate:.3f} +/- {anchor.tolerance:.3f}"
        )
    return 0


def build_arena(settings: ArenaSettings, registry, archive=None, anchors=None) -> Arena:
    return Arena(
        book_service=OpeningBookService(BookSourceFactory.create(settings.opening_book)),
        engine_factory=load_object(settings.engine),
        players=registry,
        execution_strategy=ExecutionStrategyFactory.create_strategy(
            settings.use_ray, settings.num_workers
        ),
        max_turns=settings.max_turns,
        archive=archive,
        anchors=anchors,
    )


def cmd_validate_anchor(settings: ArenaSettings, anchor_id: str, registry) -> int:
    """Print the validation summary as JSON. Exit code 1 when the anchor drifted."""
    arena = build_arena(settings, registry, anchors=AnchorRegistry(settings.arena_config))
    asyncio.run(arena.prepare())
    validation = arena.validate_anchor(anchor_id)
    print(json.dumps(validation.to_dict(), indent=2))
    return 0 if validation.passed else 1


def cmd_run(settings: ArenaSettings, args: argparse.Namespace, registry) -> int:
    player_a = args.player_a
    player_b = args.player_b or args.player_a
    base_seed, num_games = args.seed, args.games

    if args.seed_range:
        catalog = SeedRangeCatalog.from_config(load_arena_config(settings.arena_config))
        seed_range = catalog.get(args.seed_range)
        base_seed, num_games = seed_range.start, seed_range.count
        logger.info(
            "Using seed range %s (seeds %d-%d)", seed_range.name, seed_range.start, seed_range.end
        )

    archive = HistoricalArchive(settings.arena_config) if args.compare else None
    arena = build_arena(settings, registry, archive=archive)

    stop_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    start_time = time.monotonic()
    try:
        report = asyncio.run(arena.run(player_a, player_b, base_seed, num_games, stop_event))
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    determinism = None
    if not args.no_determinism_check and not report.stopped:
        logger.info("Running determinism check...")
        determinism = arena.check_determinism(report).to_dict()
    duration = time.monotonic() - start_time

    summary = canonical_summary(report, determinism, duration)
    if args.compare:
        summary["baseline_comparison"] = arena.compare_with_baseline(report, args.compare)
    if args.output:
        path = ResultsRepository(settings.results_dir).save_report(report, args.output)
        logger.info("Saved report to %s", path)

    _log_summary(summary)
    print(json.dumps(summary, indent=2))
    return 0


def canonical_summary(report: MatchReport, determinism: dict | None, duration: float) -> dict:
    """Stable JSON summary of a match for downstream tooling."""
    stats = report.stats
    return {
        "match_type": "SELF_PLAY" if report.player_a == report.player_b else "HEAD_TO_HEAD",
        "player_a": report.player_a,
        "player_b": report.player_b,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "seed": {
            "base": report.base_seed,
            "range": list(report.seed_range) if report.seed_range else None,
        },
        "games": {
            "requested": report.games_requested,
            "completed": stats.games_played,
            "crashes": stats.crashes,
            "illegal_moves": stats.illegal_moves,
            "draws": stats.draws,
        },
        "results": {
            "wins": {
                "playerA": report.wins(report.player_a),
                "playerB": report.wins(report.player_b),
            },
            "win_rate": {
                "playerA": report.win_rate(report.player_a),
                "playerB": report.win_rate(report.player_b),
            },
            "average_turns": stats.average_turns,
        },
        "stopped": report.stopped,
        "determinism_check": determinism,
        "duration_seconds": round(duration, 2),
    }


def _apply_overrides(settings: ArenaSettings, args: argparse.Namespace) -> None:
    if args.engine:
        settings.engine = args.engine
    if args.players:
        settings.players = args.players
    if args.max_turns is not None:
        settings.max_turns = args.max_turns
    if args.ray:
        settings.use_ray = True
    if args.workers is not None:
        settings.num_workers = args.workers


def _log_summary(summary: dict) -> None:
    results = summary["results"]
    logger.info("=== Summary ===")
    logger.info("Duration: %.2fs", summary["duration_seconds"])
    logger.info("Games: %d", summary["games"]["completed"])
    logger.info(
        "Win rate: %.1f%% / %.1f%%",
        results["win_rate"]["playerA"] * 100,
        results["win_rate"]["playerB"] * 100,
    )
    logger.info("Crashes: %d", summary["games"]["crashes"])
    logger.info("Illegal moves: %d", summary["games"]["illegal_moves"])
    logger.info("Average turns: %.1f", results["average_turns"])
    if summary["determinism_check"] is not None:
        identical = summary["determinism_check"]["byte_identical"]
        logger.info("Deterministic: %s", "YES" if identical else "NO")


if __name__ == "__main__":
    sys.exit(main())
