"""Execution strategies for running planned arena games."""

import logging
import os
import threading
from abc import ABC, abstractmethod

import ray
from ray.exceptions import RayError
from tqdm import tqdm

from gemarena.arena.game_runner import (
    MatchJob,
    MatchSpec,
    aborted_result,
    run_single_match,
)
from gemarena.evaluation.result_data import GameResult

logger = logging.getLogger(__name__)


class ExecutionStrategy(ABC):
    """Abstract base class for game execution strategies.

    Strategies return only fully completed games. When stop_event is set,
    games not yet finished are dropped, never partially reported.
    """

    @abstractmethod
    def run_matches(
        self,
        job: MatchJob,
        specs: list[MatchSpec],
        stop_event: threading.Event | None = None,
    ) -> list[GameResult]:
        """Run planned games and return their results ordered by game index."""
        pass


class SequentialExecutionStrategy(ExecutionStrategy):
    """Execute games one after another in-process with progress tracking."""

    def __init__(self, show_progress: bool = True):
        self.show_progress = show_progress

    def run_matches(
        self,
        job: MatchJob,
        specs: list[MatchSpec],
        stop_event: threading.Event | None = None,
    ) -> list[GameResult]:
        results = []
        for spec in tqdm(specs, desc="Running games", disable=not self.show_progress):
            if stop_event is not None and stop_event.is_set():
                logger.info("Stop requested after %d of %d games", len(results), len(specs))
                break
            results.append(run_single_match(job, spec))
        return results


class ParallelExecutionStrategy(ExecutionStrategy):
    """Execute games in parallel using Ray with a CPU-bounded worker pool."""

    def __init__(self, num_workers: int | None = None, show_progress: bool = True):
        self.num_workers = num_workers
        self.show_progress = show_progress
        self._ray_initialized = False

    @property
    def worker_count(self) -> int:
        return self.num_workers or os.cpu_count() or 1

    def run_matches(
        self,
        job: MatchJob,
        specs: list[MatchSpec],
        stop_event: threading.Event | None = None,
    ) -> list[GameResult]:
        if not specs:
            return []

        if not self._initialize_ray():
            sequential_strategy = SequentialExecutionStrategy(self.show_progress)
            return sequential_strategy.run_matches(job, specs, stop_event)

        try:
            return self._run_matches_parallel(job, specs, stop_event)
        finally:
            self._cleanup_ray()

    def _run_matches_parallel(
        self,
        job: MatchJob,
        specs: list[MatchSpec],
        stop_event: threading.Event | None,
    ) -> list[GameResult]:
        logger.info(
            "Using Ray parallel execution: %d games on %d workers",
            len(specs),
            self.worker_count,
        )

        # Put the job in the object store once, share across tasks
        job_ref = ray.put(job)
        future_to_spec = {
            _run_single_match_remote.remote(job_ref, spec): spec for spec in specs
        }

        results: dict[int, GameResult] = {}
        remaining_futures = list(future_to_spec)

        with tqdm(
            total=len(remaining_futures),
            desc="Running games (parallel)",
            disable=not self.show_progress,
        ) as pbar:
            while remaining_futures:
                if stop_event is not None and stop_event.is_set():
                    logger.info(
                        "Stop requested, cancelling %d unfinished games",
                        len(remaining_futures),
                    )
                    for future in remaining_futures:
                        ray.cancel(future, force=True)
                    break

                ready, remaining_futures = ray.wait(
                    remaining_futures, num_returns=1, timeout=1.0
                )
                for future in ready:
                    spec = future_to_spec[future]
                    try:
                        results[spec.game_index] = ray.get(future)
                    except RayError:
                        # run_single_match never raises, so this is a lost worker
                        logger.warning(
                            "Game %d (seed %d) lost during parallel execution",
                            spec.game_index,
                            spec.seed,
                            exc_info=True,
                        )
                        results[spec.game_index] = aborted_result(spec)
                pbar.update(len(ready))

        return [results[index] for index in sorted(results)]

    def _initialize_ray(self) -> bool:
        """Initialize Ray if not already running."""
        if self._ray_initialized:
            return True

        try:
            if ray.is_initialized():
                # Ray is already initialized, use existing instance
                return True

            ray.init(num_cpus=self.worker_count, ignore_reinit_error=True)
            self._ray_initialized = True
            return True

        except Exception as e:
            logger.warning("Failed to initialize Ray (%s), falling back to sequential execution", e)
            return False

    def _cleanup_ray(self) -> None:
        """Shut Ray down if this strategy started it."""
        if self._ray_initialized and ray.is_initialized():
            try:
                ray.shutdown()
            except Exception as e:
                logger.warning("Error during Ray cleanup: %s", e)
        self._ray_initialized = False


class ExecutionStrategyFactory:
    """Factory for creating execution strategies."""

    @staticmethod
    def create_strategy(
        use_ray: bool, num_workers: int | None = None, show_progress: bool = True
    ) -> ExecutionStrategy:
        if use_ray:
            return ParallelExecutionStrategy(num_workers, show_progress)
        return SequentialExecutionStrategy(show_progress)


@ray.remote
def _run_single_match_remote(job: MatchJob, spec: MatchSpec) -> GameResult:
    """Ray remote wrapper around run_single_match."""
    return run_single_match(job, spec)
