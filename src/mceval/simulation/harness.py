"""Monte Carlo simulation harness.

Runs independent trials: each draws a fresh dataset, fits every model
variant and scatters the prediction at the query point(s) into a
pre-sized prediction matrix. Trial ``t`` draws its entropy from
``SeedSequence(master_seed, spawn_key=(t,))``, so results are identical
whether trials run sequentially or across worker threads.

Individual fit failures are captured and recorded as missing cells rather
than propagating to fail the entire run.
"""
from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Any

import numpy as np
import structlog
from numpy.typing import NDArray

from mceval.core.exceptions import InvalidConfigurationError, ModelFitError
from mceval.core.models import (
    InputDistribution,
    NoiseDistribution,
    PredictionMatrix,
    SimulationResult,
    as_query_matrix,
)
from mceval.simulation.data_source import RandomDataSource
from mceval.simulation.functions import TrueFunction
from mceval.simulation.variants import ModelVariant

logger = structlog.get_logger(__name__)

# Numerical failures from the fitting library count as fit failures
_FIT_FAILURES = (ModelFitError, np.linalg.LinAlgError, ValueError)


def trial_rng(master_seed: int, trial: int) -> np.random.Generator:
    """Independent generator for one trial, derived from the master seed.

    Args:
        master_seed: Run-level seed.
        trial: Zero-based trial index.

    Returns:
        Generator whose stream depends only on ``(master_seed, trial)``.
    """
    return np.random.default_rng(
        np.random.SeedSequence(entropy=master_seed, spawn_key=(trial,))
    )


def _require_no_running_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return
    msg = (
        "SimulationHarness.run/run_grid with n_workers > 1 cannot be called "
        "from a running event loop; await run_async(...) instead"
    )
    raise InvalidConfigurationError(msg)


def resolve_seed(master_seed: int | None) -> int:
    """Return ``master_seed`` or draw a fresh one from OS entropy."""
    if master_seed is not None:
        return master_seed
    seed = int(np.random.SeedSequence().entropy)  # type: ignore[arg-type]
    logger.info("master_seed_drawn", master_seed=seed)
    return seed


class SimulationHarness:
    """Fit a family of model variants over repeated simulated datasets.

    Args:
        variants: Model variants; their names become matrix columns.
        n_workers: Maximum trials in flight at once (1 = sequential).
    """

    def __init__(self, variants: Sequence[ModelVariant], n_workers: int = 1) -> None:
        if not variants:
            raise InvalidConfigurationError("At least one model variant is required.")
        names = [v.name for v in variants]
        if len(set(names)) != len(names):
            msg = f"Model variant names must be unique: {names}"
            raise InvalidConfigurationError(msg)
        if n_workers < 1:
            msg = f"n_workers must be >= 1, got {n_workers}"
            raise InvalidConfigurationError(msg)
        self._variants = list(variants)
        self._n_workers = n_workers

    @property
    def model_names(self) -> list[str]:
        """Variant names in column order."""
        return [v.name for v in self._variants]

    def run(
        self,
        true_function: TrueFunction,
        noise: NoiseDistribution,
        sample_size: int,
        query_point: float | Sequence[float],
        n_trials: int,
        master_seed: int | None = None,
        inputs: InputDistribution | None = None,
    ) -> SimulationResult:
        """Run the simulation at a single query point.

        With ``n_workers > 1`` this drives its own event loop, so it must not
        be called from inside a running loop; await ``run_async`` there.

        Args:
            true_function: Vectorised ground truth.
            noise: Zero-mean noise descriptor.
            sample_size: Observations per simulated dataset.
            query_point: Feature vector to predict at.
            n_trials: Number of independent trials.
            master_seed: Run seed (None = draw from OS entropy).
            inputs: Feature distribution.

        Returns:
            SimulationResult holding the frozen prediction matrix.
        """
        return self.run_grid(
            true_function,
            noise,
            sample_size,
            [query_point],
            n_trials,
            master_seed=master_seed,
            inputs=inputs,
        )[0]

    def run_grid(
        self,
        true_function: TrueFunction,
        noise: NoiseDistribution,
        sample_size: int,
        query_points: Sequence[float | Sequence[float]],
        n_trials: int,
        master_seed: int | None = None,
        inputs: InputDistribution | None = None,
    ) -> list[SimulationResult]:
        """Run the simulation, predicting at several query points per fit.

        Returns:
            One SimulationResult per query point, in input order.

        Raises:
            InvalidConfigurationError: If ``n_workers > 1`` and an event loop
                is already running in this thread.
        """
        if self._n_workers > 1:
            _require_no_running_loop()
            return asyncio.run(
                self.run_async(
                    true_function,
                    noise,
                    sample_size,
                    query_points,
                    n_trials,
                    master_seed=master_seed,
                    inputs=inputs,
                )
            )
        seed, source, queries, matrices = self._prepare(
            true_function, noise, sample_size, query_points, n_trials, master_seed, inputs
        )
        for trial in range(n_trials):
            self._run_trial(source, queries, trial, seed, matrices)
        return self._finish(seed, queries, matrices)

    async def run_async(
        self,
        true_function: TrueFunction,
        noise: NoiseDistribution,
        sample_size: int,
        query_points: Sequence[float | Sequence[float]],
        n_trials: int,
        master_seed: int | None = None,
        inputs: InputDistribution | None = None,
    ) -> list[SimulationResult]:
        """Run trials concurrently on worker threads.

        At most ``n_workers`` trials are in flight. Each trial writes only
        its own matrix row, so no locking is needed.
        """
        seed, source, queries, matrices = self._prepare(
            true_function, noise, sample_size, query_points, n_trials, master_seed, inputs
        )
        semaphore = asyncio.Semaphore(self._n_workers)

        async def _bounded(trial: int) -> None:
            async with semaphore:
                await asyncio.to_thread(
                    self._run_trial, source, queries, trial, seed, matrices
                )

        await asyncio.gather(*(_bounded(t) for t in range(n_trials)))
        return self._finish(seed, queries, matrices)

    def _prepare(
        self,
        true_function: TrueFunction,
        noise: NoiseDistribution,
        sample_size: int,
        query_points: Sequence[float | Sequence[float]],
        n_trials: int,
        master_seed: int | None,
        inputs: InputDistribution | None,
    ) -> tuple[int, RandomDataSource, NDArray[np.float64], list[PredictionMatrix]]:
        if n_trials <= 0:
            msg = f"n_trials must be > 0, got {n_trials}"
            raise InvalidConfigurationError(msg)
        if not query_points:
            raise InvalidConfigurationError("At least one query point is required.")
        source = RandomDataSource(true_function, noise, sample_size, inputs=inputs)
        queries = np.vstack([as_query_matrix(q) for q in query_points])
        if queries.shape[1] != source.inputs.n_features:
            msg = (
                f"Query points have {queries.shape[1]} features, inputs have "
                f"{source.inputs.n_features}"
            )
            raise InvalidConfigurationError(msg)
        matrices = [
            PredictionMatrix(self.model_names, n_trials) for _ in range(len(queries))
        ]
        return resolve_seed(master_seed), source, queries, matrices

    def _run_trial(
        self,
        source: RandomDataSource,
        queries: NDArray[np.float64],
        trial: int,
        master_seed: int,
        matrices: list[PredictionMatrix],
    ) -> None:
        """Generate one dataset and fill row ``trial`` of every matrix."""
        dataset = source.generate(trial_rng(master_seed, trial))
        for col, variant in enumerate(self._variants):
            try:
                fitted: Any = variant.fit(dataset)
                preds = np.asarray(variant.predict(fitted, queries), dtype=np.float64)
            except _FIT_FAILURES as e:
                logger.warning(
                    "trial_fit_failed",
                    model=variant.name,
                    trial=trial,
                    error=str(e),
                )
                for matrix in matrices:
                    matrix.mark_missing(trial, col, error=str(e))
                continue
            for q, matrix in enumerate(matrices):
                matrix.put(trial, col, float(preds[q]))

    def _finish(
        self,
        master_seed: int,
        queries: NDArray[np.float64],
        matrices: list[PredictionMatrix],
    ) -> list[SimulationResult]:
        results: list[SimulationResult] = []
        for query, matrix in zip(queries, matrices, strict=True):
            matrix.freeze()
            results.append(
                SimulationResult(
                    matrix=matrix,
                    query_point=[float(v) for v in query],
                    master_seed=master_seed,
                    failure_counts=matrix.failure_counts(),
                )
            )

        logger.info(
            "simulation_complete",
            n_trials=matrices[0].n_trials,
            n_models=len(self._variants),
            n_query_points=len(matrices),
            failures=matrices[0].failure_counts(),
            master_seed=master_seed,
        )
        return results
