"""Bias-variance decomposition of a Monte Carlo prediction matrix.

For each model column the analyzer estimates squared bias, variance and
MSE at the query point. MSE pairs trial ``i``'s prediction with the
``i``-th draw of an independently simulated noisy response, so
``squared_bias + variance + noise_variance`` matches it only up to Monte
Carlo error. That error is reported as a standard error so callers can
check reconciliation with a tolerance that shrinks like ``1/sqrt(n)``.
"""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import numpy as np
import structlog
from numpy.typing import NDArray

from mceval.core.exceptions import (
    InsufficientDataError,
    InvalidConfigurationError,
    LengthMismatchError,
)
from mceval.core.models import NoiseDistribution, PredictionMatrix, SimulationResult
from mceval.simulation.functions import TrueFunction, evaluate_at
from mceval.simulation.models import BiasVarianceReport, BiasVarianceResult

logger = structlog.get_logger(__name__)


def noise_rng(master_seed: int, n_trials: int) -> np.random.Generator:
    """Generator for the noise ensemble of a run.

    The two-element spawn key keeps this stream apart from the
    single-element keys used by the trial streams.
    """
    return np.random.default_rng(
        np.random.SeedSequence(entropy=master_seed, spawn_key=(n_trials, 1))
    )


def draw_noise_ensemble(
    true_value: float,
    noise: NoiseDistribution,
    n_trials: int,
    rng: np.random.Generator,
) -> NDArray[np.float64]:
    """Draw ``n_trials`` noisy responses at the query point.

    Args:
        true_value: Ground truth at the query point.
        noise: Zero-mean noise descriptor.
        n_trials: Ensemble length (one per trial).
        rng: Generator supplying the entropy.

    Returns:
        Array of ``true_value + eps_i``.
    """
    if n_trials <= 0:
        msg = f"n_trials must be > 0, got {n_trials}"
        raise InvalidConfigurationError(msg)
    return true_value + noise.sample(rng, n_trials)


def decompose(
    predictions: NDArray[np.float64],
    responses: NDArray[np.float64],
    true_value: float,
    noise_variance: float,
    model: str = "model",
    n_failed: int = 0,
) -> BiasVarianceResult:
    """Decompose one model's valid predictions.

    Args:
        predictions: Valid predictions, one per surviving trial.
        responses: Noisy responses paired with ``predictions`` by trial.
        true_value: Ground truth at the query point.
        noise_variance: Irreducible noise variance.
        model: Model name for the result.
        n_failed: Number of excluded trials, reported alongside.

    Returns:
        BiasVarianceResult for the model.

    Raises:
        InsufficientDataError: If there are no valid predictions.
        LengthMismatchError: If predictions and responses differ in length.
    """
    preds = np.asarray(predictions, dtype=np.float64)
    ys = np.asarray(responses, dtype=np.float64)
    if preds.shape[0] != ys.shape[0]:
        raise LengthMismatchError(preds.shape[0], ys.shape[0], what="predictions/responses")
    n_valid = int(preds.shape[0])
    if n_valid == 0:
        msg = f"Model '{model}' has no valid predictions ({n_failed} failed fits)"
        raise InsufficientDataError(msg, model_name=model, n_valid=0)

    bias = float(np.mean(preds) - true_value)
    variance = float(np.var(preds))  # ddof=0: Monte Carlo estimator
    mse = float(np.mean((preds - ys) ** 2))

    # Per-trial gap term: e^2 - sigma^2 - 2 (p - f) e, mean zero in expectation
    eps = ys - true_value
    gap_terms = eps**2 - noise_variance - 2.0 * (preds - true_value) * eps
    gap_se = (
        float(np.std(gap_terms, ddof=1) / np.sqrt(n_valid)) if n_valid > 1 else None
    )

    return BiasVarianceResult(
        model=model,
        bias=bias,
        squared_bias=bias**2,
        variance=variance,
        mse=mse,
        noise_variance=noise_variance,
        n_valid=n_valid,
        n_failed=n_failed,
        gap_standard_error=gap_se,
    )


class BiasVarianceAnalyzer:
    """Compute squared bias, variance and MSE for every model column.

    Args:
        noise_variance: Irreducible noise variance. When None, it is
            estimated from the noise ensemble.
    """

    def __init__(self, noise_variance: float | None = None) -> None:
        self._noise_variance = noise_variance

    def analyze(
        self,
        result: SimulationResult | PredictionMatrix,
        true_value: float,
        noise_ensemble: NDArray[np.float64],
    ) -> BiasVarianceReport:
        """Decompose every model column of a finished simulation.

        Args:
            result: Simulation output, or a bare frozen prediction matrix.
            true_value: Ground truth at the query point.
            noise_ensemble: Independent noisy responses, one per trial.

        Returns:
            BiasVarianceReport keyed by model name.

        Raises:
            InvalidConfigurationError: If the matrix is still being written.
            LengthMismatchError: If the ensemble length differs from the
                number of trials.
            InsufficientDataError: If a model has no valid predictions.
        """
        if isinstance(result, PredictionMatrix):
            result = SimulationResult(
                matrix=result,
                query_point=[],
                master_seed=None,
                failure_counts=result.failure_counts(),
            )
        matrix = result.matrix
        if not matrix.is_frozen:
            raise InvalidConfigurationError(
                "Prediction matrix must be frozen before analysis"
            )
        ensemble = np.asarray(noise_ensemble, dtype=np.float64)
        if ensemble.shape[0] != matrix.n_trials:
            raise LengthMismatchError(
                ensemble.shape[0], matrix.n_trials, what="noise_ensemble/trials"
            )

        noise_variance = self._noise_variance
        if noise_variance is None:
            noise_variance = float(np.var(ensemble))
            logger.info("noise_variance_estimated", noise_variance=noise_variance)

        results: dict[str, BiasVarianceResult] = {}
        for name in matrix.model_names:
            mask = matrix.valid_mask(name)
            results[name] = decompose(
                matrix.column(name)[mask],
                ensemble[mask],
                true_value,
                noise_variance,
                model=name,
                n_failed=matrix.failure_count(name),
            )

        metadata: dict[str, Any] = {
            "master_seed": result.master_seed,
            "timestamp": datetime.now(UTC).isoformat(),
        }

        logger.info(
            "bias_variance_complete",
            n_trials=matrix.n_trials,
            models=list(results),
            failures=result.failure_counts,
        )

        return BiasVarianceReport(
            true_value=true_value,
            noise_variance=noise_variance,
            n_trials=matrix.n_trials,
            query_point=result.query_point,
            results=results,
            metadata=metadata,
        )


def analyze_simulation(
    result: SimulationResult,
    true_function: TrueFunction,
    noise: NoiseDistribution,
) -> BiasVarianceReport:
    """Evaluate the truth, draw the noise ensemble and analyze in one step.

    The ensemble stream is derived from the run's master seed, so the
    whole pipeline reproduces from that seed alone.
    """
    if result.master_seed is None:
        raise InvalidConfigurationError("Simulation result carries no master seed")
    true_value = evaluate_at(true_function, result.query_point)
    ensemble = draw_noise_ensemble(
        true_value,
        noise,
        result.matrix.n_trials,
        noise_rng(result.master_seed, result.matrix.n_trials),
    )
    analyzer = BiasVarianceAnalyzer(noise_variance=noise.variance)
    return analyzer.analyze(result, true_value, ensemble)
