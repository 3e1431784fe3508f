"""Bias-variance result models.

Per-model Monte Carlo estimates and the composite report produced by the
bias-variance analyzer.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class BiasVarianceResult(BaseModel):
    """Monte Carlo decomposition estimates for one model at one point.

    Attributes:
        model: Model variant name.
        bias: Mean prediction minus the true value.
        squared_bias: ``bias ** 2``.
        variance: Population variance of the predictions.
        mse: Mean squared error against the noisy response ensemble.
        noise_variance: Irreducible noise variance used for reconciliation.
        n_valid: Trials with a usable prediction.
        n_failed: Trials whose fit failed (excluded, never zero-filled).
        gap_standard_error: Standard error of the reconciliation gap, or
            None with fewer than two valid trials.
    """

    model: str
    bias: float
    squared_bias: float
    variance: float
    mse: float
    noise_variance: float
    n_valid: int
    n_failed: int
    gap_standard_error: float | None = None

    @property
    def reconciliation_gap(self) -> float:
        """``mse - (squared_bias + variance + noise_variance)``."""
        return self.mse - (self.squared_bias + self.variance + self.noise_variance)

    def reconciliation_tolerance(self, z: float = 4.0) -> float:
        """Gap allowed by Monte Carlo error: ``z`` standard errors."""
        if self.gap_standard_error is None:
            return float("inf")
        return z * self.gap_standard_error

    def reconciles(self, z: float = 4.0) -> bool:
        """Whether the decomposition holds within ``z`` standard errors."""
        return abs(self.reconciliation_gap) <= self.reconciliation_tolerance(z)


class BiasVarianceReport(BaseModel):
    """Decomposition results for every model at one query point.

    Attributes:
        true_value: Ground truth at the query point.
        noise_variance: Irreducible noise variance.
        n_trials: Number of simulated trials.
        query_point: Feature vector the predictions were made at.
        results: Per-model results keyed by model name.
        metadata: Additional metadata (seed, timestamp).
    """

    true_value: float
    noise_variance: float
    n_trials: int
    query_point: list[float]
    results: dict[str, BiasVarianceResult]
    metadata: dict[str, Any]

    def table(self) -> list[dict[str, Any]]:
        """Rows suitable for tabular rendering, in model order."""
        return [
            {
                "model": r.model,
                "squared_bias": r.squared_bias,
                "variance": r.variance,
                "mse": r.mse,
                "bias2_var_noise": r.squared_bias + r.variance + r.noise_variance,
                "n_failed": r.n_failed,
            }
            for r in self.results.values()
        ]

    def all_reconcile(self, z: float = 4.0) -> bool:
        """Whether every model's decomposition reconciles."""
        return all(r.reconciles(z) for r in self.results.values())
