"""Synthetic labelled data sources.

All randomness is drawn from an explicitly supplied
``numpy.random.Generator``; no global random state is touched, so trials
can be generated in any order and still reproduce.
"""
from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from mceval.core.exceptions import InvalidConfigurationError
from mceval.core.models import Dataset, InputDistribution, NoiseDistribution
from mceval.simulation.functions import TrueFunction


def sigmoid(eta: NDArray[np.float64] | float) -> NDArray[np.float64]:
    """Logistic function ``1 / (1 + exp(-eta))``."""
    return 1.0 / (1.0 + np.exp(-np.asarray(eta, dtype=np.float64)))


def _check_sample_size(sample_size: int) -> None:
    if sample_size <= 0:
        msg = f"sample_size must be > 0, got {sample_size}"
        raise InvalidConfigurationError(msg)


def generate_dataset(
    true_function: TrueFunction,
    noise: NoiseDistribution,
    sample_size: int,
    rng: np.random.Generator,
    inputs: InputDistribution | None = None,
) -> Dataset:
    """Draw a regression dataset ``y = f(x) + eps``.

    Args:
        true_function: Vectorised ground truth ``(n, p) -> (n,)``.
        noise: Zero-mean noise descriptor.
        sample_size: Number of observations.
        rng: Generator supplying all entropy for this dataset.
        inputs: Feature distribution (defaults to uniform on [0, 1]).

    Returns:
        Dataset with ``sample_size`` rows.

    Raises:
        InvalidConfigurationError: If ``sample_size <= 0`` or the noise
            variance is non-finite or non-positive.
    """
    _check_sample_size(sample_size)
    noise.validate_variance()
    inputs = inputs or InputDistribution()

    x = inputs.sample(rng, sample_size)
    mean = np.asarray(true_function(x), dtype=np.float64).reshape(-1)
    if mean.shape[0] != sample_size:
        msg = (
            f"true_function returned {mean.shape[0]} values for "
            f"{sample_size} inputs"
        )
        raise InvalidConfigurationError(msg)
    y = mean + noise.sample(rng, sample_size)
    return Dataset(x=x, y=y)


def generate_logistic_dataset(
    intercept: float,
    slope: float,
    sample_size: int,
    rng: np.random.Generator,
) -> Dataset:
    """Draw a binary dataset from a single-feature logistic model.

    ``x ~ N(0, 1)``, ``p = sigmoid(intercept + slope * x)``,
    ``y ~ Bernoulli(p)``.

    Args:
        intercept: Linear predictor intercept.
        slope: Linear predictor slope.
        sample_size: Number of observations.
        rng: Generator supplying all entropy for this dataset.

    Returns:
        Dataset with integer 0/1 responses.
    """
    _check_sample_size(sample_size)
    x = rng.normal(0.0, 1.0, size=(sample_size, 1))
    p = sigmoid(intercept + slope * x[:, 0])
    y = rng.binomial(1, p).astype(np.int64)
    return Dataset(x=x, y=y)


class RandomDataSource:
    """Bound data-generating process for repeated trials.

    Args:
        true_function: Vectorised ground truth.
        noise: Zero-mean noise descriptor.
        sample_size: Observations per dataset.
        inputs: Feature distribution.
    """

    def __init__(
        self,
        true_function: TrueFunction,
        noise: NoiseDistribution,
        sample_size: int,
        inputs: InputDistribution | None = None,
    ) -> None:
        _check_sample_size(sample_size)
        noise.validate_variance()
        self.true_function = true_function
        self.noise = noise
        self.sample_size = sample_size
        self.inputs = inputs or InputDistribution()

    def generate(self, rng: np.random.Generator) -> Dataset:
        """Draw one fresh dataset from ``rng``."""
        return generate_dataset(
            self.true_function,
            self.noise,
            self.sample_size,
            rng,
            inputs=self.inputs,
        )
