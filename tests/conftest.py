"""Shared pytest fixtures for mceval tests."""
from __future__ import annotations

import os

# Prevent Rich/Typer from emitting ANSI escape codes in CLI output.
os.environ["NO_COLOR"] = "1"

import numpy as np
import pytest

from mceval.core.enums import Label
from mceval.core.exceptions import ModelFitError
from mceval.core.models import Dataset, NoiseDistribution
from mceval.simulation.variants import (
    ConstantModel,
    ModelVariant,
    PolynomialModel,
)


class FlakyModel(ModelVariant):
    """Constant model that refuses datasets whose first input is below 0.5."""

    def default_name(self) -> str:
        return "flaky"

    def fit(self, dataset: Dataset) -> float:
        if dataset.x[0, 0] < 0.5:
            raise ModelFitError("first input below 0.5", model_name=self.name)
        return float(np.mean(dataset.y))

    def predict(self, fitted: float, x: np.ndarray) -> np.ndarray:
        return np.full(x.shape[0], fitted)


@pytest.fixture
def noise() -> NoiseDistribution:
    """Normal noise with sigma = 0.3."""
    return NoiseDistribution.from_std(0.3)


@pytest.fixture
def nested_variants() -> list[ModelVariant]:
    """Constant, linear, quadratic and degree-9 fits."""
    return [
        ConstantModel(name="fit_0"),
        PolynomialModel(1, name="fit_1"),
        PolynomialModel(2, name="fit_2"),
        PolynomialModel(9, name="fit_9"),
    ]


@pytest.fixture
def flaky_model() -> FlakyModel:
    """Variant that fails on roughly half of all uniform datasets."""
    return FlakyModel()


@pytest.fixture
def separable_scores() -> tuple[list[float], list[Label]]:
    """Perfectly separable scores and labels."""
    return (
        [0.9, 0.8, 0.2, 0.1],
        [Label.POSITIVE, Label.POSITIVE, Label.NEGATIVE, Label.NEGATIVE],
    )


@pytest.fixture
def noisy_scores() -> tuple[np.ndarray, np.ndarray]:
    """Overlapping scores with ties (rounded to one decimal) and 0/1 labels."""
    rng = np.random.default_rng(2024)
    labels = rng.integers(0, 2, size=300)
    scores = np.clip(rng.normal(0.4 + 0.2 * labels, 0.2), 0.0, 1.0).round(1)
    return scores, labels
