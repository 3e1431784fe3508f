"""Core data models for mceval.

Pydantic descriptors for the noise and input distributions, the per-trial
``Dataset`` container, and the write-once ``PredictionMatrix`` arena that
the simulation harness scatters predictions into.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from mceval.core.enums import CellState, NoiseKind
from mceval.core.exceptions import (
    InvalidConfigurationError,
    WriteOnceError,
)


class NoiseDistribution(BaseModel):
    """Zero-mean additive noise with a fixed variance.

    Attributes:
        variance: Noise variance (sigma squared). Must be finite and > 0.
        kind: Distribution family used for sampling.
    """

    variance: float
    kind: NoiseKind = NoiseKind.NORMAL

    model_config = {"frozen": True}

    @classmethod
    def from_std(cls, std: float, kind: NoiseKind = NoiseKind.NORMAL) -> NoiseDistribution:
        """Build a descriptor from a standard deviation."""
        return cls(variance=std**2, kind=kind)

    @property
    def mean(self) -> float:
        """Noise mean (always zero)."""
        return 0.0

    @property
    def std(self) -> float:
        """Noise standard deviation."""
        return math.sqrt(self.variance)

    def validate_variance(self) -> None:
        """Check the variance is usable for sampling.

        Raises:
            InvalidConfigurationError: If the variance is non-finite or
                not strictly positive.
        """
        if not math.isfinite(self.variance) or self.variance <= 0:
            msg = f"Noise variance must be finite and > 0, got {self.variance!r}"
            raise InvalidConfigurationError(msg)

    def sample(self, rng: np.random.Generator, size: int) -> NDArray[np.float64]:
        """Draw ``size`` independent noise values.

        Args:
            rng: Generator supplying the entropy.
            size: Number of draws.

        Returns:
            1-D array of noise draws with mean 0 and ``self.variance``.
        """
        self.validate_variance()
        if self.kind == NoiseKind.UNIFORM:
            half_width = math.sqrt(3.0 * self.variance)
            return rng.uniform(-half_width, half_width, size=size)
        if self.kind == NoiseKind.LAPLACE:
            return rng.laplace(0.0, math.sqrt(self.variance / 2.0), size=size)
        return rng.normal(0.0, self.std, size=size)


class InputDistribution(BaseModel):
    """Uniform feature distribution on ``[low, high]^n_features``.

    Attributes:
        low: Lower bound of every feature.
        high: Upper bound of every feature.
        n_features: Dimension of each feature vector.
    """

    low: float = 0.0
    high: float = 1.0
    n_features: int = 1

    model_config = {"frozen": True}

    def sample(self, rng: np.random.Generator, size: int) -> NDArray[np.float64]:
        """Draw a ``(size, n_features)`` matrix of feature vectors."""
        if self.n_features <= 0 or not self.high > self.low:
            msg = (
                "Input distribution needs n_features > 0 and high > low, got "
                f"n_features={self.n_features}, low={self.low}, high={self.high}"
            )
            raise InvalidConfigurationError(msg)
        return rng.uniform(self.low, self.high, size=(size, self.n_features))


@dataclass(frozen=True)
class Dataset:
    """A labelled sample of feature vectors and responses.

    Attributes:
        x: Feature matrix of shape ``(n, p)``.
        y: Response vector of shape ``(n,)``.
    """

    x: NDArray[np.float64]
    y: NDArray[Any]

    def __len__(self) -> int:
        return int(self.y.shape[0])

    @property
    def n_features(self) -> int:
        """Number of feature columns."""
        return int(self.x.shape[1])


def as_query_matrix(query: float | Sequence[float] | NDArray[Any]) -> NDArray[np.float64]:
    """Coerce a scalar or feature vector into a ``(1, p)`` matrix."""
    arr = np.atleast_1d(np.asarray(query, dtype=np.float64))
    return arr.reshape(1, -1)


class PredictionMatrix:
    """Trial x model arena of scalar predictions at one query point.

    The matrix is allocated up front. Each cell is written exactly once,
    either with a value (``put``) or as missing after a failed fit
    (``mark_missing``). Writes to disjoint cells need no locking. After
    ``freeze`` the matrix is read-only.

    Args:
        model_names: Column identifiers, one per model variant.
        n_trials: Number of rows.
    """

    def __init__(self, model_names: Sequence[str], n_trials: int) -> None:
        if n_trials <= 0:
            msg = f"n_trials must be > 0, got {n_trials}"
            raise InvalidConfigurationError(msg)
        if len(set(model_names)) != len(model_names):
            msg = f"Model names must be unique: {list(model_names)}"
            raise InvalidConfigurationError(msg)
        self._model_names = list(model_names)
        self._values = np.full((n_trials, len(model_names)), np.nan)
        self._state = np.full((n_trials, len(model_names)), CellState.EMPTY, dtype=np.int8)
        self._errors: dict[tuple[int, int], str] = {}
        self._frozen = False

    @property
    def model_names(self) -> list[str]:
        """Column identifiers in column order."""
        return list(self._model_names)

    @property
    def n_trials(self) -> int:
        """Number of trial rows."""
        return int(self._values.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        """``(n_trials, n_models)``."""
        return (int(self._values.shape[0]), int(self._values.shape[1]))

    @property
    def is_frozen(self) -> bool:
        """Whether the write phase has ended."""
        return self._frozen

    @property
    def is_complete(self) -> bool:
        """Whether every cell has been written or marked missing."""
        return bool(np.all(self._state != CellState.EMPTY))

    def model_index(self, model: str | int) -> int:
        """Resolve a model name or column index to a column index."""
        if isinstance(model, int):
            return model
        try:
            return self._model_names.index(model)
        except ValueError as exc:
            msg = f"Unknown model '{model}'. Known: {self._model_names}"
            raise KeyError(msg) from exc

    def _claim(self, trial: int, model: int) -> None:
        if self._frozen:
            raise WriteOnceError("Prediction matrix is frozen", trial=trial, model=model)
        if self._state[trial, model] != CellState.EMPTY:
            msg = f"Cell (trial={trial}, model={model}) already written"
            raise WriteOnceError(msg, trial=trial, model=model)

    def put(self, trial: int, model: str | int, value: float) -> None:
        """Write a prediction into an empty cell."""
        col = self.model_index(model)
        self._claim(trial, col)
        self._values[trial, col] = float(value)
        self._state[trial, col] = CellState.WRITTEN

    def mark_missing(self, trial: int, model: str | int, error: str = "") -> None:
        """Mark an empty cell as missing because the fit failed."""
        col = self.model_index(model)
        self._claim(trial, col)
        self._state[trial, col] = CellState.MISSING
        self._errors[(trial, col)] = error

    def freeze(self) -> PredictionMatrix:
        """End the write phase.

        Raises:
            WriteOnceError: If any cell is still empty.
        """
        empty = np.argwhere(self._state == CellState.EMPTY)
        if len(empty) > 0:
            trial, model = (int(v) for v in empty[0])
            msg = f"Cannot freeze: {len(empty)} cells never written"
            raise WriteOnceError(msg, trial=trial, model=model)
        self._frozen = True
        self._values.setflags(write=False)
        return self

    def column(self, model: str | int) -> NDArray[np.float64]:
        """Full column including NaN for missing cells."""
        col = self._values[:, self.model_index(model)]
        return col

    def valid_mask(self, model: str | int) -> NDArray[np.bool_]:
        """Boolean mask of written (non-missing) cells for a model."""
        return self._state[:, self.model_index(model)] == CellState.WRITTEN

    def valid_values(self, model: str | int) -> NDArray[np.float64]:
        """Written values for a model, missing cells excluded."""
        col = self.model_index(model)
        return self._values[self._state[:, col] == CellState.WRITTEN, col]

    def failure_count(self, model: str | int) -> int:
        """Number of missing cells for a model."""
        col = self.model_index(model)
        return int(np.sum(self._state[:, col] == CellState.MISSING))

    def failure_counts(self) -> dict[str, int]:
        """Missing-cell counts keyed by model name."""
        return {name: self.failure_count(i) for i, name in enumerate(self._model_names)}

    def errors(self) -> dict[tuple[int, str], str]:
        """Recorded fit errors keyed by ``(trial, model_name)``."""
        return {
            (trial, self._model_names[col]): err
            for (trial, col), err in sorted(self._errors.items())
        }

    def to_array(self) -> NDArray[np.float64]:
        """Copy of the raw value array (NaN where missing)."""
        return self._values.copy()


class SimulationResult(BaseModel):
    """Output of one simulation run at a single query point.

    Attributes:
        matrix: The frozen prediction matrix.
        query_point: Feature vector the predictions were made at.
        master_seed: Seed the per-trial streams were derived from (None when
            the matrix was filled outside the harness).
        failure_counts: Missing-cell counts keyed by model name.
    """

    matrix: PredictionMatrix
    query_point: list[float]
    master_seed: int | None = None
    failure_counts: dict[str, int] = Field(default_factory=dict)

    model_config = {"arbitrary_types_allowed": True}
