"""Named ground-truth functions for simulation scenarios.

Each function maps a ``(n, p)`` feature matrix to a length-``n`` vector of
true mean responses. Configuration files refer to them by name.
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any

import numpy as np
from numpy.typing import NDArray

from mceval.core.exceptions import InvalidConfigurationError
from mceval.core.models import as_query_matrix

TrueFunction = Callable[[NDArray[np.float64]], NDArray[Any]]


def square(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """``f(x) = x^2`` on the first feature."""
    return x[:, 0] ** 2


def cubic(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """``f(x) = x^3 - x`` on the first feature."""
    return x[:, 0] ** 3 - x[:, 0]


def sine(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """``f(x) = sin(2 pi x)`` on the first feature."""
    return np.sin(2.0 * np.pi * x[:, 0])


def linear(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """``f(x) = 1 + 2x`` on the first feature."""
    return 1.0 + 2.0 * x[:, 0]


def additive(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """``f(x1, x2) = x1 + 2 x2``."""
    return x[:, 0] + 2.0 * x[:, 1]


def interaction(x: NDArray[np.float64]) -> NDArray[np.float64]:
    """``f(x1, x2) = x1 + x2 + 3 x1 x2``."""
    return x[:, 0] + x[:, 1] + 3.0 * x[:, 0] * x[:, 1]


TRUE_FUNCTIONS: dict[str, TrueFunction] = {
    "square": square,
    "cubic": cubic,
    "sine": sine,
    "linear": linear,
    "additive": additive,
    "interaction": interaction,
}

# Minimum feature dimension each named function reads
MIN_FEATURES: dict[str, int] = {
    "square": 1,
    "cubic": 1,
    "sine": 1,
    "linear": 1,
    "additive": 2,
    "interaction": 2,
}


def get_true_function(name: str) -> TrueFunction:
    """Look up a registered ground-truth function.

    Args:
        name: Registry key (e.g. ``"square"``).

    Returns:
        The vectorised ground-truth callable.

    Raises:
        InvalidConfigurationError: If the name is not registered.
    """
    try:
        return TRUE_FUNCTIONS[name]
    except KeyError as exc:
        supported = ", ".join(sorted(TRUE_FUNCTIONS))
        msg = f"Unknown true function '{name}'. Supported: {supported}"
        raise InvalidConfigurationError(msg) from exc


def evaluate_at(fn: TrueFunction, point: float | list[float] | NDArray[Any]) -> float:
    """Evaluate a ground-truth function at a single feature vector."""
    return float(np.asarray(fn(as_query_matrix(point))).reshape(-1)[0])
