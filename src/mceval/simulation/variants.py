"""Model variants consumed by the simulation harness.

Every variant exposes the same two-step capability: ``fit(dataset)``
returns an opaque fitted object and ``predict(fitted, x)`` maps feature
vectors to scalar scores. The harness is written against ``ModelVariant``
only; concrete families live below and are built from configuration by
``build_variant``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import numpy as np
import structlog
from numpy.typing import NDArray
from sklearn.dummy import DummyRegressor
from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import PolynomialFeatures

from mceval.config import ModelSpec
from mceval.core.enums import ModelKind
from mceval.core.exceptions import InvalidConfigurationError, ModelFitError
from mceval.core.models import Dataset

logger = structlog.get_logger(__name__)


class ModelVariant(ABC):
    """Abstract fit/predict capability.

    Args:
        name: Identifier used as the prediction-matrix column. Defaults to
            ``default_name()``.
    """

    def __init__(self, name: str | None = None) -> None:
        self._name = name

    @property
    def name(self) -> str:
        """Column identifier for this variant."""
        return self._name or self.default_name()

    @abstractmethod
    def default_name(self) -> str:
        """Name used when none is given explicitly."""

    @abstractmethod
    def fit(self, dataset: Dataset) -> Any:  # noqa: ANN401
        """Fit on a dataset and return opaque fitted state.

        Raises:
            ModelFitError: If the dataset cannot support this model.
        """

    @abstractmethod
    def predict(self, fitted: Any, x: NDArray[np.float64]) -> NDArray[np.float64]:  # noqa: ANN401
        """Score a ``(k, p)`` matrix of feature vectors, returning ``(k,)``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _select(x: NDArray[np.float64], features: Sequence[int] | None) -> NDArray[np.float64]:
    if features is None:
        return x
    if any(f < 0 or f >= x.shape[1] for f in features):
        msg = f"Feature indices {list(features)} out of range for {x.shape[1]} features"
        raise InvalidConfigurationError(msg)
    return x[:, list(features)]


def check_full_rank(design: NDArray[np.float64], model_name: str) -> None:
    """Raise ModelFitError if ``[1, design]`` is rank deficient.

    Args:
        design: Expanded feature matrix without intercept column.
        model_name: Variant name for the error message.

    Raises:
        ModelFitError: On a singular least-squares design.
    """
    full = np.column_stack([np.ones(design.shape[0]), design])
    rank = int(np.linalg.matrix_rank(full))
    if rank < full.shape[1]:
        msg = (
            f"Singular design for '{model_name}': rank {rank} < "
            f"{full.shape[1]} columns ({design.shape[0]} rows)"
        )
        raise ModelFitError(msg, model_name=model_name)


class ConstantModel(ModelVariant):
    """Intercept-only model (``y ~ 1``): predicts the training mean."""

    def default_name(self) -> str:
        return "constant"

    def fit(self, dataset: Dataset) -> DummyRegressor:
        if len(dataset) == 0:
            raise ModelFitError("Cannot fit on an empty dataset", model_name=self.name)
        return DummyRegressor(strategy="mean").fit(dataset.x, dataset.y)

    def predict(self, fitted: DummyRegressor, x: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.asarray(fitted.predict(x), dtype=np.float64)


class _LeastSquaresVariant(ModelVariant):
    """Ordinary least squares on an expanded design matrix."""

    def __init__(self, features: Sequence[int] | None = None, name: str | None = None) -> None:
        super().__init__(name)
        self.features = list(features) if features is not None else None

    def _transformer(self) -> PolynomialFeatures | None:
        return None

    def _pipeline(self) -> Pipeline:
        transformer = self._transformer()
        if transformer is None:
            return make_pipeline(LinearRegression())
        return make_pipeline(transformer, LinearRegression())

    def fit(self, dataset: Dataset) -> Pipeline:
        x = _select(dataset.x, self.features)
        pipeline = self._pipeline().fit(x, dataset.y)
        design = pipeline[:-1].transform(x) if len(pipeline.steps) > 1 else x
        check_full_rank(design, self.name)
        return pipeline

    def predict(self, fitted: Pipeline, x: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.asarray(fitted.predict(_select(x, self.features)), dtype=np.float64)


class PolynomialModel(_LeastSquaresVariant):
    """Degree-k polynomial in a single feature (``y ~ poly(x, k)``).

    Args:
        degree: Polynomial degree (>= 1).
        feature: Column index of the feature to expand.
        name: Optional column identifier.
    """

    def __init__(self, degree: int, feature: int = 0, name: str | None = None) -> None:
        if degree < 1:
            msg = f"Polynomial degree must be >= 1, got {degree}"
            raise InvalidConfigurationError(msg)
        super().__init__(features=[feature], name=name)
        self.degree = degree

    def default_name(self) -> str:
        return f"poly{self.degree}"

    def _transformer(self) -> PolynomialFeatures:
        return PolynomialFeatures(degree=self.degree, include_bias=False)


class AdditiveModel(_LeastSquaresVariant):
    """Main effects only (``y ~ x1 + x2 + ...``)."""

    def default_name(self) -> str:
        return "additive"


class InteractionModel(_LeastSquaresVariant):
    """Main effects plus all pairwise products (``y ~ x1 * x2``)."""

    def default_name(self) -> str:
        return "interaction"

    def _transformer(self) -> PolynomialFeatures:
        return PolynomialFeatures(degree=2, interaction_only=True, include_bias=False)


class LogisticModel(ModelVariant):
    """Binary logistic regression; predicts ``P(y = 1)``.

    Fitted effectively unpenalised (``C=1e10``) so the coefficients match
    maximum likelihood.
    """

    def __init__(
        self,
        features: Sequence[int] | None = None,
        name: str | None = None,
        seed: int = 42,
    ) -> None:
        super().__init__(name)
        self.features = list(features) if features is not None else None
        self.seed = seed

    def default_name(self) -> str:
        return "logistic"

    def fit(self, dataset: Dataset) -> LogisticRegression:
        classes = np.unique(dataset.y)
        if len(classes) < 2:
            msg = f"Logistic fit needs both classes, got {classes.tolist()}"
            raise ModelFitError(msg, model_name=self.name)
        lr = LogisticRegression(
            C=1e10, solver="lbfgs", random_state=self.seed, max_iter=1000
        )
        return lr.fit(_select(dataset.x, self.features), dataset.y)

    def predict(self, fitted: LogisticRegression, x: NDArray[np.float64]) -> NDArray[np.float64]:
        return np.asarray(
            fitted.predict_proba(_select(x, self.features))[:, 1], dtype=np.float64
        )

    def linear_predictor(
        self, fitted: LogisticRegression, x: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Raw ``eta = b0 + b.x`` before the sigmoid."""
        return np.asarray(
            fitted.decision_function(_select(x, self.features)), dtype=np.float64
        )


def build_variant(spec: ModelSpec) -> ModelVariant:
    """Construct a model variant from its configuration entry.

    Args:
        spec: Model configuration entry.

    Returns:
        The configured ModelVariant.

    Raises:
        InvalidConfigurationError: If a polynomial has no degree.
    """
    if spec.kind == ModelKind.CONSTANT:
        return ConstantModel(name=spec.name)
    if spec.kind == ModelKind.POLYNOMIAL:
        if spec.degree is None:
            raise InvalidConfigurationError("Polynomial model requires 'degree'")
        feature = spec.features[0] if spec.features else 0
        return PolynomialModel(spec.degree, feature=feature, name=spec.name)
    if spec.kind == ModelKind.ADDITIVE:
        return AdditiveModel(features=spec.features, name=spec.name)
    if spec.kind == ModelKind.INTERACTION:
        return InteractionModel(features=spec.features, name=spec.name)
    return LogisticModel(features=spec.features, name=spec.name)


def build_variants(specs: Sequence[ModelSpec]) -> list[ModelVariant]:
    """Construct all configured variants, preserving order."""
    variants = [build_variant(spec) for spec in specs]
    logger.debug("variants_built", names=[v.name for v in variants])
    return variants
