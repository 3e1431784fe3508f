"""Configuration loading for mceval scenarios.

Loads the bias-variance simulation scenario and the classification demo
settings from YAML files for reproducible runs.
"""
from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from mceval.core.enums import ModelKind, NoiseKind

DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "default.yaml"


class ModelSpec(BaseModel):
    """A single model variant entry.

    Attributes:
        kind: Variant family.
        degree: Polynomial degree (polynomial only).
        features: Feature column indices the variant uses (None = all).
        name: Optional column identifier; defaults per family.
    """

    kind: ModelKind
    degree: int | None = None
    features: list[int] | None = None
    name: str | None = None


class NoiseConfig(BaseModel):
    """Noise distribution settings.

    Attributes:
        std: Noise standard deviation (sigma).
        kind: Distribution family.
    """

    std: float = 0.3
    kind: NoiseKind = NoiseKind.NORMAL


class InputConfig(BaseModel):
    """Feature distribution settings (uniform box).

    Attributes:
        low: Lower bound of every feature.
        high: Upper bound of every feature.
        n_features: Feature dimension.
    """

    low: float = 0.0
    high: float = 1.0
    n_features: int = 1


def _default_models() -> list[ModelSpec]:
    return [
        ModelSpec(kind=ModelKind.CONSTANT),
        ModelSpec(kind=ModelKind.POLYNOMIAL, degree=1),
        ModelSpec(kind=ModelKind.POLYNOMIAL, degree=2),
        ModelSpec(kind=ModelKind.POLYNOMIAL, degree=9),
    ]


class SimulationConfig(BaseModel):
    """Bias-variance simulation scenario.

    Attributes:
        true_function: Registered ground-truth function name.
        noise: Noise settings.
        inputs: Feature distribution settings.
        sample_size: Observations per simulated dataset.
        n_trials: Number of Monte Carlo trials.
        query_point: Feature vector predictions are evaluated at.
        seed: Master seed (None = draw from OS entropy and record it).
        n_workers: Concurrent trial workers.
        models: Model variants to fit each trial.
    """

    true_function: str = "square"
    noise: NoiseConfig = Field(default_factory=NoiseConfig)
    inputs: InputConfig = Field(default_factory=InputConfig)
    sample_size: int = 100
    n_trials: int = 250
    query_point: list[float] = Field(default_factory=lambda: [0.90])
    seed: int | None = 1
    n_workers: int = 1
    models: list[ModelSpec] = Field(default_factory=_default_models)


class ClassificationConfig(BaseModel):
    """Logistic classification demo settings.

    Attributes:
        sample_size: Number of simulated observations.
        intercept: True linear predictor intercept.
        slope: True linear predictor slope.
        cutoffs: Probability cutoffs to tabulate.
        test_fraction: Share of observations held out for evaluation.
        seed: Random seed.
    """

    sample_size: int = 1000
    intercept: float = -1.5
    slope: float = 2.5
    cutoffs: list[float] = Field(default_factory=lambda: [0.1, 0.5, 0.9])
    test_fraction: float = 0.5
    seed: int = 42


class MCEvalConfig(BaseModel):
    """Root configuration for mceval.

    Attributes:
        simulation: Bias-variance simulation scenario.
        classification: Threshold/ROC demo settings.
    """

    simulation: SimulationConfig = Field(default_factory=SimulationConfig)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)


def load_config(path: Path) -> MCEvalConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        MCEvalConfig with simulation and classification settings.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return MCEvalConfig(
        simulation=SimulationConfig(**data.get("simulation", {})),
        classification=ClassificationConfig(**data.get("classification", {})),
    )


def load_config_or_default(path: Path | None = None) -> MCEvalConfig:
    """Load ``path``, else the packaged default file, else built-in defaults.

    Args:
        path: Optional explicit config path.

    Returns:
        MCEvalConfig.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
    """
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return MCEvalConfig()
