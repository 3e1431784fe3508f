"""Build and run a configured bias-variance scenario end to end."""
from __future__ import annotations

from dataclasses import dataclass

import structlog

from mceval.config import SimulationConfig
from mceval.core.exceptions import InvalidConfigurationError
from mceval.core.models import InputDistribution, NoiseDistribution
from mceval.simulation.analyzer import analyze_simulation
from mceval.simulation.data_source import RandomDataSource
from mceval.simulation.functions import MIN_FEATURES, TrueFunction, get_true_function
from mceval.simulation.harness import SimulationHarness
from mceval.simulation.models import BiasVarianceReport
from mceval.simulation.variants import build_variants

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Scenario:
    """A validated scenario, ready to simulate."""

    true_function: TrueFunction
    noise: NoiseDistribution
    inputs: InputDistribution
    harness: SimulationHarness


def prepare_scenario(cfg: SimulationConfig, n_workers: int | None = None) -> Scenario:
    """Resolve and validate every part of a scenario without simulating.

    Args:
        cfg: Simulation scenario.
        n_workers: Override for ``cfg.n_workers``.

    Returns:
        Scenario holding the true function, distributions and harness.

    Raises:
        InvalidConfigurationError: If the scenario is inconsistent.
    """
    true_function = get_true_function(cfg.true_function)
    n_features = cfg.inputs.n_features
    if n_features < MIN_FEATURES[cfg.true_function]:
        msg = (
            f"True function '{cfg.true_function}' needs "
            f"{MIN_FEATURES[cfg.true_function]} features, got {n_features}"
        )
        raise InvalidConfigurationError(msg)
    if len(cfg.query_point) != n_features:
        msg = f"query_point has {len(cfg.query_point)} values, inputs have {n_features}"
        raise InvalidConfigurationError(msg)

    noise = NoiseDistribution.from_std(cfg.noise.std, kind=cfg.noise.kind)
    inputs = InputDistribution(low=cfg.inputs.low, high=cfg.inputs.high, n_features=n_features)
    # Checks sample size and noise variance
    RandomDataSource(true_function, noise, cfg.sample_size, inputs=inputs)

    harness = SimulationHarness(
        build_variants(cfg.models),
        n_workers=n_workers if n_workers is not None else cfg.n_workers,
    )
    return Scenario(true_function=true_function, noise=noise, inputs=inputs, harness=harness)


def run_simulation(
    cfg: SimulationConfig,
    n_trials: int | None = None,
    seed: int | None = None,
    n_workers: int | None = None,
) -> BiasVarianceReport:
    """Simulate, fit every configured model and decompose its error.

    Args:
        cfg: Simulation scenario.
        n_trials: Override for ``cfg.n_trials``.
        seed: Override for ``cfg.seed``.
        n_workers: Override for ``cfg.n_workers``.

    Returns:
        BiasVarianceReport at the configured query point.

    Raises:
        InvalidConfigurationError: If the scenario is inconsistent.
    """
    scenario = prepare_scenario(cfg, n_workers=n_workers)
    logger.info(
        "simulation_started",
        true_function=cfg.true_function,
        noise_std=cfg.noise.std,
        sample_size=cfg.sample_size,
        n_models=len(cfg.models),
    )
    result = scenario.harness.run(
        scenario.true_function,
        scenario.noise,
        cfg.sample_size,
        cfg.query_point,
        n_trials if n_trials is not None else cfg.n_trials,
        master_seed=seed if seed is not None else cfg.seed,
        inputs=scenario.inputs,
    )
    report = analyze_simulation(result, scenario.true_function, scenario.noise)
    report.metadata["true_function"] = cfg.true_function
    return report
