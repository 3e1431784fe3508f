"""Simulation module: data sources, model variants, harness and analyzer."""
from __future__ import annotations

from mceval.simulation.analyzer import (
    BiasVarianceAnalyzer,
    analyze_simulation,
    decompose,
    draw_noise_ensemble,
)
from mceval.simulation.data_source import (
    RandomDataSource,
    generate_dataset,
    generate_logistic_dataset,
    sigmoid,
)
from mceval.simulation.functions import TRUE_FUNCTIONS, get_true_function
from mceval.simulation.harness import SimulationHarness, trial_rng
from mceval.simulation.models import BiasVarianceReport, BiasVarianceResult
from mceval.simulation.runner import Scenario, prepare_scenario, run_simulation
from mceval.simulation.variants import (
    AdditiveModel,
    ConstantModel,
    InteractionModel,
    LogisticModel,
    ModelVariant,
    PolynomialModel,
    build_variant,
    build_variants,
)

__all__ = [
    "AdditiveModel",
    "BiasVarianceAnalyzer",
    "BiasVarianceReport",
    "BiasVarianceResult",
    "ConstantModel",
    "InteractionModel",
    "LogisticModel",
    "ModelVariant",
    "PolynomialModel",
    "RandomDataSource",
    "Scenario",
    "SimulationHarness",
    "TRUE_FUNCTIONS",
    "analyze_simulation",
    "build_variant",
    "build_variants",
    "decompose",
    "draw_noise_ensemble",
    "generate_dataset",
    "generate_logistic_dataset",
    "get_true_function",
    "prepare_scenario",
    "run_simulation",
    "sigmoid",
    "trial_rng",
]
