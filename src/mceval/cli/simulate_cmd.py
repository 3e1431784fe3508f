"""mceval simulate — Bias-variance simulation command."""
from __future__ import annotations

from pathlib import Path

import structlog
import typer

from mceval.config import MCEvalConfig, load_config_or_default
from mceval.core.exceptions import MCEvalError
from mceval.simulation.models import BiasVarianceReport
from mceval.simulation.runner import prepare_scenario, run_simulation

logger = structlog.get_logger(__name__)

simulate_app = typer.Typer(help="Run a bias-variance Monte Carlo simulation.")


def load_cli_config(path: Path | None) -> MCEvalConfig:
    """Load the given config, the packaged default, or built-in defaults.

    Raises:
        typer.BadParameter: If an explicit config file does not exist.
    """
    try:
        return load_config_or_default(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _print_report(report: BiasVarianceReport) -> None:
    typer.echo(
        f"\n--- Bias-variance at x0={report.query_point} "
        f"(f(x0)={report.true_value:.4f}, sigma^2={report.noise_variance:.4f}, "
        f"trials={report.n_trials}) ---"
    )
    typer.echo(
        f"  {'model':<14}{'bias^2':>12}{'variance':>12}{'mse':>12}"
        f"{'b2+v+s2':>12}{'failed':>8}"
    )
    for row in report.table():
        typer.echo(
            f"  {row['model']:<14}{row['squared_bias']:>12.6f}{row['variance']:>12.6f}"
            f"{row['mse']:>12.6f}{row['bias2_var_noise']:>12.6f}{row['n_failed']:>8d}"
        )

    typer.echo("\n--- Reconciliation (|gap| <= 4 SE) ---")
    for name, result in report.results.items():
        status = "ok" if result.reconciles() else "OUTSIDE TOLERANCE"
        typer.echo(
            f"  {name}: gap={result.reconciliation_gap:+.6f} "
            f"tol={result.reconciliation_tolerance():.6f} {status}"
        )


@simulate_app.callback(invoke_without_command=True)
def simulate(
    ctx: typer.Context,  # noqa: ARG001
    config: Path | None = typer.Option(None, "--config", "-c", help="Scenario YAML file"),  # noqa: B008
    trials: int | None = typer.Option(None, "--trials", "-n", help="Override trial count"),  # noqa: B008
    seed: int | None = typer.Option(None, "--seed", "-s", help="Override master seed"),  # noqa: B008
    workers: int | None = typer.Option(None, "--workers", "-w", help="Concurrent trials"),  # noqa: B008
    output_dir: Path = typer.Option(  # noqa: B008
        Path("results"), "--output", "-o", help="Output directory"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate inputs only"),  # noqa: B008
) -> None:
    """Simulate datasets, refit every model and decompose its error."""
    cfg = load_cli_config(config)
    sim = cfg.simulation
    typer.echo(
        f"Scenario: f={sim.true_function}, n={sim.sample_size}, "
        f"models={len(sim.models)}, trials={trials or sim.n_trials}"
    )

    try:
        if dry_run:
            scenario = prepare_scenario(sim, n_workers=workers)
            typer.echo(
                f"Dry run: configuration validated successfully "
                f"(models: {', '.join(scenario.harness.model_names)})."
            )
            return
        report = run_simulation(sim, n_trials=trials, seed=seed, n_workers=workers)
    except MCEvalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    _print_report(report)

    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / "bias_variance_report.json"
    report_path.write_text(report.model_dump_json(indent=2))
    logger.info("report_written", path=str(report_path))
    typer.echo(f"\nReport saved to {report_path}")
