"""mceval roc — Threshold sweep and ROC/AUC command."""
from __future__ import annotations

import csv
from pathlib import Path

import structlog
import typer

from mceval.cli.simulate_cmd import load_cli_config
from mceval.core.exceptions import MCEvalError
from mceval.evaluation.models import EvaluationReport
from mceval.evaluation.runner import EvaluationRunner
from mceval.evaluation.threshold import prepare_inputs

logger = structlog.get_logger(__name__)

roc_app = typer.Typer(help="Evaluate scores across cutoffs and build the ROC curve.")


def _load_scores(path: Path) -> tuple[list[float], list[str]]:
    """Load scores and labels from a CSV file.

    Expected columns: score, label (positive/negative or 1/0).

    Args:
        path: Path to the CSV file.

    Returns:
        Parallel lists of scores and raw labels.

    Raises:
        typer.BadParameter: If the file cannot be read or has invalid format.
    """
    if not path.exists():
        raise typer.BadParameter(f"Scores file not found: {path}")

    scores: list[float] = []
    labels: list[str] = []
    with open(path, newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None or not {"score", "label"} <= set(reader.fieldnames):
            raise typer.BadParameter(
                f"Scores CSV must have 'score' and 'label' columns: {path}"
            )
        for row in reader:
            try:
                scores.append(float(row["score"]))
            except ValueError as exc:
                raise typer.BadParameter(f"Invalid score in {path}: {exc}") from exc
            labels.append(row["label"])
    return scores, labels


def _fmt(value: float | None) -> str:
    return "undefined" if value is None else f"{value:.4f}"


def _print_report(report: EvaluationReport) -> None:
    typer.echo("\n--- Threshold metrics ---")
    for m in report.metrics:
        cm = m.confusion
        typer.echo(
            f"  cutoff={m.cutoff:.2f}  accuracy={_fmt(m.accuracy)}  "
            f"sensitivity={_fmt(m.sensitivity)}  specificity={_fmt(m.specificity)}  "
            f"[TP={cm.tp} FP={cm.fp} TN={cm.tn} FN={cm.fn}]"
        )
    typer.echo("\n--- ROC ---")
    typer.echo(f"  Points:         {len(report.roc.points)}")
    typer.echo(f"  AUC (trapezoid): {report.roc.auc:.4f}")
    typer.echo(f"  AUC (rank):      {report.rank_auc:.4f}")


def _write_outputs(report: EvaluationReport, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_path = output_dir / "roc_report.json"
    report_path.write_text(report.model_dump_json(indent=2))

    curve_path = output_dir / "roc_curve.csv"
    with open(curve_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["threshold", "fpr", "tpr"])
        writer.writerows(report.roc.rows())
    typer.echo(f"\nReport saved to {report_path}")
    typer.echo(f"Curve saved to {curve_path}")
    logger.info("report_written", path=str(report_path), curve=str(curve_path))


@roc_app.callback(invoke_without_command=True)
def roc(
    ctx: typer.Context,  # noqa: ARG001
    input: Path | None = typer.Option(  # noqa: A002, B008
        None, "--input", "-i", help="Scores CSV (score, label)"
    ),
    simulate: bool = typer.Option(  # noqa: B008
        False, "--simulate", help="Score a simulated logistic dataset instead"
    ),
    cutoffs: list[float] | None = typer.Option(  # noqa: B008
        None, "--cutoff", "-t", help="Probability cutoff (repeatable)"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Scenario YAML file"),  # noqa: B008
    output_dir: Path = typer.Option(  # noqa: B008
        Path("results"), "--output", "-o", help="Output directory"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate inputs only"),  # noqa: B008
) -> None:
    """Confusion metrics at each cutoff, the ROC curve and its AUC."""
    if input is None and not simulate:
        raise typer.BadParameter("Either --input or --simulate is required")

    runner = EvaluationRunner()
    cfg = load_cli_config(config).classification

    if input is not None:
        scores, labels = _load_scores(input)
        typer.echo(f"Loaded {len(scores)} scores from {input}")

    try:
        if dry_run:
            if input is not None:
                prepare_inputs(scores, labels)
            typer.echo("Dry run: inputs validated successfully.")
            return
        if input is not None:
            report = runner.evaluate_scores(
                scores, labels, cutoffs=cutoffs or cfg.cutoffs
            )
        else:
            if cutoffs:
                cfg = cfg.model_copy(update={"cutoffs": cutoffs})
            report = runner.simulate_classifier(cfg)
    except MCEvalError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    _print_report(report)
    _write_outputs(report, output_dir)
