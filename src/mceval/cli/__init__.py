"""mceval CLI — Typer application."""
from __future__ import annotations

import typer

from mceval.cli.roc_cmd import roc_app
from mceval.cli.simulate_cmd import simulate_app

app = typer.Typer(
    name="mceval",
    help="mceval: Monte Carlo bias-variance and ROC evaluation.",
    add_completion=False,
)

app.add_typer(simulate_app, name="simulate")
app.add_typer(roc_app, name="roc")


def main() -> None:
    """Console-script entry point."""
    app()
