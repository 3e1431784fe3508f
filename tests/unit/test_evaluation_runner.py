"""Tests for the evaluation runner."""
from __future__ import annotations

import numpy as np
import pytest

from mceval.config import ClassificationConfig
from mceval.core.enums import Label
from mceval.core.exceptions import InvalidConfigurationError, InvalidCutoffError
from mceval.evaluation.runner import EvaluationRunner


@pytest.fixture
def runner() -> EvaluationRunner:
    return EvaluationRunner()


class TestEvaluateScores:
    """Tests for EvaluationRunner.evaluate_scores."""

    def test_report_contents(
        self,
        runner: EvaluationRunner,
        separable_scores: tuple[list[float], list[Label]],
    ) -> None:
        scores, labels = separable_scores
        report = runner.evaluate_scores(
            scores, labels, cutoffs=[0.1, 0.5], metadata={"source": "unit"}
        )
        assert [m.cutoff for m in report.metrics] == [0.1, 0.5]
        assert report.roc.auc == pytest.approx(1.0)
        assert report.rank_auc == pytest.approx(1.0)
        assert report.metadata["n_records"] == 4
        assert report.metadata["source"] == "unit"
        assert "timestamp" in report.metadata

    def test_default_cutoff(
        self,
        runner: EvaluationRunner,
        separable_scores: tuple[list[float], list[Label]],
    ) -> None:
        scores, labels = separable_scores
        report = runner.evaluate_scores(scores, labels)
        assert [m.cutoff for m in report.metrics] == [0.5]

    def test_invalid_cutoff(
        self,
        runner: EvaluationRunner,
        separable_scores: tuple[list[float], list[Label]],
    ) -> None:
        scores, labels = separable_scores
        with pytest.raises(InvalidCutoffError):
            runner.evaluate_scores(scores, labels, cutoffs=[1.5])


class TestSimulateClassifier:
    """Tests for the simulated logistic workflow."""

    def test_default_scenario(self, runner: EvaluationRunner) -> None:
        cfg = ClassificationConfig()
        report = runner.simulate_classifier(cfg)
        assert [m.cutoff for m in report.metrics] == [0.1, 0.5, 0.9]
        assert report.metadata["n_train"] == 500
        assert report.metadata["n_records"] == 500
        assert report.roc.auc > 0.75
        assert report.rank_auc == pytest.approx(report.roc.auc, abs=1e-12)
        assert report.metadata["slope_hat"] == pytest.approx(2.5, abs=0.8)

    def test_deterministic(self, runner: EvaluationRunner) -> None:
        cfg = ClassificationConfig(sample_size=300, seed=7)
        a = runner.simulate_classifier(cfg)
        b = runner.simulate_classifier(cfg)
        assert a.roc.auc == b.roc.auc
        assert a.metrics == b.metrics

    def test_cutoff_tradeoff(self, runner: EvaluationRunner) -> None:
        """Raising the cutoff trades sensitivity for specificity."""
        report = runner.simulate_classifier(ClassificationConfig())
        sens = np.array([m.sensitivity for m in report.metrics])
        spec = np.array([m.specificity for m in report.metrics])
        assert np.all(np.diff(sens) <= 0)
        assert np.all(np.diff(spec) >= 0)

    @pytest.mark.parametrize("fraction", [0.0, 1.0])
    def test_invalid_test_fraction(self, runner: EvaluationRunner, fraction: float) -> None:
        with pytest.raises(InvalidConfigurationError):
            runner.simulate_classifier(ClassificationConfig(test_fraction=fraction))
