"""Tests for threshold evaluation and confusion matrices."""
from __future__ import annotations

import math

import numpy as np
import pytest
from sklearn.metrics import confusion_matrix

from mceval.core.enums import Label
from mceval.core.exceptions import (
    InvalidCutoffError,
    InvalidLabelError,
    InvalidScoreError,
    LengthMismatchError,
)
from mceval.evaluation.models import ConfusionMatrix
from mceval.evaluation.threshold import (
    as_positive_mask,
    classification_metrics,
    classify,
    classify_linear_predictor,
    evaluate_threshold,
    logit,
    threshold_sweep,
)
from mceval.simulation.data_source import sigmoid


class TestEvaluateThreshold:
    """Tests for evaluate_threshold."""

    def test_separable(self, separable_scores: tuple[list[float], list[Label]]) -> None:
        scores, labels = separable_scores
        cm = evaluate_threshold(scores, labels, 0.5)
        assert (cm.tp, cm.fp, cm.tn, cm.fn) == (2, 0, 2, 0)
        assert cm.accuracy == 1.0
        assert cm.cutoff == 0.5

    def test_tie_at_cutoff_is_negative(self) -> None:
        """``score == cutoff`` is never predicted positive."""
        cm = evaluate_threshold([0.5, 0.5], [Label.POSITIVE, Label.NEGATIVE], 0.5)
        assert (cm.tp, cm.fp, cm.tn, cm.fn) == (0, 0, 1, 1)

    def test_cutoff_extremes(self) -> None:
        scores = [0.0, 0.3, 1.0]
        labels = ["positive", "negative", "positive"]
        at_zero = evaluate_threshold(scores, labels, 0.0)
        assert at_zero.tp + at_zero.fp == 2
        at_one = evaluate_threshold(scores, labels, 1.0)
        assert at_one.tp + at_one.fp == 0

    def test_counts_sum_to_n(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        scores, labels = noisy_scores
        cm = evaluate_threshold(scores, labels, 0.4)
        assert cm.n == len(scores)
        assert cm.n_positive == int(labels.sum())

    def test_matches_sklearn(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        scores, labels = noisy_scores
        cm = evaluate_threshold(scores, labels, 0.5)
        expected = confusion_matrix(labels, (scores > 0.5).astype(int), labels=[0, 1])
        assert cm.as_matrix() == expected.tolist()

    def test_idempotent(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        scores, labels = noisy_scores
        assert evaluate_threshold(scores, labels, 0.3) == evaluate_threshold(
            scores, labels, 0.3
        )

    @pytest.mark.parametrize("cutoff", [-0.1, 1.1, math.nan])
    def test_invalid_cutoff(self, cutoff: float) -> None:
        with pytest.raises(InvalidCutoffError):
            evaluate_threshold([0.2], [1], cutoff)

    def test_length_mismatch(self) -> None:
        with pytest.raises(LengthMismatchError):
            evaluate_threshold([0.1, 0.2, 0.3], [1, 0], 0.5)

    def test_empty_input(self) -> None:
        cm = evaluate_threshold([], [], 0.5)
        assert cm.n == 0
        assert cm.accuracy is None

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_score_rejected(self, bad: float) -> None:
        with pytest.raises(InvalidScoreError) as exc_info:
            evaluate_threshold([0.9, bad, 0.2], [1, 1, 0], 0.5)
        assert exc_info.value.n_invalid == 1
        assert exc_info.value.first_index == 1

    def test_non_finite_counted(self) -> None:
        with pytest.raises(InvalidScoreError, match="2 non-finite"):
            classification_metrics([math.nan, 0.4, math.inf], [1, 0, 1])


class TestLabels:
    """Tests for label coercion."""

    def test_accepted_forms(self) -> None:
        mask = as_positive_mask(
            [Label.POSITIVE, "negative", "Positive", "1", "0", 1, 0, True, False]
        )
        assert mask.tolist() == [True, False, True, True, False, True, False, True, False]

    def test_numpy_bool(self) -> None:
        assert as_positive_mask(np.array([True, False])).tolist() == [True, False]

    @pytest.mark.parametrize("bad", ["maybe", 2, -1, 0.5])
    def test_invalid_label(self, bad: object) -> None:
        with pytest.raises(InvalidLabelError):
            as_positive_mask([bad])


class TestDerivedMetrics:
    """Rates with a zero denominator are undefined, not zero."""

    def test_no_positives(self) -> None:
        m = classification_metrics([0.1, 0.9], ["negative", "negative"], 0.5)
        assert m.sensitivity is None
        assert m.specificity == 0.5
        assert m.precision == 0.0

    def test_no_predicted_positives(self) -> None:
        m = classification_metrics([0.1, 0.2], [1, 0], 0.5)
        assert m.precision is None
        assert m.sensitivity == 0.0
        assert m.specificity == 1.0

    def test_confusion_matrix_properties(self) -> None:
        cm = ConfusionMatrix(tp=3, fp=1, tn=4, fn=2)
        assert cm.n == 10
        assert cm.accuracy == pytest.approx(0.7)
        assert cm.sensitivity == pytest.approx(0.6)
        assert cm.specificity == pytest.approx(0.8)
        assert cm.false_positive_rate == pytest.approx(0.2)
        assert cm.precision == pytest.approx(0.75)


class TestThresholdSweep:
    """Tests for threshold_sweep."""

    def test_order_and_monotonicity(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        scores, labels = noisy_scores
        cutoffs = [0.1, 0.3, 0.5, 0.7, 0.9]
        metrics = threshold_sweep(scores, labels, cutoffs)
        assert [m.cutoff for m in metrics] == cutoffs
        sens = [m.sensitivity for m in metrics]
        spec = [m.specificity for m in metrics]
        assert sens == sorted(sens, reverse=True)
        assert spec == sorted(spec)


class TestClassify:
    """Probability-space and linear-predictor decisions agree."""

    def test_classify(self) -> None:
        assert classify([0.2, 0.5, 0.7]).tolist() == [False, False, True]

    def test_logit(self) -> None:
        assert logit(0.5) == 0.0
        assert logit(0.0) == -math.inf
        assert logit(1.0) == math.inf
        assert float(sigmoid(logit(0.8))) == pytest.approx(0.8)

    @pytest.mark.parametrize("cutoff", [0.0, 0.1, 0.5, 0.9, 1.0])
    def test_linear_predictor_agrees(self, cutoff: float) -> None:
        eta = np.random.default_rng(3).normal(0.0, 2.0, size=500)
        np.testing.assert_array_equal(
            classify(sigmoid(eta), cutoff), classify_linear_predictor(eta, cutoff)
        )

    def test_invalid_cutoff(self) -> None:
        with pytest.raises(InvalidCutoffError):
            classify_linear_predictor([0.0], 2.0)
