"""Tests for ROC curve construction and AUC."""
from __future__ import annotations

import math
import time

import numpy as np
import pytest
from sklearn.metrics import roc_auc_score

from mceval.core.enums import Label
from mceval.core.exceptions import (
    DegenerateLabelSetError,
    InvalidScoreError,
    LengthMismatchError,
)
from mceval.evaluation.roc import build_roc_curve, rank_auc, trapezoid_area
from mceval.evaluation.threshold import confusion_at, evaluate_threshold, prepare_inputs


class TestBuildROCCurve:
    """Tests for build_roc_curve."""

    def test_perfect_separation(self, separable_scores: tuple[list[float], list[Label]]) -> None:
        scores, labels = separable_scores
        curve = build_roc_curve(scores, labels)
        assert curve.auc == pytest.approx(1.0)
        assert curve.n_positive == 2
        assert curve.n_negative == 2

    def test_reversed_scores(self, separable_scores: tuple[list[float], list[Label]]) -> None:
        scores, labels = separable_scores
        curve = build_roc_curve([1.0 - s for s in scores], labels)
        assert curve.auc == pytest.approx(0.0)

    def test_all_tied_scores(self) -> None:
        """A constant score is the diagonal: AUC 0.5."""
        curve = build_roc_curve([0.4] * 6, [1, 0, 1, 0, 1, 0])
        assert curve.auc == pytest.approx(0.5)
        assert len(curve.points) == 3

    def test_endpoints(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        """Curve starts at (0, 0) with +inf and ends at (1, 1) with -inf."""
        scores, labels = noisy_scores
        curve = build_roc_curve(scores, labels)
        first, last = curve.points[0], curve.points[-1]
        assert (first.fpr, first.tpr, first.threshold) == (0.0, 0.0, math.inf)
        assert (last.fpr, last.tpr, last.threshold) == (1.0, 1.0, -math.inf)

    def test_one_point_per_distinct_score(
        self, noisy_scores: tuple[np.ndarray, np.ndarray]
    ) -> None:
        scores, labels = noisy_scores
        curve = build_roc_curve(scores, labels)
        assert len(curve.points) == len(np.unique(scores)) + 2

    def test_monotone(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        scores, labels = noisy_scores
        curve = build_roc_curve(scores, labels)
        assert np.all(np.diff(curve.fpr) >= 0)
        assert np.all(np.diff(curve.tpr) >= 0)
        assert all(0.0 <= v <= 1.0 for v in curve.fpr + curve.tpr)

    def test_points_match_threshold_rule(
        self, noisy_scores: tuple[np.ndarray, np.ndarray]
    ) -> None:
        """Each point equals evaluate_threshold at that score."""
        scores, labels = noisy_scores
        curve = build_roc_curve(scores, labels)
        for point in curve.points:
            if not 0.0 <= point.threshold <= 1.0:
                continue
            cm = evaluate_threshold(scores, labels, point.threshold)
            assert point.tpr == pytest.approx(cm.sensitivity)
            assert point.fpr == pytest.approx(cm.false_positive_rate)

    def test_matches_sklearn_with_ties(
        self, noisy_scores: tuple[np.ndarray, np.ndarray]
    ) -> None:
        scores, labels = noisy_scores
        curve = build_roc_curve(scores, labels)
        assert curve.auc == pytest.approx(roc_auc_score(labels, scores), abs=1e-12)

    def test_every_point_matches_brute_force_tally(
        self, noisy_scores: tuple[np.ndarray, np.ndarray]
    ) -> None:
        """Cumulative counts agree with a direct tally at every threshold."""
        scores, labels = noisy_scores
        scores_arr, positive = prepare_inputs(scores, labels)
        curve = build_roc_curve(scores, labels)
        for point in curve.points:
            cm = confusion_at(scores_arr, positive, point.threshold)
            assert point.tpr == cm.tp / curve.n_positive
            assert point.fpr == cm.fp / curve.n_negative

    def test_heavy_ties_with_unsorted_input(self) -> None:
        scores = [0.3, 0.7, 0.3, 0.7, 0.1, 0.7, 0.3, 0.1]
        labels = [1, 1, 0, 0, 0, 1, 1, 0]
        curve = build_roc_curve(scores, labels)
        assert curve.thresholds == [math.inf, 0.7, 0.3, 0.1, -math.inf]
        assert curve.tpr == [0.0, 0.0, 0.5, 1.0, 1.0]
        assert curve.fpr == [0.0, 0.0, 0.25, 0.5, 1.0]
        assert curve.auc == pytest.approx(roc_auc_score(labels, scores))

    def test_large_input_is_fast(self) -> None:
        """Construction scales as a sort, not one tally per threshold."""
        rng = np.random.default_rng(11)
        labels = rng.integers(0, 2, size=50_000)
        scores = rng.normal(labels.astype(float), 1.0)
        t0 = time.perf_counter()
        curve = build_roc_curve(scores, labels)
        elapsed = time.perf_counter() - t0
        assert len(curve.points) == len(np.unique(scores)) + 2
        assert curve.auc == pytest.approx(roc_auc_score(labels, scores), abs=1e-9)
        assert elapsed < 5.0

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_score_rejected(self, bad: float) -> None:
        with pytest.raises(InvalidScoreError) as exc_info:
            build_roc_curve([0.9, bad, 0.2, 0.1], [1, 1, 0, 0])
        assert exc_info.value.first_index == 1

    def test_single_class_rejected(self) -> None:
        with pytest.raises(DegenerateLabelSetError) as exc_info:
            build_roc_curve([0.1, 0.9], [1, 1])
        assert exc_info.value.n_negative == 0

    def test_length_mismatch(self) -> None:
        with pytest.raises(LengthMismatchError):
            build_roc_curve([0.1, 0.9], [1])

    def test_rows(self, separable_scores: tuple[list[float], list[Label]]) -> None:
        scores, labels = separable_scores
        rows = build_roc_curve(scores, labels).rows()
        assert rows[0] == (math.inf, 0.0, 0.0)
        assert rows[-1] == (-math.inf, 1.0, 1.0)

    def test_json_keeps_infinite_thresholds(
        self, separable_scores: tuple[list[float], list[Label]]
    ) -> None:
        scores, labels = separable_scores
        dumped = build_roc_curve(scores, labels).model_dump_json()
        assert "Infinity" in dumped
        assert "-Infinity" in dumped


class TestRankAUC:
    """Tests for the Mann-Whitney AUC."""

    def test_agrees_with_trapezoid(self, noisy_scores: tuple[np.ndarray, np.ndarray]) -> None:
        scores, labels = noisy_scores
        assert rank_auc(scores, labels) == pytest.approx(
            build_roc_curve(scores, labels).auc, abs=1e-12
        )

    def test_ties_count_half(self) -> None:
        assert rank_auc([0.5, 0.5], [1, 0]) == pytest.approx(0.5)

    def test_degenerate(self) -> None:
        with pytest.raises(DegenerateLabelSetError):
            rank_auc([0.1, 0.2], ["negative", "negative"])

    def test_nan_score_rejected(self) -> None:
        with pytest.raises(InvalidScoreError):
            rank_auc([0.9, math.nan, 0.2, 0.1], [1, 1, 0, 0])


def test_trapezoid_area() -> None:
    assert trapezoid_area([0.0, 1.0], [0.0, 1.0]) == pytest.approx(0.5)
    assert trapezoid_area([0.0, 0.0, 1.0], [0.0, 1.0, 1.0]) == pytest.approx(1.0)
    assert trapezoid_area([0.0, 0.5, 1.0], [0.0, 0.5, 0.5]) == pytest.approx(0.375)
