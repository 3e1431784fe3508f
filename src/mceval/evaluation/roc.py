"""ROC curve construction and AUC.

The curve sweeps every distinct score as a threshold, plus sentinels at
``+inf`` (nothing predicted positive) and ``-inf`` (everything predicted
positive), using the same strict ``score > threshold`` rule as
``evaluate_threshold``. Counts come from a single descending sort, so
building the curve is ``O(n log n)``. AUC is the trapezoidal area;
``rank_auc`` gives the same value as a Mann-Whitney probability.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy.stats import rankdata
from sklearn.metrics import auc as sklearn_auc  # type: ignore[import-untyped]

from mceval.core.exceptions import DegenerateLabelSetError
from mceval.evaluation.models import ROCCurve, ROCPoint
from mceval.evaluation.threshold import prepare_inputs

logger = structlog.get_logger(__name__)


def _class_counts(positive: NDArray[np.bool_]) -> tuple[int, int]:
    n_positive = int(np.sum(positive))
    n_negative = int(positive.shape[0] - n_positive)
    if n_positive == 0 or n_negative == 0:
        raise DegenerateLabelSetError(n_positive, n_negative)
    return n_positive, n_negative


def trapezoid_area(fpr: Sequence[float], tpr: Sequence[float]) -> float:
    """Trapezoidal integral of TPR over FPR along an ordered curve."""
    return float(
        sklearn_auc(np.asarray(fpr, dtype=np.float64), np.asarray(tpr, dtype=np.float64))
    )


def _strict_counts(
    scores: NDArray[np.float64],
    positive: NDArray[np.bool_],
) -> tuple[NDArray[np.float64], NDArray[np.int64], NDArray[np.int64]]:
    """Distinct scores (descending) with TP/FP counts for each ROC threshold.

    Returned counts align with ``[+inf, *distinct, -inf]``: the count at
    distinct score ``d_j`` is the number of scores ``> d_j``, i.e. the
    cumulative count through the previous (larger) distinct score.
    """
    order = np.argsort(-scores, kind="mergesort")
    ranked = scores[order]
    ranked_pos = positive[order]
    tps = np.cumsum(ranked_pos)
    fps = np.cumsum(~ranked_pos)
    # Last index of each run of equal scores
    ends = np.r_[np.flatnonzero(np.diff(ranked)), len(ranked) - 1]
    tp = np.r_[0, 0, tps[ends]]
    fp = np.r_[0, 0, fps[ends]]
    return ranked[ends], tp, fp


def build_roc_curve(
    scores: Sequence[float] | NDArray[Any],
    labels: Sequence[Any] | NDArray[Any],
) -> ROCCurve:
    """Sweep all discriminating thresholds and integrate the curve.

    Args:
        scores: Predicted scores (higher = more likely positive).
        labels: True labels (positive/negative).

    Returns:
        ROCCurve with points sorted by FPR then TPR and trapezoidal AUC.

    Raises:
        LengthMismatchError: If scores and labels differ in length.
        InvalidScoreError: If any score is NaN or infinite.
        DegenerateLabelSetError: If labels lack either class.
    """
    scores_arr, positive = prepare_inputs(scores, labels)
    n_positive, n_negative = _class_counts(positive)

    distinct, tp, fp = _strict_counts(scores_arr, positive)
    thresholds = [math.inf, *(float(s) for s in distinct), -math.inf]

    # Thresholds descend, so FPR and TPR are already non-decreasing
    points = [
        ROCPoint(threshold=t, fpr=int(f) / n_negative, tpr=int(p) / n_positive)
        for t, f, p in zip(thresholds, fp, tp, strict=True)
    ]

    auc = trapezoid_area([p.fpr for p in points], [p.tpr for p in points])

    logger.debug(
        "roc_built",
        n_points=len(points),
        n_positive=n_positive,
        n_negative=n_negative,
        auc=round(auc, 6),
    )

    return ROCCurve(
        points=points,
        auc=auc,
        n_positive=n_positive,
        n_negative=n_negative,
    )


def rank_auc(
    scores: Sequence[float] | NDArray[Any],
    labels: Sequence[Any] | NDArray[Any],
) -> float:
    """AUC as ``P(score_pos > score_neg)`` with ties counted half.

    Computed from the Mann-Whitney U statistic on mid-ranks in
    ``O(n log n)``.

    Raises:
        LengthMismatchError: If scores and labels differ in length.
        InvalidScoreError: If any score is NaN or infinite.
        DegenerateLabelSetError: If labels lack either class.
    """
    scores_arr, positive = prepare_inputs(scores, labels)
    n_positive, n_negative = _class_counts(positive)
    ranks = rankdata(scores_arr)  # average ranks for ties
    u_stat = float(np.sum(ranks[positive])) - n_positive * (n_positive + 1) / 2.0
    return u_stat / (n_positive * n_negative)
