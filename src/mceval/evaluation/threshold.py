"""Confusion-matrix evaluation at a probability cutoff.

Classification is done in probability space: an observation is predicted
positive iff ``score > cutoff`` (ties at the cutoff are negative). For a
logistic model ``p = sigmoid(eta)`` and the sigmoid is strictly
increasing, so ``p > c`` is the same decision as ``eta > logit(c)``; the
default cutoff 0.5 corresponds to ``eta > 0``.
"""
from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray

from mceval.core.enums import Label
from mceval.core.exceptions import (
    InvalidCutoffError,
    InvalidLabelError,
    InvalidScoreError,
    LengthMismatchError,
)
from mceval.evaluation.models import ClassificationMetrics, ConfusionMatrix

DEFAULT_CUTOFF = 0.5


def _to_positive(label: Any) -> bool:  # noqa: ANN401
    if isinstance(label, Label):
        return label == Label.POSITIVE
    if isinstance(label, str):
        text = label.strip().lower()
        if text in ("1", "0"):
            return text == "1"
        try:
            return Label(text) == Label.POSITIVE
        except ValueError as exc:
            msg = f"Invalid label {label!r}; expected 'positive' or 'negative'"
            raise InvalidLabelError(msg) from exc
    if isinstance(label, (bool, np.bool_)):
        return bool(label)
    if isinstance(label, (int, np.integer)) and int(label) in (0, 1):
        return int(label) == 1
    msg = f"Invalid label {label!r}; expected Label, 'positive'/'negative', or 0/1"
    raise InvalidLabelError(msg)


def as_positive_mask(labels: Sequence[Any] | NDArray[Any]) -> NDArray[np.bool_]:
    """Convert labels to a boolean mask of positives.

    Accepts ``Label`` members, ``"positive"``/``"negative"`` strings,
    booleans, or 0/1 integers.

    Raises:
        InvalidLabelError: On any other label value.
    """
    if isinstance(labels, np.ndarray):
        if labels.dtype == np.bool_:
            return labels.reshape(-1).copy()
        values = labels.reshape(-1).tolist()
    else:
        # Mixed lists must not go through np.asarray, which stringifies them
        values = list(labels)
    return np.fromiter((_to_positive(lab) for lab in values), dtype=bool, count=len(values))


def prepare_inputs(
    scores: Sequence[float] | NDArray[Any],
    labels: Sequence[Any] | NDArray[Any],
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """Validate and coerce parallel score/label inputs.

    Raises:
        LengthMismatchError: If scores and labels differ in length.
        InvalidLabelError: On an unrecognised label.
        InvalidScoreError: If any score is NaN or infinite.
    """
    scores_arr = np.asarray(scores, dtype=np.float64).reshape(-1)
    if len(scores_arr) != len(labels):
        raise LengthMismatchError(len(scores_arr), len(labels))
    invalid = np.flatnonzero(~np.isfinite(scores_arr))
    if len(invalid) > 0:
        raise InvalidScoreError(len(invalid), int(invalid[0]))
    return scores_arr, as_positive_mask(labels)


def confusion_at(
    scores: NDArray[np.float64],
    positive: NDArray[np.bool_],
    threshold: float,
) -> ConfusionMatrix:
    """Tally a confusion matrix at any threshold, including +/-inf.

    Inputs must already be validated (see ``prepare_inputs``).
    """
    predicted = scores > threshold
    tp = int(np.sum(predicted & positive))
    fp = int(np.sum(predicted & ~positive))
    fn = int(np.sum(~predicted & positive))
    tn = int(np.sum(~predicted & ~positive))
    return ConfusionMatrix(tp=tp, fp=fp, tn=tn, fn=fn, cutoff=threshold)


def _check_cutoff(cutoff: float) -> None:
    if not 0.0 <= cutoff <= 1.0:  # NaN fails this too
        raise InvalidCutoffError(cutoff)


def evaluate_threshold(
    scores: Sequence[float] | NDArray[Any],
    labels: Sequence[Any] | NDArray[Any],
    cutoff: float = DEFAULT_CUTOFF,
) -> ConfusionMatrix:
    """Confusion matrix for probabilities classified at ``cutoff``.

    Args:
        scores: Predicted probabilities of the positive class.
        labels: True labels (positive/negative).
        cutoff: Probability cutoff in [0, 1]; positive iff score > cutoff.

    Returns:
        ConfusionMatrix with exact tallies summing to ``len(scores)``.

    Raises:
        LengthMismatchError: If scores and labels differ in length.
        InvalidCutoffError: If cutoff is outside [0, 1].
        InvalidScoreError: If any score is NaN or infinite.
    """
    scores_arr, positive = prepare_inputs(scores, labels)
    _check_cutoff(cutoff)
    return confusion_at(scores_arr, positive, cutoff)


def classification_metrics(
    scores: Sequence[float] | NDArray[Any],
    labels: Sequence[Any] | NDArray[Any],
    cutoff: float = DEFAULT_CUTOFF,
) -> ClassificationMetrics:
    """Confusion matrix plus accuracy, sensitivity, specificity, precision.

    Metrics whose denominator is zero are None.
    """
    cm = evaluate_threshold(scores, labels, cutoff)
    return ClassificationMetrics(
        cutoff=cutoff,
        accuracy=cm.accuracy,
        sensitivity=cm.sensitivity,
        specificity=cm.specificity,
        precision=cm.precision,
        confusion=cm,
    )


def threshold_sweep(
    scores: Sequence[float] | NDArray[Any],
    labels: Sequence[Any] | NDArray[Any],
    cutoffs: Sequence[float],
) -> list[ClassificationMetrics]:
    """Classification metrics at each cutoff, in the order given."""
    return [classification_metrics(scores, labels, c) for c in cutoffs]


def classify(
    scores: Sequence[float] | NDArray[Any],
    cutoff: float = DEFAULT_CUTOFF,
) -> NDArray[np.bool_]:
    """Predicted positives in probability space (``score > cutoff``)."""
    _check_cutoff(cutoff)
    return np.asarray(scores, dtype=np.float64) > cutoff


def logit(p: float) -> float:
    """Inverse sigmoid, with ``logit(0) = -inf`` and ``logit(1) = inf``."""
    if p <= 0.0:
        return -math.inf
    if p >= 1.0:
        return math.inf
    return math.log(p / (1.0 - p))


def classify_linear_predictor(
    eta: Sequence[float] | NDArray[Any],
    cutoff: float = DEFAULT_CUTOFF,
) -> NDArray[np.bool_]:
    """Predicted positives from a logistic linear predictor.

    Equivalent to ``classify(sigmoid(eta), cutoff)``.
    """
    _check_cutoff(cutoff)
    return np.asarray(eta, dtype=np.float64) > logit(cutoff)
