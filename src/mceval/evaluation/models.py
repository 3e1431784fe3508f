"""Evaluation data models for mceval.

Pydantic models for confusion matrices, derived classification metrics
and ROC curves. Derived rates are ``None`` when their denominator is
zero, so an undefined metric is never reported as 0.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ConfusionMatrix(BaseModel):
    """2x2 tally of predicted against true binary labels.

    Attributes:
        tp: True positives.
        fp: False positives.
        tn: True negatives.
        fn: False negatives.
        cutoff: Threshold the tally was made at, if any.
    """

    tp: int = Field(ge=0)
    fp: int = Field(ge=0)
    tn: int = Field(ge=0)
    fn: int = Field(ge=0)
    cutoff: float | None = None

    model_config = {"frozen": True}

    @property
    def n(self) -> int:
        """Total number of evaluated observations."""
        return self.tp + self.fp + self.tn + self.fn

    @property
    def n_positive(self) -> int:
        """Observations whose true label is positive."""
        return self.tp + self.fn

    @property
    def n_negative(self) -> int:
        """Observations whose true label is negative."""
        return self.tn + self.fp

    @property
    def accuracy(self) -> float | None:
        """``(TP + TN) / N``; None when N is 0."""
        return (self.tp + self.tn) / self.n if self.n > 0 else None

    @property
    def sensitivity(self) -> float | None:
        """True positive rate ``TP / (TP + FN)``."""
        return self.tp / self.n_positive if self.n_positive > 0 else None

    @property
    def specificity(self) -> float | None:
        """True negative rate ``TN / (TN + FP)``."""
        return self.tn / self.n_negative if self.n_negative > 0 else None

    @property
    def precision(self) -> float | None:
        """Positive predictive value ``TP / (TP + FP)``."""
        predicted = self.tp + self.fp
        return self.tp / predicted if predicted > 0 else None

    @property
    def false_positive_rate(self) -> float | None:
        """``FP / (TN + FP)``, i.e. ``1 - specificity``."""
        return self.fp / self.n_negative if self.n_negative > 0 else None

    def as_matrix(self) -> list[list[int]]:
        """``[[TN, FP], [FN, TP]]``, the layout sklearn uses."""
        return [[self.tn, self.fp], [self.fn, self.tp]]


class ClassificationMetrics(BaseModel):
    """Confusion matrix and derived metrics at one cutoff.

    Attributes:
        cutoff: Probability cutoff (positive iff score > cutoff).
        accuracy: Fraction classified correctly.
        sensitivity: True positive rate.
        specificity: True negative rate.
        precision: Positive predictive value.
        confusion: The underlying tallies.
    """

    cutoff: float
    accuracy: float | None
    sensitivity: float | None
    specificity: float | None
    precision: float | None
    confusion: ConfusionMatrix


class ROCPoint(BaseModel):
    """A single operating point on the ROC curve.

    Attributes:
        threshold: Score threshold (positive iff score > threshold).
        fpr: False positive rate.
        tpr: True positive rate.
    """

    threshold: float
    fpr: float
    tpr: float

    # Sentinel thresholds are +/-inf
    model_config = {"ser_json_inf_nan": "constants"}


class ROCCurve(BaseModel):
    """ROC curve ordered by FPR then TPR, with its AUC.

    Attributes:
        points: Operating points from (0, 0) to (1, 1).
        auc: Trapezoidal area under the curve.
        n_positive: Number of positive labels.
        n_negative: Number of negative labels.
    """

    points: list[ROCPoint]
    auc: float
    n_positive: int
    n_negative: int

    model_config = {"ser_json_inf_nan": "constants"}

    @property
    def fpr(self) -> list[float]:
        """False positive rates in curve order."""
        return [p.fpr for p in self.points]

    @property
    def tpr(self) -> list[float]:
        """True positive rates in curve order."""
        return [p.tpr for p in self.points]

    @property
    def thresholds(self) -> list[float]:
        """Thresholds in curve order."""
        return [p.threshold for p in self.points]

    def rows(self) -> list[tuple[float, float, float]]:
        """``(threshold, fpr, tpr)`` triples for tabular export."""
        return [(p.threshold, p.fpr, p.tpr) for p in self.points]


class EvaluationReport(BaseModel):
    """Threshold sweep and ROC results for one set of scores.

    Attributes:
        metrics: Classification metrics at each requested cutoff.
        roc: ROC curve with trapezoidal AUC.
        rank_auc: AUC from the rank statistic (cross-check).
        metadata: Additional metadata (n_records, seed, timestamp).
    """

    metrics: list[ClassificationMetrics]
    roc: ROCCurve
    rank_auc: float
    metadata: dict[str, Any]

    model_config = {"ser_json_inf_nan": "constants"}
