"""Evaluation module: confusion matrices, threshold sweeps and ROC/AUC."""
from __future__ import annotations

from mceval.evaluation.models import (
    ClassificationMetrics,
    ConfusionMatrix,
    EvaluationReport,
    ROCCurve,
    ROCPoint,
)
from mceval.evaluation.roc import build_roc_curve, rank_auc, trapezoid_area
from mceval.evaluation.runner import EvaluationRunner
from mceval.evaluation.threshold import (
    classification_metrics,
    classify,
    classify_linear_predictor,
    evaluate_threshold,
    logit,
    threshold_sweep,
)

__all__ = [
    "ClassificationMetrics",
    "ConfusionMatrix",
    "EvaluationReport",
    "EvaluationRunner",
    "ROCCurve",
    "ROCPoint",
    "build_roc_curve",
    "classification_metrics",
    "classify",
    "classify_linear_predictor",
    "evaluate_threshold",
    "logit",
    "rank_auc",
    "threshold_sweep",
    "trapezoid_area",
]
