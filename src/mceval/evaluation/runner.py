"""Evaluation orchestrator: threshold sweep, ROC and AUC cross-check.

Reuses the simulation layer's logistic data source and model variant to
produce held-out probabilities when no scores are supplied.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import numpy as np
import structlog
from numpy.typing import NDArray
from sklearn.model_selection import train_test_split

from mceval.config import ClassificationConfig
from mceval.core.exceptions import InvalidConfigurationError
from mceval.core.models import Dataset
from mceval.evaluation.models import EvaluationReport
from mceval.evaluation.roc import build_roc_curve, rank_auc
from mceval.evaluation.threshold import DEFAULT_CUTOFF, threshold_sweep
from mceval.simulation.data_source import generate_logistic_dataset
from mceval.simulation.variants import LogisticModel

logger = structlog.get_logger(__name__)


class EvaluationRunner:
    """Orchestrate the threshold and ROC evaluation workflow."""

    def evaluate_scores(
        self,
        scores: Sequence[float] | NDArray[Any],
        labels: Sequence[Any] | NDArray[Any],
        cutoffs: Sequence[float] = (DEFAULT_CUTOFF,),
        metadata: dict[str, Any] | None = None,
    ) -> EvaluationReport:
        """Compute metrics at each cutoff, the ROC curve and both AUCs.

        Args:
            scores: Predicted probabilities of the positive class.
            labels: True labels.
            cutoffs: Probability cutoffs to tabulate.
            metadata: Extra metadata merged into the report.

        Returns:
            Complete EvaluationReport.

        Raises:
            LengthMismatchError: If scores and labels differ in length.
            InvalidCutoffError: If a cutoff is outside [0, 1].
            DegenerateLabelSetError: If labels lack either class.
        """
        metrics = threshold_sweep(scores, labels, cutoffs)
        roc = build_roc_curve(scores, labels)
        rank = rank_auc(scores, labels)

        meta: dict[str, Any] = {
            "n_records": len(scores),
            "timestamp": datetime.now(UTC).isoformat(),
        }
        meta.update(metadata or {})

        logger.info(
            "evaluation_complete",
            n_records=len(scores),
            auc=round(roc.auc, 4),
            rank_auc=round(rank, 4),
            cutoffs=list(cutoffs),
        )

        return EvaluationReport(
            metrics=metrics,
            roc=roc,
            rank_auc=rank,
            metadata=meta,
        )

    def simulate_classifier(self, cfg: ClassificationConfig) -> EvaluationReport:
        """Fit a logistic model on simulated data and evaluate held-out scores.

        Args:
            cfg: Classification demo settings.

        Returns:
            EvaluationReport on the held-out split.

        Raises:
            InvalidConfigurationError: If ``test_fraction`` is not in (0, 1).
        """
        if not 0.0 < cfg.test_fraction < 1.0:
            msg = f"test_fraction must be in (0, 1), got {cfg.test_fraction}"
            raise InvalidConfigurationError(msg)

        rng = np.random.default_rng(cfg.seed)
        data = generate_logistic_dataset(cfg.intercept, cfg.slope, cfg.sample_size, rng)
        x_train, x_test, y_train, y_test = train_test_split(
            data.x, data.y, test_size=cfg.test_fraction, random_state=cfg.seed
        )

        model = LogisticModel(seed=cfg.seed)
        fitted = model.fit(Dataset(x=x_train, y=y_train))
        probabilities = model.predict(fitted, x_test)

        return self.evaluate_scores(
            probabilities,
            y_test,
            cutoffs=cfg.cutoffs,
            metadata={
                "seed": cfg.seed,
                "n_train": int(len(y_train)),
                "intercept_hat": float(fitted.intercept_[0]),
                "slope_hat": float(fitted.coef_[0, 0]),
            },
        )
