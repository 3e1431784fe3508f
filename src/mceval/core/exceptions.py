"""Custom exception hierarchy for mceval.

Never use bare except clauses. Always catch specific exceptions.
"""
from __future__ import annotations


class MCEvalError(Exception):
    """Base exception for all mceval errors."""


# Simulation exceptions
class InvalidConfigurationError(MCEvalError):
    """Bad data-generation or simulation parameters."""


class ModelFitError(MCEvalError):
    """A model variant could not be fitted on a dataset.

    Recoverable: the harness records the failure for the (trial, model)
    cell and carries on with the run.
    """

    def __init__(
        self,
        message: str,
        model_name: str | None = None,
        trial: int | None = None,
    ) -> None:
        super().__init__(message)
        self.model_name = model_name
        self.trial = trial


class InsufficientDataError(MCEvalError):
    """An aggregate has no valid observations to summarise."""

    def __init__(self, message: str, model_name: str | None = None, n_valid: int = 0) -> None:
        super().__init__(message)
        self.model_name = model_name
        self.n_valid = n_valid


class WriteOnceError(MCEvalError):
    """A prediction cell was written twice, or written after freezing."""

    def __init__(self, message: str, trial: int, model: int) -> None:
        super().__init__(message)
        self.trial = trial
        self.model = model


# Evaluation exceptions
class LengthMismatchError(MCEvalError):
    """Parallel input sequences have different lengths."""

    def __init__(self, left: int, right: int, what: str = "scores/labels") -> None:
        super().__init__(f"Mismatched length for {what}: {left} != {right}")
        self.left = left
        self.right = right


class InvalidCutoffError(MCEvalError):
    """Classification cutoff outside the unit interval."""

    def __init__(self, cutoff: float) -> None:
        super().__init__(f"Cutoff must lie in [0, 1], got {cutoff!r}")
        self.cutoff = cutoff


class InvalidLabelError(MCEvalError):
    """A label that is neither positive nor negative."""


class DegenerateLabelSetError(MCEvalError):
    """ROC/AUC undefined because one class is absent from the labels."""

    def __init__(self, n_positive: int, n_negative: int) -> None:
        super().__init__(
            "Cannot compute ROC/AUC with only one class present in labels "
            f"(positives={n_positive}, negatives={n_negative})"
        )
        self.n_positive = n_positive
        self.n_negative = n_negative


class InvalidScoreError(MCEvalError):
    """Scores that are NaN or infinite cannot be ranked or thresholded."""

    def __init__(self, n_invalid: int, first_index: int) -> None:
        super().__init__(
            f"Scores must be finite: {n_invalid} non-finite value(s), "
            f"first at index {first_index}"
        )
        self.n_invalid = n_invalid
        self.first_index = first_index
