"""Core enumerations for mceval."""
from enum import IntEnum, StrEnum


class Label(StrEnum):
    """Binary class label."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class CellState(IntEnum):
    """Write state of a single prediction-matrix cell."""

    EMPTY = 0
    WRITTEN = 1
    MISSING = 2  # Model fit failed for this trial


class ModelKind(StrEnum):
    """Concrete model variant families."""

    CONSTANT = "constant"
    POLYNOMIAL = "polynomial"
    ADDITIVE = "additive"
    INTERACTION = "interaction"
    LOGISTIC = "logistic"


class NoiseKind(StrEnum):
    """Zero-mean noise distribution families."""

    NORMAL = "normal"
    UNIFORM = "uniform"
    LAPLACE = "laplace"
