"""mceval: Monte Carlo model-evaluation engine.

Bias-variance decomposition by repeated resampling and refitting, and
threshold-sweep / ROC analysis of predicted probabilities.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("mceval")
except PackageNotFoundError:
    # Fallback for source-only usage before installation.
    __version__ = "0.1.0"
__license__ = "Apache-2.0"
