"""
Bayesian comparison of resampled performance statistics.

Modules:
--------
- priors: Prior specification, scaled to the metric
- posterior: Posterior draws and convergence diagnostics
- engine: Inference backends (PyMC NUTS)
- hierarchical: Random-intercept estimator
- contrasts: Posterior differences and practical equivalence
"""

from .priors import PriorSpec
from .posterior import ConvergenceDiagnostics, PosteriorSamples
from .engine import ModelSpec, PosteriorEngine, PyMCEngine
from .hierarchical import HierarchicalPosteriorEstimator, fit_posterior
from .contrasts import (
    ContrastSummary,
    contrast_all_pairs,
    contrast_models,
    summarize_posterior,
)

__all__ = [
    "PriorSpec",
    "ConvergenceDiagnostics",
    "PosteriorSamples",
    "ModelSpec",
    "PosteriorEngine",
    "PyMCEngine",
    "HierarchicalPosteriorEstimator",
    "fit_posterior",
    "ContrastSummary",
    "contrast_all_pairs",
    "contrast_models",
    "summarize_posterior",
]
