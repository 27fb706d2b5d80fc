"""
resample-compare: comparing models evaluated on the same resamples

A toolkit for:
- Collecting per-fold performance statistics for several models on shared folds
- Paired difference tests that account for the resample-to-resample effect
- Bayesian random-intercept models giving posteriors of mean performance
- Posterior contrasts with practical equivalence (ROPE)
"""

__version__ = "0.1.0"

from resample_compare.exceptions import (
    AlignmentError,
    DegenerateModelInputError,
    InsufficientSamplesError,
    ResampleCompareError,
)
from resample_compare.evaluation.metric_table import build_metric_table
from resample_compare.evaluation.significance_testing import (
    paired_difference_test,
    pairwise_paired_tests,
)
from resample_compare.bayesian.hierarchical import HierarchicalPosteriorEstimator
from resample_compare.bayesian.contrasts import contrast_models

__all__ = [
    "__version__",
    "AlignmentError",
    "DegenerateModelInputError",
    "InsufficientSamplesError",
    "ResampleCompareError",
    "build_metric_table",
    "paired_difference_test",
    "pairwise_paired_tests",
    "HierarchicalPosteriorEstimator",
    "contrast_models",
]
