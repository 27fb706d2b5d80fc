"""
Resampling: shared V-fold partitions and per-fold metric collection.
"""

from .folds import Fold, fold_ids, make_folds
from .collector import collect_metrics_for_models, collect_resample_metrics
from .estimators import MODEL_TYPES, build_estimator, build_estimators

__all__ = [
    "Fold",
    "fold_ids",
    "make_folds",
    "collect_metrics_for_models",
    "collect_resample_metrics",
    "MODEL_TYPES",
    "build_estimator",
    "build_estimators",
]
