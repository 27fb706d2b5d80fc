"""
Resampled performance statistics for candidate models.

For each fold the estimator is cloned, fit on the analysis rows and scored on
the assessment rows, producing one metric value per fold. Running several
models over the same folds yields observations that pair up by fold id.
"""

from typing import Any, Dict, List, Optional, Sequence
import numpy as np
import pandas as pd
from sklearn.base import clone
from tqdm import tqdm
from loguru import logger

from resample_compare.evaluation.metrics import SCORE_METRICS, get_metric
from resample_compare.evaluation.metric_table import (
    MetricObservation,
    observations_to_frame,
)
from resample_compare.resampling.folds import Fold


def _take(data: Any, indices: np.ndarray) -> Any:
    """Row-subset arrays and pandas objects alike."""
    if isinstance(data, (pd.DataFrame, pd.Series)):
        return data.iloc[indices]
    return np.asarray(data)[indices]


def _predict_for_metric(estimator: Any, X: Any, metric: str) -> np.ndarray:
    if metric in SCORE_METRICS:
        if not hasattr(estimator, "predict_proba"):
            raise ValueError(f"Metric '{metric}' requires an estimator with predict_proba")
        return estimator.predict_proba(X)[:, 1]
    return estimator.predict(X)


def collect_resample_metrics(
    estimator: Any,
    X: Any,
    y: Any,
    folds: Sequence[Fold],
    metric: str = "rsq",
    model_id: Optional[str] = None,
) -> List[MetricObservation]:
    """
    Compute one performance value per fold for a single model.

    Args:
        estimator: Unfitted scikit-learn compatible estimator (cloned per fold)
        X: Feature matrix (array or DataFrame)
        y: Outcome vector
        folds: Resampling folds from ``make_folds``
        metric: Metric name (see ``evaluation.metrics.METRIC_REGISTRY``)
        model_id: Label for the model (default: estimator class name)

    Returns:
        One MetricObservation per fold, in fold order
    """
    metric_fn = get_metric(metric)
    if model_id is None:
        model_id = type(estimator).__name__

    observations = []
    for fold in folds:
        fitted = clone(estimator)
        fitted.fit(_take(X, fold.train_indices), _take(y, fold.train_indices))

        y_true = np.asarray(_take(y, fold.test_indices))
        y_pred = _predict_for_metric(fitted, _take(X, fold.test_indices), metric)
        value = metric_fn(y_true, y_pred)

        observations.append(
            MetricObservation(fold_id=fold.fold_id, model_id=model_id, value=float(value))
        )

    values = np.array([obs.value for obs in observations])
    logger.info(
        f"{model_id}: {metric} = {np.nanmean(values):.4f} "
        f"(sd {np.nanstd(values, ddof=1):.4f}) over {len(folds)} folds"
    )
    return observations


def collect_metrics_for_models(
    models: Dict[str, Any],
    X: Any,
    y: Any,
    folds: Sequence[Fold],
    metric: str = "rsq",
    show_progress: bool = False,
) -> pd.DataFrame:
    """
    Evaluate several models on the same folds.

    Returns:
        Long DataFrame with columns ``fold_id``, ``model``, ``value``
    """
    if not models:
        raise ValueError("At least one model is required")

    observations: List[MetricObservation] = []
    items = tqdm(models.items(), desc="Resampling", disable=not show_progress)
    for model_id, estimator in items:
        observations.extend(
            collect_resample_metrics(estimator, X, y, folds, metric=metric, model_id=model_id)
        )

    return observations_to_frame(observations)
