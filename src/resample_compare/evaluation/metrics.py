"""
Performance metrics computed on the assessment rows of each resampling fold.

Every metric takes ``(y_true, y_pred)`` and returns a single float, so one fold
produces one value per model. Metrics are looked up by name through
``get_metric`` (e.g. ``"rsq"``, ``"rmse"``).

Key Features:
-------------
- Regression metrics: R², RMSE, MAE
- Ranking metrics: Spearman's ρ, Kendall's τ
- Classification metrics: Accuracy, ROC-AUC

Literature:
-----------
- Kuhn & Johnson (2013) "Applied Predictive Modeling" Springer, ch. 5
- Tropsha (2010) "Best Practices for QSAR Model Development, Validation, and
  Exploitation" Mol Inf 29(6-7):476-488
"""

from typing import Callable, Dict
import numpy as np
from scipy import stats
from sklearn.metrics import roc_auc_score


MetricFn = Callable[[np.ndarray, np.ndarray], float]


# ============================================================================
# Regression Metrics
# ============================================================================

def r2_score(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    R² as the squared Pearson correlation between observed and predicted.

    This is the "rsq" definition used when comparing resampled models: it is
    bounded in [0, 1] and does not go negative on a poor fold.

    Parameters:
    -----------
    y_true : np.ndarray
        True values
    y_pred : np.ndarray
        Predicted values

    Returns:
    --------
    r2 : float
        Squared correlation (0 to 1)

    Example:
    --------
    >>> y_true = np.array([1.0, 2.0, 3.0])
    >>> y_pred = np.array([1.1, 2.1, 2.9])
    >>> print(f"R²: {r2_score(y_true, y_pred):.4f}")
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if np.std(y_true) == 0 or np.std(y_pred) == 0:
        return float("nan")
    r = np.corrcoef(y_true, y_pred)[0, 1]
    return float(r ** 2)


def r2_traditional(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    R² as 1 - SS_res / SS_tot (can be negative).

    A fold with a constant outcome has no variance to explain and yields NaN.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    ss_res = np.sum((y_true - y_pred) ** 2)
    ss_tot = np.sum((y_true - np.mean(y_true)) ** 2)
    if ss_tot == 0:
        return float("nan")
    return float(1 - (ss_res / ss_tot))


def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Root Mean Squared Error.

    Example:
    --------
    >>> y_true = np.array([1.0, 2.0, 3.0])
    >>> y_pred = np.array([1.1, 2.1, 2.9])
    >>> print(f"RMSE: {rmse(y_true, y_pred):.4f}")
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Mean Absolute Error. More robust to outliers than RMSE."""
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.mean(np.abs(y_true - y_pred)))


def spearman_correlation(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Spearman's rank correlation coefficient.

    Useful when the ranking of predictions matters more than their scale.
    """
    rho, _ = stats.spearmanr(y_true, y_pred)
    return float(rho)


def kendall_tau(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Kendall's τ rank correlation."""
    tau, _ = stats.kendalltau(y_true, y_pred)
    return float(tau)


# ============================================================================
# Classification Metrics
# ============================================================================

def accuracy(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Fraction of correctly classified samples."""
    return float(np.mean(np.asarray(y_true) == np.asarray(y_pred)))


def roc_auc(y_true: np.ndarray, y_score: np.ndarray) -> float:
    """
    Area under the ROC curve.

    ``y_score`` must be a continuous score (probability of the positive class);
    a fold that contains only one class yields NaN.
    """
    if len(np.unique(y_true)) < 2:
        return float("nan")
    return float(roc_auc_score(y_true, y_score))


METRIC_REGISTRY: Dict[str, MetricFn] = {
    "rsq": r2_score,
    "rsq_trad": r2_traditional,
    "rmse": rmse,
    "mae": mae,
    "spearman": spearman_correlation,
    "kendall": kendall_tau,
    "accuracy": accuracy,
    "roc_auc": roc_auc,
}

# Metrics computed from predicted probabilities rather than predicted labels
SCORE_METRICS = frozenset({"roc_auc"})

# Metrics where a lower value is better
LOWER_IS_BETTER = frozenset({"rmse", "mae"})


def get_metric(name: str) -> MetricFn:
    """
    Look up a metric function by name.

    Raises:
        ValueError: If the metric is not registered
    """
    try:
        return METRIC_REGISTRY[name]
    except KeyError:
        raise ValueError(
            f"Unknown metric: {name}. Available: {sorted(METRIC_REGISTRY)}"
        ) from None
