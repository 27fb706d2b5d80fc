"""
Metric tables: per-fold performance values arranged for comparison.

Observations arrive in long form (fold id, model id, value). Comparison methods
work on the wide form, one row per fold and one column per model, where the
rows are the unit of pairing.

Resampled statistics for different models are usually strongly correlated
because some folds are intrinsically harder than others. The helpers at the
bottom of this module quantify that resample-to-resample effect.

Literature:
-----------
- Kuhn & Silge (2022) "Tidy Modeling with R" O'Reilly, ch. 11
- Benavoli et al. (2017) "Time for a Change: a Tutorial for Comparing Multiple
  Classifiers Through Bayesian Analysis" JMLR 18(77):1-36
"""

from dataclasses import dataclass
from itertools import combinations
from typing import Iterable, List, Union
import numpy as np
import pandas as pd
from scipy import stats
from loguru import logger

from resample_compare.exceptions import AlignmentError, InsufficientSamplesError


FOLD_COL = "fold_id"
MODEL_COL = "model"
VALUE_COL = "value"


@dataclass(frozen=True)
class MetricObservation:
    """One resampled performance value."""
    fold_id: str
    model_id: str
    value: float


def observations_to_frame(observations: Iterable[MetricObservation]) -> pd.DataFrame:
    """Convert observations to a long DataFrame (fold_id, model, value)."""
    records = [
        {FOLD_COL: obs.fold_id, MODEL_COL: obs.model_id, VALUE_COL: obs.value}
        for obs in observations
    ]
    return pd.DataFrame.from_records(records, columns=[FOLD_COL, MODEL_COL, VALUE_COL])


def build_metric_table(
    data: Union[pd.DataFrame, Iterable[MetricObservation]],
    fold_col: str = FOLD_COL,
    model_col: str = MODEL_COL,
    value_col: str = VALUE_COL,
) -> pd.DataFrame:
    """
    Reshape long-form observations into a wide metric table.

    Rows are folds, columns are models. Folds that are missing for any model
    (or hold a non-finite value) are dropped so that every remaining row is a
    complete, pairable set of observations.

    Parameters:
    -----------
    data : pd.DataFrame or Iterable[MetricObservation]
        Long-form observations
    fold_col, model_col, value_col : str
        Column names in ``data``

    Returns:
    --------
    table : pd.DataFrame
        Wide table indexed by fold id, one float column per model

    Raises:
    -------
    AlignmentError
        If a (fold, model) pair occurs more than once, or no fold is shared
        by all models

    Example:
    --------
    >>> long = pd.DataFrame({
    ...     "fold_id": ["Fold1", "Fold2", "Fold1", "Fold2"],
    ...     "model": ["lm", "lm", "rf", "rf"],
    ...     "value": [0.80, 0.82, 0.77, 0.78],
    ... })
    >>> build_metric_table(long).shape
    (2, 2)
    """
    if not isinstance(data, pd.DataFrame):
        data = observations_to_frame(data)
        fold_col, model_col, value_col = FOLD_COL, MODEL_COL, VALUE_COL

    missing = {fold_col, model_col, value_col} - set(data.columns)
    if missing:
        raise ValueError(f"Metric data is missing columns: {sorted(missing)}")

    duplicated = data.duplicated(subset=[fold_col, model_col], keep=False)
    if duplicated.any():
        pairs = data.loc[duplicated, [fold_col, model_col]].drop_duplicates()
        raise AlignmentError(
            f"Duplicate (fold, model) observations: {pairs.values.tolist()[:5]}"
        )

    long = data[[fold_col, model_col, value_col]].copy()
    long[value_col] = pd.to_numeric(long[value_col], errors="coerce")
    long[fold_col] = long[fold_col].astype(str)
    long[model_col] = long[model_col].astype(str)

    model_order = list(dict.fromkeys(long[model_col]))
    fold_order = list(dict.fromkeys(long[fold_col]))

    wide = long.pivot(index=fold_col, columns=model_col, values=value_col)
    wide = wide.reindex(index=fold_order, columns=model_order)
    wide = wide.replace([np.inf, -np.inf], np.nan)

    complete = wide.notna().all(axis=1)
    n_dropped = int((~complete).sum())
    if n_dropped:
        logger.warning(
            f"Dropping {n_dropped} fold(s) not observed for every model: "
            f"{list(wide.index[~complete])}"
        )
    wide = wide.loc[complete]

    if wide.empty:
        raise AlignmentError("No fold is shared by all models")

    wide.index.name = FOLD_COL
    wide.columns.name = None
    return wide.astype(float)


def metric_table_to_long(table: pd.DataFrame) -> pd.DataFrame:
    """Inverse of ``build_metric_table``: wide table back to long form."""
    long = table.reset_index().melt(
        id_vars=table.index.name or "index",
        var_name=MODEL_COL,
        value_name=VALUE_COL,
    )
    return long.rename(columns={table.index.name or "index": FOLD_COL})


def check_metric_table(table: pd.DataFrame, min_folds: int = 2, min_models: int = 1) -> None:
    """
    Validate the shape of a wide metric table.

    Raises:
        InsufficientSamplesError: Too few folds or models
    """
    n_folds, n_models = table.shape
    if n_models < min_models:
        raise InsufficientSamplesError(
            f"Need at least {min_models} models, got {n_models}"
        )
    if n_folds < min_folds:
        raise InsufficientSamplesError(
            f"Need at least {min_folds} folds, got {n_folds}"
        )


# ============================================================================
# Resample-to-resample effect
# ============================================================================

def resample_correlation(table: pd.DataFrame, method: str = "pearson") -> pd.DataFrame:
    """
    Correlation of per-fold metrics between every pair of models.

    High correlations indicate a strong fold effect: a fold that is hard for
    one model tends to be hard for the others.
    """
    check_metric_table(table, min_folds=3, min_models=2)
    return table.corr(method=method)


def correlation_tests(table: pd.DataFrame, confidence_level: float = 0.95) -> pd.DataFrame:
    """
    Pearson correlation test for every pair of models.

    Returns:
    --------
    results : pd.DataFrame
        Columns: model_a, model_b, estimate, p_value, lower, upper
    """
    check_metric_table(table, min_folds=3, min_models=2)

    rows: List[dict] = []
    for model_a, model_b in combinations(table.columns, 2):
        result = stats.pearsonr(table[model_a], table[model_b])
        ci = result.confidence_interval(confidence_level=confidence_level)
        rows.append({
            "model_a": model_a,
            "model_b": model_b,
            "estimate": float(result.statistic),
            "p_value": float(result.pvalue),
            "lower": float(ci.low),
            "upper": float(ci.high),
        })
    return pd.DataFrame(rows)


def fold_effect_summary(table: pd.DataFrame) -> pd.DataFrame:
    """
    Per-fold average over models, centered on the grand mean.

    A wide spread of ``fold_effect`` relative to the differences between
    models is what makes paired methods more powerful than unpaired ones.
    """
    check_metric_table(table, min_folds=2, min_models=1)
    fold_mean = table.mean(axis=1)
    summary = pd.DataFrame({
        "fold_mean": fold_mean,
        "fold_effect": fold_mean - fold_mean.mean(),
    })
    summary.index.name = FOLD_COL
    return summary.sort_values("fold_effect")
