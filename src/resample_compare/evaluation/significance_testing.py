"""
Frequentist comparison of models evaluated on the same resampling folds.

Because every model is scored on the same folds, the per-fold values are
paired. Testing the per-fold *differences* removes the fold effect, which is
usually much larger than the differences between models.

Key Features:
-------------
- Paired difference t-test (one-sample test on per-fold differences)
- Intercept-only linear model on the differences (same answer, model form)
- Blocked ANOVA with folds as blocks
- All-pairs testing with multiple comparison correction

Literature:
-----------
- Dietterich (1998) "Approximate Statistical Tests for Comparing Supervised
  Classification Learning Algorithms" Neural Computation 10(7):1895-1923
- Nadeau & Bengio (2003) "Inference for the Generalization Error"
  Machine Learning 52(3):239-281
- Demšar (2006) "Statistical Comparisons of Classifiers over Multiple Data Sets"
  JMLR 7:1-30

WARNING: Folds overlap in their training data, so the differences are not truly
independent and these tests tend to be optimistic. Treat small p-values with
some care and always correct for multiple comparisons.
"""

from dataclasses import dataclass
from itertools import combinations
from typing import List, Optional, Sequence, Tuple, Union
import numpy as np
import pandas as pd
from scipy import stats
import statsmodels.formula.api as smf
from statsmodels.stats.anova import anova_lm
from statsmodels.stats.multitest import multipletests
from loguru import logger

from resample_compare.exceptions import AlignmentError, InsufficientSamplesError
from resample_compare.evaluation.metric_table import (
    FOLD_COL,
    MODEL_COL,
    VALUE_COL,
    check_metric_table,
    metric_table_to_long,
)


ArrayLike = Union[Sequence[float], np.ndarray, pd.Series]

CORRECTION_METHODS = {
    "none": None,
    "bonferroni": "bonferroni",
    "holm": "holm",
    "fdr_bh": "fdr_bh",
}


@dataclass
class PairedTestResult:
    """Results from a paired difference test."""
    estimate: float
    standard_error: float
    confidence_interval: Tuple[float, float]
    p_value: float
    statistic: float
    df: int
    n: int
    confidence_level: float = 0.95
    method: str = "paired_t_test"

    @property
    def significant(self) -> bool:
        return bool(self.p_value < 1 - self.confidence_level)

    def to_dict(self) -> dict:
        return {
            "estimate": self.estimate,
            "std_error": self.standard_error,
            "lower": self.confidence_interval[0],
            "upper": self.confidence_interval[1],
            "statistic": self.statistic,
            "df": self.df,
            "p_value": self.p_value,
            "n": self.n,
        }


def _align_pair(a: ArrayLike, b: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """Align two metric vectors by fold id (Series) or position (arrays)."""
    if isinstance(a, pd.Series) and isinstance(b, pd.Series):
        if set(a.index) != set(b.index) or len(a) != len(b):
            raise AlignmentError(
                "Fold ids differ between the two models: "
                f"{sorted(set(a.index) ^ set(b.index))[:5]}"
            )
        b = b.loc[a.index]

    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    if a.ndim != 1 or b.ndim != 1:
        raise ValueError("Metric vectors must be one-dimensional")
    if len(a) != len(b):
        raise AlignmentError(
            f"Metric vectors have different lengths: {len(a)} vs {len(b)}"
        )
    return a, b


def paired_difference_test(
    a: ArrayLike,
    b: ArrayLike,
    confidence_level: float = 0.95,
) -> PairedTestResult:
    """
    Paired t-test on per-fold differences ``a - b``.

    Equivalent to a one-sample t-test of H0: mean(a - b) = 0, and to
    ``scipy.stats.ttest_rel(a, b)``.

    Parameters:
    -----------
    a : array-like or pd.Series
        Per-fold metric values for model A
    b : array-like or pd.Series
        Per-fold metric values for model B, same folds as ``a``. When both are
        Series they are aligned on their index (fold id).
    confidence_level : float
        Confidence level for the interval (default: 0.95)

    Returns:
    --------
    result : PairedTestResult
        Estimate (mean difference), standard error, confidence interval,
        two-sided p-value

    Raises:
    -------
    AlignmentError
        If the two vectors do not cover the same folds
    InsufficientSamplesError
        If fewer than two folds are available

    Example:
    --------
    >>> a = np.array([0.80, 0.82, 0.79, 0.81, 0.83])
    >>> b = np.array([0.77, 0.78, 0.76, 0.79, 0.77])
    >>> result = paired_difference_test(a, b)
    >>> print(f"diff = {result.estimate:.3f}, p = {result.p_value:.4f}")

    Notes:
    ------
    - Assumes approximately normal differences
    - Ignores the overlap between training sets of different folds
    """
    if not 0 < confidence_level < 1:
        raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")

    a, b = _align_pair(a, b)
    n = len(a)
    if n < 2:
        raise InsufficientSamplesError(
            f"Paired test needs at least 2 folds, got {n}"
        )

    differences = a - b
    estimate = float(np.mean(differences))
    std_error = float(stats.sem(differences))
    df = n - 1

    if std_error == 0:
        logger.warning("All per-fold differences are identical; t statistic is undefined")

    t_stat, p_value = stats.ttest_1samp(differences, popmean=0.0)

    if std_error > 0:
        lower, upper = stats.t.interval(confidence_level, df, loc=estimate, scale=std_error)
    else:
        lower, upper = estimate, estimate

    return PairedTestResult(
        estimate=estimate,
        standard_error=std_error,
        confidence_interval=(float(lower), float(upper)),
        p_value=float(p_value),
        statistic=float(t_stat),
        df=df,
        n=n,
        confidence_level=confidence_level,
    )


def paired_test_from_table(
    table: pd.DataFrame,
    model_a: str,
    model_b: str,
    confidence_level: float = 0.95,
) -> PairedTestResult:
    """Paired difference test for two columns of a wide metric table."""
    for model in (model_a, model_b):
        if model not in table.columns:
            raise ValueError(f"Model '{model}' not in metric table")
    return paired_difference_test(table[model_a], table[model_b], confidence_level)


def adjust_pvalues(pvalues: Sequence[float], method: str = "holm") -> np.ndarray:
    """
    Adjust p-values for multiple comparisons.

    Parameters:
    -----------
    pvalues : Sequence[float]
        Raw p-values
    method : str
        "none", "bonferroni", "holm" (FWER) or "fdr_bh" (Benjamini-Hochberg FDR)

    Returns:
    --------
    adjusted : np.ndarray
        Adjusted p-values, same order as input

    Example:
    --------
    >>> adjust_pvalues([0.01, 0.03, 0.05, 0.10], method="bonferroni")
    array([0.04, 0.12, 0.2 , 0.4 ])

    References:
    -----------
    Holm (1979) "A simple sequentially rejective multiple test procedure"
    Scand J Statist 6(2):65-70
    Benjamini & Hochberg (1995) "Controlling the False Discovery Rate" J R Stat
    Soc B 57(1):289-300
    """
    if method not in CORRECTION_METHODS:
        raise ValueError(
            f"Unknown correction: {method}. Available: {sorted(CORRECTION_METHODS)}"
        )
    pvalues = np.asarray(pvalues, dtype=float)
    if method == "none" or len(pvalues) == 0:
        return pvalues.copy()

    # NaN p-values (constant differences) are left as NaN
    adjusted = np.full_like(pvalues, np.nan)
    finite = np.isfinite(pvalues)
    if finite.any():
        _, corrected, _, _ = multipletests(pvalues[finite], method=CORRECTION_METHODS[method])
        adjusted[finite] = corrected
    return adjusted


def pairwise_paired_tests(
    table: pd.DataFrame,
    correction: str = "holm",
    confidence_level: float = 0.95,
) -> pd.DataFrame:
    """
    Paired difference tests for every pair of models in a metric table.

    Returns:
    --------
    results : pd.DataFrame
        One row per pair: model_a, model_b, estimate, std_error, lower, upper,
        statistic, df, p_value, p_adjusted, n
    """
    check_metric_table(table, min_folds=2, min_models=2)

    rows: List[dict] = []
    for model_a, model_b in combinations(table.columns, 2):
        result = paired_test_from_table(table, model_a, model_b, confidence_level)
        rows.append({"model_a": model_a, "model_b": model_b, **result.to_dict()})

    results = pd.DataFrame(rows)
    results["p_adjusted"] = adjust_pvalues(results["p_value"].values, method=correction)
    results["correction"] = correction

    logger.info(
        f"Ran {len(results)} paired tests over {table.shape[0]} folds "
        f"({correction} correction)"
    )
    return results


def difference_linear_model(
    table: pd.DataFrame,
    model_a: str,
    model_b: str,
    confidence_level: float = 0.95,
) -> PairedTestResult:
    """
    Intercept-only linear model on per-fold differences.

    Fits ``difference ~ 1`` by ordinary least squares; the intercept is the
    mean difference and its t-test is the paired t-test.
    """
    a, b = _align_pair(table[model_a], table[model_b])
    if len(a) < 2:
        raise InsufficientSamplesError(f"Need at least 2 folds, got {len(a)}")

    frame = pd.DataFrame({"difference": a - b})
    fit = smf.ols("difference ~ 1", data=frame).fit()
    lower, upper = fit.conf_int(alpha=1 - confidence_level).loc["Intercept"]

    return PairedTestResult(
        estimate=float(fit.params["Intercept"]),
        standard_error=float(fit.bse["Intercept"]),
        confidence_interval=(float(lower), float(upper)),
        p_value=float(fit.pvalues["Intercept"]),
        statistic=float(fit.tvalues["Intercept"]),
        df=int(fit.df_resid),
        n=len(a),
        confidence_level=confidence_level,
        method="difference_ols",
    )


@dataclass
class BlockedAnovaResult:
    """ANOVA of metric values with model as treatment and fold as block."""
    anova_table: pd.DataFrame
    model_effects: pd.DataFrame
    f_statistic: float
    p_value: float
    reference_model: str


def blocked_anova(table: pd.DataFrame, reference_model: Optional[str] = None) -> BlockedAnovaResult:
    """
    Two-way ANOVA ``value ~ model + fold`` on a wide metric table.

    Folds enter as a blocking factor, so the F-test for ``model`` compares the
    models after removing the resample-to-resample effect.

    Returns:
    --------
    result : BlockedAnovaResult
        Type II ANOVA table, per-model coefficients relative to the reference
        model, and the F-test for the model factor
    """
    check_metric_table(table, min_folds=2, min_models=2)
    reference_model = reference_model or table.columns[0]
    if reference_model not in table.columns:
        raise ValueError(f"Model '{reference_model}' not in metric table")

    long = metric_table_to_long(table)
    formula = (
        f"{VALUE_COL} ~ C({MODEL_COL}, Treatment(reference={reference_model!r})) "
        f"+ C({FOLD_COL})"
    )
    fit = smf.ols(formula, data=long).fit()
    anova_table = anova_lm(fit, typ=2)

    model_term = anova_table.index[0]
    prefix = model_term + "[T."
    coef_rows = []
    for name in fit.params.index:
        if name.startswith(prefix):
            lower, upper = fit.conf_int().loc[name]
            coef_rows.append({
                "model": name[len(prefix):-1],
                "estimate": float(fit.params[name]),
                "std_error": float(fit.bse[name]),
                "lower": float(lower),
                "upper": float(upper),
                "p_value": float(fit.pvalues[name]),
            })

    return BlockedAnovaResult(
        anova_table=anova_table,
        model_effects=pd.DataFrame(coef_rows),
        f_statistic=float(anova_table.loc[model_term, "F"]),
        p_value=float(anova_table.loc[model_term, "PR(>F)"]),
        reference_model=reference_model,
    )
