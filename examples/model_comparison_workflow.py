"""
End-to-end example: comparing regression models on shared resamples.

Run this script to see:
1. Collecting per-fold R² for three models on the same 10 folds
2. The resample-to-resample effect
3. Paired difference tests with Holm correction
4. Bayesian posteriors of mean R² and practical equivalence
"""

import numpy as np
import pandas as pd

from resample_compare.bayesian.contrasts import (
    contrast_all_pairs,
    difference_draws,
    rope_curve,
    summarize_posterior,
)
from resample_compare.bayesian.hierarchical import HierarchicalPosteriorEstimator
from resample_compare.evaluation.metric_table import (
    build_metric_table,
    fold_effect_summary,
    resample_correlation,
)
from resample_compare.evaluation.significance_testing import (
    blocked_anova,
    pairwise_paired_tests,
)
from resample_compare.resampling.collector import collect_metrics_for_models
from resample_compare.resampling.estimators import build_estimators
from resample_compare.resampling.folds import make_folds
from resample_compare.utils.logging_utils import setup_logger

setup_logger(log_level="WARNING")
pd.set_option("display.width", 120)

print("=" * 80)
print("Resampled Model Comparison - Example Workflow")
print("=" * 80)


# =============================================================================
# Example 1: Per-fold metrics
# =============================================================================
print("\n" + "=" * 80)
print("EXAMPLE 1: Collecting per-fold R²")
print("=" * 80)

rng = np.random.default_rng(1001)
n = 300
X = rng.uniform(-2, 2, size=(n, 3))
y = 2.0 * X[:, 0] + np.sin(2 * X[:, 1]) + 0.5 * X[:, 0] * X[:, 2] + rng.normal(0, 0.5, n)

folds = make_folds(n, n_splits=10, random_state=1001)
models = build_estimators(["linear", "interaction", "splines"], random_state=1001)
long_metrics = collect_metrics_for_models(models, X, y, folds, metric="rsq")
table = build_metric_table(long_metrics)

print(table.round(4))


# =============================================================================
# Example 2: Resample-to-resample effect
# =============================================================================
print("\n" + "=" * 80)
print("EXAMPLE 2: Resample-to-resample effect")
print("=" * 80)

print("\nCorrelation of R² across folds:")
print(resample_correlation(table).round(3))
print("\nFold effects (hardest folds first):")
print(fold_effect_summary(table).round(4))


# =============================================================================
# Example 3: Paired difference tests
# =============================================================================
print("\n" + "=" * 80)
print("EXAMPLE 3: Paired difference tests")
print("=" * 80)

paired = pairwise_paired_tests(table, correction="holm")
print(paired[["model_a", "model_b", "estimate", "lower", "upper", "p_value", "p_adjusted"]].round(4))

anova = blocked_anova(table)
print(f"\nBlocked ANOVA for model: F = {anova.f_statistic:.2f}, p = {anova.p_value:.3g}")


# =============================================================================
# Example 4: Bayesian posteriors and practical equivalence
# =============================================================================
print("\n" + "=" * 80)
print("EXAMPLE 4: Bayesian random-intercept model")
print("=" * 80)

estimator = HierarchicalPosteriorEstimator(chains=4, iterations=2000, seed=1101)
posterior = estimator.fit(table)

print(f"\nConverged: {posterior.diagnostics.converged}")
print("\nPosterior mean R² (90% credible intervals):")
print(summarize_posterior(posterior).round(4))

print("\nPosterior contrasts with ROPE = 0.02:")
contrasts = contrast_all_pairs(posterior, rope=0.02)
print(contrasts[["contrast", "mean", "lower", "upper", "prob_positive",
                 "prob_practical_equivalence"]].round(4))

print("\nEquivalence of splines and linear across tolerances:")
diffs = difference_draws(posterior, "splines", "linear")
print(rope_curve(diffs, [0.005, 0.01, 0.02, 0.05]).round(4))

print("\n" + "=" * 80)
print("Done")
print("=" * 80)
