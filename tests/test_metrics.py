"""
Unit tests for performance metrics.

Run with: pytest tests/test_metrics.py
"""

import pytest
import numpy as np
from scipy import stats

from resample_compare.evaluation import metrics


class TestRegressionMetrics:
    """Test regression metrics."""

    def test_rsq_is_squared_correlation(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        y_pred = np.array([1.2, 1.9, 3.3, 3.8, 5.1])

        r, _ = stats.pearsonr(y_true, y_pred)
        assert metrics.r2_score(y_true, y_pred) == pytest.approx(r ** 2)

    def test_rsq_does_not_go_negative(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0])
        y_pred = np.array([4.0, 3.0, 2.0, 1.0])

        assert metrics.r2_score(y_true, y_pred) == pytest.approx(1.0)
        assert metrics.r2_traditional(y_true, y_pred) < 0

    def test_rsq_constant_prediction_is_nan(self):
        assert np.isnan(metrics.r2_score([1.0, 2.0, 3.0], [2.0, 2.0, 2.0]))

    def test_rsq_trad_matches_sklearn(self):
        from sklearn.metrics import r2_score as sklearn_r2

        y_true = np.array([3.0, -0.5, 2.0, 7.0])
        y_pred = np.array([2.5, 0.0, 2.0, 8.0])
        assert metrics.r2_traditional(y_true, y_pred) == pytest.approx(sklearn_r2(y_true, y_pred))
        assert metrics.get_metric("rsq_trad") is metrics.r2_traditional

    def test_rsq_trad_perfect_and_mean_predictions(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0])
        assert metrics.r2_traditional(y_true, y_true) == pytest.approx(1.0)
        assert metrics.r2_traditional(y_true, np.full(4, 2.5)) == pytest.approx(0.0)

    def test_rsq_trad_constant_outcome_is_nan(self):
        assert np.isnan(metrics.r2_traditional([2.0, 2.0, 2.0], [1.0, 2.0, 3.0]))

    def test_rmse_and_mae(self):
        y_true = np.array([0.0, 0.0, 0.0, 0.0])
        y_pred = np.array([1.0, -1.0, 1.0, -1.0])

        assert metrics.rmse(y_true, y_pred) == pytest.approx(1.0)
        assert metrics.mae(y_true, y_pred) == pytest.approx(1.0)

    def test_rank_correlations_perfect_order(self):
        y_true = np.array([1.0, 2.0, 3.0, 4.0])
        y_pred = np.array([10.0, 20.0, 35.0, 100.0])

        assert metrics.spearman_correlation(y_true, y_pred) == pytest.approx(1.0)
        assert metrics.kendall_tau(y_true, y_pred) == pytest.approx(1.0)


class TestClassificationMetrics:
    """Test classification metrics."""

    def test_accuracy(self):
        assert metrics.accuracy([0, 1, 1, 0], [0, 1, 0, 0]) == pytest.approx(0.75)

    def test_roc_auc_single_class_is_nan(self):
        assert np.isnan(metrics.roc_auc(np.ones(4), np.array([0.1, 0.4, 0.6, 0.9])))

    def test_roc_auc_perfect_ranking(self):
        y_true = np.array([0, 0, 1, 1])
        y_score = np.array([0.1, 0.2, 0.8, 0.9])
        assert metrics.roc_auc(y_true, y_score) == pytest.approx(1.0)


class TestRegistry:
    """Test metric lookup by name."""

    def test_get_known_metric(self):
        assert metrics.get_metric("rsq") is metrics.r2_score
        assert metrics.get_metric("rmse") is metrics.rmse

    def test_unknown_metric_raises(self):
        with pytest.raises(ValueError, match="Unknown metric"):
            metrics.get_metric("brier")

    def test_direction_sets_are_registered(self):
        assert metrics.LOWER_IS_BETTER <= set(metrics.METRIC_REGISTRY)
        assert metrics.SCORE_METRICS <= set(metrics.METRIC_REGISTRY)
