"""
Unit tests for metric tables and the resample-to-resample effect.

Run with: pytest tests/test_metric_table.py
"""

import pytest
import numpy as np
import pandas as pd

from resample_compare.evaluation.metric_table import (
    MetricObservation,
    build_metric_table,
    check_metric_table,
    correlation_tests,
    fold_effect_summary,
    metric_table_to_long,
    observations_to_frame,
    resample_correlation,
)
from resample_compare.exceptions import AlignmentError, InsufficientSamplesError


class TestBuildMetricTable:
    """Test long to wide reshaping."""

    def test_wide_shape_and_order(self, long_metrics):
        table = build_metric_table(long_metrics)

        assert table.shape == (10, 3)
        assert list(table.columns) == ["linear", "splines", "random_forest"]
        assert table.index.name == "fold_id"
        assert table.index[0] == "Fold01"

    def test_from_observations(self):
        observations = [
            MetricObservation("F1", "a", 0.5),
            MetricObservation("F2", "a", 0.6),
            MetricObservation("F1", "b", 0.4),
            MetricObservation("F2", "b", 0.5),
        ]
        table = build_metric_table(observations)

        assert table.loc["F2", "a"] == pytest.approx(0.6)
        assert table.loc["F1", "b"] == pytest.approx(0.4)

    def test_duplicates_raise(self):
        long = pd.DataFrame({
            "fold_id": ["F1", "F1", "F1"],
            "model": ["a", "a", "b"],
            "value": [0.1, 0.2, 0.3],
        })
        with pytest.raises(AlignmentError, match="Duplicate"):
            build_metric_table(long)

    def test_incomplete_folds_dropped(self):
        long = pd.DataFrame({
            "fold_id": ["F1", "F2", "F3", "F1", "F2"],
            "model": ["a", "a", "a", "b", "b"],
            "value": [0.1, 0.2, 0.3, 0.4, np.inf],
        })
        table = build_metric_table(long)
        assert list(table.index) == ["F1"]

    def test_no_shared_fold_raises(self):
        long = pd.DataFrame({
            "fold_id": ["F1", "F2"],
            "model": ["a", "b"],
            "value": [0.1, 0.2],
        })
        with pytest.raises(AlignmentError):
            build_metric_table(long)

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="missing columns"):
            build_metric_table(pd.DataFrame({"fold_id": ["F1"], "value": [0.1]}))

    def test_custom_column_names(self):
        long = pd.DataFrame({
            "id": ["F1", "F2", "F1", "F2"],
            "wflow": ["a", "a", "b", "b"],
            "rsq": [0.1, 0.2, 0.3, 0.4],
        })
        table = build_metric_table(long, fold_col="id", model_col="wflow", value_col="rsq")
        assert table.index.name == "fold_id"
        assert table.shape == (2, 2)

    def test_long_round_trip(self, three_model_table):
        long = metric_table_to_long(three_model_table)
        assert list(long.columns) == ["fold_id", "model", "value"]
        rebuilt = build_metric_table(long)
        assert list(rebuilt.columns) == list(three_model_table.columns)
        assert list(rebuilt.index) == list(three_model_table.index)
        np.testing.assert_allclose(rebuilt.to_numpy(), three_model_table.to_numpy())


class TestChecks:
    """Test table validation."""

    def test_too_few_folds(self, two_model_table):
        with pytest.raises(InsufficientSamplesError):
            check_metric_table(two_model_table.iloc[:1], min_folds=2)

    def test_too_few_models(self, two_model_table):
        with pytest.raises(InsufficientSamplesError):
            check_metric_table(two_model_table[["linear"]], min_models=2)

    def test_observations_to_frame_empty(self):
        frame = observations_to_frame([])
        assert list(frame.columns) == ["fold_id", "model", "value"]
        assert frame.empty


class TestResampleEffect:
    """Test the resample-to-resample effect helpers."""

    def test_strong_correlation(self, three_model_table):
        corr = resample_correlation(three_model_table)
        assert corr.shape == (3, 3)
        assert corr.loc["linear", "random_forest"] > 0.8

    def test_correlation_tests(self, three_model_table):
        results = correlation_tests(three_model_table)
        assert len(results) == 3
        assert list(results.columns) == [
            "model_a", "model_b", "estimate", "p_value", "lower", "upper",
        ]
        assert (results["lower"] <= results["estimate"]).all()
        assert (results["estimate"] <= results["upper"]).all()
        assert (results["p_value"] < 0.05).all()

    def test_correlation_needs_three_folds(self, two_model_table):
        with pytest.raises(InsufficientSamplesError):
            resample_correlation(two_model_table.iloc[:2])

    def test_fold_effect_summary(self, three_model_table):
        summary = fold_effect_summary(three_model_table)
        assert summary["fold_effect"].sum() == pytest.approx(0.0, abs=1e-12)
        assert summary["fold_effect"].is_monotonic_increasing
