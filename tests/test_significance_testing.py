"""
Unit tests for paired difference tests and multiple comparison correction.

Run with: pytest tests/test_significance_testing.py
"""

import pytest
import numpy as np
import pandas as pd
from scipy import stats

from resample_compare.evaluation.significance_testing import (
    adjust_pvalues,
    blocked_anova,
    difference_linear_model,
    paired_difference_test,
    paired_test_from_table,
    pairwise_paired_tests,
)
from resample_compare.exceptions import AlignmentError, InsufficientSamplesError


class TestPairedDifferenceTest:
    """Test the paired t-test on per-fold differences."""

    def test_clear_improvement(self, rsq_better, rsq_worse):
        result = paired_difference_test(rsq_better, rsq_worse)

        assert result.estimate == pytest.approx(0.03, abs=0.01)
        assert result.p_value < 0.05
        assert result.significant
        assert result.df == 4
        assert result.n == 5

    def test_estimate_is_mean_difference(self, rsq_better, rsq_worse):
        result = paired_difference_test(rsq_better, rsq_worse)
        assert result.estimate == pytest.approx(np.mean(rsq_better - rsq_worse))

    def test_matches_scipy_ttest_rel(self, rsq_better, rsq_worse):
        result = paired_difference_test(rsq_better, rsq_worse)
        expected = stats.ttest_rel(rsq_better, rsq_worse)

        assert result.statistic == pytest.approx(expected.statistic)
        assert result.p_value == pytest.approx(expected.pvalue)

    def test_interval_contains_estimate(self, rsq_better, rsq_worse):
        result = paired_difference_test(rsq_better, rsq_worse, confidence_level=0.90)
        lower, upper = result.confidence_interval
        assert lower < result.estimate < upper

        wider = paired_difference_test(rsq_better, rsq_worse, confidence_level=0.99)
        assert wider.confidence_interval[0] < lower
        assert wider.confidence_interval[1] > upper

    def test_antisymmetric(self, rsq_better, rsq_worse):
        forward = paired_difference_test(rsq_better, rsq_worse)
        backward = paired_difference_test(rsq_worse, rsq_better)

        assert backward.estimate == pytest.approx(-forward.estimate)
        assert backward.p_value == pytest.approx(forward.p_value)

    def test_single_fold_raises(self):
        with pytest.raises(InsufficientSamplesError):
            paired_difference_test([0.8], [0.7])

    def test_length_mismatch_raises(self):
        with pytest.raises(AlignmentError):
            paired_difference_test([0.8, 0.7, 0.9], [0.7, 0.6])

    def test_series_aligned_by_fold_id(self, rsq_better, rsq_worse, fold_labels):
        a = pd.Series(rsq_better, index=fold_labels)
        b = pd.Series(rsq_worse, index=fold_labels)[::-1]

        aligned = paired_difference_test(a, b)
        expected = paired_difference_test(rsq_better, rsq_worse)
        assert aligned.estimate == pytest.approx(expected.estimate)
        assert aligned.p_value == pytest.approx(expected.p_value)

    def test_series_with_different_folds_raise(self, rsq_better, rsq_worse, fold_labels):
        a = pd.Series(rsq_better, index=fold_labels)
        b = pd.Series(rsq_worse, index=["Fold01", "Fold02", "Fold03", "Fold04", "Fold99"])
        with pytest.raises(AlignmentError):
            paired_difference_test(a, b)

    def test_constant_difference(self):
        result = paired_difference_test([1.0, 2.0, 3.0], [0.5, 1.5, 2.5])
        assert result.estimate == pytest.approx(0.5)
        assert result.standard_error == 0.0
        assert result.confidence_interval == (0.5, 0.5)

    def test_to_dict_keys(self, rsq_better, rsq_worse):
        record = paired_difference_test(rsq_better, rsq_worse).to_dict()
        assert set(record) == {
            "estimate", "std_error", "lower", "upper", "statistic", "df", "p_value", "n",
        }

    def test_invalid_confidence_level(self, rsq_better, rsq_worse):
        with pytest.raises(ValueError):
            paired_difference_test(rsq_better, rsq_worse, confidence_level=1.5)


class TestTableTests:
    """Test comparisons run on a wide metric table."""

    def test_from_table(self, two_model_table):
        result = paired_test_from_table(two_model_table, "splines", "linear")
        assert result.estimate > 0

    def test_unknown_model(self, two_model_table):
        with pytest.raises(ValueError, match="not in metric table"):
            paired_test_from_table(two_model_table, "splines", "knn")

    def test_linear_model_equivalence(self, two_model_table):
        ols = difference_linear_model(two_model_table, "splines", "linear")
        ttest = paired_test_from_table(two_model_table, "splines", "linear")

        assert ols.estimate == pytest.approx(ttest.estimate)
        assert ols.standard_error == pytest.approx(ttest.standard_error)
        assert ols.p_value == pytest.approx(ttest.p_value)
        assert ols.confidence_interval[0] == pytest.approx(ttest.confidence_interval[0])

    def test_pairwise(self, three_model_table):
        results = pairwise_paired_tests(three_model_table, correction="holm")

        assert len(results) == 3
        assert list(results[["model_a", "model_b"]].itertuples(index=False, name=None)) == [
            ("linear", "splines"),
            ("linear", "random_forest"),
            ("splines", "random_forest"),
        ]
        assert (results["p_adjusted"] >= results["p_value"]).all()
        assert (results["correction"] == "holm").all()

        rf = results[(results["model_a"] == "linear") & (results["model_b"] == "random_forest")]
        assert rf["estimate"].iloc[0] == pytest.approx(-0.06, abs=0.01)
        assert rf["p_adjusted"].iloc[0] < 0.001

    def test_blocked_anova(self, three_model_table):
        result = blocked_anova(three_model_table)

        assert result.reference_model == "linear"
        assert result.p_value < 0.001
        effects = result.model_effects.set_index("model")
        assert set(effects.index) == {"splines", "random_forest"}
        assert effects.loc["random_forest", "estimate"] == pytest.approx(
            (three_model_table["random_forest"] - three_model_table["linear"]).mean()
        )

    def test_blocked_anova_two_models_matches_paired_test(self, two_model_table):
        anova = blocked_anova(two_model_table, reference_model="linear")
        paired = paired_test_from_table(two_model_table, "splines", "linear")

        assert anova.f_statistic == pytest.approx(paired.statistic ** 2)
        assert anova.p_value == pytest.approx(paired.p_value)


class TestAdjustPvalues:
    """Test multiple comparison correction."""

    def test_bonferroni(self):
        adjusted = adjust_pvalues([0.01, 0.03, 0.05, 0.10], method="bonferroni")
        np.testing.assert_allclose(adjusted, [0.04, 0.12, 0.20, 0.40])

    def test_holm_not_larger_than_bonferroni(self):
        pvalues = [0.01, 0.02, 0.03, 0.04]
        holm = adjust_pvalues(pvalues, method="holm")
        bonferroni = adjust_pvalues(pvalues, method="bonferroni")
        assert (holm <= bonferroni).all()

    def test_none_returns_copy(self):
        pvalues = np.array([0.2, 0.01])
        adjusted = adjust_pvalues(pvalues, method="none")
        np.testing.assert_array_equal(adjusted, pvalues)
        assert adjusted is not pvalues

    def test_nan_preserved(self):
        adjusted = adjust_pvalues([0.01, np.nan, 0.02], method="fdr_bh")
        assert np.isnan(adjusted[1])
        assert np.isfinite(adjusted[[0, 2]]).all()

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown correction"):
            adjust_pvalues([0.01], method="sidak_ss")
