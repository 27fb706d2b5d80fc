"""
Pytest configuration and shared fixtures for resample-compare tests.
"""

import pytest
import numpy as np
import pandas as pd

from resample_compare.bayesian.engine import PosteriorEngine
from resample_compare.bayesian.posterior import PosteriorSamples, compute_diagnostics
from resample_compare.evaluation.metric_table import MODEL_COL, VALUE_COL


@pytest.fixture
def rsq_better():
    """Per-fold R² of the stronger model (5 folds)."""
    return np.array([0.80, 0.82, 0.79, 0.81, 0.83])


@pytest.fixture
def rsq_worse():
    """Per-fold R² of the weaker model, same folds."""
    return np.array([0.77, 0.78, 0.76, 0.79, 0.77])


@pytest.fixture
def fold_labels():
    return ["Fold01", "Fold02", "Fold03", "Fold04", "Fold05"]


@pytest.fixture
def two_model_table(rsq_better, rsq_worse, fold_labels):
    """Wide metric table for two models."""
    table = pd.DataFrame(
        {"splines": rsq_better, "linear": rsq_worse},
        index=pd.Index(fold_labels, name="fold_id"),
    )
    return table


@pytest.fixture
def three_model_table():
    """
    Ten folds, three models with a strong shared fold effect.

    ``random_forest`` is about 0.06 above ``linear``; ``splines`` is within
    0.005 of ``linear``.
    """
    rng = np.random.default_rng(1001)
    fold_effect = rng.normal(0.0, 0.03, size=10)
    folds = [f"Fold{i:02d}" for i in range(1, 11)]
    table = pd.DataFrame(
        {
            "linear": 0.78 + fold_effect + rng.normal(0, 0.004, 10),
            "splines": 0.785 + fold_effect + rng.normal(0, 0.004, 10),
            "random_forest": 0.84 + fold_effect + rng.normal(0, 0.004, 10),
        },
        index=pd.Index(folds, name="fold_id"),
    )
    return table


@pytest.fixture
def long_metrics(three_model_table):
    """Long-form version of ``three_model_table``."""
    return (
        three_model_table.reset_index()
        .melt(id_vars="fold_id", var_name=MODEL_COL, value_name=VALUE_COL)
    )


@pytest.fixture
def metrics_csv(tmp_path, long_metrics):
    """Long-form metrics CSV."""
    csv_path = tmp_path / "metrics.csv"
    long_metrics.to_csv(csv_path, index=False)
    return csv_path


@pytest.fixture
def regression_data_csv(tmp_path):
    """Small regression dataset with a non-linear term."""
    rng = np.random.default_rng(7)
    n = 120
    x1 = rng.uniform(-2, 2, n)
    x2 = rng.uniform(-2, 2, n)
    y = 1.5 * x1 + np.sin(2 * x2) + rng.normal(0, 0.3, n)

    csv_path = tmp_path / "regression.csv"
    pd.DataFrame({"x1": x1, "x2": x2, "y": y}).to_csv(csv_path, index=False)
    return csv_path


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir


class StubEngine(PosteriorEngine):
    """
    Sampler-free engine: normal draws around each model's observed mean.

    Records the arguments of the last call so tests can inspect how the
    estimator framed the model.
    """

    def __init__(self, spread: float = 0.005):
        self.spread = spread
        self.calls = []

    def fit(self, data, model_spec, prior_spec, seed, chains, iterations):
        self.calls.append({
            "data": data,
            "model_spec": model_spec,
            "prior_spec": prior_spec,
            "seed": seed,
            "chains": chains,
            "iterations": iterations,
        })
        _, draws = model_spec.split_iterations(iterations)
        rng = np.random.default_rng(seed)
        means = data.groupby(MODEL_COL)[VALUE_COL].mean()

        chain_draws = {
            model: rng.normal(means[model], self.spread, size=(chains, draws))
            for model in model_spec.model_ids
        }
        diagnostics = compute_diagnostics(
            chain_draws,
            rhat_threshold=model_spec.rhat_threshold,
            min_ess=model_spec.min_ess,
        )
        return PosteriorSamples(
            draws={model: values.reshape(-1) for model, values in chain_draws.items()},
            chains=chains,
            draws_per_chain=draws,
            reference_model=model_spec.reference_model,
            seed=seed,
            diagnostics=diagnostics,
        )


@pytest.fixture
def stub_engine():
    return StubEngine()
