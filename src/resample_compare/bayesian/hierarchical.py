"""
Bayesian random-intercept model for resampled performance statistics.

For fold i and model j the metric is modeled as

    y_ij = b0 + b_i + sum_m beta_m x_im + e_ij,    e_ij ~ Normal(0, sigma)

where ``b_i`` is a per-fold random intercept (the resample-to-resample effect)
and ``x_im`` are 0/1 indicators for model m relative to a reference model. The
posterior of ``b0`` (reference model) and ``b0 + beta_m`` (other models) is the
posterior of each model's mean performance.

Literature:
-----------
- Kuhn & Silge (2022) "Tidy Modeling with R" O'Reilly, ch. 11
- Benavoli et al. (2017) "Time for a Change: a Tutorial for Comparing Multiple
  Classifiers Through Bayesian Analysis" JMLR 18(77):1-36
- Vehtari et al. (2021) "Rank-normalization, folding, and localization: An
  improved R-hat for assessing convergence of MCMC" Bayesian Analysis 16(2)
"""

from typing import Optional
import numpy as np
import pandas as pd
from loguru import logger

from resample_compare.bayesian.engine import ModelSpec, PosteriorEngine, PyMCEngine
from resample_compare.bayesian.posterior import PosteriorSamples
from resample_compare.bayesian.priors import PriorSpec
from resample_compare.evaluation.metric_table import (
    FOLD_COL,
    check_metric_table,
    metric_table_to_long,
)
from resample_compare.exceptions import DegenerateModelInputError


def check_degenerate(table: pd.DataFrame) -> None:
    """
    Reject metric tables the random-intercept model cannot be fit to.

    Raises:
        DegenerateModelInputError: Non-finite values, or a model whose metric
            is constant across folds
    """
    values = table.to_numpy(dtype=float)
    if not np.all(np.isfinite(values)):
        raise DegenerateModelInputError("Metric table contains non-finite values")

    constant = [model for model in table.columns if np.std(table[model].to_numpy(dtype=float)) == 0]
    if constant:
        raise DegenerateModelInputError(
            f"Metric is constant across folds for model(s): {constant}"
        )


class HierarchicalPosteriorEstimator:
    """
    Posterior distributions of mean performance for models sharing folds.

    The estimator holds only its settings; ``fit`` is a pure function of the
    metric table and the seed.

    Example:
    --------
    >>> estimator = HierarchicalPosteriorEstimator(chains=4, iterations=2000)
    >>> posterior = estimator.fit(table, seed=1101)
    >>> posterior.diagnostics.converged
    True
    >>> posterior["random_forest"].mean()
    """

    def __init__(
        self,
        prior_spec: Optional[PriorSpec] = None,
        chains: int = 4,
        iterations: int = 2000,
        warmup_fraction: float = 0.5,
        seed: int = 1101,
        target_accept: float = 0.9,
        cores: int = 1,
        rhat_threshold: float = 1.01,
        min_ess: float = 400.0,
        engine: Optional[PosteriorEngine] = None,
    ):
        """
        Initialize the estimator.

        Args:
            prior_spec: Priors (default: half-Cauchy fold SD, wide normal effects)
            chains: Number of MCMC chains
            iterations: Iterations per chain, warm-up included
            warmup_fraction: Fraction of each chain discarded as warm-up
            seed: Default random seed
            target_accept: NUTS target acceptance rate
            cores: Worker processes for chains
            rhat_threshold: R-hat above which draws are flagged
            min_ess: Bulk ESS below which draws are flagged
            engine: Inference backend (default: PyMCEngine)
        """
        if chains < 1:
            raise ValueError(f"chains must be at least 1, got {chains}")
        self.prior_spec = prior_spec or PriorSpec()
        self.chains = chains
        self.iterations = iterations
        self.warmup_fraction = warmup_fraction
        self.seed = seed
        self.target_accept = target_accept
        self.cores = cores
        self.rhat_threshold = rhat_threshold
        self.min_ess = min_ess
        self.engine = engine or PyMCEngine()

    @classmethod
    def from_config(cls, config, engine: Optional[PosteriorEngine] = None) -> "HierarchicalPosteriorEstimator":
        """Create from a ``ComparisonConfig``."""
        return cls(
            prior_spec=config.priors,
            chains=config.sampler.chains,
            iterations=config.sampler.iterations,
            warmup_fraction=config.sampler.warmup_fraction,
            seed=config.sampler.seed,
            target_accept=config.sampler.target_accept,
            cores=config.sampler.cores,
            rhat_threshold=config.diagnostics.rhat_threshold,
            min_ess=config.diagnostics.min_ess,
            engine=engine,
        )

    def model_spec(self, table: pd.DataFrame, reference_model: Optional[str] = None) -> ModelSpec:
        """Frame the model for ``table``; the reference model comes first."""
        models = [str(m) for m in table.columns]
        reference_model = models[0] if reference_model is None else reference_model
        if reference_model not in models:
            raise ValueError(f"Reference model '{reference_model}' not in metric table")
        ordered = [reference_model] + [m for m in models if m != reference_model]

        return ModelSpec(
            model_ids=tuple(ordered),
            fold_ids=tuple(str(f) for f in table.index),
            warmup_fraction=self.warmup_fraction,
            target_accept=self.target_accept,
            cores=self.cores,
            rhat_threshold=self.rhat_threshold,
            min_ess=self.min_ess,
        )

    def fit(
        self,
        table: pd.DataFrame,
        reference_model: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> PosteriorSamples:
        """
        Sample posterior distributions of each model's mean metric.

        Args:
            table: Wide metric table (rows = folds, columns = models)
            reference_model: Model absorbed into the intercept (default: first column)
            seed: Random seed (default: the estimator's seed)

        Returns:
            PosteriorSamples with chains * (iterations - warm-up) draws per model

        Raises:
            InsufficientSamplesError: Fewer than 2 folds or 2 models
            DegenerateModelInputError: Constant or non-finite metric values
        """
        check_metric_table(table, min_folds=2, min_models=2)
        check_degenerate(table)

        seed = self.seed if seed is None else seed
        table = table.copy()
        table.columns = [str(c) for c in table.columns]
        table.index = pd.Index([str(i) for i in table.index], name=FOLD_COL)

        spec = self.model_spec(table, reference_model)
        data = metric_table_to_long(table[list(spec.model_ids)])

        logger.info(
            f"Fitting random-intercept model: {len(spec.model_ids)} models x "
            f"{len(spec.fold_ids)} folds, reference = '{spec.reference_model}'"
        )

        posterior = self.engine.fit(
            data,
            spec,
            self.prior_spec,
            seed=seed,
            chains=self.chains,
            iterations=self.iterations,
        )

        diagnostics = posterior.diagnostics
        if diagnostics is not None:
            for problem in diagnostics.problems():
                logger.warning(f"Convergence: {problem}")
            if diagnostics.converged:
                logger.info(
                    f"Sampler converged (max R-hat {diagnostics.max_rhat:.3f}, "
                    f"min bulk ESS {diagnostics.min_ess_bulk:.0f})"
                )

        return posterior


def fit_posterior(
    table: pd.DataFrame,
    prior_spec: Optional[PriorSpec] = None,
    seed: int = 1101,
    chains: int = 4,
    iterations: int = 2000,
    warmup_fraction: float = 0.5,
    reference_model: Optional[str] = None,
    engine: Optional[PosteriorEngine] = None,
) -> PosteriorSamples:
    """
    Convenience function: fit the random-intercept model in one call.

    Example:
    --------
    >>> posterior = fit_posterior(table, seed=1101, chains=4, iterations=2000)
    >>> summarize_posterior(posterior)
    """
    estimator = HierarchicalPosteriorEstimator(
        prior_spec=prior_spec,
        chains=chains,
        iterations=iterations,
        warmup_fraction=warmup_fraction,
        seed=seed,
        engine=engine,
    )
    return estimator.fit(table, reference_model=reference_model)
