"""
Posterior engines: the Bayesian inference backend behind the estimator.

The estimator only frames the data and the model; sampling is delegated to a
``PosteriorEngine``. ``PyMCEngine`` runs NUTS through PyMC. Other samplers can
be plugged in by implementing ``fit``.

References:
-----------
- Hoffman & Gelman (2014) "The No-U-Turn Sampler" JMLR 15:1593-1623
- Benavoli et al. (2017) "Time for a Change: a Tutorial for Comparing Multiple
  Classifiers Through Bayesian Analysis" JMLR 18(77):1-36
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Tuple
import numpy as np
import pandas as pd
import pymc as pm
import pytensor.tensor as pt
from loguru import logger

from resample_compare.bayesian.posterior import PosteriorSamples, compute_diagnostics
from resample_compare.bayesian.priors import PriorSpec
from resample_compare.evaluation.metric_table import FOLD_COL, MODEL_COL, VALUE_COL


@dataclass(frozen=True)
class ModelSpec:
    """
    Framing of the random-intercept model.

    ``model_ids[0]`` is the reference model; every other model gets a 0/1
    indicator and a fixed-effect coefficient relative to it.
    """
    model_ids: Tuple[str, ...]
    fold_ids: Tuple[str, ...]
    warmup_fraction: float = 0.5
    target_accept: float = 0.9
    cores: int = 1
    rhat_threshold: float = 1.01
    min_ess: float = 400.0

    def __post_init__(self):
        if len(self.model_ids) < 2:
            raise ValueError("ModelSpec needs at least two models")
        if not 0 <= self.warmup_fraction < 1:
            raise ValueError(
                f"warmup_fraction must be in [0, 1), got {self.warmup_fraction}"
            )

    @property
    def reference_model(self) -> str:
        return self.model_ids[0]

    def split_iterations(self, iterations: int) -> Tuple[int, int]:
        """Return (warm-up, kept draws) per chain for ``iterations``."""
        tune = int(round(iterations * self.warmup_fraction))
        draws = iterations - tune
        if draws < 1:
            raise ValueError(
                f"No draws left after warm-up: iterations={iterations}, "
                f"warmup_fraction={self.warmup_fraction}"
            )
        return tune, draws

    def encode(self, data: pd.DataFrame) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Map long-form data to (y, fold index, model index) arrays."""
        fold_index = {fold: i for i, fold in enumerate(self.fold_ids)}
        model_index = {model: i for i, model in enumerate(self.model_ids)}
        y = data[VALUE_COL].to_numpy(dtype=float)
        fold_idx = data[FOLD_COL].map(fold_index).to_numpy(dtype=int)
        model_idx = data[MODEL_COL].map(model_index).to_numpy(dtype=int)
        return y, fold_idx, model_idx


class PosteriorEngine(ABC):
    """Base class for Bayesian inference backends."""

    @abstractmethod
    def fit(
        self,
        data: pd.DataFrame,
        model_spec: ModelSpec,
        prior_spec: PriorSpec,
        seed: int,
        chains: int,
        iterations: int,
    ) -> PosteriorSamples:
        """
        Sample the posterior of every model's mean metric.

        Args:
            data: Long-form observations (fold_id, model, value)
            model_spec: Model framing (reference model, folds, warm-up)
            prior_spec: Prior specification
            seed: Random seed; identical inputs and seed give identical draws
            chains: Number of independent chains
            iterations: Iterations per chain, warm-up included
        """
        pass


class PyMCEngine(PosteriorEngine):
    """
    NUTS sampling with PyMC.

    The per-fold intercepts use a non-centered parameterization
    (``b_i = tau * z_i``), which samples well when the fold effect is small.
    """

    def __init__(self, progressbar: bool = False):
        self.progressbar = progressbar

    def build_model(
        self,
        data: pd.DataFrame,
        model_spec: ModelSpec,
        prior_spec: PriorSpec,
    ) -> pm.Model:
        """Build the PyMC random-intercept model."""
        y, fold_idx, model_idx = model_spec.encode(data)
        priors = prior_spec.resolve(y)

        coords = {
            "fold": list(model_spec.fold_ids),
            "model": list(model_spec.model_ids),
            "contrast": list(model_spec.model_ids[1:]),
        }

        with pm.Model(coords=coords) as model:
            intercept = pm.Normal(
                "intercept", mu=priors.intercept_mu, sigma=priors.intercept_sigma
            )
            beta = pm.Normal("beta", mu=0.0, sigma=priors.effect_sigma, dims="contrast")

            fold_sd = pm.HalfStudentT(
                "fold_sd", nu=priors.fold_sd_nu, sigma=priors.fold_sd_sigma
            )
            fold_z = pm.Normal("fold_z", mu=0.0, sigma=1.0, dims="fold")
            fold_effect = pm.Deterministic("fold_effect", fold_sd * fold_z, dims="fold")

            sigma = pm.Exponential("sigma", lam=priors.residual_lam)

            # Reference model has no indicator column
            effects = pt.concatenate([pt.zeros(1), beta])
            mu = intercept + fold_effect[fold_idx] + effects[model_idx]
            pm.Normal("y", mu=mu, sigma=sigma, observed=y)

            pm.Deterministic("model_mean", intercept + effects, dims="model")

        return model

    def fit(
        self,
        data: pd.DataFrame,
        model_spec: ModelSpec,
        prior_spec: PriorSpec,
        seed: int,
        chains: int,
        iterations: int,
    ) -> PosteriorSamples:
        tune, draws = model_spec.split_iterations(iterations)
        model = self.build_model(data, model_spec, prior_spec)

        logger.debug(
            f"Sampling {chains} chain(s): {tune} warm-up + {draws} draws, seed={seed}"
        )
        with model:
            trace = pm.sample(
                draws=draws,
                tune=tune,
                chains=chains,
                cores=model_spec.cores,
                target_accept=model_spec.target_accept,
                random_seed=seed,
                progressbar=self.progressbar,
                return_inferencedata=True,
                compute_convergence_checks=False,
            )

        # (chain, draw, model)
        model_means = trace.posterior["model_mean"].transpose("chain", "draw", "model").values
        chain_draws = {
            model_id: model_means[:, :, m]
            for m, model_id in enumerate(model_spec.model_ids)
        }
        n_divergences = int(trace.sample_stats["diverging"].values.sum())

        diagnostics = compute_diagnostics(
            chain_draws,
            n_divergences=n_divergences,
            rhat_threshold=model_spec.rhat_threshold,
            min_ess=model_spec.min_ess,
        )

        return PosteriorSamples(
            draws={model_id: values.reshape(-1) for model_id, values in chain_draws.items()},
            chains=chains,
            draws_per_chain=draws,
            reference_model=model_spec.reference_model,
            seed=seed,
            diagnostics=diagnostics,
            inference_data=trace,
        )
