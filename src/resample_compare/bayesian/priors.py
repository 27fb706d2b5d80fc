"""
Prior specification for the random-intercept comparison model.

Prior scales are given in units of the pooled standard deviation of the metric
so the same defaults work for R² (values near 0.8) and for RMSE in the
thousands.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict
import numpy as np


@dataclass(frozen=True)
class PriorSpec:
    """
    Priors for ``y_ij = b0 + b_i + sum_m beta_m x_im + e_ij``.

    Attributes:
        random_intercept_df: Degrees of freedom of the half-Student-t prior on
            the standard deviation of the per-fold intercepts (1 = half-Cauchy)
        random_intercept_scale: Scale of that prior, in metric SDs
        fixed_effect_scale: SD of the zero-centered normal priors on the
            model effects (and of the intercept around the metric mean), in
            metric SDs
        residual_scale: Mean of the exponential prior on the residual SD, in
            metric SDs
    """

    random_intercept_df: float = 1.0
    random_intercept_scale: float = 1.0
    fixed_effect_scale: float = 10.0
    residual_scale: float = 1.0

    def __post_init__(self):
        for name, value in asdict(self).items():
            if not value > 0:
                raise ValueError(f"{name} must be positive, got {value}")

    def resolve(self, values: np.ndarray) -> "ResolvedPriors":
        """Turn relative scales into absolute prior parameters for ``values``."""
        values = np.asarray(values, dtype=float)
        center = float(np.mean(values))
        scale = float(np.std(values, ddof=1))
        return ResolvedPriors(
            intercept_mu=center,
            intercept_sigma=self.fixed_effect_scale * scale,
            effect_sigma=self.fixed_effect_scale * scale,
            fold_sd_nu=float(self.random_intercept_df),
            fold_sd_sigma=self.random_intercept_scale * scale,
            residual_lam=1.0 / (self.residual_scale * scale),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "PriorSpec":
        return cls(**config_dict)


@dataclass(frozen=True)
class ResolvedPriors:
    """Absolute prior parameters handed to a posterior engine."""
    intercept_mu: float
    intercept_sigma: float
    effect_sigma: float
    fold_sd_nu: float
    fold_sd_sigma: float
    residual_lam: float
