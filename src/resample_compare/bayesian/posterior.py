"""
Posterior draws of each model's mean metric, with convergence diagnostics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import numpy as np
import pandas as pd
import arviz as az


@dataclass
class ConvergenceDiagnostics:
    """
    Split-chain R-hat, bulk effective sample size and divergences per model.

    Diagnostics are reported, never raised: check ``converged`` (or
    ``problems()``) before trusting the posterior.
    """
    rhat: Dict[str, float]
    ess_bulk: Dict[str, float]
    n_divergences: int = 0
    rhat_threshold: float = 1.01
    min_ess: float = 400.0

    @property
    def max_rhat(self) -> float:
        return max(self.rhat.values()) if self.rhat else float("nan")

    @property
    def min_ess_bulk(self) -> float:
        return min(self.ess_bulk.values()) if self.ess_bulk else float("nan")

    def problems(self) -> List[str]:
        """Human-readable list of diagnostic failures (empty if none)."""
        issues = []
        for model, value in self.rhat.items():
            if not np.isfinite(value) or value > self.rhat_threshold:
                issues.append(f"R-hat for '{model}' is {value:.3f} (> {self.rhat_threshold})")
        for model, value in self.ess_bulk.items():
            if not np.isfinite(value) or value < self.min_ess:
                issues.append(f"Bulk ESS for '{model}' is {value:.0f} (< {self.min_ess:.0f})")
        if self.n_divergences > 0:
            issues.append(f"{self.n_divergences} divergent transition(s) after warm-up")
        return issues

    @property
    def converged(self) -> bool:
        return not self.problems()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rhat": {k: float(v) for k, v in self.rhat.items()},
            "ess_bulk": {k: float(v) for k, v in self.ess_bulk.items()},
            "n_divergences": int(self.n_divergences),
            "rhat_threshold": self.rhat_threshold,
            "min_ess": self.min_ess,
            "converged": self.converged,
            "problems": self.problems(),
        }


def compute_diagnostics(
    chain_draws: Dict[str, np.ndarray],
    n_divergences: int = 0,
    rhat_threshold: float = 1.01,
    min_ess: float = 400.0,
) -> ConvergenceDiagnostics:
    """
    Diagnostics from per-model draws shaped (chain, draw).

    Uses rank-normalized split R-hat and bulk ESS (Vehtari et al. 2021).
    """
    rhat = {}
    ess_bulk = {}
    for model, draws in chain_draws.items():
        draws = np.asarray(draws, dtype=float)
        rhat[model] = float(az.rhat(draws, method="rank"))
        ess_bulk[model] = float(az.ess(draws, method="bulk"))
    return ConvergenceDiagnostics(
        rhat=rhat,
        ess_bulk=ess_bulk,
        n_divergences=int(n_divergences),
        rhat_threshold=rhat_threshold,
        min_ess=min_ess,
    )


@dataclass
class PosteriorSamples:
    """
    Pooled posterior draws of the mean metric for each model.

    Draws are pooled chain-major: all kept draws of chain 0, then chain 1, and
    so on. Arrays are read-only.
    """
    draws: Dict[str, np.ndarray]
    chains: int
    draws_per_chain: int
    reference_model: str
    seed: Optional[int] = None
    diagnostics: Optional[ConvergenceDiagnostics] = None
    inference_data: Any = field(default=None, repr=False)

    def __post_init__(self):
        frozen = {}
        for model, values in self.draws.items():
            values = np.array(values, dtype=float).ravel()
            values.setflags(write=False)
            frozen[model] = values
        self.draws = frozen

    @property
    def models(self) -> List[str]:
        return list(self.draws)

    @property
    def n_draws(self) -> int:
        return len(next(iter(self.draws.values()))) if self.draws else 0

    def __getitem__(self, model: str) -> np.ndarray:
        try:
            return self.draws[model]
        except KeyError:
            raise KeyError(f"No posterior for model '{model}'. Available: {self.models}") from None

    def __contains__(self, model: str) -> bool:
        return model in self.draws

    def to_frame(self) -> pd.DataFrame:
        """Long DataFrame with columns model, draw, value."""
        frames = [
            pd.DataFrame({"model": model, "draw": np.arange(len(values)), "value": values})
            for model, values in self.draws.items()
        ]
        return pd.concat(frames, ignore_index=True)
