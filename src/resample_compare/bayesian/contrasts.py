"""
Posterior contrasts between models and practical equivalence.

A contrast is the posterior of the difference ``A - B``, formed draw by draw.
From it we report the mean, an equal-tailed credible interval, the probability
that A is better (difference > 0) and, given a tolerance ``rope``, the
probability that the two models are practically equivalent
(``|difference| <= rope``).

Contrasts are cheap: they reuse the posterior draws, so trying several
tolerances never requires refitting the model.

Literature:
-----------
- Kruschke (2018) "Rejecting or Accepting Parameter Values in Bayesian
  Estimation" Advances in Methods and Practices in Psychological Science 1(2)
- Benavoli et al. (2017) "Time for a Change: a Tutorial for Comparing Multiple
  Classifiers Through Bayesian Analysis" JMLR 18(77):1-36

NOTE: With ``rope = 0`` the equivalence probability of a continuous posterior
is essentially zero, so it is not reported. Choose a tolerance that is
meaningful for the metric (e.g. 0.02 in R²).
"""

from dataclasses import asdict, dataclass
from itertools import combinations
from typing import List, Optional, Sequence, Tuple
import numpy as np
import pandas as pd
from loguru import logger

from resample_compare.bayesian.posterior import PosteriorSamples


@dataclass(frozen=True)
class ContrastSummary:
    """Summary of the posterior of a difference between two models."""
    contrast: str
    model_a: str
    model_b: str
    mean: float
    lower: float
    upper: float
    level: float
    prob_positive: float
    rope: float
    prob_practical_equivalence: Optional[float]
    n_draws: int

    def to_dict(self) -> dict:
        return asdict(self)


def _check_level(level: float) -> None:
    if not 0 < level < 1:
        raise ValueError(f"Credible level must be in (0, 1), got {level}")


def _check_rope(rope: float) -> None:
    if rope < 0:
        raise ValueError(f"rope must be non-negative, got {rope}")


def credible_interval(draws: np.ndarray, level: float = 0.90) -> Tuple[float, float]:
    """Equal-tailed credible interval of ``draws``."""
    _check_level(level)
    alpha = 1 - level
    lower, upper = np.quantile(draws, [alpha / 2, 1 - alpha / 2])
    return float(lower), float(upper)


def pool_draws(
    draws_a: np.ndarray,
    draws_b: np.ndarray,
    seed: Optional[int] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Bring two sets of draws to the same length.

    Sets of equal length are returned unchanged (paired draw by draw). Otherwise
    the shorter set is resampled with replacement, independently, up to the
    length of the longer one.
    """
    draws_a = np.asarray(draws_a, dtype=float).ravel()
    draws_b = np.asarray(draws_b, dtype=float).ravel()
    if len(draws_a) == 0 or len(draws_b) == 0:
        raise ValueError("Posterior draws must not be empty")
    if len(draws_a) == len(draws_b):
        return draws_a, draws_b

    rng = np.random.default_rng(seed)
    n = max(len(draws_a), len(draws_b))
    logger.debug(f"Resampling posterior draws to a common length of {n}")
    if len(draws_a) < n:
        draws_a = rng.choice(draws_a, size=n, replace=True)
    else:
        draws_b = rng.choice(draws_b, size=n, replace=True)
    return draws_a, draws_b


def practical_equivalence(differences: np.ndarray, rope: float) -> float:
    """Fraction of difference draws inside ``[-rope, rope]``."""
    _check_rope(rope)
    differences = np.asarray(differences, dtype=float)
    return float(np.mean(np.abs(differences) <= rope))


def rope_curve(differences: np.ndarray, ropes: Sequence[float]) -> pd.DataFrame:
    """
    Practical-equivalence probability over a grid of tolerances.

    Returns:
        DataFrame with columns ``rope`` and ``prob_practical_equivalence``
    """
    ropes = np.sort(np.asarray(ropes, dtype=float))
    probs = [practical_equivalence(differences, r) for r in ropes]
    return pd.DataFrame({"rope": ropes, "prob_practical_equivalence": probs})


def contrast_models(
    samples_a: np.ndarray,
    samples_b: np.ndarray,
    rope: float = 0.0,
    level: float = 0.90,
    model_a: str = "A",
    model_b: str = "B",
    seed: Optional[int] = None,
) -> ContrastSummary:
    """
    Summarize the posterior of the difference between two models.

    Parameters:
    -----------
    samples_a : np.ndarray
        Posterior draws of model A's mean metric
    samples_b : np.ndarray
        Posterior draws of model B's mean metric
    rope : float
        Half-width of the region of practical equivalence (default: 0, not computed)
    level : float
        Credible interval level (default: 0.90)
    model_a, model_b : str
        Labels used in the contrast name
    seed : Optional[int]
        Seed for resampling when the two sets differ in length

    Returns:
    --------
    summary : ContrastSummary

    Example:
    --------
    >>> summary = contrast_models(posterior["rf"], posterior["lm"], rope=0.02)
    >>> print(f"P(rf > lm) = {summary.prob_positive:.3f}")
    >>> print(f"P(equivalent) = {summary.prob_practical_equivalence:.3f}")
    """
    _check_rope(rope)
    _check_level(level)

    draws_a, draws_b = pool_draws(samples_a, samples_b, seed=seed)
    differences = draws_a - draws_b
    lower, upper = credible_interval(differences, level)

    return ContrastSummary(
        contrast=f"{model_a} vs {model_b}",
        model_a=model_a,
        model_b=model_b,
        mean=float(np.mean(differences)),
        lower=lower,
        upper=upper,
        level=level,
        prob_positive=float(np.mean(differences > 0)),
        rope=float(rope),
        prob_practical_equivalence=practical_equivalence(differences, rope) if rope > 0 else None,
        n_draws=len(differences),
    )


def contrast_from_posterior(
    posterior: PosteriorSamples,
    model_a: str,
    model_b: str,
    rope: float = 0.0,
    level: float = 0.90,
) -> ContrastSummary:
    """Contrast two models of a fitted posterior (``model_a - model_b``)."""
    return contrast_models(
        posterior[model_a],
        posterior[model_b],
        rope=rope,
        level=level,
        model_a=model_a,
        model_b=model_b,
        seed=posterior.seed,
    )


def contrast_all_pairs(
    posterior: PosteriorSamples,
    rope: float = 0.0,
    level: float = 0.90,
) -> pd.DataFrame:
    """
    Contrasts for every pair of models, in posterior model order.

    Returns:
        DataFrame with one row per ContrastSummary
    """
    rows: List[dict] = []
    for model_a, model_b in combinations(posterior.models, 2):
        summary = contrast_from_posterior(posterior, model_a, model_b, rope=rope, level=level)
        rows.append(summary.to_dict())
    return pd.DataFrame(rows)


def summarize_posterior(posterior: PosteriorSamples, level: float = 0.90) -> pd.DataFrame:
    """
    Mean and credible interval of each model's mean metric.

    Returns:
        DataFrame with columns model, mean, lower, upper, level
    """
    rows = []
    for model in posterior.models:
        draws = posterior[model]
        lower, upper = credible_interval(draws, level)
        rows.append({
            "model": model,
            "mean": float(np.mean(draws)),
            "lower": lower,
            "upper": upper,
            "level": level,
        })
    return pd.DataFrame(rows)


def difference_draws(posterior: PosteriorSamples, model_a: str, model_b: str) -> np.ndarray:
    """Posterior draws of ``model_a - model_b``."""
    draws_a, draws_b = pool_draws(posterior[model_a], posterior[model_b], seed=posterior.seed)
    return draws_a - draws_b
