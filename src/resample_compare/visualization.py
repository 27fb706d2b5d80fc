"""
Plots for resampled model comparisons.

- Fold profiles: one line per fold across models. Roughly parallel lines are
  the visual signature of the resample-to-resample effect.
- Posterior densities: one histogram per model's mean metric.
- Contrast: posterior of a difference with the practical-equivalence band.
"""

from pathlib import Path
from typing import Optional
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
from loguru import logger

from resample_compare.bayesian.posterior import PosteriorSamples


def plot_fold_profiles(table: pd.DataFrame, output_path: Path, metric: str = "rsq") -> Path:
    """Plot each fold's metric across models."""
    fig, ax = plt.subplots(figsize=(max(6, 1.5 * table.shape[1]), 5))
    x = np.arange(table.shape[1])

    for fold_id, row in table.iterrows():
        ax.plot(x, row.values, marker='o', alpha=0.6, label=str(fold_id))

    ax.set_xticks(x)
    ax.set_xticklabels(table.columns, rotation=45, ha='right')
    ax.set_ylabel(metric)
    ax.set_title('Resampled performance by fold')
    ax.grid(axis='y', alpha=0.3)
    if table.shape[0] <= 12:
        ax.legend(fontsize=7, ncol=2, loc='best')

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.debug(f"Saved fold profiles to {output_path}")
    return output_path


def plot_posteriors(
    posterior: PosteriorSamples,
    output_path: Path,
    metric: str = "rsq",
    bins: int = 50,
) -> Path:
    """Overlay histograms of each model's posterior mean metric."""
    fig, ax = plt.subplots(figsize=(7, 5))
    for model in posterior.models:
        ax.hist(posterior[model], bins=bins, alpha=0.5, density=True, label=model)

    ax.set_xlabel(f'Posterior mean {metric}')
    ax.set_ylabel('Density')
    ax.set_title('Posterior distributions of mean performance')
    ax.legend()
    ax.grid(alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    logger.debug(f"Saved posterior densities to {output_path}")
    return output_path


def plot_contrast(
    differences: np.ndarray,
    output_path: Path,
    rope: Optional[float] = None,
    title: str = 'Posterior of the difference',
    bins: int = 50,
) -> Path:
    """Histogram of difference draws, with the ±rope band shaded."""
    fig, ax = plt.subplots(figsize=(7, 5))
    ax.hist(differences, bins=bins, density=True, color='steelblue', alpha=0.8)
    ax.axvline(0.0, color='black', linestyle='--', linewidth=1)
    if rope:
        ax.axvspan(-rope, rope, color='orange', alpha=0.2, label=f'ROPE ±{rope:g}')
        ax.legend()

    ax.set_xlabel('Difference')
    ax.set_ylabel('Density')
    ax.set_title(title)
    ax.grid(alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_path
