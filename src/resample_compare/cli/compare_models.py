#!/usr/bin/env python
"""
Compare models evaluated on the same resampling folds.

Runs both analyses on a table of per-fold metrics:
- Paired difference t-tests for every pair of models (with p-value correction)
- A Bayesian random-intercept model giving posterior distributions of each
  model's mean metric, their pairwise differences and, with --rope, the
  probability of practical equivalence

Example usage:
    # Long-form metrics (fold_id, model, value)
    rcomp-compare --metrics housing_rsq.csv --output-dir comparison/

    # Practical equivalence within 0.02 R², more sampling
    rcomp-compare --metrics housing_rsq.csv --rope 0.02 \\
                  --chains 4 --iterations 4000 --output-dir comparison/

    # Settings from YAML
    rcomp-compare --metrics housing_rsq.csv --config comparison.yaml
"""

import argparse
import json
import sys
from pathlib import Path
import pandas as pd
from loguru import logger

from resample_compare.bayesian.contrasts import (
    contrast_all_pairs,
    difference_draws,
    summarize_posterior,
)
from resample_compare.bayesian.engine import PosteriorEngine, PyMCEngine
from resample_compare.bayesian.hierarchical import HierarchicalPosteriorEstimator
from resample_compare.evaluation.metric_table import (
    FOLD_COL,
    MODEL_COL,
    VALUE_COL,
    build_metric_table,
    correlation_tests,
    resample_correlation,
)
from resample_compare.evaluation.significance_testing import (
    CORRECTION_METHODS,
    blocked_anova,
    pairwise_paired_tests,
)
from resample_compare.evaluation.metrics import LOWER_IS_BETTER
from resample_compare.utils.config_loader import ComparisonConfig
from resample_compare.utils.logging_utils import (
    add_run_log,
    log_analysis_end,
    log_analysis_start,
    setup_logger,
)
from resample_compare.visualization import plot_contrast, plot_fold_profiles, plot_posteriors


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Compare resampled model performance (paired tests + Bayesian posterior)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --metrics rsq.csv --output-dir comparison/
  %(prog)s --metrics rsq.csv --rope 0.02 --chains 4 --iterations 4000
  %(prog)s --metrics wide.csv --format wide --fold-col id
        """
    )

    parser.add_argument(
        "--metrics",
        type=Path,
        required=True,
        help="CSV of per-fold metrics (long: fold_id, model, value; or wide: one column per model)",
    )
    parser.add_argument(
        "--format",
        type=str,
        default="auto",
        choices=["auto", "long", "wide"],
        help="Layout of the metrics CSV (default: auto)",
    )
    parser.add_argument("--fold-col", type=str, default=FOLD_COL, help="Fold id column")
    parser.add_argument("--model-col", type=str, default=MODEL_COL, help="Model id column (long)")
    parser.add_argument("--value-col", type=str, default=VALUE_COL, help="Metric value column (long)")
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML configuration (sampler, priors, contrasts, diagnostics)",
    )
    parser.add_argument("--metric", type=str, help="Metric name used in labels")
    parser.add_argument("--reference-model", type=str, help="Reference model of the Bayesian fit")
    parser.add_argument(
        "--correction",
        type=str,
        choices=sorted(CORRECTION_METHODS),
        help="Multiple comparison correction for paired tests",
    )
    parser.add_argument("--chains", type=int, help="Number of MCMC chains")
    parser.add_argument("--iterations", type=int, help="Iterations per chain, warm-up included")
    parser.add_argument("--warmup-fraction", type=float, help="Fraction of each chain used as warm-up")
    parser.add_argument("--seed", type=int, help="Random seed for the sampler")
    parser.add_argument("--rope", type=float, help="Practical equivalence half-width")
    parser.add_argument("--level", type=float, help="Credible interval level")
    parser.add_argument(
        "--no-bayes",
        action="store_true",
        help="Only run the paired tests",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip plot generation",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("comparison"),
        help="Output directory (default: comparison)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    return parser.parse_args()


def build_config(args: argparse.Namespace) -> ComparisonConfig:
    """Load the YAML config (if any) and apply command-line overrides."""
    config = ComparisonConfig.from_yaml(args.config) if args.config else ComparisonConfig()

    if args.metric is not None:
        config.metric = args.metric
    if args.reference_model is not None:
        config.reference_model = args.reference_model
    if args.correction is not None:
        config.correction = args.correction

    sampler_overrides = {
        "chains": args.chains,
        "iterations": args.iterations,
        "warmup_fraction": args.warmup_fraction,
        "seed": args.seed,
    }
    sampler = config.sampler.to_dict()
    sampler.update({k: v for k, v in sampler_overrides.items() if v is not None})
    config.sampler = type(config.sampler).from_dict(sampler)

    contrasts = config.contrasts.to_dict()
    if args.rope is not None:
        contrasts["rope"] = args.rope
    if args.level is not None:
        contrasts["credible_level"] = args.level
    config.contrasts = type(config.contrasts).from_dict(contrasts)

    return config


def build_engine() -> PosteriorEngine:
    """Posterior engine used by the CLI."""
    return PyMCEngine()


def load_metric_table(args: argparse.Namespace) -> pd.DataFrame:
    """Read the metrics CSV into a wide metric table."""
    df = pd.read_csv(args.metrics)

    layout = args.format
    if layout == "auto":
        long_cols = {args.fold_col, args.model_col, args.value_col}
        layout = "long" if long_cols <= set(df.columns) else "wide"
    logger.info(f"Reading {layout}-form metrics from {args.metrics}")

    if layout == "long":
        return build_metric_table(
            df, fold_col=args.fold_col, model_col=args.model_col, value_col=args.value_col
        )

    if args.fold_col not in df.columns:
        raise ValueError(f"Fold id column '{args.fold_col}' not found in wide metrics")
    long = df.melt(id_vars=args.fold_col, var_name=MODEL_COL, value_name=VALUE_COL)
    return build_metric_table(long, fold_col=args.fold_col)


def main() -> None:
    """Entry point for CLI."""
    args = parse_args()
    setup_logger(log_level=args.log_level)

    if not args.metrics.exists():
        logger.error(f"Metrics file not found: {args.metrics}")
        sys.exit(1)

    try:
        config = build_config(args)
        table = load_metric_table(args)
        if config.reference_model is not None and config.reference_model not in table.columns:
            raise ValueError(
                f"Reference model '{config.reference_model}' not in metric table. "
                f"Available: {list(table.columns)}"
            )
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        sys.exit(1)

    run_log = add_run_log(args.output_dir, "compare_models")

    log_analysis_start("resampled model comparison", {
        "metrics": args.metrics,
        "models": list(table.columns),
        "folds": table.shape[0],
        "metric": config.metric,
        "correction": config.correction,
        "chains": config.sampler.chains,
        "iterations": config.sampler.iterations,
        "seed": config.sampler.seed,
        "rope": config.contrasts.rope,
    })

    results = {}

    try:
        # Resample-to-resample effect
        if table.shape[0] >= 3:
            correlation = resample_correlation(table)
            correlation.to_csv(args.output_dir / "resample_correlation.csv")
            correlation_tests(table).to_csv(
                args.output_dir / "resample_correlation_tests.csv", index=False
            )
            logger.info(f"Correlation of {config.metric} across folds:\n{correlation.round(3)}")

        # Frequentist comparison
        paired = pairwise_paired_tests(table, correction=config.correction)
        paired.to_csv(args.output_dir / "paired_tests.csv", index=False)
        results["paired_tests"] = len(paired)

        anova = blocked_anova(table, reference_model=config.reference_model)
        anova.anova_table.to_csv(args.output_dir / "blocked_anova.csv")
        results["anova_p_value"] = f"{anova.p_value:.4g}"

        logger.info("\n" + "=" * 70)
        logger.info("PAIRED DIFFERENCE TESTS")
        logger.info("=" * 70)
        logger.info(f"{'Contrast':<35} {'Diff':<10} {'p':<10} {'p adj':<10}")
        logger.info("-" * 70)
        for _, row in paired.iterrows():
            contrast = f"{row['model_a']} - {row['model_b']}"
            logger.info(
                f"{contrast:<35} {row['estimate']:<10.4f} {row['p_value']:<10.4g} "
                f"{row['p_adjusted']:<10.4g}"
            )

        # Bayesian comparison
        posterior = None
        if not args.no_bayes:
            estimator = HierarchicalPosteriorEstimator.from_config(config, engine=build_engine())
            posterior = estimator.fit(table, reference_model=config.reference_model)

            level = config.contrasts.credible_level
            summary = summarize_posterior(posterior, level=level)
            summary.to_csv(args.output_dir / "posterior_summary.csv", index=False)

            contrasts = contrast_all_pairs(posterior, rope=config.contrasts.rope, level=level)
            if config.metric in LOWER_IS_BETTER:
                logger.info(f"Lower {config.metric} is better: P(A better) = P(A - B < 0)")
                contrasts["prob_a_better"] = 1 - contrasts["prob_positive"]
            else:
                contrasts["prob_a_better"] = contrasts["prob_positive"]
            contrasts.to_csv(args.output_dir / "contrasts.csv", index=False)

            if posterior.diagnostics is not None:
                with open(args.output_dir / "diagnostics.json", 'w') as f:
                    json.dump(posterior.diagnostics.to_dict(), f, indent=2)
                results["converged"] = posterior.diagnostics.converged

            logger.info("\n" + "=" * 70)
            logger.info("POSTERIOR CONTRASTS")
            logger.info("=" * 70)
            for _, row in contrasts.iterrows():
                equivalence = row["prob_practical_equivalence"]
                equivalence = "n/a" if pd.isna(equivalence) else f"{equivalence:.3f}"
                logger.info(
                    f"{row['contrast']:<35} mean {row['mean']:.4f} "
                    f"[{row['lower']:.4f}, {row['upper']:.4f}] "
                    f"P(A better) {row['prob_a_better']:.3f}  P(equiv) {equivalence}"
                )
            results["contrasts"] = len(contrasts)

    except ValueError as e:
        logger.error(f"{type(e).__name__}: {e}")
        logger.remove(run_log)
        sys.exit(1)

    if not args.no_plots:
        plot_fold_profiles(table, args.output_dir / "fold_profiles.png", metric=config.metric)
        if posterior is not None:
            plot_posteriors(posterior, args.output_dir / "posterior_densities.png", metric=config.metric)
            reference = posterior.reference_model
            for model in posterior.models[1:]:
                plot_contrast(
                    difference_draws(posterior, model, reference),
                    args.output_dir / f"contrast_{model}_vs_{reference}.png",
                    rope=config.contrasts.rope,
                    title=f"{model} - {reference}",
                )
        logger.info(f"Plots saved to {args.output_dir}")

    log_analysis_end("resampled model comparison", results)
    logger.success(f"\n✓ Comparison complete! Results in {args.output_dir}")
    logger.remove(run_log)


if __name__ == "__main__":
    main()
