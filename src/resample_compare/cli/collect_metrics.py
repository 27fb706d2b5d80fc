#!/usr/bin/env python
"""
Collect resampled performance statistics for several regression models.

Every model is fit and scored on the same V-fold cross-validation folds, so the
resulting per-fold metrics can be compared with paired methods.

Example usage:
    # 10-fold CV, R² for three model types
    rcomp-collect --data housing.csv --target price \\
                  --model-types linear,splines,random_forest \\
                  --output housing_rsq.csv

    # Repeated CV with RMSE
    rcomp-collect --data housing.csv --target price \\
                  --metric rmse --folds 5 --repeats 3 --output housing_rmse.csv
"""

import argparse
import sys
from pathlib import Path
import numpy as np
import pandas as pd
from loguru import logger

from resample_compare.evaluation.metrics import METRIC_REGISTRY, SCORE_METRICS
from resample_compare.resampling.collector import collect_metrics_for_models
from resample_compare.resampling.estimators import MODEL_TYPES, build_estimators
from resample_compare.resampling.folds import make_folds
from resample_compare.utils.logging_utils import setup_logger


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Collect per-fold performance metrics for candidate models",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --data housing.csv --target price \\
           --model-types linear,splines,random_forest --output rsq.csv

  %(prog)s --data housing.csv --target price --features area,age \\
           --metric rmse --folds 5 --repeats 3 --output rmse.csv
        """
    )

    parser.add_argument(
        "--data",
        type=Path,
        required=True,
        help="Dataset CSV with outcome and predictor columns",
    )
    parser.add_argument(
        "--target",
        type=str,
        required=True,
        help="Outcome column",
    )
    parser.add_argument(
        "--features",
        type=str,
        help="Predictor columns (comma-separated). Default: all other numeric columns",
    )
    parser.add_argument(
        "--model-types",
        type=str,
        default="linear,random_forest",
        help=f"Model types (comma-separated) from: {', '.join(MODEL_TYPES)}",
    )
    parser.add_argument(
        "--metric",
        type=str,
        default="rsq",
        choices=sorted(set(METRIC_REGISTRY) - SCORE_METRICS - {"accuracy"}),
        help="Performance metric (default: rsq)",
    )
    parser.add_argument(
        "--folds",
        type=int,
        default=10,
        help="Number of cross-validation folds (default: 10)",
    )
    parser.add_argument(
        "--repeats",
        type=int,
        default=1,
        help="Number of repeats of V-fold CV (default: 1)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=1001,
        help="Random seed for folds and models (default: 1001)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Output CSV (long form: fold_id, model, value)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    return parser.parse_args()


def main() -> None:
    """Entry point for CLI."""
    args = parse_args()
    setup_logger(log_level=args.log_level)

    if not args.data.exists():
        logger.error(f"Data file not found: {args.data}")
        sys.exit(1)

    logger.info(f"Loading data from {args.data}")
    df = pd.read_csv(args.data)

    if args.target not in df.columns:
        logger.error(f"Target column '{args.target}' not found in data")
        sys.exit(1)

    if args.features:
        features = [f.strip() for f in args.features.split(',')]
        missing = [f for f in features if f not in df.columns]
        if missing:
            logger.error(f"Feature columns not found: {missing}")
            sys.exit(1)
    else:
        features = [
            c for c in df.select_dtypes(include=[np.number]).columns if c != args.target
        ]
    if not features:
        logger.error("No predictor columns available")
        sys.exit(1)

    df = df.dropna(subset=features + [args.target])
    X = df[features].to_numpy(dtype=float)
    y = df[args.target].to_numpy(dtype=float)
    logger.info(f"{len(y)} rows, {len(features)} predictors")

    model_types = [m.strip() for m in args.model_types.split(',') if m.strip()]
    try:
        models = build_estimators(model_types, random_state=args.seed)
        folds = make_folds(
            len(y), n_splits=args.folds, n_repeats=args.repeats, random_state=args.seed
        )
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.info(f"Resampling {len(models)} model(s) over {len(folds)} folds")
    metrics = collect_metrics_for_models(models, X, y, folds, metric=args.metric, show_progress=True)
    metrics.insert(2, "metric", args.metric)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    metrics.to_csv(args.output, index=False)
    logger.info(f"Metrics saved to {args.output}")

    summary = metrics.groupby("model", sort=False)["value"].agg(["mean", "std"])
    logger.info(f"\n{'Model':<20} {'Mean':<10} {'SD':<10}")
    logger.info("-" * 40)
    for model_name, row in summary.iterrows():
        logger.info(f"{model_name:<20} {row['mean']:<10.4f} {row['std']:<10.4f}")

    logger.success(f"Collected {len(metrics)} per-fold values")


if __name__ == "__main__":
    main()
