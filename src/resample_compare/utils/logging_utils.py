"""
Structured logging utilities.
"""

import sys
from pathlib import Path
from loguru import logger
from typing import Optional


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: str = "30 days",
    format_string: Optional[str] = None,
) -> None:
    """
    Configure loguru logger with console and file handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Path to log file (None = console only)
        rotation: Log rotation policy (e.g., "10 MB", "1 day")
        retention: Log retention policy (e.g., "30 days", "1 week")
        format_string: Custom format string
    """
    logger.remove()

    if format_string is None:
        format_string = (
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
            "<level>{message}</level>"
        )

    logger.add(
        sys.stderr,
        format=format_string,
        level=log_level,
        colorize=True,
    )

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=format_string,
            level=log_level,
            rotation=rotation,
            retention=retention,
            compression="zip",
        )
        logger.info(f"Logging to file: {log_file}")


def _log_block(title: str, values: dict) -> None:
    logger.info("=" * 80)
    logger.info(title)
    logger.info("=" * 80)
    for key, value in values.items():
        logger.info(f"  {key}: {value}")
    logger.info("=" * 80)


def log_analysis_start(analysis_name: str, config: dict) -> None:
    """
    Log the start of a comparison with its configuration.

    Args:
        analysis_name: Name of the analysis
        config: Configuration dictionary
    """
    _log_block(f"Starting analysis: {analysis_name}", config)


def log_analysis_end(analysis_name: str, results: dict) -> None:
    """
    Log the end of a comparison with headline results.

    Args:
        analysis_name: Name of the analysis
        results: Results dictionary
    """
    _log_block(f"Analysis completed: {analysis_name}", results)


def add_run_log(output_dir: Path, name: str, log_level: str = "DEBUG") -> int:
    """
    Keep a complete log of one run next to its outputs.

    Writes ``<output_dir>/<name>.log`` without colors, overwriting the log of a
    previous run into the same directory.

    Args:
        output_dir: Directory holding the run's results
        name: Log file stem (usually the CLI name)
        log_level: Lowest level written to the file

    Returns:
        loguru handler id; pass it to ``logger.remove`` to close the file
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / f"{name}.log"
    handler_id = logger.add(
        log_path,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
        level=log_level,
        mode="w",
        colorize=False,
    )
    logger.debug(f"Run log: {log_path}")
    return handler_id
