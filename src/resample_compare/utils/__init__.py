"""
Configuration and logging utilities.
"""

from .config_loader import ComparisonConfig, load_config, save_config
from .logging_utils import setup_logger

__all__ = [
    "ComparisonConfig",
    "load_config",
    "save_config",
    "setup_logger",
]
