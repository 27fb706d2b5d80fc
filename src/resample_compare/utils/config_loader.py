"""
Configuration file loading and validation utilities.
"""

from typing import Any, Dict, Optional
from pathlib import Path
import yaml
from dataclasses import dataclass, field, asdict
import logging

from resample_compare.bayesian.priors import PriorSpec
from resample_compare.evaluation.significance_testing import CORRECTION_METHODS

logger = logging.getLogger(__name__)


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Configuration dictionary
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def save_config(config: Dict[str, Any], output_path: Path) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        output_path: Path to save config
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Saved configuration to {output_path}")


@dataclass
class SamplerConfig:
    """Configuration for the MCMC sampler."""

    chains: int = 4
    iterations: int = 2000  # per chain, warm-up included
    warmup_fraction: float = 0.5
    seed: int = 1101
    target_accept: float = 0.9
    cores: int = 1

    def __post_init__(self):
        if self.chains < 1:
            raise ValueError(f"chains must be at least 1, got {self.chains}")
        if self.iterations < 2:
            raise ValueError(f"iterations must be at least 2, got {self.iterations}")
        if not 0 <= self.warmup_fraction < 1:
            raise ValueError(f"warmup_fraction must be in [0, 1), got {self.warmup_fraction}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "SamplerConfig":
        """Create from dictionary."""
        return cls(**config_dict)


@dataclass
class ContrastConfig:
    """Configuration for posterior contrasts."""

    rope: float = 0.0  # practical equivalence half-width, 0 = not computed
    credible_level: float = 0.90

    def __post_init__(self):
        if self.rope < 0:
            raise ValueError(f"rope must be non-negative, got {self.rope}")
        if not 0 < self.credible_level < 1:
            raise ValueError(f"credible_level must be in (0, 1), got {self.credible_level}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ContrastConfig":
        """Create from dictionary."""
        return cls(**config_dict)


@dataclass
class DiagnosticsConfig:
    """Thresholds used to flag unreliable posterior draws."""

    rhat_threshold: float = 1.01
    min_ess: float = 400.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "DiagnosticsConfig":
        """Create from dictionary."""
        return cls(**config_dict)


@dataclass
class ComparisonConfig:
    """Full configuration of a resampled model comparison."""

    metric: str = "rsq"
    reference_model: Optional[str] = None
    correction: str = "holm"  # none, bonferroni, holm, fdr_bh
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    priors: PriorSpec = field(default_factory=PriorSpec)
    contrasts: ContrastConfig = field(default_factory=ContrastConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)

    def __post_init__(self):
        if self.correction not in CORRECTION_METHODS:
            raise ValueError(
                f"Unknown correction: {self.correction}. Available: {sorted(CORRECTION_METHODS)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "ComparisonConfig":
        """Create from dictionary."""
        config_dict = dict(config_dict)
        nested = {
            "sampler": SamplerConfig,
            "priors": PriorSpec,
            "contrasts": ContrastConfig,
            "diagnostics": DiagnosticsConfig,
        }
        for key, section_cls in nested.items():
            if key in config_dict and isinstance(config_dict[key], dict):
                config_dict[key] = section_cls.from_dict(config_dict[key])
        return cls(**config_dict)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ComparisonConfig":
        """Load from YAML file."""
        config_dict = load_config(yaml_path)
        return cls.from_dict(config_dict)


def merge_configs(
    default_config: Dict[str, Any],
    user_config: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Merge user config with default config.

    Args:
        default_config: Default configuration
        user_config: User-provided configuration

    Returns:
        Merged configuration (user overrides defaults)
    """
    merged = default_config.copy()

    for key, value in user_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            # Recursively merge nested dictionaries
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged
