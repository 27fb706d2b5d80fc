"""
Frequentist comparison of resampled performance statistics.

Modules:
--------
- metrics: Performance metrics computed on each assessment set
- metric_table: Long/wide metric tables and the resample-to-resample effect
- significance_testing: Paired difference tests, p-value correction, blocked ANOVA

Example:
--------
>>> from resample_compare.evaluation import metric_table, significance_testing
>>>
>>> table = metric_table.build_metric_table(long_metrics)
>>> result = significance_testing.paired_difference_test(table["rf"], table["lm"])
>>> print(f"{result.estimate:.3f} [{result.confidence_interval[0]:.3f}, "
...       f"{result.confidence_interval[1]:.3f}], p = {result.p_value:.4f}")
"""

from . import metrics
from . import metric_table
from . import significance_testing

__all__ = [
    "metrics",
    "metric_table",
    "significance_testing",
]
