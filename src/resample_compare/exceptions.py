"""
Errors raised when resampled metric data cannot support a comparison.

All errors derive from ValueError so callers that already guard numerical
routines with ``except ValueError`` keep working.
"""


class ResampleCompareError(ValueError):
    """Base class for comparison input errors."""


class AlignmentError(ResampleCompareError):
    """Fold sets differ between the models being compared."""


class InsufficientSamplesError(ResampleCompareError):
    """Too few folds (or models) for the requested test or fit."""


class DegenerateModelInputError(ResampleCompareError):
    """Metric values with zero variance or non-finite entries."""
