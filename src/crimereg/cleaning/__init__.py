"""
Data cleaning: outlier capping at the IQR whiskers.
"""

from crimereg.cleaning.outliers import (
    CappingResult,
    ColumnCapping,
    WhiskerBounds,
    cap_outliers,
    compute_whiskers,
)

__all__ = [
    "CappingResult",
    "ColumnCapping",
    "WhiskerBounds",
    "cap_outliers",
    "compute_whiskers",
]
