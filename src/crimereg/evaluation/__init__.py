"""
Evaluation: fit-quality metrics, reporting and experiment tracking.
"""

from crimereg.evaluation.metrics import (
    FitMetrics,
    adjusted_r2,
    compute_fit_metrics,
    evaluate_model,
    r2_from_rmse,
)

__all__ = [
    "FitMetrics",
    "adjusted_r2",
    "compute_fit_metrics",
    "evaluate_model",
    "r2_from_rmse",
]
