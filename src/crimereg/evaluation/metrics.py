"""
Fit-quality metrics for regression models.

Provides RMSE, R² and Adjusted R² with explicit errors where a metric
is mathematically undefined.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error, r2_score

from crimereg.errors import DegenerateModelError
from crimereg.utils.logging import get_logger

if TYPE_CHECKING:
    from crimereg.modeling.glm import FittedGLM

log = get_logger(__name__)


@dataclass(frozen=True)
class FitMetrics:
    """
    Fit-quality metrics on one partition.

    Attributes:
        rmse: Root Mean Squared Error
        r2: R² (coefficient of determination)
        adj_r2: R² adjusted for sample size and feature count
        n_samples: Number of rows (n)
        n_features: Number of model features (k), intercept excluded
    """

    rmse: float
    r2: float
    adj_r2: float
    n_samples: int
    n_features: int

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "rmse": self.rmse,
            "r2": self.r2,
            "adj_r2": self.adj_r2,
            "n_samples": self.n_samples,
            "n_features": self.n_features,
        }

    def __str__(self) -> str:
        """String representation."""
        return (
            f"RMSE={self.rmse:.4f}, R²={self.r2:.4f}, "
            f"Adj. R²={self.adj_r2:.4f} (n={self.n_samples}, k={self.n_features})"
        )


def total_sum_of_squares(y_true: np.ndarray) -> float:
    """Sum of squared deviations from the mean."""
    y_true = np.asarray(y_true, dtype=float).ravel()
    return float(np.sum((y_true - y_true.mean()) ** 2))


def adjusted_r2(r2: float, n_samples: int, n_features: int) -> float:
    """
    Adjust R² for the number of features.

    Args:
        r2: Unadjusted R².
        n_samples: Number of rows (n).
        n_features: Number of features (k).

    Returns:
        1 - (1 - R²)(n - 1)/(n - k - 1)

    Raises:
        DegenerateModelError: If n - k - 1 <= 0.
    """
    dof = n_samples - n_features - 1
    if dof <= 0:
        msg = (
            f"Adjusted R² undefined: n - k - 1 = {dof} "
            f"(n={n_samples}, k={n_features})"
        )
        raise DegenerateModelError(msg)
    return 1.0 - (1.0 - r2) * (n_samples - 1) / dof


def r2_from_rmse(rmse: float, y_true: np.ndarray) -> float:
    """
    Recover R² from RMSE and the observed values.

    Uses RSS = n * RMSE², so R² = 1 - n * RMSE² / TSS.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    tss = total_sum_of_squares(y_true)
    if tss == 0.0:
        msg = "R² undefined: observed values have zero variance"
        raise DegenerateModelError(msg)
    return 1.0 - len(y_true) * rmse**2 / tss


def compute_fit_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    n_features: int,
) -> FitMetrics:
    """
    Compute RMSE, R² and Adjusted R².

    Args:
        y_true: Observed values.
        y_pred: Predicted values.
        n_features: Number of model features (k).

    Returns:
        FitMetrics object.

    Raises:
        ValueError: If the arrays are empty or differ in length.
        DegenerateModelError: If R² or Adjusted R² is undefined.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    if len(y_true) == 0:
        msg = "Cannot compute metrics on empty arrays"
        raise ValueError(msg)
    if len(y_true) != len(y_pred):
        msg = f"Length mismatch: {len(y_true)} observed vs {len(y_pred)} predicted"
        raise ValueError(msg)
    if total_sum_of_squares(y_true) == 0.0:
        msg = "R² undefined: observed values have zero variance"
        raise DegenerateModelError(msg)

    n_samples = len(y_true)
    r2 = float(r2_score(y_true, y_pred))
    metrics = FitMetrics(
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        r2=r2,
        adj_r2=adjusted_r2(r2, n_samples, n_features),
        n_samples=n_samples,
        n_features=n_features,
    )

    log.debug("Computed metrics", **metrics.to_dict())
    return metrics


def evaluate_model(
    model: "FittedGLM", frame: pd.DataFrame
) -> tuple[FitMetrics, np.ndarray]:
    """
    Predict a partition and compute its metrics.

    Args:
        model: Fitted model.
        frame: Partition containing the model's features and target.

    Returns:
        Tuple of (FitMetrics, predictions).
    """
    y_pred = model.predict(frame)
    metrics = compute_fit_metrics(
        frame[model.target].to_numpy(), y_pred, n_features=len(model.features)
    )
    return metrics, y_pred


def compute_residual_stats(
    y_true: np.ndarray,
    y_pred: np.ndarray,
) -> dict[str, float]:
    """
    Compute residual statistics.

    Args:
        y_true: True values.
        y_pred: Predicted values.

    Returns:
        Dictionary with residual statistics.
    """
    residuals = np.asarray(y_true, dtype=float) - np.asarray(y_pred, dtype=float)

    return {
        "residual_mean": float(np.mean(residuals)),
        "residual_std": float(np.std(residuals)),
        "residual_median": float(np.median(residuals)),
        "residual_min": float(np.min(residuals)),
        "residual_max": float(np.max(residuals)),
    }
