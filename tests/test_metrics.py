"""Tests for fit-quality metrics."""

import numpy as np
import pytest

from crimereg.errors import DegenerateModelError
from crimereg.evaluation import adjusted_r2, compute_fit_metrics, r2_from_rmse
from crimereg.evaluation.metrics import compute_residual_stats


class TestComputeFitMetrics:
    """Tests for compute_fit_metrics."""

    def test_perfect_fit(self) -> None:
        """Test metrics when predictions equal observations."""
        y = np.array([0.1, 0.4, 0.2, 0.8, 0.5])

        metrics = compute_fit_metrics(y, y, n_features=2)

        assert metrics.rmse == pytest.approx(0.0)
        assert metrics.r2 == pytest.approx(1.0)
        assert metrics.adj_r2 == pytest.approx(1.0)

    def test_known_values(self) -> None:
        """Test RMSE, R² and Adjusted R² against hand-computed values."""
        y_true = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        y_pred = np.array([1.5, 1.5, 3.5, 3.5, 5.5, 5.5])

        metrics = compute_fit_metrics(y_true, y_pred, n_features=1)

        # RSS = 6 * 0.25 = 1.5, TSS = 17.5
        assert metrics.rmse == pytest.approx(0.5)
        assert metrics.r2 == pytest.approx(1 - 1.5 / 17.5)
        assert metrics.adj_r2 == pytest.approx(1 - (1.5 / 17.5) * 5 / 4)
        assert metrics.n_samples == 6
        assert metrics.n_features == 1

    def test_mean_prediction_zero_r2(self) -> None:
        """Test predicting the mean gives R² of zero."""
        y = np.array([1.0, 2.0, 3.0, 4.0])

        metrics = compute_fit_metrics(y, np.full(4, 2.5), n_features=1)

        assert metrics.r2 == pytest.approx(0.0)

    def test_rmse_and_r2_consistent(self) -> None:
        """Test R² can be recovered from RMSE and the observed values."""
        rng = np.random.default_rng(5)
        y_true = rng.uniform(0.0, 1.0, 80)
        y_pred = y_true + rng.normal(0.0, 0.1, 80)

        metrics = compute_fit_metrics(y_true, y_pred, n_features=3)

        assert r2_from_rmse(metrics.rmse, y_true) == pytest.approx(metrics.r2, rel=1e-9)

    def test_constant_observations(self) -> None:
        """Test R² is undefined for zero-variance observations."""
        with pytest.raises(DegenerateModelError, match="zero variance"):
            compute_fit_metrics(np.full(5, 0.3), np.full(5, 0.3), n_features=1)

    def test_too_few_rows_for_adjusted_r2(self) -> None:
        """Test n - k - 1 == 0 is rejected."""
        with pytest.raises(DegenerateModelError, match="n - k - 1"):
            compute_fit_metrics(
                np.array([1.0, 2.0, 3.0]), np.array([1.1, 1.9, 3.2]), n_features=2
            )

    def test_empty(self) -> None:
        """Test empty arrays raise."""
        with pytest.raises(ValueError, match="empty"):
            compute_fit_metrics(np.array([]), np.array([]), n_features=1)

    def test_length_mismatch(self) -> None:
        """Test arrays of different length raise."""
        with pytest.raises(ValueError, match="mismatch"):
            compute_fit_metrics(np.array([1.0, 2.0]), np.array([1.0]), n_features=1)

    def test_to_dict(self) -> None:
        """Test dictionary export keys."""
        y_true = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        metrics = compute_fit_metrics(y_true, y_true + 0.1, n_features=1)

        assert set(metrics.to_dict()) == {"rmse", "r2", "adj_r2", "n_samples", "n_features"}


class TestAdjustedR2:
    """Tests for adjusted_r2."""

    def test_formula(self) -> None:
        """Test the adjustment formula."""
        assert adjusted_r2(0.8, 101, 10) == pytest.approx(1 - 0.2 * 100 / 90)

    def test_never_above_r2(self) -> None:
        """Test adding features never inflates R² through the adjustment."""
        assert adjusted_r2(0.6, 50, 5) < 0.6

    def test_negative_dof(self) -> None:
        """Test more features than rows raises."""
        with pytest.raises(DegenerateModelError):
            adjusted_r2(0.5, 5, 10)


class TestR2FromRMSE:
    """Tests for r2_from_rmse."""

    def test_zero_rmse(self) -> None:
        """Test zero RMSE gives R² of one."""
        assert r2_from_rmse(0.0, np.array([1.0, 2.0, 3.0])) == pytest.approx(1.0)

    def test_constant_observations(self) -> None:
        """Test zero TSS raises."""
        with pytest.raises(DegenerateModelError):
            r2_from_rmse(0.1, np.full(4, 2.0))


def test_residual_stats() -> None:
    """Test residual summary is computed from observed minus predicted."""
    stats = compute_residual_stats(np.array([1.0, 2.0, 3.0]), np.array([0.0, 2.0, 4.0]))

    assert stats["residual_mean"] == pytest.approx(0.0)
    assert stats["residual_min"] == pytest.approx(-1.0)
    assert stats["residual_max"] == pytest.approx(1.0)
    assert stats["residual_median"] == pytest.approx(0.0)
