"""Tests for VIF-based multicollinearity pruning."""

import numpy as np
import pandas as pd
import pytest

from crimereg.errors import PruningError
from crimereg.selection import compute_vif, prune_multicollinear, vif_step

TARGET = "ViolentCrimesPerPop"


@pytest.fixture
def independent_frame() -> pd.DataFrame:
    """Two independent predictors, one constant column and a target."""
    rng = np.random.default_rng(11)
    n = 150
    x1 = rng.normal(0.0, 1.0, n)
    x2 = rng.normal(0.0, 1.0, n)
    return pd.DataFrame(
        {
            "x1": x1,
            "x2": x2,
            "z1": np.full(n, 3.0),
            "z2": np.full(n, -1.0),
            TARGET: 1.0 + x1 - x2 + rng.normal(0.0, 0.1, n),
        }
    )


class TestComputeVIF:
    """Tests for compute_vif."""

    def test_independent_columns_near_one(self, independent_frame: pd.DataFrame) -> None:
        """Test uncorrelated columns have VIF close to 1."""
        vifs = compute_vif(independent_frame[["x1", "x2"]])

        assert list(vifs.index) == ["x1", "x2"]
        assert (vifs < 1.2).all()
        assert (vifs >= 1.0).all()

    def test_zero_variance_is_infinite(self, independent_frame: pd.DataFrame) -> None:
        """Test a constant column gets an infinite VIF."""
        vifs = compute_vif(independent_frame[["x1", "z1", "x2"]])

        assert np.isinf(vifs["z1"])
        assert np.isfinite(vifs["x1"])
        assert np.isfinite(vifs["x2"])

    def test_collinear_columns_inflated(self, crime_frame: pd.DataFrame) -> None:
        """Test a near-copy of a column inflates both VIFs."""
        vifs = compute_vif(crime_frame[["medIncome", "PctPopUnderPov", "PctUnemployed"]])

        assert vifs["medIncome"] > 10.0
        assert vifs["PctPopUnderPov"] > 10.0
        assert vifs["PctUnemployed"] < 1.5


class TestVIFStep:
    """Tests for a single pruning iteration."""

    def test_drops_zero_variance_first(self, independent_frame: pd.DataFrame) -> None:
        """Test the constant column is dropped in the first iteration."""
        step = vif_step(independent_frame, ["x1", "x2", "z1"], TARGET)

        assert step.dropped == "z1"
        assert step.remaining == ("x1", "x2")

    def test_tie_broken_by_feature_order(self, independent_frame: pd.DataFrame) -> None:
        """Test the first of several equal maxima is dropped."""
        step = vif_step(independent_frame, ["z2", "x1", "z1"], TARGET)
        assert step.dropped == "z2"

        step = vif_step(independent_frame, ["z1", "x1", "z2"], TARGET)
        assert step.dropped == "z1"

    def test_terminal_below_threshold(self, independent_frame: pd.DataFrame) -> None:
        """Test nothing is dropped when every VIF is within the threshold."""
        step = vif_step(independent_frame, ["x1", "x2"], TARGET)

        assert step.dropped is None
        assert step.remaining == ("x1", "x2")

    def test_single_feature_never_dropped(self, independent_frame: pd.DataFrame) -> None:
        """Test a lone feature is terminal even with infinite VIF."""
        step = vif_step(independent_frame, ["z1"], TARGET)

        assert step.dropped is None

    def test_model_fitted_on_current_features(self, independent_frame: pd.DataFrame) -> None:
        """Test the step's OLS model uses exactly the step's features."""
        step = vif_step(independent_frame, ["x1", "x2"], TARGET)

        assert list(step.model.params.index) == ["const", "x1", "x2"]

    def test_empty_features(self, independent_frame: pd.DataFrame) -> None:
        """Test that an empty feature set raises."""
        with pytest.raises(PruningError, match="empty"):
            vif_step(independent_frame, [], TARGET)

    def test_target_in_features(self, independent_frame: pd.DataFrame) -> None:
        """Test that the target cannot be a feature."""
        with pytest.raises(PruningError, match="Target"):
            vif_step(independent_frame, ["x1", TARGET], TARGET)

    def test_intercept_name_as_feature(self, independent_frame: pd.DataFrame) -> None:
        """Test a predictor named like the intercept is rejected."""
        frame = independent_frame.assign(const=independent_frame["x2"])

        with pytest.raises(PruningError, match="reserved"):
            vif_step(frame, ["x1", "const"], TARGET)


class TestPruneMulticollinear:
    """Tests for the full pruning loop."""

    def test_final_vifs_within_threshold(self, crime_frame: pd.DataFrame) -> None:
        """Test the final feature set satisfies the threshold."""
        features = [c for c in crime_frame.columns if c != TARGET]

        result = prune_multicollinear(crime_frame, features, TARGET, threshold=1.5)

        assert result.vifs.max() <= 1.5
        assert len(result.features) == len(features) - len(result.dropped)

    def test_one_of_collinear_pair_removed(self, crime_frame: pd.DataFrame) -> None:
        """Test exactly one column of the near-duplicate pair survives."""
        features = [c for c in crime_frame.columns if c != TARGET]

        result = prune_multicollinear(crime_frame, features, TARGET, threshold=1.5)

        pair = {"medIncome", "PctPopUnderPov"}
        assert len(pair & set(result.features)) == 1
        assert "PctUnemployed" in result.features
        assert "householdsize" in result.features

    def test_history_records_every_iteration(
        self, independent_frame: pd.DataFrame
    ) -> None:
        """Test one step per iteration with the last step terminal."""
        result = prune_multicollinear(
            independent_frame, ["z2", "x1", "z1", "x2"], TARGET, threshold=1.5
        )

        assert result.dropped == ["z2", "z1"]
        assert len(result.steps) == 3
        assert result.steps[-1].dropped is None
        assert result.features == ("x1", "x2")
        assert result.steps[0].features == ("z2", "x1", "z1", "x2")

    def test_rerun_drops_nothing(self, crime_frame: pd.DataFrame) -> None:
        """Test pruning an already-pruned feature set is a no-op."""
        features = [c for c in crime_frame.columns if c != TARGET]
        first = prune_multicollinear(crime_frame, features, TARGET, threshold=1.5)

        second = prune_multicollinear(crime_frame, first.features, TARGET, threshold=1.5)

        assert second.dropped == []
        assert second.features == first.features
        assert len(second.steps) == 1

    def test_feature_order_preserved(self, independent_frame: pd.DataFrame) -> None:
        """Test surviving features keep their original relative order."""
        result = prune_multicollinear(
            independent_frame, ["x2", "z1", "x1"], TARGET, threshold=1.5
        )

        assert result.features == ("x2", "x1")

    def test_input_not_mutated(self, crime_frame: pd.DataFrame) -> None:
        """Test the table keeps every column after pruning."""
        columns = list(crime_frame.columns)
        features = [c for c in columns if c != TARGET]

        prune_multicollinear(crime_frame, features, TARGET)

        assert list(crime_frame.columns) == columns
