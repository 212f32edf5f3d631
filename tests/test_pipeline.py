"""End-to-end tests for the analysis pipeline."""

from pathlib import Path

import joblib
import pandas as pd
import pytest

from crimereg.config import AnalysisConfig, CleaningConfig, SelectionConfig
from crimereg.errors import ConfigurationError
from crimereg.evaluation.report import print_report, save_outputs
from crimereg.pipeline import run_analysis

TARGET = "ViolentCrimesPerPop"


class TestRunAnalysis:
    """Tests for run_analysis."""

    def test_full_run(self, raw_crime_csv: Path, analysis_config: AnalysisConfig) -> None:
        """Test the pipeline keeps the true drivers and evaluates both partitions."""
        result = run_analysis(analysis_config)

        assert result.n_rows == 198
        assert "PctUnemployed" in result.features
        assert len({"medIncome", "PctPopUnderPov"} & set(result.features)) == 1
        assert len(result.train.y_true) + len(result.test.y_true) == 198
        assert len(result.train.y_true) > len(result.test.y_true)
        assert result.test.metrics.r2 > 0.8
        assert result.train.metrics.n_features == len(result.features)

    def test_stage_invariants(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test each stage only narrows the feature set it received."""
        result = run_analysis(analysis_config)

        initial = result.vif.steps[0].features
        assert TARGET not in initial
        assert set(result.vif.features) <= set(initial)
        assert set(result.features) <= set(result.vif.features)
        assert result.vif.vifs.max() <= analysis_config.selection.vif_threshold
        assert (result.significance.p_values <= 0.05).all()
        assert result.model.features == result.features

    def test_capping_reported(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test every configured outlier column is reported."""
        result = run_analysis(analysis_config)

        assert [c.column for c in result.capping.columns] == [
            "medIncome",
            "householdsize",
        ]

    def test_reproducible(self, raw_crime_csv: Path, analysis_config: AnalysisConfig) -> None:
        """Test two runs with the same seed give identical results."""
        first = run_analysis(analysis_config)
        second = run_analysis(analysis_config)

        assert first.features == second.features
        assert first.test.metrics == second.test.metrics

    def test_append_uncapped(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test the legacy duplication mode doubles the modeled table."""
        config = analysis_config.model_copy(
            update={"cleaning": CleaningConfig(outlier_columns=["medIncome"], append_uncapped=True)}
        )

        result = run_analysis(config)

        assert result.n_rows == 396
        assert result.capping.appended_uncapped is True

    def test_unknown_outlier_column(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test a configured outlier column missing from the data raises."""
        config = analysis_config.model_copy(
            update={"cleaning": CleaningConfig(outlier_columns=["population"])}
        )

        with pytest.raises(ConfigurationError, match="population"):
            run_analysis(config)

    def test_loose_vif_threshold_keeps_more(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test a high VIF threshold lets the collinear pair through VIF pruning."""
        config = analysis_config.model_copy(
            update={"selection": SelectionConfig(vif_threshold=1000.0)}
        )

        result = run_analysis(config)

        assert result.vif.dropped == []


class TestOutputs:
    """Tests for report printing and saved outputs."""

    def test_save_outputs(self, raw_crime_csv: Path, analysis_config: AnalysisConfig) -> None:
        """Test plots, prediction tables and the model are written."""
        result = run_analysis(analysis_config)

        outputs = save_outputs(result, analysis_config, timestamp="20240101_000000")

        assert set(outputs.plots) == {"train", "test"}
        for path in outputs.all_paths():
            assert path.exists()
        assert outputs.plots["test"].name == "test_observed_vs_predicted_20240101_000000.png"
        assert outputs.plots["test"].parent == analysis_config.plots_dir

        train_table = pd.read_csv(outputs.predictions[0])
        assert list(train_table.columns) == ["Actual", "Predicted"]
        assert len(train_table) == len(result.train.y_true)

        model = joblib.load(outputs.model)
        assert model.features == result.features

    def test_save_outputs_without_plots(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test plots can be skipped."""
        result = run_analysis(analysis_config)

        outputs = save_outputs(result, analysis_config, save_plots=False)

        assert outputs.plots == {}
        assert not analysis_config.plots_dir.exists()
        assert outputs.model.exists()

    def test_print_report(
        self, raw_crime_csv: Path, analysis_config: AnalysisConfig
    ) -> None:
        """Test the console report renders every section."""
        from rich.console import Console

        result = run_analysis(analysis_config)
        console = Console(record=True, width=120)

        print_report(result, console)

        text = console.export_text()
        for title in [
            "Dataset Summary",
            "Outlier Capping",
            "Multicollinearity Pruning",
            "Significance Pruning",
            "Final Model Coefficients",
            "Model Fit",
        ]:
            assert title in text
