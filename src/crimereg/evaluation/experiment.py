"""
MLflow experiment tracking for analysis runs.

Each run answers one question: which predictors of violent crime
survive outlier capping, VIF pruning and p-value pruning, and how
well does the resulting model fit?
"""

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import mlflow

from crimereg.config.settings import AnalysisConfig
from crimereg.evaluation.metrics import FitMetrics
from crimereg.utils.logging import get_logger

if TYPE_CHECKING:
    from crimereg.pipeline import AnalysisResult

log = get_logger(__name__)


class AnalysisExperiment:
    """
    MLflow run wrapper for one analysis.

    Logs configuration parameters, the surviving feature set, train and
    test metrics, and the written output files.
    """

    def __init__(self, config: AnalysisConfig) -> None:
        """
        Initialize experiment.

        Args:
            config: Analysis configuration.
        """
        self.config = config
        self._run_id: str | None = None

    @property
    def run_id(self) -> str | None:
        """ID of the active (or last) run."""
        return self._run_id

    def setup(self) -> None:
        """Setup MLflow experiment."""
        mlflow.set_tracking_uri(self.config.mlflow.tracking_uri)
        mlflow.set_experiment(self.config.experiment_name)

        log.info(
            "Experiment setup",
            name=self.config.experiment_name,
            tracking_uri=self.config.mlflow.tracking_uri,
        )

    def start_run(self, run_name: str | None = None) -> str:
        """
        Start an MLflow run.

        Args:
            run_name: Optional run name.

        Returns:
            Run ID.
        """
        self.setup()

        if run_name is None:
            run_name = f"analysis-{datetime.now():%Y%m%d-%H%M}"

        tags = {
            "project": self.config.project,
            "target": self.config.target,
            "glm_family": self.config.training.family.value,
        }
        run = mlflow.start_run(run_name=run_name, tags=tags)
        self._run_id = run.info.run_id

        log.info("Started MLflow run", run_id=self._run_id)
        return self._run_id

    def end_run(self) -> None:
        """End the current MLflow run."""
        mlflow.end_run()
        log.info("Ended MLflow run", run_id=self._run_id)

    def log_params(self, params: dict[str, Any]) -> None:
        """Log parameters."""
        mlflow.log_params(params)

    def log_metrics(self, metrics: FitMetrics, prefix: str) -> None:
        """Log partition metrics with a prefix (e.g. 'train_r2')."""
        mlflow.log_metrics(
            {f"{prefix}_{k}": float(v) for k, v in metrics.to_dict().items()}
        )

    def log_artifact(self, path: Path, artifact_path: str | None = None) -> None:
        """Log an artifact."""
        mlflow.log_artifact(str(path), artifact_path)

    def log_analysis(
        self,
        result: "AnalysisResult",
        artifacts: list[Path] | None = None,
    ) -> str:
        """
        Log a complete analysis result as one run.

        Args:
            result: Analysis result.
            artifacts: Output files to attach to the run.

        Returns:
            Run ID.
        """
        run_id = self.start_run()
        try:
            self.log_params(
                {
                    "train_ratio": self.config.training.train_ratio,
                    "random_state": self.config.training.random_state,
                    "iqr_multiplier": self.config.cleaning.iqr_multiplier,
                    "vif_threshold": self.config.selection.vif_threshold,
                    "p_value_threshold": self.config.selection.p_value_threshold,
                    "nan_p_value_policy": self.config.selection.nan_p_value_policy.value,
                    "n_rows": result.n_rows,
                    "n_features_initial": len(result.vif.steps[0].features),
                    "n_features_after_vif": len(result.vif.features),
                    "n_features_final": len(result.features),
                    "final_features": ",".join(result.features),
                }
            )
            self.log_metrics(result.train.metrics, "train")
            self.log_metrics(result.test.metrics, "test")

            for path in artifacts or []:
                self.log_artifact(path)
        finally:
            self.end_run()

        return run_id
