"""
End-to-end analysis pipeline.

Runs the stages top to bottom: load, cap outliers, prune collinear
features, split, prune insignificant features, evaluate.
"""

from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pandas as pd

from crimereg.cleaning.outliers import CappingResult, cap_outliers
from crimereg.config.settings import AnalysisConfig
from crimereg.evaluation.metrics import (
    FitMetrics,
    compute_residual_stats,
    evaluate_model,
)
from crimereg.ingestion.dataset import CrimeDatasetLoader, describe_target
from crimereg.modeling.glm import FittedGLM, GLMBackend
from crimereg.modeling.split import split_table
from crimereg.selection.significance import (
    SignificancePruneResult,
    prune_insignificant,
)
from crimereg.selection.vif import VIFPruneResult, prune_multicollinear
from crimereg.utils.logging import get_logger, log_context

log = get_logger(__name__)


@dataclass(frozen=True)
class PartitionResult:
    """Observed values, predictions and metrics for one partition."""

    name: str
    y_true: np.ndarray
    y_pred: np.ndarray
    metrics: FitMetrics
    residuals: dict[str, float]


@dataclass(frozen=True)
class AnalysisResult:
    """
    Everything produced by one analysis run.

    Attributes:
        n_rows: Rows in the modeled table (after capping).
        n_columns: Columns in the modeled table, target included.
        target_stats: Summary statistics of the target.
        capping: Outlier capping summary.
        vif: Multicollinearity pruning history.
        significance: Significance pruning history.
        train: Training partition evaluation.
        test: Test partition evaluation.
    """

    n_rows: int
    n_columns: int
    target_stats: dict[str, float]
    capping: CappingResult
    vif: VIFPruneResult
    significance: SignificancePruneResult
    train: PartitionResult
    test: PartitionResult

    @property
    def features(self) -> tuple[str, ...]:
        """Final feature set."""
        return self.significance.features

    @property
    def model(self) -> FittedGLM:
        """Final GLM."""
        return self.significance.model


def _evaluate_partition(
    name: str, model: FittedGLM, frame: pd.DataFrame
) -> PartitionResult:
    metrics, y_pred = evaluate_model(model, frame)
    y_true = frame[model.target].to_numpy(dtype=float)
    log.info(f"{name.capitalize()} metrics: {metrics}")
    return PartitionResult(
        name=name,
        y_true=y_true,
        y_pred=y_pred,
        metrics=metrics,
        residuals=compute_residual_stats(y_true, y_pred),
    )


def run_analysis(
    config: AnalysisConfig, data_path: Path | None = None
) -> AnalysisResult:
    """
    Run the complete analysis.

    Args:
        config: Analysis configuration.
        data_path: Dataset path overriding the configured one.

    Returns:
        AnalysisResult with the history of every stage.

    Raises:
        FileNotFoundError: If the dataset does not exist.
        ConfigurationError: If configured columns are missing.
        PruningError: If pruning leaves no usable feature set.
        DegenerateModelError: If a metric is undefined for the final model.
    """
    target = config.target

    with log_context(project=config.project, seed=config.training.random_state):
        df = CrimeDatasetLoader(config).load(data_path)
        target_stats = describe_target(df, target)

        df, capping = cap_outliers(
            df,
            config.cleaning.outlier_columns,
            multiplier=config.cleaning.iqr_multiplier,
            append_uncapped=config.cleaning.append_uncapped,
        )

        features = tuple(col for col in df.columns if col != target)
        vif_result = prune_multicollinear(
            df, features, target, threshold=config.selection.vif_threshold
        )

        split = split_table(
            df[[*vif_result.features, target]],
            train_ratio=config.training.train_ratio,
            seed=config.training.random_state,
        )

        with GLMBackend(config.training.family, config.training.max_iter) as backend:
            sig_result = prune_insignificant(
                split,
                vif_result.features,
                target,
                backend,
                alpha=config.selection.p_value_threshold,
                nan_policy=config.selection.nan_p_value_policy,
            )

        final_split = sig_result.final_split
        train = _evaluate_partition("train", sig_result.model, final_split.train)
        test = _evaluate_partition("test", sig_result.model, final_split.test)

    log.info(
        "Analysis complete",
        n_features=len(sig_result.features),
        features=list(sig_result.features),
    )

    return AnalysisResult(
        n_rows=len(df),
        n_columns=len(df.columns),
        target_stats=target_stats,
        capping=capping,
        vif=vif_result,
        significance=sig_result,
        train=train,
        test=test,
    )
