"""
Analysis report generation.

Prints rich console tables for every stage, renders predicted-vs-observed
scatterplots and exports prediction tables and the fitted model.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import joblib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from rich.console import Console
from rich.table import Table

from crimereg.utils.logging import get_logger

if TYPE_CHECKING:
    from crimereg.config.settings import AnalysisConfig
    from crimereg.modeling.glm import FittedGLM
    from crimereg.pipeline import AnalysisResult, PartitionResult

log = get_logger(__name__)


@dataclass(frozen=True)
class SavedOutputs:
    """Paths of files written for one analysis run."""

    plots: dict[str, Path]
    predictions: tuple[Path, Path]
    model: Path

    def all_paths(self) -> list[Path]:
        """Every written file."""
        return [*self.plots.values(), *self.predictions, self.model]


def _format_float(value: float, digits: int = 4) -> str:
    if np.isinf(value):
        return "inf"
    if np.isnan(value):
        return "NaN"
    return f"{value:.{digits}f}"


def print_dataset_summary(result: "AnalysisResult", console: Console) -> None:
    """Print row/column counts and target statistics."""
    table = Table(title="Dataset Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    stats = result.target_stats
    table.add_row("Rows", str(result.n_rows))
    table.add_row("Columns (incl. target)", str(result.n_columns))
    table.add_row("Target mean", f"{stats['mean']:.4f}")
    table.add_row("Target std", f"{stats['std']:.4f}")
    table.add_row("Target range", f"{stats['min']:.4f} - {stats['max']:.4f}")
    table.add_row("Target median", f"{stats['median']:.4f}")

    console.print(table)


def print_capping_table(result: "AnalysisResult", console: Console) -> None:
    """Print whisker bounds and capped counts per column."""
    capping = result.capping
    if not capping.columns:
        console.print("[dim]No outlier columns configured[/dim]")
        return

    table = Table(title=f"Outlier Capping ({capping.multiplier}×IQR)")
    table.add_column("Column", style="cyan")
    table.add_column("Q1", justify="right")
    table.add_column("Q3", justify="right")
    table.add_column("Lower", style="yellow", justify="right")
    table.add_column("Upper", style="yellow", justify="right")
    table.add_column("Capped low", style="green", justify="right")
    table.add_column("Capped high", style="green", justify="right")

    for col in capping.columns:
        b = col.bounds
        table.add_row(
            col.column,
            _format_float(b.q1),
            _format_float(b.q3),
            _format_float(b.lower),
            _format_float(b.upper),
            str(col.n_capped_lower),
            str(col.n_capped_upper),
        )

    console.print(table)
    if capping.appended_uncapped:
        console.print(
            "[yellow]⚠ Uncapped rows were appended: the table holds every "
            "observation twice[/yellow]"
        )


def print_vif_history(result: "AnalysisResult", console: Console) -> None:
    """Print one row per VIF pruning iteration."""
    vif = result.vif
    table = Table(title=f"Multicollinearity Pruning (VIF ≤ {vif.threshold})")
    table.add_column("Iter", style="dim", width=4)
    table.add_column("Features", justify="right")
    table.add_column("Max VIF", style="yellow", justify="right")
    table.add_column("Dropped", style="red")

    for i, step in enumerate(vif.steps, 1):
        table.add_row(
            str(i),
            str(len(step.features)),
            _format_float(step.max_vif, 3),
            step.dropped or "-",
        )

    console.print(table)


def print_significance_history(result: "AnalysisResult", console: Console) -> None:
    """Print one row per p-value pruning iteration."""
    sig = result.significance
    table = Table(title=f"Significance Pruning (p ≤ {sig.alpha})")
    table.add_column("Iter", style="dim", width=4)
    table.add_column("Features", justify="right")
    table.add_column("Dropped", style="red")
    table.add_column("p-value", style="yellow", justify="right")
    table.add_column("Reason", style="dim")

    for i, step in enumerate(sig.steps, 1):
        p_value = step.p_values[step.dropped] if step.dropped else float("nan")
        table.add_row(
            str(i),
            str(len(step.features)),
            step.dropped or "-",
            _format_float(float(p_value)) if step.dropped else "-",
            step.reason or "-",
        )

    console.print(table)


def print_coefficients_table(model: "FittedGLM", console: Console) -> None:
    """Print the final model's coefficients and p-values."""
    table = Table(title="Final Model Coefficients")
    table.add_column("Term", style="cyan")
    table.add_column("Coefficient", style="green", justify="right")
    table.add_column("p-value", style="yellow", justify="right")

    p_values = model.result.pvalues
    for term, coef in model.coefficients.items():
        table.add_row(
            str(term),
            _format_float(float(coef)),
            _format_float(float(p_values[term])),
        )

    console.print(table)


def print_metrics_table(result: "AnalysisResult", console: Console) -> None:
    """Print RMSE, R² and Adjusted R² for train and test."""
    table = Table(title="Model Fit")
    table.add_column("Partition", style="cyan")
    table.add_column("n", justify="right")
    table.add_column("k", justify="right")
    table.add_column("RMSE", style="yellow", justify="right")
    table.add_column("R²", style="green", justify="right")
    table.add_column("Adj. R²", style="green", justify="right")
    table.add_column("Resid. mean", style="dim", justify="right")

    for part in (result.train, result.test):
        m = part.metrics
        table.add_row(
            part.name.capitalize(),
            str(m.n_samples),
            str(m.n_features),
            _format_float(m.rmse),
            _format_float(m.r2),
            _format_float(m.adj_r2),
            _format_float(part.residuals["residual_mean"]),
        )

    console.print(table)


def print_report(result: "AnalysisResult", console: Console | None = None) -> None:
    """Print every report table in pipeline order."""
    if console is None:
        console = Console()

    print_dataset_summary(result, console)
    print_capping_table(result, console)
    print_vif_history(result, console)
    print_significance_history(result, console)
    print_coefficients_table(result.model, console)
    print_metrics_table(result, console)


def generate_prediction_scatterplot(
    partition: "PartitionResult",
    output_path: Path,
    target: str,
) -> Path:
    """
    Save a scatterplot of observed vs predicted values for one partition.

    Args:
        partition: Partition evaluation.
        output_path: PNG file to write.
        target: Target column name for axis labels.

    Returns:
        Path to the saved figure.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.scatter(
        partition.y_pred,
        partition.y_true,
        alpha=0.5,
        s=30,
        c="steelblue",
        edgecolors="none",
    )

    # Identity line (y=x)
    min_val = min(partition.y_true.min(), partition.y_pred.min())
    max_val = max(partition.y_true.max(), partition.y_pred.max())
    ax.plot(
        [min_val, max_val],
        [min_val, max_val],
        "r--",
        alpha=0.8,
        linewidth=2,
        label="Identity (y=x)",
    )

    m = partition.metrics
    ax.text(
        0.05,
        0.95,
        f"R² = {m.r2:.4f}\nAdj. R² = {m.adj_r2:.4f}\nRMSE = {m.rmse:.4f}",
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment="top",
        bbox={"boxstyle": "round", "facecolor": "white", "alpha": 0.8},
    )

    ax.set_xlabel(f"Predicted {target}", fontsize=11)
    ax.set_ylabel(f"Observed {target}", fontsize=11)
    ax.set_title(f"{partition.name.capitalize()}: Observed vs Predicted", fontsize=12)
    ax.legend(loc="lower right")
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)

    log.debug("Saved scatterplot", path=str(output_path))
    return output_path


def save_prediction_tables(
    train: "PartitionResult",
    test: "PartitionResult",
    output_dir: Path,
    *,
    timestamp: str,
) -> tuple[Path, Path]:
    """
    Save Actual/Predicted tables for the train and test partitions.

    Args:
        train: Training partition evaluation.
        test: Test partition evaluation.
        output_dir: Directory to save prediction tables.
        timestamp: Timestamp string used in filenames.

    Returns:
        Tuple of (train_predictions_path, test_predictions_path).
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for part in (train, test):
        df = pd.DataFrame({"Actual": part.y_true, "Predicted": part.y_pred})
        path = output_dir / f"{part.name}_predictions_{timestamp}.csv"
        df.to_csv(path, index=False)
        paths.append(path)

    log.info(
        "Saved prediction tables",
        train_path=str(paths[0]),
        test_path=str(paths[1]),
        n_train=len(train.y_true),
        n_test=len(test.y_true),
    )

    return paths[0], paths[1]


def save_model(model: "FittedGLM", output_dir: Path, *, timestamp: str) -> Path:
    """Persist the final model with joblib."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"glm_{timestamp}.joblib"
    joblib.dump(model, path)
    log.info("Saved model", path=str(path), features=list(model.features))
    return path


def save_outputs(
    result: "AnalysisResult",
    config: "AnalysisConfig",
    *,
    save_plots: bool = True,
    timestamp: str | None = None,
) -> SavedOutputs:
    """
    Write plots, prediction tables and the model for an analysis run.

    Args:
        result: Analysis result.
        config: Analysis configuration (drives output paths).
        save_plots: Whether to render the scatterplots.
        timestamp: Optional timestamp string. If None, uses current time.

    Returns:
        SavedOutputs with every written path.
    """
    if timestamp is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    plots: dict[str, Path] = {}
    if save_plots:
        for part in (result.train, result.test):
            filename = f"{part.name}_observed_vs_predicted_{timestamp}.png"
            plots[part.name] = generate_prediction_scatterplot(
                part, config.plots_dir / filename, config.target
            )

    predictions = save_prediction_tables(
        result.train, result.test, config.predictions_dir, timestamp=timestamp
    )
    model_path = save_model(result.model, config.models_dir, timestamp=timestamp)

    return SavedOutputs(plots=plots, predictions=predictions, model=model_path)
