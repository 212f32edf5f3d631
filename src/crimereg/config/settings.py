"""
Typed configuration models using Pydantic.

All tunable constants of the analysis (column lists, thresholds,
split parameters) live here. Processing code receives them explicitly.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TARGET = "ViolentCrimesPerPop"

# Identifier columns of the UCI Communities and Crime release
DEFAULT_ID_COLUMNS = ["state", "county", "community", "communityname", "fold"]


class NanPValuePolicy(str, Enum):
    """What the significance pruner does with undefined p-values."""

    DROP = "drop"  # treat as insignificant, drop before defined p-values
    RAISE = "raise"  # abort the pruning loop


class GLMFamily(str, Enum):
    """Error distribution of the generalized linear model."""

    GAUSSIAN = "gaussian"
    POISSON = "poisson"


class DataConfig(BaseModel):
    """Input file configuration.

    The dataset path is relative to root. Use resolve() to get the
    path that is actually read.
    """

    model_config = ConfigDict(frozen=True)

    root: Path = Field(default=Path("./data"), description="Root data directory")
    path: Path = Field(description="Delimited input file, relative to root")
    delimiter: str = Field(default=",", min_length=1)
    na_values: list[str] = Field(
        default_factory=lambda: ["?"], description="Markers read as missing"
    )
    target: str = Field(default=DEFAULT_TARGET, description="Target column name")
    drop_columns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ID_COLUMNS),
        description="Non-predictive columns removed after loading (if present)",
    )
    max_missing_fraction: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Columns with a larger share of missing values are dropped",
    )

    @field_validator("drop_columns")
    @classmethod
    def validate_drop_columns(cls, v: list[str], info: Any) -> list[str]:
        """Ensure the target is never dropped as an identifier column."""
        target = info.data.get("target", DEFAULT_TARGET)
        if target in v:
            msg = f"Target column {target!r} cannot be listed in drop_columns"
            raise ValueError(msg)
        return v

    def resolve(self) -> Path:
        """Resolve the dataset path against root."""
        if self.path.is_absolute():
            return self.path
        return self.root / self.path


class CleaningConfig(BaseModel):
    """Outlier capping configuration."""

    model_config = ConfigDict(frozen=True)

    outlier_columns: list[str] = Field(
        default_factory=list, description="Columns capped at the IQR whiskers"
    )
    iqr_multiplier: float = Field(default=1.5, gt=0.0)
    # Doubles the table with an uncapped copy; kept only for parity runs
    append_uncapped: bool = Field(default=False)


class SelectionConfig(BaseModel):
    """Feature pruning thresholds."""

    model_config = ConfigDict(frozen=True)

    vif_threshold: float = Field(default=1.5, gt=1.0)
    p_value_threshold: float = Field(default=0.05, gt=0.0, lt=1.0)
    nan_p_value_policy: NanPValuePolicy = Field(default=NanPValuePolicy.DROP)


class TrainingConfig(BaseModel):
    """Train/test split and GLM configuration."""

    model_config = ConfigDict(frozen=True)

    train_ratio: float = Field(default=0.7, gt=0.0, lt=1.0)
    random_state: int = Field(default=123)
    family: GLMFamily = Field(default=GLMFamily.GAUSSIAN)
    max_iter: int = Field(default=100, ge=1)


class MLflowConfig(BaseModel):
    """MLflow experiment tracking configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False)
    tracking_uri: str = Field(default="http://127.0.0.1:5000")
    # experiment_name is optional; derived from project if not set
    experiment_name: str | None = Field(
        default=None, description="MLflow experiment name (defaults to project name)"
    )


class OutputConfig(BaseModel):
    """Output paths configuration.

    Structure: ./output/{project}/plots, ./output/{project}/predictions, ...
    """

    model_config = ConfigDict(frozen=True)

    output_root: Path = Field(
        default=Path("./output"), description="Root directory for all outputs"
    )
    save_plots: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_output: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {v!r}"
            raise ValueError(msg)
        return level


class AnalysisConfig(BaseModel):
    """Complete analysis configuration.

    The project name drives:
    - MLflow experiment name (if not explicitly set)
    - Output directory structure: ./output/{project}/
    """

    model_config = ConfigDict(frozen=True)

    project: str = Field(description="Project identifier (e.g., 'communities-crime')")

    data: DataConfig
    cleaning: CleaningConfig = Field(default_factory=CleaningConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    training: TrainingConfig = Field(default_factory=TrainingConfig)
    mlflow: MLflowConfig = Field(default_factory=MLflowConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def target(self) -> str:
        """Convenience accessor for the target column."""
        return self.data.target

    @property
    def experiment_name(self) -> str:
        """MLflow experiment name (derived from project if not set)."""
        return self.mlflow.experiment_name or self.project

    @property
    def plots_dir(self) -> Path:
        """Path to plots output directory."""
        return self.output.output_root / self.project / "plots"

    @property
    def predictions_dir(self) -> Path:
        """Path to predictions output directory."""
        return self.output.output_root / self.project / "predictions"

    @property
    def models_dir(self) -> Path:
        """Path to fitted model output directory."""
        return self.output.output_root / self.project / "models"
