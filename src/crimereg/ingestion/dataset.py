"""
Loader for the delimited Communities and Crime table.

Reads the raw file, removes identifier columns, resolves missing values
and validates the result against the dataset schema.
"""

from pathlib import Path

import numpy as np
import pandas as pd

from crimereg.config.settings import AnalysisConfig
from crimereg.errors import ConfigurationError
from crimereg.schemas.crime import dataset_schema
from crimereg.utils.logging import get_logger

log = get_logger(__name__)


class CrimeDatasetLoader:
    """
    Loads the observation table at the ingestion boundary.

    The column set is fixed once load() returns; later stages only
    shrink the feature set, never the table.
    """

    def __init__(self, config: AnalysisConfig) -> None:
        """
        Initialize loader.

        Args:
            config: Analysis configuration.
        """
        self.config = config
        self.schema = dataset_schema(config.target)

    def load(self, path: Path | None = None, *, validate: bool = True) -> pd.DataFrame:
        """
        Load, clean and optionally validate the dataset.

        Args:
            path: Explicit file path. Defaults to the configured dataset.
            validate: Whether to validate against the dataset schema.

        Returns:
            Table of numeric predictors plus the target column.

        Raises:
            FileNotFoundError: If the data file does not exist.
            ConfigurationError: If the target column is missing.
            pandera.errors.SchemaError: If validation fails.
        """
        if path is None:
            path = self.config.data.resolve()

        df = self._load_raw(path)
        log.info("Loaded raw data", path=str(path), rows=len(df), columns=len(df.columns))

        target = self.config.target
        if target not in df.columns:
            msg = f"Target column {target!r} not found in {path}"
            raise ConfigurationError(msg)

        df = self._drop_identifier_columns(df)
        df = self._resolve_missing(df)

        if validate:
            df = self.schema.validate(df)
            log.info("Schema validation passed", schema=self.schema.name)

        return df

    def _load_raw(self, path: Path) -> pd.DataFrame:
        """Read the delimited file as-is."""
        if not path.exists():
            msg = f"Dataset file not found: {path}"
            raise FileNotFoundError(msg)

        return pd.read_csv(
            path,
            sep=self.config.data.delimiter,
            na_values=self.config.data.na_values,
            skipinitialspace=True,
        )

    def _drop_identifier_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Remove configured non-predictive columns that are present."""
        present = [col for col in self.config.data.drop_columns if col in df.columns]
        if present:
            log.debug("Dropping identifier columns", columns=present)
            df = df.drop(columns=present)
        return df

    def _resolve_missing(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop sparse columns, then rows with any remaining missing value.

        Rows with a missing target are always dropped.
        """
        target = self.config.target
        threshold = self.config.data.max_missing_fraction

        missing_fraction = df.isna().mean()
        sparse = [
            col
            for col, fraction in missing_fraction.items()
            if fraction > threshold and col != target
        ]
        if sparse:
            log.info(
                "Dropped sparse columns",
                n_columns=len(sparse),
                max_missing_fraction=threshold,
            )
            df = df.drop(columns=sparse)

        before = len(df)
        df = df.dropna().reset_index(drop=True)
        if len(df) < before:
            log.info(
                "Dropped rows with missing values",
                dropped=before - len(df),
                remaining=len(df),
            )

        return df


def describe_target(df: pd.DataFrame, target: str) -> dict[str, float]:
    """Compute summary statistics of the target variable."""
    y = df[target]
    return {
        "mean": float(y.mean()),
        "std": float(y.std()),
        "min": float(y.min()),
        "max": float(y.max()),
        "median": float(y.median()),
        "q25": float(np.percentile(y, 25)),
        "q75": float(np.percentile(y, 75)),
    }
