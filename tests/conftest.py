"""Pytest configuration and shared fixtures."""

import os
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from crimereg.config.settings import (
    AnalysisConfig,
    CleaningConfig,
    DataConfig,
    OutputConfig,
)

# MLflow >= 3 refuses file:// tracking stores unless explicitly allowed;
# the experiment tests track into a temporary local directory.
os.environ.setdefault("MLFLOW_ALLOW_FILE_STORE", "true")

TARGET = "ViolentCrimesPerPop"


@pytest.fixture
def crime_frame() -> pd.DataFrame:
    """
    Synthetic crime table with a known structure.

    - medIncome, PctUnemployed: drive the target
    - PctPopUnderPov: near-copy of medIncome (collinear)
    - householdsize: unrelated to the target
    """
    rng = np.random.default_rng(42)
    n = 200
    med_income = rng.uniform(0.0, 1.0, n)
    unemployed = rng.uniform(0.0, 1.0, n)
    household = rng.uniform(0.0, 1.0, n)
    under_pov = med_income + rng.normal(0.0, 0.05, n)
    target = 0.2 + 0.5 * med_income + 0.3 * unemployed + rng.normal(0.0, 0.03, n)

    return pd.DataFrame(
        {
            "medIncome": med_income,
            "PctUnemployed": unemployed,
            "householdsize": household,
            "PctPopUnderPov": under_pov,
            TARGET: target,
        }
    )


@pytest.fixture
def raw_crime_csv(tmp_path: Path, crime_frame: pd.DataFrame) -> Path:
    """
    Write the synthetic table the way the UCI release looks on disk.

    Adds identifier columns, a mostly-missing policing column and a few
    '?' markers in an otherwise complete column.
    """
    df = crime_frame.copy()
    n = len(df)
    df.insert(0, "state", 8)
    df.insert(1, "communityname", [f"Town{i}city" for i in range(n)])
    df.insert(2, "fold", np.arange(n) % 10 + 1)

    policing = pd.Series(np.linspace(0.0, 1.0, n)).astype(object)
    policing.iloc[: int(n * 0.8)] = "?"
    df["PolicPerPop"] = policing

    household = df["householdsize"].astype(object)
    household.iloc[[3, 17]] = "?"
    df["householdsize"] = household

    path = tmp_path / "communities.csv"
    df.to_csv(path, index=False)
    return path


@pytest.fixture
def analysis_config(tmp_path: Path) -> AnalysisConfig:
    """Create a minimal analysis configuration writing into tmp_path."""
    return AnalysisConfig(
        project="test-crime",
        data=DataConfig(root=tmp_path, path=Path("communities.csv")),
        cleaning=CleaningConfig(outlier_columns=["medIncome", "householdsize"]),
        output=OutputConfig(output_root=tmp_path / "output"),
    )
