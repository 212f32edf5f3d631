"""
Pandera schema for the Communities and Crime observation table.

Rows are communities, columns are numeric socio-economic and policing
predictors plus the per-population violent crime rate.
"""

import pandas as pd
import pandera.pandas as pa
from pandera.typing import Series

from crimereg.config.settings import DEFAULT_TARGET


class CrimeDatasetSchema(pa.DataFrameModel):
    """
    Schema for the cleaned observation table.

    Only the target column is named; predictor columns vary by release
    and are checked collectively.
    """

    ViolentCrimesPerPop: Series[float] = pa.Field(
        ge=0.0,
        nullable=False,
        description="Total violent crimes per population (target)",
    )

    @pa.dataframe_check
    def all_columns_numeric(cls, df: pd.DataFrame) -> bool:
        """Every column must be usable as a regression input."""
        return all(pd.api.types.is_numeric_dtype(dtype) for dtype in df.dtypes)

    @pa.dataframe_check
    def no_missing_values(cls, df: pd.DataFrame) -> bool:
        """Missing values must be resolved before modeling."""
        return bool(df.notna().all().all())

    class Config:
        """Schema configuration."""

        name = "CrimeDatasetSchema"
        strict = False  # Predictor columns are not enumerated
        coerce = True


def dataset_schema(target: str = DEFAULT_TARGET) -> pa.DataFrameSchema:
    """
    Build the dataset schema for a given target column name.

    Args:
        target: Name of the target column in the loaded table.

    Returns:
        DataFrameSchema equivalent to CrimeDatasetSchema with the
        target column renamed.
    """
    schema = CrimeDatasetSchema.to_schema()
    if target == DEFAULT_TARGET:
        return schema
    return schema.rename_columns({DEFAULT_TARGET: target})
