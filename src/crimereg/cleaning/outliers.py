"""
IQR-based outlier capping.

Values beyond the whiskers (Q1 - m*IQR, Q3 + m*IQR) are replaced by the
whisker value. Bounds always come from the original, uncapped column.
"""

from dataclasses import dataclass, field

import pandas as pd

from crimereg.errors import ConfigurationError
from crimereg.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class WhiskerBounds:
    """
    Quartiles and whiskers of one column.

    Attributes:
        q1: First quartile.
        q3: Third quartile.
        iqr: Interquartile range (q3 - q1).
        lower: Lower whisker, q1 - multiplier * iqr.
        upper: Upper whisker, q3 + multiplier * iqr.
    """

    q1: float
    q3: float
    iqr: float
    lower: float
    upper: float


@dataclass(frozen=True)
class ColumnCapping:
    """Capping outcome for a single column."""

    column: str
    bounds: WhiskerBounds
    n_capped_lower: int
    n_capped_upper: int

    @property
    def n_capped(self) -> int:
        """Total number of values replaced by a whisker."""
        return self.n_capped_lower + self.n_capped_upper


@dataclass(frozen=True)
class CappingResult:
    """
    Result of outlier capping.

    Attributes:
        columns: Per-column capping details, in processing order.
        multiplier: IQR multiplier used for the whiskers.
        n_rows: Row count of the returned table.
        appended_uncapped: Whether the uncapped copy was appended.
    """

    columns: list[ColumnCapping] = field(default_factory=list)
    multiplier: float = 1.5
    n_rows: int = 0
    appended_uncapped: bool = False

    @property
    def n_capped(self) -> int:
        """Total number of capped values across all columns."""
        return sum(c.n_capped for c in self.columns)


def compute_whiskers(series: pd.Series, multiplier: float = 1.5) -> WhiskerBounds:
    """
    Compute quartiles and IQR whiskers of a column.

    Args:
        series: Numeric column.
        multiplier: IQR multiplier (1.5 = standard Tukey fences).

    Returns:
        WhiskerBounds for the column.
    """
    q1 = float(series.quantile(0.25))
    q3 = float(series.quantile(0.75))
    iqr = q3 - q1
    return WhiskerBounds(
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower=q1 - multiplier * iqr,
        upper=q3 + multiplier * iqr,
    )


def cap_outliers(
    df: pd.DataFrame,
    columns: list[str],
    multiplier: float = 1.5,
    *,
    append_uncapped: bool = False,
) -> tuple[pd.DataFrame, CappingResult]:
    """
    Cap values outside the IQR whiskers for the given columns.

    Args:
        df: Observation table.
        columns: Columns to cap. Each is processed independently.
        multiplier: IQR multiplier for the whiskers.
        append_uncapped: Append the original rows below the capped ones,
            doubling the table. Only for reproducing legacy results.

    Returns:
        Tuple of (capped DataFrame, CappingResult summary).

    Raises:
        ConfigurationError: If a listed column is not in the table.
    """
    missing = [col for col in columns if col not in df.columns]
    if missing:
        msg = f"Outlier columns not found in table: {missing}"
        raise ConfigurationError(msg)

    capped = df.copy()
    details: list[ColumnCapping] = []

    for col in columns:
        original = df[col]
        bounds = compute_whiskers(original, multiplier)

        below = original < bounds.lower
        above = original > bounds.upper
        capped[col] = original.clip(lower=bounds.lower, upper=bounds.upper)

        details.append(
            ColumnCapping(
                column=col,
                bounds=bounds,
                n_capped_lower=int(below.sum()),
                n_capped_upper=int(above.sum()),
            )
        )
        log.debug(
            "Capped column",
            column=col,
            lower=bounds.lower,
            upper=bounds.upper,
            n_lower=int(below.sum()),
            n_upper=int(above.sum()),
        )

    if append_uncapped:
        log.warning(
            "Appending uncapped rows to capped table; rows are duplicated, "
            "not split",
            rows=len(df),
        )
        capped = pd.concat([df, capped], ignore_index=True)

    result = CappingResult(
        columns=details,
        multiplier=multiplier,
        n_rows=len(capped),
        appended_uncapped=append_uncapped,
    )

    log.info(
        "Capped outliers",
        n_columns=len(columns),
        n_capped=result.n_capped,
        multiplier=multiplier,
    )

    return capped, result
