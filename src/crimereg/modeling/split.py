"""
Deterministic train/test partitioning.
"""

from dataclasses import dataclass

import pandas as pd
from sklearn.model_selection import train_test_split

from crimereg.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class TrainTestSplit:
    """
    Train/test partition of the observation table.

    Attributes:
        train: Training rows (all columns).
        test: Test rows (all columns).
        train_ratio: Requested share of training rows.
        seed: Random seed used for shuffling.
    """

    train: pd.DataFrame
    test: pd.DataFrame
    train_ratio: float
    seed: int

    def restrict(self, columns: list[str]) -> "TrainTestSplit":
        """Return a split holding only the given columns."""
        return TrainTestSplit(
            train=self.train[columns],
            test=self.test[columns],
            train_ratio=self.train_ratio,
            seed=self.seed,
        )


def split_table(
    df: pd.DataFrame,
    train_ratio: float = 0.7,
    seed: int = 123,
) -> TrainTestSplit:
    """
    Split a table into train and test partitions.

    The same table, ratio and seed always yield the same partition.

    Args:
        df: Observation table.
        train_ratio: Share of rows assigned to the training partition.
        seed: Random seed.

    Returns:
        TrainTestSplit with both partitions.

    Raises:
        ValueError: If the ratio is outside (0, 1) or a partition is empty.
    """
    if not 0.0 < train_ratio < 1.0:
        msg = f"train_ratio must be in (0, 1), got {train_ratio}"
        raise ValueError(msg)

    train, test = train_test_split(df, train_size=train_ratio, random_state=seed)

    log.info(
        "Split data",
        n_train=len(train),
        n_test=len(test),
        train_ratio=train_ratio,
        seed=seed,
    )

    return TrainTestSplit(train=train, test=test, train_ratio=train_ratio, seed=seed)
