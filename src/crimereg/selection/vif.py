"""
Multicollinearity pruning by variance inflation factor.

Each iteration fits an OLS model on the current feature set, computes
the VIF of every feature and drops the single worst one while it
exceeds the threshold. Iterations return new snapshots; nothing is
mutated in place.
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.regression.linear_model import RegressionResultsWrapper
from statsmodels.stats.outliers_influence import variance_inflation_factor

from crimereg.errors import PruningError
from crimereg.modeling.glm import INTERCEPT, add_intercept
from crimereg.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_VIF_THRESHOLD = 1.5


@dataclass(frozen=True)
class VIFStep:
    """
    One iteration of multicollinearity pruning.

    Attributes:
        features: Feature set the model was fitted on.
        model: OLS fit of the target on exactly these features.
        vifs: VIF per feature (inf where undefined).
        dropped: Feature removed after this step, or None if terminal.
    """

    features: tuple[str, ...]
    model: RegressionResultsWrapper
    vifs: pd.Series
    dropped: str | None

    @property
    def max_vif(self) -> float:
        """Largest VIF in this step."""
        return float(self.vifs.max())

    @property
    def remaining(self) -> tuple[str, ...]:
        """Feature set after applying this step's drop."""
        return tuple(f for f in self.features if f != self.dropped)


@dataclass(frozen=True)
class VIFPruneResult:
    """Full history of a multicollinearity pruning run."""

    steps: tuple[VIFStep, ...]
    threshold: float

    @property
    def features(self) -> tuple[str, ...]:
        """Final feature set."""
        return self.steps[-1].remaining

    @property
    def model(self) -> RegressionResultsWrapper:
        """OLS model fitted on the final feature set."""
        return self.steps[-1].model

    @property
    def vifs(self) -> pd.Series:
        """VIFs of the final feature set."""
        return self.steps[-1].vifs

    @property
    def dropped(self) -> list[str]:
        """Features removed, in removal order."""
        return [s.dropped for s in self.steps if s.dropped is not None]


def compute_vif(X: pd.DataFrame) -> pd.Series:
    """
    Compute the variance inflation factor of every column of X.

    VIFs are computed against a design matrix with an intercept.
    Zero-variance columns and undefined VIFs are reported as inf.

    Args:
        X: Feature matrix.

    Returns:
        Series of VIFs indexed like X.columns.
    """
    vifs = pd.Series(np.inf, index=X.columns, dtype=float)

    varying = [col for col in X.columns if X[col].nunique(dropna=False) > 1]
    if not varying:
        return vifs

    exog = add_intercept(X[varying]).to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        for i, col in enumerate(varying, start=1):
            vifs[col] = variance_inflation_factor(exog, i)

    return vifs.fillna(np.inf)


def _fit_ols(
    df: pd.DataFrame, features: tuple[str, ...], target: str
) -> RegressionResultsWrapper:
    exog = add_intercept(df[list(features)])
    return sm.OLS(df[target], exog).fit()


def vif_step(
    df: pd.DataFrame,
    features: tuple[str, ...] | list[str],
    target: str,
    threshold: float = DEFAULT_VIF_THRESHOLD,
) -> VIFStep:
    """
    Run one iteration of multicollinearity pruning.

    Ties on the maximum VIF are broken by the current feature order:
    the first feature with the maximum is dropped.

    Args:
        df: Observation table (all rows are used).
        features: Current feature set.
        target: Target column.
        threshold: VIF above which the worst feature is dropped.

    Returns:
        VIFStep snapshot.

    Raises:
        PruningError: If features is empty, contains the target or uses the
            intercept's name.
    """
    features = tuple(features)
    if not features:
        msg = "Cannot compute VIF for an empty feature set"
        raise PruningError(msg)
    if target in features:
        msg = f"Target {target!r} must not be part of the feature set"
        raise PruningError(msg)
    if INTERCEPT in features:
        msg = f"Feature name {INTERCEPT!r} is reserved for the intercept"
        raise PruningError(msg)

    model = _fit_ols(df, features, target)
    vifs = compute_vif(df[list(features)])

    dropped = None
    # A single feature has no collinearity partner
    if len(features) >= 2 and vifs.max() > threshold:
        dropped = str(vifs.idxmax())

    return VIFStep(features=features, model=model, vifs=vifs, dropped=dropped)


def prune_multicollinear(
    df: pd.DataFrame,
    features: tuple[str, ...] | list[str],
    target: str,
    threshold: float = DEFAULT_VIF_THRESHOLD,
) -> VIFPruneResult:
    """
    Drop features one at a time until every VIF is at most threshold.

    Terminates when the maximum VIF is at most threshold or fewer than
    two features remain. Re-running on the result drops nothing.

    Args:
        df: Observation table.
        features: Initial feature set.
        target: Target column.
        threshold: VIF threshold.

    Returns:
        VIFPruneResult with the per-iteration history.
    """
    log.info(
        "Pruning multicollinear features",
        n_features=len(features),
        threshold=threshold,
    )

    steps: list[VIFStep] = []
    current = tuple(features)
    while True:
        step = vif_step(df, current, target, threshold)
        steps.append(step)
        if step.dropped is None:
            break
        log.info(
            "Dropped collinear feature",
            feature=step.dropped,
            vif=float(step.vifs[step.dropped]),
            remaining=len(step.remaining),
        )
        current = step.remaining

    result = VIFPruneResult(steps=tuple(steps), threshold=threshold)
    log.info(
        "Multicollinearity pruning finished",
        n_iterations=len(steps),
        n_dropped=len(result.dropped),
        n_features=len(result.features),
        max_vif=steps[-1].max_vif,
    )
    return result
