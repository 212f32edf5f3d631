"""
Backward elimination of insignificant features by GLM p-value.

Each iteration fits a GLM on the training partition restricted to the
current features plus the target, then drops the feature with the
largest p-value while it exceeds alpha.

Undefined (NaN) p-values never enter a comparison. Under the default
``drop`` policy a feature whose coefficient has no defined p-value is
treated as insignificant and removed before any defined p-value is
considered; under ``raise`` the run is aborted.
"""

from dataclasses import dataclass

import pandas as pd

from crimereg.config.settings import NanPValuePolicy
from crimereg.errors import PruningError
from crimereg.modeling.glm import FittedGLM, GLMBackend
from crimereg.modeling.split import TrainTestSplit
from crimereg.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_ALPHA = 0.05


@dataclass(frozen=True)
class SignificanceStep:
    """
    One iteration of significance pruning.

    Attributes:
        features: Feature set the model was fitted on.
        model: GLM fitted on the training rows for exactly these features.
        p_values: p-value per feature (NaN where undefined).
        dropped: Feature removed after this step, or None if terminal.
        reason: Why the feature was dropped ('p_value' or 'undefined_p_value').
    """

    features: tuple[str, ...]
    model: FittedGLM
    p_values: pd.Series
    dropped: str | None
    reason: str | None = None

    @property
    def remaining(self) -> tuple[str, ...]:
        """Feature set after applying this step's drop."""
        return tuple(f for f in self.features if f != self.dropped)


@dataclass(frozen=True)
class SignificancePruneResult:
    """Full history of a significance pruning run."""

    steps: tuple[SignificanceStep, ...]
    alpha: float
    split: TrainTestSplit

    @property
    def features(self) -> tuple[str, ...]:
        """Final feature set."""
        return self.steps[-1].features

    @property
    def model(self) -> FittedGLM:
        """GLM fitted on the final feature set."""
        return self.steps[-1].model

    @property
    def p_values(self) -> pd.Series:
        """p-values of the final model."""
        return self.steps[-1].p_values

    @property
    def dropped(self) -> list[str]:
        """Features removed, in removal order."""
        return [s.dropped for s in self.steps if s.dropped is not None]

    @property
    def final_split(self) -> TrainTestSplit:
        """Train/test partitions restricted to final features and target."""
        return self.split.restrict([*self.features, self.model.target])


def significance_step(
    split: TrainTestSplit,
    features: tuple[str, ...] | list[str],
    target: str,
    backend: GLMBackend,
    alpha: float = DEFAULT_ALPHA,
    nan_policy: NanPValuePolicy = NanPValuePolicy.DROP,
) -> SignificanceStep:
    """
    Run one iteration of significance pruning.

    Args:
        split: Train/test partitions (all columns).
        features: Current feature set.
        target: Target column.
        backend: Active GLM backend.
        alpha: Significance level.
        nan_policy: Handling of undefined p-values.

    Returns:
        SignificanceStep snapshot.

    Raises:
        PruningError: If features is empty, the training partition has too
            few rows to fit them, a p-value is undefined under the raise
            policy, or the last feature would be dropped.
    """
    features = tuple(features)
    if not features:
        msg = "Cannot prune an empty feature set"
        raise PruningError(msg)
    # Intercept plus one coefficient per feature, with a residual left over
    if len(split.train) <= len(features) + 1:
        msg = (
            f"Training partition too small: {len(split.train)} rows for "
            f"{len(features)} features and an intercept"
        )
        raise PruningError(msg)

    train = split.train[[*features, target]]
    model = backend.fit(train, features, target)
    p_values = model.p_values.reindex(list(features))

    dropped: str | None = None
    reason: str | None = None

    undefined = [f for f in features if pd.isna(p_values[f])]
    if undefined:
        if nan_policy == NanPValuePolicy.RAISE:
            msg = f"Undefined p-values for features: {undefined}"
            raise PruningError(msg)
        dropped, reason = undefined[0], "undefined_p_value"
    elif p_values.max() > alpha:
        dropped, reason = str(p_values.idxmax()), "p_value"

    if dropped is not None and len(features) == 1:
        msg = (
            f"No significant features remain: last feature {dropped!r} "
            f"fails the significance test ({reason})"
        )
        raise PruningError(msg)

    return SignificanceStep(
        features=features,
        model=model,
        p_values=p_values,
        dropped=dropped,
        reason=reason,
    )


def prune_insignificant(
    split: TrainTestSplit,
    features: tuple[str, ...] | list[str],
    target: str,
    backend: GLMBackend,
    alpha: float = DEFAULT_ALPHA,
    nan_policy: NanPValuePolicy = NanPValuePolicy.DROP,
) -> SignificancePruneResult:
    """
    Drop features one at a time until every p-value is at most alpha.

    Args:
        split: Train/test partitions.
        features: Initial feature set.
        target: Target column.
        backend: Active GLM backend.
        alpha: Significance level.
        nan_policy: Handling of undefined p-values.

    Returns:
        SignificancePruneResult with the per-iteration history.
    """
    log.info(
        "Pruning insignificant features",
        n_features=len(features),
        alpha=alpha,
        nan_policy=nan_policy.value,
    )

    steps: list[SignificanceStep] = []
    current = tuple(features)
    while True:
        step = significance_step(split, current, target, backend, alpha, nan_policy)
        steps.append(step)
        if step.dropped is None:
            break
        p_value = step.p_values[step.dropped]
        log.info(
            "Dropped insignificant feature",
            feature=step.dropped,
            p_value=None if pd.isna(p_value) else float(p_value),
            reason=step.reason,
            remaining=len(step.remaining),
        )
        current = step.remaining

    result = SignificancePruneResult(steps=tuple(steps), alpha=alpha, split=split)
    log.info(
        "Significance pruning finished",
        n_iterations=len(steps),
        n_dropped=len(result.dropped),
        n_features=len(result.features),
    )
    return result
