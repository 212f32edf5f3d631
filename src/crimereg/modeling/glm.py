"""
Generalized linear model backend.

Wraps statsmodels GLM fitting behind a session-scoped backend so the
pruning code only sees coefficients, p-values and a predict function.
"""

from dataclasses import dataclass
from types import TracebackType

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.genmod.generalized_linear_model import GLMResultsWrapper

from crimereg.config.settings import GLMFamily
from crimereg.utils.logging import get_logger

log = get_logger(__name__)

INTERCEPT = "const"

_FAMILIES = {
    GLMFamily.GAUSSIAN: sm.families.Gaussian,
    GLMFamily.POISSON: sm.families.Poisson,
}


def add_intercept(X: pd.DataFrame) -> pd.DataFrame:
    """Prepend an intercept column, even if a constant column exists."""
    return sm.add_constant(X, prepend=True, has_constant="add")


@dataclass(frozen=True)
class FittedGLM:
    """
    A fitted GLM restricted to one feature set.

    Attributes:
        features: Features the model was fitted on, in order.
        target: Target column name.
        family: Error distribution.
        result: Underlying statsmodels results object.
    """

    features: tuple[str, ...]
    target: str
    family: GLMFamily
    result: GLMResultsWrapper

    @property
    def coefficients(self) -> pd.Series:
        """Fitted coefficients including the intercept."""
        return self.result.params

    @property
    def p_values(self) -> pd.Series:
        """Coefficient p-values per feature, intercept excluded."""
        return self.result.pvalues.drop(labels=[INTERCEPT]).reindex(list(self.features))

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        """Predict the target for the rows of frame."""
        exog = add_intercept(frame[list(self.features)])
        return np.asarray(self.result.predict(exog), dtype=float)


class GLMBackend:
    """
    Session-scoped GLM fitting backend.

    Use as a context manager; the session is started once and shut down
    once per analysis run.

    Example:
        with GLMBackend(GLMFamily.GAUSSIAN) as backend:
            model = backend.fit(train, ["medIncome"], "ViolentCrimesPerPop")
    """

    def __init__(
        self,
        family: GLMFamily = GLMFamily.GAUSSIAN,
        max_iter: int = 100,
    ) -> None:
        """
        Initialize backend.

        Args:
            family: Error distribution of the model.
            max_iter: Maximum IRLS iterations per fit.
        """
        self.family = family
        self.max_iter = max_iter
        self.n_fits = 0
        self._active = False

    @property
    def is_active(self) -> bool:
        """Whether a session is currently open."""
        return self._active

    def start(self) -> None:
        """Open the backend session."""
        if self._active:
            msg = "GLM backend session already started"
            raise RuntimeError(msg)
        self._active = True
        self.n_fits = 0
        log.info("GLM backend started", family=self.family.value)

    def shutdown(self) -> None:
        """Close the backend session."""
        if self._active:
            self._active = False
            log.info("GLM backend shut down", n_fits=self.n_fits)

    def __enter__(self) -> "GLMBackend":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()

    def fit(
        self,
        frame: pd.DataFrame,
        features: tuple[str, ...] | list[str],
        target: str,
    ) -> FittedGLM:
        """
        Fit a GLM of target on features using all rows of frame.

        Args:
            frame: Training rows.
            features: Predictor columns.
            target: Target column.

        Returns:
            FittedGLM for exactly these features.

        Raises:
            RuntimeError: If no session is active.
            ValueError: If features is empty, contains the target or uses
                the intercept's name.
        """
        if not self._active:
            msg = "GLM backend is not started; use it as a context manager"
            raise RuntimeError(msg)

        features = tuple(features)
        if not features:
            msg = "Cannot fit a GLM without features"
            raise ValueError(msg)
        if target in features:
            msg = f"Target {target!r} cannot be used as a feature"
            raise ValueError(msg)
        if INTERCEPT in features:
            msg = f"Feature name {INTERCEPT!r} is reserved for the intercept"
            raise ValueError(msg)

        exog = add_intercept(frame[list(features)])
        model = sm.GLM(frame[target], exog, family=_FAMILIES[self.family]())
        result = model.fit(maxiter=self.max_iter)
        self.n_fits += 1

        log.debug(
            "Fitted GLM",
            n_features=len(features),
            n_rows=len(frame),
            deviance=float(result.deviance),
        )

        return FittedGLM(
            features=features, target=target, family=self.family, result=result
        )
