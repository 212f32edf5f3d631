"""
Modeling layer: deterministic splitting and the GLM backend.
"""

from crimereg.modeling.glm import FittedGLM, GLMBackend
from crimereg.modeling.split import TrainTestSplit, split_table

__all__ = ["FittedGLM", "GLMBackend", "TrainTestSplit", "split_table"]
