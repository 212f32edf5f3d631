"""
Configuration management with typed Pydantic models.

Provides YAML loading with environment-variable interpolation
and base-config inheritance.
"""

from crimereg.config.loader import build_config, load_config
from crimereg.config.settings import (
    AnalysisConfig,
    CleaningConfig,
    DataConfig,
    GLMFamily,
    LoggingConfig,
    MLflowConfig,
    NanPValuePolicy,
    OutputConfig,
    SelectionConfig,
    TrainingConfig,
)

__all__ = [
    "AnalysisConfig",
    "CleaningConfig",
    "DataConfig",
    "GLMFamily",
    "LoggingConfig",
    "MLflowConfig",
    "NanPValuePolicy",
    "OutputConfig",
    "SelectionConfig",
    "TrainingConfig",
    "build_config",
    "load_config",
]
