"""
Configuration loading utilities.

Supports environment variable interpolation and config inheritance.
Minimal configs only need: project, data.path
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from crimereg.config.settings import (
    AnalysisConfig,
    CleaningConfig,
    DataConfig,
    LoggingConfig,
    MLflowConfig,
    OutputConfig,
    SelectionConfig,
    TrainingConfig,
)


def _interpolate_env_vars(value: str) -> str:
    """
    Interpolate environment variables in string values.

    Supports ${VAR} and ${VAR:default} syntax.
    """
    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)
        return os.environ.get(var_name, default if default is not None else "")

    return re.sub(pattern, replacer, value)


def _process_config_values(obj: Any) -> Any:
    """Recursively process config values for env var interpolation."""
    if isinstance(obj, str):
        return _interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _process_config_values(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_process_config_values(item) for item in obj]
    return obj


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and process environment variables."""
    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return _process_config_values(data) if data else {}


def build_config(merged: dict[str, Any]) -> AnalysisConfig:
    """
    Build a validated AnalysisConfig from a merged config dictionary.

    Args:
        merged: Raw configuration mapping (already interpolated).

    Returns:
        Fully validated AnalysisConfig instance.
    """
    project = merged.get("project")
    if not project:
        msg = "Config must specify 'project' name"
        raise ValueError(msg)

    data_data = merged.get("data", {})
    if not data_data.get("path"):
        msg = "Config must specify 'data.path'"
        raise ValueError(msg)

    data_kwargs: dict[str, Any] = {
        "root": Path(data_data.get("root", "./data")),
        "path": Path(data_data["path"]),
    }
    for key in ("delimiter", "na_values", "target", "drop_columns", "max_missing_fraction"):
        if key in data_data:
            data_kwargs[key] = data_data[key]

    mlflow_data = merged.get("mlflow", {})
    output_data = merged.get("output", {})

    return AnalysisConfig(
        project=project,
        data=DataConfig(**data_kwargs),
        cleaning=CleaningConfig(**merged.get("cleaning", {})),
        selection=SelectionConfig(**merged.get("selection", {})),
        training=TrainingConfig(**merged.get("training", {})),
        mlflow=MLflowConfig(
            enabled=mlflow_data.get("enabled", False),
            tracking_uri=mlflow_data.get("tracking_uri", "http://127.0.0.1:5000"),
            experiment_name=mlflow_data.get("experiment_name"),  # None = use project
        ),
        output=OutputConfig(
            output_root=Path(output_data.get("root", "./output")),
            save_plots=output_data.get("save_plots", True),
        ),
        logging=LoggingConfig(**merged.get("logging", {})),
    )


def load_config(
    config_path: Path,
    base_path: Path | None = None,
) -> AnalysisConfig:
    """
    Load analysis configuration from YAML file(s).

    Minimal config requires only:
        - project: str
        - data.path: path to the delimited dataset

    Args:
        config_path: Path to the main configuration file.
        base_path: Optional path to base configuration for inheritance.

    Returns:
        Fully validated AnalysisConfig instance.
    """
    if base_path is not None:
        base_data = load_yaml(base_path)
    else:
        # Try to find base.yaml in same directory
        potential_base = config_path.parent / "base.yaml"
        is_self = potential_base.resolve() == config_path.resolve()
        base_data = (
            load_yaml(potential_base)
            if potential_base.exists() and not is_self
            else {}
        )

    main_data = load_yaml(config_path)

    # Main overrides base
    merged = _deep_merge(base_data, main_data)

    return build_config(merged)
