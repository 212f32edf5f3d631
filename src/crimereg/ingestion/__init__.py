"""
Data ingestion layer.

Loads the observation table with schema validation at the boundary.
"""

from crimereg.ingestion.dataset import CrimeDatasetLoader, describe_target

__all__ = ["CrimeDatasetLoader", "describe_target"]
