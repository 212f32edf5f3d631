"""
Schema definitions using Pandera for data validation.

The observation table is validated once, at the ingestion boundary.
"""

from crimereg.schemas.crime import CrimeDatasetSchema, dataset_schema

__all__ = [
    "CrimeDatasetSchema",
    "dataset_schema",
]
