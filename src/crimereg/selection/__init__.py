"""
Feature selection: VIF-based and p-value-based pruning loops.
"""

from crimereg.selection.significance import (
    SignificancePruneResult,
    SignificanceStep,
    prune_insignificant,
    significance_step,
)
from crimereg.selection.vif import (
    VIFPruneResult,
    VIFStep,
    compute_vif,
    prune_multicollinear,
    vif_step,
)

__all__ = [
    "SignificancePruneResult",
    "SignificanceStep",
    "VIFPruneResult",
    "VIFStep",
    "compute_vif",
    "prune_insignificant",
    "prune_multicollinear",
    "significance_step",
    "vif_step",
]
