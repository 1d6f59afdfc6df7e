"""Status Controller module.

This module provides the StatusController that feeds the status of the
resources deployed on a spoke cluster back into the Work records on the hub.
"""

from .aggregate import aggregate_manifest_conditions
from .builder import ResourceObservation, StatusBuilder
from .controller import ReconcileResult, StatusController

__all__ = [
    "StatusController",
    "ReconcileResult",
    "StatusBuilder",
    "ResourceObservation",
    "aggregate_manifest_conditions",
]
