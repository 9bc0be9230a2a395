"""
Core data models for federated-types-sync

All Pydantic models for configuration, topology and sync results.
"""

from .config import ModuleFederationTypesOptions, EffectiveConfig, FederationTopology
from .results import SyncAction, SyncPlan, SyncOutcome, CompileResult

__all__ = [
    # Configuration
    "ModuleFederationTypesOptions",
    "EffectiveConfig",
    "FederationTopology",

    # Results
    "SyncAction",
    "SyncPlan",
    "SyncOutcome",
    "CompileResult",
]
