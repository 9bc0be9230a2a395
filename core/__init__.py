"""
federated-types-sync core package

Type declaration synchronization for module federation builds.
"""

__version__ = "1.0.0"

from .models import (
    EffectiveConfig,
    FederationTopology,
    ModuleFederationTypesOptions,
    SyncOutcome,
    SyncPlan,
)

__all__ = [
    "EffectiveConfig",
    "FederationTopology",
    "ModuleFederationTypesOptions",
    "SyncOutcome",
    "SyncPlan",
]
