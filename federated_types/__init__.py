"""
Federated Types Sync - type declaration synchronization for module federation.

Compiles declarations for exposed modules, rewrites them to federated module
names, and downloads declarations published by remotes, once per build or
continuously during development.
"""

__version__ = "1.0.0"

# Package imports for convenient access
from core.models.config import ModuleFederationTypesOptions, EffectiveConfig, FederationTopology
from core.models.results import SyncPlan, SyncOutcome
from core.sync.controller import ModuleFederationTypesSync
from core.sync.host import BuildHost, ModuleFederationPlugin

__all__ = [
    "ModuleFederationTypesOptions",
    "EffectiveConfig",
    "FederationTopology",
    "SyncPlan",
    "SyncOutcome",
    "ModuleFederationTypesSync",
    "BuildHost",
    "ModuleFederationPlugin",
    "__version__",
]
