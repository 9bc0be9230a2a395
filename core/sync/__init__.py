"""
Federated Type Declaration Synchronization.

Keeps the published declarations of exposed modules and the consumed
declarations of remote modules in sync with a running build.

Key Components:
- evaluate: Gate deciding which sub-flows run
- RemoteTypeSync: Per-remote declaration downloads
- LocalTypeCompiler: Declaration compile and federated specifier rewrite
- ContinuousSyncScheduler: Single recurring idle-download timer
- ModuleFederationTypesSync: Controller composing the lifecycle
- BuildHost / DirectoryBuildHost: Host build abstraction and watched output directory
"""

from .gate import evaluate
from .remote import RemoteTypeSync, TypesDownloader, ManifestTypesDownloader, DownloadError
from .compiler import (
    LocalTypeCompiler,
    TypeCompiler,
    TscTypeCompiler,
    rewrite_paths_with_exposed_federated_modules,
)
from .scheduler import ContinuousSyncScheduler, SchedulerState
from .host import BuildHost, ModuleFederationPlugin, find_federation_plugin
from .watcher import DirectoryBuildHost
from .controller import ModuleFederationTypesSync, get_output_target

__all__ = [
    "evaluate",
    "RemoteTypeSync",
    "TypesDownloader",
    "ManifestTypesDownloader",
    "DownloadError",
    "LocalTypeCompiler",
    "TypeCompiler",
    "TscTypeCompiler",
    "rewrite_paths_with_exposed_federated_modules",
    "ContinuousSyncScheduler",
    "SchedulerState",
    "BuildHost",
    "ModuleFederationPlugin",
    "find_federation_plugin",
    "DirectoryBuildHost",
    "ModuleFederationTypesSync",
    "get_output_target",
]

__version__ = "1.0.0"
