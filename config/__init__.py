"""
Configuration management for federated-types-sync

Handles option resolution, environment settings and federation file loading.
"""

from .loader import ConfigurationLoader, ConfigurationError, ProjectFederationConfig
from .resolver import resolve_config, is_valid_url, get_remote_manifest_urls
from .settings import SyncEnvironment
from .defaults import DEFAULT_SETTINGS

__all__ = [
    "ConfigurationLoader",
    "ConfigurationError",
    "ProjectFederationConfig",
    "resolve_config",
    "is_valid_url",
    "get_remote_manifest_urls",
    "SyncEnvironment",
    "DEFAULT_SETTINGS",
]
