"""
Configuration models for federated-types-sync.

Handles plugin options, the resolved effective configuration and the
federation topology read from the module federation plugin.
"""

from typing import Dict, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

CONTINUOUS_SYNC_DISABLED = -1
DEFAULT_DOWNLOAD_TYPES_INTERVAL_IN_SECONDS = 60


class ModuleFederationTypesOptions(BaseModel):
    """User supplied options for the types plugin. Every field may be omitted."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True
    )

    # Feature switches
    disable_type_compilation: Optional[bool] = None
    disable_downloading_remote_types: Optional[bool] = None

    # Continuous mode, -1 turns it off, 0 or missing means the default
    idle_sync_interval_seconds: Optional[int] = None

    # Manifests
    remote_manifest_urls: Optional[Dict[str, str]] = None
    remote_manifest_url: Optional[str] = None

    @field_validator('idle_sync_interval_seconds')
    @classmethod
    def validate_interval(cls, v: Optional[int]) -> Optional[int]:
        """Allow the sentinel, zero (default) and positive intervals"""
        if v is not None and v < 0 and v != CONTINUOUS_SYNC_DISABLED:
            raise ValueError(
                f'Idle sync interval must be positive, 0 or {CONTINUOUS_SYNC_DISABLED}'
            )
        return v


class EffectiveConfig(BaseModel):
    """Resolved settings for one controller run"""
    model_config = ConfigDict(frozen=True)

    disable_type_compilation: bool = False
    disable_type_download: bool = False
    idle_sync_interval_seconds: int = DEFAULT_DOWNLOAD_TYPES_INTERVAL_IN_SECONDS
    remote_manifest_urls: Dict[str, str] = Field(default_factory=dict)

    # False when any manifest URL failed validation
    manifest_urls_valid: bool = True
    invalid_manifest_urls: Dict[str, str] = Field(default_factory=dict)

    @property
    def continuous_sync_enabled(self) -> bool:
        """Whether the interval setting allows continuous mode"""
        return self.idle_sync_interval_seconds != CONTINUOUS_SYNC_DISABLED


class FederationTopology(BaseModel):
    """Declared shape of the federation, as configured on the federation plugin"""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        frozen=True
    )

    name: Optional[str] = None

    # local module path -> exposed name
    exposes: Optional[Dict[str, str]] = None

    # remote name -> locator ("name@https://host/remoteEntry.js" or a bare name)
    remotes: Optional[Dict[str, str]] = None

    @property
    def has_name(self) -> bool:
        return bool(self.name)

    @property
    def has_exposes(self) -> bool:
        return bool(self.exposes)

    @property
    def has_remotes(self) -> bool:
        return bool(self.remotes)
