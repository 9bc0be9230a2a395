"""
Environment-derived settings for federated-types-sync.
"""

from typing import Optional
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .defaults import DEFAULT_SETTINGS, DEPLOYMENT_ENV_VAR


class SyncEnvironment(BaseSettings):
    """Process environment settings with MFTS_ prefixed overrides"""
    model_config = SettingsConfigDict(
        env_prefix="MFTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore"
    )

    # Deployment marker, read without the prefix
    deployment_env: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(DEPLOYMENT_ENV_VAR, "deployment_env")
    )

    # Downloader
    download_timeout: float = Field(default=DEFAULT_SETTINGS["download"]["timeout"], gt=0, le=600.0)
    types_dir: str = DEFAULT_SETTINGS["download"]["types_dir"]

    # Compiler
    tsc_path: str = DEFAULT_SETTINGS["compile"]["tsc_path"]

    # Logging
    log_level: str = Field(default=DEFAULT_SETTINGS["logging"]["level"], pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
