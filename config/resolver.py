"""
Configuration resolution.

Merges explicit plugin options with environment-derived defaults into an
immutable EffectiveConfig. Invalid manifest URLs are reported on the result,
never raised.
"""

import logging
from typing import Dict, Iterable, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from core.models.config import EffectiveConfig, ModuleFederationTypesOptions
from .defaults import (
    DEFAULT_DOWNLOAD_TYPES_INTERVAL_IN_SECONDS,
    DOWNLOAD_DISABLED_DEPLOYMENT_ENV,
    REGISTRY_MANIFEST_KEY,
)
from .settings import SyncEnvironment

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(HttpUrl)


def is_valid_url(url: str) -> bool:
    """Check that a value is a well-formed absolute http(s) URL"""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        _http_url.validate_python(url)
    except ValidationError:
        return False
    return True


def is_every_url_valid(urls: Iterable[str]) -> bool:
    return all(is_valid_url(url) for url in urls)


def get_remote_manifest_urls(options: Optional[ModuleFederationTypesOptions]) -> Dict[str, str]:
    """
    Collect manifest URLs from the plugin options.

    The single `remote_manifest_url` shorthand is stored under the registry key
    and serves every remote without a manifest of its own.
    """
    if options is None:
        return {}

    urls: Dict[str, str] = {}
    if options.remote_manifest_url is not None:
        urls[REGISTRY_MANIFEST_KEY] = options.remote_manifest_url
    if options.remote_manifest_urls:
        urls.update(options.remote_manifest_urls)
    return urls


def resolve_config(
    options: Optional[ModuleFederationTypesOptions] = None,
    environment: Optional[SyncEnvironment] = None
) -> EffectiveConfig:
    """
    Resolve the effective configuration for one controller run.

    Args:
        options: Plugin options, any field may be missing
        environment: Environment settings (read from the process when None)

    Returns:
        Frozen EffectiveConfig
    """
    options = options or ModuleFederationTypesOptions()
    environment = environment if environment is not None else SyncEnvironment()

    if options.disable_downloading_remote_types is not None:
        disable_download = options.disable_downloading_remote_types
    else:
        disable_download = environment.deployment_env == DOWNLOAD_DISABLED_DEPLOYMENT_ENV

    interval = options.idle_sync_interval_seconds or DEFAULT_DOWNLOAD_TYPES_INTERVAL_IN_SECONDS

    manifest_urls = get_remote_manifest_urls(options)
    invalid = {name: url for name, url in manifest_urls.items() if not is_valid_url(url)}

    logger.debug(
        f"Resolved config: download disabled={disable_download}, interval={interval}s, "
        f"{len(manifest_urls)} manifest URL(s), {len(invalid)} invalid"
    )

    return EffectiveConfig(
        disable_type_compilation=bool(options.disable_type_compilation),
        disable_type_download=disable_download,
        idle_sync_interval_seconds=interval,
        remote_manifest_urls=manifest_urls,
        manifest_urls_valid=not invalid,
        invalid_manifest_urls=invalid,
    )
