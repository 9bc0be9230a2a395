"""
Remote type synchronization.

Fetches type declarations for every configured remote. Each remote is handled
independently: one failing remote never stops the others.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import aiofiles
import requests

from config.defaults import DIR_EMITTED_TYPES, EMITTED_TYPES_FILE, REGISTRY_MANIFEST_KEY
from ..models.results import SyncAction, SyncOutcome

logger = logging.getLogger(__name__)


class DownloadError(Exception):
    """Raised when the types of a single remote cannot be fetched"""
    pass


def parse_remote_locator(locator: str) -> Optional[str]:
    """
    Extract the remote entry URL from a locator.

    Locators look like `app2@https://cdn.example.com/app2/remoteEntry.js`;
    a bare remote name carries no URL.
    """
    index = locator.find("@http")
    if index < 0:
        return None
    return locator[index + 1:]


def types_url_for(remote_entry_url: str) -> str:
    """Types published next to a remote entry"""
    return urljoin(remote_entry_url, f"{DIR_EMITTED_TYPES}/{EMITTED_TYPES_FILE}")


class TypesDownloader(ABC):
    """Collaborator that writes the declarations of one remote to disk"""

    @abstractmethod
    async def download_remote(
        self,
        remote_name: str,
        locator: str,
        manifest_urls: Dict[str, str]
    ) -> Path:
        """Download types for one remote, returning the written file"""


class ManifestTypesDownloader(TypesDownloader):
    """
    Downloads remote declarations located through published manifests.

    A manifest is a JSON object keyed by remote name. Each value is the remote
    entry URL, or an object carrying it under `remoteEntry` (or `url`).
    """

    def __init__(
        self,
        types_dir: Path,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        self.types_dir = Path(types_dir)
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, url: str) -> requests.Response:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response

    async def _fetch_json(self, url: str) -> Any:
        response = await asyncio.to_thread(self._get, url)
        try:
            return response.json()
        except ValueError as e:
            raise DownloadError(f"Manifest at {url} is not valid JSON") from e

    async def _fetch_text(self, url: str) -> str:
        response = await asyncio.to_thread(self._get, url)
        return response.text

    async def resolve_remote_entry(
        self,
        remote_name: str,
        locator: str,
        manifest_urls: Dict[str, str]
    ) -> str:
        """Find the remote entry URL, preferring the manifest over the locator"""
        manifest_url = manifest_urls.get(remote_name) or manifest_urls.get(REGISTRY_MANIFEST_KEY)

        if manifest_url:
            manifest = await self._fetch_json(manifest_url)
            entry = manifest.get(remote_name) if isinstance(manifest, dict) else None
            if isinstance(entry, dict):
                entry = entry.get("remoteEntry") or entry.get("url")
            if isinstance(entry, str) and entry:
                return urljoin(manifest_url, entry)
            logger.debug(f"Remote '{remote_name}' not listed in manifest {manifest_url}")

        remote_entry = parse_remote_locator(locator)
        if not remote_entry:
            raise DownloadError(f"No remote entry URL found for '{remote_name}'")
        return remote_entry

    async def download_remote(
        self,
        remote_name: str,
        locator: str,
        manifest_urls: Dict[str, str]
    ) -> Path:
        try:
            remote_entry = await self.resolve_remote_entry(remote_name, locator, manifest_urls)
            types_url = types_url_for(remote_entry)
            logger.debug(f"Fetching types for '{remote_name}' from {types_url}")
            definitions = await self._fetch_text(types_url)
        except requests.RequestException as e:
            raise DownloadError(f"Failed to fetch types for '{remote_name}': {e}") from e

        target = self.types_dir / f"{remote_name}.d.ts"
        target.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(target, 'w', encoding='utf-8') as f:
            await f.write(definitions)

        logger.info(f"Downloaded types for remote '{remote_name}' to {target}")
        return target


class RemoteTypeSync:
    """Fetch declarations for all configured remotes"""

    def __init__(self, downloader: TypesDownloader):
        self.downloader = downloader

    async def download_all(
        self,
        remotes: Dict[str, str],
        manifest_urls: Dict[str, str]
    ) -> SyncOutcome:
        """
        Download types for every remote and aggregate the outcome.

        Args:
            remotes: remote name -> locator
            manifest_urls: remote name (or registry key) -> manifest URL

        Returns:
            SyncOutcome listing remotes that failed
        """
        start_time = time.perf_counter()
        failed = []
        errors = []

        for remote_name, locator in remotes.items():
            try:
                await self.downloader.download_remote(remote_name, locator, manifest_urls)
            except Exception as e:
                failed.append(remote_name)
                errors.append(f"{remote_name}: {e}")
                logger.warning(f"Failed to download types for remote '{remote_name}': {e}")

        processing_time = (time.perf_counter() - start_time) * 1000

        if failed:
            return SyncOutcome.error_result(
                SyncAction.DOWNLOAD,
                diagnostic="; ".join(errors),
                failed=failed,
                processing_time_ms=processing_time
            )

        logger.debug(f"Downloaded types for {len(remotes)} remote(s) in {processing_time:.1f}ms")
        return SyncOutcome.success_result(SyncAction.DOWNLOAD, processing_time_ms=processing_time)
