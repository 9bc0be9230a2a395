"""
Build host abstraction.

The controller never talks to a concrete build tool. It reads the build mode,
the output directories and the configured extensions from a BuildHost, and
subscribes to its build-completion signal through a callback.
"""

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError

from config.defaults import DIR_DIST, MODE_DEVELOPMENT, MODE_PRODUCTION
from ..models.config import FederationTopology

logger = logging.getLogger(__name__)

BuildCompleteCallback = Callable[[], Awaitable[Any]]
Unsubscribe = Callable[[], None]


class ModuleFederationPlugin:
    """Federation plugin extension exposing `{name, exposes, remotes}`"""

    def __init__(
        self,
        name: Optional[str] = None,
        exposes: Optional[Dict[str, str]] = None,
        remotes: Optional[Dict[str, str]] = None,
        **extra: Any
    ):
        self._options: Dict[str, Any] = {"name": name, "exposes": exposes, "remotes": remotes, **extra}

    @property
    def options(self) -> Dict[str, Any]:
        return dict(self._options)


def find_federation_plugin(extensions: Sequence[Any]) -> Optional[Any]:
    """Locate the federation plugin by type, falling back to a class-name match"""
    for extension in extensions:
        if isinstance(extension, ModuleFederationPlugin):
            return extension
    for extension in extensions:
        if type(extension).__name__ == ModuleFederationPlugin.__name__:
            return extension
    return None


def read_federation_topology(extensions: Sequence[Any]) -> Optional[FederationTopology]:
    """
    Read the topology from the configured federation plugin.

    Returns None when the plugin is missing or its options are malformed.
    """
    plugin = find_federation_plugin(extensions)
    if plugin is None:
        return None

    options = getattr(plugin, "options", None) or {}
    try:
        return FederationTopology(
            name=options.get("name"),
            exposes=options.get("exposes"),
            remotes=options.get("remotes"),
        )
    except ValidationError as e:
        logger.warning(f"Federation plugin is misconfigured: {e}")
        return None


class BuildHost:
    """
    Host build process seen by the synchronization controller.

    Hosts call `notify_build_complete` after every successful build.
    """

    def __init__(
        self,
        mode: str = MODE_PRODUCTION,
        output_path: Optional[Path] = None,
        dev_server_static_dir: Optional[Path] = None,
        extensions: Optional[List[Any]] = None,
        logger_hint: str = "Set the log level to DEBUG for compiler output."
    ):
        self.mode = mode
        self.output_path = Path(output_path) if output_path else None
        self.dev_server_static_dir = Path(dev_server_static_dir) if dev_server_static_dir else None
        self.extensions: List[Any] = list(extensions or [])
        self.logger_hint = logger_hint

        self._subscribers: Dict[str, BuildCompleteCallback] = {}

    @property
    def is_development(self) -> bool:
        return self.mode == MODE_DEVELOPMENT

    @property
    def dist_path(self) -> Path:
        """Directory that receives emitted declarations"""
        return self.dev_server_static_dir or self.output_path or Path(DIR_DIST)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def on_build_complete(self, name: str, callback: BuildCompleteCallback) -> Unsubscribe:
        """
        Subscribe to the build-completion signal.

        Returns:
            Function removing the subscription
        """
        self._subscribers[name] = callback
        logger.debug(f"Subscribed '{name}' to build completion")

        def unsubscribe() -> None:
            if self._subscribers.get(name) is callback:
                del self._subscribers[name]
                logger.debug(f"Unsubscribed '{name}' from build completion")

        return unsubscribe

    async def notify_build_complete(self) -> None:
        """Run every subscriber; a failing subscriber never fails the build"""
        for name, callback in list(self._subscribers.items()):
            try:
                await callback()
            except Exception as e:
                logger.warning(f"Build completion subscriber '{name}' failed: {e}")
