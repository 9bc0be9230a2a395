"""
Build output watcher.

Provides a BuildHost for builds running in a separate process (a bundler in
watch mode, a dev server). A watchdog observer monitors the build output
directory and a debounced burst of writes is reported as one completed build.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

from watchdog.events import FileSystemEventHandler, FileSystemEvent as WatchdogEvent
from watchdog.observers import Observer

from config.defaults import DEFAULT_SETTINGS, DIR_EMITTED_TYPES, MODE_PRODUCTION
from .host import BuildHost

logger = logging.getLogger(__name__)


class DirectoryBuildHost(BuildHost):
    """
    Build host whose completion signal comes from writes to its output directory.

    Writes below the emitted types directory are ignored, otherwise every
    compile would look like a new build.
    """

    def __init__(
        self,
        mode: str = MODE_PRODUCTION,
        output_path: Optional[Path] = None,
        dev_server_static_dir: Optional[Path] = None,
        extensions: Optional[List[Any]] = None,
        debounce_ms: int = DEFAULT_SETTINGS["watch"]["debounce_ms"],
        ignored_paths: Optional[Iterable[Path]] = None,
        logger_hint: str = "Run with --verbose for compiler output."
    ):
        super().__init__(
            mode=mode,
            output_path=output_path,
            dev_server_static_dir=dev_server_static_dir,
            extensions=extensions,
            logger_hint=logger_hint
        )
        self.debounce_ms = debounce_ms
        self.watch_path = self.dist_path.resolve()
        self.ignored_paths = [self.watch_path / DIR_EMITTED_TYPES]
        self.ignored_paths.extend(Path(p).resolve() for p in ignored_paths or [])

        self.observer: Optional[Observer] = None
        self.event_handler: Optional['BuildOutputEventHandler'] = None
        self._debounce_task: Optional[asyncio.Task] = None
        self.builds_detected = 0

    @property
    def is_watching(self) -> bool:
        return self.observer is not None

    def is_ignored(self, path: Path) -> bool:
        path = Path(path).resolve()
        return any(path == ignored or ignored in path.parents for ignored in self.ignored_paths)

    async def start_watching(self) -> bool:
        """
        Start watching the build output directory.

        Returns:
            True if watching started successfully, False otherwise
        """
        if self.is_watching:
            logger.warning("Build output watcher is already running")
            return True

        try:
            self.watch_path.mkdir(parents=True, exist_ok=True)

            self.event_handler = BuildOutputEventHandler(self)
            self.event_handler.set_event_loop(asyncio.get_running_loop())

            self.observer = Observer()
            self.observer.schedule(self.event_handler, str(self.watch_path), recursive=True)
            self.observer.start()

            logger.info(f"Watching build output in {self.watch_path}")
            return True

        except Exception as e:
            logger.error(f"Failed to start build output watcher for {self.watch_path}: {e}")
            self.observer = None
            return False

    async def stop_watching(self) -> None:
        """Stop the observer and any pending debounce"""
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

        if self.event_handler:
            self.event_handler.set_event_loop(None)

        if self.observer:
            observer, self.observer = self.observer, None
            observer.stop()
            await asyncio.to_thread(observer.join, 3.0)
            logger.info("Stopped build output watcher")

    def schedule_build_complete(self) -> None:
        """Restart the debounce window; called on the event loop thread"""
        if self._debounce_task and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_build_complete())

    async def _debounced_build_complete(self) -> None:
        await asyncio.sleep(self.debounce_ms / 1000)
        self.builds_detected += 1
        logger.debug(f"Build output settled, build #{self.builds_detected} complete")
        await self.notify_build_complete()


class BuildOutputEventHandler(FileSystemEventHandler):
    """
    Watchdog event handler that forwards output writes to DirectoryBuildHost.

    Watchdog calls it from its own thread, so events are handed to the asyncio
    loop with call_soon_threadsafe.
    """

    def __init__(self, host: DirectoryBuildHost):
        super().__init__()
        self.host = host
        self._event_loop: Optional[asyncio.AbstractEventLoop] = None

    def set_event_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        self._event_loop = loop

    def on_any_event(self, event: WatchdogEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed_no_write"):
            return

        paths = [event.src_path]
        if getattr(event, "dest_path", ""):
            paths.append(event.dest_path)
        if all(self.host.is_ignored(Path(p)) for p in paths):
            return

        loop = self._event_loop
        if loop is None or loop.is_closed():
            logger.debug(f"No event loop available, dropping event: {event}")
            return
        try:
            loop.call_soon_threadsafe(self.host.schedule_build_complete)
        except RuntimeError as e:
            if "closed" not in str(e).lower():
                logger.error(f"Failed to schedule build completion: {e}")
