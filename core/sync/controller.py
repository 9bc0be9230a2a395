"""
Synchronization controller.

Composes configuration resolution, gating, remote download, local compile and
the continuous scheduler into the lifecycle run once per build process start:
resolve, gate, download on startup, then compile once or wire continuous sync.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config.defaults import DIR_EMITTED_TYPES, EMITTED_TYPES_FILE
from config.resolver import resolve_config
from config.settings import SyncEnvironment
from ..models.config import EffectiveConfig, FederationTopology, ModuleFederationTypesOptions
from ..models.results import SyncAction, SyncOutcome, SyncPlan
from .compiler import LocalTypeCompiler, TscTypeCompiler, TypeCompiler
from .gate import evaluate
from .host import BuildHost, Unsubscribe, read_federation_topology
from .remote import ManifestTypesDownloader, RemoteTypeSync, TypesDownloader
from .scheduler import ContinuousSyncScheduler

logger = logging.getLogger(__name__)


def get_output_target(host: BuildHost) -> Path:
    """Declaration index emitted for exposed modules"""
    return host.dist_path / DIR_EMITTED_TYPES / EMITTED_TYPES_FILE


class ModuleFederationTypesSync:
    """
    Keeps published and consumed federated type declarations in sync with a build.

    Collaborators (compiler, downloader, scheduler) are injectable; defaults
    use `tsc` and manifest downloads configured from the environment.
    """

    PLUGIN_NAME = "ModuleFederationTypesPlugin"

    def __init__(
        self,
        options: Optional[ModuleFederationTypesOptions] = None,
        compiler: Optional[TypeCompiler] = None,
        downloader: Optional[TypesDownloader] = None,
        scheduler: Optional[ContinuousSyncScheduler] = None,
        environment: Optional[SyncEnvironment] = None
    ):
        self.options = options or ModuleFederationTypesOptions()
        self.environment = environment
        self.compiler = compiler
        self.downloader = downloader
        self.scheduler = scheduler or ContinuousSyncScheduler()

        # Run state, set by apply()
        self.config: Optional[EffectiveConfig] = None
        self.topology: Optional[FederationTopology] = None
        self.plan: Optional[SyncPlan] = None
        self.output_target: Optional[Path] = None
        self.outcomes: List[SyncOutcome] = []

        self._remote_sync: Optional[RemoteTypeSync] = None
        self._local_compiler: Optional[LocalTypeCompiler] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    async def apply(self, host: BuildHost) -> SyncPlan:
        """
        Run the synchronization lifecycle against a build host.

        Never raises for synchronization problems; they are logged and the
        host build carries on with missing or partial types.

        Returns:
            The gate decision for this run
        """
        environment = self.environment if self.environment is not None else SyncEnvironment()
        self.config = resolve_config(self.options, environment)

        if not self.config.manifest_urls_valid:
            logger.warning(f"One or more remote manifest URLs are invalid: {self.config.invalid_manifest_urls}")

        self.topology = read_federation_topology(host.extensions)
        self.plan = evaluate(self.config, self.topology)

        if self.plan.is_disabled:
            if self.plan.reason:
                logger.info(f"Plugin disabled: {self.plan.reason}")
            else:
                logger.info("Nothing to synchronize: no remotes to download and no exposed modules to compile")
            return self.plan

        self.output_target = get_output_target(host)

        self._remote_sync = RemoteTypeSync(
            self.downloader or ManifestTypesDownloader(
                types_dir=Path(environment.types_dir),
                timeout=environment.download_timeout
            )
        )
        self._local_compiler = LocalTypeCompiler(
            self.compiler or TscTypeCompiler(environment.tsc_path),
            federation_name=self.topology.name,
            logger_hint=host.logger_hint
        )

        if self.plan.run_download:
            logger.info("Downloading types on startup")
            await self.download_types()

        if self.plan.run_compile:
            continuous = host.is_development and self.config.continuous_sync_enabled
            if continuous and self.plan.run_download:
                logger.info(
                    f"Syncing types continuously: compiling on every build, "
                    f"downloading when idle for {self.config.idle_sync_interval_seconds}s"
                )
                self._unsubscribe = host.on_build_complete(self.PLUGIN_NAME, self._on_build_complete)
                self._arm()
                await self.compile_types()
            else:
                logger.info("Compile types on startup only")
                await self.compile_types()

        return self.plan

    async def download_types(self) -> SyncOutcome:
        """Download declarations for every configured remote"""
        return await self._run_action(
            SyncAction.DOWNLOAD,
            lambda: self._remote_sync.download_all(
                self.topology.remotes or {}, self.config.remote_manifest_urls
            )
        )

    async def compile_types(self) -> SyncOutcome:
        """Compile and rewrite declarations for exposed modules"""
        return await self._run_action(
            SyncAction.COMPILE,
            lambda: self._local_compiler.compile(self.topology.exposes or {}, self.output_target)
        )

    async def _run_action(
        self,
        action: SyncAction,
        run: Callable[[], Awaitable[SyncOutcome]]
    ) -> SyncOutcome:
        try:
            outcome = await run()
        except Exception as e:
            logger.warning(f"Unexpected error during type {action.value}: {e}")
            outcome = SyncOutcome.error_result(action, diagnostic=str(e))
        self.outcomes.append(outcome)
        return outcome

    def _arm(self) -> None:
        self.scheduler.arm(self.config.idle_sync_interval_seconds, self._download_when_idle)

    async def _download_when_idle(self) -> None:
        logger.info(
            f"{datetime.now():%Y-%m-%d %H:%M:%S} Downloading types every "
            f"{self.config.idle_sync_interval_seconds} seconds"
        )
        await self.download_types()

    async def _on_build_complete(self) -> None:
        logger.info("Compiling types on build completion")
        self._arm()
        await self.compile_types()

    async def shutdown(self) -> None:
        """Stop continuous sync: unsubscribe, disarm and wait for running fires"""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.scheduler.disarm()
        await self.scheduler.drain()
        logger.debug("Type synchronization shut down")

    def get_status(self) -> Dict[str, Any]:
        """Get status information for the current run"""
        return {
            "plan": self.plan.model_dump() if self.plan else None,
            "output_target": str(self.output_target) if self.output_target else None,
            "continuous": self._unsubscribe is not None,
            "scheduler": self.scheduler.get_status(),
            "compiles": sum(1 for o in self.outcomes if o.action == SyncAction.COMPILE),
            "downloads": sum(1 for o in self.outcomes if o.action == SyncAction.DOWNLOAD),
            "failures": sum(1 for o in self.outcomes if not o.success),
        }

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.shutdown()
