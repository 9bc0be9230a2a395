"""
End-to-end tests for the synchronization controller.

Runs the full lifecycle against an in-memory BuildHost with recording
collaborators: startup ordering, one-shot and continuous modes, gating and
failure handling.
"""

import logging
from pathlib import Path

import pytest

from config.settings import SyncEnvironment
from core.models.config import ModuleFederationTypesOptions
from core.models.results import SyncAction
from core.sync.controller import ModuleFederationTypesSync, get_output_target
from core.sync.host import BuildHost, ModuleFederationPlugin
from core.sync.scheduler import ContinuousSyncScheduler
from tests.fixtures.sync_fakes import FakeClock, RecordingCompiler, RecordingDownloader

REMOTES = {"app2": "app2@http://localhost:3002/remoteEntry.js"}
EXPOSES = {"./src/components/Button.tsx": "Button"}


@pytest.fixture
def events():
    return []


@pytest.fixture
def compiler(events):
    return RecordingCompiler(events=events)


@pytest.fixture
def downloader(events):
    return RecordingDownloader(events=events)


@pytest.fixture
def clock():
    return FakeClock()


def make_host(tmp_path: Path, mode: str = "production", **federation) -> BuildHost:
    return BuildHost(
        mode=mode,
        output_path=tmp_path / "dist",
        extensions=[object(), ModuleFederationPlugin(**federation)]
    )


def make_controller(compiler, downloader, clock=None, options=None, deployment_env=None):
    return ModuleFederationTypesSync(
        options or ModuleFederationTypesOptions(),
        compiler=compiler,
        downloader=downloader,
        scheduler=ContinuousSyncScheduler(sleep=clock.sleep if clock else None),
        environment=SyncEnvironment(deployment_env=deployment_env)
    )


def count(events, name):
    return sum(1 for event in events if event[0] == name)


class TestScenarios:
    """Test end-to-end sync scenarios"""

    @pytest.mark.asyncio
    async def test_remotes_only_downloads_once(self, tmp_path, compiler, downloader, events):
        """Test remotes only downloads once"""
        options = ModuleFederationTypesOptions(remote_manifest_urls={"app2": "http://x/manifest.json"})
        controller = make_controller(compiler, downloader, options=options)
        host = make_host(tmp_path, name="app1", remotes=REMOTES)

        plan = await controller.apply(host)

        assert plan.run_compile is False
        assert plan.run_download is True
        assert count(events, "download_start") == 1
        assert count(events, "compile_start") == 0
        assert downloader.calls[0][2] == {"app2": "http://x/manifest.json"}

    @pytest.mark.asyncio
    async def test_exposes_only_one_shot_compiles_once(self, tmp_path, compiler, downloader, events):
        """Test exposes only one-shot compiles once"""
        controller = make_controller(compiler, downloader)
        host = make_host(tmp_path, name="app1", exposes={"./Button": "Button"})

        plan = await controller.apply(host)

        assert plan.run_compile is True
        assert plan.run_download is False
        assert count(events, "compile_start") == 1
        assert count(events, "download_start") == 0
        assert controller.scheduler.arm_count == 0
        assert host.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_development_mode_syncs_continuously(self, tmp_path, compiler, downloader, events, clock):
        """Test development mode syncs continuously"""
        controller = make_controller(compiler, downloader, clock=clock)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)

        await controller.apply(host)

        assert count(events, "download_start") == 1
        assert count(events, "compile_start") == 1
        assert controller.scheduler.is_armed

        await clock.advance(60)

        assert count(events, "download_start") == 2
        assert count(events, "compile_start") == 1

        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_invalid_manifest_url_disables_everything(self, tmp_path, compiler, downloader, events, caplog):
        """Test invalid manifest URL disables everything"""
        options = ModuleFederationTypesOptions(remote_manifest_urls={"app2": "not-a-url"})
        controller = make_controller(compiler, downloader, options=options)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)

        with caplog.at_level(logging.INFO):
            plan = await controller.apply(host)

        assert plan.is_disabled
        assert events == []
        assert "One or more remote manifest URLs are invalid" in caplog.text
        assert "Plugin disabled: invalid manifest URLs" in caplog.text


class TestStartupOrdering:
    """Test download-before-compile ordering"""

    @pytest.mark.asyncio
    async def test_download_completes_before_first_compile(self, tmp_path, events):
        """Test download completes before first compile"""
        compiler = RecordingCompiler(events=events)
        downloader = RecordingDownloader(events=events, delay=0.02)
        controller = make_controller(compiler, downloader)
        host = make_host(tmp_path, name="app1", exposes=EXPOSES, remotes=REMOTES)

        await controller.apply(host)

        assert events.index(("download_end", "app2")) < events.index(("compile_start",))

    @pytest.mark.asyncio
    async def test_continuous_mode_keeps_ordering(self, tmp_path, events, clock):
        """Test continuous mode keeps ordering"""
        compiler = RecordingCompiler(events=events)
        downloader = RecordingDownloader(events=events, delay=0.02)
        controller = make_controller(compiler, downloader, clock=clock)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)

        await controller.apply(host)

        assert events[:3] == [("download_start", "app2"), ("download_end", "app2"), ("compile_start",)]
        await controller.shutdown()


class TestContinuousMode:
    """Test continuous sync in development mode"""

    @pytest.mark.asyncio
    async def test_build_completion_recompiles_and_rearms(self, tmp_path, compiler, downloader, events, clock):
        """Test build completion recompiles and re-arms"""
        controller = make_controller(compiler, downloader, clock=clock)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)
        await controller.apply(host)

        await clock.advance(40)
        await host.notify_build_complete()
        await host.notify_build_complete()

        assert count(events, "compile_start") == 3
        assert controller.scheduler.arm_count == 3

        # The last build re-armed at t=40, so nothing fires at t=60
        await clock.advance(20)
        assert count(events, "download_start") == 1

        await clock.advance(40)
        assert count(events, "download_start") == 2

        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_custom_interval(self, tmp_path, compiler, downloader, events, clock):
        """Test custom interval"""
        options = ModuleFederationTypesOptions(idle_sync_interval_seconds=5)
        controller = make_controller(compiler, downloader, clock=clock, options=options)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)
        await controller.apply(host)

        await clock.advance(15)

        assert count(events, "download_start") == 4
        await controller.shutdown()

    @pytest.mark.asyncio
    async def test_sentinel_interval_disables_continuous_mode(self, tmp_path, compiler, downloader, events):
        """Test sentinel interval disables continuous mode"""
        options = ModuleFederationTypesOptions(idle_sync_interval_seconds=-1)
        controller = make_controller(compiler, downloader, options=options)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)

        await controller.apply(host)

        assert count(events, "compile_start") == 1
        assert controller.scheduler.arm_count == 0
        assert host.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_no_continuous_mode_without_download(self, tmp_path, compiler, downloader, events):
        """Test no continuous mode without download"""
        controller = make_controller(compiler, downloader)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES)

        await controller.apply(host)

        assert count(events, "compile_start") == 1
        assert host.subscriber_count == 0
        assert not controller.scheduler.is_armed

    @pytest.mark.asyncio
    async def test_shutdown_unsubscribes_and_disarms(self, tmp_path, compiler, downloader, events, clock):
        """Test shutdown unsubscribes and disarms"""
        controller = make_controller(compiler, downloader, clock=clock)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)
        await controller.apply(host)

        await controller.shutdown()
        await host.notify_build_complete()
        await clock.advance(120)

        assert host.subscriber_count == 0
        assert not controller.scheduler.is_armed
        assert count(events, "compile_start") == 1
        assert count(events, "download_start") == 1


class TestGatingAndConfiguration:
    """Test gating and configuration handling"""

    @pytest.mark.asyncio
    async def test_missing_federation_plugin(self, tmp_path, compiler, downloader, events):
        """Test missing federation plugin"""
        controller = make_controller(compiler, downloader)
        host = BuildHost(output_path=tmp_path, extensions=[object()])

        plan = await controller.apply(host)

        assert plan.reason == "federation name missing"
        assert events == []

    @pytest.mark.asyncio
    async def test_plugin_matched_by_class_name(self, tmp_path, compiler, downloader, events):
        """Test plugin matched by class name"""
        class ModuleFederationPlugin:
            options = {"name": "app1", "exposes": EXPOSES}

        controller = make_controller(compiler, downloader)
        host = BuildHost(output_path=tmp_path, extensions=[ModuleFederationPlugin()])

        plan = await controller.apply(host)

        assert plan.run_compile is True
        assert count(events, "compile_start") == 1

    @pytest.mark.asyncio
    async def test_misconfigured_plugin_disables(self, tmp_path, compiler, downloader, events):
        """Test misconfigured plugin disables"""
        controller = make_controller(compiler, downloader)
        host = BuildHost(
            output_path=tmp_path,
            extensions=[ModuleFederationPlugin(name="app1", remotes=["app2"])]
        )

        plan = await controller.apply(host)

        assert plan.is_disabled
        assert events == []

    @pytest.mark.asyncio
    async def test_deployment_kill_switch(self, tmp_path, compiler, downloader, events):
        """Test deployment kill switch"""
        controller = make_controller(compiler, downloader, deployment_env="devbox")
        host = make_host(tmp_path, name="app1", exposes=EXPOSES, remotes=REMOTES)

        plan = await controller.apply(host)

        assert plan.run_download is False
        assert count(events, "download_start") == 0
        assert count(events, "compile_start") == 1

    @pytest.mark.asyncio
    async def test_both_features_disabled(self, tmp_path, compiler, downloader, events):
        """Test both features disabled"""
        options = ModuleFederationTypesOptions(
            disable_type_compilation=True,
            disable_downloading_remote_types=True
        )
        controller = make_controller(compiler, downloader, options=options)
        host = make_host(tmp_path, name="app1", exposes=EXPOSES, remotes=REMOTES)

        plan = await controller.apply(host)

        assert plan.reason == "both features turned off"
        assert events == []


class TestFailureHandling:
    """Test failure handling"""

    @pytest.mark.asyncio
    async def test_download_failure_does_not_block_compile(self, tmp_path, events):
        """Test download failure does not block compile"""
        compiler = RecordingCompiler(events=events)
        downloader = RecordingDownloader(events=events, fail={"app2"})
        controller = make_controller(compiler, downloader)
        host = make_host(tmp_path, name="app1", exposes=EXPOSES, remotes=REMOTES)

        await controller.apply(host)

        assert count(events, "compile_start") == 1
        status = controller.get_status()
        assert status["failures"] == 1
        assert status["downloads"] == 1
        assert status["compiles"] == 1

    @pytest.mark.asyncio
    async def test_compile_failure_retried_on_next_build(self, tmp_path, downloader, events, clock):
        """Test compile failure retried on next build"""
        compiler = RecordingCompiler(events=events, success=False)
        controller = make_controller(compiler, downloader, clock=clock)
        host = make_host(tmp_path, mode="development", name="app1", exposes=EXPOSES, remotes=REMOTES)

        await controller.apply(host)
        compiler.success = True
        await host.notify_build_complete()

        compile_outcomes = [o for o in controller.outcomes if o.action == SyncAction.COMPILE]
        assert [o.success for o in compile_outcomes] == [False, True]
        assert get_output_target(host).exists()

        await controller.shutdown()

    def test_output_target_prefers_dev_server_directory(self, tmp_path):
        """Test output target prefers dev server directory"""
        host = BuildHost(output_path=tmp_path / "dist", dev_server_static_dir=tmp_path / "public")

        assert get_output_target(host) == tmp_path / "public" / "@types" / "index.d.ts"
        assert get_output_target(BuildHost()) == Path("dist") / "@types" / "index.d.ts"
