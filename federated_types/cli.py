"""
CLI commands for federated-types-sync.

Provides the `mfts` command-line interface to inspect the sync plan of a
project, run type synchronization against its build output and rewrite
declaration files.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from config.defaults import DEFAULT_SETTINGS, MODE_DEVELOPMENT, MODE_PRODUCTION
from config.loader import ConfigurationError, ConfigurationLoader, ProjectFederationConfig
from config.resolver import resolve_config
from config.settings import SyncEnvironment
from core.sync.compiler import TscTypeCompiler, rewrite_paths_with_exposed_federated_modules
from core.sync.controller import ModuleFederationTypesSync
from core.sync.gate import evaluate
from core.sync.host import ModuleFederationPlugin
from core.sync.remote import ManifestTypesDownloader
from core.sync.watcher import DirectoryBuildHost

console = Console()


def configure_logging(verbose: bool, level: str = "INFO") -> None:
    """Configure root logging for CLI runs"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format=DEFAULT_SETTINGS["logging"]["format"]
    )


def _load_project(project: str) -> ProjectFederationConfig:
    try:
        return ConfigurationLoader().load(project)
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version="1.0.0", prog_name="mfts")
def main():
    """
    Federated types sync CLI.

    Keep module federation type declarations in sync with your build.
    """
    pass


@main.command()
@click.argument('project', default='.', type=click.Path(exists=True))
def plan(project: str):
    """Show the effective configuration and which sync flows would run."""
    project_config = _load_project(project)
    config = resolve_config(project_config.options, SyncEnvironment())
    sync_plan = evaluate(config, project_config.topology)

    table = Table(title=f"Type Sync Plan: {project_config.topology.name or '(unnamed)'}")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Download types", "[green]yes[/green]" if sync_plan.run_download else "[red]no[/red]")
    table.add_row("Compile types", "[green]yes[/green]" if sync_plan.run_compile else "[red]no[/red]")
    if sync_plan.reason:
        table.add_row("Disabled because", f"[yellow]{sync_plan.reason}[/yellow]")
    table.add_row("Idle download interval", f"{config.idle_sync_interval_seconds}s")
    table.add_row("Remotes", ", ".join(project_config.topology.remotes or {}) or "-")
    table.add_row("Exposed modules", ", ".join(project_config.topology.exposes or {}) or "-")
    for name, url in config.remote_manifest_urls.items():
        marker = "[red]invalid[/red]" if name in config.invalid_manifest_urls else "[green]ok[/green]"
        table.add_row(f"Manifest: {name}", f"{url} {marker}")

    console.print(table)


@main.command()
@click.argument('project', default='.', type=click.Path(exists=True))
@click.option(
    '--mode', '-m',
    type=click.Choice([MODE_DEVELOPMENT, MODE_PRODUCTION]),
    default=MODE_PRODUCTION,
    help='Build mode; development keeps syncing until interrupted'
)
@click.option(
    '--dist',
    type=click.Path(file_okay=False),
    help='Build output directory (default: outputPath from the federation file, or dist)'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Show debug output, including compiler diagnostics'
)
def sync(project: str, mode: str, dist: Optional[str], verbose: bool):
    """Synchronize federated type declarations for a project."""
    environment = SyncEnvironment()
    configure_logging(verbose, environment.log_level)
    project_config = _load_project(project)

    output_path = Path(dist).resolve() if dist else project_config.output_path
    if output_path is None:
        output_path = project_config.path / "dist"

    try:
        asyncio.run(_run_sync(project_config, environment, mode, output_path))
    except KeyboardInterrupt:
        console.print("\n[blue]🔌 Type sync stopped[/blue]")


async def _run_sync(
    project_config: ProjectFederationConfig,
    environment: SyncEnvironment,
    mode: str,
    output_path: Path
) -> None:
    topology = project_config.topology
    host = DirectoryBuildHost(
        mode=mode,
        output_path=output_path,
        extensions=[ModuleFederationPlugin(
            name=topology.name,
            exposes=topology.exposes,
            remotes=topology.remotes
        )],
        ignored_paths=[project_config.path / environment.types_dir]
    )
    controller = ModuleFederationTypesSync(
        project_config.options,
        compiler=TscTypeCompiler(environment.tsc_path, project_path=project_config.path),
        downloader=ManifestTypesDownloader(
            types_dir=project_config.path / environment.types_dir,
            timeout=environment.download_timeout
        ),
        environment=environment
    )

    async with controller:
        sync_plan = await controller.apply(host)
        if sync_plan.is_disabled:
            console.print(f"[yellow]⚠️  Type sync disabled: {sync_plan.reason or 'nothing to do'}[/yellow]")
            return

        if host.subscriber_count == 0:
            _print_summary(controller)
            return

        if not await host.start_watching():
            console.print("[red]❌ Could not watch the build output directory[/red]")
            sys.exit(1)

        console.print(f"[green]👀 Watching {host.watch_path} for builds (Ctrl+C to stop)[/green]")
        try:
            await asyncio.Event().wait()
        finally:
            await host.stop_watching()


def _print_summary(controller: ModuleFederationTypesSync) -> None:
    status = controller.get_status()
    if status["failures"]:
        console.print(f"[yellow]⚠️  Type sync finished with {status['failures']} failed action(s)[/yellow]")
    else:
        console.print("[green]✅ Type sync complete[/green]")
    if controller.output_target and controller.plan.run_compile:
        console.print(f"[blue]📄 Declarations: {controller.output_target}[/blue]")


@main.command()
@click.argument('declaration_file', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--project', '-p',
    default='.',
    type=click.Path(exists=True),
    help='Project directory or federation file'
)
def rewrite(declaration_file: str, project: str):
    """Rewrite exposed module specifiers in a declaration file to federated names."""
    project_config = _load_project(project)
    topology = project_config.topology
    if not topology.name or not topology.exposes:
        console.print("[red]❌ Federation name and exposes are required to rewrite declarations[/red]")
        sys.exit(1)

    path = Path(declaration_file)
    original = path.read_text(encoding='utf-8')
    rewritten = rewrite_paths_with_exposed_federated_modules(topology.name, topology.exposes, original)

    if rewritten == original:
        console.print(f"[blue]Nothing to rewrite in {path}[/blue]")
        return

    path.write_text(rewritten, encoding='utf-8')
    console.print(f"[green]✅ Rewrote {path}[/green]")


if __name__ == "__main__":
    main()
