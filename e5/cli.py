#!/usr/bin/env python3
"""
e5 CLI - Command-line interface
Click-based CLI for cross-platform tool installation
"""

import sys
import click
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.table import Table

from e5 import __version__
from e5.config import ConfigManager, E5Config
from e5.exceptions import E5Error
from e5.logging_config import setup_logging
from e5.manager import Manager, PackageResult, PackageStatus, SkipReason, SyncResult
from e5.platform.detector import detect_environment
from e5.recipe import load_recipe
from e5.requirements import (
    PackageSpec,
    add_package,
    load_requirements,
    parse_package_spec,
    remove_package,
    save_requirements,
)
from e5.resolver import resolve_install_methods

console = Console()


@dataclass
class CliState:
    """Settings resolved from .e5.yml, environment and global options"""
    config: E5Config
    requirements_path: Path
    _manager: Optional[Manager] = None

    @property
    def manager(self) -> Manager:
        if self._manager is None:
            self._manager = Manager.from_config(self.config, console=console)
        return self._manager


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


def _print_result(result: PackageResult) -> None:
    """Render one package outcome"""
    spec = result.spec

    if result.status == PackageStatus.PLANNED:
        console.print(f"[cyan]Would install:[/cyan] [cyan]{spec}[/cyan] via [yellow]{result.backend.value}[/yellow]")
        if result.fallbacks:
            fallbacks = ", ".join(b.value for b in result.fallbacks)
            console.print(f"[dim]  Fallback methods available: {fallbacks}[/dim]")
        return

    if result.status == PackageStatus.SKIPPED:
        check = result.version_check
        installed = check.installed_version if check and check.installed_version else "unknown version"
        if result.skip_reason == SkipReason.VERSION_MISMATCH:
            console.print(
                f"[yellow]Skipped:[/yellow] [cyan]{result.name}[/cyan] is installed at {installed}, "
                f"{result.version} requested (use --ignore-local to reinstall)"
            )
        else:
            console.print(f"[green]Up to date:[/green] [cyan]{result.name}[/cyan] ({installed})")
        return

    if result.status == PackageStatus.FAILED:
        if result.attempts:
            console.print(f"[red]Failed to install {result.name} with all available methods:[/red]")
            for attempt in result.attempts:
                console.print(f"  [yellow]{attempt.backend.value}[/yellow]: {attempt.error}")
        else:
            console.print(f"[red]Failed:[/red] [cyan]{spec}[/cyan]: {result.error}")


def _print_sync_summary(result: SyncResult) -> None:
    console.print()
    console.print("[bold]Sync complete:[/bold]")
    if result.planned:
        console.print(f"  [cyan]{len(result.planned)}[/cyan] package(s) would be installed")
    if result.skipped:
        console.print(f"  [dim]{len(result.skipped)}[/dim] package(s) skipped")
    if result.succeeded:
        console.print(f"  [green]{len(result.succeeded)}[/green] package(s) installed successfully")
    if result.failed:
        console.print(f"  [red]{len(result.failed)}[/red] package(s) failed:")
        for failed in result.failed:
            console.print(f"    [red]✗[/red] [cyan]{failed.spec}[/cyan]: {failed.error}")


@click.group(invoke_without_command=True)
@click.option('-f', '--file', 'requirements_file', type=click.Path(dir_okay=False), default=None,
              help='Path to requirements.toml (default: ./requirements.toml or E5_REQUIREMENTS)')
@click.option('-u', '--repo-url', default=None, help='Repository URL (or set E5_REPO_URL)')
@click.option('--verbose', is_flag=True, help='Show debug logging')
@click.option('--version', is_flag=True, help='Show version and exit')
@click.pass_context
def main(ctx, requirements_file, repo_url, verbose, version):
    """
    e5 - Cross-platform tool installation manager

    Examples:
        e5 sync                  # Install everything in requirements.toml
        e5 sync --dry-run        # Show what would be installed
        e5 show taplo@0.9.3      # Show the fallback chain for a version
        e5 add hurl              # Add a package to requirements.toml
    """
    if version:
        click.echo(f"e5 v{__version__}")
        ctx.exit(0)

    try:
        config = ConfigManager.load_config().apply_environment()
    except E5Error as e:
        _fail(str(e))

    if repo_url:
        config.repo_url = repo_url
    if requirements_file:
        config.requirements_file = requirements_file

    setup_logging(config.log_level, verbose=verbose)
    ctx.obj = CliState(config=config, requirements_path=Path(config.requirements_file))

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)


@main.command('list')
@click.option('-a', '--available', is_flag=True, help='List all packages available in the repository')
@click.pass_obj
def list_packages(state: CliState, available):
    """List required packages (or everything in the repository)."""
    try:
        requirements = load_requirements(state.requirements_path)

        if available:
            console.print("[bold]Available packages in repository:[/bold]\n")
            index = state.manager.source.fetch_index()
            for entry in sorted(index.recipes, key=lambda e: e.name):
                marker = " [green]\\[required][/green]" if requirements.contains(entry.name) else ""
                desc = f" - {entry.description}" if entry.description else ""
                console.print(f"  [cyan]{entry.name}[/cyan]{marker}{desc}")
            return
    except E5Error as e:
        _fail(str(e))

    console.print("[bold]Required packages:[/bold]\n")
    if not requirements.packages:
        console.print(f"[dim]  No packages in {state.requirements_path}[/dim]")
        console.print("[dim]  Add packages with 'e5 add <package>' and run 'e5 sync'[/dim]")
        return

    for spec in sorted(requirements.packages):
        console.print(f"  [cyan]{spec}[/cyan]")
    console.print(f"\n[bold]Total:[/bold] {len(requirements.packages)} package(s)")


@main.command()
@click.argument('query')
@click.pass_obj
def search(state: CliState, query):
    """Search the repository by name or description."""
    console.print(f"[bold]Searching for \"{query}\"...[/bold]\n")
    try:
        requirements = load_requirements(state.requirements_path)
        results = state.manager.source.search(query)
    except E5Error as e:
        _fail(str(e))

    if not results:
        console.print("[dim]  No packages found[/dim]")
        return

    for entry in results:
        marker = " [green]\\[required][/green]" if requirements.contains(entry.name) else ""
        desc = f" - {entry.description}" if entry.description else ""
        console.print(f"  [cyan]{entry.name}[/cyan]{marker}{desc}")


@main.command()
@click.argument('package_spec')
@click.pass_obj
def show(state: CliState, package_spec):
    """Show details and the fallback chain for a package (name or name@version)."""
    spec = parse_package_spec(package_spec)
    manager = state.manager
    try:
        requirements = load_requirements(state.requirements_path)
        recipe = manager.get_recipe(spec.name)
    except E5Error as e:
        _fail(str(e))

    info = recipe.package
    console.print(f"[bold]Package:[/bold] [cyan]{info.name}[/cyan]")
    if info.description:
        console.print(f"[bold]Description:[/bold] {info.description}")
    if info.homepage:
        console.print(f"[bold]Homepage:[/bold] {info.homepage}")

    in_reqs = requirements.contains(info.name)
    console.print(f"[bold]In requirements:[/bold] {'[green]yes[/green]' if in_reqs else '[yellow]no[/yellow]'}")

    check = manager.version_checker.check_version(recipe, spec.version)
    if check.installed:
        console.print(f"[bold]Installed:[/bold] [green]yes[/green] ({check.installed_version or 'unknown version'})")
    else:
        console.print("[bold]Installed:[/bold] [yellow]no[/yellow]")

    console.print("\n[bold]Installation methods:[/bold]")
    for backend, method in recipe.install_methods.items():
        target = "<script>" if method.script else method.target_name(info.name)
        console.print(f"  [yellow]{backend.value}[/yellow]: {target}")

    console.print("\n[bold]Available tools:[/bold]")
    console.print(f"  [cyan]{', '.join(b.value for b in manager.environment.available_backends)}[/cyan]")

    candidates = resolve_install_methods(recipe, manager.environment, spec.version)
    if candidates:
        chain = " → ".join(b.value for b, _ in candidates)
        suffix = f" [dim](for version {spec.version})[/dim]" if spec.version else ""
        console.print(f"[bold]Fallback chain[/bold]{suffix}[bold]:[/bold] [green]{chain}[/green]")
    else:
        console.print("[bold]Fallback chain:[/bold] [red]none (no method available)[/red]")


@main.command()
@click.pass_obj
def status(state: CliState):
    """Show installed versions of required packages."""
    try:
        requirements = load_requirements(state.requirements_path)
    except E5Error as e:
        _fail(str(e))

    if not requirements.packages:
        console.print(f"[dim]No packages in {state.requirements_path}[/dim]")
        return

    table = Table(title="Package Status", show_header=True, header_style="bold cyan")
    table.add_column("Package", style="cyan")
    table.add_column("Required", style="magenta")
    table.add_column("Installed", style="green")
    table.add_column("Method", style="yellow")

    for entry in state.manager.status(requirements.specs()):
        required = entry.spec.version or "any"
        if entry.error:
            table.add_row(entry.spec.name, required, f"[red]{entry.error}[/red]", "-")
            continue

        check = entry.version_check
        if not check.installed:
            installed = "[red]missing[/red]"
        elif check.version_match:
            installed = check.installed_version or "yes"
        else:
            installed = f"[yellow]{check.installed_version or 'unknown'} (mismatch)[/yellow]"
        method = entry.candidate[0].value if entry.candidate else "[red]none[/red]"
        table.add_row(entry.spec.name, required, installed, method)

    console.print(table)


@main.command()
@click.argument('package_spec')
@click.option('-n', '--dry-run', is_flag=True, help='Show what would be done without executing')
@click.option('--ignore-local', is_flag=True, help='Install even if the tool is already present')
@click.option('--recipe', 'recipe_file', type=click.Path(exists=True, dir_okay=False), default=None,
              help='Use a local recipe file instead of the repository')
@click.pass_obj
def install(state: CliState, package_spec, dry_run, ignore_local, recipe_file):
    """Install a single package (name or name@version)."""
    manager = state.manager
    spec = parse_package_spec(package_spec)

    if recipe_file:
        try:
            recipe = load_recipe(recipe_file)
        except E5Error as e:
            _fail(str(e))
        manager.add_recipe(recipe)
        spec = PackageSpec(recipe.name, spec.version)

    result = manager.install_one(spec, dry_run=dry_run, ignore_local=ignore_local)
    _print_result(result)
    if not result.ok:
        sys.exit(1)


@main.command()
@click.option('-n', '--dry-run', is_flag=True, help='Show what would be done without executing')
@click.option('--ignore-local', is_flag=True, help='Reinstall packages that are already present')
@click.pass_obj
def sync(state: CliState, dry_run, ignore_local):
    """Install all required packages."""
    try:
        requirements = load_requirements(state.requirements_path)
    except E5Error as e:
        _fail(str(e))

    if not requirements.packages:
        console.print(f"[yellow]No packages in {state.requirements_path}[/yellow]")
        console.print("[dim]Add packages with 'e5 add <package>' and run 'e5 sync' again[/dim]")
        return

    specs = requirements.specs()
    console.print(f"[bold]Sync:[/bold] {len(specs)} required package(s)")
    for spec in sorted(specs, key=lambda s: s.name):
        console.print(f"  - [cyan]{spec}[/cyan]")
    console.print()

    result = state.manager.sync(specs, dry_run=dry_run, ignore_local=ignore_local)

    if result.warnings:
        console.print("[yellow]Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]![/yellow] {warning}")
        console.print()

    for package_result in result.results:
        _print_result(package_result)

    _print_sync_summary(result)
    if not result.success:
        sys.exit(1)


@main.command()
@click.argument('package_spec')
@click.pass_obj
def add(state: CliState, package_spec):
    """Add a package (name or name@version) to requirements.toml."""
    try:
        requirements = load_requirements(state.requirements_path)
        if not add_package(requirements, package_spec):
            console.print(f"[dim]{package_spec} is already required[/dim]")
            return
        save_requirements(state.requirements_path, requirements)
    except E5Error as e:
        _fail(str(e))
    console.print(f"[green]Added[/green] [cyan]{package_spec}[/cyan] to {state.requirements_path}")


@main.command()
@click.argument('name')
@click.pass_obj
def remove(state: CliState, name):
    """Remove a package from requirements.toml."""
    name = parse_package_spec(name).name
    try:
        requirements = load_requirements(state.requirements_path)
        if not remove_package(requirements, name):
            _fail(f"{name} is not in {state.requirements_path}")
        save_requirements(state.requirements_path, requirements)
    except E5Error as e:
        _fail(str(e))
    console.print(f"[green]Removed[/green] [cyan]{name}[/cyan] from {state.requirements_path}")


@main.command()
def detect():
    """Show the detected OS and available package managers."""
    environment = detect_environment()
    console.print("[bold cyan]Platform Information:[/bold cyan]")
    console.print(f"  OS: {environment.os_type.value}")
    if environment.default_backend:
        console.print(f"  Default package manager: {environment.default_backend.value}")
    console.print(f"  Available backends (priority order): "
                  f"{' → '.join(b.value for b in environment.available_backends)}")


@main.command()
@click.option('--init', 'init_config', is_flag=True, help='Write the effective configuration to ./.e5.yml')
@click.pass_obj
def config(state: CliState, init_config):
    """Show the effective configuration."""
    settings = state.config.to_dict()
    console.print("[bold cyan]e5 Configuration[/bold cyan]")
    _print_settings(settings, indent=1)

    if init_config:
        config_path = Path.cwd() / ConfigManager.DEFAULT_CONFIG_NAME
        if config_path.exists():
            _fail(f"{config_path} already exists")
        if not ConfigManager.save_config(state.config, config_path):
            _fail(f"Could not write {config_path}")
        console.print(f"\n[green]Wrote[/green] {config_path}")


def _print_settings(settings: dict, indent: int) -> None:
    pad = "  " * indent
    for key, value in settings.items():
        if isinstance(value, dict):
            console.print(f"{pad}{key}:")
            _print_settings(value, indent + 1)
        else:
            console.print(f"{pad}{key}: {value}")


if __name__ == '__main__':
    main()
