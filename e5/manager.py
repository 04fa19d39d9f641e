#!/usr/bin/env python3
"""
e5 Installation Manager
Installs single packages with fallback across backends and synchronizes a
whole requirement set with continue-on-error semantics
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

from rich.console import Console

from e5.config import E5Config
from e5.exceptions import E5Error, NoInstallMethodError, RecipeUnavailableError, UnsupportedBackendError
from e5.platform.detector import Backend, Environment, detect_environment
from e5.platform.installers import BaseInstaller, RunContext, default_installers
from e5.recipe import Recipe
from e5.repository import RecipeSource, Repository
from e5.requirements import PackageSpec, parse_package_spec
from e5.resolver import Candidate, resolve_first, resolve_install_methods
from e5.version_checker import VersionChecker, VersionCheckResult

logger = logging.getLogger(__name__)


class PackageStatus(Enum):
    """Final state of one package in a run"""
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    PLANNED = "planned"      # dry run


class SkipReason(Enum):
    """Why a package was not installed"""
    UP_TO_DATE = "up_to_date"
    VERSION_MISMATCH = "version_mismatch"


@dataclass(frozen=True)
class InstallAttempt:
    """A failed attempt through one backend"""
    backend: Backend
    error: str


@dataclass
class PackageResult:
    """Outcome of installing (or skipping) one package"""
    name: str
    status: PackageStatus
    version: Optional[str] = None
    backend: Optional[Backend] = None
    skip_reason: Optional[SkipReason] = None
    attempts: List[InstallAttempt] = field(default_factory=list)
    fallbacks: List[Backend] = field(default_factory=list)
    error: Optional[str] = None
    version_check: Optional[VersionCheckResult] = None

    @property
    def spec(self) -> str:
        return str(PackageSpec(self.name, self.version))

    @property
    def ok(self) -> bool:
        return self.status != PackageStatus.FAILED


@dataclass
class SyncResult:
    """Aggregated outcome of a sync"""
    results: List[PackageResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def _with_status(self, status: PackageStatus) -> List[PackageResult]:
        return [r for r in self.results if r.status == status]

    @property
    def skipped(self) -> List[PackageResult]:
        return self._with_status(PackageStatus.SKIPPED)

    @property
    def succeeded(self) -> List[PackageResult]:
        return self._with_status(PackageStatus.SUCCEEDED)

    @property
    def failed(self) -> List[PackageResult]:
        return self._with_status(PackageStatus.FAILED)

    @property
    def planned(self) -> List[PackageResult]:
        return self._with_status(PackageStatus.PLANNED)

    @property
    def success(self) -> bool:
        """False if any package failed, even when others succeeded"""
        return not self.failed


@dataclass
class StatusEntry:
    """Read-only view of one requirement for `e5 status`"""
    spec: PackageSpec
    version_check: Optional[VersionCheckResult] = None
    candidate: Optional[Candidate] = None
    error: Optional[str] = None


class Manager:
    """
    Installation orchestrator.

    Owns the run's environment, the run context (one-time backend setup)
    and a per-run recipe cache. Everything runs sequentially.
    """

    def __init__(self, source: RecipeSource, environment: Optional[Environment] = None,
                 context: Optional[RunContext] = None,
                 installers: Optional[Dict[Backend, BaseInstaller]] = None,
                 version_checker: Optional[VersionChecker] = None,
                 console: Optional[Console] = None):
        self.source = source
        self.environment = environment if environment is not None else detect_environment()
        self.context = context or RunContext()
        self.installers = installers if installers is not None else default_installers()
        self.version_checker = version_checker or VersionChecker()
        self.console = console or Console()
        self._recipes: Dict[str, Recipe] = {}

    @classmethod
    def from_config(cls, config: E5Config, console: Optional[Console] = None) -> 'Manager':
        """Build a manager against the configured remote repository"""
        repository = Repository(config.repo_url, timeout=config.fetch_timeout)
        context = RunContext(
            use_sudo=config.installation_use_sudo,
            retry_on_failure=config.installation_retry_on_failure,
        )
        return cls(repository, context=context, console=console)

    def get_recipe(self, name: str) -> Recipe:
        """Fetch a recipe once per run"""
        if name not in self._recipes:
            self._recipes[name] = self.source.fetch_recipe(name)
        return self._recipes[name]

    def add_recipe(self, recipe: Recipe) -> None:
        """Seed the cache with a recipe loaded elsewhere (e.g. a local file)"""
        self._recipes[recipe.name] = recipe

    def candidates(self, recipe: Recipe, version: Optional[str] = None) -> List[Candidate]:
        return resolve_install_methods(recipe, self.environment, version)

    def plan(self, recipe: Recipe, version: Optional[str] = None) -> List[Candidate]:
        """
        Fallback chain for a recipe

        Raises:
            NoInstallMethodError: when no available backend has a method
        """
        candidates = self.candidates(recipe, version)
        if not candidates:
            raise NoInstallMethodError(recipe.name)
        return candidates

    def _installer_for(self, backend: Backend) -> BaseInstaller:
        try:
            return self.installers[backend]
        except KeyError:
            raise UnsupportedBackendError(f"No installer registered for {backend.value}") from None

    def _attempt(self, recipe: Recipe, candidates: List[Candidate],
                 version: Optional[str]) -> Tuple[Optional[Backend], List[InstallAttempt]]:
        """
        Try candidates in order until one succeeds

        Returns:
            (backend that succeeded or None, failed attempts in order)
        """
        attempts: List[InstallAttempt] = []
        version_display = f"@{version}" if version else ""

        for index, (backend, method) in enumerate(candidates):
            self.console.print(
                f"[green]Installing:[/green] [cyan]{recipe.name}{version_display}[/cyan] "
                f"via [yellow]{backend.value}[/yellow]..."
            )
            try:
                self._installer_for(backend).install(recipe.name, method, version, self.context)
            except E5Error as e:
                attempts.append(InstallAttempt(backend=backend, error=str(e)))
                logger.warning("%s: %s installation failed: %s", recipe.name, backend.value, e)
                if index < len(candidates) - 1:
                    self.console.print(
                        f"[yellow]Failed:[/yellow] {backend.value} installation failed, trying next method..."
                    )
                    self.console.print(f"[dim]  Error: {e}[/dim]")
                continue

            self.console.print(f"[bold green]Installed:[/bold green] [cyan]{recipe.name}{version_display}[/cyan]")
            return backend, attempts

        return None, attempts

    def install_recipe(self, recipe: Recipe, dry_run: bool = False, ignore_local: bool = False,
                       required_version: Optional[str] = None) -> PackageResult:
        """
        Install one package with fallback across its candidate backends

        Args:
            recipe: Recipe of the package
            dry_run: Only report the first candidate and its fallbacks
            ignore_local: Install even if the tool is already present
            required_version: Version to install, or None

        Returns:
            PackageResult; never raises for per-package faults
        """
        name = recipe.name
        version = required_version or None

        check = None
        if not ignore_local:
            check = self.version_checker.check_version(recipe, version)
            if check.installed and check.version_match:
                logger.info("%s already installed (%s)", name, check.installed_version or "unknown version")
                return PackageResult(name=name, status=PackageStatus.SKIPPED, version=version,
                                     skip_reason=SkipReason.UP_TO_DATE, version_check=check)
            if check.installed:
                logger.info("%s installed at %s, %s requested; leaving it alone",
                            name, check.installed_version or "unknown version", version)
                return PackageResult(name=name, status=PackageStatus.SKIPPED, version=version,
                                     skip_reason=SkipReason.VERSION_MISMATCH, version_check=check)

        try:
            candidates = self.plan(recipe, version)
        except NoInstallMethodError as e:
            return PackageResult(name=name, status=PackageStatus.FAILED, version=version,
                                 error=str(e), version_check=check)

        if dry_run:
            first, rest = candidates[0][0], [backend for backend, _ in candidates[1:]]
            return PackageResult(name=name, status=PackageStatus.PLANNED, version=version,
                                 backend=first, fallbacks=rest, version_check=check)

        backend, attempts = self._attempt(recipe, candidates, version)
        if backend is not None:
            return PackageResult(name=name, status=PackageStatus.SUCCEEDED, version=version,
                                 backend=backend, attempts=attempts, version_check=check)

        return PackageResult(name=name, status=PackageStatus.FAILED, version=version,
                             attempts=attempts, version_check=check,
                             error=f"All installation methods failed for {name}")

    def install_one(self, spec: Union[str, PackageSpec], dry_run: bool = False,
                    ignore_local: bool = False, required_version: Optional[str] = None) -> PackageResult:
        """
        Install a package by requirement spec ('name' or 'name@version')

        An explicit required_version overrides the spec's version.
        """
        if isinstance(spec, str):
            spec = parse_package_spec(spec)
        version = required_version or spec.version

        try:
            recipe = self.get_recipe(spec.name)
        except RecipeUnavailableError as e:
            return PackageResult(name=spec.name, status=PackageStatus.FAILED, version=version, error=str(e))

        return self.install_recipe(recipe, dry_run=dry_run, ignore_local=ignore_local,
                                   required_version=version)

    def sync(self, specs: Iterable[Union[str, PackageSpec]], dry_run: bool = False,
             ignore_local: bool = False) -> SyncResult:
        """
        Bring the host in line with a requirement set

        Packages whose recipe is unavailable or that have no install method
        become warnings. The rest install one at a time, sorted by name; a
        failure never stops later packages.
        """
        result = SyncResult()
        batch: List[Tuple[PackageSpec, Recipe]] = []

        for spec in specs:
            if isinstance(spec, str):
                spec = parse_package_spec(spec)
            try:
                recipe = self.get_recipe(spec.name)
            except RecipeUnavailableError as e:
                result.warnings.append(f"{spec.name}: {e}")
                continue

            if resolve_first(recipe, self.environment, spec.version) is None:
                result.warnings.append(f"{spec.name}: no installation method available")
                continue

            batch.append((spec, recipe))

        batch.sort(key=lambda item: item[0].name)

        for spec, recipe in batch:
            try:
                package_result = self.install_recipe(recipe, dry_run=dry_run, ignore_local=ignore_local,
                                                     required_version=spec.version)
            except E5Error as e:
                package_result = PackageResult(name=spec.name, status=PackageStatus.FAILED,
                                               version=spec.version, error=str(e))
            result.results.append(package_result)

        logger.info(
            "Sync finished: %d skipped, %d succeeded, %d failed, %d planned",
            len(result.skipped), len(result.succeeded), len(result.failed), len(result.planned),
        )
        return result

    def status(self, specs: Iterable[Union[str, PackageSpec]]) -> List[StatusEntry]:
        """Installed/version state and first candidate of each requirement"""
        entries = []
        for spec in specs:
            if isinstance(spec, str):
                spec = parse_package_spec(spec)
            try:
                recipe = self.get_recipe(spec.name)
            except RecipeUnavailableError as e:
                entries.append(StatusEntry(spec=spec, error=str(e)))
                continue
            entries.append(StatusEntry(
                spec=spec,
                version_check=self.version_checker.check_version(recipe, spec.version),
                candidate=resolve_first(recipe, self.environment, spec.version),
            ))
        return entries
