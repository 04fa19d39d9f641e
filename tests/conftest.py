"""
Shared fixtures for e5 tests
"""
import io
from typing import List, Optional

import pytest
from rich.console import Console

from e5.exceptions import BackendError
from e5.platform.detector import Backend, Environment
from e5.recipe import InstallMethod, PackageInfo, Recipe
from e5.version_checker import VersionCheckResult


def make_recipe(name: str, *backends: Backend, **package_fields) -> Recipe:
    """Recipe with a plain install method for each backend"""
    methods = {}
    for backend in backends:
        if backend == Backend.SCRIPT:
            methods[backend] = InstallMethod(script=f"echo installing {name}")
        else:
            methods[backend] = InstallMethod()
    return Recipe(package=PackageInfo(name=name, **package_fields), install_methods=methods)


class FakeInstaller:
    """Records install calls; fails for package names listed in `failing`"""

    def __init__(self, backend: Backend, failing=(), calls: Optional[List] = None):
        self.backend = backend
        self.failing = set(failing)
        self.calls = calls if calls is not None else []

    def install(self, name, method, version, context):
        self.calls.append((self.backend, name, version))
        if name in self.failing or '*' in self.failing:
            raise BackendError(f"{self.backend.value} exploded for {name}")


class FakeVersionChecker:
    """Answers check_version from a {name: installed_version} table"""

    def __init__(self, installed=None):
        self.installed = dict(installed or {})
        self.checked = []

    def check_version(self, recipe, required_version=None):
        self.checked.append((recipe.name, required_version))
        if recipe.name not in self.installed:
            return VersionCheckResult(installed=False, required_version=required_version)
        version = self.installed[recipe.name]
        if not required_version:
            return VersionCheckResult(installed=True, installed_version=version, version_match=True)
        return VersionCheckResult(
            installed=True,
            installed_version=version,
            version_match=version == required_version,
            required_version=required_version,
        )


@pytest.fixture
def quiet_console():
    """Console writing to a buffer instead of the terminal"""
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def environment():
    """Linux host with apt, cargo and the script fallback"""
    return Environment(available_backends=(Backend.APT, Backend.CARGO, Backend.SCRIPT))
