"""
e5 Backend Installers
Dispatch table from Backend to the installer that drives it
"""

from typing import Dict, Type

from e5.exceptions import UnsupportedBackendError
from e5.platform.detector import Backend
from e5.platform.installers.base import BaseInstaller, RunContext
from e5.platform.installers.linux import AptInstaller, DnfInstaller, PacmanInstaller
from e5.platform.installers.macos import HomebrewInstaller
from e5.platform.installers.cross_platform import CargoInstaller, NpmInstaller, PipxInstaller
from e5.platform.installers.script import ScriptInstaller

# Every Backend member must appear here; tests assert the table is complete.
INSTALLER_CLASSES: Dict[Backend, Type[BaseInstaller]] = {
    Backend.APT: AptInstaller,
    Backend.PACMAN: PacmanInstaller,
    Backend.DNF: DnfInstaller,
    Backend.HOMEBREW: HomebrewInstaller,
    Backend.CARGO: CargoInstaller,
    Backend.NPM: NpmInstaller,
    Backend.PIPX: PipxInstaller,
    Backend.SCRIPT: ScriptInstaller,
}


def get_installer(backend: Backend) -> BaseInstaller:
    """
    Instantiate the installer for a backend

    Raises:
        UnsupportedBackendError: for a backend with no installer
    """
    try:
        return INSTALLER_CLASSES[backend]()
    except KeyError:
        raise UnsupportedBackendError(f"No installer for backend {backend!r}") from None


def default_installers() -> Dict[Backend, BaseInstaller]:
    """One installer instance per backend"""
    return {backend: get_installer(backend) for backend in Backend}


__all__ = [
    'BaseInstaller',
    'RunContext',
    'AptInstaller',
    'DnfInstaller',
    'PacmanInstaller',
    'HomebrewInstaller',
    'CargoInstaller',
    'NpmInstaller',
    'PipxInstaller',
    'ScriptInstaller',
    'INSTALLER_CLASSES',
    'get_installer',
    'default_installers',
]
