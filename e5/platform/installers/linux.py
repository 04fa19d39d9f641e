#!/usr/bin/env python3
"""
e5 Linux Installers
Package installers for the native Linux package managers
"""

from typing import Optional

from e5.platform.detector import Backend
from e5.platform.installers.base import BaseInstaller, RunContext, run_command
from e5.recipe import InstallMethod


class AptInstaller(BaseInstaller):
    """Debian/Ubuntu package installer using apt"""

    backend = Backend.APT
    needs_sudo = True

    def refresh_index(self, context: RunContext) -> None:
        """apt-get update, once per run"""
        if not context.needs_index_refresh(self.backend):
            return
        run_command(self.sudo_prefix(context) + ['apt-get', 'update'], context)
        context.mark_index_refreshed(self.backend)

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        """Install package using apt-get (package=version when pinned)"""
        self.refresh_index(context)

        package_spec = method.target_name(name)
        if version:
            package_spec = f"{package_spec}={version}"

        cmd = self.sudo_prefix(context) + ['apt-get', 'install', '-y', package_spec]
        run_command(cmd, context, env={'DEBIAN_FRONTEND': 'noninteractive'})
        self.run_post_install(method, context)


class DnfInstaller(BaseInstaller):
    """Fedora/RHEL 8+ package installer using dnf"""

    backend = Backend.DNF
    needs_sudo = True

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        package_spec = method.target_name(name)
        if version:
            package_spec = f"{package_spec}-{version}"

        cmd = self.sudo_prefix(context) + ['dnf', 'install', '-y', package_spec]
        run_command(cmd, context)
        self.run_post_install(method, context)


class PacmanInstaller(BaseInstaller):
    """Arch Linux package installer using pacman"""

    backend = Backend.PACMAN
    needs_sudo = True

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        package_name = method.target_name(name)
        self.warn_unpinned(package_name, version)

        cmd = self.sudo_prefix(context) + ['pacman', '-S', '--noconfirm', package_name]
        run_command(cmd, context)
        self.run_post_install(method, context)
