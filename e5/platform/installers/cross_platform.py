#!/usr/bin/env python3
"""
e5 Cross-Platform Installers
Language-ecosystem installers that work on any OS (cargo, npm, pipx)
"""

from typing import Optional

from e5.platform.detector import Backend
from e5.platform.installers.base import BaseInstaller, RunContext, run_command
from e5.recipe import InstallMethod


class CargoInstaller(BaseInstaller):
    """Rust crate installer using cargo install"""

    backend = Backend.CARGO

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        cmd = ['cargo', 'install']
        if method.features:
            cmd.extend(['--features', ','.join(method.features)])
        if version:
            cmd.extend(['--version', version])
        cmd.append(method.target_name(name))

        run_command(cmd, context)
        self.run_post_install(method, context)


class NpmInstaller(BaseInstaller):
    """Cross-platform npm installer (global unless the recipe says otherwise)"""

    backend = Backend.NPM

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        package_spec = method.target_name(name)
        if version:
            package_spec = f"{package_spec}@{version}"

        cmd = ['npm', 'install']
        if method.install_global:
            cmd.append('-g')
        cmd.append(package_spec)

        run_command(cmd, context)
        self.run_post_install(method, context)


class PipxInstaller(BaseInstaller):
    """Python application installer using pipx"""

    backend = Backend.PIPX

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        package_spec = method.target_name(name)
        if version:
            package_spec = f"{package_spec}=={version}"

        run_command(['pipx', 'install', package_spec], context)
        self.run_post_install(method, context)
