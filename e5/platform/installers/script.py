#!/usr/bin/env python3
"""
e5 Script Installer
Universal fallback: runs the recipe's inline install script
"""

from typing import Optional

from e5.exceptions import BackendError
from e5.platform.detector import Backend
from e5.platform.installers.base import BaseInstaller, RunContext, run_shell
from e5.recipe import InstallMethod


class ScriptInstaller(BaseInstaller):
    """Runs install scripts through sh; the version is exported as VERSION"""

    backend = Backend.SCRIPT

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        if not method.script:
            raise BackendError("No script provided for script installation")

        env = {'VERSION': version} if version else None
        run_shell(method.script, context, f"Installation script for {name} failed", env=env)
        self.run_post_install(method, context)
