#!/usr/bin/env python3
"""
e5 Homebrew Installer
Package installer for macOS (and Linuxbrew) using Homebrew
"""

import logging
from typing import Optional

from e5.platform.detector import Backend
from e5.platform.installers.base import BaseInstaller, RunContext, run_command
from e5.recipe import InstallMethod

logger = logging.getLogger(__name__)


class HomebrewInstaller(BaseInstaller):
    """Package installer using Homebrew (no sudo needed)"""

    backend = Backend.HOMEBREW

    def _tap_if_needed(self, tap: str, context: RunContext) -> None:
        """Add a homebrew tap if not already present"""
        taps = run_command(['brew', 'tap'], context)
        if tap in taps.stdout.split():
            return
        run_command(['brew', 'tap', tap], context)

    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        """Install formula or cask; versioned formulae (node@18) belong in package_name"""
        package_name = method.target_name(name)
        if version:
            self.warn_unpinned(package_name, version)
            logger.warning("For versioned packages, use the versioned formula name (e.g. node@18) in the recipe")

        if method.tap:
            self._tap_if_needed(method.tap, context)

        cmd = ['brew', 'install']
        if method.cask:
            cmd.append('--cask')
        cmd.append(package_name)

        run_command(cmd, context)
        self.run_post_install(method, context)
