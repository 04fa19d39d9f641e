#!/usr/bin/env python3
"""
e5 Version Checker
Detects whether a tool is installed and which version it reports
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Tuple

from e5.recipe import Recipe

logger = logging.getLogger(__name__)

# Tried in order; first flag that exits 0 with a parseable version wins
VERSION_FLAGS = ['--version', '-V', '-v', 'version']

SEMVER_PATTERN = re.compile(r'\d+\.\d+\.\d+(?:[-+][0-9A-Za-z][0-9A-Za-z.+-]*)?')
MAJOR_MINOR_PATTERN = re.compile(r'\d+\.\d+')
LEADING_V = re.compile(r'^[vV](?=\d)')

PROBE_TIMEOUT = 5


def extract_version(output: str) -> Optional[str]:
    """
    Pull a version token out of free-form command output.

    Looks for MAJOR.MINOR.PATCH (with optional -pre/+build suffix) first,
    then falls back to MAJOR.MINOR. Any number that looks like a version
    counts, so banner text can be misread.
    """
    if not output:
        return None
    match = SEMVER_PATTERN.search(output) or MAJOR_MINOR_PATTERN.search(output)
    return match.group(0) if match else None


def normalize_version(version: str) -> str:
    """Strip surrounding whitespace and one leading 'v' before a digit"""
    return LEADING_V.sub('', version.strip())


@dataclass(frozen=True)
class VersionCheckResult:
    """Outcome of one installed/version check"""
    installed: bool
    installed_version: Optional[str] = None
    version_match: bool = False
    required_version: Optional[str] = None

    @property
    def mismatch(self) -> bool:
        """Installed, but not at the required version"""
        return self.installed and not self.version_match


class VersionChecker:
    """
    Probe the host for a recipe's tool.

    Probes never raise: a missing binary, a missing shell or a hung command
    all read as "not installed" / "no version".
    """

    def __init__(self, timeout: float = PROBE_TIMEOUT):
        self.timeout = timeout

    def _run(self, cmd: List[str]) -> Tuple[bool, str]:
        """Run a probe; returns (exit status was zero, stdout + stderr)"""
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.timeout,
                check=False,
                shell=False,
            )
        except (subprocess.SubprocessError, OSError) as e:
            logger.debug("Probe %s failed: %s", cmd, e)
            return (False, '')
        return (result.returncode == 0, (result.stdout or '') + (result.stderr or ''))

    def _run_shell(self, command: str) -> Tuple[bool, str]:
        return self._run(['sh', '-c', command])

    def is_installed(self, recipe: Recipe) -> bool:
        """verify_command exits 0, or the verification binary is on PATH"""
        if recipe.package.verify_command:
            ok, _ = self._run_shell(recipe.package.verify_command)
            return ok

        try:
            return shutil.which(recipe.package.binary) is not None
        except (OSError, ValueError):
            return False

    def installed_version(self, recipe: Recipe) -> Optional[str]:
        """Best-effort installed version, or None"""
        if recipe.package.version_command:
            _, output = self._run_shell(recipe.package.version_command)
            return extract_version(output)

        binary = recipe.package.binary
        for flag in VERSION_FLAGS:
            ok, output = self._run([binary, flag])
            if not ok:
                continue
            version = extract_version(output)
            if version:
                return version

        return None

    def check_version(self, recipe: Recipe, required_version: Optional[str] = None) -> VersionCheckResult:
        """
        Compare the installed tool against an optional required version

        Args:
            recipe: Recipe of the tool
            required_version: Version the caller wants, or None for any

        Returns:
            VersionCheckResult (always freshly probed)
        """
        if not self.is_installed(recipe):
            return VersionCheckResult(installed=False, version_match=False,
                                      required_version=required_version)

        if not required_version:
            return VersionCheckResult(installed=True, version_match=True,
                                      installed_version=self.installed_version(recipe))

        installed_version = self.installed_version(recipe)
        version_match = (
            installed_version is not None
            and normalize_version(installed_version) == normalize_version(required_version)
        )
        return VersionCheckResult(
            installed=True,
            installed_version=installed_version,
            version_match=version_match,
            required_version=required_version,
        )
