#!/usr/bin/env python3
"""
e5 Base Installer Class
Base class and shared command helpers for per-backend installers
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
import logging
import os
import shlex
import subprocess
import time

from e5.exceptions import BackendError
from e5.platform.detector import Backend
from e5.recipe import InstallMethod

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 400


@dataclass
class RunContext:
    """
    State scoped to one e5 run.

    Holds the one-time setup flags (e.g. apt index refresh) so that separate
    runs, and separate tests, never share them.
    """
    use_sudo: bool = True
    retry_on_failure: int = 1
    retry_delay: float = 1.0
    refreshed_indexes: Set[Backend] = field(default_factory=set)

    def needs_index_refresh(self, backend: Backend) -> bool:
        return backend not in self.refreshed_indexes

    def mark_index_refreshed(self, backend: Backend) -> None:
        self.refreshed_indexes.add(backend)


def _describe_failure(cmd_str: str, result: subprocess.CompletedProcess) -> str:
    detail = (result.stderr or result.stdout or '').strip()
    message = f"Command failed (exit {result.returncode}): {cmd_str}"
    if detail:
        message += f": {detail[-STDERR_TAIL_CHARS:]}"
    return message


def run_command(cmd: List[str], context: RunContext,
                env: Optional[Dict[str, str]] = None) -> subprocess.CompletedProcess:
    """
    Run an install command, retrying up to context.retry_on_failure times

    Args:
        cmd: Command and arguments
        context: Run context (retry settings)
        env: Extra environment variables for the child

    Returns:
        The successful CompletedProcess

    Raises:
        BackendError: if the command cannot be started or keeps failing
    """
    cmd_str = ' '.join(shlex.quote(c) for c in cmd)
    child_env = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)

    attempts = max(1, int(context.retry_on_failure))
    last_result: Optional[subprocess.CompletedProcess] = None

    for attempt in range(attempts):
        logger.info("Running: %s", cmd_str)
        try:
            # No timeout: package managers are allowed to run to completion
            result = subprocess.run(cmd, capture_output=True, text=True,
                                    encoding='utf-8', errors='replace',
                                    check=False, shell=False, env=child_env)
        except (OSError, subprocess.SubprocessError) as e:
            raise BackendError(f"Could not run {cmd_str}: {e}") from e

        if result.returncode == 0:
            return result

        last_result = result
        logger.debug("Attempt %d/%d failed: %s", attempt + 1, attempts, cmd_str)
        if attempt < attempts - 1:
            time.sleep(context.retry_delay)

    raise BackendError(_describe_failure(cmd_str, last_result))


def run_shell(script: str, context: RunContext, description: str,
              env: Optional[Dict[str, str]] = None) -> subprocess.CompletedProcess:
    """Run a shell snippet through sh -c; failures raise BackendError(description)"""
    try:
        return run_command(['sh', '-c', script], context, env=env)
    except BackendError as e:
        raise BackendError(f"{description}: {e}") from e


class BaseInstaller(ABC):
    """
    Abstract base class for per-backend installers
    """

    backend: Backend
    needs_sudo: bool = False

    def sudo_prefix(self, context: RunContext) -> List[str]:
        return ['sudo'] if self.needs_sudo and context.use_sudo else []

    @abstractmethod
    def install(self, name: str, method: InstallMethod, version: Optional[str],
                context: RunContext) -> None:
        """
        Install a package

        Args:
            name: Tool name (used when the method has no package_name)
            method: Install method from the recipe
            version: Version to pin, or None for the backend default
            context: Run-scoped state

        Raises:
            BackendError: if the installation failed
        """
        pass

    def run_post_install(self, method: InstallMethod, context: RunContext) -> None:
        """Run the recipe's post_install script, if any"""
        if not method.post_install:
            return
        run_shell(method.post_install, context, "Post-install script failed")

    def warn_unpinned(self, package_name: str, version: Optional[str]) -> None:
        if version:
            logger.warning(
                "%s does not support version pinning; installing latest %s instead of %s",
                self.backend.value, package_name, version,
            )
