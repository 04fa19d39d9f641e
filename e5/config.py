#!/usr/bin/env python3
"""
e5 Configuration Management
Handles .e5.yml configuration files
"""

import logging
import os
import yaml
from pathlib import Path
from typing import Dict, Optional, Any
from dataclasses import dataclass

from e5.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_REPO_URL = "https://raw.githubusercontent.com/luke-biel/e5/refs/heads/master/repo"


@dataclass
class E5Config:
    """e5 configuration structure"""

    # Recipe source
    repo_url: str = DEFAULT_REPO_URL
    fetch_timeout: float = 30.0

    # Requirements store
    requirements_file: str = "requirements.toml"

    # Backend execution
    installation_retry_on_failure: int = 1
    installation_use_sudo: bool = True

    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'E5Config':
        """Create config from dictionary"""
        if not isinstance(data, dict):
            raise ConfigurationError("configuration root must be a mapping")

        config = cls()

        config.repo_url = data.get('repo_url', config.repo_url)
        config.requirements_file = data.get('requirements_file', config.requirements_file)
        config.log_level = str(data.get('log_level', config.log_level)).upper()

        try:
            config.fetch_timeout = float(data.get('fetch_timeout', config.fetch_timeout))
        except (TypeError, ValueError):
            raise ConfigurationError(f"fetch_timeout must be a number, got {data.get('fetch_timeout')!r}")

        installation = data.get('installation', {}) or {}
        retry_count = installation.get('retry_on_failure', config.installation_retry_on_failure)
        try:
            config.installation_retry_on_failure = max(1, int(retry_count))
        except (TypeError, ValueError):
            config.installation_retry_on_failure = 1
        config.installation_use_sudo = bool(
            installation.get('use_sudo', config.installation_use_sudo)
        )

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for YAML export"""
        return {
            'repo_url': self.repo_url,
            'fetch_timeout': self.fetch_timeout,
            'requirements_file': self.requirements_file,
            'installation': {
                'retry_on_failure': self.installation_retry_on_failure,
                'use_sudo': self.installation_use_sudo,
            },
            'log_level': self.log_level,
        }

    def apply_environment(self, environ: Optional[Dict[str, str]] = None) -> 'E5Config':
        """Apply E5_REPO_URL / E5_REQUIREMENTS overrides"""
        environ = os.environ if environ is None else environ
        if environ.get('E5_REPO_URL'):
            self.repo_url = environ['E5_REPO_URL']
        if environ.get('E5_REQUIREMENTS'):
            self.requirements_file = environ['E5_REQUIREMENTS']
        return self


class ConfigManager:
    """Manage e5 configuration files"""

    DEFAULT_CONFIG_NAME = ".e5.yml"

    @staticmethod
    def find_config(start_path: Path = None) -> Optional[Path]:
        """
        Find .e5.yml by walking up directory tree

        Args:
            start_path: Starting directory (default: current directory)

        Returns:
            Path to .e5.yml or None if not found
        """
        current = start_path or Path.cwd()

        while current != current.parent:
            config_file = current / ConfigManager.DEFAULT_CONFIG_NAME
            if config_file.exists():
                return config_file
            current = current.parent

        return None

    @staticmethod
    def load_config(config_path: Path = None) -> E5Config:
        """
        Load configuration from .e5.yml

        Args:
            config_path: Path to config file (default: search from current dir)

        Returns:
            E5Config object

        Raises:
            ConfigurationError: if the file exists but is not valid YAML
        """
        if config_path is None:
            config_path = ConfigManager.find_config()

        if config_path is None or not config_path.exists():
            return E5Config()

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {e}") from e

        if data is None:
            return E5Config()

        logger.debug("Loaded configuration from %s", config_path)
        return E5Config.from_dict(data)

    @staticmethod
    def save_config(config: E5Config, config_path: Path) -> bool:
        """
        Save configuration to .e5.yml

        Args:
            config: E5Config object
            config_path: Path where to save

        Returns:
            True if successful
        """
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, 'w') as f:
                yaml.dump(
                    config.to_dict(),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2
                )

            return True

        except OSError as e:
            logger.error("Failed to save config to %s: %s", config_path, e)
            return False
