"""
e5 Platform Detection & Installation
Backend detection, capability table and per-backend installers
"""

from e5.platform.detector import (
    Backend,
    Environment,
    EnvironmentDetector,
    OSType,
    command_exists,
    detect_environment,
)
from e5.platform.capabilities import supports_versioning

__all__ = [
    'Backend',
    'Environment',
    'EnvironmentDetector',
    'OSType',
    'command_exists',
    'detect_environment',
    'supports_versioning',
]
