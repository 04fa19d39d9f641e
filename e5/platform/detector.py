#!/usr/bin/env python3
"""
e5 Environment Detection
Detects the operating system and which package-manager backends are usable
"""

import logging
import platform
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple
from enum import Enum
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class OSType(Enum):
    """Operating system / distribution family"""
    MACOS = "macos"
    UBUNTU = "ubuntu"
    DEBIAN = "debian"
    ARCH = "arch"
    FEDORA = "fedora"
    UNKNOWN = "unknown"


class Backend(Enum):
    """Package-manager backends e5 can install through"""
    APT = "apt"              # Debian/Ubuntu
    PACMAN = "pacman"        # Arch Linux
    DNF = "dnf"              # Fedora/RHEL 8+
    HOMEBREW = "homebrew"    # macOS/Linux Homebrew
    CARGO = "cargo"          # Rust
    NPM = "npm"              # Node.js
    PIPX = "pipx"            # Python applications
    SCRIPT = "script"        # Inline shell script, always available

    @classmethod
    def from_key(cls, key: str) -> Optional['Backend']:
        """Map a recipe method key (or one of its aliases) to a Backend"""
        return BACKEND_ALIASES.get(key.strip().lower())


BACKEND_ALIASES: Dict[str, Backend] = {
    'apt': Backend.APT,
    'ubuntu': Backend.APT,
    'debian': Backend.APT,
    'pacman': Backend.PACMAN,
    'arch': Backend.PACMAN,
    'dnf': Backend.DNF,
    'fedora': Backend.DNF,
    'homebrew': Backend.HOMEBREW,
    'brew': Backend.HOMEBREW,
    'macos': Backend.HOMEBREW,
    'cargo': Backend.CARGO,
    'npm': Backend.NPM,
    'npx': Backend.NPM,
    'pipx': Backend.PIPX,
    'script': Backend.SCRIPT,
}

# Probe order inside each tier is the fallback priority.
NATIVE_BACKENDS: Tuple[Tuple[Backend, str], ...] = (
    (Backend.APT, 'apt-get'),
    (Backend.PACMAN, 'pacman'),
    (Backend.DNF, 'dnf'),
)
CROSS_PLATFORM_BACKENDS: Tuple[Tuple[Backend, str], ...] = (
    (Backend.HOMEBREW, 'brew'),
)
ECOSYSTEM_BACKENDS: Tuple[Tuple[Backend, str], ...] = (
    (Backend.CARGO, 'cargo'),
    (Backend.NPM, 'npm'),
    (Backend.PIPX, 'pipx'),
)


@dataclass(frozen=True)
class Environment:
    """Backends confirmed present on this host, in fallback priority order"""
    available_backends: Tuple[Backend, ...]
    os_type: OSType = OSType.UNKNOWN
    default_backend: Optional[Backend] = None

    def is_available(self, backend: Backend) -> bool:
        return backend in self.available_backends

    def to_dict(self) -> Dict:
        """Convert to dictionary for display"""
        return {
            'os_type': self.os_type.value,
            'available_backends': [b.value for b in self.available_backends],
            'default_backend': self.default_backend.value if self.default_backend else None,
        }


def command_exists(cmd: str) -> bool:
    """Check if an executable is on PATH (never raises)"""
    try:
        return shutil.which(cmd) is not None
    except (OSError, ValueError):
        return False


def get_default_backend(os_type: OSType) -> Optional[Backend]:
    """Get the package manager a given OS ships with"""
    defaults = {
        OSType.MACOS: Backend.HOMEBREW,
        OSType.UBUNTU: Backend.APT,
        OSType.DEBIAN: Backend.APT,
        OSType.ARCH: Backend.PACMAN,
        OSType.FEDORA: Backend.DNF,
    }
    return defaults.get(os_type)


@dataclass
class EnvironmentDetector:
    """
    Probe the host for usable backends.

    The probe and os-release location are injectable so tests can describe a
    host without touching the real PATH.
    """
    probe: Callable[[str], bool] = command_exists
    os_release_path: Path = Path('/etc/os-release')
    system: Callable[[], str] = platform.system
    environment: Optional[Environment] = field(default=None, init=False)

    def detect(self) -> Environment:
        """
        Perform backend and OS detection

        Returns:
            Environment with available backends ordered native-first,
            cross-platform next, ecosystem managers after and script last
        """
        available: List[Backend] = []

        for tier in (NATIVE_BACKENDS, CROSS_PLATFORM_BACKENDS, ECOSYSTEM_BACKENDS):
            for backend, cmd in tier:
                if self.probe(cmd):
                    available.append(backend)
                else:
                    logger.debug("Backend %s not available (%s not on PATH)", backend.value, cmd)

        available.append(Backend.SCRIPT)

        os_type = self._detect_os()
        self.environment = Environment(
            available_backends=tuple(available),
            os_type=os_type,
            default_backend=get_default_backend(os_type),
        )
        logger.debug("Detected environment: %s", self.environment.to_dict())
        return self.environment

    def _detect_os(self) -> OSType:
        """Detect operating system type"""
        system = self.system().lower()

        if system == 'darwin':
            return OSType.MACOS
        if system == 'linux':
            return self._detect_linux_distro()
        return OSType.UNKNOWN

    def _read_os_release(self) -> Dict[str, str]:
        info: Dict[str, str] = {}
        try:
            with open(self.os_release_path, 'r') as f:
                for line in f:
                    key, sep, value = line.strip().partition('=')
                    if sep:
                        info[key] = value.strip().strip('"')
        except (IOError, OSError):
            # No os-release: distro stays unknown
            pass
        return info

    def _detect_linux_distro(self) -> OSType:
        """Get Linux distribution family from /etc/os-release"""
        info = self._read_os_release()

        distro_id = info.get('ID', '').lower()
        if distro_id == 'ubuntu':
            return OSType.UBUNTU
        if distro_id == 'debian':
            return OSType.DEBIAN
        if distro_id in ('arch', 'archlinux', 'endeavouros', 'manjaro'):
            return OSType.ARCH
        if distro_id == 'fedora':
            return OSType.FEDORA

        id_like = info.get('ID_LIKE', '').lower()
        if 'ubuntu' in id_like or 'debian' in id_like:
            return OSType.UBUNTU
        if 'arch' in id_like:
            return OSType.ARCH
        if 'fedora' in id_like:
            return OSType.FEDORA

        return OSType.UNKNOWN


def detect_environment() -> Environment:
    """Run a fresh detection against the real host"""
    return EnvironmentDetector().detect()
