"""
e5 Backend Capability Table
Which backends can pin an explicit package version
"""

from typing import Dict

from e5.exceptions import UnsupportedBackendError
from e5.platform.detector import Backend

# Every Backend member must appear here; tests assert the table is complete.
#   apt:      package=version
#   dnf:      package-version
#   cargo:    --version
#   npm:      package@version
#   pipx:     package==version
#   script:   VERSION environment variable
#   homebrew: versioned formula names only (node@18), not arbitrary versions
#   pacman:   needs the Arch Linux Archive
VERSIONING_SUPPORT: Dict[Backend, bool] = {
    Backend.APT: True,
    Backend.DNF: True,
    Backend.CARGO: True,
    Backend.NPM: True,
    Backend.PIPX: True,
    Backend.SCRIPT: True,
    Backend.HOMEBREW: False,
    Backend.PACMAN: False,
}


def supports_versioning(backend: Backend) -> bool:
    """
    Whether a backend honors an explicit version request.

    Raises:
        UnsupportedBackendError: for a backend missing from the table
    """
    try:
        return VERSIONING_SUPPORT[backend]
    except KeyError:
        raise UnsupportedBackendError(f"No versioning classification for backend {backend!r}") from None
