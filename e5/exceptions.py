"""
e5 Exceptions
Error taxonomy shared by the resolver, the backends and the orchestrator
"""

from typing import Optional


class E5Error(Exception):
    """Base exception class for all e5 errors."""
    pass


class ConfigurationError(E5Error):
    """Raised when .e5.yml is invalid."""
    pass


class RequirementsError(E5Error):
    """Raised when the requirements file cannot be read or written."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        self.file_path = file_path

        if file_path:
            message = f"Requirements error in '{file_path}': {message}"

        super().__init__(message)


class RecipeUnavailableError(E5Error):
    """Raised when a recipe (or the recipe index) cannot be fetched."""

    def __init__(self, message: str, name: Optional[str] = None):
        self.name = name
        super().__init__(message)


class RecipeParseError(RecipeUnavailableError):
    """Raised when a recipe document is malformed."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source

        if source:
            message = f"Invalid recipe '{source}': {message}"

        super().__init__(message)


class NoInstallMethodError(E5Error):
    """Raised when no available backend has a method for a package."""

    def __init__(self, package: str):
        self.package = package
        super().__init__(f"No installation method available for {package}")


class BackendError(E5Error):
    """Raised by a backend when one install attempt fails."""
    pass


class UnsupportedBackendError(E5Error):
    """Raised for a backend missing from a dispatch or capability table."""
    pass
