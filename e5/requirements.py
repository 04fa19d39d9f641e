#!/usr/bin/env python3
"""
e5 Requirements
Package specs (name or name@version) and the requirements.toml store
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

import tomli_w

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from e5.exceptions import RequirementsError


@dataclass(frozen=True)
class PackageSpec:
    """A requirement: package name plus optional pinned version"""
    name: str
    version: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.name}@{self.version}" if self.version else self.name


def parse_package_spec(spec: str) -> PackageSpec:
    """
    Parse 'name' or 'name@version'.

    The last '@' is the delimiter, and only when a non-empty version follows
    it; otherwise the whole string is the name.
    """
    name, sep, version = spec.rpartition('@')
    if sep and name and version:
        return PackageSpec(name=name, version=version)
    return PackageSpec(name=spec)


@dataclass
class Requirements:
    """Ordered list of requirement specs"""
    packages: List[str] = field(default_factory=list)

    def specs(self) -> List[PackageSpec]:
        return [parse_package_spec(p) for p in self.packages]

    def find(self, name: str) -> Optional[str]:
        """The spec string requiring a package, if any"""
        for spec in self.packages:
            if parse_package_spec(spec).name == name:
                return spec
        return None

    def contains(self, name: str) -> bool:
        return self.find(name) is not None


def load_requirements(path: Union[str, Path]) -> Requirements:
    """
    Load requirements.toml; a missing file means no requirements

    Raises:
        RequirementsError: if the file cannot be read or is malformed
    """
    path = Path(path)
    if not path.exists():
        return Requirements()

    try:
        with open(path, 'rb') as f:
            data = tomllib.load(f)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise RequirementsError(str(e), str(path)) from e

    packages = data.get('packages', [])
    if not isinstance(packages, list) or not all(isinstance(p, str) for p in packages):
        raise RequirementsError("'packages' must be a list of strings", str(path))

    return Requirements(packages=list(packages))


def save_requirements(path: Union[str, Path], requirements: Requirements) -> None:
    """Write requirements.toml"""
    path = Path(path)
    try:
        with open(path, 'wb') as f:
            tomli_w.dump({'packages': requirements.packages}, f)
    except OSError as e:
        raise RequirementsError(str(e), str(path)) from e


def add_package(requirements: Requirements, spec: str) -> bool:
    """
    Add a spec, replacing any existing spec for the same package

    Returns:
        False if the exact spec was already present
    """
    if spec in requirements.packages:
        return False

    name = parse_package_spec(spec).name
    requirements.packages = [
        p for p in requirements.packages if parse_package_spec(p).name != name
    ]
    requirements.packages.append(spec)
    requirements.packages.sort()
    return True


def remove_package(requirements: Requirements, name: str) -> bool:
    """
    Remove every spec for a package name

    Returns:
        False if the package was not required
    """
    remaining = [p for p in requirements.packages if parse_package_spec(p).name != name]
    if len(remaining) == len(requirements.packages):
        return False
    requirements.packages = remaining
    return True
