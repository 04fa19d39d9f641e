#!/usr/bin/env python3
"""
e5 Recipes
Data model for one installable tool and its TOML recipe format
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from e5.exceptions import RecipeParseError
from e5.platform.detector import Backend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallMethod:
    """One way to install a tool through one backend"""
    package_name: Optional[str] = None
    tap: Optional[str] = None
    cask: bool = False
    script: Optional[str] = None
    post_install: Optional[str] = None
    features: Tuple[str, ...] = ()
    install_global: bool = True

    def __post_init__(self):
        object.__setattr__(self, 'features', tuple(self.features))

    def target_name(self, default: str) -> str:
        """Package name to hand to the backend (override or the tool name)"""
        return self.package_name or default


@dataclass(frozen=True)
class PackageInfo:
    """Identity and verification metadata of a tool"""
    name: str
    description: Optional[str] = None
    homepage: Optional[str] = None
    verify_command: Optional[str] = None
    verify_binary: Optional[str] = None
    version_command: Optional[str] = None

    @property
    def binary(self) -> str:
        """Executable used to verify the installation"""
        return self.verify_binary or self.name


@dataclass(frozen=True)
class Recipe:
    """A tool plus its install methods keyed by backend"""
    package: PackageInfo
    install_methods: Mapping[Backend, InstallMethod] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, 'install_methods', MappingProxyType(dict(self.install_methods)))

    @property
    def name(self) -> str:
        return self.package.name

    def method_for(self, backend: Backend) -> Optional[InstallMethod]:
        return self.install_methods.get(backend)


def _optional_str(section: Dict[str, Any], key: str, source: str) -> Optional[str]:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RecipeParseError(f"'{key}' must be a string", source)
    return value


def _parse_method(key: str, raw: Any, source: str) -> InstallMethod:
    if not isinstance(raw, dict):
        raise RecipeParseError(f"'install.{key}' must be a table", source)

    features = raw.get('features') or []
    if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
        raise RecipeParseError(f"'install.{key}.features' must be a list of strings", source)

    return InstallMethod(
        package_name=_optional_str(raw, 'package_name', source),
        tap=_optional_str(raw, 'tap', source),
        cask=bool(raw.get('cask', False)),
        script=_optional_str(raw, 'script', source),
        post_install=_optional_str(raw, 'post_install', source),
        features=tuple(features),
        install_global=bool(raw.get('global', True)),
    )


def recipe_from_dict(data: Dict[str, Any], source: str = '<recipe>') -> Recipe:
    """
    Build a Recipe from parsed TOML data

    Args:
        data: Parsed recipe document
        source: Name used in error messages (file path or URL)

    Returns:
        Recipe

    Raises:
        RecipeParseError: on missing/invalid fields or duplicate backends
    """
    package = data.get('package')
    if not isinstance(package, dict):
        raise RecipeParseError("missing [package] table", source)

    name = package.get('name')
    if not isinstance(name, str) or not name.strip():
        raise RecipeParseError("'package.name' is required and must be a non-empty string", source)

    info = PackageInfo(
        name=name.strip(),
        description=_optional_str(package, 'description', source),
        homepage=_optional_str(package, 'homepage', source),
        verify_command=_optional_str(package, 'verify_command', source),
        verify_binary=_optional_str(package, 'verify_binary', source),
        version_command=_optional_str(package, 'version_command', source),
    )

    install = data.get('install') or {}
    if not isinstance(install, dict):
        raise RecipeParseError("'install' must be a table", source)

    methods: Dict[Backend, InstallMethod] = {}
    for key, raw in install.items():
        backend = Backend.from_key(key)
        if backend is None:
            logger.warning("Recipe %s: ignoring unknown install method '%s'", info.name, key)
            continue
        if backend in methods:
            raise RecipeParseError(
                f"install method '{key}' duplicates backend '{backend.value}'", source
            )
        methods[backend] = _parse_method(key, raw, source)

    return Recipe(package=info, install_methods=methods)


def parse_recipe_content(content: str, source: str = '<recipe>') -> Recipe:
    """Parse a TOML recipe document"""
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise RecipeParseError(f"invalid TOML: {e}", source) from e
    return recipe_from_dict(data, source)


def load_recipe(path: Union[str, Path]) -> Recipe:
    """Load a recipe from a TOML file"""
    path = Path(path)
    try:
        content = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise RecipeParseError(f"cannot read file: {e}", str(path)) from e
    return parse_recipe_content(content, str(path))
