#!/usr/bin/env python3
"""
e5 Recipe Repository
Fetches the recipe index and recipes from a remote URL or a local directory
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from e5.exceptions import RecipeParseError, RecipeUnavailableError
from e5.recipe import Recipe, parse_recipe_content

logger = logging.getLogger(__name__)

FETCH_TIMEOUT = 30


@dataclass(frozen=True)
class IndexEntry:
    """One recipe listed in index.toml"""
    name: str
    file: str
    description: Optional[str] = None


@dataclass
class RepositoryIndex:
    """Parsed index.toml"""
    version: str
    recipes: List[IndexEntry] = field(default_factory=list)

    def find(self, name: str) -> Optional[IndexEntry]:
        for entry in self.recipes:
            if entry.name == name:
                return entry
        return None


def validate_index(data: Any, source: str = 'index.toml') -> RepositoryIndex:
    """
    Validate parsed TOML against the index schema

    Raises:
        RecipeUnavailableError: describing the first problem found
    """
    if not isinstance(data, dict):
        raise RecipeUnavailableError(f"Invalid index {source}: expected a table")

    version = data.get('version')
    if not isinstance(version, str):
        raise RecipeUnavailableError(
            f"Invalid index {source}: 'version' is required and must be a string"
        )

    recipes = data.get('recipes')
    if not isinstance(recipes, list):
        raise RecipeUnavailableError(
            f"Invalid index {source}: 'recipes' is required and must be an array"
        )

    entries = []
    for i, entry in enumerate(recipes):
        if not isinstance(entry, dict):
            raise RecipeUnavailableError(f"Invalid index {source}: 'recipes[{i}]' must be a table")

        name = entry.get('name')
        if not isinstance(name, str) or not name.strip():
            raise RecipeUnavailableError(
                f"Invalid index {source}: 'recipes[{i}].name' is required and must be a non-empty string"
            )

        description = entry.get('description')
        if description is not None and not isinstance(description, str):
            raise RecipeUnavailableError(
                f"Invalid index {source}: 'recipes[{i}].description' must be a string"
            )

        file = entry.get('file')
        if not isinstance(file, str) or not file.strip():
            raise RecipeUnavailableError(
                f"Invalid index {source}: 'recipes[{i}].file' is required and must be a non-empty string"
            )

        entries.append(IndexEntry(name=name, file=file, description=description))

    return RepositoryIndex(version=version, recipes=entries)


class RecipeSource(Protocol):
    """Anything the installation manager can fetch recipes from"""

    def fetch_index(self) -> RepositoryIndex: ...

    def fetch_recipe(self, name: str) -> Recipe: ...

    def search(self, query: str) -> List[IndexEntry]: ...


class Repository:
    """
    Recipe source backed by an index.toml.

    The URL may be http(s)://, file:// or a plain directory path. The index
    is fetched once and reused for the rest of the run.
    """

    def __init__(self, url: str, timeout: float = FETCH_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url = url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self._index: Optional[RepositoryIndex] = None

    def _is_remote(self) -> bool:
        return urlparse(self.url).scheme in ('http', 'https')

    def _local_path(self, relative: str) -> Path:
        parsed = urlparse(self.url)
        if parsed.scheme == 'file':
            base = Path(url2pathname(parsed.path))
        else:
            base = Path(self.url)
        return base / relative

    def _fetch_content(self, relative: str) -> str:
        """Read a file from the repository"""
        if not self._is_remote():
            path = self._local_path(relative)
            try:
                return path.read_text(encoding='utf-8')
            except FileNotFoundError:
                raise RecipeUnavailableError(f"File not found: {path}") from None
            except (OSError, UnicodeDecodeError) as e:
                raise RecipeUnavailableError(f"Cannot read {path}: {e}") from e

        url = f"{self.url}/{relative}"
        logger.debug("Fetching %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.Timeout:
            raise RecipeUnavailableError(f"Timeout fetching from {url}") from None
        except requests.RequestException as e:
            raise RecipeUnavailableError(f"Failed to fetch from {url}: {e}") from e

        if not response.ok:
            raise RecipeUnavailableError(f"Failed to fetch from {url}: {response.status_code}")

        return response.text

    def fetch_index(self) -> RepositoryIndex:
        """Fetch and validate index.toml (cached)"""
        if self._index is not None:
            return self._index

        content = self._fetch_content('index.toml')
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise RecipeUnavailableError(f"Invalid index {self.url}/index.toml: {e}") from e

        self._index = validate_index(data, f"{self.url}/index.toml")
        return self._index

    def fetch_recipe(self, name: str) -> Recipe:
        """
        Fetch and parse the recipe for a package

        Raises:
            RecipeUnavailableError: unknown package, fetch failure or bad recipe
        """
        entry = self.fetch_index().find(name)
        if entry is None:
            raise RecipeUnavailableError(f"Recipe not found in index: {name}", name=name)

        content = self._fetch_content(entry.file)
        try:
            return parse_recipe_content(content, entry.file)
        except RecipeParseError as e:
            e.name = name
            raise

    def search(self, query: str) -> List[IndexEntry]:
        """Entries whose name or description contains the query (case-insensitive)"""
        lower_query = query.lower()
        return [
            entry for entry in self.fetch_index().recipes
            if lower_query in entry.name.lower()
            or (entry.description and lower_query in entry.description.lower())
        ]


class LocalRecipeSource:
    """
    In-memory recipe source.

    Useful for recipes loaded from individual files and in tests.
    """

    def __init__(self, recipes: Optional[Dict[str, Recipe]] = None):
        self.recipes: Dict[str, Recipe] = dict(recipes or {})

    def add(self, recipe: Recipe) -> None:
        self.recipes[recipe.name] = recipe

    def fetch_recipe(self, name: str) -> Recipe:
        try:
            return self.recipes[name]
        except KeyError:
            raise RecipeUnavailableError(f"Recipe not found: {name}", name=name) from None

    def search(self, query: str) -> List[IndexEntry]:
        lower_query = query.lower()
        return [
            IndexEntry(name=r.name, file='', description=r.package.description)
            for r in self.recipes.values()
            if lower_query in r.name.lower()
            or (r.package.description and lower_query in r.package.description.lower())
        ]

    def fetch_index(self) -> RepositoryIndex:
        return RepositoryIndex(
            version='local',
            recipes=[IndexEntry(name=r.name, file='', description=r.package.description)
                     for r in self.recipes.values()],
        )
