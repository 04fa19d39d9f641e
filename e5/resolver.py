#!/usr/bin/env python3
"""
e5 Install-Method Resolver
Turns a recipe plus the detected backends into an ordered fallback chain
"""

from typing import Iterable, List, Optional, Tuple, Union

from e5.platform.capabilities import supports_versioning
from e5.platform.detector import Backend, Environment
from e5.recipe import InstallMethod, Recipe

Candidate = Tuple[Backend, InstallMethod]


def _backends(available: Union[Environment, Iterable[Backend]]) -> Iterable[Backend]:
    if isinstance(available, Environment):
        return available.available_backends
    return available


def resolve_install_methods(
    recipe: Recipe,
    available: Union[Environment, Iterable[Backend]],
    required_version: Optional[str] = None,
) -> List[Candidate]:
    """
    Build the fallback chain for a recipe.

    Candidates follow the detector's priority order. When a version is
    required, backends that can pin versions move ahead of those that
    cannot; order inside each group is preserved.

    Args:
        recipe: Recipe to resolve
        available: Environment (or plain backend sequence) in priority order
        required_version: Version the caller wants, if any

    Returns:
        List of (backend, method) pairs; empty when nothing applies
    """
    candidates: List[Candidate] = []
    for backend in _backends(available):
        method = recipe.method_for(backend)
        if method is not None:
            candidates.append((backend, method))

    if required_version:
        pinned = [c for c in candidates if supports_versioning(c[0])]
        unpinned = [c for c in candidates if not supports_versioning(c[0])]
        candidates = pinned + unpinned

    return candidates


def resolve_first(
    recipe: Recipe,
    available: Union[Environment, Iterable[Backend]],
    required_version: Optional[str] = None,
) -> Optional[Candidate]:
    """Head of the fallback chain, or None when no method applies"""
    candidates = resolve_install_methods(recipe, available, required_version)
    return candidates[0] if candidates else None
