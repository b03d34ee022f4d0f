from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .errors import ConfigurationError, ResolutionError
from .models import Coordinate, DependencyRequest, SubProject
from .repositories import RepositoryRegistry

logger = logging.getLogger(__name__)


class VersionPinningTable:
    """Forced versions applied to every sub-project's resolution."""

    def __init__(self, rules: Iterable[Tuple[Coordinate, str]]) -> None:
        self._rules: Dict[Coordinate, str] = {}
        for coordinate, version in rules:
            if coordinate in self._rules:
                raise ConfigurationError(f"Forced version declared twice for {coordinate}")
            self._rules[coordinate] = version

    def forced_version(self, coordinate: Coordinate) -> Optional[str]:
        return self._rules.get(coordinate)

    def as_dict(self) -> Dict[str, str]:
        return {str(coordinate): version for coordinate, version in self._rules.items()}

    def __contains__(self, coordinate: Coordinate) -> bool:
        return coordinate in self._rules

    def __len__(self) -> int:
        return len(self._rules)


@dataclass(frozen=True)
class ResolvedDependency:
    coordinate: Coordinate
    requested: Tuple[str, ...]
    selected: str
    forced: bool
    repository: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "coordinate": str(self.coordinate),
            "requested": list(self.requested),
            "selected": self.selected,
            "forced": self.forced,
            "repository": self.repository,
        }


def _version_key(version: str) -> Tuple[Tuple[int, object], ...]:
    # Numeric segments compare numerically, so "1.10" > "1.9".
    key = []
    for part in re.split(r"[.\-+_]", version):
        if part.isdigit():
            key.append((1, int(part)))
        else:
            key.append((0, part.lower()))
    return tuple(key)


def select_highest(versions: Iterable[str]) -> str:
    return max(versions, key=_version_key)


class DependencyResolver:
    """Resolve a sub-project's dependency graph against shared settings."""

    def __init__(self, registry: RepositoryRegistry, pinning: VersionPinningTable) -> None:
        self.registry = registry
        self.pinning = pinning

    def _select(self, coordinate: Coordinate, versions: List[str]) -> str:
        forced = self.pinning.forced_version(coordinate)
        return forced if forced is not None else select_highest(versions)

    def _walk(
        self, roots: List[DependencyRequest], selected: Dict[Coordinate, str]
    ) -> Dict[Coordinate, List[str]]:
        requested: Dict[Coordinate, List[str]] = {}
        visited: Set[DependencyRequest] = set()
        queue = deque(roots)
        while queue:
            request = queue.popleft()
            versions = requested.setdefault(request.coordinate, [])
            if request.version not in versions:
                versions.append(request.version)
            forced = self.pinning.forced_version(request.coordinate)
            version = forced or selected.get(request.coordinate, request.version)
            # Only the chosen version of a coordinate contributes metadata.
            edge = DependencyRequest(request.coordinate, version)
            if edge in visited:
                continue
            visited.add(edge)
            repo = self.registry.locate(edge)
            if repo is not None:
                queue.extend(repo.metadata(edge))
        return requested

    def _collect(self, roots: Iterable[DependencyRequest]) -> Dict[Coordinate, List[str]]:
        roots = list(roots)
        selected: Dict[Coordinate, str] = {}
        seen: List[Dict[Coordinate, str]] = []
        # Walk again with the new selection until it stops changing.
        while True:
            requested = self._walk(roots, selected)
            current = {c: self._select(c, versions) for c, versions in requested.items()}
            if current == selected or current in seen:
                return requested
            seen.append(current)
            selected = current

    def resolve(self, project: SubProject) -> List[ResolvedDependency]:
        requested = self._collect(project.dependencies)
        resolved: List[ResolvedDependency] = []
        for coordinate in sorted(requested):
            versions = requested[coordinate]
            forced = self.pinning.forced_version(coordinate)
            selected = self._select(coordinate, versions)
            if forced is not None and any(v != forced for v in versions):
                logger.debug("%s: forcing %s over %s", project.name, forced, versions)
            request = DependencyRequest(coordinate, selected)
            repo = self.registry.locate(request)
            if repo is None:
                raise ResolutionError(
                    f"Could not resolve {request} for {project.name}; "
                    f"searched {', '.join(self.registry.names()) or 'no repositories'}"
                )
            resolved.append(
                ResolvedDependency(
                    coordinate=coordinate,
                    requested=tuple(versions),
                    selected=selected,
                    forced=forced is not None,
                    repository=repo.name,
                )
            )
        return resolved

