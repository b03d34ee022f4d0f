from __future__ import annotations

from typing import Iterable, Iterator, Optional, Tuple

from .errors import ConfigurationError
from .models import DependencyRequest, Repository


class RepositoryRegistry:
    """Ordered package sources shared by every sub-project.

    Order is lookup priority. The registry is fixed at construction and every
    sub-project sees the very same tuple.
    """

    def __init__(self, entries: Iterable[Repository]) -> None:
        entries = tuple(entries)
        seen = set()
        for repo in entries:
            if repo.name in seen:
                raise ConfigurationError(f"Repository declared twice: {repo.name}")
            seen.add(repo.name)
        self._entries: Tuple[Repository, ...] = entries

    def view(self) -> Tuple[Repository, ...]:
        return self._entries

    def names(self) -> Tuple[str, ...]:
        return tuple(repo.name for repo in self._entries)

    def locate(self, request: DependencyRequest) -> Optional[Repository]:
        for repo in self._entries:
            if repo.serves(request):
                return repo
        return None

    def __iter__(self) -> Iterator[Repository]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
