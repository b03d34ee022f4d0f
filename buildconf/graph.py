from __future__ import annotations

from collections import defaultdict, deque
from typing import Dict, Iterable, List, Set

from .errors import CircularDependencyError, ConfigurationError


class EvaluationGraph:
    """Explicit "evaluate before" edges between sub-projects."""

    def __init__(self, nodes: Iterable[str] = ()) -> None:
        self.nodes: List[str] = []
        self.edges: Dict[str, List[str]] = defaultdict(list)
        for node in nodes:
            self.add_node(node)

    @classmethod
    def for_projects(cls, names: Iterable[str], prerequisite: str | None) -> "EvaluationGraph":
        graph = cls(names)
        if prerequisite:
            if prerequisite not in graph.nodes:
                raise ConfigurationError(f"Project with path ':{prerequisite}' could not be found")
            for name in graph.nodes:
                if name != prerequisite:
                    graph.add_edge(prerequisite, name)
        return graph

    def add_node(self, name: str) -> None:
        if name in self.nodes:
            raise ConfigurationError(f"Sub-project declared twice: {name}")
        self.nodes.append(name)

    def add_edge(self, before: str, after: str) -> None:
        for name in (before, after):
            if name not in self.nodes:
                raise ConfigurationError(f"Unknown sub-project in evaluation edge: {name}")
        if after not in self.edges[before]:
            self.edges[before].append(after)

    def prerequisites(self, name: str) -> Set[str]:
        return {before for before, afters in self.edges.items() if name in afters}

    def topological_sort(self) -> List[str]:
        in_degree: Dict[str, int] = {name: 0 for name in self.nodes}
        for afters in self.edges.values():
            for node in afters:
                in_degree[node] += 1

        queue = deque(sorted(n for n, d in in_degree.items() if d == 0))
        order: List[str] = []
        while queue:
            current = queue.popleft()
            order.append(current)
            for neighbor in sorted(self.edges[current]):
                in_degree[neighbor] -= 1
                if in_degree[neighbor] == 0:
                    queue.append(neighbor)

        if len(order) != len(self.nodes):
            remaining = sorted(set(self.nodes) - set(order))
            raise CircularDependencyError(f"Circular evaluation dependency among: {', '.join(remaining)}")
        return order
