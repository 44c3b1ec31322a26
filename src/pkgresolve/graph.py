"""Directed dependency graph with a designated root."""

from __future__ import annotations

from typing import Dict, Generic, Hashable, Iterator, List, Optional, Set, Tuple, TypeVar

T = TypeVar("T", bound=Hashable)


class DependencyGraph(Generic[T]):
    """Immutable "depends on" graph.

    Build instances with ``DependencyGraphBuilder``; an empty graph has no
    root and no nodes.
    """

    def __init__(self, root: Optional[T], adjacency: Dict[T, Set[T]]):
        self._root = root
        self._adjacency = {node: frozenset(deps) for node, deps in adjacency.items()}

    @classmethod
    def empty(cls) -> "DependencyGraph[T]":
        return cls(None, {})

    @property
    def root(self) -> Optional[T]:
        return self._root

    def is_empty(self) -> bool:
        return not self._adjacency

    def nodes(self) -> Set[T]:
        return set(self._adjacency)

    def direct_dependencies(self, node: T) -> Set[T]:
        """Nodes ``node`` depends on; empty for unknown nodes."""
        return set(self._adjacency.get(node, ()))

    def edges(self) -> Iterator[Tuple[T, T]]:
        for node, deps in self._adjacency.items():
            for dep in deps:
                yield node, dep

    def __contains__(self, node: object) -> bool:
        return node in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def to_dict(self) -> Dict[str, List[str]]:
        """Render as ``{node: [sorted dependencies]}`` keyed by ``str(node)``."""
        return {
            str(node): sorted(str(dep) for dep in deps)
            for node, deps in sorted(self._adjacency.items(), key=lambda item: str(item[0]))
        }

    def __repr__(self) -> str:
        return f"DependencyGraph(root={self._root!r}, nodes={len(self)})"


class DependencyGraphBuilder(Generic[T]):
    """Accumulates nodes and edges for a DependencyGraph."""

    def __init__(self, root: T):
        self._root = root
        self._adjacency: Dict[T, Set[T]] = {root: set()}

    def add_node(self, node: T) -> "DependencyGraphBuilder[T]":
        self._adjacency.setdefault(node, set())
        return self

    def add_dependency(self, dependent: T, dependency: T) -> "DependencyGraphBuilder[T]":
        self.add_node(dependent)
        self.add_node(dependency)
        self._adjacency[dependent].add(dependency)
        return self

    def build(self) -> DependencyGraph[T]:
        return DependencyGraph(self._root, self._adjacency)
