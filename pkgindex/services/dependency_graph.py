"""
Dependency graph over package names.

Nodes are package names, an edge (p, q) means p lists q as a
dependency. Package metadata can be inconsistent, so the graph may
contain cycles; both closures are monotone fixed-point iterations over a
finite node set and always terminate.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple, Any
import logging

from ..domain import PackageRecord

logger = logging.getLogger(__name__)

Edge = Tuple[str, str]


@dataclass(frozen=True)
class DependencyGraph:
    """Directed graph: edge (from, to) means 'from depends on to'."""
    nodes: FrozenSet[str] = frozenset()
    edges: FrozenSet[Edge] = frozenset()
    highlighted: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, records: Iterable[PackageRecord]) -> 'DependencyGraph':
        """
        Build the graph from a working set of records.

        Every record name becomes a node; so does every dependency name,
        even one not present in the working set.
        """
        nodes: Set[str] = set()
        edges: Set[Edge] = set()
        for record in records:
            nodes.add(record.name)
            for dep in record.dependency_names:
                nodes.add(dep)
                edges.add((record.name, dep))
        return cls(nodes=frozenset(nodes), edges=frozenset(edges))

    def _adjacency(self, reverse: bool) -> Dict[str, Set[str]]:
        adjacency: Dict[str, Set[str]] = {}
        for src, dst in self.edges:
            if reverse:
                adjacency.setdefault(dst, set()).add(src)
            else:
                adjacency.setdefault(src, set()).add(dst)
        return adjacency

    def _closure(self, seeds: Iterable[str], reverse: bool) -> FrozenSet[str]:
        adjacency = self._adjacency(reverse)
        seen = set(seeds)
        frontier = set(seen)
        while frontier:
            added = set()
            for node in frontier:
                added.update(adjacency.get(node, ()))
            added -= seen
            seen |= added
            frontier = added
        return frozenset(seen)

    def dependencies_of(self, seeds: Iterable[str]) -> FrozenSet[str]:
        """Seeds plus everything they transitively depend on."""
        return self._closure(seeds, reverse=False)

    def dependents_of(self, seeds: Iterable[str]) -> FrozenSet[str]:
        """Seeds plus every package that transitively depends on one of them."""
        return self._closure(seeds, reverse=True)

    def subgraph(self, names: Iterable[str], highlighted: Iterable[str] = ()) -> 'DependencyGraph':
        """The graph induced by names: edges with both endpoints inside."""
        keep = frozenset(names)
        return DependencyGraph(
            nodes=keep,
            edges=frozenset(e for e in self.edges if e[0] in keep and e[1] in keep),
            highlighted=frozenset(highlighted) & keep,
        )

    def restrict(self, seeds: Iterable[str] = (), reverse: bool = False) -> 'DependencyGraph':
        """
        Restrict the graph to the closure of seeds.

        With no seeds the full graph is returned unchanged. Otherwise the
        result holds the forward closure (or backward when reverse is
        set) with the seeds highlighted.
        """
        seeds = set(seeds)
        if not seeds:
            return self
        closure = self.dependents_of(seeds) if reverse else self.dependencies_of(seeds)
        return self.subgraph(closure, highlighted=seeds)

    def direct_dependencies(self, name: str) -> List[str]:
        return sorted(dst for src, dst in self.edges if src == name)

    def to_dict(self) -> Dict[str, Any]:
        """Generic node/edge structure for the graph renderer."""
        return {
            'nodes': [
                {'id': node, 'highlighted': node in self.highlighted}
                for node in sorted(self.nodes)
            ],
            'edges': [
                {'from': src, 'to': dst}
                for src, dst in sorted(self.edges)
            ],
        }
