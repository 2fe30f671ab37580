"""
Shortest Paths and Components

Reusable graph traversal utilities shared by the network builder and the
subnetwork extractor:

- AdjacencyIndex: sorted neighbor lists built once per edge collection
- ComponentPartition: connected components (via NetworkX) computed once
  per network
- shortest_path / connect_components: breadth-first search with a
  deterministic tie-break (path length, then endpoint ids, then the path
  sequence itself)
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple
from collections import defaultdict
import logging

import networkx as nx

logger = logging.getLogger(__name__)


class AdjacencyIndex:
    """
    Undirected adjacency index with neighbors kept in sorted order.

    Sorted neighbor lists make every traversal independent of the order
    in which edges were supplied.
    """

    def __init__(self, neighbors: Mapping[str, Iterable[str]]):
        self._neighbors: Dict[str, Tuple[str, ...]] = {
            node: tuple(sorted(set(nbrs))) for node, nbrs in neighbors.items()
        }

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Tuple[str, str]],
        nodes: Optional[Iterable[str]] = None,
    ) -> "AdjacencyIndex":
        """
        Build an index from (a, b) pairs.

        Args:
            edges: Undirected node pairs
            nodes: Optional extra nodes to include even without edges

        Returns:
            AdjacencyIndex
        """
        neighbors: Dict[str, Set[str]] = defaultdict(set)
        for node in nodes or ():
            neighbors.setdefault(node, set())
        for a, b in edges:
            if a == b:
                continue
            neighbors[a].add(b)
            neighbors[b].add(a)
        return cls(neighbors)

    def neighbors(self, node: str) -> Tuple[str, ...]:
        return self._neighbors.get(node, ())

    def degree(self, node: str) -> int:
        return len(self._neighbors.get(node, ()))

    @property
    def nodes(self) -> List[str]:
        return sorted(self._neighbors)

    def __contains__(self, node: object) -> bool:
        return node in self._neighbors

    def __len__(self) -> int:
        return len(self._neighbors)


@dataclass
class ComponentPartition:
    """
    Partition of a network's nodes into connected components.

    Components are ordered by size (largest first), then by smallest
    member id, so component numbers are stable for a fixed graph.
    """

    components: List[FrozenSet[str]]
    membership: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self):
        if not self.membership:
            self.membership = {
                node: idx
                for idx, component in enumerate(self.components)
                for node in component
            }

    @classmethod
    def from_graph(cls, graph: nx.Graph) -> "ComponentPartition":
        """Partition a NetworkX graph into its connected components."""
        components = [frozenset(c) for c in nx.connected_components(graph)]
        components.sort(key=lambda c: (-len(c), min(c)))
        return cls(components=components)

    def __len__(self) -> int:
        return len(self.components)

    @property
    def n_components(self) -> int:
        return len(self.components)

    def component_of(self, node: str) -> Optional[int]:
        return self.membership.get(node)

    def members(self, index: int) -> FrozenSet[str]:
        return self.components[index]

    def is_isolated(self, node: str) -> bool:
        idx = self.membership.get(node)
        return idx is not None and len(self.components[idx]) == 1


@dataclass
class Connection:
    """A shortest path joining two node groups."""

    source: str
    target: str
    path: Tuple[str, ...]

    def __post_init__(self):
        # Orient the path from the smaller endpoint id
        if self.path and self.path[0] > self.path[-1]:
            self.path = tuple(reversed(self.path))
        self.source, self.target = self.path[0], self.path[-1]

    @property
    def length(self) -> int:
        return len(self.path) - 1

    @property
    def sort_key(self) -> Tuple[int, str, str, Tuple[str, ...]]:
        return (self.length, self.source, self.target, self.path)

    def edges(self) -> List[Tuple[str, str]]:
        return list(zip(self.path[:-1], self.path[1:]))


@dataclass
class ConnectionResult:
    """Outcome of merging node groups through shortest paths."""

    connections: List[Connection]
    groups: List[FrozenSet[str]]

    @property
    def connected(self) -> bool:
        return len(self.groups) <= 1

    def nodes(self) -> Set[str]:
        touched: Set[str] = set()
        for group in self.groups:
            touched.update(group)
        return touched

    def edges(self) -> Set[Tuple[str, str]]:
        pairs: Set[Tuple[str, str]] = set()
        for connection in self.connections:
            for a, b in connection.edges():
                pairs.add((a, b) if a <= b else (b, a))
        return pairs


def _trace(visited: Dict[str, Tuple[str, Optional[str]]], node: str) -> Tuple[str, ...]:
    path = [node]
    parent = visited[node][1]
    while parent is not None:
        path.append(parent)
        parent = visited[parent][1]
    path.reverse()
    return tuple(path)


def nearest_connection(
    adjacency: AdjacencyIndex,
    sources: Iterable[str],
    owner: Mapping[str, int],
    own: int,
) -> Optional[Connection]:
    """
    Find the shortest path from a node group to any node of another group.

    Runs a layered multi-source BFS. Within a layer each newly reached node
    keeps the lexicographically smallest (root, parent) pair, so the path
    found does not depend on traversal order.

    Args:
        adjacency: Graph to search
        sources: Nodes of the starting group
        owner: Mapping from grouped node to group index
        own: Index of the starting group

    Returns:
        Best Connection, or None if no other group is reachable
    """
    visited: Dict[str, Tuple[str, Optional[str]]] = {
        node: (node, None) for node in sources if node in adjacency
    }
    frontier = sorted(visited)

    while frontier:
        next_layer: Dict[str, Tuple[str, str]] = {}
        for node in frontier:
            root = visited[node][0]
            for nbr in adjacency.neighbors(node):
                if nbr in visited:
                    continue
                candidate = (root, node)
                current = next_layer.get(nbr)
                if current is None or candidate < current:
                    next_layer[nbr] = candidate

        if not next_layer:
            return None

        visited.update(next_layer)
        hits = [n for n in next_layer if owner.get(n, own) != own]
        if hits:
            return min(
                (Connection(source=visited[h][0], target=h, path=_trace(visited, h)) for h in hits),
                key=lambda c: c.sort_key,
            )
        frontier = sorted(next_layer)

    return None


def shortest_path(
    adjacency: AdjacencyIndex,
    source: str,
    target: str,
) -> Optional[List[str]]:
    """
    Deterministic unweighted shortest path between two nodes.

    Returns:
        Node sequence from source to target, or None if unreachable
    """
    if source not in adjacency or target not in adjacency:
        return None
    if source == target:
        return [source]

    connection = nearest_connection(adjacency, [source], {source: 0, target: 1}, own=0)
    if connection is None:
        return None
    path = list(connection.path)
    if path[0] != source:
        path.reverse()
    return path


def connect_components(
    adjacency: AdjacencyIndex,
    components: Iterable[Iterable[str]],
) -> ConnectionResult:
    """
    Greedily merge node groups along shortest paths.

    At every step the globally nearest pair of groups is joined by its
    shortest path and the path's nodes become part of the merged group.
    Stops when one group is left or no remaining pair is connected.

    Each group's nearest connection is cached between steps. After a merge
    only the merged group is searched again, together with the groups whose
    cached connection ended in it or that lie within their cached distance
    of a newly added path node.

    Args:
        adjacency: Graph the connecting paths are drawn from
        components: Starting node groups (nodes missing from the graph stay
            as unconnectable members)

    Returns:
        ConnectionResult with the chosen paths and the final groups
    """
    groups: Dict[int, Set[str]] = {}
    owner: Dict[str, int] = {}
    for gid, component in enumerate(c for c in map(set, components) if c):
        groups[gid] = component
        for node in component:
            owner[node] = gid

    nearest: Dict[int, Optional[Connection]] = {
        gid: nearest_connection(adjacency, group, owner, gid) for gid, group in groups.items()
    }
    connections: List[Connection] = []
    next_gid = len(groups)

    while len(groups) > 1:
        candidates = [c for c in nearest.values() if c is not None]
        if not candidates:
            logger.debug(f"{len(groups)} groups remain unconnected")
            break
        best = min(candidates, key=lambda c: c.sort_key)

        first, second = owner[best.source], owner[best.target]
        added = [node for node in best.path if node not in owner]
        merged = groups.pop(first) | groups.pop(second) | set(best.path)
        del nearest[first], nearest[second]

        merged_gid = next_gid
        next_gid += 1
        groups[merged_gid] = merged
        for node in merged:
            owner[node] = merged_gid
        connections.append(best)
        logger.debug(
            f"Merged groups via {best.source}-{best.target} (length {best.length})"
        )

        stale = _groups_near(adjacency, added, owner, nearest)
        for gid, cached in nearest.items():
            if cached is not None and merged_gid in (owner[cached.source], owner[cached.target]):
                stale.add(gid)
        for gid in sorted(stale):
            nearest[gid] = nearest_connection(adjacency, groups[gid], owner, gid)
        nearest[merged_gid] = nearest_connection(adjacency, merged, owner, merged_gid)

    ordered = sorted((frozenset(g) for g in groups.values()), key=lambda g: (-len(g), min(g)))
    return ConnectionResult(connections=connections, groups=ordered)


def _groups_near(
    adjacency: AdjacencyIndex,
    added: List[str],
    owner: Mapping[str, int],
    nearest: Mapping[int, Optional[Connection]],
) -> Set[int]:
    """Groups lying within their cached connection length of any added node."""
    limits = {gid: c.length for gid, c in nearest.items() if c is not None}
    if not added or not limits:
        return set()

    horizon = max(limits.values())
    near: Set[int] = set()
    seen = set(added)
    frontier = list(added)
    depth = 0
    while frontier and depth < horizon:
        depth += 1
        next_frontier = []
        for node in frontier:
            for nbr in adjacency.neighbors(node):
                if nbr in seen:
                    continue
                seen.add(nbr)
                gid = owner.get(nbr)
                if gid in limits and depth <= limits[gid]:
                    near.add(gid)
                next_frontier.append(nbr)
        frontier = next_frontier
    return near
