"""
Network

Undirected, attributed network over gene or pathway identifiers.

Nodes live in an arena keyed by identifier and edges reference those
identifiers, so nodes never hold references to each other. NetworkX is used
internally for storage and graph algorithms.
"""

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple
import logging

import networkx as nx

from .paths import AdjacencyIndex, ComponentPartition
from .schema import GraphEdge, GraphNode, NetworkStats, NodeType, canonical_pair

logger = logging.getLogger(__name__)


class Network:
    """
    Undirected network with a per-node attribute bag.

    Invariants:
    - every edge endpoint exists as a node
    - at most one edge per unordered pair, and no self-loops

    The component partition and adjacency index are computed lazily and
    cached until the structure changes.
    """

    def __init__(
        self,
        name: str = "network",
        node_type: NodeType = NodeType.GENE,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize an empty network.

        Args:
            name: Network name
            node_type: Type of all nodes in the network
            metadata: Optional network-level metadata
        """
        self.name = name
        self.node_type = node_type
        self.metadata: Dict[str, Any] = dict(metadata or {})
        self._graph = nx.Graph()
        self._components: Optional[ComponentPartition] = None
        self._adjacency: Optional[AdjacencyIndex] = None

    @property
    def graph(self) -> nx.Graph:
        """Access underlying NetworkX graph."""
        return self._graph

    def _invalidate_cache(self) -> None:
        self._components = None
        self._adjacency = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, node_id: str, attributes: Optional[Dict[str, Any]] = None) -> None:
        """
        Add a node, merging attributes if it already exists.

        Args:
            node_id: Unique node identifier
            attributes: Optional node attributes
        """
        if not node_id:
            raise ValueError("Node id cannot be empty")
        if node_id not in self._graph:
            self._invalidate_cache()
        self._graph.add_node(node_id, **(attributes or {}))

    def add_edge(
        self,
        source: str,
        target: str,
        weight: float = 1.0,
        attributes: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Add an undirected edge between two existing nodes.

        Re-adding an existing pair updates its weight and attributes.

        Args:
            source: First endpoint
            target: Second endpoint
            weight: Edge weight
            attributes: Optional edge attributes
        """
        if source == target:
            raise ValueError(f"Self-loop not allowed: {source}")
        if source not in self._graph:
            raise ValueError(f"Source node not found: {source}")
        if target not in self._graph:
            raise ValueError(f"Target node not found: {target}")

        if not self._graph.has_edge(source, target):
            self._invalidate_cache()
        self._graph.add_edge(source, target, weight=weight, **(attributes or {}))

    # ------------------------------------------------------------------
    # Annotation
    # ------------------------------------------------------------------

    def set_node_attributes(self, values: Mapping[str, Mapping[str, Any]]) -> int:
        """
        Update attributes of existing nodes.

        Args:
            values: Mapping from node ID to attributes to set

        Returns:
            Number of nodes updated (unknown ids are ignored)
        """
        updated = 0
        for node_id, attrs in values.items():
            if node_id in self._graph:
                self._graph.nodes[node_id].update(attrs)
                updated += 1
        return updated

    def annotate(
        self,
        column: str,
        values: Mapping[str, Any],
        default: Any = None,
    ) -> int:
        """
        Attach a caller-supplied column (e.g. a categorical tag) to every node.

        Args:
            column: Attribute name
            values: Mapping from node ID to value
            default: Value for nodes absent from ``values``

        Returns:
            Number of nodes that received a value from ``values``
        """
        matched = 0
        for node_id, data in self._graph.nodes(data=True):
            if node_id in values:
                data[column] = values[node_id]
                matched += 1
            else:
                data[column] = default
        logger.debug(f"Annotated {matched}/{self.n_nodes} nodes with '{column}'")
        return matched

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_node(self, node_id: str) -> bool:
        return node_id in self._graph

    def has_edge(self, source: str, target: str) -> bool:
        return self._graph.has_edge(source, target)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def n_nodes(self) -> int:
        """Number of nodes in the network."""
        return self._graph.number_of_nodes()

    @property
    def n_edges(self) -> int:
        """Number of edges in the network."""
        return self._graph.number_of_edges()

    def nodes(self) -> List[str]:
        """Node ids in sorted order."""
        return sorted(self._graph.nodes())

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        """Get a node by ID."""
        if node_id not in self._graph:
            return None
        return GraphNode(id=node_id, attributes=dict(self._graph.nodes[node_id]))

    def node_attribute(self, node_id: str, key: str, default: Any = None) -> Any:
        if node_id not in self._graph:
            return default
        return self._graph.nodes[node_id].get(key, default)

    def iter_nodes(self) -> Iterable[GraphNode]:
        for node_id in self.nodes():
            yield GraphNode(id=node_id, attributes=dict(self._graph.nodes[node_id]))

    def edges(self) -> List[GraphEdge]:
        """All edges, canonically oriented and sorted."""
        result = []
        for source, target, data in self._graph.edges(data=True):
            attrs = {k: v for k, v in data.items() if k != "weight"}
            result.append(GraphEdge(source, target, data.get("weight", 1.0), attrs))
        result.sort(key=lambda e: e.pair)
        return result

    def get_edge(self, source: str, target: str) -> Optional[GraphEdge]:
        if not self._graph.has_edge(source, target):
            return None
        data = self._graph.edges[source, target]
        attrs = {k: v for k, v in data.items() if k != "weight"}
        return GraphEdge(source, target, data.get("weight", 1.0), attrs)

    def neighbors(self, node_id: str) -> List[str]:
        if node_id not in self._graph:
            return []
        return sorted(self._graph.neighbors(node_id))

    def degree(self, node_id: str) -> int:
        if node_id not in self._graph:
            return 0
        return self._graph.degree(node_id)

    def node_set(self) -> FrozenSet[str]:
        return frozenset(self._graph.nodes())

    def edge_set(self) -> FrozenSet[Tuple[str, str]]:
        return frozenset(canonical_pair(a, b) for a, b in self._graph.edges())

    def adjacency(self) -> AdjacencyIndex:
        """Adjacency index over the current structure (cached)."""
        if self._adjacency is None:
            self._adjacency = AdjacencyIndex.from_edges(
                self._graph.edges(), nodes=self._graph.nodes()
            )
        return self._adjacency

    def components(self) -> ComponentPartition:
        """Connected component partition (cached)."""
        if self._components is None:
            self._components = ComponentPartition.from_graph(self._graph)
        return self._components

    def is_connected(self) -> bool:
        return self.n_nodes > 0 and self.components().n_components == 1

    # ------------------------------------------------------------------
    # Derived networks
    # ------------------------------------------------------------------

    def empty_like(self, name: Optional[str] = None) -> "Network":
        """Create an empty network of the same class and node type."""
        return type(self)(
            name=name or self.name,
            node_type=self.node_type,
            metadata=dict(self.metadata),
        )

    def copy(self, name: Optional[str] = None, as_type: Optional[type] = None) -> "Network":
        """
        Copy of structure and attributes.

        Args:
            name: Optional name for the copy
            as_type: Network subclass for the copy (default: same class)
        """
        if as_type is None:
            new = self.empty_like(name)
        else:
            new = as_type(
                name=name or self.name,
                node_type=self.node_type,
                metadata=dict(self.metadata),
            )
        for node_id, data in self._graph.nodes(data=True):
            new._graph.add_node(node_id, **_copy_attrs(data))
        for source, target, data in self._graph.edges(data=True):
            new._graph.add_edge(source, target, **_copy_attrs(data))
        return new

    def subgraph(
        self,
        node_ids: Iterable[str],
        include_edges: bool = True,
        name: Optional[str] = None,
    ) -> "Network":
        """
        Create a network restricted to the given nodes.

        Args:
            node_ids: Nodes to include (unknown ids are ignored)
            include_edges: Whether to keep edges among the included nodes
            name: Optional name for the new network

        Returns:
            New network of the same class
        """
        keep: Set[str] = {n for n in node_ids if n in self._graph}
        new = self.empty_like(name)
        for node_id in sorted(keep):
            new._graph.add_node(node_id, **_copy_attrs(self._graph.nodes[node_id]))
        if include_edges:
            for source, target, data in self._graph.edges(keep, data=True):
                if source in keep and target in keep:
                    new._graph.add_edge(source, target, **_copy_attrs(data))
        return new

    def get_stats(self) -> NetworkStats:
        """Get statistics about the network."""
        partition = self.components()
        n = self.n_nodes
        avg_degree = 2.0 * self.n_edges / n if n > 0 else 0.0
        density = nx.density(self._graph) if n > 1 else 0.0
        return NetworkStats(
            n_nodes=n,
            n_edges=self.n_edges,
            n_components=partition.n_components,
            n_isolated=sum(1 for c in partition.components if len(c) == 1),
            largest_component=len(partition.components[0]) if partition.components else 0,
            avg_degree=avg_degree,
            density=density,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, "
            f"n_nodes={self.n_nodes}, n_edges={self.n_edges})"
        )


def _copy_attrs(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Shallow-copy an attribute bag, copying list/set/dict values too."""
    copied = {}
    for key, value in data.items():
        if isinstance(value, (list, set, dict)):
            value = type(value)(value)
        copied[key] = value
    return copied
