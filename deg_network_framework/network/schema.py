"""
Network Schema

Defines node and edge records for gene and pathway networks.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class NodeType(Enum):
    """Types of nodes a network can hold."""

    GENE = "gene"
    PATHWAY = "pathway"


def canonical_pair(a: str, b: str) -> Tuple[str, str]:
    """Return an unordered pair as a sorted tuple."""
    return (a, b) if a <= b else (b, a)


@dataclass
class GraphNode:
    """A node in a network. Identity is the node id."""

    id: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return False
        return self.id == other.id

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)


@dataclass
class GraphEdge:
    """An undirected edge. Endpoints are stored in sorted order."""

    source: str
    target: str
    weight: float = 1.0
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.source == self.target:
            raise ValueError(f"Self-loop not allowed: {self.source}")
        self.source, self.target = canonical_pair(self.source, self.target)

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.source, self.target)

    def __hash__(self) -> int:
        return hash(self.pair)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphEdge):
            return False
        return self.pair == other.pair


@dataclass
class NetworkStats:
    """Statistics about a network."""

    n_nodes: int
    n_edges: int
    n_components: int
    n_isolated: int
    largest_component: int
    avg_degree: float
    density: float
