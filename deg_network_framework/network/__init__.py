"""
Network

Core graph structures shared by every component:

Components:
- Network: attributed undirected network (node arena + edge set)
- AdjacencyIndex / ComponentPartition: traversal indexes computed once
- shortest_path / connect_components: deterministic shortest-path merging
- Exporters: node/edge tables for external rendering collaborators

Example Usage:
    from deg_network_framework.network import Network, to_node_table

    net = Network(name="demo")
    net.add_node("TP53")
    net.add_node("MDM2")
    net.add_edge("TP53", "MDM2", weight=0.9)
    nodes = to_node_table(net)
"""

from .schema import (
    GraphEdge,
    GraphNode,
    NetworkStats,
    NodeType,
    canonical_pair,
)
from .paths import (
    AdjacencyIndex,
    ComponentPartition,
    Connection,
    ConnectionResult,
    connect_components,
    nearest_connection,
    shortest_path,
)
from .graph import Network
from .exporters import (
    EDGE_COLUMNS,
    GENE_NODE_COLUMNS,
    PATHWAY_NODE_COLUMNS,
    to_adjacency_matrix,
    to_edge_list,
    to_edge_table,
    to_node_table,
)

__all__ = [
    # Schema
    "GraphEdge",
    "GraphNode",
    "NetworkStats",
    "NodeType",
    "canonical_pair",
    # Paths
    "AdjacencyIndex",
    "ComponentPartition",
    "Connection",
    "ConnectionResult",
    "connect_components",
    "nearest_connection",
    "shortest_path",
    # Graph
    "Network",
    # Exporters
    "EDGE_COLUMNS",
    "GENE_NODE_COLUMNS",
    "PATHWAY_NODE_COLUMNS",
    "to_adjacency_matrix",
    "to_edge_list",
    "to_edge_table",
    "to_node_table",
]
