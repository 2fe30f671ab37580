"""
Network Exporters

Export networks as node and edge tables for an external rendering
collaborator, or as edge lists and sparse adjacency matrices for analysis.
Nothing here writes to disk.
"""

from typing import Dict, List, Optional, Sequence, Tuple
import logging

import numpy as np
import pandas as pd
from scipy import sparse

from .graph import Network
from .schema import NodeType

logger = logging.getLogger(__name__)


# Documented node table columns, in output order
GENE_NODE_COLUMNS = [
    "symbol",
    "log2_fold_change",
    "p_value",
    "adj_p_value",
    "direction",
    "is_seed",
    "is_anchor",
    "degree",
    "centrality",
    "is_hub",
    "component",
]

PATHWAY_NODE_COLUMNS = [
    "name",
    "group",
    "n_genes",
    "is_enriched",
    "status",
    "direction",
    "p_value",
    "adj_p_value",
    "comparisons",
    "n_enriched_genes",
    "is_anchor",
    "component",
]

EDGE_COLUMNS = ["source", "target", "weight"]


def _ordered_columns(present: Sequence[str], documented: Sequence[str]) -> List[str]:
    """Documented columns first (when present), then extras sorted."""
    present_set = set(present)
    ordered = [c for c in documented if c in present_set]
    extras = sorted(present_set - set(documented))
    return ordered + extras


def to_node_table(net: Network, columns: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Export nodes as a table.

    Args:
        net: Network to export
        columns: Optional explicit attribute columns (default: documented
            columns for the node type that are present, then extras)

    Returns:
        DataFrame with a ``node_id`` column and one column per attribute,
        sorted by node_id
    """
    records = []
    seen_keys = set()
    for node in net.iter_nodes():
        attrs = dict(node.attributes)
        if "genes" in attrs and isinstance(attrs["genes"], (set, frozenset, list, tuple)):
            attrs["genes"] = ";".join(sorted(attrs["genes"]))
        if "comparisons" in attrs and isinstance(attrs["comparisons"], (list, tuple)):
            attrs["comparisons"] = ";".join(attrs["comparisons"])
        if "directions" in attrs and isinstance(attrs["directions"], (list, tuple)):
            attrs["directions"] = ";".join(attrs["directions"])
        seen_keys.update(attrs)
        records.append({"node_id": node.id, **attrs})

    if columns is None:
        documented = (
            PATHWAY_NODE_COLUMNS if net.node_type == NodeType.PATHWAY else GENE_NODE_COLUMNS
        )
        columns = _ordered_columns(list(seen_keys), documented)

    return pd.DataFrame.from_records(records, columns=["node_id", *columns])


def to_edge_table(net: Network) -> pd.DataFrame:
    """
    Export edges as a table.

    Returns:
        DataFrame with ``source``, ``target``, ``weight`` then any extra
        edge attributes (sorted), one row per edge with source < target
    """
    records = []
    extra_keys = set()
    for edge in net.edges():
        extra_keys.update(edge.attributes)
        records.append(
            {"source": edge.source, "target": edge.target, "weight": edge.weight, **edge.attributes}
        )
    return pd.DataFrame.from_records(records, columns=EDGE_COLUMNS + sorted(extra_keys))


def to_edge_list(net: Network) -> List[Tuple[str, str, float]]:
    """Export edges as sorted (source, target, weight) tuples."""
    return [(e.source, e.target, e.weight) for e in net.edges()]


def to_adjacency_matrix(
    net: Network,
    weighted: bool = True,
) -> Tuple[sparse.csr_matrix, Dict[str, int]]:
    """
    Export the network as a symmetric sparse adjacency matrix.

    Args:
        net: Network to export
        weighted: Use edge weights (vs binary)

    Returns:
        Tuple of (adjacency matrix, node_to_idx mapping over sorted node ids)
    """
    node_to_idx = {node: idx for idx, node in enumerate(net.nodes())}
    n_nodes = len(node_to_idx)

    row_indices = []
    col_indices = []
    weights = []
    for edge in net.edges():
        src_idx = node_to_idx[edge.source]
        tgt_idx = node_to_idx[edge.target]
        weight = edge.weight if weighted else 1.0
        row_indices.extend([src_idx, tgt_idx])
        col_indices.extend([tgt_idx, src_idx])
        weights.extend([weight, weight])

    adj = sparse.csr_matrix(
        (np.asarray(weights, dtype=float), (row_indices, col_indices)),
        shape=(n_nodes, n_nodes),
    )
    logger.debug(f"Exported adjacency matrix: {n_nodes} nodes, {adj.nnz // 2} edges")
    return adj, node_to_idx
