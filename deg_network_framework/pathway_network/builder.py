"""
Pathway Network Builder

Builds pathway-similarity networks in two stages:

1. foundation(): threshold a pathway distance matrix into a Foundation
   graph. This is computed once per gene-set collection.
2. create(): overlay an enrichment result onto a copy of the Foundation,
   marking matched pathways as enriched and leaving the rest as background
   connectors.

reduce() optionally shrinks a PathwayNetwork to the minimal subnetwork
connecting its enriched pathways.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging
import math

from ..data_loaders.enrichment_loader import EnrichmentResult, EnrichmentRow
from ..data_loaders.pathway_loader import PathwayDatabase
from ..exceptions import InvalidConfigurationError, MappingError
from ..network.graph import Network
from ..network.schema import NodeType
from ..pathway_similarity.distance import DistanceMatrix
from ..subnetwork.extractor import ExtractionConfig, SubnetworkExtractor

logger = logging.getLogger(__name__)


class Foundation(Network):
    """Thresholded pathway-similarity graph shared across enrichment overlays."""

    def __init__(
        self,
        name: str = "foundation",
        node_type: NodeType = NodeType.PATHWAY,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(name=name, node_type=node_type, metadata=metadata)

    @property
    def max_distance(self) -> Optional[float]:
        return self.metadata.get("max_distance")


class PathwayNetwork(Network):
    """Pathway network with enriched and background nodes."""

    def __init__(
        self,
        name: str = "pathway_network",
        node_type: NodeType = NodeType.PATHWAY,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(name=name, node_type=node_type, metadata=metadata)

    def enriched_nodes(self) -> List[str]:
        return [n for n in self.nodes() if self.node_attribute(n, "is_enriched", False)]

    def background_nodes(self) -> List[str]:
        return [n for n in self.nodes() if not self.node_attribute(n, "is_enriched", False)]


@dataclass
class PathwayNetworkConfig:
    """Configuration for pathway network construction."""

    # Keep a pathway pair as an edge iff distance <= max_distance
    max_distance: float = 0.5

    # Keep only components containing an enriched pathway
    trim: bool = True

    # Optional adjusted p-value filter applied before overlay
    max_adj_p: Optional[float] = None


class PathwayNetworkBuilder:
    """
    Builds Foundation graphs and enrichment-annotated PathwayNetworks.
    """

    def __init__(self, config: Optional[PathwayNetworkConfig] = None):
        """
        Initialize pathway network builder.

        Args:
            config: Pathway network configuration
        """
        self.config = config or PathwayNetworkConfig()
        _check_max_distance(self.config.max_distance)

    def foundation(
        self,
        matrix: DistanceMatrix,
        max_distance: Optional[float] = None,
        pathways: Optional[PathwayDatabase] = None,
    ) -> Foundation:
        """
        Threshold a distance matrix into a Foundation.

        Every pathway in the matrix becomes a node, including those left
        without edges.

        Args:
            matrix: Pairwise pathway distances
            max_distance: Distance threshold (default from config)
            pathways: Optional database supplying name, group and size

        Returns:
            Foundation graph
        """
        max_distance = self.config.max_distance if max_distance is None else max_distance
        _check_max_distance(max_distance)
        matrix.validate()

        found = Foundation(
            name=f"foundation_{matrix.method}_{max_distance:g}",
            metadata={
                "max_distance": max_distance,
                "method": matrix.method,
                "n_pathways": len(matrix),
            },
        )

        for pid in matrix.pathway_ids:
            pathway = pathways.get(pid) if pathways is not None else None
            if pathway is not None:
                attrs = {"name": pathway.name, "group": pathway.group, "n_genes": len(pathway)}
            else:
                attrs = {"name": pid, "group": None, "n_genes": None}
            found.add_node(pid, attrs)

        for a, b, distance in matrix.pairs_within(max_distance):
            similarity = 1.0 - distance
            found.add_edge(
                a, b, weight=similarity,
                attributes={"distance": distance, "similarity": similarity},
            )

        stats = found.get_stats()
        logger.info(
            f"Built foundation at max_distance={max_distance:g}: "
            f"{stats.n_nodes} pathways, {stats.n_edges} edges, {stats.n_isolated} isolated"
        )
        return found

    def create(
        self,
        foundation: Foundation,
        enrichment: EnrichmentResult,
        trim: Optional[bool] = None,
        name: Optional[str] = None,
    ) -> PathwayNetwork:
        """
        Overlay enrichment results onto a copy of the Foundation.

        Args:
            foundation: Foundation graph (not modified)
            enrichment: Enrichment rows to overlay
            trim: Keep only components with an enriched pathway (default
                from config)
            name: Optional network name

        Returns:
            PathwayNetwork

        Raises:
            MappingError: If any row references a pathway absent from the
                Foundation
        """
        trim = self.config.trim if trim is None else trim
        if self.config.max_adj_p is not None:
            enrichment = enrichment.filter(max_adj_p=self.config.max_adj_p)

        missing = set(enrichment.pathway_ids()) - foundation.node_set()
        if missing:
            raise MappingError(missing, universe=f"foundation '{foundation.name}'")

        pnet = foundation.copy(name=name or "pathway_network", as_type=PathwayNetwork)
        grouped = enrichment.by_pathway()

        values = {}
        for node in pnet.nodes():
            rows = grouped.get(node)
            values[node] = merge_enrichment_rows(rows) if rows else _background_attributes()
        pnet.set_node_attributes(values)

        if trim:
            partition = pnet.components()
            keep = set()
            for component in partition.components:
                if any(node in grouped for node in component):
                    keep.update(component)
            pnet = pnet.subgraph(keep, name=pnet.name)

        pnet.metadata.update(
            {
                "comparisons": enrichment.comparisons(),
                "n_enriched": len(grouped),
                "trim": trim,
            }
        )
        if not grouped:
            logger.warning(f"No enrichment rows to overlay on '{foundation.name}'")
        logger.info(
            f"Created pathway network '{pnet.name}': {len(grouped)} enriched, "
            f"{pnet.n_nodes - len(grouped)} background, {pnet.n_edges} edges"
        )
        return pnet

    def reduce(self, pathway_network: PathwayNetwork, trim: bool = True) -> PathwayNetwork:
        """
        Reduce to the minimal subnetwork connecting the enriched pathways.

        Args:
            pathway_network: Network returned by create()
            trim: Keep only merge-path edges

        Returns:
            Reduced PathwayNetwork
        """
        extractor = SubnetworkExtractor(ExtractionConfig(trim=trim))
        return extractor.extract(
            pathway_network,
            pathway_network.enriched_nodes(),
            name=f"{pathway_network.name}_reduced",
        )


def merge_enrichment_rows(rows: List[EnrichmentRow]) -> Dict[str, Any]:
    """
    Combine every enrichment row for one pathway into node attributes.

    P-values are the minimum across rows; the direction comes from the most
    significant row.

    Args:
        rows: Rows for a single pathway, most significant first

    Returns:
        Enriched node attributes
    """
    best = min(rows, key=lambda r: r.sort_key)
    genes = sorted({g for row in rows for g in row.genes})
    return {
        "is_enriched": True,
        "status": "enriched",
        "direction": best.direction.value,
        "p_value": _nanmin(r.p_value for r in rows),
        "adj_p_value": _nanmin(r.adj_p_value for r in rows),
        "comparisons": sorted({r.comparison for r in rows}),
        "directions": sorted({r.direction.value for r in rows}),
        "genes": genes,
        "n_enriched_genes": len(genes),
    }


def _background_attributes() -> Dict[str, Any]:
    return {
        "is_enriched": False,
        "status": "background",
        "direction": "none",
        "p_value": None,
        "adj_p_value": None,
        "comparisons": [],
        "directions": [],
        "genes": [],
        "n_enriched_genes": 0,
    }


def _nanmin(values) -> float:
    finite = [v for v in values if not math.isnan(v)]
    return min(finite) if finite else math.nan


def _check_max_distance(value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise InvalidConfigurationError("max_distance", value)
