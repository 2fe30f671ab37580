"""
Pathway Network

Pathway-similarity networks built from a thresholded distance matrix
(the Foundation) and annotated with enrichment results.

Example Usage:
    from deg_network_framework.pathway_network import PathwayNetworkBuilder

    builder = PathwayNetworkBuilder()
    foundation = builder.foundation(matrix, max_distance=0.6, pathways=pathway_db)
    pnet = builder.create(foundation, enrichment, trim=True)
    core = builder.reduce(pnet)
"""

from .builder import (
    Foundation,
    PathwayNetwork,
    PathwayNetworkBuilder,
    PathwayNetworkConfig,
    merge_enrichment_rows,
)

__all__ = [
    "Foundation",
    "PathwayNetwork",
    "PathwayNetworkBuilder",
    "PathwayNetworkConfig",
    "merge_enrichment_rows",
]
