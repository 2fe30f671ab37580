"""
Data Loaders

Loads the tabular inputs consumed by the network components:
differential-expression results, interaction edge lists, pathway membership
and enrichment results.
"""

from .expression_loader import (
    DifferentialExpressionTable,
    Direction,
    ExpressionLoader,
    Gene,
    SignificanceConfig,
)
from .interaction_loader import InteractionDatabase, InteractionEdge, InteractionLoader
from .pathway_loader import Pathway, PathwayDatabase, PathwayLoader
from .enrichment_loader import (
    EnrichmentLoader,
    EnrichmentResult,
    EnrichmentRow,
    parse_gene_list,
)
from .table_io import read_table

__all__ = [
    # Expression
    "DifferentialExpressionTable",
    "Direction",
    "ExpressionLoader",
    "Gene",
    "SignificanceConfig",
    # Interactions
    "InteractionDatabase",
    "InteractionEdge",
    "InteractionLoader",
    # Pathways
    "Pathway",
    "PathwayDatabase",
    "PathwayLoader",
    # Enrichment
    "EnrichmentLoader",
    "EnrichmentResult",
    "EnrichmentRow",
    "parse_gene_list",
    # IO
    "read_table",
]
