"""
DEG Network Framework

Network analysis of differential gene-expression results: seeded
interaction networks, hub scoring, Steiner-style subnetwork extraction and
enrichment-annotated pathway-similarity networks.
"""

__version__ = "0.1.0"

from .exceptions import (
    EmptyInputError,
    InvalidConfigurationError,
    InvalidPathwayError,
    MappingError,
    NetworkAnalysisError,
)
from .network import Network, to_edge_table, to_node_table
from .network_builder import BuildConfig, NetworkBuilder, NetworkOrder
from .hub_scoring import CentralityMeasure, HubConfig, HubScorer
from .subnetwork import ExtractionConfig, SubnetworkExtractor
from .pathway_similarity import DistanceMatrix, DistanceMethod, PathwaySimilarityEngine
from .pathway_network import Foundation, PathwayNetwork, PathwayNetworkBuilder
from .pipeline import AnalysisResult, NetworkAnalysisPipeline, PipelineConfig

__all__ = [
    # Errors
    "EmptyInputError",
    "InvalidConfigurationError",
    "InvalidPathwayError",
    "MappingError",
    "NetworkAnalysisError",
    # Gene networks
    "Network",
    "NetworkBuilder",
    "BuildConfig",
    "NetworkOrder",
    "HubScorer",
    "HubConfig",
    "CentralityMeasure",
    "SubnetworkExtractor",
    "ExtractionConfig",
    # Pathway networks
    "DistanceMatrix",
    "DistanceMethod",
    "PathwaySimilarityEngine",
    "Foundation",
    "PathwayNetwork",
    "PathwayNetworkBuilder",
    # Export
    "to_edge_table",
    "to_node_table",
    # Pipeline
    "AnalysisResult",
    "NetworkAnalysisPipeline",
    "PipelineConfig",
    "__version__",
]
