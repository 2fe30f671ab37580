"""
Pathway Similarity

Pairwise gene-set distances between pathways (Jaccard, overlap, Dice),
computed over a sparse membership matrix.

Example Usage:
    from deg_network_framework.pathway_similarity import PathwaySimilarityEngine

    engine = PathwaySimilarityEngine()
    matrix = engine.distances({"P1": {"g1", "g2", "g3"}, "P2": {"g2", "g3", "g4"}})
    matrix.get("P1", "P2")  # 0.5
"""

from .distance import (
    DistanceMatrix,
    DistanceMethod,
    PathwaySimilarityEngine,
    SimilarityConfig,
)

__all__ = [
    "DistanceMatrix",
    "DistanceMethod",
    "PathwaySimilarityEngine",
    "SimilarityConfig",
]
