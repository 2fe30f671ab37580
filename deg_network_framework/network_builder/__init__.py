"""
Network Builder

Builds seeded gene interaction networks at a chosen neighborhood order
(zero, first or minimum) and annotates them with differential expression.
"""

from .builder import BuildConfig, NetworkBuilder, NetworkOrder, annotate_expression

__all__ = [
    "BuildConfig",
    "NetworkBuilder",
    "NetworkOrder",
    "annotate_expression",
]
