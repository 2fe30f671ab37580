"""
Subnetwork

Approximate Steiner-tree extraction of the subnetwork spanning an anchor set.
"""

from .extractor import ExtractionConfig, SubnetworkExtractor

__all__ = [
    "ExtractionConfig",
    "SubnetworkExtractor",
]
