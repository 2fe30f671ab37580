"""
Hub Scoring

Per-component centrality scoring and top-decile hub detection.

Example Usage:
    from deg_network_framework.hub_scoring import HubConfig, HubScorer

    scorer = HubScorer(HubConfig(measure="betweenness"))
    scorer.score(net)
    hubs = scorer.top_hubs(net, n=5)
"""

from .scorer import CentralityMeasure, HubConfig, HubScorer

__all__ = [
    "CentralityMeasure",
    "HubConfig",
    "HubScorer",
]
