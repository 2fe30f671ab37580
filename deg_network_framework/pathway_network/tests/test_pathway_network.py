"""
Tests for PathwayNetworkBuilder

Tests Foundation thresholding, enrichment overlay and reduction.
"""

import pytest

from deg_network_framework.data_loaders import EnrichmentResult, PathwayLoader
from deg_network_framework.exceptions import InvalidConfigurationError, MappingError
from deg_network_framework.network import to_edge_table, to_node_table
from deg_network_framework.pathway_network import (
    Foundation,
    PathwayNetwork,
    PathwayNetworkBuilder,
    PathwayNetworkConfig,
)
from deg_network_framework.pathway_similarity import PathwaySimilarityEngine


@pytest.fixture
def pathway_db():
    return PathwayLoader.from_gene_sets(
        {
            "P1": ["g1", "g2", "g3"],
            "P2": ["g2", "g3", "g4"],
            "P3": ["g5", "g6"],
            "P4": ["g6", "g7"],
            "P5": ["g9"],
        },
        names={"P1": "Pathway one", "P2": "Pathway two"},
        groups={"P1": "Signaling", "P2": "Signaling"},
    )


@pytest.fixture
def matrix(pathway_db):
    return PathwaySimilarityEngine().distances(pathway_db)


@pytest.fixture
def builder():
    return PathwayNetworkBuilder()


@pytest.fixture
def foundation(builder, matrix, pathway_db):
    # P1-P2 at 0.5 and P3-P4 at 2/3 both pass
    return builder.foundation(matrix, max_distance=0.7, pathways=pathway_db)


@pytest.fixture
def enrichment():
    return EnrichmentResult.from_records(
        [
            {
                "pathway_id": "P1",
                "direction": "up",
                "p_value": 0.001,
                "adj_p_value": 0.01,
                "comparison": "c1",
                "genes": "g1/g2",
            },
            {
                "pathway_id": "P1",
                "direction": "down",
                "p_value": 0.0005,
                "adj_p_value": 0.001,
                "comparison": "c2",
                "genes": "g3",
            },
            {
                "pathway_id": "P5",
                "direction": "up",
                "p_value": 0.01,
                "adj_p_value": 0.04,
                "comparison": "c1",
                "genes": ["g9"],
            },
        ]
    )


class TestFoundation:
    """Tests for Foundation thresholding."""

    def test_threshold_below_distance(self, builder, matrix):
        found = builder.foundation(matrix, max_distance=0.4)
        assert not found.has_edge("P1", "P2")

    def test_threshold_above_distance(self, builder, matrix):
        found = builder.foundation(matrix, max_distance=0.6)
        assert found.has_edge("P1", "P2")
        assert not found.has_edge("P3", "P4")

    def test_threshold_inclusive(self, builder, matrix):
        found = builder.foundation(matrix, max_distance=0.5)
        assert found.has_edge("P1", "P2")

    def test_isolated_retained(self, foundation):
        assert isinstance(foundation, Foundation)
        assert foundation.nodes() == ["P1", "P2", "P3", "P4", "P5"]
        assert foundation.degree("P5") == 0
        assert foundation.max_distance == 0.7

    def test_node_and_edge_attributes(self, foundation):
        assert foundation.node_attribute("P1", "name") == "Pathway one"
        assert foundation.node_attribute("P1", "group") == "Signaling"
        assert foundation.node_attribute("P3", "name") == "P3"
        assert foundation.node_attribute("P3", "n_genes") == 2
        edge = foundation.get_edge("P1", "P2")
        assert edge.attributes["distance"] == pytest.approx(0.5)
        assert edge.attributes["similarity"] == pytest.approx(0.5)
        assert edge.weight == pytest.approx(0.5)

    def test_without_pathway_database(self, builder, matrix):
        found = builder.foundation(matrix, max_distance=0.6)
        assert found.node_attribute("P1", "name") == "P1"
        assert found.node_attribute("P1", "n_genes") is None

    @pytest.mark.parametrize("max_distance", [-0.1, 1.5])
    def test_invalid_max_distance(self, builder, matrix, max_distance):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            builder.foundation(matrix, max_distance=max_distance)
        assert exc_info.value.parameter == "max_distance"

    def test_invalid_config(self):
        with pytest.raises(InvalidConfigurationError):
            PathwayNetworkBuilder(PathwayNetworkConfig(max_distance=2.0))


class TestCreate:
    """Tests for enrichment overlay."""

    def test_trim_keeps_enriched_components(self, builder, foundation, enrichment):
        pnet = builder.create(foundation, enrichment, trim=True)
        assert isinstance(pnet, PathwayNetwork)
        assert pnet.nodes() == ["P1", "P2", "P5"]
        assert pnet.enriched_nodes() == ["P1", "P5"]
        assert pnet.background_nodes() == ["P2"]
        assert pnet.has_edge("P1", "P2")

    def test_no_trim_keeps_foundation(self, builder, foundation, enrichment):
        pnet = builder.create(foundation, enrichment, trim=False)
        assert pnet.node_set() == foundation.node_set()
        assert pnet.edge_set() == foundation.edge_set()
        assert pnet.node_attribute("P3", "status") == "background"
        assert pnet.node_attribute("P3", "is_enriched") is False

    def test_multi_row_merge(self, builder, foundation, enrichment):
        pnet = builder.create(foundation, enrichment)
        attrs = pnet.get_node("P1").attributes
        assert attrs["is_enriched"] is True
        assert attrs["status"] == "enriched"
        assert attrs["direction"] == "down"
        assert attrs["p_value"] == 0.0005
        assert attrs["adj_p_value"] == 0.001
        assert attrs["comparisons"] == ["c1", "c2"]
        assert attrs["directions"] == ["down", "up"]
        assert attrs["genes"] == ["g1", "g2", "g3"]
        assert attrs["n_enriched_genes"] == 3
        # Foundation attributes carried over
        assert attrs["name"] == "Pathway one"

    @pytest.mark.parametrize("order", [(0, 1, 2), (2, 1, 0), (1, 0, 2)])
    def test_row_order_does_not_matter(self, builder, foundation, order):
        records = [
            {
                "pathway_id": "P1",
                "direction": "up",
                "p_value": 0.2,
                "adj_p_value": float("nan"),
                "comparison": "c1",
            },
            {
                "pathway_id": "P1",
                "direction": "down",
                "p_value": 0.01,
                "adj_p_value": 0.03,
                "comparison": "c2",
            },
            {
                "pathway_id": "P5",
                "direction": "up",
                "p_value": 0.01,
                "adj_p_value": 0.04,
                "comparison": "c1",
            },
        ]
        baseline = builder.create(foundation, EnrichmentResult.from_records(records))
        permuted = builder.create(
            foundation, EnrichmentResult.from_records([records[i] for i in order])
        )
        # Missing adjusted p-value never wins the direction
        assert permuted.node_attribute("P1", "direction") == "down"
        assert permuted.node_attribute("P1", "adj_p_value") == 0.03
        assert permuted.edge_set() == baseline.edge_set()
        assert [n.attributes for n in permuted.iter_nodes()] == [
            n.attributes for n in baseline.iter_nodes()
        ]

    def test_foundation_not_mutated(self, builder, foundation, enrichment):
        edges_before = foundation.edge_set()
        builder.create(foundation, enrichment, trim=True)
        assert foundation.n_nodes == 5
        assert foundation.edge_set() == edges_before
        assert foundation.node_attribute("P1", "is_enriched") is None

    def test_mapping_error(self, builder, foundation):
        enrichment = EnrichmentResult.from_records(
            [
                {"pathway_id": "P1", "p_value": 0.01},
                {"pathway_id": "PX", "p_value": 0.01},
                {"pathway_id": "PY", "p_value": 0.02},
            ]
        )
        with pytest.raises(MappingError) as exc_info:
            builder.create(foundation, enrichment)
        assert exc_info.value.missing_ids == ["PX", "PY"]
        assert isinstance(exc_info.value, KeyError)
        assert "PX" in str(exc_info.value)

    def test_max_adj_p_filter(self, foundation, enrichment):
        builder = PathwayNetworkBuilder(PathwayNetworkConfig(max_adj_p=0.005))
        pnet = builder.create(foundation, enrichment, trim=False)
        assert pnet.enriched_nodes() == ["P1"]
        assert pnet.node_attribute("P1", "comparisons") == ["c2"]

    def test_empty_enrichment_trimmed(self, builder, foundation):
        pnet = builder.create(foundation, EnrichmentResult(rows=()), trim=True)
        assert pnet.n_nodes == 0

    def test_reuse_foundation(self, builder, foundation, enrichment):
        first = builder.create(foundation, enrichment.filter(comparison="c1"), name="c1")
        second = builder.create(foundation, enrichment.filter(comparison="c2"), name="c2")
        assert first.enriched_nodes() == ["P1", "P5"]
        assert second.enriched_nodes() == ["P1"]
        assert second.node_attribute("P1", "direction") == "down"
        assert first.node_attribute("P1", "direction") == "up"

    def test_export_tables(self, builder, foundation, enrichment):
        pnet = builder.create(foundation, enrichment)
        nodes = to_node_table(pnet)
        assert list(nodes.columns[:5]) == ["node_id", "name", "group", "n_genes", "is_enriched"]
        assert list(nodes["node_id"]) == ["P1", "P2", "P5"]
        edges = to_edge_table(pnet)
        assert list(edges.columns) == ["source", "target", "weight", "distance", "similarity"]


class TestReduce:
    """Tests for reduction to the enriched core."""

    @pytest.fixture
    def chain_network(self, builder):
        db = PathwayLoader.from_gene_sets(
            {"Q1": ["a", "b"], "Q2": ["b", "c"], "Q3": ["c", "d"], "Q4": ["b", "x"]}
        )
        matrix = PathwaySimilarityEngine().distances(db)
        foundation = builder.foundation(matrix, max_distance=0.7, pathways=db)
        enrichment = EnrichmentResult.from_records(
            [
                {"pathway_id": "Q1", "p_value": 0.01, "direction": "up"},
                {"pathway_id": "Q3", "p_value": 0.02, "direction": "down"},
            ]
        )
        return builder.create(foundation, enrichment, trim=True)

    def test_reduce_connects_enriched(self, builder, chain_network):
        reduced = builder.reduce(chain_network)
        assert isinstance(reduced, PathwayNetwork)
        assert reduced.nodes() == ["Q1", "Q2", "Q3"]
        assert reduced.edge_set() == {("Q1", "Q2"), ("Q2", "Q3")}
        assert reduced.node_attribute("Q2", "status") == "background"
        assert reduced.node_attribute("Q2", "is_anchor") is False
        assert reduced.metadata["connected"] is True

    def test_reduce_without_trim(self, builder, chain_network):
        reduced = builder.reduce(chain_network, trim=False)
        # Q1-Q4 and Q2-Q4 edges exist but Q4 is not on a merge path
        assert "Q4" not in reduced
        assert reduced.edge_set() == {("Q1", "Q2"), ("Q2", "Q3")}
