"""
Tests for SubnetworkExtractor

Tests Steiner-style extraction of the subnetwork spanning anchor nodes.
"""

import pytest

from deg_network_framework.exceptions import EmptyInputError
from deg_network_framework.network import Network
from deg_network_framework.subnetwork import ExtractionConfig, SubnetworkExtractor


def make_network(edges, nodes=(), cls=Network):
    net = cls(name="source")
    for node in sorted({n for e in edges for n in e} | set(nodes)):
        net.add_node(node)
    for a, b in edges:
        net.add_edge(a, b)
    return net


@pytest.fixture
def bridge_network():
    """A-X-B with an isolated node C."""
    return make_network([("A", "X"), ("X", "B")], nodes=["C"])


@pytest.fixture
def shortcut_network():
    """A-X, X-B, X-C and a direct B-C edge."""
    return make_network([("A", "X"), ("X", "B"), ("X", "C"), ("B", "C")])


class TestExtraction:
    """Tests for basic extraction behaviour."""

    def test_bridge_with_residual(self, bridge_network):
        result = SubnetworkExtractor().extract(bridge_network, {"A", "B", "C"})
        assert result.nodes() == ["A", "B", "C", "X"]
        assert result.edge_set() == {("A", "X"), ("B", "X")}
        assert result.metadata["connected"] is False
        assert result.components().is_isolated("C")

    def test_anchor_flags(self, bridge_network):
        result = SubnetworkExtractor().extract(bridge_network, {"A", "B"})
        assert result.node_attribute("A", "is_anchor") is True
        assert result.node_attribute("X", "is_anchor") is False
        assert result.metadata["connected"] is True
        assert "C" not in result

    def test_missing_anchors_dropped(self, bridge_network):
        result = SubnetworkExtractor().extract(bridge_network, ["A", "B", "ZZZ"])
        assert "ZZZ" not in result
        assert result.metadata["missing_anchors"] == ["ZZZ"]
        assert result.metadata["anchors"] == ["A", "B"]

    def test_input_order_does_not_matter(self):
        edges = [
            ("S", "M2"), ("M2", "T"), ("S", "M1"), ("M1", "T"),
            ("T", "U"), ("U", "V"), ("V", "W"), ("W", "S"),
        ]
        networks = [make_network(edges), make_network([(b, a) for a, b in reversed(edges)])]
        extractor = SubnetworkExtractor()
        results = [
            extractor.extract(net, anchors)
            for net in networks
            for anchors in (["S", "T", "V"], ["V", "T", "S"], ("T", "V", "S"))
        ]
        for result in results[1:]:
            assert result.nodes() == results[0].nodes()
            assert result.edge_set() == results[0].edge_set()
        assert results[0].metadata["connected"] is True

    def test_single_anchor(self, bridge_network):
        result = SubnetworkExtractor().extract(bridge_network, ["X"])
        assert result.nodes() == ["X"]
        assert result.n_edges == 0

    def test_source_unchanged(self, bridge_network):
        SubnetworkExtractor().extract(bridge_network, {"A", "B"})
        assert bridge_network.n_nodes == 4
        assert bridge_network.node_attribute("A", "is_anchor") is None


class TestTrim:
    """Tests for trimmed vs untrimmed extraction."""

    def test_trim_keeps_merge_paths_only(self, shortcut_network):
        result = SubnetworkExtractor().extract(shortcut_network, {"A", "B", "C"}, trim=True)
        assert result.node_set() == {"A", "B", "C", "X"}
        assert result.edge_set() == {("B", "C"), ("A", "X"), ("B", "X")}
        assert result.metadata["n_merge_paths"] == 2

    def test_no_trim_keeps_induced_edges(self, shortcut_network):
        result = SubnetworkExtractor().extract(shortcut_network, {"A", "B", "C"}, trim=False)
        assert result.node_set() == {"A", "B", "C", "X"}
        assert result.edge_set() == shortcut_network.edge_set()

    def test_config_default(self, shortcut_network):
        extractor = SubnetworkExtractor(ExtractionConfig(trim=False))
        result = extractor.extract(shortcut_network, {"A", "B", "C"})
        assert result.metadata["trim"] is False
        assert result.n_edges == 4


class TestAttributesAndTypes:
    """Tests for attribute and subclass preservation."""

    def test_preserves_attributes(self, bridge_network):
        bridge_network.annotate("score", {"X": 0.7})
        bridge_network.add_edge("A", "C")
        result = SubnetworkExtractor().extract(bridge_network, {"A", "B"})
        assert result.node_attribute("X", "score") == 0.7

    def test_preserves_subclass(self):
        class TaggedNetwork(Network):
            pass

        net = make_network([("A", "X"), ("X", "B")], cls=TaggedNetwork)
        result = SubnetworkExtractor().extract(net, {"A", "B"})
        assert isinstance(result, TaggedNetwork)


class TestEmptyAnchors:
    """Tests for empty anchor sets."""

    def test_empty_returns_empty(self, bridge_network):
        result = SubnetworkExtractor().extract(bridge_network, set())
        assert result.n_nodes == 0
        assert result.metadata["connected"] is False

    def test_empty_strict(self, bridge_network):
        extractor = SubnetworkExtractor(ExtractionConfig(raise_on_empty=True))
        with pytest.raises(EmptyInputError):
            extractor.extract(bridge_network, [])

    def test_all_missing(self, bridge_network):
        result = SubnetworkExtractor().extract(bridge_network, {"Q"})
        assert result.n_nodes == 0
        assert result.metadata["missing_anchors"] == ["Q"]
        assert result.metadata["connected"] is False
