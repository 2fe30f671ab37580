"""
Tests for the network analysis pipeline and CLI.

Runs the pipeline on the bundled demo configuration and on preloaded
objects.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from deg_network_framework import __version__
from deg_network_framework.cli import main
from deg_network_framework.data_loaders import (
    EnrichmentResult,
    ExpressionLoader,
    Gene,
    InteractionDatabase,
    PathwayLoader,
)
from deg_network_framework.exceptions import InvalidConfigurationError
from deg_network_framework.network_builder import NetworkOrder
from deg_network_framework.pipeline import (
    AnalysisResult,
    NetworkAnalysisPipeline,
    PipelineConfig,
)

DEMO_CONFIG = Path(__file__).parent.parent.parent / "configs" / "demo.yaml"


@pytest.fixture
def quiet_config():
    return PipelineConfig(verbose=False)


@pytest.fixture
def expression():
    return {
        "cmp": ExpressionLoader.from_genes(
            "cmp",
            [
                Gene.from_values("A", 2.0, 0.001, 0.01),
                Gene.from_values("C", -2.0, 0.001, 0.01),
                Gene.from_values("D", 0.1, 0.5, 0.9),
            ],
        )
    }


@pytest.fixture
def interactions():
    return InteractionDatabase([("A", "B"), ("B", "C"), ("C", "D"), ("B", "E")])


class TestPipelineConfig:
    """Tests for PipelineConfig."""

    def test_defaults(self):
        config = PipelineConfig()
        assert config.anchor_source == "seeds"
        assert config.hubs.hub_percentile == 90.0
        assert config.verbose is True

    def test_from_dict(self):
        config = PipelineConfig.from_dict(
            {
                "network": {"order": "minimum"},
                "hubs": {"measure": "betweenness"},
                "pathway_network": {"max_distance": 0.3},
                "anchor_source": "hubs",
                "verbose": False,
            }
        )
        assert config.network.order == "minimum"
        assert config.pathway_network.max_distance == 0.3
        assert config.anchor_source == "hubs"

    def test_unknown_section_key(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            PipelineConfig.from_dict({"network": {"depth": 2}})
        assert exc_info.value.parameter == "network.depth"

    def test_unknown_top_level_key(self):
        with pytest.raises(InvalidConfigurationError):
            PipelineConfig.from_dict({"colour": "blue"})

    def test_invalid_anchor_source(self):
        with pytest.raises(InvalidConfigurationError):
            PipelineConfig(anchor_source="random")

    def test_from_yaml_resolves_paths(self):
        config = PipelineConfig.from_yaml(str(DEMO_CONFIG))
        assert Path(config.inputs.interaction_path).exists()
        assert all(Path(p).exists() for p in config.inputs.expression_paths.values())

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PipelineConfig.from_yaml(str(tmp_path / "missing.yaml"))


class TestPipelinePreloaded:
    """Tests for runs over preloaded inputs."""

    def test_gene_branch(self, quiet_config, expression, interactions):
        quiet_config.network.order = NetworkOrder.MINIMUM
        result = NetworkAnalysisPipeline(quiet_config).run(
            expression=expression, interactions=interactions
        )
        assert isinstance(result, AnalysisResult)
        comparison = result.comparisons["cmp"]
        assert comparison.seeds == ["A", "C"]
        assert comparison.network.nodes() == ["A", "B", "C"]
        assert comparison.subnetwork.metadata["connected"] is True
        assert comparison.network.node_attribute("A", "direction") == "up"
        assert comparison.network.node_attribute("B", "is_hub") is True
        assert result.foundation is None

    def test_hub_anchors(self, expression, interactions):
        config = PipelineConfig(verbose=False, anchor_source="hubs", n_top_hubs=3)
        result = NetworkAnalysisPipeline(config).run(
            expression=expression, interactions=interactions
        )
        comparison = result.comparisons["cmp"]
        hubs = {node for node, _ in comparison.top_hubs}
        assert set(comparison.subnetwork.metadata["anchors"]) == hubs

    def test_pathway_branch(self, quiet_config):
        pathways = PathwayLoader.from_gene_sets(
            {"P1": ["g1", "g2", "g3"], "P2": ["g2", "g3", "g4"], "P3": ["g9"]}
        )
        enrichment = EnrichmentResult.from_records(
            [
                {"pathway_id": "P1", "p_value": 0.01, "comparison": "x"},
                {"pathway_id": "P3", "p_value": 0.02, "comparison": "y"},
            ]
        )
        quiet_config.reduce_pathway_networks = True
        result = NetworkAnalysisPipeline(quiet_config).run(
            pathways=pathways, enrichment=enrichment
        )
        assert result.foundation.has_edge("P1", "P2")
        assert sorted(result.pathway_networks) == ["x", "y"]
        assert result.pathway_networks["x"].nodes() == ["P1", "P2"]
        assert result.pathway_networks["y"].nodes() == ["P3"]
        assert result.reduced_pathway_networks["x"].nodes() == ["P1"]
        assert "PATHWAY NETWORKS" in result.summary

    def test_no_inputs(self, quiet_config):
        with pytest.raises(ValueError, match="No expression or pathway inputs"):
            NetworkAnalysisPipeline(quiet_config).run()

    def test_expression_without_interactions(self, quiet_config, expression):
        with pytest.raises(ValueError, match="no interaction database"):
            NetworkAnalysisPipeline(quiet_config).run(expression=expression)


@pytest.mark.integration
class TestPipelineDemo:
    """End-to-end run over the demo configuration."""

    @pytest.fixture
    def result(self):
        config = PipelineConfig.from_yaml(str(DEMO_CONFIG))
        config.verbose = False
        return NetworkAnalysisPipeline(config).run()

    def test_gene_network(self, result):
        comparison = result.comparisons["treated_vs_control"]
        assert comparison.seeds == ["ENSG01", "ENSG02", "ENSG03", "ENSG05"]
        net = comparison.network
        assert net.nodes() == ["ENSG01", "ENSG02", "ENSG03", "ENSG04", "ENSG05", "ENSG06"]
        assert net.n_edges == 5
        assert net.is_connected()
        assert comparison.subnetwork.metadata["connected"] is True

    def test_pathway_network(self, result):
        assert result.foundation.n_nodes == 4
        pnet = result.pathway_networks["treated_vs_control"]
        assert pnet.nodes() == ["DDR", "HR", "P53"]
        assert pnet.enriched_nodes() == ["HR", "P53"]
        reduced = result.reduced_pathway_networks["treated_vs_control"]
        assert reduced.nodes() == ["HR", "P53"]
        assert reduced.metadata["connected"] is False

    def test_summary(self, result):
        summary = result.summary
        assert "DEG NETWORK ANALYSIS RESULTS" in summary
        assert "treated_vs_control" in summary


class TestCli:
    """Tests for the command-line interface."""

    def test_version(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_run_demo(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--config", str(DEMO_CONFIG), "--order", "zero", "--quiet"])
        assert result.exit_code == 0
        assert "DEG NETWORK ANALYSIS RESULTS" in result.output

    def test_invalid_order(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--config", str(DEMO_CONFIG), "--order", "second"])
        assert result.exit_code != 0

    def test_missing_config(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["--config", str(tmp_path / "nope.yaml")])
        assert result.exit_code != 0
