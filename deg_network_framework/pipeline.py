"""
Network Analysis Pipeline

End-to-end analysis of differential-expression results:

- Gene branch (per DE comparison): seeded interaction network, hub scoring,
  and extraction of the subnetwork connecting the anchors
- Pathway branch: pathway distance matrix, Foundation graph (built once),
  and one enrichment-annotated PathwayNetwork per enrichment comparison

Example Usage:
    from deg_network_framework import NetworkAnalysisPipeline, PipelineConfig

    config = PipelineConfig.from_yaml("configs/demo.yaml")
    result = NetworkAnalysisPipeline(config).run()
    print(result.summary)
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple
import logging

import yaml

from .data_loaders.enrichment_loader import EnrichmentLoader, EnrichmentResult
from .data_loaders.expression_loader import (
    DifferentialExpressionTable,
    ExpressionLoader,
    SignificanceConfig,
)
from .data_loaders.interaction_loader import InteractionDatabase, InteractionLoader
from .data_loaders.pathway_loader import PathwayDatabase, PathwayLoader
from .exceptions import InvalidConfigurationError
from .hub_scoring.scorer import HubConfig, HubScorer
from .network.graph import Network
from .network_builder.builder import BuildConfig, NetworkBuilder
from .pathway_network.builder import (
    Foundation,
    PathwayNetwork,
    PathwayNetworkBuilder,
    PathwayNetworkConfig,
)
from .pathway_similarity.distance import (
    DistanceMatrix,
    PathwaySimilarityEngine,
    SimilarityConfig,
)
from .subnetwork.extractor import ExtractionConfig, SubnetworkExtractor

logger = logging.getLogger(__name__)

ANCHOR_SOURCES = ("seeds", "hubs")


# =============================================================================
# Configuration Dataclasses
# =============================================================================

@dataclass
class InputConfig:
    """Input file locations."""

    # Comparison label -> DE table path
    expression_paths: Dict[str, str] = field(default_factory=dict)

    # Interaction edge table or STRING links file
    interaction_path: Optional[str] = None
    interaction_format: str = "table"  # table, string
    interaction_weight_col: Optional[str] = None
    string_min_score: float = 400.0

    # Pathway membership table or GMT file (chosen by suffix)
    pathway_path: Optional[str] = None
    min_pathway_size: Optional[int] = None
    max_pathway_size: Optional[int] = None

    # Enrichment result table
    enrichment_path: Optional[str] = None


@dataclass
class PipelineConfig:
    """Complete pipeline configuration."""

    inputs: InputConfig = field(default_factory=InputConfig)
    significance: SignificanceConfig = field(default_factory=SignificanceConfig)
    network: BuildConfig = field(default_factory=BuildConfig)
    hubs: HubConfig = field(default_factory=HubConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    pathway_network: PathwayNetworkConfig = field(default_factory=PathwayNetworkConfig)

    # Seed restriction ("up", "down" or None for both)
    seed_direction: Optional[str] = None

    # Subnetwork anchors: significant seeds or top hubs
    anchor_source: str = "seeds"
    n_top_hubs: int = 10

    # Reduce each pathway network to its enriched core
    reduce_pathway_networks: bool = False

    # Pipeline behavior
    verbose: bool = True

    _SECTIONS = {
        "inputs": InputConfig,
        "significance": SignificanceConfig,
        "network": BuildConfig,
        "hubs": HubConfig,
        "extraction": ExtractionConfig,
        "similarity": SimilarityConfig,
        "pathway_network": PathwayNetworkConfig,
    }

    def __post_init__(self):
        if self.anchor_source not in ANCHOR_SOURCES:
            raise InvalidConfigurationError("anchor_source", self.anchor_source, ANCHOR_SOURCES)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        """
        Build a configuration from nested dictionaries.

        Each section maps onto its component config; unknown keys raise
        InvalidConfigurationError.
        """
        data = dict(data or {})
        kwargs: Dict[str, Any] = {}
        top_level = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key in cls._SECTIONS:
                kwargs[key] = _section(key, cls._SECTIONS[key], value or {})
            elif key in top_level:
                kwargs[key] = value
            else:
                raise InvalidConfigurationError(key, value)
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str) -> "PipelineConfig":
        """Load configuration from a YAML file."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        config = cls.from_dict(data)
        # Relative input paths resolve against the config file
        base = config_path.parent
        inputs = config.inputs
        inputs.expression_paths = {
            name: _resolve(base, p) for name, p in inputs.expression_paths.items()
        }
        inputs.interaction_path = _resolve(base, inputs.interaction_path)
        inputs.pathway_path = _resolve(base, inputs.pathway_path)
        inputs.enrichment_path = _resolve(base, inputs.enrichment_path)
        return config


def _section(name: str, config_cls: type, values: Mapping[str, Any]) -> Any:
    allowed = {f.name for f in fields(config_cls)}
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise InvalidConfigurationError(f"{name}.{unknown[0]}", values[unknown[0]], sorted(allowed))
    return config_cls(**values)


def _resolve(base: Path, path: Optional[str]) -> Optional[str]:
    if path is None:
        return None
    p = Path(path)
    return str(p if p.is_absolute() else base / p)


# =============================================================================
# Pipeline Result
# =============================================================================

@dataclass
class ComparisonResult:
    """Gene-branch results for one DE comparison."""

    comparison: str
    seeds: List[str]
    network: Network
    subnetwork: Network
    top_hubs: List[Tuple[str, float]] = field(default_factory=list)

    @property
    def n_seeds(self) -> int:
        return len(self.seeds)


@dataclass
class AnalysisResult:
    """Complete results from the network analysis pipeline."""

    comparisons: Dict[str, ComparisonResult] = field(default_factory=dict)

    # Pathway branch (optional)
    distance_matrix: Optional[DistanceMatrix] = None
    foundation: Optional[Foundation] = None
    pathway_networks: Dict[str, PathwayNetwork] = field(default_factory=dict)
    reduced_pathway_networks: Dict[str, PathwayNetwork] = field(default_factory=dict)

    # Metadata
    config: Optional[PipelineConfig] = None
    runtime_seconds: float = 0.0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def summary(self) -> str:
        """Generate a summary of the pipeline results."""
        lines = [
            "=" * 60,
            "DEG NETWORK ANALYSIS RESULTS",
            "=" * 60,
            f"Timestamp: {self.timestamp}",
            f"Runtime: {self.runtime_seconds:.1f} seconds",
        ]

        if self.comparisons:
            lines.extend(["", "GENE NETWORKS:"])
            for name, res in sorted(self.comparisons.items()):
                net = res.network
                lines.append(
                    f"  {name}: {res.n_seeds} seeds -> {net.n_nodes} nodes, "
                    f"{net.n_edges} edges, {net.components().n_components} components"
                )
                lines.append(
                    f"    subnetwork: {res.subnetwork.n_nodes} nodes, "
                    f"{res.subnetwork.n_edges} edges"
                    f" (connected: {res.subnetwork.metadata.get('connected', False)})"
                )
                if res.top_hubs:
                    hubs = ", ".join(node for node, _ in res.top_hubs[:5])
                    lines.append(f"    top hubs: {hubs}")

        if self.foundation is not None:
            lines.extend(
                [
                    "",
                    "PATHWAY NETWORKS:",
                    f"  Foundation: {self.foundation.n_nodes} pathways, "
                    f"{self.foundation.n_edges} edges "
                    f"(max distance {self.foundation.max_distance})",
                ]
            )
            for name, pnet in sorted(self.pathway_networks.items()):
                lines.append(
                    f"  {name}: {len(pnet.enriched_nodes())} enriched, "
                    f"{len(pnet.background_nodes())} background, {pnet.n_edges} edges"
                )
                reduced = self.reduced_pathway_networks.get(name)
                if reduced is not None:
                    lines.append(
                        f"    reduced: {reduced.n_nodes} nodes, {reduced.n_edges} edges"
                    )

        lines.append("=" * 60)
        return "\n".join(lines)


# =============================================================================
# Main Pipeline
# =============================================================================

class NetworkAnalysisPipeline:
    """
    Runs the gene and pathway network branches over loaded inputs.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        """
        Initialize the pipeline.

        Args:
            config: Complete pipeline configuration
        """
        self.config = config or PipelineConfig()
        self._setup_logging()

        self.network_builder = NetworkBuilder(self.config.network)
        self.hub_scorer = HubScorer(self.config.hubs)
        self.extractor = SubnetworkExtractor(self.config.extraction)
        self.similarity_engine = PathwaySimilarityEngine(self.config.similarity)
        self.pathway_builder = PathwayNetworkBuilder(self.config.pathway_network)

    def _setup_logging(self) -> None:
        """Configure logging based on verbosity setting."""
        level = logging.INFO if self.config.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    def run(
        self,
        expression: Optional[Mapping[str, DifferentialExpressionTable]] = None,
        interactions: Optional[InteractionDatabase] = None,
        pathways: Optional[PathwayDatabase] = None,
        enrichment: Optional[EnrichmentResult] = None,
    ) -> AnalysisResult:
        """
        Execute the pipeline.

        Preloaded inputs take precedence over the configured paths.

        Args:
            expression: Optional DE tables keyed by comparison
            interactions: Optional interaction database
            pathways: Optional pathway database
            enrichment: Optional enrichment result

        Returns:
            AnalysisResult with all pipeline outputs
        """
        start_time = datetime.now()
        logger.info("Starting network analysis pipeline")

        # Step 1: Load data
        logger.info("Step 1: Loading inputs")
        expression = expression if expression is not None else self._load_expression()
        interactions = interactions if interactions is not None else self._load_interactions()
        pathways = pathways if pathways is not None else self._load_pathways()
        enrichment = enrichment if enrichment is not None else self._load_enrichment()

        if not expression and pathways is None:
            raise ValueError("No expression or pathway inputs configured")

        result = AnalysisResult(config=self.config)

        # Step 2: Gene networks
        if expression:
            if interactions is None:
                raise ValueError("Expression tables given but no interaction database configured")
            logger.info(f"Step 2: Building gene networks for {len(expression)} comparisons")
            for name in sorted(expression):
                result.comparisons[name] = self.analyze_comparison(expression[name], interactions)

        # Step 3: Pathway networks
        if pathways is not None:
            logger.info("Step 3: Building pathway networks")
            result.distance_matrix = self.similarity_engine.distances(pathways)
            result.foundation = self.pathway_builder.foundation(
                result.distance_matrix, pathways=pathways
            )
            if enrichment is not None:
                for comparison in enrichment.comparisons():
                    pnet = self.pathway_builder.create(
                        result.foundation,
                        enrichment.filter(comparison=comparison),
                        name=f"{comparison}_pathways",
                    )
                    result.pathway_networks[comparison] = pnet
                    if self.config.reduce_pathway_networks:
                        result.reduced_pathway_networks[comparison] = self.pathway_builder.reduce(pnet)

        result.runtime_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(f"Pipeline completed in {result.runtime_seconds:.1f} seconds")
        return result

    def analyze_comparison(
        self,
        table: DifferentialExpressionTable,
        interactions: InteractionDatabase,
    ) -> ComparisonResult:
        """Build, score and reduce the network for one DE comparison."""
        seeds = sorted(table.significant_genes(self.config.seed_direction))
        net = self.network_builder.build(
            seeds, interactions, expression=table, name=f"{table.name}_network"
        )
        self.hub_scorer.score(net)
        top_hubs = self.hub_scorer.top_hubs(net, n=self.config.n_top_hubs)

        if self.config.anchor_source == "hubs":
            anchors = [node for node, _ in top_hubs]
        else:
            anchors = [s for s in seeds if s in net]
        subnetwork = self.extractor.extract(net, anchors, name=f"{table.name}_subnetwork")

        return ComparisonResult(
            comparison=table.name,
            seeds=seeds,
            network=net,
            subnetwork=subnetwork,
            top_hubs=top_hubs,
        )

    # =========================================================================
    # Data Loading
    # =========================================================================

    def _load_expression(self) -> Dict[str, DifferentialExpressionTable]:
        paths = self.config.inputs.expression_paths
        if not paths:
            return {}
        loader = ExpressionLoader(config=self.config.significance)
        return loader.load_tables(paths)

    def _load_interactions(self) -> Optional[InteractionDatabase]:
        inputs = self.config.inputs
        if inputs.interaction_path is None:
            return None
        loader = InteractionLoader()
        if inputs.interaction_format == "string":
            return loader.load_string(inputs.interaction_path, min_score=inputs.string_min_score)
        if inputs.interaction_format != "table":
            raise InvalidConfigurationError(
                "interaction_format", inputs.interaction_format, ["table", "string"]
            )
        return loader.load_table(inputs.interaction_path, weight_col=inputs.interaction_weight_col)

    def _load_pathways(self) -> Optional[PathwayDatabase]:
        inputs = self.config.inputs
        if inputs.pathway_path is None:
            return None
        loader = PathwayLoader()
        if inputs.pathway_path.lower().endswith(".gmt"):
            db = loader.load_gmt(inputs.pathway_path)
        else:
            db = loader.load_membership(inputs.pathway_path)
        if inputs.min_pathway_size is not None or inputs.max_pathway_size is not None:
            db = db.filter_by_size(
                min_size=inputs.min_pathway_size or 1,
                max_size=inputs.max_pathway_size or len(db.get_all_genes()),
            )
        return db

    def _load_enrichment(self) -> Optional[EnrichmentResult]:
        path = self.config.inputs.enrichment_path
        if path is None:
            return None
        return EnrichmentLoader().load_table(path)
