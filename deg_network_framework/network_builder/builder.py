"""
Network Builder

Builds a gene interaction network around a seed gene set (typically the
significant genes of a differential-expression comparison).

Neighborhood orders:
- ZERO: interactions among seeds only (induced subgraph)
- FIRST: every interaction touching a seed (one-hop neighborhood)
- MINIMUM: the induced subgraph plus the shortest interaction paths needed
  to join its disconnected parts
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterable, Optional, Set, Union
import logging

from ..data_loaders.expression_loader import DifferentialExpressionTable
from ..data_loaders.interaction_loader import InteractionDatabase
from ..exceptions import EmptyInputError, InvalidConfigurationError
from ..network.graph import Network
from ..network.paths import connect_components
from ..network.schema import NodeType

logger = logging.getLogger(__name__)


class NetworkOrder(Enum):
    """How far a network expands beyond the seed set."""

    ZERO = "zero"
    FIRST = "first"
    MINIMUM = "minimum"

    @classmethod
    def parse(cls, value: Union["NetworkOrder", str, int]) -> "NetworkOrder":
        if isinstance(value, cls):
            return value
        aliases = {"0": cls.ZERO, "1": cls.FIRST, "min": cls.MINIMUM}
        label = str(value).strip().lower()
        if label in aliases:
            return aliases[label]
        for order in cls:
            if order.value == label:
                return order
        raise InvalidConfigurationError("order", value, [o.value for o in cls])


@dataclass
class BuildConfig:
    """Configuration for network construction."""

    order: NetworkOrder = NetworkOrder.FIRST

    # Keep seeds without surviving edges as isolated nodes (zero/first only)
    include_isolated: bool = False

    # Raise EmptyInputError instead of returning an empty network
    raise_on_empty: bool = False

    # Optional minimum interaction weight
    min_weight: Optional[float] = None


class NetworkBuilder:
    """
    Builds seeded interaction networks from an InteractionDatabase.

    The database is never modified; every call returns a new Network.
    """

    def __init__(self, config: Optional[BuildConfig] = None):
        """
        Initialize network builder.

        Args:
            config: Build configuration
        """
        config = config or BuildConfig()
        self.config = replace(config, order=NetworkOrder.parse(config.order))

    def build(
        self,
        seed_genes: Iterable[str],
        db: InteractionDatabase,
        order: Optional[Union[NetworkOrder, str]] = None,
        expression: Optional[DifferentialExpressionTable] = None,
        name: Optional[str] = None,
    ) -> Network:
        """
        Build a network around the seed genes.

        Args:
            seed_genes: Seed gene ids
            db: Interaction database
            order: Neighborhood order (default from config)
            expression: Optional DE table used to annotate nodes
            name: Optional network name

        Returns:
            Network whose nodes carry ``is_seed`` (and expression attributes
            when ``expression`` is given)
        """
        order = NetworkOrder.parse(order if order is not None else self.config.order)
        seeds: Set[str] = {str(g) for g in seed_genes}
        net = Network(
            name=name or f"{order.value}_order_network",
            node_type=NodeType.GENE,
            metadata={"order": order.value, "n_seeds": len(seeds)},
        )

        if not seeds:
            if self.config.raise_on_empty:
                raise EmptyInputError("seed genes")
            logger.warning("Empty seed gene set; returning an empty network")
            return net

        if self.config.min_weight is not None:
            db = db.filter_by_weight(self.config.min_weight)

        known = {g for g in seeds if db.has_gene(g)}
        unknown = seeds - known
        if unknown:
            logger.debug(f"{len(unknown)} seed genes have no interactions")
        net.metadata["n_seeds_unmapped"] = len(unknown)

        if order == NetworkOrder.ZERO:
            self._build_zero(net, known, db)
        elif order == NetworkOrder.FIRST:
            self._build_first(net, known, db)
        else:
            self._build_minimum(net, known, db)

        if self.config.include_isolated and order != NetworkOrder.MINIMUM:
            for gene in sorted(seeds):
                if gene not in net:
                    net.add_node(gene)

        net.set_node_attributes({node: {"is_seed": node in seeds} for node in net.nodes()})
        if expression is not None:
            annotate_expression(net, expression)

        stats = net.get_stats()
        logger.info(
            f"Built {order.value}-order network from {len(seeds)} seeds: "
            f"{stats.n_nodes} nodes, {stats.n_edges} edges, {stats.n_components} components"
        )
        return net

    def _add_interaction(self, net: Network, db: InteractionDatabase, a: str, b: str) -> None:
        for gene in (a, b):
            if gene not in net:
                net.add_node(gene)
        edge = db.get_edge(a, b)
        attrs = {"source": edge.source} if edge is not None and edge.source else None
        net.add_edge(a, b, weight=db.weight(a, b), attributes=attrs)

    def _build_zero(self, net: Network, seeds: Set[str], db: InteractionDatabase) -> None:
        for gene in sorted(seeds):
            for nbr in db.neighbors(gene):
                if nbr in seeds and gene < nbr:
                    self._add_interaction(net, db, gene, nbr)

    def _build_first(self, net: Network, seeds: Set[str], db: InteractionDatabase) -> None:
        for gene in sorted(seeds):
            for nbr in db.neighbors(gene):
                self._add_interaction(net, db, gene, nbr)

    def _build_minimum(self, net: Network, seeds: Set[str], db: InteractionDatabase) -> None:
        self._build_zero(net, seeds, db)

        # Every mapped seed starts in a component; isolated seeds are singletons
        starting = [set(c) for c in net.components().components]
        starting.extend({g} for g in sorted(seeds) if g not in net)

        result = connect_components(db.adjacency, starting)
        for connection in result.connections:
            for a, b in connection.edges():
                if not net.has_edge(a, b):
                    self._add_interaction(net, db, a, b)

        net.metadata["n_connecting_paths"] = len(result.connections)
        net.metadata["connected"] = net.is_connected()
        if not result.connected:
            logger.info(
                f"Minimum-order network left {len(result.groups)} unconnectable groups"
            )


def annotate_expression(net: Network, expression: DifferentialExpressionTable) -> int:
    """
    Attach differential-expression attributes to matching gene nodes.

    Nodes without a DE row get ``direction`` set to "none" and no values.

    Args:
        net: Network to annotate
        expression: DE table keyed by gene id

    Returns:
        Number of nodes with a matching DE row
    """
    values: dict = {}
    for node in net.nodes():
        gene = expression.get(node)
        if gene is not None:
            values[node] = gene.to_attributes()
        else:
            values[node] = {
                "symbol": node,
                "log2_fold_change": None,
                "p_value": None,
                "adj_p_value": None,
                "direction": "none",
            }
    net.set_node_attributes(values)
    matched = sum(1 for node in net.nodes() if node in expression)
    net.metadata["expression"] = expression.name
    logger.debug(f"Annotated {matched}/{net.n_nodes} nodes from '{expression.name}'")
    return matched
