"""
Interaction Loader

Loads gene-gene interaction edge lists (e.g. STRING protein-protein
interactions) into a read-only InteractionDatabase.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple
import logging

import pandas as pd

from ..network.paths import AdjacencyIndex
from ..network.schema import canonical_pair
from .table_io import TableSource, read_table, require_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractionEdge:
    """An unordered gene pair with optional confidence and source."""

    gene_a: str
    gene_b: str
    weight: float = 1.0
    source: Optional[str] = None

    def __post_init__(self):
        if self.gene_a == self.gene_b:
            raise ValueError(f"Self-interaction not allowed: {self.gene_a}")
        a, b = canonical_pair(self.gene_a, self.gene_b)
        object.__setattr__(self, "gene_a", a)
        object.__setattr__(self, "gene_b", b)

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.gene_a, self.gene_b)

    def other(self, gene_id: str) -> str:
        return self.gene_b if gene_id == self.gene_a else self.gene_a


class InteractionDatabase:
    """
    Read-only collection of undirected gene-gene interactions.

    Duplicate undirected pairs are collapsed (highest weight kept, source
    labels merged) and self-pairs are rejected. The adjacency index is built
    once, on first use, and reused by every shortest-path query.
    """

    def __init__(
        self,
        interactions: Iterable[Tuple[Any, ...]],
        source: str = "unknown",
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize interaction database.

        Args:
            interactions: (gene_a, gene_b), (gene_a, gene_b, weight) or
                (gene_a, gene_b, weight, source) tuples, or InteractionEdges
            source: Database source name
            metadata: Additional metadata
        """
        self.source = source
        self.metadata: Dict[str, Any] = dict(metadata or {})

        edges: Dict[Tuple[str, str], InteractionEdge] = {}
        n_self = 0
        n_duplicate = 0
        for item in interactions:
            if isinstance(item, InteractionEdge):
                a, b, weight, label = item.gene_a, item.gene_b, item.weight, item.source
            else:
                a, b = str(item[0]), str(item[1])
                weight = float(item[2]) if len(item) > 2 and item[2] is not None else 1.0
                label = item[3] if len(item) > 3 else None
            if a == b:
                n_self += 1
                continue
            pair = canonical_pair(a, b)
            existing = edges.get(pair)
            if existing is not None:
                n_duplicate += 1
                weight = max(weight, existing.weight)
                label = _merge_sources(existing.source, label)
            edges[pair] = InteractionEdge(pair[0], pair[1], weight, label)

        if n_self:
            logger.warning(f"Rejected {n_self} self-interactions")
        if n_duplicate:
            logger.debug(f"Collapsed {n_duplicate} duplicate interaction pairs")

        self._edges: Dict[Tuple[str, str], InteractionEdge] = dict(sorted(edges.items()))
        self._adjacency: Optional[AdjacencyIndex] = None
        self._filtered: Dict[float, "InteractionDatabase"] = {}
        self.metadata.setdefault("n_self_pairs_rejected", n_self)
        self.metadata.setdefault("n_duplicates_collapsed", n_duplicate)

    def __len__(self) -> int:
        return len(self._edges)

    def __iter__(self):
        return iter(self._edges.values())

    @property
    def edges(self) -> List[InteractionEdge]:
        return list(self._edges.values())

    @property
    def genes(self) -> FrozenSet[str]:
        return frozenset(self.adjacency.nodes)

    def has_gene(self, gene_id: str) -> bool:
        return gene_id in self.adjacency

    def get_edge(self, gene_a: str, gene_b: str) -> Optional[InteractionEdge]:
        return self._edges.get(canonical_pair(gene_a, gene_b))

    def weight(self, gene_a: str, gene_b: str, default: float = 1.0) -> float:
        edge = self.get_edge(gene_a, gene_b)
        return edge.weight if edge is not None else default

    def neighbors(self, gene_id: str) -> Tuple[str, ...]:
        return self.adjacency.neighbors(gene_id)

    @property
    def adjacency(self) -> AdjacencyIndex:
        """Adjacency index over all interactions (built once)."""
        if self._adjacency is None:
            self._adjacency = AdjacencyIndex.from_edges(self._edges.keys())
            logger.debug(f"Built adjacency index over {len(self._adjacency)} genes")
        return self._adjacency

    def filter_by_weight(self, min_weight: float) -> "InteractionDatabase":
        """Keep interactions with weight >= min_weight (cached per threshold)."""
        filtered = self._filtered.get(min_weight)
        if filtered is None:
            filtered = InteractionDatabase(
                [e for e in self._edges.values() if e.weight >= min_weight],
                source=self.source,
                metadata={**self.metadata, "min_weight": min_weight, "filtered_from": len(self)},
            )
            self._filtered[min_weight] = filtered
        return filtered

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame.from_records(
            [(e.gene_a, e.gene_b, e.weight, e.source) for e in self._edges.values()],
            columns=["gene_a", "gene_b", "weight", "source"],
        )


def _merge_sources(first: Optional[str], second: Optional[str]) -> Optional[str]:
    labels: Set[str] = set()
    for value in (first, second):
        if value:
            labels.update(value.split("|"))
    return "|".join(sorted(labels)) if labels else None


class InteractionLoader:
    """Loader for interaction edge tables."""

    def load_table(
        self,
        source: TableSource,
        gene_a_col: str = "gene_a",
        gene_b_col: str = "gene_b",
        weight_col: Optional[str] = None,
        source_col: Optional[str] = None,
        min_weight: Optional[float] = None,
        database_name: str = "table",
    ) -> InteractionDatabase:
        """
        Load interactions from an edge table.

        Args:
            source: Path to CSV/TSV or a DataFrame
            gene_a_col: Column with the first gene id
            gene_b_col: Column with the second gene id
            weight_col: Optional confidence/weight column
            source_col: Optional evidence source column
            min_weight: Optional minimum weight (requires weight_col)
            database_name: Name recorded on the database

        Returns:
            InteractionDatabase
        """
        df = read_table(source)
        require_columns(df, [gene_a_col, gene_b_col, weight_col, source_col], "Interaction")

        interactions = []
        skipped = 0
        for row in df.to_dict("records"):
            a, b = row[gene_a_col], row[gene_b_col]
            if pd.isna(a) or pd.isna(b):
                skipped += 1
                continue
            weight = float(row[weight_col]) if weight_col and not pd.isna(row[weight_col]) else 1.0
            if min_weight is not None and weight < min_weight:
                continue
            label = row[source_col] if source_col and not pd.isna(row[source_col]) else None
            interactions.append((str(a), str(b), weight, label))

        if skipped:
            logger.debug(f"Skipped {skipped} interaction rows with missing gene ids")

        db = InteractionDatabase(interactions, source=database_name)
        logger.info(f"Loaded {len(db)} interactions over {len(db.genes)} genes")
        return db

    def load_string(
        self,
        file_path: str,
        min_score: float = 400.0,
        max_edges: Optional[int] = None,
    ) -> InteractionDatabase:
        """
        Load a STRING-format file (whitespace separated, header line, last
        column combined_score on a 0-1000 scale).

        Args:
            file_path: Path to STRING links file
            min_score: Minimum combined score (STRING scale)
            max_edges: Optional maximum number of lines to read

        Returns:
            InteractionDatabase with weights normalized to 0-1
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"STRING file not found: {file_path}")

        interactions = []
        with open(path, "r") as f:
            f.readline()  # Skip header

            for i, line in enumerate(f):
                if max_edges and i >= max_edges:
                    break

                parts = line.strip().split()
                if len(parts) < 3:
                    continue

                score = float(parts[-1])
                if score < min_score:
                    continue
                weight = score / 1000.0 if score > 1 else score
                interactions.append(
                    (_strip_species(parts[0]), _strip_species(parts[1]), weight, "STRING")
                )

        db = InteractionDatabase(
            interactions,
            source="STRING",
            metadata={"file": str(path), "min_score": min_score},
        )
        logger.info(
            f"Loaded {len(db)} STRING interactions from {file_path} (min_score={min_score})"
        )
        return db


def _strip_species(protein_id: str) -> str:
    """Drop the taxon prefix from ids like '9606.ENSP00000269305'."""
    if "." in protein_id:
        return protein_id.split(".", 1)[1]
    return protein_id
