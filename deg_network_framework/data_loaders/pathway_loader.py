"""
Pathway Loader

Handles loading of pathway gene-set collections:
- Membership tables: one (pathway_id, pathway_name, parent_group, gene_id)
  row per pathway-gene membership
- GMT (Gene Matrix Transposed) files, including Reactome-style ids
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set
from pathlib import Path
from collections import defaultdict
import logging

import pandas as pd

from ..exceptions import InvalidPathwayError
from .table_io import TableSource, read_table, require_columns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Pathway:
    """A pathway with its member genes."""

    pathway_id: str
    name: str
    group: Optional[str]
    genes: FrozenSet[str]

    def __post_init__(self):
        if not self.genes:
            raise InvalidPathwayError(self.pathway_id)
        if not isinstance(self.genes, frozenset):
            object.__setattr__(self, "genes", frozenset(self.genes))

    def __len__(self) -> int:
        return len(self.genes)


@dataclass
class PathwayDatabase:
    """
    Collection of pathways with gene annotations.

    Attributes:
        pathways: Mapping from pathway ID to Pathway
        gene_to_pathways: Reverse mapping from gene ID to pathway IDs
        source: Database source (Reactome, KEGG, GO, ...)
        metadata: Additional metadata about the database
    """

    pathways: Dict[str, Pathway]
    gene_to_pathways: Dict[str, Set[str]] = field(default_factory=dict)
    source: str = "unknown"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Build reverse mapping if not provided."""
        if not self.gene_to_pathways:
            self.gene_to_pathways = self._build_gene_to_pathways()

    def _build_gene_to_pathways(self) -> Dict[str, Set[str]]:
        gene_to_pathways: Dict[str, Set[str]] = defaultdict(set)
        for pathway_id, pathway in self.pathways.items():
            for gene in pathway.genes:
                gene_to_pathways[gene].add(pathway_id)
        return dict(gene_to_pathways)

    def __len__(self) -> int:
        return len(self.pathways)

    def __contains__(self, pathway_id: object) -> bool:
        return pathway_id in self.pathways

    def get(self, pathway_id: str) -> Optional[Pathway]:
        return self.pathways.get(pathway_id)

    def gene_sets(self) -> Dict[str, FrozenSet[str]]:
        """Mapping from pathway ID to member gene set."""
        return {pid: p.genes for pid, p in self.pathways.items()}

    def get_pathway_genes(self, pathway_id: str) -> FrozenSet[str]:
        pathway = self.pathways.get(pathway_id)
        return pathway.genes if pathway is not None else frozenset()

    def get_gene_pathways(self, gene_id: str) -> Set[str]:
        return self.gene_to_pathways.get(gene_id, set())

    def groups(self) -> Dict[str, List[str]]:
        """Pathway ids per parent group."""
        grouped: Dict[str, List[str]] = defaultdict(list)
        for pid in sorted(self.pathways):
            grouped[self.pathways[pid].group or "ungrouped"].append(pid)
        return dict(grouped)

    def filter_by_size(self, min_size: int = 5, max_size: int = 500) -> "PathwayDatabase":
        """
        Filter pathways by size.

        Args:
            min_size: Minimum number of genes
            max_size: Maximum number of genes

        Returns:
            New PathwayDatabase with filtered pathways
        """
        filtered = {
            pid: pathway
            for pid, pathway in self.pathways.items()
            if min_size <= len(pathway) <= max_size
        }
        return PathwayDatabase(
            pathways=filtered,
            source=self.source,
            metadata={**self.metadata, "filtered": True, "min_size": min_size, "max_size": max_size},
        )

    def get_all_genes(self) -> Set[str]:
        all_genes: Set[str] = set()
        for pathway in self.pathways.values():
            all_genes.update(pathway.genes)
        return all_genes

    def to_dataframe(self) -> pd.DataFrame:
        """Membership table with one row per pathway-gene pair."""
        rows = [
            (pid, p.name, p.group, gene)
            for pid, p in sorted(self.pathways.items())
            for gene in sorted(p.genes)
        ]
        return pd.DataFrame.from_records(
            rows, columns=["pathway_id", "pathway_name", "parent_group", "gene_id"]
        )


class PathwayLoader:
    """
    Loader for pathway gene-set collections.

    Supports:
    - Membership tables (CSV/TSV or DataFrame)
    - GMT files (Reactome, KEGG, MSigDB)
    """

    def load_membership(
        self,
        source: TableSource,
        pathway_col: str = "pathway_id",
        name_col: Optional[str] = "pathway_name",
        group_col: Optional[str] = "parent_group",
        gene_col: str = "gene_id",
        database_name: str = "membership",
    ) -> PathwayDatabase:
        """
        Load pathways from a membership table.

        Args:
            source: Path to CSV/TSV or a DataFrame
            pathway_col: Pathway id column
            name_col: Optional pathway display name column
            group_col: Optional parent group column
            gene_col: Gene id column
            database_name: Source name for the database

        Returns:
            PathwayDatabase
        """
        df = read_table(source)
        require_columns(df, [pathway_col, gene_col], "Pathway membership")
        has_name = name_col is not None and name_col in df.columns
        has_group = group_col is not None and group_col in df.columns

        members: Dict[str, Set[str]] = defaultdict(set)
        names: Dict[str, str] = {}
        groups: Dict[str, Optional[str]] = {}
        for row in df.to_dict("records"):
            pid, gene = row[pathway_col], row[gene_col]
            if pd.isna(pid):
                continue
            pid = str(pid)
            if not pd.isna(gene) and str(gene).strip():
                members[pid].add(str(gene))
            else:
                members.setdefault(pid, set())
            if has_name and pid not in names and not pd.isna(row[name_col]):
                names[pid] = str(row[name_col])
            if has_group and pid not in groups and not pd.isna(row[group_col]):
                groups[pid] = str(row[group_col])

        pathways: Dict[str, Pathway] = {}
        for pid in sorted(members):
            genes = members[pid]
            if not genes:
                raise InvalidPathwayError(pid)
            pathways[pid] = Pathway(
                pathway_id=pid,
                name=names.get(pid, pid),
                group=groups.get(pid),
                genes=frozenset(genes),
            )

        db = PathwayDatabase(pathways=pathways, source=database_name)
        logger.info(
            f"Loaded {len(db)} pathways "
            f"({sum(len(p) for p in pathways.values())} gene-pathway associations)"
        )
        return db

    def load_gmt(self, gmt_path: str, source: str = "GMT") -> PathwayDatabase:
        """
        Load pathways from GMT format.

        GMT format: pathway_id<TAB>description<TAB>gene1<TAB>gene2<TAB>...

        Reactome-style ids of the form "R-HSA-123%Name" are split into id
        and display name.

        Args:
            gmt_path: Path to GMT file
            source: Source name for the database

        Returns:
            PathwayDatabase
        """
        path = Path(gmt_path)
        if not path.exists():
            raise FileNotFoundError(f"GMT file not found: {gmt_path}")

        pathways: Dict[str, Pathway] = {}
        with open(path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue

                fields = line.split("\t")
                if len(fields) < 3:
                    logger.warning(f"Skipping malformed line {line_num} in {gmt_path}")
                    continue

                pathway_id, description = fields[0], fields[1]
                genes = set(fields[2:]) - {"", "na", "NA"}
                if not genes:
                    logger.warning(f"Skipping empty pathway {pathway_id} in {gmt_path}")
                    continue

                name = description or pathway_id
                if "%" in pathway_id:
                    parts = pathway_id.split("%")
                    pathway_id, name = parts[0], parts[-1]
                pathways[pathway_id] = Pathway(
                    pathway_id=pathway_id,
                    name=name,
                    group=None,
                    genes=frozenset(genes),
                )

        logger.info(
            f"Loaded {len(pathways)} pathways from {gmt_path} "
            f"({sum(len(p) for p in pathways.values())} gene-pathway associations)"
        )
        return PathwayDatabase(pathways=pathways, source=source, metadata={"file": str(path)})

    @staticmethod
    def from_gene_sets(
        gene_sets: Dict[str, Iterable[str]],
        names: Optional[Dict[str, str]] = None,
        groups: Optional[Dict[str, str]] = None,
        source: str = "custom",
    ) -> PathwayDatabase:
        """Build a database from an id -> genes mapping."""
        names = names or {}
        groups = groups or {}
        pathways = {
            pid: Pathway(pid, names.get(pid, pid), groups.get(pid), frozenset(genes))
            for pid, genes in gene_sets.items()
        }
        return PathwayDatabase(pathways=pathways, source=source)
