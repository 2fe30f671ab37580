"""
Expression Loader

Loads differential-expression result tables (one per comparison) into
immutable Gene records keyed by a stable gene identifier.

Each table needs a gene id column plus signed log2 fold change, raw p-value
and adjusted p-value columns. Expression direction is derived once at load
time from significance cutoffs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Union
import logging
import math

import pandas as pd

from ..exceptions import InvalidConfigurationError
from .table_io import TableSource, read_table, require_columns

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Expression change direction."""

    UP = "up"
    DOWN = "down"
    NONE = "none"

    @classmethod
    def parse(cls, value: Union["Direction", str, None]) -> "Direction":
        """
        Parse a direction label.

        Accepts enum members and common labels ("up", "down", "+", "-",
        "none", "both", "any", "all"). Missing values map to NONE.
        """
        if isinstance(value, cls):
            return value
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return cls.NONE
        label = str(value).strip().lower()
        if label in ("up", "+", "upregulated", "increased"):
            return cls.UP
        if label in ("down", "-", "downregulated", "decreased"):
            return cls.DOWN
        if label in ("none", "both", "any", "all", "", "ns"):
            return cls.NONE
        raise InvalidConfigurationError("direction", value, [d.value for d in cls])


@dataclass
class SignificanceConfig:
    """Cutoffs used to derive gene direction."""

    adj_p_cutoff: float = 0.05
    log2fc_cutoff: float = 1.0


@dataclass(frozen=True)
class Gene:
    """A gene's differential-expression result. Immutable once loaded."""

    gene_id: str
    symbol: str
    log2_fold_change: float
    p_value: Optional[float]
    adj_p_value: Optional[float]
    direction: Direction = Direction.NONE

    @classmethod
    def from_values(
        cls,
        gene_id: str,
        log2_fold_change: float,
        p_value: Optional[float],
        adj_p_value: Optional[float],
        symbol: Optional[str] = None,
        config: Optional[SignificanceConfig] = None,
    ) -> "Gene":
        """Create a Gene, deriving its direction from the cutoffs."""
        config = config or SignificanceConfig()
        p_value = _optional_float(p_value)
        adj_p_value = _optional_float(adj_p_value)
        lfc = float(log2_fold_change)

        direction = Direction.NONE
        if adj_p_value is not None and adj_p_value <= config.adj_p_cutoff:
            if lfc >= config.log2fc_cutoff:
                direction = Direction.UP
            elif lfc <= -config.log2fc_cutoff:
                direction = Direction.DOWN

        return cls(
            gene_id=gene_id,
            symbol=symbol or gene_id,
            log2_fold_change=lfc,
            p_value=p_value,
            adj_p_value=adj_p_value,
            direction=direction,
        )

    @property
    def is_significant(self) -> bool:
        return self.direction != Direction.NONE

    def to_attributes(self) -> Dict[str, Any]:
        """Node attributes contributed by this gene."""
        return {
            "symbol": self.symbol,
            "log2_fold_change": self.log2_fold_change,
            "p_value": self.p_value,
            "adj_p_value": self.adj_p_value,
            "direction": self.direction.value,
        }


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return None if math.isnan(value) else value


@dataclass
class DifferentialExpressionTable:
    """
    Differential-expression results for one comparison.

    Attributes:
        name: Comparison label
        genes: Mapping from gene ID to Gene
        config: Cutoffs the directions were derived with
        metadata: Additional metadata
    """

    name: str
    genes: Dict[str, Gene]
    config: SignificanceConfig = field(default_factory=SignificanceConfig)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.genes)

    def __contains__(self, gene_id: object) -> bool:
        return gene_id in self.genes

    def __iter__(self) -> Iterator[Gene]:
        return iter(self.genes[g] for g in sorted(self.genes))

    def get(self, gene_id: str) -> Optional[Gene]:
        return self.genes.get(gene_id)

    def significant_genes(
        self,
        direction: Optional[Union[Direction, str]] = None,
    ) -> Set[str]:
        """
        Gene ids called up or down (the seed set for network construction).

        Args:
            direction: Optional UP/DOWN restriction

        Returns:
            Set of gene ids
        """
        wanted = Direction.parse(direction) if direction is not None else None
        return {
            gene_id
            for gene_id, gene in self.genes.items()
            if gene.is_significant and (wanted in (None, Direction.NONE) or gene.direction == wanted)
        }

    def direction_counts(self) -> Dict[str, int]:
        counts = {d.value: 0 for d in Direction}
        for gene in self.genes.values():
            counts[gene.direction.value] += 1
        return counts

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to a DataFrame with one row per gene."""
        return pd.DataFrame.from_records(
            [{"gene_id": g.gene_id, **g.to_attributes()} for g in self],
            columns=["gene_id", "symbol", "log2_fold_change", "p_value", "adj_p_value", "direction"],
        )


class ExpressionLoader:
    """
    Loader for differential-expression result tables.

    Column names default to DESeq2-style output and can be overridden.
    """

    def __init__(
        self,
        config: Optional[SignificanceConfig] = None,
        gene_col: str = "gene_id",
        fc_col: str = "log2FoldChange",
        p_col: str = "pvalue",
        padj_col: str = "padj",
        symbol_col: Optional[str] = "symbol",
    ):
        """
        Initialize expression loader.

        Args:
            config: Significance cutoffs for direction calls
            gene_col: Column with stable gene identifiers
            fc_col: Column with signed log2 fold change
            p_col: Column with raw p-values
            padj_col: Column with adjusted p-values
            symbol_col: Optional column with display symbols
        """
        self.config = config or SignificanceConfig()
        self.gene_col = gene_col
        self.fc_col = fc_col
        self.p_col = p_col
        self.padj_col = padj_col
        self.symbol_col = symbol_col

    def load_table(self, source: TableSource, name: str = "comparison") -> DifferentialExpressionTable:
        """
        Load one differential-expression table.

        Rows with a missing gene id or fold change are skipped. Duplicate
        gene ids are rejected.

        Args:
            source: Path to CSV/TSV or a DataFrame
            name: Comparison label

        Returns:
            DifferentialExpressionTable
        """
        df = read_table(source)
        require_columns(df, [self.gene_col, self.fc_col, self.p_col, self.padj_col], "Expression")

        ids = df[self.gene_col]
        duplicated = sorted(set(ids[ids.duplicated()].astype(str)))
        if duplicated:
            raise ValueError(
                f"Duplicate gene ids in expression table '{name}': {', '.join(duplicated[:10])}"
            )

        has_symbol = self.symbol_col is not None and self.symbol_col in df.columns
        genes: Dict[str, Gene] = {}
        skipped = 0
        for values in df.to_dict("records"):
            gene_id = values.get(self.gene_col)
            lfc = values.get(self.fc_col)
            if pd.isna(gene_id) or pd.isna(lfc):
                skipped += 1
                continue
            symbol = values.get(self.symbol_col) if has_symbol else None
            gene_id = str(gene_id)
            genes[gene_id] = Gene.from_values(
                gene_id=gene_id,
                log2_fold_change=lfc,
                p_value=values.get(self.p_col),
                adj_p_value=values.get(self.padj_col),
                symbol=None if symbol is None or pd.isna(symbol) else str(symbol),
                config=self.config,
            )

        if skipped:
            logger.debug(f"Skipped {skipped} rows without gene id or fold change in '{name}'")

        table = DifferentialExpressionTable(name=name, genes=genes, config=self.config)
        counts = table.direction_counts()
        logger.info(
            f"Loaded {len(genes)} genes for '{name}' "
            f"({counts['up']} up, {counts['down']} down)"
        )
        return table

    def load_tables(
        self,
        sources: Mapping[str, TableSource],
    ) -> Dict[str, DifferentialExpressionTable]:
        """
        Load a named collection of tables.

        Args:
            sources: Mapping from comparison label to path or DataFrame

        Returns:
            Mapping from comparison label to table
        """
        return {name: self.load_table(src, name=name) for name, src in sources.items()}

    @staticmethod
    def from_genes(name: str, genes: List[Gene]) -> DifferentialExpressionTable:
        """Build a table from already-constructed Gene records."""
        return DifferentialExpressionTable(name=name, genes={g.gene_id: g for g in genes})
