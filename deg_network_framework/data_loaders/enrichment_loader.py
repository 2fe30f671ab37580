"""
Enrichment Loader

Reads pathway enrichment results produced by an external enrichment tool.
Rows are consumed as-is; no statistics are recomputed here.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
import logging
import math
import re

import pandas as pd

from .expression_loader import Direction
from .table_io import TableSource, read_table, require_columns

logger = logging.getLogger(__name__)

_GENE_SPLIT = re.compile(r"[/;,\s]+")


@dataclass(frozen=True)
class EnrichmentRow:
    """One enriched pathway for one comparison and direction."""

    pathway_id: str
    direction: Direction
    p_value: float
    adj_p_value: float
    comparison: str
    genes: Tuple[str, ...] = ()

    @property
    def sort_key(self) -> Tuple[float, float, str, str]:
        # Missing p-values rank last
        return (
            _nan_last(self.adj_p_value),
            _nan_last(self.p_value),
            self.comparison,
            self.direction.value,
        )


@dataclass(frozen=True)
class EnrichmentResult:
    """
    Read-only collection of enrichment rows.

    Attributes:
        rows: Enrichment rows
        metadata: Additional metadata
    """

    rows: Tuple[EnrichmentRow, ...]
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[EnrichmentRow]:
        return iter(self.rows)

    def pathway_ids(self) -> List[str]:
        return sorted({row.pathway_id for row in self.rows})

    def comparisons(self) -> List[str]:
        return sorted({row.comparison for row in self.rows})

    def by_pathway(self) -> Dict[str, List[EnrichmentRow]]:
        """Rows grouped per pathway, most significant first."""
        grouped: Dict[str, List[EnrichmentRow]] = {}
        for row in self.rows:
            grouped.setdefault(row.pathway_id, []).append(row)
        return {pid: sorted(rows, key=lambda r: r.sort_key) for pid, rows in sorted(grouped.items())}

    def filter(
        self,
        max_adj_p: Optional[float] = None,
        comparison: Optional[str] = None,
    ) -> "EnrichmentResult":
        """
        Subset rows by adjusted p-value and/or comparison label.

        Returns:
            New EnrichmentResult
        """
        rows = [
            row
            for row in self.rows
            if (max_adj_p is None or row.adj_p_value <= max_adj_p)
            and (comparison is None or row.comparison == comparison)
        ]
        return EnrichmentResult(
            rows=tuple(rows),
            metadata={**self.metadata, "max_adj_p": max_adj_p, "comparison": comparison},
        )

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "EnrichmentResult":
        """Build from dicts with EnrichmentRow field names."""
        rows = []
        for record in records:
            rows.append(
                EnrichmentRow(
                    pathway_id=str(record["pathway_id"]),
                    direction=Direction.parse(record.get("direction")),
                    p_value=float(record.get("p_value", math.nan)),
                    adj_p_value=float(record.get("adj_p_value", record.get("p_value", math.nan))),
                    comparison=str(record.get("comparison", "comparison")),
                    genes=parse_gene_list(record.get("genes")),
                )
            )
        return cls(rows=tuple(rows))


def parse_gene_list(value: Any) -> Tuple[str, ...]:
    """Parse member genes from a delimited string or a sequence."""
    if value is None:
        return ()
    if isinstance(value, float) and math.isnan(value):
        return ()
    if isinstance(value, str):
        parts = _GENE_SPLIT.split(value.strip())
    else:
        parts = [str(v) for v in value]
    return tuple(sorted({p for p in parts if p}))


class EnrichmentLoader:
    """Loader for enrichment result tables."""

    def load_table(
        self,
        source: TableSource,
        pathway_col: str = "pathway_id",
        direction_col: Optional[str] = "direction",
        p_col: str = "p_value",
        padj_col: str = "adj_p_value",
        comparison_col: Optional[str] = "comparison",
        genes_col: Optional[str] = "genes",
        default_comparison: str = "comparison",
    ) -> EnrichmentResult:
        """
        Load enrichment rows from a table.

        Args:
            source: Path to CSV/TSV or a DataFrame
            pathway_col: Pathway id column
            direction_col: Optional direction column (missing -> NONE)
            p_col: Raw p-value column
            padj_col: Adjusted p-value column
            comparison_col: Optional comparison label column
            genes_col: Optional contributing-genes column
            default_comparison: Label used when comparison_col is absent

        Returns:
            EnrichmentResult
        """
        df = read_table(source)
        require_columns(df, [pathway_col, p_col, padj_col], "Enrichment")

        def column(name: Optional[str]) -> Optional[str]:
            return name if name is not None and name in df.columns else None

        direction_col = column(direction_col)
        comparison_col = column(comparison_col)
        genes_col = column(genes_col)

        rows = []
        for record in df.to_dict("records"):
            if pd.isna(record[pathway_col]):
                continue
            rows.append(
                EnrichmentRow(
                    pathway_id=str(record[pathway_col]),
                    direction=Direction.parse(record[direction_col] if direction_col else None),
                    p_value=float(record[p_col]),
                    adj_p_value=float(record[padj_col]),
                    comparison=str(record[comparison_col]) if comparison_col else default_comparison,
                    genes=parse_gene_list(record[genes_col]) if genes_col else (),
                )
            )

        result = EnrichmentResult(rows=tuple(rows))
        logger.info(
            f"Loaded {len(result)} enrichment rows "
            f"({len(result.pathway_ids())} pathways, {len(result.comparisons())} comparisons)"
        )
        return result


def _nan_last(value: float) -> float:
    return math.inf if math.isnan(value) else value
