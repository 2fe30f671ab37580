"""
Pathway Similarity

Computes pairwise set distances between pathway gene sets.

Gene membership is encoded as a sparse pathway x gene matrix, so pairwise
intersection sizes come from one sparse product per row block. Each
unordered pair is computed once (upper triangle) and mirrored. Row blocks
are independent and can run on a thread pool; every worker writes a
disjoint set of cells.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union
import logging

import numpy as np
import pandas as pd
from scipy import sparse

from ..exceptions import InvalidConfigurationError, InvalidPathwayError

logger = logging.getLogger(__name__)


class DistanceMethod(Enum):
    """Set distance measures."""

    JACCARD = "jaccard"  # 1 - |A&B| / |A or B|
    OVERLAP = "overlap"  # 1 - |A&B| / min(|A|, |B|)
    DICE = "dice"  # 1 - 2|A&B| / (|A| + |B|)

    @classmethod
    def parse(cls, value: Union["DistanceMethod", str]) -> "DistanceMethod":
        if isinstance(value, cls):
            return value
        label = str(value).strip().lower()
        for method in cls:
            if method.value == label:
                return method
        raise InvalidConfigurationError("method", value, [m.value for m in cls])


@dataclass
class SimilarityConfig:
    """Configuration for distance computation."""

    method: DistanceMethod = DistanceMethod.JACCARD

    # Worker threads for row blocks (1 = serial)
    n_jobs: int = 1

    # Rows per block (default: split evenly across workers)
    block_size: Optional[int] = None


@dataclass
class DistanceMatrix:
    """
    Symmetric pairwise distance matrix over pathway ids.

    Attributes:
        pathway_ids: Pathway ids, in matrix order
        values: Square array of distances in [0, 1] with zero diagonal
        method: Distance method used
        index: Mapping from pathway ID to row/column index
        metadata: Additional metadata
    """

    pathway_ids: List[str]
    values: np.ndarray
    method: str = DistanceMethod.JACCARD.value
    index: Dict[str, int] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.index:
            self.index = {pid: i for i, pid in enumerate(self.pathway_ids)}

    def __len__(self) -> int:
        return len(self.pathway_ids)

    def __contains__(self, pathway_id: object) -> bool:
        return pathway_id in self.index

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def get(self, a: str, b: str) -> float:
        """Distance between two pathways."""
        return float(self.values[self.index[a], self.index[b]])

    def pairs_within(self, max_distance: float) -> Iterator[Tuple[str, str, float]]:
        """
        Yield (a, b, distance) for every unordered pair with distance
        <= max_distance, in index order with a before b.
        """
        rows, cols = np.nonzero(np.triu(self.values <= max_distance, k=1))
        for i, j in zip(rows.tolist(), cols.tolist()):
            yield self.pathway_ids[i], self.pathway_ids[j], float(self.values[i, j])

    def subset(self, pathway_ids: Iterable[str]) -> "DistanceMatrix":
        """Restrict to the given pathways (unknown ids raise KeyError)."""
        ids = sorted(set(pathway_ids))
        idx = [self.index[pid] for pid in ids]
        return DistanceMatrix(
            pathway_ids=ids,
            values=self.values[np.ix_(idx, idx)].copy(),
            method=self.method,
            metadata=dict(self.metadata),
        )

    def validate(self, atol: float = 1e-12) -> None:
        """Check shape, symmetry, diagonal and range; raise ValueError if violated."""
        n = len(self.pathway_ids)
        if self.values.shape != (n, n):
            raise ValueError(f"Distance matrix shape {self.values.shape} != ({n}, {n})")
        if not np.allclose(self.values, self.values.T, atol=atol):
            raise ValueError("Distance matrix is not symmetric")
        if np.any(np.diag(self.values) != 0):
            raise ValueError("Distance matrix diagonal must be zero")
        if n and (self.values.min() < 0 or self.values.max() > 1):
            raise ValueError("Distances must lie in [0, 1]")

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.values, index=self.pathway_ids, columns=self.pathway_ids)


class PathwaySimilarityEngine:
    """
    Computes pairwise pathway distances from gene membership.
    """

    def __init__(self, config: Optional[SimilarityConfig] = None):
        """
        Initialize similarity engine.

        Args:
            config: Distance configuration
        """
        config = config or SimilarityConfig()
        self.config = replace(config, method=DistanceMethod.parse(config.method))
        if self.config.n_jobs < 1:
            raise InvalidConfigurationError("n_jobs", self.config.n_jobs)

    def distances(
        self,
        pathways: Any,
        method: Optional[Union[DistanceMethod, str]] = None,
    ) -> DistanceMatrix:
        """
        Compute the pairwise distance matrix.

        Args:
            pathways: Mapping from pathway ID to gene ids, or a
                PathwayDatabase
            method: Distance method (default from config)

        Returns:
            DistanceMatrix over the pathway ids in sorted order
        """
        method = DistanceMethod.parse(method if method is not None else self.config.method)
        if hasattr(pathways, "gene_sets"):
            pathways = pathways.gene_sets()

        gene_sets: Dict[str, frozenset] = {}
        for pid in sorted(pathways):
            genes = frozenset(str(g) for g in pathways[pid])
            if not genes:
                raise InvalidPathwayError(pid)
            gene_sets[pid] = genes

        ids = list(gene_sets)
        membership = self._membership_matrix(ids, gene_sets)
        sizes = np.asarray(membership.sum(axis=1)).ravel().astype(float)
        values = np.zeros((len(ids), len(ids)), dtype=float)

        blocks = self._row_blocks(len(ids))
        if self.config.n_jobs > 1 and len(blocks) > 1:
            with ThreadPoolExecutor(max_workers=self.config.n_jobs) as ex:
                list(ex.map(lambda b: self._fill_block(values, membership, sizes, method, *b), blocks))
        else:
            for start, stop in blocks:
                self._fill_block(values, membership, sizes, method, start, stop)

        values = values + values.T
        np.fill_diagonal(values, 0.0)
        np.clip(values, 0.0, 1.0, out=values)

        logger.info(
            f"Computed {method.value} distances for {len(ids)} pathways "
            f"({len(ids) * (len(ids) - 1) // 2} pairs, {len(blocks)} blocks)"
        )
        return DistanceMatrix(
            pathway_ids=ids,
            values=values,
            method=method.value,
            metadata={"n_genes": membership.shape[1]},
        )

    @staticmethod
    def _membership_matrix(
        ids: Sequence[str],
        gene_sets: Mapping[str, frozenset],
    ) -> sparse.csr_matrix:
        genes = sorted(set().union(*gene_sets.values())) if gene_sets else []
        gene_index = {g: i for i, g in enumerate(genes)}
        rows, cols = [], []
        for row, pid in enumerate(ids):
            for gene in gene_sets[pid]:
                rows.append(row)
                cols.append(gene_index[gene])
        data = np.ones(len(rows), dtype=np.int64)
        return sparse.csr_matrix((data, (rows, cols)), shape=(len(ids), len(genes)))

    def _row_blocks(self, n: int) -> List[Tuple[int, int]]:
        if n == 0:
            return []
        size = self.config.block_size or max(1, -(-n // self.config.n_jobs))
        return [(start, min(start + size, n)) for start in range(0, n, size)]

    @staticmethod
    def _fill_block(
        values: np.ndarray,
        membership: sparse.csr_matrix,
        sizes: np.ndarray,
        method: DistanceMethod,
        start: int,
        stop: int,
    ) -> None:
        """Write the upper-triangle distances for rows [start, stop)."""
        n = membership.shape[0]
        for i in range(start, stop):
            if i + 1 >= n:
                continue
            inter = np.asarray(
                (membership[i] @ membership[i + 1:].T).todense()
            ).ravel().astype(float)
            size_i = sizes[i]
            size_j = sizes[i + 1:]

            if method == DistanceMethod.JACCARD:
                similarity = inter / (size_i + size_j - inter)
            elif method == DistanceMethod.OVERLAP:
                similarity = inter / np.minimum(size_i, size_j)
            else:
                similarity = 2.0 * inter / (size_i + size_j)

            values[i, i + 1:] = 1.0 - similarity
