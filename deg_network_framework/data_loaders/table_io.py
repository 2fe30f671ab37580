"""
Table reading helpers shared by the loaders.
"""

from pathlib import Path
from typing import Sequence, Union
import logging

import pandas as pd

logger = logging.getLogger(__name__)

TableSource = Union[str, Path, pd.DataFrame]


def read_table(source: TableSource) -> pd.DataFrame:
    """
    Read a delimited table, or pass a DataFrame through unchanged.

    Tab separation is used for .tsv/.txt/.tab files (optionally gzipped),
    comma separation otherwise.

    Args:
        source: Path to a CSV/TSV file or an in-memory DataFrame

    Returns:
        DataFrame
    """
    if isinstance(source, pd.DataFrame):
        return source

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")

    suffixes = [s.lower() for s in path.suffixes if s.lower() != ".gz"]
    sep = "\t" if suffixes and suffixes[-1] in (".tsv", ".txt", ".tab") else ","
    df = pd.read_csv(path, sep=sep)
    logger.debug(f"Read {len(df)} rows from {path}")
    return df


def require_columns(df: pd.DataFrame, columns: Sequence[str], what: str) -> None:
    """Raise ValueError naming any required column missing from ``df``."""
    missing = [c for c in columns if c is not None and c not in df.columns]
    if missing:
        raise ValueError(
            f"{what} table is missing required column(s): {', '.join(missing)} "
            f"(available: {', '.join(map(str, df.columns))})"
        )
