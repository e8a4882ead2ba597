"""
Loaders for gene lists, expression matrices and precomputed correlation matrices.

The gene list defines gene identity: a gene's position in the list is the
index used by the graph, the clustering and every output. Expression and
correlation files are therefore reordered to the gene list when one is given.

Expected formats:
    Gene list: plain text, one gene per line. Blank lines and lines starting
    with ``#`` are ignored.

    Expression matrix: CSV or TSV, genes as rows, samples as columns, first
    column holding gene identifiers:
    ```
    gene,S1,S2,S3
    SOD1,5.1,4.8,6.0
    TARDBP,2.2,2.9,2.4
    ```

    Correlation matrix: square gene x gene CSV/TSV with matching row and
    column labels.

Examples:
    >>> from pathlib import Path
    >>> from triplelink.io.loaders import load_gene_list, load_expression_matrix
    >>> genes = load_gene_list(Path("genes.txt"))
    >>> expression = load_expression_matrix(Path("expression.csv"), gene_names=genes)
    >>> expression.data.shape
    (2000, 48)
"""

from __future__ import annotations

import csv
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from triplelink.core.matrix import UpperTriangularMatrix

__all__ = [
    'GeneNotFoundError',
    'ExpressionData',
    'sniff_delimiter',
    'load_gene_list',
    'load_expression_matrix',
    'load_correlation_matrix',
]


class GeneNotFoundError(Exception):
    """Raised when genes from the gene list are missing from a data file."""
    pass


@dataclass
class ExpressionData:
    """
    Expression values aligned to a gene ordering.

    Attributes:
        data: Expression matrix (genes x samples), float64
        gene_names: Gene identifiers, row order of ``data``
        sample_ids: Sample identifiers, column order of ``data``
    """
    data: np.ndarray
    gene_names: List[str]
    sample_ids: List[str]

    @property
    def n_genes(self) -> int:
        return self.data.shape[0]

    @property
    def n_samples(self) -> int:
        return self.data.shape[1]


def _validate_file(path: Path) -> Path:
    if not isinstance(path, Path):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")
    return path


def sniff_delimiter(path: Path, sample_size: int = 8192) -> str:
    """
    Detect the delimiter of a tabular file.

    ``.tsv``/``.txt`` default to tab and ``.csv`` to comma when sniffing is
    inconclusive.
    """
    with open(path, 'r', encoding='utf-8', errors='ignore') as f:
        sample = f.read(sample_size)

    try:
        return csv.Sniffer().sniff(sample, delimiters='\t,;').delimiter
    except csv.Error:
        pass

    if path.suffix.lower() in ('.tsv', '.txt', '.tab'):
        return '\t'
    return ','


def load_gene_list(path: Path) -> List[str]:
    """
    Load the ordered gene list.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the list is empty or contains duplicates
    """
    path = _validate_file(path)

    genes: List[str] = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            name = line.strip()
            if not name or name.startswith('#'):
                continue
            genes.append(name)

    if not genes:
        raise ValueError(f"Gene list is empty: {path}")

    seen = set()
    duplicates = []
    for name in genes:
        if name in seen:
            duplicates.append(name)
        seen.add(name)
    if duplicates:
        preview = ', '.join(duplicates[:5])
        raise ValueError(
            f"Gene list {path} contains {len(duplicates)} duplicate names: {preview}"
            + (" ..." if len(duplicates) > 5 else "")
        )
    return genes


def _read_table(path: Path) -> pd.DataFrame:
    delimiter = sniff_delimiter(path)
    try:
        df = pd.read_csv(path, sep=delimiter, index_col=0)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"File is empty: {path}") from e
    if df.empty:
        raise ValueError(f"File contains no data: {path}")
    df.index = df.index.astype(str)
    df.columns = df.columns.astype(str)
    return df


def _align_rows(df: pd.DataFrame, gene_names: Sequence[str], path: Path) -> pd.DataFrame:
    missing = [g for g in gene_names if g not in df.index]
    if missing:
        preview = ', '.join(missing[:5])
        raise GeneNotFoundError(
            f"{len(missing)} genes from the gene list are missing in {path}: {preview}"
            + (" ..." if len(missing) > 5 else "")
        )
    return df.loc[list(gene_names)]


def load_expression_matrix(
    path: Path,
    gene_names: Optional[Sequence[str]] = None,
) -> ExpressionData:
    """
    Load a genes x samples expression matrix.

    Args:
        path: CSV/TSV file, first column gene identifiers
        gene_names: Optional gene ordering; rows are selected and reordered to it

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is empty or has non-numeric values
        GeneNotFoundError: If a listed gene has no row
    """
    path = _validate_file(path)
    df = _read_table(path)

    if df.index.duplicated().any():
        n_duplicates = int(df.index.duplicated().sum())
        warnings.warn(
            f"Found {n_duplicates} duplicate gene IDs in {path}. Using first occurrence of each.",
            UserWarning
        )
        df = df[~df.index.duplicated(keep='first')]

    if gene_names is not None:
        df = _align_rows(df, gene_names, path)

    try:
        data = df.to_numpy(dtype=np.float64)
    except ValueError as e:
        raise ValueError(f"Expression file {path} contains non-numeric values: {e}") from e

    if np.isnan(data).any():
        n_nan = int(np.isnan(data).sum())
        warnings.warn(
            f"Found {n_nan:,} NaN values in {path}; affected correlations are set to 0.",
            UserWarning
        )

    return ExpressionData(
        data=data,
        gene_names=[str(g) for g in df.index],
        sample_ids=[str(s) for s in df.columns],
    )


def load_correlation_matrix(
    path: Path,
    gene_names: Optional[Sequence[str]] = None,
) -> Tuple[UpperTriangularMatrix, List[str]]:
    """
    Load a precomputed square gene x gene correlation matrix.

    Returns:
        (upper triangle, gene names in matrix order)

    Raises:
        ValueError: If the matrix is not square or labels differ between axes
        GeneNotFoundError: If a listed gene is missing
    """
    path = _validate_file(path)
    df = _read_table(path)

    if df.shape[0] != df.shape[1]:
        raise ValueError(f"Correlation matrix in {path} is not square: {df.shape}")
    if list(df.index) != list(df.columns):
        raise ValueError(f"Row and column labels of {path} differ")

    if gene_names is not None:
        df = _align_rows(df, gene_names, path)
        df = df.loc[:, list(gene_names)]

    values = df.to_numpy(dtype=np.float64)
    return UpperTriangularMatrix.from_square(values), [str(g) for g in df.index]
