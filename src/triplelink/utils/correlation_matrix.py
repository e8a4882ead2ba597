"""
Chunked gene-gene correlation computation.

Co-expression clustering starts from the full pairwise correlation of a
genes x samples expression matrix. For tens of thousands of genes the full
matrix does not fit comfortably alongside its temporaries, so it is computed
in row chunks against standardized data:

    Z = (X - mean) / std           (per gene, computed once)
    corr[chunk, :] = Z[chunk] @ Z.T / n_samples

Spearman correlation is the same computation on per-gene ranks
(``scipy.stats.rankdata``, average ranks for ties).

Constant genes have zero variance; their standardized rows are all zero, so
they correlate 0 with everything (1 with themselves).

Examples:
    >>> import numpy as np
    >>> from triplelink.utils.correlation_matrix import correlation_upper_triangle
    >>> data = np.random.default_rng(0).normal(size=(50, 20))
    >>> ut = correlation_upper_triangle(data, method="pearson")
    >>> len(ut) == 50 * 49 // 2
    True
"""

from __future__ import annotations

from typing import Literal, Optional
import logging

import numpy as np
from scipy.stats import rankdata
from tqdm import tqdm

from triplelink.core.matrix import UpperTriangularMatrix

logger = logging.getLogger(__name__)

__all__ = [
    'compute_correlation_matrix_chunked',
    'upper_triangle',
    'correlation_upper_triangle',
]

CorrelationMethod = Literal["pearson", "spearman"]


def _standardize(data: np.ndarray) -> np.ndarray:
    data_mean = data.mean(axis=1, keepdims=True)
    data_std = data.std(axis=1, keepdims=True)
    data_std[data_std == 0] = 1.0
    return (data - data_mean) / data_std


def compute_correlation_matrix_chunked(
    data: np.ndarray,
    chunk_size: int = 500,
    method: CorrelationMethod = "pearson",
    verbose: bool = False,
    output: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Compute the gene x gene correlation matrix in row chunks.

    Args:
        data: Expression matrix (genes x samples)
        chunk_size: Genes per chunk
        method: "pearson" or "spearman"
        verbose: Show a tqdm progress bar
        output: Optional pre-allocated (genes x genes) array, e.g. a memmap

    Returns:
        Symmetric float32 correlation matrix with unit diagonal

    Raises:
        ValueError: On non-2D input, fewer than 2 samples, or unknown method
    """
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2:
        raise ValueError(f"data must be 2D (genes x samples), got shape {data.shape}")
    n_features, n_samples = data.shape
    if n_samples < 2:
        raise ValueError(f"At least 2 samples are required for correlation, got {n_samples}")
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

    if method == "spearman":
        data = rankdata(data, axis=1)
    elif method != "pearson":
        raise ValueError(f"Unknown correlation method '{method}'. Use 'pearson' or 'spearman'")

    if output is None:
        correlation_matrix = np.zeros((n_features, n_features), dtype=np.float32)
    else:
        if output.shape != (n_features, n_features):
            raise ValueError(
                f"output shape {output.shape} must be ({n_features}, {n_features})"
            )
        correlation_matrix = output

    data_standardized = _standardize(data)

    n_chunks = (n_features + chunk_size - 1) // chunk_size
    logger.debug(
        f"Computing {method} correlations: {n_features} genes x {n_samples} samples "
        f"in {n_chunks} chunks of {chunk_size}"
    )

    chunk_iter = tqdm(range(n_chunks), desc="Computing correlations", unit="chunk",
                      disable=not verbose)
    for chunk_idx in chunk_iter:
        start_idx = chunk_idx * chunk_size
        end_idx = min(start_idx + chunk_size, n_features)

        chunk_corr = (data_standardized[start_idx:end_idx, :] @ data_standardized.T) / n_samples
        chunk_corr = np.nan_to_num(chunk_corr, nan=0.0, posinf=0.0, neginf=0.0)
        # Rounding can push |r| slightly past 1
        np.clip(chunk_corr, -1.0, 1.0, out=chunk_corr)
        correlation_matrix[start_idx:end_idx, :] = chunk_corr.astype(np.float32)

    np.fill_diagonal(correlation_matrix, 1.0)
    return correlation_matrix


def upper_triangle(correlation_matrix: np.ndarray) -> UpperTriangularMatrix:
    """Flatten a square correlation matrix to its strict upper triangle."""
    return UpperTriangularMatrix.from_square(correlation_matrix)


def correlation_upper_triangle(
    data: np.ndarray,
    method: CorrelationMethod = "pearson",
    chunk_size: int = 500,
    verbose: bool = False,
) -> UpperTriangularMatrix:
    """Correlate the rows of ``data`` and return the flat upper triangle."""
    return upper_triangle(
        compute_correlation_matrix_chunked(data, chunk_size=chunk_size, method=method,
                                           verbose=verbose)
    )
