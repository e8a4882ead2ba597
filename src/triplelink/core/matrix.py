"""
Upper-triangular correlation matrix over unordered gene pairs.

A full gene x gene correlation matrix is symmetric with a unit diagonal, so
only the strictly upper triangle carries information. Storing it flat, row
major over pairs (0,1), (0,2), ..., (0,n-1), (1,2), ... halves the memory
footprint and gives every unordered pair a stable "pair index" that the graph
builder uses for deterministic tie-breaking.

Examples:
    >>> import numpy as np
    >>> from triplelink.core.matrix import UpperTriangularMatrix
    >>> corr = np.array([[1.0, 0.9, 0.2],
    ...                  [0.9, 1.0, 0.5],
    ...                  [0.2, 0.5, 1.0]])
    >>> ut = UpperTriangularMatrix.from_square(corr)
    >>> ut.values
    array([0.9, 0.2, 0.5])
    >>> ut.pair(2)
    (1, 2)
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

__all__ = ['UpperTriangularMatrix', 'n_pairs', 'n_genes_for_pairs']


def n_pairs(n_genes: int) -> int:
    """Number of unordered pairs among ``n_genes`` genes."""
    return n_genes * (n_genes - 1) // 2


def n_genes_for_pairs(length: int) -> int:
    """
    Invert ``n_pairs``.

    Raises:
        ValueError: If ``length`` is not a triangular number
    """
    if length < 0:
        raise ValueError(f"Pair count must be non-negative, got {length}")
    n = (1 + math.isqrt(1 + 8 * length)) // 2
    if n_pairs(n) != length:
        raise ValueError(
            f"Flat matrix length {length} is not n*(n-1)/2 for any gene count n"
        )
    return max(n, 0)


class UpperTriangularMatrix:
    """
    Flat, row-major strict upper triangle of a symmetric correlation matrix.

    Attributes:
        values: 1D float array of length n*(n-1)/2
        n_genes: Number of genes (matrix dimension)

    Shape Invariants:
        - len(values) == n_genes * (n_genes - 1) / 2
    """

    def __init__(self, values: np.ndarray, n_genes: int | None = None):
        values = np.asarray(values, dtype=np.float64)
        if values.ndim != 1:
            raise ValueError(f"values must be 1D, got shape {values.shape}")

        inferred = n_genes_for_pairs(len(values))
        if n_genes is not None and (n_genes < 0 or n_pairs(n_genes) != len(values)):
            raise ValueError(
                f"n_genes={n_genes} does not match flat length {len(values)} "
                f"(expected {n_pairs(n_genes)} values)"
            )
        # Zero and one genes both have no pairs
        self._n_genes = n_genes if n_genes is not None else inferred
        self._values = values

    @classmethod
    def from_square(cls, matrix: np.ndarray) -> 'UpperTriangularMatrix':
        """Extract the strict upper triangle of a square matrix (row major)."""
        matrix = np.asarray(matrix)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"Expected a square matrix, got shape {matrix.shape}")
        n = matrix.shape[0]
        rows, cols = np.triu_indices(n, k=1)
        return cls(matrix[rows, cols], n_genes=n)

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def n_genes(self) -> int:
        return self._n_genes

    def __len__(self) -> int:
        return len(self._values)

    def pair_indices(self) -> Tuple[np.ndarray, np.ndarray]:
        """Row and column gene index of every pair, in pair order."""
        return np.triu_indices(self._n_genes, k=1)

    def pair(self, k: int) -> Tuple[int, int]:
        """Gene indices (i, j), i < j, of pair index ``k``."""
        if not 0 <= k < len(self._values):
            raise IndexError(f"Pair index {k} out of range for {len(self._values)} pairs")
        n = self._n_genes
        # Row i starts at offset i*n - i*(i+1)/2; estimate, then correct rounding
        i = int(n - 2 - math.floor(math.sqrt(-8 * k + 4 * n * (n - 1) - 7) / 2.0 - 0.5))
        i = min(max(i, 0), n - 2)
        while i > 0 and self._row_offset(i) > k:
            i -= 1
        while i < n - 2 and self._row_offset(i + 1) <= k:
            i += 1
        j = k - self._row_offset(i) + i + 1
        return i, j

    def pairs_of(self, pair_ids: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Vectorized ``pair``: row and column gene index of each pair index.

        Only O(n_genes) row offsets are materialized, never the full
        ``pair_indices()`` arrays.
        """
        pair_ids = np.asarray(pair_ids, dtype=np.int64)
        if len(pair_ids) and (pair_ids.min() < 0 or pair_ids.max() >= len(self._values)):
            raise IndexError(f"Pair indices out of range for {len(self._values)} pairs")
        n = self._n_genes
        starts = np.arange(max(n - 1, 0), dtype=np.int64)
        offsets = starts * n - starts * (starts + 1) // 2
        rows = np.searchsorted(offsets, pair_ids, side='right') - 1
        cols = pair_ids - offsets[rows] + rows + 1
        return rows, cols

    def _row_offset(self, i: int) -> int:
        n = self._n_genes
        return i * n - i * (i + 1) // 2

    def pair_index(self, i: int, j: int) -> int:
        """Pair index of unordered gene pair (i, j)."""
        if i == j:
            raise ValueError("Diagonal entries are not stored")
        if i > j:
            i, j = j, i
        n = self._n_genes
        if not 0 <= i < n or not 0 <= j < n:
            raise IndexError(f"Gene pair ({i}, {j}) out of range for {n} genes")
        return i * n - i * (i + 1) // 2 + (j - i - 1)

    def get(self, i: int, j: int) -> float:
        return float(self._values[self.pair_index(i, j)])

    def to_square(self, diagonal: float = 1.0) -> np.ndarray:
        """Expand back to a symmetric square matrix."""
        n = self._n_genes
        square = np.full((n, n), diagonal, dtype=np.float64)
        rows, cols = self.pair_indices()
        square[rows, cols] = self._values
        square[cols, rows] = self._values
        return square

    def __repr__(self) -> str:
        return f"UpperTriangularMatrix(n_genes={self._n_genes}, n_pairs={len(self._values)})"
