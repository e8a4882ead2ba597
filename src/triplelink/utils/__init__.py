"""Utility modules for correlation computation."""

from triplelink.utils.correlation_matrix import (
    compute_correlation_matrix_chunked,
    upper_triangle,
    correlation_upper_triangle,
)

__all__ = [
    'compute_correlation_matrix_chunked',
    'upper_triangle',
    'correlation_upper_triangle',
]
