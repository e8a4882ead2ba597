"""
Input/output for gene lists, expression and correlation matrices, and cluster reports.
"""

from triplelink.io.loaders import (
    GeneNotFoundError,
    ExpressionData,
    sniff_delimiter,
    load_gene_list,
    load_expression_matrix,
    load_correlation_matrix,
)
from triplelink.io.writers import (
    format_clusters,
    format_edges,
    clusters_to_frame,
    edges_to_frame,
    write_clusters,
    write_edges,
    write_run_summary,
)

__all__ = [
    # Loaders
    'GeneNotFoundError',
    'ExpressionData',
    'sniff_delimiter',
    'load_gene_list',
    'load_expression_matrix',
    'load_correlation_matrix',
    # Writers
    'format_clusters',
    'format_edges',
    'clusters_to_frame',
    'edges_to_frame',
    'write_clusters',
    'write_edges',
    'write_run_summary',
]
