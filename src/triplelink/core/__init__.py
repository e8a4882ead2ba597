"""Core data structures: the mutable gene graph and the upper-triangular correlation matrix."""

from triplelink.core.graph import (
    GraphInvariantError,
    LinkMarkers,
    GeneRecord,
    Edge,
    Vertex,
    WeightedGraph,
)
from triplelink.core.matrix import UpperTriangularMatrix, n_pairs, n_genes_for_pairs

__all__ = [
    'GraphInvariantError',
    'LinkMarkers',
    'GeneRecord',
    'Edge',
    'Vertex',
    'WeightedGraph',
    'UpperTriangularMatrix',
    'n_pairs',
    'n_genes_for_pairs',
]
