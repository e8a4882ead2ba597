"""
triplelink - Triple-link clustering of co-expressed genes.

Genes become vertices of a sparse graph whose edges keep, for every gene, its
strongest correlations quantized into sigma bands. Weakly linked genes are
pruned and clusters are grown from the strongest remaining edge by admitting
genes with single, double and finally triple links into the cluster.

Examples:
    >>> from triplelink import ClusteringConfig, discover_modules
    >>> from triplelink.utils import correlation_upper_triangle
    >>> matrix = correlation_upper_triangle(expression)
    >>> result = discover_modules(matrix, gene_names, ClusteringConfig(keep_top_n=10))
    >>> len(result.modules)
    12
"""

__version__ = "0.1.0"

from triplelink.core.graph import GraphInvariantError, WeightedGraph
from triplelink.core.matrix import UpperTriangularMatrix
from triplelink.network.builder import GraphBuilder, SigmaBands
from triplelink.clustering.pruning import WeakVertexPruner
from triplelink.clustering.triple_link import Cluster, TripleLinkClusterer, triple_link
from triplelink.cli.config import ClusteringConfig
from triplelink.pipeline import (
    CoexpressionModule,
    ModuleDiscoveryResult,
    discover_modules,
)

__all__ = [
    '__version__',
    'GraphInvariantError',
    'WeightedGraph',
    'UpperTriangularMatrix',
    'GraphBuilder',
    'SigmaBands',
    'WeakVertexPruner',
    'Cluster',
    'TripleLinkClusterer',
    'triple_link',
    'ClusteringConfig',
    'CoexpressionModule',
    'ModuleDiscoveryResult',
    'discover_modules',
]
