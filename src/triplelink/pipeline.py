"""
End-to-end co-expression module discovery with triple-link clustering.

    correlation matrix → GraphBuilder → WeakVertexPruner → TripleLinkClusterer → modules

The orchestrator owns the single graph instance for the duration of a run and
hands it sequentially from builder to pruner to clusterer. Graph statistics
are recorded at each hand-off so a run can be audited afterwards (how many
genes survived top-N retention, how many were pruned as weak, how many
connected components the pruned graph had).

Examples:
    >>> from triplelink.pipeline import discover_modules
    >>> from triplelink.cli.config import ClusteringConfig
    >>> result = discover_modules(ut_matrix, gene_names, ClusteringConfig(keep_top_n=3))
    >>> for module in result.modules:
    ...     print(module.cluster_id, module.genes)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
import logging
import time

import networkx as nx

from triplelink.cli.config import ClusteringConfig
from triplelink.clustering.pruning import WeakVertexPruner
from triplelink.clustering.triple_link import Cluster, TripleLinkClusterer
from triplelink.core.graph import WeightedGraph
from triplelink.core.matrix import UpperTriangularMatrix
from triplelink.network.builder import GraphBuilder

logger = logging.getLogger(__name__)

__all__ = [
    'CoexpressionModule',
    'GraphStatistics',
    'ModuleDiscoveryResult',
    'build_pruned_graph',
    'discover_modules',
]


@dataclass
class CoexpressionModule:
    """
    A triple-link cluster resolved to gene names.

    Attributes:
        cluster_id: 1-based position in extraction order
        genes: Gene names in the order they joined the cluster
        indices: Gene indices matching ``genes``
        seed: Gene names of the seed edge
        seed_weight: Sigma band of the seed edge
    """
    cluster_id: int
    genes: List[str]
    indices: List[int]
    seed: Tuple[str, str]
    seed_weight: int

    @property
    def size(self) -> int:
        return len(self.genes)

    @classmethod
    def from_cluster(
        cls,
        cluster_id: int,
        cluster: Cluster,
        gene_names: Sequence[str],
    ) -> 'CoexpressionModule':
        return cls(
            cluster_id=cluster_id,
            genes=cluster.names(gene_names),
            indices=list(cluster.members),
            seed=(gene_names[cluster.seed[0]], gene_names[cluster.seed[1]]),
            seed_weight=cluster.seed_weight,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'cluster_id': self.cluster_id,
            'size': self.size,
            'seed': f"{self.seed[0]}-{self.seed[1]}",
            'seed_weight': self.seed_weight,
            'genes': ','.join(self.genes),
        }


@dataclass
class GraphStatistics:
    """Vertex/edge counts and connected components of a graph snapshot."""
    n_vertices: int
    n_edges: int
    n_components: int

    @classmethod
    def of(cls, graph: WeightedGraph) -> 'GraphStatistics':
        G = graph.to_networkx()
        n_components = nx.number_connected_components(G) if G.number_of_nodes() else 0
        return cls(graph.n_vertices, graph.n_edges, n_components)

    def to_dict(self) -> Dict[str, int]:
        return {
            'n_vertices': self.n_vertices,
            'n_edges': self.n_edges,
            'n_components': self.n_components,
        }


@dataclass
class ModuleDiscoveryResult:
    """Clusters of one run with the graph statistics recorded along the way."""
    clusters: List[Cluster]
    modules: List[CoexpressionModule]
    built: GraphStatistics
    pruned: GraphStatistics
    elapsed_seconds: float = 0.0
    config: Optional[ClusteringConfig] = None
    parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def n_clustered_genes(self) -> int:
        return sum(c.size for c in self.clusters)

    def summary(self) -> Dict[str, Any]:
        return {
            'parameters': self.config.to_dict() if self.config is not None else self.parameters,
            'graph_built': self.built.to_dict(),
            'graph_pruned': self.pruned.to_dict(),
            'n_clusters': len(self.clusters),
            'n_clustered_genes': self.n_clustered_genes,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
        }


def build_pruned_graph(
    matrix: UpperTriangularMatrix,
    config: ClusteringConfig,
    prune: bool = True,
) -> WeightedGraph:
    """Build the gene graph and (optionally) strip weak vertices."""
    builder = GraphBuilder(config.bands(), config.keep_top_n, n_workers=config.workers)
    graph = builder.build(matrix)
    if prune:
        WeakVertexPruner(config.high_cutoff, config.med_cutoff).prune(graph)
    return graph


def discover_modules(
    matrix: UpperTriangularMatrix,
    gene_names: Sequence[str],
    config: ClusteringConfig,
    progress: bool = False,
) -> ModuleDiscoveryResult:
    """
    Run the full triple-link pipeline on a correlation matrix.

    Args:
        matrix: Upper-triangular correlation matrix
        gene_names: Gene names; position defines gene index
        config: Run parameters (validated here)
        progress: Show a progress bar during clustering

    Returns:
        ModuleDiscoveryResult with clusters in extraction order

    Raises:
        ValueError: If gene_names does not match the matrix or config is invalid
    """
    config.validate()
    if len(gene_names) != matrix.n_genes:
        raise ValueError(
            f"gene_names length ({len(gene_names)}) must match matrix genes ({matrix.n_genes})"
        )

    start_time = time.time()
    builder = GraphBuilder(config.bands(), config.keep_top_n, n_workers=config.workers)
    graph = builder.build(matrix, gene_names)
    built = GraphStatistics.of(graph)

    pruner = WeakVertexPruner(config.high_cutoff, config.med_cutoff)
    pruner.prune(graph)
    pruned = GraphStatistics.of(graph)
    logger.info(
        f"Weak vertex pruning kept {pruned.n_vertices}/{built.n_vertices} genes, "
        f"{pruned.n_edges} edges in {pruned.n_components} components"
    )

    clusterer = TripleLinkClusterer(config.high_cutoff, config.med_cutoff, pruner=pruner)
    clusters = clusterer.cluster(graph, progress=progress)

    modules = [
        CoexpressionModule.from_cluster(i, cluster, gene_names)
        for i, cluster in enumerate(clusters, start=1)
    ]
    return ModuleDiscoveryResult(
        clusters=clusters,
        modules=modules,
        built=built,
        pruned=pruned,
        elapsed_seconds=time.time() - start_time,
        config=config,
    )
