"""
Weak vertex elimination for triple-link clustering.

A gene can only ever be captured by a triple-link cluster if it has at least
two incident edges, one of which clears the high cutoff and one of which
clears the medium cutoff. Genes failing that shape are dead weight for the
clustering loop, so they are stripped before the first iteration and again
after every cluster is extracted.

The rule is applied to a fixed point: removing a gene lowers its neighbours'
degrees and can take away their only qualifying edge, so passes repeat until
one of them removes nothing. Each removing pass shrinks the vertex set, which
bounds the number of passes by the vertex count.

Comparison with k-core reduction:
    The degree part of the rule is the 2-core. The edge-strength part is what
    makes this stricter: a vertex of high degree whose edges are all weak is
    removed too.
"""

from __future__ import annotations

import logging

from triplelink.core.graph import Vertex, WeightedGraph

logger = logging.getLogger(__name__)

__all__ = ['WeakVertexPruner', 'is_weak_vertex', 'remove_weak_vertices']


def is_weak_vertex(vertex: Vertex, high_cutoff: int, med_cutoff: int) -> bool:
    """
    True if ``vertex`` cannot satisfy the minimum connectivity of any cluster.

    The high and medium requirements are checked independently over the
    incident weights, so a single edge clearing both cutoffs satisfies both.
    """
    if vertex.degree < 2:
        return True

    high_found = med_found = False
    for edge in vertex.iter_edges():
        if edge.weight >= high_cutoff:
            high_found = True
        if edge.weight >= med_cutoff:
            med_found = True
        if high_found and med_found:
            return False
    return True


class WeakVertexPruner:
    """
    Iteratively remove vertices that no future cluster can capture.

    Attributes:
        high_cutoff: Quantized weight an incident edge must reach for the high requirement
        med_cutoff: Quantized weight an incident edge must reach for the medium requirement
    """

    def __init__(self, high_cutoff: int, med_cutoff: int):
        self.high_cutoff = high_cutoff
        self.med_cutoff = med_cutoff

    def prune(self, graph: WeightedGraph) -> int:
        """
        Prune ``graph`` in place to the fixed point.

        Returns:
            Number of vertices removed
        """
        n_before = graph.n_vertices
        n_passes = 0
        removed_in_pass = True
        while removed_in_pass:
            removed_in_pass = False
            n_passes += 1
            for vertex in graph.vertices:
                if is_weak_vertex(vertex, self.high_cutoff, self.med_cutoff):
                    graph.remove_vertex(vertex)
                    removed_in_pass = True

        n_removed = n_before - graph.n_vertices
        if n_removed > 0:
            logger.debug(
                f"Weak vertex pruning: removed {n_removed}/{n_before} vertices in "
                f"{n_passes} passes -> {graph.n_vertices} vertices, {graph.n_edges} edges"
            )
        return n_removed


def remove_weak_vertices(graph: WeightedGraph, high_cutoff: int, med_cutoff: int) -> int:
    """Functional shortcut for ``WeakVertexPruner(high_cutoff, med_cutoff).prune(graph)``."""
    return WeakVertexPruner(high_cutoff, med_cutoff).prune(graph)
