"""
Unit tests for weak vertex elimination.

Scientific Validation:
    - Soundness: every surviving gene has degree >= 2, a high edge and a medium edge
    - Fixed point: a second pass removes nothing
    - Cascade: removals that starve neighbours propagate within one call
"""

import random

import pytest

from triplelink.clustering.pruning import WeakVertexPruner, is_weak_vertex, remove_weak_vertices

from conftest import graph_from_edges


class TestIsWeakVertex:

    def test_degree_one_is_weak(self):
        graph = graph_from_edges([(0, 1, 3)])
        assert is_weak_vertex(graph.find_vertex(0), 3, 2)

    def test_isolated_is_weak(self):
        graph = graph_from_edges([], n_vertices=1)
        assert is_weak_vertex(graph.find_vertex(0), 3, 2)

    def test_without_high_edge_is_weak(self):
        graph = graph_from_edges([(0, 1, 2), (0, 2, 2), (0, 3, 1)])
        assert is_weak_vertex(graph.find_vertex(0), 3, 2)

    def test_high_edge_also_counts_as_medium(self):
        """High and medium are checked independently over the incident weights."""
        graph = graph_from_edges([(0, 1, 3), (0, 2, 1)])
        assert not is_weak_vertex(graph.find_vertex(0), 3, 2)

    def test_high_and_medium_edges(self):
        graph = graph_from_edges([(0, 1, 1), (0, 2, 2), (0, 3, 3)])
        assert not is_weak_vertex(graph.find_vertex(0), 3, 2)


class TestWeakVertexPruner:

    def test_four_gene_example_prunes_isolated_gene(self):
        graph = graph_from_edges([(0, 1, 3), (0, 2, 3), (1, 2, 1)], n_vertices=4)
        n_removed = WeakVertexPruner(3, 2).prune(graph)
        assert n_removed == 1
        assert sorted(v.index for v in graph.vertices) == [0, 1, 2]
        assert graph.n_edges == 3

    def test_cascade_along_tail(self):
        """Triangle with a tail 2-3-4: removing 4 leaves 3 with degree one."""
        graph = graph_from_edges([
            (0, 1, 3), (1, 2, 3), (0, 2, 3),
            (2, 3, 3), (3, 4, 3),
        ])
        n_removed = remove_weak_vertices(graph, 3, 2)
        assert n_removed == 2
        assert sorted(v.index for v in graph.vertices) == [0, 1, 2]
        graph.check_invariants()

    def test_cascade_against_vertex_order(self):
        """Path 0-1-2-3: every vertex eventually becomes weak."""
        graph = graph_from_edges([(0, 1, 3), (1, 2, 3), (2, 3, 3)])
        WeakVertexPruner(3, 2).prune(graph)
        assert graph.n_vertices == 0
        assert graph.n_edges == 0

    def test_weak_band_only_graph_is_emptied(self):
        graph = graph_from_edges([(0, 1, 1), (1, 2, 1), (0, 2, 1)])
        WeakVertexPruner(3, 2).prune(graph)
        assert graph.n_vertices == 0

    def test_strong_triangle_survives(self):
        graph = graph_from_edges([(0, 1, 3), (1, 2, 3), (0, 2, 3)])
        assert WeakVertexPruner(3, 2).prune(graph) == 0
        assert graph.n_vertices == 3

    @pytest.mark.parametrize("seed", range(5))
    def test_soundness_and_fixed_point_on_random_graphs(self, seed):
        rng = random.Random(seed)
        edges = [
            (u, v, rng.choice([1, 2, 3]))
            for u in range(30) for v in range(u + 1, 30)
            if rng.random() < 0.1
        ]
        graph = graph_from_edges(edges, n_vertices=30)
        pruner = WeakVertexPruner(3, 2)
        pruner.prune(graph)

        for vertex in graph.vertices:
            weights = [e.weight for e in vertex.edges]
            assert len(weights) >= 2
            assert any(w >= 3 for w in weights)
            assert any(w >= 2 for w in weights)
        assert pruner.prune(graph) == 0
        graph.check_invariants()
