"""
Unit tests for the arena-backed gene graph.

Covers the vertex/edge cross-reference invariants the clustering relies on:
- Edge removal detaches the edge from both endpoints
- Vertex removal takes its incident edges with it
- Removing an already-removed vertex is a no-op, an unowned edge is an error
- Link markers are set in strict priority
"""

import networkx as nx
import pytest

from triplelink.core.graph import (
    Edge,
    GeneRecord,
    GraphInvariantError,
    LinkMarkers,
    WeightedGraph,
)

from conftest import graph_from_edges


class TestLinkMarkers:
    """Test the strict-priority marker update."""

    def test_high_weight_sets_high_first(self):
        markers = LinkMarkers()
        assert markers.mark(3, high_cutoff=3, med_cutoff=2)
        assert markers.as_tuple() == (True, False, False)

    def test_second_high_weight_falls_through_to_medium(self):
        """A high-band edge on a gene that already has a high link counts as medium."""
        markers = LinkMarkers()
        markers.mark(3, 3, 2)
        markers.mark(3, 3, 2)
        assert markers.as_tuple() == (True, True, False)

    def test_low_weight_sets_only_low(self):
        markers = LinkMarkers()
        markers.mark(1, 3, 2)
        assert markers.as_tuple() == (False, False, True)

    def test_medium_weight_never_sets_high(self):
        markers = LinkMarkers()
        markers.mark(2, 3, 2)
        markers.mark(2, 3, 2)
        assert markers.as_tuple() == (False, True, True)

    def test_saturated_markers_report_no_change(self):
        markers = LinkMarkers()
        for _ in range(3):
            markers.mark(3, 3, 2)
        assert markers.as_tuple() == (True, True, True)
        assert not markers.mark(3, 3, 2)

    def test_low_already_set_reports_no_change(self):
        markers = LinkMarkers(low_link=True)
        assert not markers.mark(1, 3, 2)

    def test_reset(self):
        markers = LinkMarkers(True, True, True)
        markers.reset()
        assert markers.as_tuple() == (False, False, False)


class TestEdge:

    def test_other_endpoint(self):
        edge = Edge(0, 2, 5, 3)
        assert edge.other(2) == 5
        assert edge.other(5) == 2

    def test_other_with_foreign_gene_raises(self):
        with pytest.raises(GraphInvariantError):
            Edge(0, 2, 5, 3).other(7)


class TestWeightedGraphMutation:
    """Test insertion and removal keep both sides of every reference consistent."""

    def test_add_edge_links_both_endpoints(self):
        graph = graph_from_edges([(0, 1, 3)])
        edge = graph.edges[0]
        assert graph.find_vertex(0).owns(edge)
        assert graph.find_vertex(1).owns(edge)
        assert graph.n_edges == 1
        graph.check_invariants()

    def test_duplicate_vertex_raises(self):
        graph = WeightedGraph()
        graph.add_vertex(GeneRecord(0))
        with pytest.raises(GraphInvariantError):
            graph.add_vertex(GeneRecord(0))

    def test_self_loop_raises(self):
        graph = graph_from_edges([], n_vertices=2)
        with pytest.raises(GraphInvariantError):
            graph.add_edge(1, 1, 3)

    def test_edge_to_missing_vertex_raises(self):
        graph = graph_from_edges([], n_vertices=2)
        with pytest.raises(GraphInvariantError):
            graph.add_edge(0, 5, 3)

    def test_remove_edge_detaches_both_endpoints(self):
        graph = graph_from_edges([(0, 1, 3), (1, 2, 1)])
        edge = graph.edges[0]
        graph.remove_edge(edge)
        assert graph.n_edges == 1
        assert graph.find_vertex(0).degree == 0
        assert graph.find_vertex(1).degree == 1
        graph.check_invariants()

    def test_remove_edge_twice_raises(self):
        graph = graph_from_edges([(0, 1, 3)])
        edge = graph.edges[0]
        graph.remove_edge(edge)
        with pytest.raises(GraphInvariantError):
            graph.remove_edge(edge)

    def test_remove_vertex_removes_incident_edges(self):
        graph = graph_from_edges([(0, 1, 3), (0, 2, 2), (1, 2, 1)])
        graph.remove_vertex(graph.find_vertex(0))
        assert 0 not in graph
        assert graph.n_vertices == 2
        assert [(e.u, e.v) for e in graph.edges] == [(1, 2)]
        graph.check_invariants()

    def test_remove_vertex_twice_is_noop(self):
        graph = graph_from_edges([(0, 1, 3), (1, 2, 3)])
        vertex = graph.find_vertex(1)
        graph.remove_vertex(vertex)
        graph.remove_vertex(vertex)
        assert graph.n_vertices == 2
        assert graph.n_edges == 0

    def test_find_removed_vertex_returns_none(self):
        graph = graph_from_edges([(0, 1, 3)])
        graph.remove_vertex(graph.find_vertex(0))
        assert graph.find_vertex(0) is None
        assert graph.find_vertex(42) is None

    def test_edge_ids_are_not_reused(self):
        graph = graph_from_edges([(0, 1, 3)])
        first = graph.edges[0]
        graph.remove_edge(first)
        second = graph.add_edge(0, 1, 3)
        assert second.id != first.id

    def test_incident_edges_keep_insertion_order(self):
        graph = graph_from_edges([(0, 3, 1), (0, 1, 3), (0, 2, 2)])
        vertex = graph.find_vertex(0)
        assert [e.other(0) for e in vertex.edges] == [3, 1, 2]
        assert vertex.first_edge().other(0) == 3

    def test_reset_markers(self):
        graph = graph_from_edges([(0, 1, 3)])
        graph.find_vertex(0).markers.mark(3, 3, 2)
        graph.reset_markers()
        assert graph.find_vertex(0).markers.as_tuple() == (False, False, False)


class TestStrongestEdge:

    def test_empty_graph(self):
        assert graph_from_edges([], n_vertices=3).strongest_edge() is None

    def test_first_maximum_wins_ties(self):
        graph = graph_from_edges([(0, 1, 2), (2, 3, 3), (1, 2, 3), (0, 3, 1)])
        edge = graph.strongest_edge()
        assert (edge.u, edge.v) == (2, 3)


class TestNetworkXInterop:

    def test_roundtrip(self):
        G = nx.Graph()
        G.add_nodes_from(range(4))
        G.add_weighted_edges_from([(0, 1, 3), (1, 2, 2)])

        graph = WeightedGraph.from_networkx(G)
        assert graph.n_vertices == 4
        assert graph.n_edges == 2

        H = graph.to_networkx()
        assert set(H.nodes()) == {0, 1, 2, 3}
        assert H[0][1]['weight'] == 3
        assert H[1][2]['weight'] == 2

    def test_missing_weight_defaults_to_zero(self):
        G = nx.Graph()
        G.add_edge(0, 1)
        graph = WeightedGraph.from_networkx(G)
        assert graph.edges[0].weight == 0
