"""
Mutable weighted gene graph with live vertex/edge removal.

The triple-link clustering consumes its graph destructively: edges are removed
as soon as they have contributed evidence, and vertices are removed once they
join a cluster or can no longer join one. The graph therefore has to support
cheap removal while a caller is scanning a vertex's incident edges, and lookup
of a vertex by its gene index after that index sat in a queue for a while.

Engineering Design:
    - Arena layout: vertices keyed by gene index, edges keyed by an integer
      handle that is never reused. Both endpoints reference an edge by handle,
      so removing it from the arena invalidates both sides at once.
    - Insertion ordered: Python dicts keep insertion order, which gives a
      deterministic "first edge" for scans and tie-breaking.
    - Fail fast: broken cross-references raise GraphInvariantError instead of
      being repaired silently.

Examples:
    >>> from triplelink.core.graph import WeightedGraph, GeneRecord
    >>> graph = WeightedGraph()
    >>> for i in range(3):
    ...     graph.add_vertex(GeneRecord(i))
    >>> edge = graph.add_edge(0, 1, weight=3)
    >>> graph.find_vertex(1).degree
    1
    >>> graph.remove_edge(edge)
    >>> graph.n_edges
    0
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional
import logging

import networkx as nx

logger = logging.getLogger(__name__)

__all__ = [
    'GraphInvariantError',
    'LinkMarkers',
    'GeneRecord',
    'Edge',
    'Vertex',
    'WeightedGraph',
]


class GraphInvariantError(RuntimeError):
    """Raised when a graph operation would break vertex/edge cross-references."""
    pass


@dataclass
class LinkMarkers:
    """
    Transient evidence flags accumulated for one gene during a clustering iteration.

    Attributes:
        high_link: An edge at or above the high cutoff has been observed
        med_link: An edge at or above the medium cutoff has been observed
        low_link: Any further edge has been observed
    """
    high_link: bool = False
    med_link: bool = False
    low_link: bool = False

    def reset(self) -> None:
        self.high_link = False
        self.med_link = False
        self.low_link = False

    def mark(self, weight: int, high_cutoff: int, med_cutoff: int) -> bool:
        """
        Record one edge observation, setting at most one marker.

        Markers are tried in strict priority: high (if unset and weight clears
        the high cutoff), then medium (if unset and weight clears the medium
        cutoff), then low (if unset, regardless of weight).

        Returns:
            True if a marker changed.
        """
        if not self.high_link and weight >= high_cutoff:
            self.high_link = True
        elif not self.med_link and weight >= med_cutoff:
            self.med_link = True
        elif not self.low_link:
            self.low_link = True
        else:
            return False
        return True

    def as_tuple(self) -> tuple[bool, bool, bool]:
        return (self.high_link, self.med_link, self.low_link)


@dataclass
class GeneRecord:
    """A gene identity (position in the gene-name ordering) plus its link markers."""
    index: int
    markers: LinkMarkers = field(default_factory=LinkMarkers)


@dataclass(eq=False)
class Edge:
    """
    Undirected weighted edge between two gene indices.

    Attributes:
        id: Arena handle, unique for the lifetime of the graph
        u: First endpoint (gene index)
        v: Second endpoint (gene index)
        weight: Quantized correlation strength (sigma band)
    """
    id: int
    u: int
    v: int
    weight: int

    def other(self, index: int) -> int:
        """Return the endpoint opposite to ``index``."""
        if index == self.u:
            return self.v
        if index == self.v:
            return self.u
        raise GraphInvariantError(
            f"Gene {index} is not an endpoint of edge {self.id} ({self.u}, {self.v})"
        )


class Vertex:
    """
    Graph vertex wrapping a GeneRecord and its incident edges.

    Incident edges are kept in insertion order. Callers that remove edges
    while scanning must restart their scan from ``first_edge()``.
    """

    __slots__ = ('record', '_edges')

    def __init__(self, record: GeneRecord):
        self.record = record
        self._edges: Dict[int, Edge] = {}

    @property
    def index(self) -> int:
        return self.record.index

    @property
    def markers(self) -> LinkMarkers:
        return self.record.markers

    @property
    def degree(self) -> int:
        return len(self._edges)

    @property
    def edges(self) -> List[Edge]:
        """Snapshot of incident edges in insertion order."""
        return list(self._edges.values())

    def iter_edges(self) -> Iterator[Edge]:
        """Live iterator over incident edges; do not remove edges while it is open."""
        return iter(self._edges.values())

    def first_edge(self) -> Optional[Edge]:
        return next(iter(self._edges.values()), None)

    def owns(self, edge: Edge) -> bool:
        return self._edges.get(edge.id) is edge

    def __repr__(self) -> str:
        return f"Vertex(index={self.index}, degree={self.degree})"


class WeightedGraph:
    """
    Arena-backed undirected graph of gene vertices with integer edge weights.

    Invariants:
        - Every edge's endpoints are live vertices of this graph
        - Every vertex's incident edges are live edges of this graph
        - No self-loops

    Vertices and edges are only ever removed once clustering starts; removing a
    vertex first removes every edge incident to it.
    """

    def __init__(self) -> None:
        self._vertices: Dict[int, Vertex] = {}
        self._edges: Dict[int, Edge] = {}
        self._next_edge_id = 0

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def n_vertices(self) -> int:
        return len(self._vertices)

    @property
    def n_edges(self) -> int:
        return len(self._edges)

    @property
    def vertices(self) -> List[Vertex]:
        """Snapshot of live vertices in insertion order."""
        return list(self._vertices.values())

    @property
    def edges(self) -> List[Edge]:
        """Snapshot of live edges in insertion order."""
        return list(self._edges.values())

    def iter_edges(self) -> Iterator[Edge]:
        return iter(self._edges.values())

    def find_vertex(self, index: int) -> Optional[Vertex]:
        """
        Look up the live vertex holding gene ``index``.

        Returns None when the gene was never added or has already been
        removed. Queued identities are routinely consumed before they are
        dequeued, so absence is a normal outcome.
        """
        return self._vertices.get(index)

    def __contains__(self, index: int) -> bool:
        return index in self._vertices

    def strongest_edge(self) -> Optional[Edge]:
        """Return the first edge of maximum weight in edge order, or None if edgeless."""
        best: Optional[Edge] = None
        for edge in self._edges.values():
            if best is None or edge.weight > best.weight:
                best = edge
        return best

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add_vertex(self, record: GeneRecord) -> Vertex:
        if record.index in self._vertices:
            raise GraphInvariantError(f"Gene {record.index} already has a vertex")
        vertex = Vertex(record)
        self._vertices[record.index] = vertex
        return vertex

    def add_edge(self, u: int, v: int, weight: int) -> Edge:
        if u == v:
            raise GraphInvariantError(f"Self-loop on gene {u} is not allowed")
        vertex_u = self._vertices.get(u)
        vertex_v = self._vertices.get(v)
        if vertex_u is None or vertex_v is None:
            raise GraphInvariantError(f"Edge ({u}, {v}) references a missing vertex")

        edge = Edge(self._next_edge_id, u, v, int(weight))
        self._next_edge_id += 1
        self._edges[edge.id] = edge
        vertex_u._edges[edge.id] = edge
        vertex_v._edges[edge.id] = edge
        return edge

    def remove_edge(self, edge: Edge) -> None:
        """
        Detach ``edge`` from both endpoints and release it.

        Raises:
            GraphInvariantError: If either endpoint does not currently own the edge
        """
        vertex_u = self._vertices.get(edge.u)
        vertex_v = self._vertices.get(edge.v)
        if (
            vertex_u is None
            or vertex_v is None
            or not vertex_u.owns(edge)
            or not vertex_v.owns(edge)
            or self._edges.get(edge.id) is not edge
        ):
            raise GraphInvariantError(
                f"Edge {edge.id} ({edge.u}, {edge.v}) is not owned by its endpoints"
            )
        del vertex_u._edges[edge.id]
        del vertex_v._edges[edge.id]
        del self._edges[edge.id]

    def remove_vertex(self, vertex: Vertex) -> None:
        """Remove ``vertex`` and its incident edges; no-op if it is not a live member."""
        if self._vertices.get(vertex.index) is not vertex:
            return
        for edge in vertex.edges:
            self.remove_edge(edge)
        del self._vertices[vertex.index]

    def reset_markers(self) -> None:
        for vertex in self._vertices.values():
            vertex.markers.reset()

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """
        Verify the vertex/edge cross-reference invariants.

        Raises:
            GraphInvariantError: On the first inconsistency found
        """
        for edge in self._edges.values():
            for endpoint in (edge.u, edge.v):
                vertex = self._vertices.get(endpoint)
                if vertex is None or not vertex.owns(edge):
                    raise GraphInvariantError(
                        f"Edge {edge.id} has endpoint {endpoint} that does not own it"
                    )
        for vertex in self._vertices.values():
            for edge in vertex.iter_edges():
                if self._edges.get(edge.id) is not edge:
                    raise GraphInvariantError(
                        f"Vertex {vertex.index} references released edge {edge.id}"
                    )
                if vertex.index not in (edge.u, edge.v):
                    raise GraphInvariantError(
                        f"Vertex {vertex.index} holds foreign edge {edge.id}"
                    )

    # ------------------------------------------------------------------
    # NetworkX interop
    # ------------------------------------------------------------------

    def to_networkx(self) -> nx.Graph:
        """Export live vertices and edges as an ``nx.Graph`` with ``weight`` attributes."""
        G = nx.Graph()
        G.add_nodes_from(self._vertices)
        G.add_weighted_edges_from((e.u, e.v, e.weight) for e in self._edges.values())
        return G

    @classmethod
    def from_networkx(cls, G: nx.Graph, weight: str = 'weight') -> 'WeightedGraph':
        """
        Build a WeightedGraph from an ``nx.Graph`` whose nodes are integer gene indices.

        Edges without the weight attribute get weight 0. Edge order follows
        ``G.edges()``.
        """
        graph = cls()
        for node in G.nodes():
            graph.add_vertex(GeneRecord(int(node)))
        for u, v, data in G.edges(data=True):
            graph.add_edge(int(u), int(v), int(data.get(weight, 0)))
        return graph

    def __repr__(self) -> str:
        return f"WeightedGraph(n_vertices={self.n_vertices}, n_edges={self.n_edges})"
