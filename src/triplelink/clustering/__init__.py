"""
Triple-link clustering: weak vertex pruning and iterative cluster extraction.
"""

from triplelink.clustering.pruning import (
    WeakVertexPruner,
    is_weak_vertex,
    remove_weak_vertices,
)
from triplelink.clustering.triple_link import (
    Admission,
    Cluster,
    TripleLinkClusterer,
    triple_link,
)

__all__ = [
    'WeakVertexPruner',
    'is_weak_vertex',
    'remove_weak_vertices',
    'Admission',
    'Cluster',
    'TripleLinkClusterer',
    'triple_link',
]
