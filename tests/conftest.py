"""
Pytest configuration and shared fixtures for triplelink tests.

This module provides test data generators and shared fixtures for all test suites.
"""

from typing import List, Tuple

import numpy as np
import pandas as pd
import pytest

from triplelink.core.graph import GeneRecord, WeightedGraph
from triplelink.core.matrix import UpperTriangularMatrix


# A-B, A-C, A-D, B-C, B-D, C-D
FOUR_GENE_NAMES = ["A", "B", "C", "D"]
FOUR_GENE_VALUES = [0.95, 0.92, 0.0, 0.55, 0.0, 0.10]


def generate_planted_modules(
    n_modules: int = 3,
    module_size: int = 6,
    n_noise: int = 10,
    n_samples: int = 60,
    noise_scale: float = 0.15,
    seed: int = 42
) -> Tuple[np.ndarray, List[str], List[List[int]]]:
    """
    Generate a genes x samples expression matrix with planted co-expression modules.

    Args:
        n_modules: Number of modules
        module_size: Genes per module
        n_noise: Independent genes appended after the modules
        n_samples: Number of samples
        noise_scale: Per-gene noise added on top of the module pattern
        seed: Random seed for reproducibility

    Returns:
        (data, gene_names, modules) where modules lists the gene indices of
        each planted module

    Design:
        - Every module shares one standard normal pattern across samples
        - Module genes correlate ~0.98 with each other (three-sigma band)
        - Patterns of different modules and noise genes are independent
    """
    rng = np.random.RandomState(seed)

    n_genes = n_modules * module_size + n_noise
    data = np.empty((n_genes, n_samples))
    modules = []

    for module_idx in range(n_modules):
        module_pattern = rng.randn(n_samples)
        start_idx = module_idx * module_size
        members = list(range(start_idx, start_idx + module_size))
        for gene_idx in members:
            scale = rng.uniform(1.0, 3.0)
            offset = rng.uniform(2.0, 8.0)
            data[gene_idx, :] = offset + scale * (
                module_pattern + noise_scale * rng.randn(n_samples)
            )
        modules.append(members)

    for gene_idx in range(n_modules * module_size, n_genes):
        data[gene_idx, :] = rng.uniform(2.0, 8.0) + rng.randn(n_samples)

    gene_names = [f"GENE_{i:05d}" for i in range(n_genes)]
    return data, gene_names, modules


def graph_from_edges(edges, n_vertices=None) -> WeightedGraph:
    """Build a WeightedGraph from (u, v, weight) triples, keeping the given edge order."""
    nodes = {u for u, _, _ in edges} | {v for _, v, _ in edges}
    if n_vertices is not None:
        nodes |= set(range(n_vertices))
    graph = WeightedGraph()
    for node in sorted(nodes):
        graph.add_vertex(GeneRecord(node))
    for u, v, w in edges:
        graph.add_edge(u, v, w)
    return graph


@pytest.fixture
def four_gene_matrix():
    """Correlation matrix of the four-gene example (A-B .95, A-C .92, B-C .55, C-D .10)."""
    return UpperTriangularMatrix(np.array(FOUR_GENE_VALUES))


@pytest.fixture
def four_gene_names():
    return list(FOUR_GENE_NAMES)


@pytest.fixture
def four_gene_correlation_csv(tmp_path):
    """The four-gene example as a square correlation CSV."""
    square = UpperTriangularMatrix(np.array(FOUR_GENE_VALUES)).to_square()
    df = pd.DataFrame(square, index=FOUR_GENE_NAMES, columns=FOUR_GENE_NAMES)
    path = tmp_path / "correlation.csv"
    df.to_csv(path)
    return path


@pytest.fixture
def two_triangles():
    """Two disjoint triangles with all edges in the high band."""
    return graph_from_edges([
        (0, 1, 3), (1, 2, 3), (0, 2, 3),
        (3, 4, 3), (4, 5, 3), (3, 5, 3),
    ])


@pytest.fixture
def planted_modules():
    return generate_planted_modules()


@pytest.fixture
def planted_expression_csv(tmp_path, planted_modules):
    """Planted-module expression matrix written as CSV (genes x samples)."""
    data, gene_names, modules = planted_modules
    sample_ids = [f"SAMPLE_{i:04d}" for i in range(data.shape[1])]
    df = pd.DataFrame(data, index=pd.Index(gene_names, name="gene"), columns=sample_ids)
    path = tmp_path / "expression.csv"
    df.to_csv(path)
    return path
