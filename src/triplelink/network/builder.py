"""
Correlation matrix to gene graph construction with per-vertex top-N retention.

Converts the upper-triangular correlation matrix into the WeightedGraph the
triple-link clustering consumes. Two reductions keep the graph tractable:

1. Sigma-band quantization: pairs at or below the one-sigma cutoff are dropped;
   every surviving pair gets an integer band (1, 2 or 3) depending on whether
   its correlation clears the one-, two- or three-sigma cutoff.
2. Top-N retention: every gene ranks its candidate edges by raw correlation
   (ties broken by original pair order) and keeps its N strongest. An edge
   survives if EITHER endpoint keeps it, so a gene can end up with more than
   N edges when it sits in the top-N lists of its neighbours.

Parallelism:
    Top-N selection is independent per gene. With ``n_workers > 1`` the genes
    are split into disjoint index ranges processed on a ThreadPoolExecutor
    (numpy releases the GIL in sorting), and a single merge step assembles the
    final edge set. The result is identical to the sequential run.

Examples:
    >>> import numpy as np
    >>> from triplelink.core.matrix import UpperTriangularMatrix
    >>> from triplelink.network.builder import GraphBuilder, SigmaBands
    >>> # A-B, A-C, A-D, B-C, B-D, C-D
    >>> ut = UpperTriangularMatrix(np.array([0.95, 0.92, 0.0, 0.55, 0.0, 0.10]))
    >>> builder = GraphBuilder(SigmaBands(0.3, 0.6, 0.9), keep_top_n=3)
    >>> graph = builder.build(ut)
    >>> sorted((e.u, e.v, e.weight) for e in graph.edges)
    [(0, 1, 3), (0, 2, 3), (1, 2, 1)]
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence
import logging

import numpy as np

from triplelink.core.graph import GeneRecord, WeightedGraph
from triplelink.core.matrix import UpperTriangularMatrix

logger = logging.getLogger(__name__)

__all__ = [
    'HIGH_BAND',
    'MED_BAND',
    'LOW_BAND',
    'SigmaBands',
    'GraphBuilder',
    'build_graph',
]

HIGH_BAND = 3
MED_BAND = 2
LOW_BAND = 1


@dataclass(frozen=True)
class SigmaBands:
    """
    Real-valued correlation cutoffs defining the quantized edge bands.

    Attributes:
        one_sigma: Correlations strictly above this become candidate edges (band 1)
        two_sigma: Correlations at or above this get band 2
        three_sigma: Correlations at or above this get band 3
    """
    one_sigma: float
    two_sigma: float
    three_sigma: float

    def __post_init__(self):
        if not (self.one_sigma < self.two_sigma < self.three_sigma):
            raise ValueError(
                "Sigma cutoffs must satisfy one_sigma < two_sigma < three_sigma, got "
                f"{self.one_sigma}, {self.two_sigma}, {self.three_sigma}"
            )

    @classmethod
    def from_cutoffs(
        cls,
        one_sigma: float,
        three_sigma: float,
        two_sigma: Optional[float] = None,
    ) -> 'SigmaBands':
        """Build bands from one/three sigma, placing two sigma at their midpoint if omitted."""
        if two_sigma is None:
            two_sigma = (one_sigma + three_sigma) / 2.0
        return cls(float(one_sigma), float(two_sigma), float(three_sigma))

    def quantize(self, correlation: float) -> int:
        """Band of a single correlation value (0 when below the one-sigma cutoff)."""
        if correlation >= self.three_sigma:
            return HIGH_BAND
        if correlation >= self.two_sigma:
            return MED_BAND
        if correlation > self.one_sigma:
            return LOW_BAND
        return 0

    def quantize_array(self, correlations: np.ndarray) -> np.ndarray:
        """Vectorized ``quantize`` returning a uint8 array."""
        correlations = np.asarray(correlations, dtype=np.float64)
        bands = np.zeros(correlations.shape, dtype=np.uint8)
        bands[correlations > self.one_sigma] = LOW_BAND
        bands[correlations >= self.two_sigma] = MED_BAND
        bands[correlations >= self.three_sigma] = HIGH_BAND
        return bands


class GraphBuilder:
    """
    Build a WeightedGraph from an upper-triangular correlation matrix.

    Attributes:
        bands: Sigma cutoffs used for candidate selection and quantization
        keep_top_n: Edges each gene keeps from its own ranking
        n_workers: Worker threads for top-N selection (1 = sequential)
    """

    def __init__(self, bands: SigmaBands, keep_top_n: int, n_workers: int = 1):
        if keep_top_n < 1:
            raise ValueError(f"keep_top_n must be >= 1, got {keep_top_n}")
        if n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")
        self.bands = bands
        self.keep_top_n = int(keep_top_n)
        self.n_workers = int(n_workers)

    def select_pairs(self, matrix: UpperTriangularMatrix) -> np.ndarray:
        """
        Pair indices retained by the OR-across-endpoints top-N policy.

        Returns:
            Sorted, unique int64 array of pair indices into ``matrix.values``
        """
        values = matrix.values
        n_genes = matrix.n_genes

        candidates = np.flatnonzero(values > self.bands.one_sigma)
        if len(candidates) == 0:
            return np.empty(0, dtype=np.int64)

        # Each candidate is ranked once by each of its endpoints
        rows, cols = matrix.pairs_of(candidates)
        owners = np.concatenate([rows, cols])
        pair_ids = np.concatenate([candidates, candidates])

        # Sorted by owner, every gene range is a contiguous slice
        order = np.argsort(owners, kind='stable')
        owners = owners[order]
        pair_ids = pair_ids[order]

        n_chunks = max(1, min(self.n_workers, n_genes))
        boundaries = np.linspace(0, n_genes, n_chunks + 1).astype(np.int64)
        cuts = np.searchsorted(owners, boundaries, side='left')
        slices = [slice(start, end) for start, end in zip(cuts[:-1], cuts[1:])]

        if self.n_workers > 1 and len(slices) > 1:
            logger.debug(f"Top-{self.keep_top_n} selection over {len(slices)} gene ranges "
                         f"with {self.n_workers} workers")
            with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
                selections = list(executor.map(
                    lambda part: self._select_range(values, owners[part], pair_ids[part]),
                    slices,
                ))
        else:
            selections = [self._select_range(values, owners[part], pair_ids[part])
                          for part in slices]

        return np.unique(np.concatenate(selections)).astype(np.int64)

    def _select_range(
        self,
        values: np.ndarray,
        owner: np.ndarray,
        pairs: np.ndarray,
    ) -> np.ndarray:
        """Top-N pair indices for every gene in an owner-sorted slice."""
        if len(pairs) == 0:
            return pairs

        # Group by owner, strongest first, original pair order on ties
        order = np.lexsort((pairs, -values[pairs], owner))
        owner = owner[order]
        pairs = pairs[order]

        group_start = np.searchsorted(owner, owner, side='left')
        rank = np.arange(len(owner)) - group_start
        return pairs[rank < self.keep_top_n]

    def build(
        self,
        matrix: UpperTriangularMatrix,
        gene_names: Optional[Sequence[str]] = None,
    ) -> WeightedGraph:
        """
        Construct the gene graph.

        Every gene becomes a vertex (isolated genes included, the weak vertex
        pruner removes them). Retained edges are inserted in ascending pair
        order with their sigma band as weight.

        Args:
            matrix: Upper-triangular correlation matrix
            gene_names: Optional gene names; only used for size validation

        Raises:
            ValueError: If gene_names length does not match the matrix
        """
        if gene_names is not None and len(gene_names) != matrix.n_genes:
            raise ValueError(
                f"gene_names length ({len(gene_names)}) must match matrix genes ({matrix.n_genes})"
            )

        graph = WeightedGraph()
        for index in range(matrix.n_genes):
            graph.add_vertex(GeneRecord(index))

        kept = self.select_pairs(matrix)
        if len(kept):
            rows, cols = matrix.pairs_of(kept)
            weights = self.bands.quantize_array(matrix.values[kept])
            for u, v, w in zip(rows.tolist(), cols.tolist(), weights.tolist()):
                graph.add_edge(u, v, w)

        n_candidates = int(np.count_nonzero(matrix.values > self.bands.one_sigma))
        logger.info(
            f"Built graph: {graph.n_vertices} genes, {graph.n_edges} edges kept "
            f"of {n_candidates} above one-sigma ({self.bands.one_sigma}), top-{self.keep_top_n}"
        )
        return graph


def build_graph(
    matrix: UpperTriangularMatrix,
    one_sigma: float,
    three_sigma: float,
    keep_top_n: int,
    two_sigma: Optional[float] = None,
    n_workers: int = 1,
) -> WeightedGraph:
    """Functional shortcut for ``GraphBuilder(...).build(matrix)``."""
    bands = SigmaBands.from_cutoffs(one_sigma, three_sigma, two_sigma)
    return GraphBuilder(bands, keep_top_n, n_workers=n_workers).build(matrix)
