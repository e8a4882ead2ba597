"""
Unit tests for the flat upper-triangular correlation matrix.
"""

import numpy as np
import pytest

from triplelink.core.matrix import UpperTriangularMatrix, n_genes_for_pairs, n_pairs


class TestPairIndexing:
    """Pair index <-> gene pair mapping in row-major order."""

    def test_row_major_order(self):
        ut = UpperTriangularMatrix(np.zeros(6))
        assert [ut.pair(k) for k in range(6)] == [
            (0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3)
        ]

    @pytest.mark.parametrize("n", [2, 3, 7, 50])
    def test_pair_and_pair_index_agree(self, n):
        ut = UpperTriangularMatrix(np.zeros(n_pairs(n)))
        rows, cols = ut.pair_indices()
        for k in range(len(ut)):
            i, j = ut.pair(k)
            assert (i, j) == (rows[k], cols[k])
            assert ut.pair_index(i, j) == k
            assert ut.pair_index(j, i) == k

    def test_pair_out_of_range(self):
        ut = UpperTriangularMatrix(np.zeros(3))
        with pytest.raises(IndexError):
            ut.pair(3)

    def test_diagonal_not_stored(self):
        ut = UpperTriangularMatrix(np.zeros(3))
        with pytest.raises(ValueError):
            ut.pair_index(1, 1)

    @pytest.mark.parametrize("n", [2, 3, 7, 50])
    def test_pairs_of_matches_pair(self, n):
        ut = UpperTriangularMatrix(np.zeros(n_pairs(n)))
        rows, cols = ut.pairs_of(np.arange(len(ut)))
        assert list(zip(rows.tolist(), cols.tolist())) == [ut.pair(k) for k in range(len(ut))]

    def test_pairs_of_subset_in_given_order(self):
        ut = UpperTriangularMatrix(np.zeros(6))
        rows, cols = ut.pairs_of(np.array([5, 0, 3]))
        assert rows.tolist() == [2, 0, 1]
        assert cols.tolist() == [3, 1, 2]

    def test_pairs_of_empty(self):
        rows, cols = UpperTriangularMatrix(np.zeros(6)).pairs_of(np.array([], dtype=np.int64))
        assert len(rows) == 0 and len(cols) == 0

    def test_pairs_of_out_of_range(self):
        ut = UpperTriangularMatrix(np.zeros(3))
        with pytest.raises(IndexError):
            ut.pairs_of(np.array([0, 3]))
        with pytest.raises(IndexError):
            ut.pairs_of(np.array([-1]))


class TestConstruction:

    def test_from_square(self):
        corr = np.array([[1.0, 0.9, 0.2],
                         [0.9, 1.0, 0.5],
                         [0.2, 0.5, 1.0]])
        ut = UpperTriangularMatrix.from_square(corr)
        assert ut.n_genes == 3
        np.testing.assert_allclose(ut.values, [0.9, 0.2, 0.5])
        assert ut.get(2, 1) == pytest.approx(0.5)
        np.testing.assert_allclose(ut.to_square(), corr)

    def test_non_triangular_length_raises(self):
        with pytest.raises(ValueError):
            UpperTriangularMatrix(np.zeros(4))

    def test_mismatched_n_genes_raises(self):
        with pytest.raises(ValueError):
            UpperTriangularMatrix(np.zeros(3), n_genes=4)

    def test_non_square_raises(self):
        with pytest.raises(ValueError):
            UpperTriangularMatrix.from_square(np.zeros((2, 3)))

    def test_single_gene(self):
        ut = UpperTriangularMatrix(np.zeros(0), n_genes=1)
        assert ut.n_genes == 1
        assert len(ut) == 0

    def test_n_genes_for_pairs(self):
        assert n_genes_for_pairs(6) == 4
        assert n_genes_for_pairs(1) == 2
        with pytest.raises(ValueError):
            n_genes_for_pairs(5)
