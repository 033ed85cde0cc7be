"""
Unit tests for the DCT and Haar transform kernel.
"""

import math

import numpy as np
import pytest

from block_transforms import (
    block_count, dct2, haar_dwt2, haar_idwt2, idct2, iter_blocks, split_quadrants, trim_even,
)


def reference_dct2(block):
    """Direct evaluation of the 8x8 DCT-II sum."""
    out = np.zeros((8, 8))
    for u in range(8):
        for v in range(8):
            total = 0.0
            for x in range(8):
                for y in range(8):
                    total += (block[x][y]
                              * math.cos((2 * x + 1) * u * math.pi / 16)
                              * math.cos((2 * y + 1) * v * math.pi / 16))
            cu = 1 / math.sqrt(2) if u == 0 else 1
            cv = 1 / math.sqrt(2) if v == 0 else 1
            out[u][v] = 0.25 * cu * cv * total
    return out


class TestDCT:

    def test_matches_direct_sum(self, noise_rng):
        block = noise_rng.uniform(0, 255, (8, 8))
        assert np.allclose(dct2(block), reference_dct2(block))

    def test_inverse(self, noise_rng):
        block = noise_rng.uniform(0, 255, (8, 8))
        assert np.allclose(idct2(dct2(block)), block)

    def test_constant_block_is_dc_only(self):
        coeff = dct2(np.full((8, 8), 128.0))
        assert coeff[0, 0] == pytest.approx(1024.0)
        coeff[0, 0] = 0
        assert np.allclose(coeff, 0)

    def test_does_not_modify_input(self, noise_rng):
        block = noise_rng.uniform(0, 255, (8, 8))
        before = block.copy()
        idct2(dct2(block))
        assert np.array_equal(block, before)


class TestHaar:

    def test_known_2x2(self):
        coeff = haar_dwt2(np.array([[1.0, 2.0], [3.0, 4.0]]))
        approx, horizontal, vertical, diagonal = split_quadrants(coeff)
        assert approx[0, 0] == pytest.approx(2.5)
        assert vertical[0, 0] == pytest.approx(-0.5)
        assert horizontal[0, 0] == pytest.approx(-1.0)
        assert diagonal[0, 0] == pytest.approx(0.0)

    def test_inverse(self, noise_rng):
        matrix = noise_rng.uniform(0, 255, (10, 16))
        assert np.allclose(haar_idwt2(haar_dwt2(matrix)), matrix)

    def test_quadrant_shapes(self):
        quadrants = split_quadrants(haar_dwt2(np.zeros((6, 10))))
        assert [q.shape for q in quadrants] == [(3, 5)] * 4

    def test_diagonal_coefficient_is_checkerboard(self):
        coeff = np.zeros((4, 4))
        coeff[2, 2] = 1.0
        pixels = haar_idwt2(coeff)
        assert np.array_equal(pixels[:2, :2], [[1, -1], [-1, 1]])
        assert np.count_nonzero(pixels) == 4

    def test_odd_dimensions_rejected(self):
        with pytest.raises(ValueError):
            haar_dwt2(np.zeros((5, 4)))

    def test_trim_even(self):
        assert trim_even(np.zeros((7, 9))).shape == (6, 8)
        assert trim_even(np.zeros((8, 8))).shape == (8, 8)


class TestBlocks:

    def test_raster_order_skips_remainder(self):
        assert list(iter_blocks((20, 17))) == [(0, 0), (0, 8), (8, 0), (8, 8)]
        assert block_count((20, 17, 3)) == 4

    def test_too_small(self):
        assert list(iter_blocks((7, 64))) == []
        assert block_count((7, 64)) == 0
