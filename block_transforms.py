"""
Block transform kernel shared by the frequency and wavelet codecs.

- 8x8 orthonormal 2-D DCT-II and its inverse
- single-level 2-D Haar transform (average / half-difference) and its inverse

All functions are pure: they return new arrays and never touch their input.
"""

import numpy as np
from scipy.fftpack import dct, idct

BLOCK_SIZE = 8


def dct2(block):
    """2D DCT. Scaling is 0.25 * c(u) * c(v) on 8x8, c(0) = 1/sqrt(2)."""
    block = np.asarray(block, dtype=np.float64)
    return dct(dct(block.T, norm='ortho').T, norm='ortho')


def idct2(coeff):
    """2D inverse DCT."""
    coeff = np.asarray(coeff, dtype=np.float64)
    return idct(idct(coeff.T, norm='ortho').T, norm='ortho')


def iter_blocks(shape, size=BLOCK_SIZE):
    """
    Yield (y, x) origins of the full size x size blocks in raster order.

    A remainder strip narrower than `size` on the right or bottom edge is
    skipped.
    """
    height, width = shape[:2]
    for y in range(0, height - size + 1, size):
        for x in range(0, width - size + 1, size):
            yield y, x


def block_count(shape, size=BLOCK_SIZE):
    height, width = shape[:2]
    return (height // size) * (width // size)


def trim_even(matrix):
    """Drop the last row and/or column when the dimension is odd."""
    height, width = matrix.shape[:2]
    return matrix[:height - height % 2, :width - width % 2]


def haar_dwt2(matrix):
    """
    Single-level 2D Haar transform.

    Rows are averaged/differenced first, then columns. The result has the
    input's shape with the quadrants laid out as

        approximation      | vertical detail
        horizontal detail  | diagonal detail
    """
    m = np.asarray(matrix, dtype=np.float64)
    height, width = m.shape
    if height % 2 or width % 2:
        raise ValueError(f"Haar transform needs even dimensions, got {width}x{height}")

    left, right = m[:, 0::2], m[:, 1::2]
    temp = np.hstack(((left + right) / 2, (left - right) / 2))

    top, bottom = temp[0::2, :], temp[1::2, :]
    return np.vstack(((top + bottom) / 2, (top - bottom) / 2))


def haar_idwt2(coeff):
    """Inverse of haar_dwt2."""
    c = np.asarray(coeff, dtype=np.float64)
    height, width = c.shape
    if height % 2 or width % 2:
        raise ValueError(f"Haar transform needs even dimensions, got {width}x{height}")
    half_h, half_w = height // 2, width // 2

    temp = np.empty_like(c)
    temp[0::2, :] = c[:half_h, :] + c[half_h:, :]
    temp[1::2, :] = c[:half_h, :] - c[half_h:, :]

    out = np.empty_like(c)
    out[:, 0::2] = temp[:, :half_w] + temp[:, half_w:]
    out[:, 1::2] = temp[:, :half_w] - temp[:, half_w:]
    return out


def split_quadrants(coeff):
    """Return (approximation, horizontal, vertical, diagonal) views."""
    height, width = coeff.shape
    half_h, half_w = height // 2, width // 2
    return (
        coeff[:half_h, :half_w],
        coeff[half_h:, :half_w],
        coeff[:half_h, half_w:],
        coeff[half_h:, half_w:],
    )
