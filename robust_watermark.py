"""
Transform-domain watermarking.

FrequencyCodec carries one bit per 8x8 DCT block of the luma plane.
WaveletCodec carries one bit per diagonal-detail coefficient of a
single-level Haar decomposition. Both extract blind: only the watermarked
image is needed.
"""

import logging

import numpy as np

from block_transforms import (
    BLOCK_SIZE, block_count, dct2, haar_dwt2, haar_idwt2, idct2, iter_blocks,
    split_quadrants, trim_even,
)
from message_bits import total_bit_count
from pixel_buffer import apply_luma, to_luma
from watermark_errors import InvalidDimensions, ParameterInvalid

logger = logging.getLogger(__name__)


def _check_channel(channel):
    if channel is not None and channel not in (0, 1, 2):
        raise ParameterInvalid(f"Channel must be 0, 1, 2 or None, got {channel}")


def _trim_to_header(bits, bit_count):
    """Keep `bit_count` bits, or as many as the length header announces."""
    if bit_count:
        return bits[:bit_count]
    total = total_bit_count(bits)
    return bits[:total] if total else bits


class FrequencyCodec:
    """
    DCT-domain watermarking, one bit per 8x8 block in raster order.

    policy "difference": bias coefficient (2,3) against (3,2) so that their
    difference is at least +delta for a 1 and at most -delta for a 0.
    policy "quantize": snap coefficient (4,3) to a multiple of q and offset
    it by +/- 0.3q.
    """

    name = 'dct'
    POLICIES = ('difference', 'quantize')
    POS_A = (2, 3)
    POS_B = (3, 2)
    POS_Q = (4, 3)

    def __init__(self, strength=6, policy='difference', channel=None):
        if policy not in self.POLICIES:
            raise ParameterInvalid(f"Unknown DCT policy: {policy}")
        if strength < 0 or (policy == 'quantize' and strength <= 0):
            raise ParameterInvalid(f"Invalid DCT strength: {strength}")
        _check_channel(channel)
        self.strength = strength
        self.policy = policy
        self.channel = channel
        self.delta = 2 + strength * 0.8
        self.step = 4 * strength

    def capacity(self, shape):
        return block_count(shape)

    def _check_size(self, shape):
        height, width = shape[:2]
        if height < BLOCK_SIZE or width < BLOCK_SIZE:
            raise InvalidDimensions(
                f"DCT needs at least {BLOCK_SIZE}x{BLOCK_SIZE} pixels, got {width}x{height}",
                {'width': width, 'height': height},
            )

    def _embed_bit(self, coeff, bit):
        if self.policy == 'difference':
            a, b = self.POS_A, self.POS_B
            diff = coeff[a] - coeff[b]
            if bit == 1 and diff < self.delta:
                coeff[a] += self.delta - diff
            elif bit == 0 and diff > -self.delta:
                coeff[b] += diff + self.delta
        else:
            q = self.step
            quantized = round(coeff[self.POS_Q] / q) * q
            coeff[self.POS_Q] = quantized + q * 0.3 if bit == 1 else quantized - q * 0.3

    def _read_bit(self, coeff):
        if self.policy == 'difference':
            return 1 if coeff[self.POS_A] - coeff[self.POS_B] > 0 else 0
        q = self.step
        quantized = round(coeff[self.POS_Q] / q) * q
        return 1 if coeff[self.POS_Q] >= quantized else 0

    def embed(self, pixels, bits):
        """Embed bits in place. Returns the number of bits written."""
        self._check_size(pixels.shape)
        base_luma = to_luma(pixels, self.channel)
        luma = base_luma.copy()

        bit_idx = 0
        for y, x in iter_blocks(luma.shape):
            if bit_idx >= len(bits):
                break
            coeff = dct2(luma[y:y + BLOCK_SIZE, x:x + BLOCK_SIZE])
            self._embed_bit(coeff, bits[bit_idx])
            luma[y:y + BLOCK_SIZE, x:x + BLOCK_SIZE] = idct2(coeff)
            bit_idx += 1

        apply_luma(pixels, luma, base_luma, self.channel)
        logger.info("DCT watermark wrote %d of %d bits", bit_idx, len(bits))
        return bit_idx

    def extract(self, pixels, bit_count=None):
        """Read one bit per block, stopping at `bit_count` if given."""
        self._check_size(pixels.shape)
        luma = to_luma(pixels, self.channel)

        bits = []
        for y, x in iter_blocks(luma.shape):
            bits.append(self._read_bit(dct2(luma[y:y + BLOCK_SIZE, x:x + BLOCK_SIZE])))
            if bit_count and len(bits) >= bit_count:
                break
        return _trim_to_header(bits, bit_count)


class WaveletCodec:
    """
    Haar DWT watermarking in the diagonal-detail quadrant, raster order.

    policy "additive": add +/- 0.75 * strength, read the sign.
    policy "quantize": snap to a multiple of q = 1.5 * strength and offset by
    +/- 0.3q, read the offset's sign.
    Odd trailing rows/columns are trimmed and carry nothing.
    """

    name = 'dwt'
    POLICIES = ('additive', 'quantize')

    def __init__(self, strength=6, policy='additive', channel=None):
        if policy not in self.POLICIES:
            raise ParameterInvalid(f"Unknown DWT policy: {policy}")
        if strength < 0 or (policy == 'quantize' and strength <= 0):
            raise ParameterInvalid(f"Invalid DWT strength: {strength}")
        _check_channel(channel)
        self.strength = strength
        self.policy = policy
        self.channel = channel
        self.delta = 0.75 * strength
        self.step = 1.5 * strength

    def capacity(self, shape):
        height, width = shape[:2]
        return (height // 2) * (width // 2)

    def _check_size(self, shape):
        height, width = shape[:2]
        if height < 2 or width < 2:
            raise InvalidDimensions(
                f"DWT needs at least 2x2 pixels, got {width}x{height}",
                {'width': width, 'height': height},
            )

    def embed(self, pixels, bits):
        """Embed bits in place. Returns the number of bits written."""
        self._check_size(pixels.shape)
        base_luma = to_luma(pixels, self.channel)
        luma = base_luma.copy()

        trimmed = trim_even(luma)
        coeff = haar_dwt2(trimmed)
        diagonal = split_quadrants(coeff)[3]

        written = min(len(bits), diagonal.size)
        rows, cols = np.divmod(np.arange(written), diagonal.shape[1])
        values = np.asarray(bits[:written], dtype=np.int64)
        if self.policy == 'additive':
            diagonal[rows, cols] += np.where(values == 1, self.delta, -self.delta)
        else:
            q = self.step
            quantized = np.round(diagonal[rows, cols] / q) * q
            diagonal[rows, cols] = quantized + np.where(values == 1, 0.3 * q, -0.3 * q)

        height, width = trimmed.shape
        luma[:height, :width] = haar_idwt2(coeff)
        apply_luma(pixels, luma, base_luma, self.channel)
        logger.info("DWT watermark wrote %d of %d bits", written, len(bits))
        return written

    def extract(self, pixels, bit_count=None):
        """Read diagonal coefficients in raster order."""
        self._check_size(pixels.shape)
        coeff = haar_dwt2(trim_even(to_luma(pixels, self.channel)))
        diagonal = split_quadrants(coeff)[3].ravel()
        if bit_count:
            diagonal = diagonal[:bit_count]

        if self.policy == 'additive':
            bits = (diagonal > 0).astype(int).tolist()
        else:
            q = self.step
            bits = (diagonal >= np.round(diagonal / q) * q).astype(int).tolist()
        return _trim_to_header(bits, bit_count)
