"""
Spread Spectrum Watermarking
Hides bits by nudging pseudo-randomly chosen pixels up or down according to a
seeded polarity pattern. Each bit is spread over many pixels and recovered by
correlating the pixels' deviation from mid-gray with the same pattern.
"""

import logging

from pixel_buffer import to_luma
from seeded_random import SeededRandom, seed_to_state
from message_bits import HEADER_BITS, total_bit_count
from watermark_errors import ParameterInvalid

logger = logging.getLogger(__name__)

MIN_POSITIONS = 12
MID_LEVEL = 128


def positions_per_bit(pixels, bit_count):
    """Spread factor derived from image size and payload length."""
    return max(MIN_POSITIONS, pixels // max(bit_count, 1) // 6)


class SpatialCodec:
    """
    Spread spectrum embedding in the pixel domain.

    The 16 header bits are spread with a factor derived from the image size
    alone, the payload bits with one derived from the full sequence length.
    An explicit `repeat` replaces both. Either way the header draws never
    depend on the payload length, so an unknown-length extraction can read
    the header first and then replay the full stream with the same draws.
    """

    name = 'spatial'

    def __init__(self, seed, strength=6, repeat=None):
        if strength < 0:
            raise ParameterInvalid(f"Strength must be >= 0, got {strength}")
        if repeat is not None and repeat < 1:
            raise ParameterInvalid(f"Repeat must be >= 1, got {repeat}")
        seed_to_state(seed)
        self.seed = seed
        self.strength = strength
        self.repeat = repeat
        self.amplitude = 0.8 * strength

    def _generator(self):
        return SeededRandom(f"{self.seed}-spatial")

    def spread_for(self, pixels, index, bit_count):
        """Number of positions carrying bit `index` of a `bit_count` sequence."""
        if self.repeat:
            return self.repeat
        if index < HEADER_BITS:
            return positions_per_bit(pixels, HEADER_BITS)
        return positions_per_bit(pixels, bit_count)

    def capacity(self, shape):
        """Most bits whose draws fit inside the image's pixel count."""
        height, width = shape[:2]
        pixels = width * height
        if self.repeat:
            return pixels // self.repeat
        header_draws = HEADER_BITS * positions_per_bit(pixels, HEADER_BITS)
        if header_draws > pixels:
            return 0
        return HEADER_BITS + (pixels - header_draws) // MIN_POSITIONS

    def embed(self, pixels, bits):
        """Embed bits in place. Returns the number of bits written."""
        height, width = pixels.shape[:2]
        total_pixels = width * height
        writable = min(len(bits), self.capacity(pixels.shape))
        rand = self._generator()

        for bit_idx in range(writable):
            sign = 1 if bits[bit_idx] else -1
            for _ in range(self.spread_for(total_pixels, bit_idx, len(bits))):
                pos = rand.randint(total_pixels)
                pn = rand.sign()
                if not self.amplitude:
                    continue
                y, x = divmod(pos, width)
                values = pixels[y, x, :3].astype(float) + self.amplitude * pn * sign
                pixels[y, x, :3] = values.round().clip(0, 255)

        logger.info("Spatial spread spectrum wrote %d of %d bits", writable, len(bits))
        return writable

    def extract_bits(self, pixels, bit_count):
        """Correlate the first `bit_count` bits (capped at capacity)."""
        height, width = pixels.shape[:2]
        total_pixels = width * height
        luma = to_luma(pixels).ravel()
        readable = min(bit_count, self.capacity(pixels.shape))
        rand = self._generator()

        bits = []
        for bit_idx in range(readable):
            accum = 0.0
            for _ in range(self.spread_for(total_pixels, bit_idx, bit_count)):
                pos = rand.randint(total_pixels)
                pn = rand.sign()
                accum += (luma[pos] - MID_LEVEL) * pn
            bits.append(1 if accum > 0 else 0)
        return bits

    def extract(self, pixels, bit_count=None):
        """
        Extract bits. With no bit count, decode the 16-bit length header
        first, then replay the stream from the seed for the whole message.
        """
        if bit_count:
            return self.extract_bits(pixels, bit_count)

        header = self.extract_bits(pixels, HEADER_BITS)
        total_bits = total_bit_count(header)
        if not total_bits:
            return header
        logger.debug("Spatial header announces %d bits", total_bits)
        return self.extract_bits(pixels, total_bits)
