"""
Seeded pseudo-random streams.

A string seed is hashed with xmur3 into a 32-bit state which drives a
mulberry32 generator. Same seed, same stream, on every platform. Each
embed/extract call must build its own SeededRandom.
"""

import numpy as np

from watermark_errors import ParameterInvalid

MASK32 = 0xFFFFFFFF


def _imul(a, b):
    """32-bit multiply, low word."""
    return (a * b) & MASK32


def _utf16_units(text):
    data = text.encode('utf-16-le', 'surrogatepass')
    return [data[i] | (data[i + 1] << 8) for i in range(0, len(data), 2)]


def xmur3(text):
    """Return a callable yielding 32-bit hashes of text."""
    units = _utf16_units(text)
    h = (1779033703 ^ len(units)) & MASK32
    for code in units:
        h = _imul(h ^ code, 3432918353)
        h = ((h << 13) | (h >> 19)) & MASK32

    def next_hash():
        nonlocal h
        h = _imul(h ^ (h >> 16), 2246822507)
        h = _imul(h ^ (h >> 13), 3266489909)
        h = (h ^ (h >> 16)) & MASK32
        return h

    return next_hash


def seed_to_state(seed):
    """Map a string or integer seed to a 32-bit generator state."""
    if isinstance(seed, bool):
        raise ParameterInvalid("Seed must be a string or integer")
    if isinstance(seed, (int, np.integer)):
        return int(seed) & MASK32
    if not isinstance(seed, str) or seed == '':
        raise ParameterInvalid("Seed must be a non-empty string or an integer")
    return xmur3(seed)()


class SeededRandom:
    """
    mulberry32 stream in [0, 1).

    Draws are consumed strictly in call order; embed and extract must
    issue the same draws in the same order to stay in sync.
    """

    def __init__(self, seed):
        self.seed = seed
        self.state = seed_to_state(seed)

    def next_uint32(self):
        self.state = (self.state + 0x6D2B79F5) & MASK32
        a = self.state
        t = _imul(a ^ (a >> 15), 1 | a)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & MASK32) ^ t
        return (t ^ (t >> 14)) & MASK32

    def random(self):
        return self.next_uint32() / 4294967296

    def randint(self, n):
        """Integer in [0, n)."""
        return int(self.random() * n)

    def sign(self):
        """+1 or -1 with equal odds."""
        return 1 if self.random() > 0.5 else -1

    def draw(self, count):
        """Next `count` uniform draws as a float64 array."""
        return np.fromiter((self.random() for _ in range(count)),
                           dtype=np.float64, count=count)
