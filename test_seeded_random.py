"""
Unit tests for the seeded pseudo-random stream.
"""

import numpy as np
import pytest

from seeded_random import SeededRandom, seed_to_state, xmur3
from watermark_errors import ParameterInvalid


class TestSeededRandom:

    def test_same_seed_same_stream(self):
        a = SeededRandom("rbwm-spatial")
        b = SeededRandom("rbwm-spatial")
        assert [a.random() for _ in range(10000)] == [b.random() for _ in range(10000)]

    def test_different_seeds_differ(self):
        a = SeededRandom("rbwm")
        b = SeededRandom("rbwn")
        assert [a.random() for _ in range(20)] != [b.random() for _ in range(20)]

    def test_values_in_unit_interval(self):
        values = SeededRandom("range").draw(5000)
        assert values.shape == (5000,)
        assert values.min() >= 0.0
        assert values.max() < 1.0

    def test_stream_is_roughly_uniform(self):
        values = SeededRandom("uniform").draw(20000)
        assert abs(values.mean() - 0.5) < 0.02

    def test_draw_matches_scalar_calls(self):
        a = SeededRandom(42)
        b = SeededRandom(42)
        assert np.array_equal(a.draw(100), np.array([b.random() for _ in range(100)]))

    def test_randint_and_sign(self):
        rand = SeededRandom("ints")
        ints = [rand.randint(7) for _ in range(1000)]
        assert min(ints) == 0 and max(ints) == 6
        signs = {rand.sign() for _ in range(100)}
        assert signs == {1, -1}

    def test_instances_do_not_share_state(self):
        a = SeededRandom("shared")
        b = SeededRandom("shared")
        first = a.random()
        a.random()
        assert b.random() == first


class TestSeeding:

    def test_integer_seed_is_state(self):
        assert SeededRandom(5).state == 5
        assert seed_to_state(2 ** 32 + 3) == 3

    def test_string_hash_is_order_sensitive(self):
        assert xmur3("ab")() != xmur3("ba")()

    def test_string_hash_uses_whole_string(self):
        assert xmur3("watermark-1")() != xmur3("watermark-2")()

    def test_hash_is_32_bit(self):
        next_hash = xmur3("seed")
        for _ in range(10):
            assert 0 <= next_hash() < 2 ** 32

    @pytest.mark.parametrize("seed", ["", None, 1.5, True])
    def test_invalid_seed(self, seed):
        with pytest.raises(ParameterInvalid):
            SeededRandom(seed)
