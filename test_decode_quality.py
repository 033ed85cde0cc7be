"""
Unit tests for the recovered-text plausibility check.
"""

import pytest

from decode_quality import is_likely_noise, noise_ratio


class TestIsLikelyNoise:

    @pytest.mark.parametrize("text", [
        "hi",
        "Hello, World!",
        "Meet me at noon (bring the map).",
        "你好，世界！",
        "「水印」 ok",
        "abcabc",
    ])
    def test_plausible(self, text):
        assert not is_likely_noise(text)

    def test_forty_percent_control_is_noise(self):
        assert is_likely_noise("abc\x01\x02\x03\x04def")

    def test_thirty_percent_control_is_not_noise(self):
        assert not is_likely_noise("abcd\x01\x02\x03efg")

    def test_boundary_is_inclusive(self):
        assert noise_ratio("abcdefghijklm\x01\x02\x03\x04\x05\x06\x07") == pytest.approx(0.35)
        assert is_likely_noise("abcdefghijklm\x01\x02\x03\x04\x05\x06\x07")
        assert not is_likely_noise("abcdefghijklmn\x01\x02\x03\x04\x05\x06")

    @pytest.mark.parametrize("text", [
        "\x1c\x1d\x1e\x1fabcdef",
        "abcdef\x1c\x1d\x1e\x1f",
        "\x85\x85\x85\x85abcdef",
    ])
    def test_control_characters_at_edges_are_counted(self, text):
        assert noise_ratio(text) == pytest.approx(0.4)
        assert is_likely_noise(text)

    def test_only_whitespace_is_trimmed(self):
        assert noise_ratio(" \u3000abcdef\ufeff ") == 0.0

    def test_replacement_characters(self):
        assert is_likely_noise("ab\ufffd\ufffd")

    def test_uncommon_symbols(self):
        assert is_likely_noise("▓░▒x■")

    def test_degenerate_repetition(self):
        assert is_likely_noise("aaaaaa")
        assert is_likely_noise("ababab")
        assert not is_likely_noise("aaaaa")

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_is_not_judged(self, text):
        assert not is_likely_noise(text)
        assert noise_ratio(text) == 0.0
