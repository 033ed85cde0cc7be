# Shared fixtures for the watermark tests

import numpy as np
import pytest


def make_gray(width, height, level=128, channels=3):
    """Solid gray (H, W, channels) uint8 image; alpha, if any, is opaque."""
    pixels = np.full((height, width, channels), level, dtype=np.uint8)
    if channels == 4:
        pixels[:, :, 3] = 255
    return pixels


@pytest.fixture
def gray_image():
    """Factory for solid mid-gray images."""
    return make_gray


@pytest.fixture
def gray_64():
    return make_gray(64, 64)


@pytest.fixture
def noise_rng():
    return np.random.default_rng(1234)
