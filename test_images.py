"""
File round trips through the lossless formats the tools write.
"""

import pytest
from PIL import features

from pixel_buffer import load_pixels, save_pixels
from watermark_engine import WatermarkParameters, decode_image, encode_image

PARAMS = WatermarkParameters(seed='files', algorithms=['spatial'])


@pytest.fixture
def cover(tmp_path, gray_64):
    path = tmp_path / "cover.png"
    save_pixels(gray_64, path)
    return path


@pytest.mark.parametrize("suffix", [
    "png",
    pytest.param("webp", marks=pytest.mark.skipif(
        not features.check('webp'), reason="Pillow built without WebP")),
])
@pytest.mark.parametrize("algorithm", ["spatial", "dwt"])
def test_lossless_round_trip(cover, tmp_path, suffix, algorithm):
    params = WatermarkParameters(seed='files', algorithms=[algorithm])
    output = tmp_path / f"marked.{suffix}"
    encode_image(cover, "hi", output, params)
    results, consensus = decode_image(output, params)
    assert consensus == "hi"
    assert all(r.ok for r in results)


def test_rgba_keeps_alpha(tmp_path, gray_image):
    source = tmp_path / "cover.png"
    output = tmp_path / "marked.png"
    save_pixels(gray_image(64, 64, channels=4), source)

    encode_image(source, "hi", output, PARAMS)
    marked = load_pixels(output)
    assert marked.shape == (64, 64, 4)
    assert (marked[:, :, 3] == 255).all()
    assert decode_image(output, PARAMS)[1] == "hi"
