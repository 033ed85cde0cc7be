"""
Pixel buffer helpers.

A pixel buffer is a (height, width, channels) uint8 numpy array with 3 (RGB)
or 4 (RGBA) channels. Luma planes are float64 (height, width) matrices derived
from it for the transform codecs and folded back with apply_luma.
"""

import base64
import io

import numpy as np
from PIL import Image

from watermark_errors import ParameterInvalid

LUMA_MILLI = (299, 587, 114)


def as_pixel_buffer(source):
    """Return a fresh uint8 (H, W, 3|4) array from an array or PIL image."""
    if isinstance(source, Image.Image):
        mode = 'RGBA' if source.mode in ('RGBA', 'LA', 'PA') else 'RGB'
        if source.mode == 'P' and 'transparency' in source.info:
            mode = 'RGBA'
        return np.array(source.convert(mode), dtype=np.uint8)

    pixels = np.asarray(source)
    if pixels.ndim == 2:
        pixels = np.stack([pixels] * 3, axis=-1)
    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ParameterInvalid(
            f"Expected an (H, W, 3) or (H, W, 4) pixel array, got shape {pixels.shape}")
    if pixels.dtype != np.uint8:
        pixels = np.clip(np.rint(pixels), 0, 255)
    return np.array(pixels, dtype=np.uint8)


def to_luma(pixels, channel=None):
    """
    Luma plane, or one channel's plane when `channel` is 0, 1 or 2.

    Weights are applied in integer thousandths so a gray pixel's luma is
    exactly its channel value.
    """
    if channel is not None:
        return pixels[:, :, channel].astype(np.float64)
    rgb = pixels[:, :, :3].astype(np.int64)
    return (rgb @ np.array(LUMA_MILLI, dtype=np.int64)) / 1000.0


def apply_luma(pixels, luma, base_luma, channel=None):
    """
    Fold a modified luma plane back into the buffer, in place.

    The clamped luma change is added to R, G and B (or only to `channel`),
    rounded and clamped to [0, 255]. Alpha is left alone.
    """
    delta = np.clip(luma, 0, 255) - base_luma
    if channel is not None:
        plane = pixels[:, :, channel].astype(np.float64) + delta
        pixels[:, :, channel] = np.clip(np.rint(plane), 0, 255).astype(np.uint8)
        return pixels

    rgb = pixels[:, :, :3].astype(np.float64) + delta[:, :, np.newaxis]
    pixels[:, :, :3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    return pixels


def load_pixels(path):
    """Load an image file as a pixel buffer."""
    with Image.open(path) as img:
        img.load()
        return as_pixel_buffer(img)


def to_image(pixels):
    return Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))


def save_pixels(pixels, output_path):
    """Save a pixel buffer, choosing the format from the extension."""
    result = to_image(pixels)
    ext = str(output_path).lower().split('.')[-1]
    if ext == 'webp':
        result.save(output_path, 'WEBP', lossless=True)
    elif ext in ('jpg', 'jpeg'):
        result.convert('RGB').save(output_path, 'JPEG', quality=95)
    else:
        result.save(output_path, 'PNG')
    return result


def decode_image_base64(image_data):
    """Pixel buffer from a base64 string or a data: URL."""
    if ',' in image_data:
        image_data = image_data.split(',', 1)[1]
    try:
        raw = base64.b64decode(image_data)
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            return as_pixel_buffer(img)
    except (ValueError, OSError) as e:
        raise ParameterInvalid(f"Could not read image: {e}")


def encode_png_base64(pixels):
    """PNG data: URL for a pixel buffer."""
    out = io.BytesIO()
    to_image(pixels).save(out, 'PNG')
    encoded = base64.b64encode(out.getvalue()).decode('utf-8')
    return f'data:image/png;base64,{encoded}'
