"""
Robust Blind Watermark - command line tool
Hides a short text in an image with spread spectrum, DCT and/or DWT
watermarking, and recovers it with the same seed and strength.
"""

import logging
import sys

from pixel_buffer import load_pixels
from watermark_engine import (
    DEFAULT_SEED, DEFAULT_STRENGTH, WatermarkParameters, capacity_report, decode_image,
    describe, encode_image,
)
from watermark_errors import WatermarkError

USAGE = """Robust Blind Watermark
========================================

Encode:
  rbwm encode <image> <message> [output] [seed] [strength] [algorithms]
Decode:
  rbwm decode <image> [seed] [length] [algorithms]
Capacity:
  rbwm capacity <image> [algorithms]

algorithms is a comma separated subset of spatial,dct,dwt (default: all)

Example:
  rbwm encode photo.png 'Secret!' marked.png mypassword 6 spatial
  rbwm decode marked.png mypassword 0 spatial
"""


def _arg(argv, index, default=None):
    return argv[index] if len(argv) > index else default


def cmd_encode(argv):
    image = argv[2]
    message = argv[3]
    output = _arg(argv, 4, 'watermarked.png')
    params = WatermarkParameters.from_mapping({
        'seed': _arg(argv, 5, DEFAULT_SEED),
        'strength': _arg(argv, 6, DEFAULT_STRENGTH),
        'algorithms': _arg(argv, 7),
    })

    result = encode_image(image, message, output, params)
    for notice in result.notices:
        print(f"⚠ {notice}")
    print(f"✓ Saved to: {output}")
    print(f"✓ Embedded {len(message)} chars ({len(result.bits)} bits) with "
          f"{', '.join(a.value for a in params.algorithms)}")
    print(f"✓ Seed: '{params.seed}', Strength: {params.strength:g}")
    return 0


def cmd_decode(argv):
    image = argv[2]
    params = WatermarkParameters.from_mapping({
        'seed': _arg(argv, 3, DEFAULT_SEED),
        'length': _arg(argv, 4),
        'algorithms': _arg(argv, 5),
    })

    results, consensus = decode_image(image, params)
    for line in describe(results):
        print(f"  {line}")
    for r in results:
        if r.text and not r.plausible:
            print(f"\n[debug] {r.algorithm.name} (likely noise):\n{r.text!r}")

    if consensus is None:
        print("\n✗ No reliable decode")
        return 1
    print(f"\nDecoded: {consensus}")
    return 0


def cmd_capacity(argv):
    image = argv[2]
    params = WatermarkParameters.from_mapping({'algorithms': _arg(argv, 3)})
    pixels = load_pixels(image)
    height, width = pixels.shape[:2]
    print(f"Image: {width}x{height}")
    for name, cap in capacity_report(pixels.shape, params).items():
        print(f"  {name:8s} {cap['bits']:>8,} bits  ~{cap['max_bytes']:,} bytes")
    return 0


COMMANDS = {
    'encode': (cmd_encode, 4),
    'decode': (cmd_decode, 3),
    'capacity': (cmd_capacity, 3),
}


def main(argv=None):
    argv = sys.argv if argv is None else argv
    logging.basicConfig(level=logging.WARNING, format='%(levelname)s %(name)s: %(message)s')

    if len(argv) < 3 or argv[1] not in COMMANDS:
        print(USAGE)
        return 1

    handler, min_args = COMMANDS[argv[1]]
    if len(argv) < min_args:
        print(USAGE)
        return 1

    try:
        return handler(argv)
    except WatermarkError as e:
        print(f"✗ {e}")
        return 2
    except FileNotFoundError as e:
        print(f"✗ {e}")
        return 2


if __name__ == '__main__':
    sys.exit(main())
