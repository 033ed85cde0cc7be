"""
Watermark engine: runs the selected codecs over one image.

embed() writes the same length-prefixed message with every enabled codec, in
the order DCT, DWT, spatial. Later codecs may overwrite pixels touched by
earlier ones; no attempt is made to arbitrate between them.

extract() runs every enabled codec independently, screens each recovered
text for plausibility and never lets one codec's failure stop the others.
fuse() picks the text most codecs agree on.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

import numpy as np

from decode_quality import is_likely_noise
from message_bits import (
    HEADER_BITS, MAX_MESSAGE_BYTES, bits_to_text, declared_length, text_to_bits, total_bit_count,
)
from pixel_buffer import as_pixel_buffer, load_pixels, save_pixels
from robust_watermark import FrequencyCodec, WaveletCodec
from spread_spectrum import SpatialCodec
from watermark_errors import CapacityExceeded, InvalidDimensions, ParameterInvalid, WatermarkError

logger = logging.getLogger(__name__)

DEFAULT_SEED = 'rbwm'
DEFAULT_STRENGTH = 6


class Algorithm(Enum):
    """Available watermark codecs."""

    SPATIAL = "spatial"
    DCT = "dct"
    DWT = "dwt"

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ParameterInvalid(f"Unknown algorithm: {value!r}")


EMBED_ORDER = (Algorithm.DCT, Algorithm.DWT, Algorithm.SPATIAL)


class ExtractionStatus(Enum):
    OK = "ok"
    NO_WATERMARK = "no watermark found"
    IMPLAUSIBLE = "decoded but implausible"
    CAPACITY_INSUFFICIENT = "capacity insufficient"
    FAILED = "failed"


def parse_algorithms(value):
    """Accept 'dct,dwt', ['dct', 'dwt'] or Algorithm members."""
    if isinstance(value, (str, Algorithm)):
        value = str(value.value if isinstance(value, Algorithm) else value).split(',')
    algorithms = [Algorithm.parse(item) for item in value if str(item).strip()]
    if not algorithms:
        raise ParameterInvalid("At least one algorithm must be enabled")
    return tuple(a for a in EMBED_ORDER if a in algorithms)


@dataclass(frozen=True)
class WatermarkParameters:
    """
    Settings for one embed or extract call.

    Attributes:
        seed: PRNG seed for the spatial codec (string or integer)
        strength: Biasing magnitude, > 0
        repeat: Explicit spread factor for the spatial codec, derived when None
        algorithms: Enabled codecs
        forced_length: Payload byte length to use instead of the header
        dct_policy: 'difference' or 'quantize'
        dwt_policy: 'additive' or 'quantize'
        channel: None for luma, or 0/1/2 to work on a single channel
    """

    seed: Union[str, int] = DEFAULT_SEED
    strength: float = DEFAULT_STRENGTH
    repeat: Optional[int] = None
    algorithms: Tuple[Algorithm, ...] = EMBED_ORDER
    forced_length: Optional[int] = None
    dct_policy: str = 'difference'
    dwt_policy: str = 'additive'
    channel: Optional[int] = None

    def __post_init__(self):
        if self.algorithms:
            object.__setattr__(self, 'algorithms', parse_algorithms(self.algorithms))
        else:
            object.__setattr__(self, 'algorithms', ())

    def validate(self):
        if isinstance(self.seed, bool) or not isinstance(self.seed, (str, int)):
            raise ParameterInvalid("Seed must be a string or integer")
        if self.seed == '':
            raise ParameterInvalid("Seed must not be empty")
        if isinstance(self.strength, bool) or not isinstance(self.strength, (int, float)):
            raise ParameterInvalid(f"Strength must be a number, got {self.strength!r}")
        if not self.strength > 0:
            raise ParameterInvalid(f"Strength must be positive, got {self.strength}")
        if self.repeat is not None and (not isinstance(self.repeat, int) or self.repeat < 1):
            raise ParameterInvalid(f"Repeat must be an integer >= 1, got {self.repeat!r}")
        if not self.algorithms:
            raise ParameterInvalid("At least one algorithm must be enabled")
        if self.forced_length is not None and (
                isinstance(self.forced_length, bool) or not isinstance(self.forced_length, int)):
            raise ParameterInvalid(f"Forced length must be an integer, got {self.forced_length!r}")
        if self.forced_length is not None and not 0 <= self.forced_length <= MAX_MESSAGE_BYTES:
            raise ParameterInvalid(f"Forced length out of range: {self.forced_length}")
        if self.dct_policy not in FrequencyCodec.POLICIES:
            raise ParameterInvalid(f"Unknown DCT policy: {self.dct_policy}")
        if self.dwt_policy not in WaveletCodec.POLICIES:
            raise ParameterInvalid(f"Unknown DWT policy: {self.dwt_policy}")
        if self.channel not in (None, 0, 1, 2):
            raise ParameterInvalid(f"Channel must be 0, 1, 2 or None, got {self.channel}")
        return self

    @property
    def bit_count(self):
        """Bits to read when a payload length is forced, else None."""
        if self.forced_length:
            return HEADER_BITS + 8 * self.forced_length
        return None

    @classmethod
    def from_mapping(cls, data):
        """Build parameters from JSON or command-line values."""
        kwargs = {}
        try:
            if data.get('seed') not in (None, ''):
                kwargs['seed'] = data['seed']
            if data.get('strength') not in (None, ''):
                kwargs['strength'] = float(data['strength'])
            if data.get('repeat') not in (None, '', 0, '0'):
                kwargs['repeat'] = int(data['repeat'])
            if data.get('algorithms'):
                kwargs['algorithms'] = parse_algorithms(data['algorithms'])
            if data.get('length') not in (None, '', 0, '0'):
                kwargs['forced_length'] = int(data['length'])
            for key in ('dct_policy', 'dwt_policy'):
                if data.get(key):
                    kwargs[key] = data[key]
            if data.get('channel') not in (None, ''):
                kwargs['channel'] = int(data['channel'])
        except ParameterInvalid:
            raise
        except (TypeError, ValueError) as e:
            raise ParameterInvalid(f"Invalid parameter: {e}")
        return cls(**kwargs).validate()


@dataclass
class Notice:
    """A warning for the caller to show as status text."""

    algorithm: Algorithm
    kind: str
    message: str

    def __str__(self):
        return f"{self.algorithm.name}: {self.message}"


@dataclass
class EmbedResult:
    pixels: np.ndarray
    bits: List[int]
    notices: List[Notice] = field(default_factory=list)


@dataclass
class ExtractionResult:
    """
    Outcome of one codec's extraction.

    Attributes:
        algorithm: Codec that produced it
        text: Recovered text ('' when nothing decodes)
        bits: Raw bits read, header included
        status: What the caller should report
        plausible: False when the text looks like noise
        error: Failure message for skipped codecs
    """

    algorithm: Algorithm
    text: str = ''
    bits: List[int] = field(default_factory=list)
    status: ExtractionStatus = ExtractionStatus.NO_WATERMARK
    plausible: bool = False
    error: Optional[str] = None

    @property
    def ok(self):
        return self.status == ExtractionStatus.OK


def build_codec(algorithm, params):
    if algorithm == Algorithm.SPATIAL:
        return SpatialCodec(params.seed, params.strength, params.repeat)
    if algorithm == Algorithm.DCT:
        return FrequencyCodec(params.strength, params.dct_policy, params.channel)
    return WaveletCodec(params.strength, params.dwt_policy, params.channel)


def capacity_report(shape, params=None):
    """Capacity in bits of every enabled codec for an image shape."""
    params = (params or WatermarkParameters()).validate()
    report = {}
    for algorithm in params.algorithms:
        bits = build_codec(algorithm, params).capacity(shape)
        report[algorithm.value] = {
            'bits': bits,
            'max_bytes': max(0, (bits - HEADER_BITS) // 8),
        }
    return report


def check_capacity(shape, bits, params):
    """Notices for every codec that cannot hold `bits` on this image."""
    notices = []
    for algorithm in params.algorithms:
        capacity = build_codec(algorithm, params).capacity(shape)
        if len(bits) > capacity:
            notices.append(Notice(
                algorithm, 'capacity',
                f"capacity {capacity} bits, message needs {len(bits)}; "
                f"{len(bits) - capacity} trailing bits will be dropped",
            ))
    return notices


def embed(pixels, message, params=None, strict=False):
    """
    Watermark `message` into a copy of `pixels` with every enabled codec.

    Payloads that do not fit a codec are truncated with a notice, or raise
    CapacityExceeded before anything is written when `strict` is set. A
    codec that cannot even hold the 16-bit header is skipped.
    """
    params = (params or WatermarkParameters()).validate()
    bits = text_to_bits(message)
    out = as_pixel_buffer(pixels)

    if strict:
        shortfall = check_capacity(out.shape, bits, params)
        if shortfall:
            raise CapacityExceeded(
                '; '.join(str(n) for n in shortfall),
                {'bits': len(bits), 'algorithms': [n.algorithm.value for n in shortfall]},
            )

    notices = []
    for algorithm in params.algorithms:
        codec = build_codec(algorithm, params)
        capacity = codec.capacity(out.shape)
        if capacity < HEADER_BITS:
            notice = Notice(algorithm, 'dimensions',
                            f"image {out.shape[1]}x{out.shape[0]} too small, skipped")
            logger.warning(str(notice))
            notices.append(notice)
            continue
        try:
            written = codec.embed(out, bits)
        except InvalidDimensions as e:
            notices.append(Notice(algorithm, 'dimensions', f"{e}, skipped"))
            logger.warning("%s skipped: %s", algorithm.name, e)
            continue
        if written < len(bits):
            notice = Notice(algorithm, 'capacity',
                            f"wrote {written} of {len(bits)} bits, message truncated")
            logger.warning(str(notice))
            notices.append(notice)

    return EmbedResult(out, bits, notices)


def extract_one(pixels, algorithm, params):
    """Run a single codec; failures are reported in the result."""
    result = ExtractionResult(algorithm)
    codec = build_codec(algorithm, params)
    if codec.capacity(pixels.shape) < HEADER_BITS:
        result.status = ExtractionStatus.CAPACITY_INSUFFICIENT
        result.error = f"image {pixels.shape[1]}x{pixels.shape[0]} too small"
        return result
    try:
        bits = codec.extract(pixels, params.bit_count)
    except InvalidDimensions as e:
        result.status = ExtractionStatus.CAPACITY_INSUFFICIENT
        result.error = str(e)
        return result
    except WatermarkError as e:
        result.status = ExtractionStatus.FAILED
        result.error = str(e)
        return result

    result.bits = bits
    if declared_length(bits) is None:
        return result

    result.text = bits_to_text(bits, params.forced_length)
    result.plausible = not is_likely_noise(result.text)
    expected = params.bit_count or total_bit_count(bits)
    if len(bits) < expected:
        result.status = ExtractionStatus.CAPACITY_INSUFFICIENT
        result.error = f"expected {expected} bits, only {len(bits)} readable"
    elif not result.text:
        result.status = ExtractionStatus.NO_WATERMARK
    elif result.plausible:
        result.status = ExtractionStatus.OK
    else:
        result.status = ExtractionStatus.IMPLAUSIBLE
    return result


def extract(pixels, params=None):
    """Run every enabled codec's extraction over one image."""
    params = (params or WatermarkParameters()).validate()
    pixels = as_pixel_buffer(pixels)
    results = [extract_one(pixels, algorithm, params) for algorithm in params.algorithms]
    for result in results:
        logger.info("%s extraction: %s", result.algorithm.name, result.status.value)
    return results


def fuse(results):
    """
    Text recovered identically by the most codecs.

    Partial reads cut short by capacity do not vote. Returns None when
    nothing was recovered or the top count is tied.
    """
    counts = Counter(
        r.text for r in results
        if r.text and r.status != ExtractionStatus.CAPACITY_INSUFFICIENT
    )
    if not counts:
        return None
    ranked = counts.most_common()
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return None
    return ranked[0][0]


def describe(results):
    """Status lines, one per codec."""
    lines = []
    for r in results:
        if r.status == ExtractionStatus.OK:
            lines.append(f"{r.algorithm.name}: {r.text}")
        elif r.error:
            lines.append(f"{r.algorithm.name}: {r.status.value} ({r.error})")
        else:
            lines.append(f"{r.algorithm.name}: {r.status.value}")
    return lines


def encode_image(image_path, message, output_path, params=None, strict=False):
    """Watermark an image file and save the result."""
    result = embed(load_pixels(image_path), message, params, strict=strict)
    save_pixels(result.pixels, output_path)
    return result


def decode_image(image_path, params=None):
    """Extract from an image file. Returns (results, consensus text or None)."""
    results = extract(load_pixels(image_path), params)
    return results, fuse(results)
