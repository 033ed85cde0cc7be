"""
Message <-> bit sequence conversion.

Layout: 16-bit big-endian byte length, then the UTF-8 payload, each byte
written most significant bit first.
"""

import logging

from watermark_errors import ParameterInvalid

logger = logging.getLogger(__name__)

HEADER_BITS = 16
MAX_MESSAGE_BYTES = (1 << HEADER_BITS) - 1


def text_to_bits(text):
    """Convert text to a length-prefixed bit list."""
    data = text.encode('utf-8')
    length = len(data)
    if length > MAX_MESSAGE_BYTES:
        raise ParameterInvalid(
            f"Message too long: {length} bytes, max {MAX_MESSAGE_BYTES}",
            {'length': length},
        )

    bits = [(length >> i) & 1 for i in range(HEADER_BITS - 1, -1, -1)]
    for byte in data:
        for i in range(7, -1, -1):
            bits.append((byte >> i) & 1)
    return bits


def declared_length(bits):
    """Read the 16-bit header. Returns None if there are not enough bits."""
    if len(bits) < HEADER_BITS:
        return None
    length = 0
    for i in range(HEADER_BITS):
        length = (length << 1) | (int(bits[i]) & 1)
    return length


def total_bit_count(bits):
    """Header plus payload bit count announced by the header, or 0."""
    length = declared_length(bits)
    if length is None:
        return 0
    return HEADER_BITS + 8 * length


def bits_to_bytes(bits, length):
    """Reassemble up to `length` bytes from the bits after the header."""
    payload = bits[HEADER_BITS:]
    usable = min(length, len(payload) // 8 + (1 if len(payload) % 8 else 0))
    out = bytearray()
    for i in range(usable):
        byte = 0
        for j in range(8):
            k = i * 8 + j
            bit = int(payload[k]) & 1 if k < len(payload) else 0
            byte = (byte << 1) | bit
        out.append(byte)
    return bytes(out)


def bits_to_text(bits, forced_length=None):
    """
    Convert a length-prefixed bit sequence back to text.

    forced_length overrides the header when it is a positive integer, for
    images whose header was damaged. Malformed UTF-8 decodes to ''.
    """
    length = declared_length(bits)
    if length is None:
        return ''
    if isinstance(forced_length, int) and forced_length > 0:
        length = forced_length

    data = bits_to_bytes(bits, length)
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError:
        logger.debug("Payload of %d bytes is not valid UTF-8", len(data))
        return ''
