"""
Plausibility check for recovered text.

Extraction always produces *something*; on an unmarked image, or with the
wrong seed, it produces noise. This flags text that looks like noise so the
caller can show it as a diagnostic rather than as the answer.
"""

import re

NOISE_RATIO_LIMIT = 0.35
MIN_REPEAT_LENGTH = 6
MAX_REPEAT_ALPHABET = 2

COMMON_CHAR = re.compile(
    r"[\w\s.,;:!?\"'`~\-()\[\]{}…，。！？【】（）《》、“”‘’·\u4e00-\u9fa5]"
)
REPLACEMENT_CHAR = '\ufffd'

# Whitespace as JavaScript trim() sees it. str.strip() would also drop
# U+001C..U+001F and U+0085, which count as control characters here.
TRIM_CHARS = (
    ' \t\n\x0b\x0c\r\xa0\u1680\u2000\u2001\u2002\u2003\u2004\u2005\u2006'
    '\u2007\u2008\u2009\u200a\u2028\u2029\u202f\u205f\u3000\ufeff'
)


def is_control(ch):
    code = ord(ch)
    return code < 32 or 0x7f <= code <= 0x9f


def is_noisy_char(ch):
    return is_control(ch) or ch == REPLACEMENT_CHAR or not COMMON_CHAR.match(ch)


def noise_ratio(text):
    """Fraction of noisy characters in the stripped text (0.0 when empty)."""
    trimmed = (text or '').strip(TRIM_CHARS)
    if not trimmed:
        return 0.0
    return sum(1 for ch in trimmed if is_noisy_char(ch)) / len(trimmed)


def is_likely_noise(text):
    """True if `text` is more likely decoding noise than a real message."""
    trimmed = (text or '').strip(TRIM_CHARS)
    if not trimmed:
        return False
    if noise_ratio(trimmed) >= NOISE_RATIO_LIMIT:
        return True
    return len(trimmed) >= MIN_REPEAT_LENGTH and len(set(trimmed)) <= MAX_REPEAT_ALPHABET
