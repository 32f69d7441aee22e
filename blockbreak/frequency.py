import string
import sys
from collections import Counter
from typing import Iterator, List, Tuple

IMPOSSIBLE = sys.maxsize

WHITESPACE = "whitespace"
MISC = "misc"

# https://en.wikipedia.org/wiki/Letter_frequency (lowercase letters, plus whitespace and other ASCII)
ENGLISH_FREQ = {
    'a': 0.0609, 'b': 0.0105, 'c': 0.0284, 'd': 0.0292, 'e': 0.1136, 'f': 0.0179,
    'g': 0.0138, 'h': 0.0341, 'i': 0.0544, 'j': 0.0024, 'k': 0.0041, 'l': 0.0292,
    'm': 0.0276, 'n': 0.0544, 'o': 0.0600, 'p': 0.0195, 'q': 0.0024, 'r': 0.0495,
    's': 0.0568, 't': 0.0803, 'u': 0.0243, 'v': 0.0097, 'w': 0.0138, 'x': 0.0024,
    'y': 0.0130, 'z': 0.0003,
    MISC: 0.0657,
    WHITESPACE: 0.1217,
}


def char_class(ch: str) -> str:
    if ch in string.ascii_lowercase:
        return ch
    if ch == " ":
        return WHITESPACE
    return MISC


def score(data: bytes) -> int:
    """
    Distance of the character distribution of `data` from English; lower is better.
    Non-ASCII input, or any control byte other than a newline, scores IMPOSSIBLE.
    """
    if not data:
        return IMPOSSIBLE
    for b in data:
        if b > 0x7f:
            return IMPOSSIBLE
        if b != 0x0a and (b < 0x20 or b == 0x7f):
            return IMPOSSIBLE

    text = bytes(data).decode('ascii').lower()
    counts = Counter(char_class(ch) for ch in text)
    total = 0.0
    for cls, count in counts.items():
        expected = ENGLISH_FREQ.get(cls, 0.0)
        actual = count / len(text)
        total += (expected - actual) ** 2
    return int(1000 * total)


def ranked_bytes() -> List[int]:
    """All 256 byte values, most plausible in English text first."""
    letters = sorted(string.ascii_lowercase, key=lambda ch: ENGLISH_FREQ[ch], reverse=True)
    order = [ord(ch) for ch in letters] + [ord(' ')]
    seen = set(order)
    order += [b for b in range(256) if b not in seen]
    return order


BYTES_BY_FREQ = ranked_bytes()


def ranked_candidates() -> Iterator[Tuple[int, float]]:
    """
    Lazy (byte, expected frequency) pairs in plausibility order.
    Each call starts a fresh sequence so a search can stop early and start over.
    """
    for b in BYTES_BY_FREQ:
        ch = chr(b)
        if ch in string.ascii_lowercase or ch == ' ':
            yield b, ENGLISH_FREQ[char_class(ch)]
        else:
            yield b, 0.0
