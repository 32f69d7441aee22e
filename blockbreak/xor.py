from itertools import cycle
from typing import Iterable, List, Tuple

from .frequency import IMPOSSIBLE, score


def repeating_key_xor(data: bytes, key: bytes) -> bytes:
    if not key:
        raise ValueError("Key length must be > 0")
    return bytes(a ^ b for a, b in zip(data, cycle(key)))


def hamming_distance(b1: bytes, b2: bytes) -> int:
    """Number of differing bits between two equal-length byte strings."""
    if len(b1) != len(b2):
        raise ValueError("Hamming distance needs inputs of equal length")
    return sum(bin(a ^ b).count("1") for a, b in zip(b1, b2))


# ================================================================
# Single-byte XOR
# ================================================================

def break_single_byte_xor(data: bytes) -> Tuple[int, bytes, int]:
    """Try all 256 keys and keep the decryption that looks most like English.

    Returns (key, plaintext, score).
    """
    best_key, best_plain, best_score = 0, bytes(data), IMPOSSIBLE
    for key in range(256):
        candidate = bytes(b ^ key for b in data)
        candidate_score = score(candidate)
        if candidate_score < best_score:
            best_key, best_plain, best_score = key, candidate, candidate_score
    return best_key, best_plain, best_score


def detect_single_byte_xor(ciphertexts: Iterable[bytes]) -> bytes:
    """Out of many ciphertexts, return the decryption of the one that was single-byte XORed English."""
    best_plain, best_score = b"", IMPOSSIBLE
    for ciphertext in ciphertexts:
        _, plain, plain_score = break_single_byte_xor(ciphertext)
        if plain_score < best_score:
            best_plain, best_score = plain, plain_score
    return best_plain


# ================================================================
# Repeating-key XOR
# ================================================================

def guess_keysize(data: bytes, min_size: int = 2, max_size: int = 40) -> int:
    """
    Key size with the smallest Hamming distance between adjacent chunks,
    normalised by the key size and averaged over every chunk pair available.
    """
    best_size, best_distance = min_size, float('inf')
    for size in range(min_size, max_size + 1):
        chunks = [data[i:i+size] for i in range(0, len(data) - size + 1, size)]
        if len(chunks) < 2:
            break
        pairs = list(zip(chunks, chunks[1:]))
        distance = sum(hamming_distance(a, b) for a, b in pairs) / len(pairs) / size
        if distance < best_distance:
            best_size, best_distance = size, distance
    return best_size


def break_repeating_key_xor_with_keysize(data: bytes, keysize: int) -> bytes:
    # column i holds every byte encrypted with key[i]
    columns = [data[i::keysize] for i in range(keysize)]
    return bytes(break_single_byte_xor(column)[0] for column in columns)


def break_repeating_key_xor(data: bytes, min_size: int = 2, max_size: int = 40) -> Tuple[bytes, bytes]:
    keysize = guess_keysize(data, min_size, max_size)
    key = break_repeating_key_xor_with_keysize(data, keysize)
    return key, repeating_key_xor(data, key)


# ================================================================
# Fixed-nonce CTR
# ================================================================

def break_fixed_nonce_ctr(ciphertexts: List[bytes]) -> List[bytes]:
    """
    Recover plaintexts encrypted in CTR mode under one key and one reused nonce.
    Each ciphertext is cut to the shortest length and the shared keystream is solved as
    repeating-key XOR with key size equal to that length.
    """
    repeat_len = min(len(c) for c in ciphertexts)
    joined = b"".join(c[:repeat_len] for c in ciphertexts)
    keystream = break_repeating_key_xor_with_keysize(joined, repeat_len)
    return [repeating_key_xor(c[:repeat_len], keystream) for c in ciphertexts]
