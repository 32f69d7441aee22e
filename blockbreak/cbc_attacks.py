"""
Attacks on AES-CBC: bit-flipping through a chosen-plaintext oracle, and
full plaintext recovery through a padding oracle.
"""
import logging
from typing import Callable

from .ecb_attacks import FILLER, Alignment
from .exceptions import AttackError, BlockSizeError, PaddingError
from .modes import BLOCK_SIZE, split_blocks, xor_bytes
from .oracles import ADMIN_TOKEN
from .padding import validate_unpad

log = logging.getLogger(__name__)


def _first_difference(c1: bytes, c2: bytes, block_size: int) -> int:
    blocks1, blocks2 = split_blocks(c1, block_size), split_blocks(c2, block_size)
    for i, (b1, b2) in enumerate(zip(blocks1, blocks2)):
        if b1 != b2:
            return i
    return min(len(blocks1), len(blocks2))


# -----------------------------------------------------------------------------
# Bit-flipping
# -----------------------------------------------------------------------------

def detect_cbc_alignment(oracle, block_size: int = BLOCK_SIZE) -> Alignment:
    """
    Locate attacker input inside a CBC oracle's plaintext.
    Two inputs that differ only in their last byte give ciphertexts that agree up to
    the block holding that byte, so growing the filler in front shows where the
    block containing the start of the input ends.
    """
    def differs_at(filler_len: int) -> int:
        lead = FILLER * filler_len
        return _first_difference(oracle.encrypt(lead + b"X"), oracle.encrypt(lead + b"Y"), block_size)

    start_block = differs_at(0)
    for filler_len in range(1, block_size + 1):
        if differs_at(filler_len) > start_block:
            if filler_len == block_size:
                alignment = Alignment(0, start_block)
            else:
                alignment = Alignment(filler_len, start_block + 1)
            log.info("CBC alignment: pad_len=%d block_index=%d", alignment.pad_len, alignment.block_index)
            return alignment
    raise AttackError("attacker input never moved into the next block")


def break_cbc_bitflip(oracle, target: bytes = ADMIN_TOKEN, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Smuggle `target` (characters the oracle would quote) into a CBC plaintext.

    Send two blocks of filler. P_i = D_K(C_i) XOR C_{i-1}, so XORing
    (filler XOR target) into the first filler block's ciphertext rewrites the second
    filler block's plaintext to `target`; the first block decrypts to garbage.
    """
    if len(target) > block_size:
        raise ValueError(f"target must fit in one block ({len(target)} > {block_size})")

    alignment = detect_cbc_alignment(oracle, block_size)
    filler = FILLER * block_size
    ciphertext = bytearray(oracle.encrypt(FILLER * alignment.pad_len + filler * 2))

    wanted = target + FILLER * (block_size - len(target))
    delta = xor_bytes(filler, wanted)

    start = alignment.block_index * block_size
    ciphertext[start:start + block_size] = xor_bytes(bytes(ciphertext[start:start + block_size]), delta)
    return bytes(ciphertext)


# -----------------------------------------------------------------------------
# Padding oracle
# -----------------------------------------------------------------------------

def recover_block(check_padding: Callable[[bytes], bool], prev_block: bytes, target_block: bytes,
                  block_size: int = BLOCK_SIZE) -> bytes:
    """
    Recover the plaintext of one block using a CBC PKCS#7 padding oracle.

    Bytes are solved right to left. For byte i the forged predecessor starts as a copy
    of the real one, its tail j > i is forced so that
        I[j] XOR forged[j] == pad        (I = D_K(target_block), pad = block_size - i)
    and every value of forged[i] is tried against check_padding(forged || target_block).
    A hit means I[i] = forged[i] XOR pad, and P[i] = I[i] XOR prev_block[i].

    Only the last byte can see two hits: the forged pad of 1, and a longer valid
    padding that was already there (the block's own padding, or a plaintext ending
    in 02 02). Flipping the byte before it breaks the longer padding and leaves the
    pad of 1 intact, so the hit that still validates is kept. Any other number of
    hits means the oracle is not what we think it is.
    """
    if len(prev_block) != block_size:
        raise BlockSizeError(len(prev_block), block_size)
    if len(target_block) != block_size:
        raise BlockSizeError(len(target_block), block_size)

    intermediate = bytearray(block_size)  # D_K(target_block)
    plaintext = bytearray(block_size)

    for i in range(block_size - 1, -1, -1):
        pad_value = block_size - i

        forged = bytearray(prev_block)
        for j in range(i + 1, block_size):
            forged[j] = intermediate[j] ^ pad_value

        hits = []
        for x in range(256):
            forged[i] = x
            if check_padding(bytes(forged) + target_block):
                hits.append(x)

        if len(hits) == 2 and i > 0:
            # only the pad-1 hit survives a change to the byte before it
            forged[i - 1] ^= 0xff
            confirmed = []
            for x in hits:
                forged[i] = x
                if check_padding(bytes(forged) + target_block):
                    confirmed.append(x)
            hits = confirmed
        if len(hits) != 1:
            raise AttackError(f"{len(hits)} padding candidates for byte {i} (pad={pad_value})")

        intermediate[i] = hits[0] ^ pad_value
        plaintext[i] = intermediate[i] ^ prev_block[i]
        log.debug("pad=%02d i=%02d I=%02x P=%02x", pad_value, i, intermediate[i], plaintext[i])

    return bytes(plaintext)


def padding_oracle_attack(check_padding: Callable[[bytes], bool], iv: bytes, ciphertext: bytes,
                          block_size: int = BLOCK_SIZE) -> bytes:
    """Decrypt a whole CBC ciphertext with nothing but a padding oracle, then strip the padding."""
    blocks = [bytes(iv)] + split_blocks(ciphertext, block_size)
    recovered = bytearray()
    for k in range(1, len(blocks)):
        recovered += recover_block(check_padding, blocks[k - 1], blocks[k], block_size)
        log.info("Recovered block %d/%d", k, len(blocks) - 1)

    try:
        return validate_unpad(bytes(recovered), block_size)
    except PaddingError as e:
        raise AttackError(f"recovered plaintext is not padded correctly ({e})") from e


def break_cbc_padding_oracle(oracle, block_size: int = BLOCK_SIZE) -> bytes:
    return padding_oracle_attack(oracle.check_padding, oracle.iv, oracle.ciphertext, block_size)
