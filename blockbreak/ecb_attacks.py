"""
Chosen-plaintext attacks on AES-ECB oracles.

Everything here talks to the victim only through `oracle.encrypt(data)`:
block size and mode detection, locating where attacker input lands behind an
unknown prefix, byte-at-a-time recovery of the secret the oracle appends,
and the cut-and-paste forgery of an admin profile.
"""
import logging
from collections import namedtuple
from typing import Dict, Optional, Set

from .exceptions import AttackError
from .frequency import ranked_candidates
from .modes import BLOCK_SIZE, split_blocks
from .oracles import CBC, ECB
from .padding import pad

log = logging.getLogger(__name__)

MIN_BLOCK_SIZE = 8
MAX_BLOCK_SIZE = 64
REPEATS = 3           # identical adjacent chunks needed to call a block size
FILLER = b"A"
MARKERS = (b"\x00", b"\x7f")

# pad_len: attacker bytes needed to finish the block the prefix ends in
# block_index: first block made only of attacker bytes
Alignment = namedtuple("Alignment", ["pad_len", "block_index"])


def prefix_length(alignment: Alignment, block_size: int) -> int:
    return alignment.block_index * block_size - alignment.pad_len


def _block(ciphertext: bytes, index: int, block_size: int) -> bytes:
    return ciphertext[index * block_size:(index + 1) * block_size]


# -----------------------------------------------------------------------------
# Detection
# -----------------------------------------------------------------------------

def detect_ecb(ciphertext: bytes, block_size: int = BLOCK_SIZE) -> bool:
    """ECB leaks equal plaintext blocks as equal ciphertext blocks; CBC essentially never repeats."""
    blocks = split_blocks(ciphertext, block_size)
    return len(set(blocks)) < len(blocks)


def guess_mode(oracle) -> str:
    return ECB if detect_ecb(oracle.ciphertext) else CBC


def _has_repeated_run(ciphertext: bytes, size: int, repeats: int) -> bool:
    chunks = [ciphertext[i:i+size] for i in range(0, len(ciphertext) - size + 1, size)]
    run = 1
    for prev, cur in zip(chunks, chunks[1:]):
        run = run + 1 if cur == prev else 1
        if run >= repeats:
            return True
    return False


def detect_block_size(oracle, max_block_size: int = MAX_BLOCK_SIZE) -> int:
    """
    Feed longer and longer runs of one byte until the ciphertext shows REPEATS
    identical adjacent chunks. The chunk size is the block size, and the
    repetition itself confirms ECB.
    """
    for length in range(1, (REPEATS + 1) * max_block_size):
        ciphertext = oracle.encrypt(FILLER * length)
        for size in range(MIN_BLOCK_SIZE, max_block_size + 1):
            if _has_repeated_run(ciphertext, size, REPEATS):
                log.info("Block size %d detected after %d filler bytes", size, length)
                return size
    raise AttackError(f"no repeated blocks up to block size {max_block_size}; oracle is not ECB")


def _repeats(ciphertext: bytes, block_size: int) -> Set[int]:
    blocks = split_blocks(ciphertext, block_size)
    return {i for i in range(len(blocks) - 1) if blocks[i] == blocks[i + 1]}


def detect_alignment(oracle, block_size: int) -> Alignment:
    """
    Find how many bytes finish off the oracle's hidden prefix.
    Probe with `pad_len` filler bytes followed by two marker blocks; the first pad_len that
    yields two identical adjacent ciphertext blocks puts the markers on a block boundary.
    The repeat must show up at the same index for every marker byte, and that block must
    encrypt differently for each marker: repeats made by the secret itself encrypt the
    same whatever marker was sent.
    """
    for pad_len in range(block_size):
        ciphertexts = [oracle.encrypt(marker * (pad_len + 2 * block_size)) for marker in MARKERS]
        shared = set.intersection(*(_repeats(c, block_size) for c in ciphertexts))
        hits = [i for i in sorted(shared)
                if len({_block(c, i, block_size) for c in ciphertexts}) == len(MARKERS)]
        if hits:
            alignment = Alignment(pad_len, hits[0])
            log.info("Alignment: pad_len=%d block_index=%d (prefix is %d bytes)",
                     alignment.pad_len, alignment.block_index, prefix_length(alignment, block_size))
            return alignment
    raise AttackError("no filler length aligned two identical blocks")


def detect_payload_length(oracle, block_size: int, alignment: Alignment) -> int:
    """
    Length of whatever the oracle appends after the attacker bytes.
    Add attacker bytes one at a time; when the ciphertext grows by a block the
    padding has just become a full block, so prefix + payload + added is block aligned.
    """
    base = len(oracle.encrypt(b""))
    for added in range(1, block_size + 1):
        if len(oracle.encrypt(FILLER * added)) > base:
            length = base - added - prefix_length(alignment, block_size)
            log.info("Payload length %d", length)
            return length
    raise AttackError(f"ciphertext length never grew within {block_size} added bytes")


# -----------------------------------------------------------------------------
# Byte-at-a-time decryption
# -----------------------------------------------------------------------------

def _search_byte(oracle, lead: bytes, known: bytes, target: bytes, block_index: int,
                 block_size: int) -> Optional[int]:
    # most plausible bytes first, stop on the first match
    for candidate, _ in ranked_candidates():
        ciphertext = oracle.encrypt(lead + known + bytes([candidate]))
        if _block(ciphertext, block_index, block_size) == target:
            return candidate
    return None


def _lookup_table(oracle, lead: bytes, known: bytes, block_index: int,
                  block_size: int) -> Dict[bytes, int]:
    # one query carries all 256 candidate blocks back to back
    probe = lead + b"".join(known + bytes([candidate]) for candidate in range(256))
    blocks = split_blocks(oracle.encrypt(probe), block_size)
    return {blocks[block_index + candidate]: candidate for candidate in range(256)}


def break_ecb(oracle, block_size: Optional[int] = None, use_table: bool = False) -> bytes:
    """
    Recover the secret an ECB oracle appends to attacker input, one byte at a time.

    For each next byte, pad so that the unknown byte is the last one of a block whose
    other bytes are already known, encrypt that as the target, then find the candidate
    block (known bytes + guess) with the same ciphertext. Works with or without a
    random prefix in front of the attacker bytes.
    """
    if block_size is None:
        block_size = detect_block_size(oracle)
    alignment = detect_alignment(oracle, block_size)
    payload_len = detect_payload_length(oracle, block_size, alignment)

    lead = FILLER * alignment.pad_len
    targets = {}
    tables = {}
    recovered = bytearray()
    while len(recovered) < payload_len:
        position = len(recovered)
        filler_len = block_size - 1 - (position % block_size)
        if filler_len not in targets:
            targets[filler_len] = oracle.encrypt(lead + FILLER * filler_len)
        block_index = alignment.block_index + position // block_size
        target = _block(targets[filler_len], block_index, block_size)

        known = (FILLER * (block_size - 1) + bytes(recovered))[-(block_size - 1):]
        if use_table:
            if known not in tables:
                tables[known] = _lookup_table(oracle, lead, known, alignment.block_index, block_size)
            byte = tables[known].get(target)
        else:
            byte = _search_byte(oracle, lead, known, target, alignment.block_index, block_size)
        if byte is None:
            raise AttackError(f"no candidate matched byte {position}")

        recovered.append(byte)
        log.debug("Recovered byte %d/%d: %r", position + 1, payload_len, bytes([byte]))

    log.info("Recovered %d bytes with %d oracle queries", len(recovered), getattr(oracle, "queries", -1))
    return bytes(recovered)


# -----------------------------------------------------------------------------
# Cut-and-paste
# -----------------------------------------------------------------------------

def break_ecb_cut_paste(oracle, block_size: Optional[int] = None, current: bytes = b"user",
                        wanted: bytes = b"admin") -> bytes:
    """
    Forge a profile ciphertext whose last field reads `wanted` instead of `current`.

    1. Put `wanted` + PKCS#7 padding alone in an aligned block and keep its ciphertext.
    2. Choose an email length that leaves `current` (plus padding) alone in the final block.
    3. Swap that final block for the one from step 1.
    """
    if block_size is None:
        block_size = detect_block_size(oracle)
    alignment = detect_alignment(oracle, block_size)
    lead = FILLER * alignment.pad_len

    forged_block = _block(oracle.encrypt(lead + pad(wanted, block_size)), alignment.block_index, block_size)

    trailer_len = detect_payload_length(oracle, block_size, alignment)
    email_len = -(prefix_length(alignment, block_size) + trailer_len - len(current)) % block_size
    ciphertext = oracle.encrypt(FILLER * email_len)
    log.info("Pasting forged block after %d byte email", email_len)
    return ciphertext[:-block_size] + forged_block
