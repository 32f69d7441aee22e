from .exceptions import BlockSizeError, PaddingError

BLOCK_SIZE = 16


def _check_block_size(block_size: int):
    if block_size <= 0 or block_size > 255:
        raise ValueError("block_size must be in 1..255")


def pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Apply PKCS#7 padding.
    Always adds at least one byte; a full block of padding when data is already aligned.
    """
    _check_block_size(block_size)
    pad_len = block_size - (len(data) % block_size)
    return bytes(data) + bytes([pad_len]) * pad_len


def unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Strip PKCS#7 padding WITHOUT checking it.
    Only for data from a trusted source; use validate_unpad everywhere else.
    """
    _check_block_size(block_size)
    if len(data) % block_size != 0:
        raise BlockSizeError(len(data), block_size)
    if not data:
        return b""
    return bytes(data[:len(data) - data[-1]])


def validate_unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Remove PKCS#7 padding after validating it.
    Raises PaddingError for empty or misaligned input, a pad byte of 0 or
    larger than the block size, or trailing bytes that do not all equal the pad byte.
    """
    _check_block_size(block_size)
    if not data:
        raise PaddingError("empty input")
    if len(data) % block_size != 0:
        raise PaddingError(f"length {len(data)} is not a multiple of {block_size}")

    pad_len = data[-1]
    if pad_len < 1 or pad_len > block_size:
        raise PaddingError(f"pad byte {pad_len} out of range 1..{block_size}")

    bad = 0
    for b in data[-pad_len:]:
        bad |= (b ^ pad_len)
    if bad != 0:
        raise PaddingError("pad bytes do not match pad length")

    return unpad(data, block_size)


def is_valid_padding(data: bytes, block_size: int = BLOCK_SIZE) -> bool:
    try:
        validate_unpad(data, block_size)
    except PaddingError:
        return False
    return True
