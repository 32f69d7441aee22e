import os

import pytest

from blockbreak.exceptions import BlockSizeError, PaddingError
from blockbreak.padding import is_valid_padding, pad, unpad, validate_unpad


def test_pad():
    assert pad(bytes.fromhex("74657374696e67")) == bytes.fromhex("74657374696e67090909090909090909")
    assert pad(bytes.fromhex("74657374696e6731")) == bytes.fromhex("74657374696e67310808080808080808")
    assert pad(b"YELLOW SUBMARINE") == b"YELLOW SUBMARINE" + b"\x10" * 16
    assert pad(b"") == b"\x10" * 16
    assert pad(b"YELLOW SUBMARINE", 20) == b"YELLOW SUBMARINE\x04\x04\x04\x04"


def test_unpad():
    assert unpad(bytes.fromhex("74657374696e67090909090909090909")) == bytes.fromhex("74657374696e67")
    assert unpad(bytes.fromhex("74657374696e67310808080808080808")) == bytes.fromhex("74657374696e6731")
    assert unpad(pad(b"YELLOW SUBMARINE")) == b"YELLOW SUBMARINE"
    assert unpad(b"") == b""


def test_unpad_rejects_misaligned_input():
    with pytest.raises(BlockSizeError):
        unpad(b"ICE ICE BABY\x04\x04\x04")


def test_validate_unpad():
    assert validate_unpad(b"ICE ICE BABY\x04\x04\x04\x04") == b"ICE ICE BABY"
    assert validate_unpad(bytes([16] * 16)) == b""
    for byte in range(1, 17):
        # (16 - byte) data bytes that happen to equal the pad byte, then the padding
        assert validate_unpad(bytes([byte] * 16)) == bytes([byte] * (16 - byte))


@pytest.mark.parametrize("data", [
    b"ICE ICE BABY\x04\x04\x04",
    b"ICE ICE BABY\x05\x05\x05\x05",
    b"ICE ICE BABY\x01\x02\x03\x04",
    b"",
    bytes(16),
    b"ICE ICE BABY\x04\x04\x04\x11",
])
def test_validate_unpad_rejects(data):
    with pytest.raises(PaddingError):
        validate_unpad(data)
    assert not is_valid_padding(data)


def test_pad_then_validate_unpad_is_identity():
    for length in range(0, 70):
        data = os.urandom(length)
        assert validate_unpad(pad(data)) == data


def test_block_size_bounds():
    with pytest.raises(ValueError):
        pad(b"abc", 0)
    with pytest.raises(ValueError):
        pad(b"abc", 256)
