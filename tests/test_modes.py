import base64
import os
import random

import pytest
from Crypto.Cipher import AES
from Crypto.Util.Padding import pad as reference_pad

from blockbreak import modes
from blockbreak.exceptions import BlockSizeError, PaddingError
from blockbreak.modes import AESModes, split_blocks, xor_bytes

KEY = b"YELLOW SUBMARINE"


def test_split_blocks():
    assert split_blocks(b"A" * 32) == [b"A" * 16, b"A" * 16]
    assert split_blocks(b"") == []
    with pytest.raises(BlockSizeError):
        split_blocks(b"A" * 17)


def test_xor_bytes():
    assert xor_bytes(b"\x0f\xf0", b"\xff\xff") == b"\xf0\x0f"
    with pytest.raises(ValueError):
        xor_bytes(b"ab", b"abc")


def test_key_length_checked():
    with pytest.raises(ValueError):
        AESModes(b"short")
    for size in (16, 24, 32):
        AESModes(os.urandom(size))


def test_single_block_primitive():
    m = AESModes(KEY)
    block = os.urandom(16)
    assert m.encrypt_block(block) == AES.new(KEY, AES.MODE_ECB).encrypt(block)
    assert m.decrypt_block(m.encrypt_block(block)) == block
    with pytest.raises(BlockSizeError):
        m.encrypt_block(b"too short")


def test_ecb_matches_pycryptodome():
    for length in (0, 1, 15, 16, 17, 100):
        key = os.urandom(16)
        plaintext = os.urandom(length)
        expected = AES.new(key, AES.MODE_ECB).encrypt(reference_pad(plaintext, 16))
        assert modes.encrypt_ecb(plaintext, key) == expected
        assert modes.decrypt_ecb(expected, key) == plaintext


def test_ecb_repeats_identical_blocks():
    ciphertext = AESModes(os.urandom(16)).ecb_encrypt(b"B" * 48)
    blocks = split_blocks(ciphertext)
    assert blocks[0] == blocks[1] == blocks[2]


def test_cbc_matches_pycryptodome():
    for length in (0, 1, 15, 16, 17, 100):
        key, iv = os.urandom(16), os.urandom(16)
        plaintext = os.urandom(length)
        expected = AES.new(key, AES.MODE_CBC, iv).encrypt(reference_pad(plaintext, 16))
        assert modes.encrypt_cbc(plaintext, key, iv) == expected
        assert modes.decrypt_cbc(expected, key, iv) == plaintext


def test_cbc_hides_repeated_blocks():
    ciphertext = AESModes(os.urandom(16)).cbc_encrypt(b"B" * 48, os.urandom(16))
    blocks = split_blocks(ciphertext)
    assert len(set(blocks)) == len(blocks)


def test_round_trips():
    for _ in range(50):
        key, iv = os.urandom(16), os.urandom(16)
        nonce = random.getrandbits(64)
        plaintext = os.urandom(random.randint(0, 100))
        m = AESModes(key)
        assert m.ecb_decrypt(m.ecb_encrypt(plaintext)) == plaintext
        assert m.cbc_decrypt(m.cbc_encrypt(plaintext, iv), iv) == plaintext
        assert m.ctr_decrypt(m.ctr_encrypt(plaintext, nonce), nonce) == plaintext


def test_cbc_decrypt_rejects_bad_padding():
    m = AESModes(os.urandom(16))
    zero_block = m.encrypt_block(b"\x00" * 16)  # decrypts to all zeros under a zero IV
    with pytest.raises(PaddingError):
        m.cbc_decrypt(zero_block, b"\x00" * 16)


def test_cbc_decrypt_rejects_bad_shapes():
    m = AESModes(os.urandom(16))
    with pytest.raises(BlockSizeError):
        m.cbc_decrypt(b"A" * 20, os.urandom(16))
    with pytest.raises(BlockSizeError):
        m.cbc_encrypt(b"data", b"short iv")


def test_ctr_known_answer():
    ciphertext = base64.b64decode(
        "L77na/nrFsKvynd6HzOoG7GHTLXsTVu9qvY/2syLXzhPweyyMTJULu/6/kXX0KSvoOLSFQ==")
    assert modes.decrypt_ctr(ciphertext, KEY, 0) == b"Yo, VIP Let's kick it Ice, Ice, baby Ice, Ice, baby "


def test_ctr_is_length_preserving():
    key = os.urandom(16)
    for length in range(0, 40):
        plaintext = os.urandom(length)
        ciphertext = modes.encrypt_ctr(plaintext, key, 7)
        assert len(ciphertext) == length
        assert modes.decrypt_ctr(ciphertext, key, 7) == plaintext


def test_ctr_keystream_uses_little_endian_counter():
    m = AESModes(KEY)
    counter_block = (5).to_bytes(8, "little") + (2).to_bytes(8, "little")
    assert m.ctr_keystream_block(5, 2) == AES.new(KEY, AES.MODE_ECB).encrypt(counter_block)
