import struct
from typing import List

from Crypto.Cipher import AES

from .exceptions import BlockSizeError
from .padding import pad, validate_unpad

BLOCK_SIZE = 16  # AES block size
KEY_SIZE = 16    # AES-128 keys for every oracle


############################################################################
# HELPERS
############################################################################

def split_blocks(data: bytes, block_size: int = BLOCK_SIZE) -> List[bytes]:
    if len(data) % block_size != 0:
        raise BlockSizeError(len(data), block_size)
    return [data[i:i+block_size] for i in range(0, len(data), block_size)]


def xor_bytes(b1: bytes, b2: bytes) -> bytes:
    if len(b1) != len(b2):
        raise ValueError(f"Cannot XOR inputs of different lengths ({len(b1)} and {len(b2)})")
    return bytes(a ^ b for a, b in zip(b1, b2))


class AESModes:
    """
    ECB, CBC and CTR built by hand on the AES single-block primitive.
    The block primitive is pycryptodome's AES in ECB mode, only ever fed one block at a time.
    """
    def __init__(self, key: bytes):
        key_length = len(key) * 8  # Convert key length to bits
        if key_length not in [128, 192, 256]:
            raise ValueError("Invalid key length. Supported lengths are 128, 192, and 256 bits.")
        self._aes = AES.new(bytes(key), AES.MODE_ECB)

    ############################################################################
    # SINGLE BLOCK PRIMITIVE
    ############################################################################

    def encrypt_block(self, block: bytes) -> bytes:
        """One-block AES encrypt: E_K(block)."""
        if len(block) != BLOCK_SIZE:
            raise BlockSizeError(len(block), BLOCK_SIZE)
        return self._aes.encrypt(bytes(block))

    def decrypt_block(self, block: bytes) -> bytes:
        """One-block AES decrypt: D_K(block)."""
        if len(block) != BLOCK_SIZE:
            raise BlockSizeError(len(block), BLOCK_SIZE)
        return self._aes.decrypt(bytes(block))

    ############################################################################
    # ECB MODE
    ############################################################################

    def ecb_encrypt(self, plaintext: bytes) -> bytes:
        """
        Encrypt data in ECB mode (PKCS#7 padded).
        Every block is encrypted on its own, so equal plaintext blocks give equal ciphertext blocks.
        """
        padded_data = pad(plaintext, BLOCK_SIZE)
        return b''.join(self.encrypt_block(block) for block in split_blocks(padded_data))

    def ecb_decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt data in ECB mode.
        Returns raw bytes with PKCS#7 padding validated and removed.
        """
        decrypted = b''.join(self.decrypt_block(block) for block in split_blocks(ciphertext))
        return validate_unpad(decrypted, BLOCK_SIZE)

    ############################################################################
    # CBC MODE
    ############################################################################

    def cbc_encrypt(self, plaintext: bytes, iv: bytes) -> bytes:
        """
        Encrypt data in CBC mode: C_i = E_K(P_i XOR C_{i-1}), C_{-1} = IV.
        Returns the ciphertext blocks only (the IV is not prepended).
        """
        if len(iv) != BLOCK_SIZE:
            raise BlockSizeError(len(iv), BLOCK_SIZE)
        padded = pad(plaintext, BLOCK_SIZE)

        prev = bytes(iv)
        out_blocks = []
        for block in split_blocks(padded):
            c = self.encrypt_block(xor_bytes(block, prev))   # E_K(P xor prev)
            out_blocks.append(c)
            prev = c

        return b''.join(out_blocks)

    def cbc_decrypt(self, ciphertext: bytes, iv: bytes) -> bytes:
        """
        Decrypt data in CBC mode: P_i = D_K(C_i) XOR C_{i-1}.
        Raises PaddingError when the recovered plaintext is not correctly padded.
        """
        if len(iv) != BLOCK_SIZE:
            raise BlockSizeError(len(iv), BLOCK_SIZE)

        prev = bytes(iv)
        plain_blocks = []
        for block in split_blocks(ciphertext):
            plain_blocks.append(xor_bytes(self.decrypt_block(block), prev))  # D_K(C) xor prev
            prev = block

        # Strict unpadding (verifies all pad bytes)
        return validate_unpad(b''.join(plain_blocks), BLOCK_SIZE)

    ############################################################################
    # CTR MODE
    ############################################################################

    def ctr_keystream_block(self, nonce: int, index: int) -> bytes:
        """Keystream block = E_K(nonce as 64-bit LE || block counter as 64-bit LE)."""
        return self.encrypt_block(struct.pack("<QQ", nonce, index))

    def ctr_encrypt(self, plaintext: bytes, nonce: int = 0) -> bytes:
        """
        Encrypt data in CTR mode.
        No padding; the final keystream block is cut to the remaining length.
        """
        out = []
        for index, i in enumerate(range(0, len(plaintext), BLOCK_SIZE)):
            chunk = plaintext[i:i+BLOCK_SIZE]
            keystream = self.ctr_keystream_block(nonce, index)
            out.append(xor_bytes(chunk, keystream[:len(chunk)]))
        return b''.join(out)

    def ctr_decrypt(self, ciphertext: bytes, nonce: int = 0) -> bytes:
        # CTR is its own inverse
        return self.ctr_encrypt(ciphertext, nonce)


############################################################################
# FUNCTIONAL WRAPPERS
############################################################################

def encrypt_ecb(data: bytes, key: bytes) -> bytes:
    return AESModes(key).ecb_encrypt(data)


def decrypt_ecb(data: bytes, key: bytes) -> bytes:
    return AESModes(key).ecb_decrypt(data)


def encrypt_cbc(data: bytes, key: bytes, iv: bytes) -> bytes:
    return AESModes(key).cbc_encrypt(data, iv)


def decrypt_cbc(data: bytes, key: bytes, iv: bytes) -> bytes:
    return AESModes(key).cbc_decrypt(data, iv)


def encrypt_ctr(data: bytes, key: bytes, nonce: int = 0) -> bytes:
    return AESModes(key).ctr_encrypt(data, nonce)


def decrypt_ctr(data: bytes, key: bytes, nonce: int = 0) -> bytes:
    return AESModes(key).ctr_decrypt(data, nonce)
