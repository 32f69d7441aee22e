"""
Victim services. Each oracle keeps a secret AES key (and possibly a secret
prefix, suffix or plaintext) that the attacker never sees, and answers one
kind of query. Secrets are fixed when the oracle is built.
"""
import random
from typing import Dict, Optional, Tuple

from Crypto.Random import get_random_bytes

from .exceptions import PaddingError
from .modes import BLOCK_SIZE, KEY_SIZE, AESModes

ECB = "ECB"
CBC = "CBC"

PROFILE_UID = "10"
PROFILE_ROLE = "user"

COMMENT_PREFIX = b"comment1=cooking%20MCs;userdata="
COMMENT_SUFFIX = b";comment2=%20like%20a%20pound%20of%20bacon"
ADMIN_TOKEN = b";admin=true;"


class EncryptionOracle:
    """Chosen-plaintext oracle: the attacker supplies bytes, the victim returns a ciphertext."""
    def __init__(self, key: Optional[bytes] = None):
        if key is None:
            key = get_random_bytes(KEY_SIZE)
        self._m = AESModes(key)
        self.queries = 0

    def encrypt(self, data: bytes) -> bytes:
        self.queries += 1
        return self._encrypt(bytes(data))

    def _encrypt(self, data: bytes) -> bytes:
        raise NotImplementedError


# -----------------------------------------------------------------------------
# ECB oracles
# -----------------------------------------------------------------------------

class SuffixOracle(EncryptionOracle):
    """AES-128-ECB(attacker || secret, key)"""
    def __init__(self, secret: bytes, key: Optional[bytes] = None):
        super().__init__(key)
        self._secret = bytes(secret)

    def _encrypt(self, data: bytes) -> bytes:
        return self._m.ecb_encrypt(data + self._secret)

    def verify(self, plaintext: bytes) -> bool:
        return self._secret == plaintext


class PrefixSuffixOracle(EncryptionOracle):
    """AES-128-ECB(random prefix || attacker || secret, key)

    The prefix length is drawn once from `prefix_range` (inclusive) unless a prefix is given.
    """
    def __init__(self, secret: bytes, key: Optional[bytes] = None, prefix: Optional[bytes] = None,
                 prefix_range: Tuple[int, int] = (5, 40)):
        super().__init__(key)
        low, high = prefix_range
        if low < 0 or high < low:
            raise ValueError("prefix_range must satisfy 0 <= low <= high")
        if prefix is None:
            prefix = get_random_bytes(random.randint(low, high))
        self._prefix = bytes(prefix)
        self._secret = bytes(secret)

    def _encrypt(self, data: bytes) -> bytes:
        return self._m.ecb_encrypt(self._prefix + data + self._secret)

    def verify(self, plaintext: bytes) -> bool:
        return self._secret == plaintext

    def verify_prefix_len(self, length: int) -> bool:
        return len(self._prefix) == length

    def verify_payload_len(self, length: int) -> bool:
        return len(self._secret) == length


class ProfileOracle(EncryptionOracle):
    """Encrypts `email=<email>&uid=10&role=user` user profiles under ECB."""

    @staticmethod
    def profile_for(email: str) -> str:
        # no smuggling extra fields in through the email
        email = email.replace("=", "").replace("&", "")
        return f"email={email}&uid={PROFILE_UID}&role={PROFILE_ROLE}"

    @staticmethod
    def kvparse(s: str) -> Dict[str, str]:
        """Parse `foo=bar&baz=qux` into {"foo": "bar", "baz": "qux"}."""
        parsed = {}
        for pair in s.split("&"):
            key, _, value = pair.partition("=")
            parsed[key] = value
        return parsed

    def _encrypt(self, data: bytes) -> bytes:
        email = data.decode("utf-8")
        return self._m.ecb_encrypt(self.profile_for(email).encode("utf-8"))

    def decrypt(self, ciphertext: bytes) -> Dict[str, str]:
        decrypted = self._m.ecb_decrypt(ciphertext)
        return self.kvparse(decrypted.decode("utf-8", errors="replace"))

    def verify(self, ciphertext: bytes) -> bool:
        return self.decrypt(ciphertext).get("role") == "admin"


# -----------------------------------------------------------------------------
# CBC oracles
# -----------------------------------------------------------------------------

class CbcBitflipOracle(EncryptionOracle):
    """Wraps quoted attacker input in a fixed comment string and encrypts it under CBC with a fixed IV."""
    def __init__(self, key: Optional[bytes] = None, iv: Optional[bytes] = None):
        super().__init__(key)
        self.iv = iv if iv is not None else get_random_bytes(BLOCK_SIZE)

    @staticmethod
    def quote(data: bytes) -> bytes:
        return data.replace(b";", b"%3B").replace(b"=", b"%3D")

    def _encrypt(self, data: bytes) -> bytes:
        return self._m.cbc_encrypt(COMMENT_PREFIX + self.quote(data) + COMMENT_SUFFIX, self.iv)

    def decrypt(self, ciphertext: bytes) -> bytes:
        return self._m.cbc_decrypt(ciphertext, self.iv)

    def verify(self, ciphertext: bytes) -> bool:
        text = self.decrypt(ciphertext).decode("utf-8", errors="replace")
        return ADMIN_TOKEN.decode() in text


class CbcPaddingOracle:
    """
    Keeps a secret AES key internally. Attacker cannot read it.
    Exposes:
      - iv, ciphertext : CBC encryption of the hidden plaintext, made once
      - check_padding(candidate) -> bool
        True iff `candidate` decrypts (under the same key and IV) to correctly padded plaintext.
    """
    def __init__(self, plaintext: bytes, key: Optional[bytes] = None, iv: Optional[bytes] = None):
        if key is None:
            key = get_random_bytes(KEY_SIZE)  # 128-bit demo key
        self._m = AESModes(key)
        self._plaintext = bytes(plaintext)
        self.iv = iv if iv is not None else get_random_bytes(BLOCK_SIZE)
        self.ciphertext = self._m.cbc_encrypt(self._plaintext, self.iv)
        self.queries = 0

    def check_padding(self, ciphertext: bytes) -> bool:
        self.queries += 1
        try:
            self._m.cbc_decrypt(ciphertext, self.iv)
        except PaddingError:
            return False
        return True

    def verify(self, plaintext: bytes) -> bool:
        return self._plaintext == plaintext


# -----------------------------------------------------------------------------
# ECB/CBC detection
# -----------------------------------------------------------------------------

class RandomModeOracle:
    """
    Encrypts 5-15 random bytes || plaintext || 5-15 random bytes once, under a fresh key,
    using ECB or CBC (random IV) picked by a coin flip.
    """
    def __init__(self, plaintext: bytes):
        m = AESModes(get_random_bytes(KEY_SIZE))
        data = get_random_bytes(random.randint(5, 15)) + bytes(plaintext) + get_random_bytes(random.randint(5, 15))
        if random.random() < 0.5:
            self._mode = ECB
            self.ciphertext = m.ecb_encrypt(data)
        else:
            self._mode = CBC
            self.ciphertext = m.cbc_encrypt(data, get_random_bytes(BLOCK_SIZE))

    def verify(self, mode: str) -> bool:
        return self._mode == mode
