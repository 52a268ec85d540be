import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from filevault.config import Settings
from filevault.exceptions import IntegrityError

IV_LENGTH = 12   # 96-bit GCM nonce
TAG_LENGTH = 16  # 128-bit GCM tag
MIN_ENVELOPE_LENGTH = IV_LENGTH + TAG_LENGTH


# =============================
# DIGEST
# =============================

def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


# =============================
# CODEC
# =============================

class EnvelopeCodec:
    """
    Packs plaintext into IV || ciphertext || tag using AES-256-GCM.

    The key comes from validated settings and never changes after
    construction, so one codec can be shared across requests.
    """

    def __init__(self, settings: Settings):
        self._aesgcm = AESGCM(settings.secret_key)

    def encode(self, plaintext: bytes) -> bytes:
        iv = os.urandom(IV_LENGTH)
        # AESGCM appends the tag to the ciphertext
        sealed = self._aesgcm.encrypt(iv, plaintext, None)
        return iv + sealed

    def decode(self, envelope: bytes) -> bytes:
        if len(envelope) < MIN_ENVELOPE_LENGTH:
            raise IntegrityError(
                f"Envelope too short: {len(envelope)} bytes, "
                f"need at least {MIN_ENVELOPE_LENGTH}"
            )

        iv = envelope[:IV_LENGTH]
        sealed = envelope[IV_LENGTH:]

        try:
            return self._aesgcm.decrypt(iv, sealed, None)
        except InvalidTag as e:
            raise IntegrityError("Authentication tag mismatch") from e

    def digest(self, data: bytes) -> str:
        return sha256_hex(data)

    def verify(self, envelope: bytes, expected_checksum: str) -> None:
        """Raise IntegrityError unless the envelope hashes to expected_checksum."""
        actual = self.digest(envelope)
        if actual != expected_checksum:
            raise IntegrityError(
                f"Checksum mismatch: expected {expected_checksum}, got {actual}"
            )
