"""
Passphrase Envelope Codec
=========================

Turns ``(plaintext bytes, passphrase)`` into a self-describing encrypted
envelope and back, and converts envelopes to and from text so they can be
stored in string-typed fields.

Encryption Flow:
    passphrase + random salt
        ↓ PBKDF2-HMAC-SHA256 or Argon2id
    256-bit key
        ↓ AES-256-GCM (random nonce, header as AAD)
    EncryptedEnvelope
        ↓ to_bytes() + base64
    envelope text

Binary Format:
    MAGIC (4) | VERSION (1) | KDF (1) | COST (4) | MEMORY (4) |
    PARALLELISM (1) | SALT_LEN (1) | SALT | NONCE (12) |
    CT_LEN (4) | CIPHERTEXT

Everything up to and including the nonce is authenticated, so KDF
parameters cannot be downgraded without failing the tag check.

WARNING:
    - A wrong passphrase and a tampered envelope are indistinguishable;
      both raise CipherError (fail-closed)
"""

from __future__ import annotations

import secrets
import struct
from base64 import b64decode, b64encode
from dataclasses import dataclass
from typing import Final, Optional, TYPE_CHECKING

from argon2.exceptions import HashingError
from cryptography.exceptions import InvalidTag

from securefields.core.crypto.aes_gcm import (
    AES_NONCE_SIZE,
    AES_TAG_SIZE,
    AesGcmCipher,
)
from securefields.core.crypto.kdf import (
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
    ARGON2_TIME_COST,
    MIN_SALT_LENGTH,
    PBKDF2_ITERATIONS,
    KdfAlgorithm,
    derive_key,
    validate_kdf_parameters,
)

if TYPE_CHECKING:
    from securefields.core.config import SecurityConfig

# Version for format compatibility
ENVELOPE_VERSION: Final[int] = 1
MAGIC_BYTES: Final[bytes] = b"SFEV"  # SecureFields EnVelope
MAX_SALT_LENGTH: Final[int] = 64

_HEADER: Final[struct.Struct] = struct.Struct("<4sBBIIBB")
_LENGTH: Final[struct.Struct] = struct.Struct("<I")


class EnvelopeError(Exception):
    """Base class for envelope codec failures."""
    pass


class EnvelopeFormatError(EnvelopeError, ValueError):
    """Raised when envelope text or bytes are malformed."""
    pass


class CipherError(EnvelopeError):
    """Raised when key derivation, encryption or decryption fails."""
    pass


@dataclass(frozen=True, slots=True)
class EncryptedEnvelope:
    """
    Immutable container for passphrase-encrypted data.

    Holds everything needed for decryption except the passphrase.
    """

    version: int
    kdf: KdfAlgorithm
    kdf_cost: int
    kdf_memory: int
    kdf_parallelism: int
    salt: bytes
    nonce: bytes
    ciphertext: bytes

    def header_bytes(self) -> bytes:
        """Serialized header (through the nonce), used as AAD."""
        return (
            _HEADER.pack(
                MAGIC_BYTES,
                self.version,
                self.kdf.value,
                self.kdf_cost,
                self.kdf_memory,
                self.kdf_parallelism,
                len(self.salt),
            )
            + self.salt
            + self.nonce
        )

    def to_bytes(self) -> bytes:
        """Serialize the envelope for storage."""
        return b"".join([
            self.header_bytes(),
            _LENGTH.pack(len(self.ciphertext)),
            self.ciphertext,
        ])

    @classmethod
    def from_bytes(cls, data: bytes) -> "EncryptedEnvelope":
        """
        Deserialize an envelope.

        Raises:
            EnvelopeFormatError: If data is malformed, truncated or carries
                unsupported parameters
        """
        if len(data) < _HEADER.size:
            raise EnvelopeFormatError("Invalid envelope: too short")

        magic, version, kdf_id, cost, memory, parallelism, salt_len = (
            _HEADER.unpack_from(data, 0)
        )
        if magic != MAGIC_BYTES:
            raise EnvelopeFormatError("Invalid envelope: bad magic bytes")
        if version != ENVELOPE_VERSION:
            raise EnvelopeFormatError(f"Unsupported envelope version: {version}")

        try:
            kdf = KdfAlgorithm(kdf_id)
            validate_kdf_parameters(kdf, cost, memory, parallelism)
        except ValueError as e:
            raise EnvelopeFormatError(f"Invalid envelope KDF parameters: {e}") from e

        if not MIN_SALT_LENGTH <= salt_len <= MAX_SALT_LENGTH:
            raise EnvelopeFormatError(f"Invalid envelope salt length: {salt_len}")

        offset = _HEADER.size
        fixed_end = offset + salt_len + AES_NONCE_SIZE + _LENGTH.size
        if len(data) < fixed_end:
            raise EnvelopeFormatError("Invalid envelope: truncated header")

        salt = data[offset : offset + salt_len]
        offset += salt_len
        nonce = data[offset : offset + AES_NONCE_SIZE]
        offset += AES_NONCE_SIZE
        ct_len = _LENGTH.unpack_from(data, offset)[0]
        offset += _LENGTH.size

        if ct_len < AES_TAG_SIZE:
            raise EnvelopeFormatError("Invalid envelope: ciphertext missing tag")
        if len(data) != offset + ct_len:
            raise EnvelopeFormatError("Invalid envelope: ciphertext length mismatch")

        return cls(
            version=version,
            kdf=kdf,
            kdf_cost=cost,
            kdf_memory=memory,
            kdf_parallelism=parallelism,
            salt=bytes(salt),
            nonce=bytes(nonce),
            ciphertext=bytes(data[offset:]),
        )

    def __repr__(self) -> str:
        """Safe representation."""
        return (
            f"EncryptedEnvelope(v{self.version}, kdf={self.kdf.name}, "
            f"ct_len={len(self.ciphertext)})"
        )


class EnvelopeCodec:
    """
    Passphrase-based envelope encryption.

    Usage:
        codec = EnvelopeCodec()
        envelope = codec.encrypt(b"data", "passphrase")
        text = codec.encode_envelope(envelope)

        envelope = codec.decode_envelope(text)
        data = codec.decrypt(envelope, "passphrase")

    Security Notes:
        - A fresh random salt (and so a fresh key) per envelope
        - A fresh random nonce per envelope
        - Decryption uses the KDF parameters recorded in the envelope,
          so envelopes stay readable after the defaults change
    """

    __slots__ = ("_cipher", "_kdf", "_cost", "_memory", "_parallelism", "_salt_length")

    def __init__(
        self,
        kdf: KdfAlgorithm = KdfAlgorithm.PBKDF2_SHA256,
        cost: Optional[int] = None,
        memory: int = ARGON2_MEMORY_COST,
        parallelism: int = ARGON2_PARALLELISM,
        salt_length: int = MIN_SALT_LENGTH,
    ) -> None:
        """
        Initialize the codec.

        Args:
            kdf: Key derivation algorithm for new envelopes
            cost: PBKDF2 iterations or Argon2 time cost (algorithm default if None)
            memory: Argon2 memory cost in KiB (ignored for PBKDF2)
            parallelism: Argon2 lanes (ignored for PBKDF2)
            salt_length: Random salt length in bytes

        Raises:
            CipherError: If any parameter is out of range
        """
        if cost is None:
            cost = PBKDF2_ITERATIONS if kdf is KdfAlgorithm.PBKDF2_SHA256 else ARGON2_TIME_COST
        if kdf is KdfAlgorithm.PBKDF2_SHA256:
            memory, parallelism = 0, 0

        try:
            validate_kdf_parameters(kdf, cost, memory, parallelism)
        except ValueError as e:
            raise CipherError(f"Invalid cipher parameters: {e}") from e

        if not MIN_SALT_LENGTH <= salt_length <= MAX_SALT_LENGTH:
            raise CipherError(
                f"Salt length must be between {MIN_SALT_LENGTH} and {MAX_SALT_LENGTH}"
            )

        self._cipher = AesGcmCipher()
        self._kdf = kdf
        self._cost = cost
        self._memory = memory
        self._parallelism = parallelism
        self._salt_length = salt_length

    @classmethod
    def from_config(cls, security: "SecurityConfig") -> "EnvelopeCodec":
        """Build a codec from the security section of the configuration."""
        try:
            kdf = KdfAlgorithm.from_name(security.kdf_algorithm)
        except ValueError as e:
            raise CipherError(str(e)) from e

        if kdf is KdfAlgorithm.PBKDF2_SHA256:
            return cls(kdf=kdf, cost=security.kdf_iterations, salt_length=security.salt_length)
        return cls(
            kdf=kdf,
            cost=security.argon2_time_cost,
            memory=security.argon2_memory_cost,
            parallelism=security.argon2_parallelism,
            salt_length=security.salt_length,
        )

    @property
    def kdf(self) -> KdfAlgorithm:
        return self._kdf

    def encrypt(self, data: bytes, passphrase: str) -> EncryptedEnvelope:
        """
        Encrypt bytes under a passphrase.

        Raises:
            CipherError: If key derivation or encryption fails
        """
        salt = secrets.token_bytes(self._salt_length)
        nonce = AesGcmCipher.generate_nonce()
        key = self._derive_key(passphrase, self._kdf, salt, self._cost, self._memory, self._parallelism)

        template = EncryptedEnvelope(
            version=ENVELOPE_VERSION,
            kdf=self._kdf,
            kdf_cost=self._cost,
            kdf_memory=self._memory,
            kdf_parallelism=self._parallelism,
            salt=salt,
            nonce=nonce,
            ciphertext=b"",
        )

        try:
            result = self._cipher.encrypt(
                bytes(data), key, aad=template.header_bytes(), nonce=nonce
            )
        except (TypeError, ValueError) as e:
            raise CipherError(f"Encryption failed: {e}") from e

        return EncryptedEnvelope(
            version=template.version,
            kdf=template.kdf,
            kdf_cost=template.kdf_cost,
            kdf_memory=template.kdf_memory,
            kdf_parallelism=template.kdf_parallelism,
            salt=salt,
            nonce=result.nonce,
            ciphertext=result.ciphertext,
        )

    def decrypt(self, envelope: EncryptedEnvelope, passphrase: str) -> bytes:
        """
        Decrypt an envelope under a passphrase.

        Raises:
            CipherError: If the passphrase is wrong or the envelope was tampered with
        """
        if not isinstance(envelope, EncryptedEnvelope):
            raise CipherError(f"Expected EncryptedEnvelope, got {type(envelope).__name__}")

        key = self._derive_key(
            passphrase,
            envelope.kdf,
            envelope.salt,
            envelope.kdf_cost,
            envelope.kdf_memory,
            envelope.kdf_parallelism,
        )

        try:
            return self._cipher.decrypt(
                envelope.ciphertext,
                envelope.nonce,
                key,
                aad=envelope.header_bytes(),
            )
        except InvalidTag as e:
            raise CipherError("Authentication failed: wrong passphrase or corrupted envelope") from e
        except ValueError as e:
            raise CipherError(f"Decryption failed: {e}") from e

    @staticmethod
    def encode_envelope(envelope: EncryptedEnvelope) -> str:
        """Encode an envelope as base64 text."""
        return b64encode(envelope.to_bytes()).decode("ascii")

    @staticmethod
    def decode_envelope(text: str) -> EncryptedEnvelope:
        """
        Decode envelope text produced by encode_envelope().

        Raises:
            EnvelopeFormatError: If text is not a valid encoded envelope
        """
        if not isinstance(text, str):
            raise EnvelopeFormatError(f"Envelope text must be str, got {type(text).__name__}")

        try:
            raw = b64decode(text, validate=True)
        except ValueError as e:
            raise EnvelopeFormatError("Invalid envelope: not base64 text") from e

        return EncryptedEnvelope.from_bytes(raw)

    @staticmethod
    def _derive_key(
        passphrase: str,
        kdf: KdfAlgorithm,
        salt: bytes,
        cost: int,
        memory: int,
        parallelism: int,
    ) -> bytes:
        if not isinstance(passphrase, str) or not passphrase:
            raise CipherError("Passphrase must be a non-empty string")
        try:
            return derive_key(kdf, passphrase, salt, cost, memory, parallelism)
        except (HashingError, TypeError, ValueError) as e:
            raise CipherError(f"Key derivation failed: {e}") from e

    def __repr__(self) -> str:
        return f"EnvelopeCodec(kdf={self._kdf.name}, cost={self._cost})"
