"""
SecureFields Cryptographic Core
===============================

Passphrase-based envelope encryption for individual field values.

Architecture:
    1. PBKDF2-HMAC-SHA256 / Argon2id: passphrase key derivation
    2. AES-256-GCM: authenticated symmetric encryption
    3. EncryptedEnvelope: self-describing, versioned container

Security Properties:
    - All encryption is authenticated (AEAD)
    - Fresh salt and nonce per envelope
    - KDF parameters authenticated with the ciphertext

WARNING: This module handles sensitive cryptographic material.
         Incorrect usage can compromise security.
"""

from securefields.core.crypto.aes_gcm import AesGcmCipher, AesGcmResult
from securefields.core.crypto.envelope import (
    CipherError,
    EncryptedEnvelope,
    EnvelopeCodec,
    EnvelopeError,
    EnvelopeFormatError,
)
from securefields.core.crypto.kdf import KdfAlgorithm

__all__ = [
    "AesGcmCipher",
    "AesGcmResult",
    "CipherError",
    "EncryptedEnvelope",
    "EnvelopeCodec",
    "EnvelopeError",
    "EnvelopeFormatError",
    "KdfAlgorithm",
]
