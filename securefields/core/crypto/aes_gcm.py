"""
AES-256-GCM Primitive
=====================

Keyed AEAD used underneath the passphrase envelope. The envelope codec
derives the key, picks the nonce and passes its own header as associated
data; this module only checks sizes and calls ``cryptography``.

Parameters:
    - key: 32 bytes
    - nonce: 12 bytes, random, one per envelope
    - tag: 16 bytes, appended to the ciphertext by AESGCM
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Final, Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

AES_KEY_SIZE: Final[int] = 32
AES_NONCE_SIZE: Final[int] = 12
AES_TAG_SIZE: Final[int] = 16


@dataclass(frozen=True, slots=True)
class AesGcmResult:
    """Ciphertext (tag included) and the nonce it was sealed with."""

    ciphertext: bytes
    nonce: bytes

    def __repr__(self) -> str:
        return f"AesGcmResult(ciphertext_len={len(self.ciphertext)})"


def _check_sizes(key: bytes, nonce: Optional[bytes]) -> None:
    if len(key) != AES_KEY_SIZE:
        raise ValueError(f"AES-256 key must be {AES_KEY_SIZE} bytes, got {len(key)}")
    if nonce is not None and len(nonce) != AES_NONCE_SIZE:
        raise ValueError(f"GCM nonce must be {AES_NONCE_SIZE} bytes, got {len(nonce)}")


class AesGcmCipher:
    """
    Stateless AES-256-GCM wrapper.

    Usage:
        cipher = AesGcmCipher()
        sealed = cipher.encrypt(payload, key, aad=header)
        payload = cipher.decrypt(sealed.ciphertext, sealed.nonce, key, aad=header)
    """

    __slots__ = ()

    @staticmethod
    def generate_nonce() -> bytes:
        """
        Generate a random 96-bit GCM nonce.

        Returns:
            12 bytes from the OS CSPRNG

        Security:
            Random 96-bit nonces stay collision-safe for up to 2^32
            encryptions under one key. Envelope keys are single-use, so
            each key sees exactly one nonce.
        """
        return secrets.token_bytes(AES_NONCE_SIZE)

    def encrypt(
        self,
        plaintext: bytes,
        key: bytes,
        aad: Optional[bytes] = None,
        nonce: Optional[bytes] = None,
    ) -> AesGcmResult:
        """
        Seal plaintext under key.

        A fresh nonce is drawn when none is given. Callers that put the
        nonce into the AAD generate it first and pass it in.

        Args:
            plaintext: Data to encrypt (may be empty)
            key: 32-byte AES-256 key
            aad: Data authenticated alongside the ciphertext but not encrypted
            nonce: 12-byte nonce; generated if None

        Returns:
            AesGcmResult with the ciphertext (tag appended) and the nonce

        Raises:
            ValueError: If key or nonce has the wrong size

        Security Notes:
            - Never pass the same (key, nonce) pair twice
            - The AAD must be supplied again, byte for byte, to decrypt
        """
        _check_sizes(key, nonce)
        nonce = nonce if nonce is not None else self.generate_nonce()
        return AesGcmResult(ciphertext=AESGCM(key).encrypt(nonce, plaintext, aad), nonce=nonce)

    def decrypt(
        self,
        ciphertext: bytes,
        nonce: bytes,
        key: bytes,
        aad: Optional[bytes] = None,
    ) -> bytes:
        """
        Open ciphertext sealed by encrypt().

        Args:
            ciphertext: Ciphertext with the 16-byte tag appended
            nonce: Nonce returned by encrypt()
            key: 32-byte AES-256 key
            aad: The associated data given to encrypt()

        Returns:
            The plaintext, released only after the tag verifies

        Raises:
            ValueError: If key, nonce or ciphertext has the wrong size
            cryptography.exceptions.InvalidTag: If the key, nonce, AAD or
                ciphertext does not match what was sealed
        """
        _check_sizes(key, nonce)
        if len(ciphertext) < AES_TAG_SIZE:
            raise ValueError("Ciphertext is shorter than the GCM tag")
        return AESGCM(key).decrypt(nonce, ciphertext, aad)
