"""
Key Derivation Functions
========================

Passphrase-based key derivation for envelope encryption.

Implements:
    - PBKDF2-HMAC-SHA256 (default, via ``cryptography``)
    - Argon2id for memory-hard derivation (via ``argon2-cffi``)
"""

from __future__ import annotations

from enum import Enum
from typing import Final

from argon2.low_level import Type, hash_secret_raw
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

# PBKDF2 parameters (OWASP 2023 recommendation)
PBKDF2_ITERATIONS: Final[int] = 600_000
MIN_PBKDF2_ITERATIONS: Final[int] = 10_000
MAX_PBKDF2_ITERATIONS: Final[int] = 10_000_000

# Argon2id parameters (OWASP recommended)
ARGON2_TIME_COST: Final[int] = 3
ARGON2_MEMORY_COST: Final[int] = 65536  # 64 MB
ARGON2_PARALLELISM: Final[int] = 4
MAX_ARGON2_TIME_COST: Final[int] = 64
MAX_ARGON2_MEMORY_COST: Final[int] = 1024 * 1024  # 1 GB
MAX_ARGON2_PARALLELISM: Final[int] = 64

MIN_SALT_LENGTH: Final[int] = 16


class KdfAlgorithm(Enum):
    """Key derivation algorithms; the value is the on-wire identifier."""

    PBKDF2_SHA256 = 1
    ARGON2ID = 2

    @classmethod
    def from_name(cls, name: str) -> "KdfAlgorithm":
        """Resolve a configuration name such as ``"argon2id"``."""
        normalized = name.strip().lower().replace("_", "-")
        if normalized in ("pbkdf2", "pbkdf2-sha256"):
            return cls.PBKDF2_SHA256
        if normalized == "argon2id":
            return cls.ARGON2ID
        raise ValueError(f"Unknown key derivation algorithm: {name}")


def derive_key_pbkdf2(
    passphrase: str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
    length: int = 32,
) -> bytes:
    """
    Derive a key from a passphrase using PBKDF2-HMAC-SHA256.

    Args:
        passphrase: Secret passphrase
        salt: Random salt (at least 16 bytes)
        iterations: PBKDF2 iteration count
        length: Output key length

    Returns:
        Derived key bytes
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def derive_key_argon2(
    passphrase: str,
    salt: bytes,
    time_cost: int = ARGON2_TIME_COST,
    memory_cost: int = ARGON2_MEMORY_COST,
    parallelism: int = ARGON2_PARALLELISM,
    length: int = 32,
) -> bytes:
    """
    Derive a key from a passphrase using Argon2id.

    Args:
        passphrase: Secret passphrase
        salt: Random salt (at least 16 bytes)
        time_cost: Number of passes
        memory_cost: Memory in KiB
        parallelism: Number of lanes
        length: Output key length

    Returns:
        Derived key bytes
    """
    return hash_secret_raw(
        secret=passphrase.encode("utf-8"),
        salt=salt,
        time_cost=time_cost,
        memory_cost=memory_cost,
        parallelism=parallelism,
        hash_len=length,
        type=Type.ID,
    )


def derive_key(
    algorithm: KdfAlgorithm,
    passphrase: str,
    salt: bytes,
    cost: int,
    memory: int = 0,
    parallelism: int = 0,
    length: int = 32,
) -> bytes:
    """
    Derive a key with the given algorithm and cost parameters.

    ``cost`` is the iteration count for PBKDF2 and the time cost for
    Argon2id; ``memory`` and ``parallelism`` only apply to Argon2id.
    """
    if algorithm is KdfAlgorithm.PBKDF2_SHA256:
        return derive_key_pbkdf2(passphrase, salt, iterations=cost, length=length)
    return derive_key_argon2(
        passphrase,
        salt,
        time_cost=cost,
        memory_cost=memory,
        parallelism=parallelism,
        length=length,
    )


def validate_kdf_parameters(
    algorithm: KdfAlgorithm,
    cost: int,
    memory: int = 0,
    parallelism: int = 0,
) -> None:
    """
    Check KDF parameters against sane bounds.

    Raises:
        ValueError: If any parameter is out of range
    """
    if algorithm is KdfAlgorithm.PBKDF2_SHA256:
        if not MIN_PBKDF2_ITERATIONS <= cost <= MAX_PBKDF2_ITERATIONS:
            raise ValueError(
                f"PBKDF2 iterations must be between {MIN_PBKDF2_ITERATIONS} "
                f"and {MAX_PBKDF2_ITERATIONS}"
            )
        return

    if not 1 <= cost <= MAX_ARGON2_TIME_COST:
        raise ValueError(f"Argon2 time cost must be between 1 and {MAX_ARGON2_TIME_COST}")
    if not 1 <= parallelism <= MAX_ARGON2_PARALLELISM:
        raise ValueError(f"Argon2 parallelism must be between 1 and {MAX_ARGON2_PARALLELISM}")
    # argon2 requires at least 8 KiB per lane
    if not 8 * parallelism <= memory <= MAX_ARGON2_MEMORY_COST:
        raise ValueError(
            f"Argon2 memory cost must be between {8 * parallelism} "
            f"and {MAX_ARGON2_MEMORY_COST} KiB"
        )
