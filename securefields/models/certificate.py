"""
Certificate Models
==================

Plain data holders for X.509v3 certificate requests and certificates.

Issuance and chain validation are out of scope; these classes only enforce
the invariants of a single record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto
from typing import ClassVar, Optional

from securefields.models.base import Model


class HashAlgorithm(Enum):
    """Certificate signature hash algorithm."""

    MD5 = auto()
    SHA1 = auto()
    SHA224 = auto()
    SHA256 = auto()
    SHA384 = auto()
    SHA512 = auto()


class CertificateStatus(Enum):
    """Certificate lifecycle status."""

    VALID = auto()
    REVOKED = auto()
    EXPIRED = auto()


@dataclass
class CertificateRequest(Model):
    """
    A certificate signing request.

    Raises:
        ValueError: If subject or public key is empty
    """

    X509_VERSION: ClassVar[int] = 3

    subject: str
    public_key: bytes
    signature_algorithm: HashAlgorithm

    def __post_init__(self) -> None:
        if not self.subject:
            raise ValueError("subject")
        if not self.public_key:
            raise ValueError("public_key")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(subject={self.subject!r}, algorithm={self.signature_algorithm.name})"


@dataclass(repr=False)
class Certificate(CertificateRequest):
    """
    An issued certificate.

    ``issuer`` is None for a self-issued (root) certificate.

    Raises:
        ValueError: If the serial number is not positive or the validity
            window is empty
    """

    serial_number: int
    valid_from: datetime
    valid_until: datetime
    issuer: Optional[Certificate] = None
    certificate_status: CertificateStatus = CertificateStatus.VALID

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.serial_number < 1:
            raise ValueError("serial_number")
        if self.valid_until <= self.valid_from:
            raise ValueError("valid_until must be after valid_from")

    @property
    def is_self_issued(self) -> bool:
        return self.issuer is None

    def is_valid_at(self, when: datetime) -> bool:
        """Check status and validity window at a point in time."""
        return (
            self.certificate_status is CertificateStatus.VALID
            and self.valid_from <= when <= self.valid_until
        )
