"""
SecureFields - Transparent Field-Level Encryption
=================================================

Encrypts, in place, the fields of arbitrary objects that are marked
confidential, replacing plaintext with self-describing envelope text.

Security Notice:
- Field values and passphrases are never logged
- Fail-closed design: plaintext never passes through decryption
- Authenticated encryption (AES-256-GCM) with passphrase-derived keys
"""

from securefields.core.config import SecureConfig
from securefields.core.engine import EncryptionProvider, FieldEncryptionEngine
from securefields.core.errors import (
    AccessorInvocationError,
    AccessorResolutionError,
    CryptoOperationError,
    EncryptionProviderError,
    FieldTypeError,
    InitializationError,
    SerializationError,
)
from securefields.core.logging import get_secure_logger
from securefields.fields import (
    CONFIDENTIAL,
    ConfidentialStr,
    confidential,
    requires_confidentiality,
)

__version__ = "0.1.0"
__author__ = "SecureFields Team"

__all__ = [
    "SecureConfig",
    "EncryptionProvider",
    "FieldEncryptionEngine",
    "AccessorInvocationError",
    "AccessorResolutionError",
    "CryptoOperationError",
    "EncryptionProviderError",
    "FieldTypeError",
    "InitializationError",
    "SerializationError",
    "get_secure_logger",
    "CONFIDENTIAL",
    "ConfidentialStr",
    "confidential",
    "requires_confidentiality",
    "__version__",
]
