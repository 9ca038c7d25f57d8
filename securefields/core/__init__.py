"""
Core module - Configuration, logging, codecs and the field encryption engine.
"""

from securefields.core.errors import (
    AccessorInvocationError,
    AccessorResolutionError,
    CryptoOperationError,
    EncryptionProviderError,
    FieldTypeError,
    InitializationError,
    SerializationError,
)
from securefields.core.config import SecureConfig
from securefields.core.logging import get_secure_logger, SecureLogFilter
from securefields.core.serialization import BinarySerializer, BinarySerializationError
from securefields.core.engine import EncryptionProvider, FieldEncryptionEngine

__all__ = [
    "AccessorInvocationError",
    "AccessorResolutionError",
    "CryptoOperationError",
    "EncryptionProviderError",
    "FieldTypeError",
    "InitializationError",
    "SerializationError",
    "SecureConfig",
    "get_secure_logger",
    "SecureLogFilter",
    "BinarySerializer",
    "BinarySerializationError",
    "EncryptionProvider",
    "FieldEncryptionEngine",
]
