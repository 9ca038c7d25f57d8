"""
Field Encryption Errors
=======================

Exception taxonomy raised by the field encryption engine.

Every wrapping error is raised with ``raise ... from cause`` so the original
failure stays reachable through ``__cause__`` (also exposed as ``cause``).

Hierarchy:
    EncryptionProviderError
    ├── InitializationError      bad passphrase, codec construction failure
    ├── FieldTypeError           a confidential field is not ``str``
    ├── AccessorResolutionError  missing or unusable get/set accessor
    │   └── AccessorInvocationError  accessor raised while being called
    ├── SerializationError       scalar codec or envelope text failure
    └── CryptoOperationError     key derivation / cipher failure
"""

from __future__ import annotations

from typing import Optional


class EncryptionProviderError(Exception):
    """Base class for all field encryption failures."""

    def __init__(
        self,
        message: str,
        *,
        type_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.type_name = type_name
        self.field_name = field_name

    @property
    def cause(self) -> Optional[BaseException]:
        """The wrapped root cause, if any."""
        return self.__cause__


class InitializationError(EncryptionProviderError):
    """Raised when the engine cannot be constructed."""
    pass


class FieldTypeError(EncryptionProviderError):
    """Raised when a confidential field is not declared as ``str``."""
    pass


class AccessorResolutionError(EncryptionProviderError):
    """Raised when a confidential field lacks a usable accessor pair."""
    pass


class AccessorInvocationError(AccessorResolutionError):
    """Raised when a resolved getter or setter fails during invocation."""
    pass


class SerializationError(EncryptionProviderError):
    """Raised when a value or envelope cannot be (de)serialized."""
    pass


class CryptoOperationError(EncryptionProviderError):
    """Raised when key derivation, encryption or decryption fails."""
    pass
