"""
Field Encryption Engine
=======================

Encrypts and decrypts, in place, the confidential fields of arbitrary objects.

Encryption Flow (per confidential field):
    getX()
        ↓ BinarySerializer.serialize
    tagged bytes
        ↓ EnvelopeCodec.encrypt (passphrase)
    EncryptedEnvelope
        ↓ EnvelopeCodec.encode_envelope
    envelope text
        ↓ setX(text)

Decryption runs the same pipeline backwards.

Failure Model:
    - The field plan (types and accessors) is validated before any field
      is touched: FieldTypeError / AccessorResolutionError never leave the
      object modified.
    - Serialization and cipher failures abort the call on the failing field.
      Fields processed before it stay transformed; there is no rollback.
    - Every error chains its root cause.

Thread Safety:
    The engine is immutable and can be shared. Calls on the same target
    object must be serialized by the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Tuple

from securefields.core.config import SecureConfig
from securefields.core.crypto.envelope import CipherError, EnvelopeCodec, EnvelopeFormatError
from securefields.core.errors import (
    AccessorInvocationError,
    CryptoOperationError,
    InitializationError,
    SerializationError,
)
from securefields.core.serialization import BinarySerializationError, BinarySerializer
from securefields.fields.registry import ConfidentialField, FieldRegistry, default_registry


class EncryptionProvider(ABC):
    """Encrypts and decrypts the confidential fields of an object."""

    __slots__ = ()

    @abstractmethod
    def encrypt_object(self, obj: Any) -> None:
        """Encrypt the confidential fields of obj in place."""

    @abstractmethod
    def decrypt_object(self, obj: Any) -> None:
        """Decrypt the confidential fields of obj in place."""


class FieldEncryptionEngine(EncryptionProvider):
    """
    Passphrase-based field encryption engine.

    Usage:
        engine = FieldEncryptionEngine(passphrase)

        item = SecureConfigurationItem(name="db.password", value="hunter2")
        engine.encrypt_object(item)   # item.name / item.value hold envelope text
        engine.decrypt_object(item)   # plaintext restored

    Security Notes:
        - The passphrase is held for the engine's lifetime and never logged
        - Each field gets its own salt and nonce, so equal plaintexts
          produce different envelope text
        - decrypt_object on plaintext fails instead of passing it through
    """

    __slots__ = ("_passphrase", "_codec", "_serializer", "_registry", "_log")

    def __init__(
        self,
        passphrase: str,
        *,
        config: Optional[SecureConfig] = None,
        codec: Optional[EnvelopeCodec] = None,
        serializer: Optional[BinarySerializer] = None,
        registry: Optional[FieldRegistry] = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            passphrase: Secret from which envelope keys are derived
            config: Configuration whose security section builds the default
                codec; if None, only the security section is loaded from
                the environment (SecureConfig.load_security)
            codec: Envelope codec; built from config if None
            serializer: Scalar codec; BinarySerializer if None
            registry: Field plan cache; the shared default registry if None

        Raises:
            InitializationError: If the passphrase is empty or the codec
                cannot be constructed
        """
        if not isinstance(passphrase, str) or not passphrase:
            raise InitializationError("A non-empty passphrase is required.")

        if codec is None:
            try:
                security = config.security if config is not None else SecureConfig.load_security()
                codec = EnvelopeCodec.from_config(security)
            except (CipherError, ValueError) as e:
                raise InitializationError(
                    "An unhandled exception occurred while initializing the encryption engine."
                ) from e

        self._passphrase = passphrase
        self._codec = codec
        self._serializer = serializer or BinarySerializer()
        self._registry = registry if registry is not None else default_registry
        self._log = logging.getLogger("securefields.engine")

    @property
    def codec(self) -> EnvelopeCodec:
        """The envelope codec new envelopes are written with."""
        return self._codec

    def encrypt_object(self, obj: Any) -> None:
        """
        Encrypt every confidential field of obj in place.

        Fields are processed in declaration order. Objects without
        confidential fields are left untouched.

        Args:
            obj: Any object whose class declares confidential fields

        Raises:
            ValueError: If obj is None
            FieldTypeError: If a confidential field is not declared as str
            AccessorResolutionError: If an accessor is missing or raises
            SerializationError: If a value cannot be serialized
            CryptoOperationError: If key derivation or encryption fails
        """
        fields = self._plan_for(obj)
        type_name = type(obj).__qualname__
        self._log.debug(f"Encrypting {len(fields)} confidential field(s) of {type_name}")

        for field in fields:
            plaintext = self._invoke_getter(obj, field)
            sealed = self._seal(plaintext, type_name, field.name)
            self._invoke_setter(obj, field, sealed)

    def decrypt_object(self, obj: Any) -> None:
        """
        Decrypt every confidential field of obj in place.

        Args:
            obj: An object previously passed to encrypt_object()

        Raises:
            ValueError: If obj is None
            FieldTypeError: If a confidential field is not declared as str
            AccessorResolutionError: If an accessor is missing or raises
            SerializationError: If a field does not hold valid envelope text
            CryptoOperationError: If the passphrase is wrong or the envelope
                was tampered with
        """
        fields = self._plan_for(obj)
        type_name = type(obj).__qualname__
        self._log.debug(f"Decrypting {len(fields)} confidential field(s) of {type_name}")

        for field in fields:
            sealed = self._invoke_getter(obj, field)
            plaintext = self._unseal(sealed, type_name, field.name)
            self._invoke_setter(obj, field, plaintext)

    def encrypt_value(self, value: str) -> str:
        """
        Encrypt a single string to envelope text.

        Args:
            value: Plaintext to encrypt

        Returns:
            Base64 envelope text, different on every call

        Raises:
            SerializationError: If value is not a str or is not UTF-8 encodable
            CryptoOperationError: If key derivation or encryption fails
        """
        return self._seal(value)

    def decrypt_value(self, text: str) -> str:
        """
        Decrypt envelope text produced by encrypt_value() or encrypt_object().

        Args:
            text: Envelope text

        Returns:
            The original plaintext

        Raises:
            SerializationError: If text is not valid envelope text
            CryptoOperationError: If the passphrase is wrong or the envelope
                was tampered with
        """
        return self._unseal(text)

    def _plan_for(self, obj: Any) -> Tuple[ConfidentialField, ...]:
        if obj is None:
            raise ValueError("object must not be None")
        return self._registry.fields_for(type(obj))

    def _seal(
        self,
        value: str,
        type_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ) -> str:
        context = {"type_name": type_name, "field_name": field_name}

        try:
            data = self._serializer.serialize(value)
        except BinarySerializationError as e:
            raise SerializationError(
                f"An exception occurred while attempting to serialize {self._where(type_name, field_name)} to binary.",
                **context,
            ) from e

        try:
            envelope = self._codec.encrypt(data, self._passphrase)
            return self._codec.encode_envelope(envelope)
        except EnvelopeFormatError as e:
            raise SerializationError(
                f"An exception occurred while encoding the envelope of {self._where(type_name, field_name)}.",
                **context,
            ) from e
        except CipherError as e:
            raise CryptoOperationError(
                f"An unhandled exception occurred while encrypting {self._where(type_name, field_name)}.",
                **context,
            ) from e

    def _unseal(
        self,
        text: str,
        type_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ) -> str:
        context = {"type_name": type_name, "field_name": field_name}

        try:
            envelope = self._codec.decode_envelope(text)
        except EnvelopeFormatError as e:
            raise SerializationError(
                f"Could not decode the encrypted envelope of {self._where(type_name, field_name)}.",
                **context,
            ) from e

        try:
            data = self._codec.decrypt(envelope, self._passphrase)
        except CipherError as e:
            raise CryptoOperationError(
                f"An unhandled exception occurred while decrypting {self._where(type_name, field_name)}.",
                **context,
            ) from e

        try:
            return self._serializer.deserialize(data)
        except BinarySerializationError as e:
            raise SerializationError(
                f"An exception occurred while attempting to deserialize {self._where(type_name, field_name)}.",
                **context,
            ) from e

    @staticmethod
    def _invoke_getter(obj: Any, field: ConfidentialField) -> Any:
        try:
            return getattr(obj, field.getter_name)()
        except Exception as e:
            raise AccessorInvocationError(
                f"An exception occurred while attempting to invoke the getter "
                f"{type(obj).__qualname__}.{field.getter_name}().",
                type_name=type(obj).__qualname__,
                field_name=field.name,
            ) from e

    @staticmethod
    def _invoke_setter(obj: Any, field: ConfidentialField, value: str) -> None:
        try:
            getattr(obj, field.setter_name)(value)
        except Exception as e:
            raise AccessorInvocationError(
                f"An exception occurred during the setter invocation "
                f"{type(obj).__qualname__}.{field.setter_name}().",
                type_name=type(obj).__qualname__,
                field_name=field.name,
            ) from e

    @staticmethod
    def _where(type_name: Optional[str], field_name: Optional[str]) -> str:
        if type_name and field_name:
            return f"field {type_name}::{field_name}"
        return "the value"

    def __repr__(self) -> str:
        """Safe representation without the passphrase."""
        return f"FieldEncryptionEngine(codec={self._codec!r})"
