"""
Scalar Binary Serialization
===========================

Serializes string values to a tagged binary form before encryption, and
back after decryption.

Format:
    MAGIC (4) | TYPE_TAG (1) | LEN (4) | UTF-8 PAYLOAD

The type tag keeps the door open for other scalar types; only ``str`` is
accepted today.
"""

from __future__ import annotations

import struct
from typing import Final

MAGIC_BYTES: Final[bytes] = b"SFSV"  # SecureFields Scalar Value
TYPE_TAG_STR: Final[int] = 0x01

_HEADER: Final[struct.Struct] = struct.Struct("<4sBI")


class BinarySerializationError(ValueError):
    """Raised when a value cannot be serialized or deserialized."""
    pass


class BinarySerializer:
    """
    Tagged binary codec for string scalars.

    Usage:
        data = BinarySerializer.serialize("secret")
        value = BinarySerializer.deserialize(data)
    """

    __slots__ = ()

    @staticmethod
    def serialize(value: str) -> bytes:
        """
        Serialize a string.

        Raises:
            BinarySerializationError: If value is not a str or is not encodable
        """
        if not isinstance(value, str):
            raise BinarySerializationError(
                f"Only str values can be serialized, got {type(value).__name__}"
            )

        try:
            payload = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise BinarySerializationError(f"String is not UTF-8 encodable: {e}") from e

        return _HEADER.pack(MAGIC_BYTES, TYPE_TAG_STR, len(payload)) + payload

    @staticmethod
    def deserialize(data: bytes) -> str:
        """
        Deserialize bytes produced by serialize().

        Raises:
            BinarySerializationError: If data is malformed
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise BinarySerializationError(
                f"Expected bytes, got {type(data).__name__}"
            )

        data = bytes(data)
        if len(data) < _HEADER.size:
            raise BinarySerializationError("Serialized value too short")

        magic, type_tag, length = _HEADER.unpack_from(data, 0)
        if magic != MAGIC_BYTES:
            raise BinarySerializationError("Invalid serialized value (bad magic bytes)")
        if type_tag != TYPE_TAG_STR:
            raise BinarySerializationError(f"Unsupported type tag: {type_tag:#04x}")

        payload = data[_HEADER.size:]
        if len(payload) != length:
            raise BinarySerializationError(
                f"Length mismatch: header says {length}, got {len(payload)}"
            )

        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise BinarySerializationError(f"Invalid UTF-8 payload: {e}") from e
