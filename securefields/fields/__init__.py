"""
Fields module - Confidentiality marker and per-type field registry.
"""

from securefields.fields.marker import (
    CONFIDENTIAL,
    CONFIDENTIAL_METADATA_KEY,
    Confidential,
    ConfidentialStr,
    confidential,
    is_confidential,
)
from securefields.fields.registry import (
    ConfidentialField,
    FieldRegistry,
    accessor_names,
    default_registry,
    requires_confidentiality,
)

__all__ = [
    "CONFIDENTIAL",
    "CONFIDENTIAL_METADATA_KEY",
    "Confidential",
    "ConfidentialStr",
    "confidential",
    "is_confidential",
    "ConfidentialField",
    "FieldRegistry",
    "accessor_names",
    "default_registry",
    "requires_confidentiality",
]
