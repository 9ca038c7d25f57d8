"""
Models module - Entities whose confidential fields are handled by the engine.

These are passive data holders; persistence belongs to the caller.
"""

from securefields.models.base import Model
from securefields.models.configuration import ConfigurationItem, SecureConfigurationItem
from securefields.models.certificate import (
    Certificate,
    CertificateRequest,
    CertificateStatus,
    HashAlgorithm,
)

__all__ = [
    "Model",
    "ConfigurationItem",
    "SecureConfigurationItem",
    "Certificate",
    "CertificateRequest",
    "CertificateStatus",
    "HashAlgorithm",
]
