"""
Configuration Items
===================

Name/value pairs used for application configuration, in a plaintext and a
confidential flavour. The confidential one is what the engine operates on:

    item = SecureConfigurationItem("smtp.password", "hunter2")
    engine.encrypt_object(item)   # both name and value become envelope text
"""

from __future__ import annotations

from dataclasses import dataclass

from securefields.fields import ConfidentialStr, requires_confidentiality
from securefields.models.base import Model


@dataclass
class ConfigurationItem(Model):
    """A plaintext configuration name/value pair."""

    name: str = ""
    value: str = ""

    def getName(self) -> str:
        return self.name

    def setName(self, name: str) -> None:
        self.name = name

    def getValue(self) -> str:
        return self.value

    def setValue(self, value: str) -> None:
        self.value = value


@requires_confidentiality
@dataclass
class SecureConfigurationItem(Model):
    """A configuration name/value pair whose name and value are both confidential."""

    name: ConfidentialStr = ""
    value: ConfidentialStr = ""

    def getName(self) -> str:
        return self.name

    def setName(self, name: str) -> None:
        self.name = name

    def getValue(self) -> str:
        return self.value

    def setValue(self, value: str) -> None:
        self.value = value

    def __repr__(self) -> str:
        """Safe representation without field contents."""
        return f"SecureConfigurationItem(id={self.id})"
