"""
Base model for persisted entities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Model:
    """Entity with an optional persistence identifier, assigned by the storage layer."""

    id: Optional[int] = field(default=None, kw_only=True)

    def getId(self) -> Optional[int]:
        return self.id

    def setId(self, id: Optional[int]) -> None:
        self.id = id
