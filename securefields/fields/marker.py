"""
Confidentiality Marker
======================

Tags a field as "never stored or transmitted in plaintext".

Two spellings are recognised:

    class Account:
        token: Annotated[str, CONFIDENTIAL]     # or ConfidentialStr

    @dataclass
    class Account:
        token: str = confidential(default="")

The marker carries no data; its presence is the only signal the engine uses.
"""

from __future__ import annotations

import dataclasses
from typing import Annotated, Any, Final, Optional, Tuple, get_args, get_origin

CONFIDENTIAL_METADATA_KEY: Final[str] = "securefields.confidential"


class Confidential:
    """Stateless marker placed in ``Annotated`` metadata."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "CONFIDENTIAL"


CONFIDENTIAL: Final[Confidential] = Confidential()

ConfidentialStr = Annotated[str, CONFIDENTIAL]


def confidential(**field_kwargs: Any) -> Any:
    """
    Declare a confidential dataclass field.

    Accepts the same keyword arguments as ``dataclasses.field``; any
    ``metadata`` passed in is preserved.
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[CONFIDENTIAL_METADATA_KEY] = True
    return dataclasses.field(metadata=metadata, **field_kwargs)


def split_annotation(annotation: Any) -> Tuple[Any, bool]:
    """
    Split an annotation into its declared type and marker presence.

    ``Annotated[str, CONFIDENTIAL]`` gives ``(str, True)``; anything else
    is returned unchanged with ``False``.
    """
    if get_origin(annotation) is Annotated:
        declared, *extras = get_args(annotation)
        marked = any(
            extra is Confidential or isinstance(extra, Confidential)
            for extra in extras
        )
        return declared, marked
    return annotation, False


def is_confidential(
    annotation: Any,
    dataclass_field: Optional[dataclasses.Field] = None,
) -> bool:
    """Check whether an annotation (or its dataclass field) carries the marker."""
    _, marked = split_annotation(annotation)
    if marked:
        return True
    if dataclass_field is not None:
        return bool(dataclass_field.metadata.get(CONFIDENTIAL_METADATA_KEY, False))
    return False
