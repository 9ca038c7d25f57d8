"""
Confidential Field Registry
===========================

Builds, validates and caches the per-type plan of confidential fields.

A plan lists, in declaration order, every marked field declared directly on
a class (inherited fields are not part of it) together with the names of
its canonical accessors (``name`` → ``getName`` / ``setName``).

Validation happens once, when the plan is built:
    - every marked field must be declared as ``str``
    - ``getX`` must be callable with no arguments
    - ``setX`` must be callable with one argument, annotated ``str`` if at all

Only valid plans are cached, so a broken class fails on every call.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import threading
import weakref
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Tuple, get_origin

from securefields.core.errors import AccessorResolutionError, FieldTypeError
from securefields.fields.marker import is_confidential, split_annotation

_ACCEPTED_SETTER_ANNOTATIONS = (inspect.Parameter.empty, str, "str")


@dataclass(frozen=True, slots=True)
class ConfidentialField:
    """One confidential field and its accessor names."""

    name: str
    declared_type: Any
    getter_name: str
    setter_name: str


def accessor_names(field_name: str) -> Tuple[str, str]:
    """Canonical getter/setter names for a field."""
    property_name = field_name[:1].upper() + field_name[1:]
    return f"get{property_name}", f"set{property_name}"


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)


class FieldRegistry:
    """
    Thread-safe cache of confidential field plans keyed by class.

    Classes are held weakly; a class created at runtime drops out of the
    cache once it is garbage collected.

    Usage:
        registry = FieldRegistry()
        for field in registry.fields_for(type(obj)):
            ...
    """

    __slots__ = ("_plans", "_lock", "_log")

    def __init__(self) -> None:
        self._plans: weakref.WeakKeyDictionary[type, Tuple[ConfidentialField, ...]] = (
            weakref.WeakKeyDictionary()
        )
        self._lock = threading.Lock()
        self._log = logging.getLogger("securefields.registry")

    def fields_for(self, cls: type) -> Tuple[ConfidentialField, ...]:
        """
        Get the validated plan for a class, building it on first use.

        Raises:
            FieldTypeError: If a marked field is not declared as str
            AccessorResolutionError: If an accessor is missing or unusable
        """
        plan = self._plans.get(cls)
        if plan is not None:
            return plan

        plan = self._build_plan(cls)
        with self._lock:
            return self._plans.setdefault(cls, plan)

    def register(self, cls: type) -> Tuple[ConfidentialField, ...]:
        """
        Validate and cache a class ahead of its first use.

        Returns:
            The class's plan, as fields_for() would return it

        Raises:
            FieldTypeError: If a marked field is not declared as str
            AccessorResolutionError: If an accessor is missing or unusable
        """
        return self.fields_for(cls)

    def is_registered(self, cls: type) -> bool:
        """True if a valid plan for cls is cached."""
        return cls in self._plans

    def clear(self) -> None:
        """Drop every cached plan; the next fields_for() call rebuilds it."""
        with self._lock:
            self._plans.clear()

    def __len__(self) -> int:
        return len(self._plans)

    def _build_plan(self, cls: type) -> Tuple[ConfidentialField, ...]:
        type_name = cls.__qualname__
        annotations = self._own_annotations(cls)
        dataclass_fields: Dict[str, dataclasses.Field] = cls.__dict__.get(
            "__dataclass_fields__", {}
        )

        plan = []
        for name, annotation in annotations.items():
            if get_origin(annotation) is ClassVar:
                continue
            if not is_confidential(annotation, dataclass_fields.get(name)):
                continue

            declared, _ = split_annotation(annotation)
            if declared is not str:
                raise FieldTypeError(
                    f"Fields requiring encryption must be of type str: "
                    f"{type_name}::{name} is declared as {_type_name(declared)}.",
                    type_name=type_name,
                    field_name=name,
                )

            getter_name, setter_name = accessor_names(name)
            self._check_accessor(cls, name, getter_name, arity=0)
            self._check_accessor(cls, name, setter_name, arity=1)

            plan.append(ConfidentialField(
                name=name,
                declared_type=declared,
                getter_name=getter_name,
                setter_name=setter_name,
            ))

        self._log.debug(f"Registered {type_name} with {len(plan)} confidential field(s)")
        return tuple(plan)

    @staticmethod
    def _own_annotations(cls: type) -> Dict[str, Any]:
        """Annotations declared directly on cls, string annotations evaluated."""
        try:
            return dict(inspect.get_annotations(cls, eval_str=True))
        except (NameError, AttributeError, SyntaxError, TypeError) as e:
            raise FieldTypeError(
                f"Could not resolve field annotations of {cls.__qualname__}: {e}",
                type_name=cls.__qualname__,
            ) from e

    @staticmethod
    def _check_accessor(cls: type, field_name: str, method_name: str, arity: int) -> None:
        type_name = cls.__qualname__
        kind = "setter" if arity else "getter"

        member = getattr(cls, method_name, None)
        if member is None or not callable(member):
            raise AccessorResolutionError(
                f"An exception occurred while getting the property {kind} for "
                f"{type_name}::{field_name}: {method_name}() not found.",
                type_name=type_name,
                field_name=field_name,
            )

        try:
            signature = inspect.signature(member)
        except (TypeError, ValueError) as e:
            raise AccessorResolutionError(
                f"Cannot inspect property {kind} {type_name}.{method_name}(): {e}",
                type_name=type_name,
                field_name=field_name,
            ) from e

        # Plain functions looked up on the class still expect the instance
        args: Tuple[Any, ...] = (None,) * arity
        raw = inspect.getattr_static(cls, method_name, None)
        if inspect.isfunction(member) and not isinstance(raw, staticmethod):
            args = (None,) + args

        try:
            bound = signature.bind(*args)
        except TypeError as e:
            raise AccessorResolutionError(
                f"Property {kind} {type_name}.{method_name}() must accept "
                f"exactly {arity} argument(s).",
                type_name=type_name,
                field_name=field_name,
            ) from e

        if not arity:
            return

        value_param = signature.parameters[list(bound.arguments)[-1]]
        if value_param.kind is inspect.Parameter.VAR_POSITIONAL:
            return
        if value_param.annotation not in _ACCEPTED_SETTER_ANNOTATIONS:
            raise AccessorResolutionError(
                f"Property setter {type_name}.{method_name}() must take a str, "
                f"not {_type_name(value_param.annotation)}.",
                type_name=type_name,
                field_name=field_name,
            )


default_registry = FieldRegistry()


def requires_confidentiality(cls: type | None = None, *, registry: FieldRegistry | None = None):
    """
    Class decorator that registers a class with confidential fields.

    Configuration mistakes (non-str fields, missing accessors) raise at
    class definition time instead of on the first encrypt/decrypt call.
    """
    def decorate(target: type) -> type:
        (default_registry if registry is None else registry).register(target)
        return target

    if cls is None:
        return decorate
    return decorate(cls)
