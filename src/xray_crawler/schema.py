"""
Schema variants for xray_crawler.

Schemas are written as plain Python values (strings, callables, compiled
patterns, None, dicts, one-element lists and registered custom values).
``classify`` maps a value onto exactly one variant so the walker can
dispatch over a closed set of shapes.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from .custom_types import CustomType, TypeRegistry


@dataclass(frozen=True)
class Null:
    """Explicit optional leaf; always yields None."""


@dataclass(frozen=True)
class Literal:
    """Selector string with optional ``@attribute`` and ``| filter`` chain."""
    selector: str


@dataclass(frozen=True)
class Function:
    """Foreign resolver called with the current context."""
    fn: Callable[..., Any]


@dataclass(frozen=True)
class Pattern:
    """Regular expression applied to the text of the current context."""
    regex: re.Pattern


@dataclass(frozen=True)
class Custom:
    """Value claimed by a registered custom type."""
    type: CustomType
    value: Any


@dataclass(frozen=True)
class Sequence:
    """One-element list: every match of the element schema."""
    element: Any

    @property
    def of_literals(self) -> bool:
        return isinstance(self.element, str)


@dataclass(frozen=True)
class Mapping:
    """Named sub-schemas; output keys keep this order."""
    fields: Dict[str, Any]


@dataclass(frozen=True)
class Unsupported:
    """Anything else; dropped in permissive mode, rejected in strict mode."""
    value: Any
    type_name: str


Variant = Union[Null, Literal, Function, Pattern, Custom, Sequence, Mapping, Unsupported]


def type_name(value: Any) -> str:
    return type(value).__name__


def classify(value: Any, registry: Optional[TypeRegistry] = None) -> Variant:
    """
    Map a raw schema value onto its variant.

    Custom discriminators are consulted after the scalar shapes and before
    lists and dicts, so custom payloads are never mistaken for plain
    structures.

    Args:
        value: Raw schema value
        registry: Registered custom types

    Returns:
        The matching variant
    """
    if value is None:
        return Null()
    if isinstance(value, str):
        return Literal(value)

    nested = getattr(value, "resolve_in", None)
    if callable(nested):
        return Function(nested)
    if callable(value):
        return Function(value)
    if isinstance(value, re.Pattern):
        return Pattern(value)

    if registry is not None:
        custom = registry.match(value)
        if custom is not None:
            return Custom(custom, value)

    if isinstance(value, list):
        if value and isinstance(value[0], (str, dict, list)):
            return Sequence(value[0])
        return Unsupported(value, "list")
    if isinstance(value, dict):
        return Mapping(value)

    return Unsupported(value, type_name(value))


def is_collection(value: Any) -> bool:
    """Check whether a schema root denotes a collection of results."""
    return isinstance(value, list)
