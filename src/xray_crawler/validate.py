"""
Schema validation for strict mode.

Checks the shape of a whole schema before anything is fetched or walked and
reports the first offending key path.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .custom_types import TypeRegistry
from .errors import ConfigurationError
from .schema import (
    Custom, Function, Literal, Mapping, Null, Pattern, Sequence, Unsupported,
    classify, type_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one schema value."""
    valid: bool
    type: str
    error: Optional[str] = None
    path: Optional[str] = None


_VALID_SCALARS = {
    Null: "null",
    Literal: "string",
    Function: "function",
    Pattern: "regexp",
}


def validate_type(value: Any, path: str = "selector", custom_types: Optional[TypeRegistry] = None) -> ValidationResult:
    """
    Validate a schema value and everything nested inside it.

    Args:
        value: Schema value to validate
        path: Key path of the value, used in error messages
        custom_types: Registered custom types

    Returns:
        ValidationResult for the value, or for the first invalid nested value
    """
    path = path or "selector"
    variant = classify(value, custom_types)

    scalar = _VALID_SCALARS.get(type(variant))
    if scalar is not None:
        return ValidationResult(True, scalar)

    if isinstance(variant, Custom):
        return ValidationResult(True, f"custom:{variant.type.name}")

    if isinstance(variant, Sequence):
        element = variant.element
        if isinstance(element, str):
            return ValidationResult(True, "array-string")
        if isinstance(element, dict):
            nested = validate_object(element, f"{path}[0]", custom_types)
            return nested if not nested.valid else ValidationResult(True, "array-object")
        nested = validate_type(element, f"{path}[0]", custom_types)
        return nested if not nested.valid else ValidationResult(True, "array-array")

    if isinstance(variant, Mapping):
        return validate_object(variant.fields, path, custom_types)

    if isinstance(value, list):
        if not value:
            return ValidationResult(
                False, "array",
                f'Empty array selector at "{path}". Arrays must contain at least one element.',
                path,
            )
        return ValidationResult(
            False, "array",
            f'Invalid array selector at "{path}". Arrays must contain either a string, '
            f'a dict or a list, got {type_name(value[0])}.',
            path,
        )

    received = variant.type_name if isinstance(variant, Unsupported) else type_name(value)
    return ValidationResult(
        False, received,
        f'Unsupported selector type at "{path}". Got {received}, expected '
        f'string, function, list, dict, compiled pattern or None.',
        path,
    )


def validate_object(obj: Dict[str, Any], path: str, custom_types: Optional[TypeRegistry] = None) -> ValidationResult:
    """
    Validate a mapping schema.

    Args:
        obj: Mapping of key to sub-schema
        path: Key path of the mapping
        custom_types: Registered custom types

    Returns:
        ValidationResult of the mapping or of its first invalid property
    """
    if not obj:
        return ValidationResult(
            False, "object",
            f'Empty object selector at "{path}". Objects must contain at least one property.',
            path,
        )

    for key, value in obj.items():
        result = validate_type(value, f"{path}.{key}", custom_types)
        if not result.valid:
            return result

    return ValidationResult(True, "object")


def assert_valid_type(value: Any, path: str = "selector", custom_types: Optional[TypeRegistry] = None) -> None:
    """
    Validate a schema and raise on the first problem.

    Raises:
        ConfigurationError: With ``path`` and ``received_type`` of the offending value
    """
    result = validate_type(value, path, custom_types)
    if not result.valid:
        logger.debug(f"Schema rejected at {result.path}: {result.error}")
        raise ConfigurationError(result.error, path=result.path, received_type=result.type)


def get_type_name(value: Any, custom_types: Optional[TypeRegistry] = None) -> str:
    """Return the schema type name of a value (e.g. ``array-object``)."""
    return validate_type(value, "", custom_types).type


def is_valid_type(value: Any, custom_types: Optional[TypeRegistry] = None) -> bool:
    """Check whether a value is a valid schema."""
    return validate_type(value, "", custom_types).valid
