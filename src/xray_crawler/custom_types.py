"""
Registry of custom schema leaf types.

A custom type is a (discriminator, handler) pair: any schema value the
discriminator accepts is handed to the handler instead of the built-in
resolution rules.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

# handler(value, context, scope, filters) -> value or awaitable
TypeHandler = Callable[..., Any]
Discriminator = Callable[[Any], bool]


@dataclass(frozen=True)
class CustomType:
    """A registered custom type."""
    name: str
    handler: TypeHandler
    validator: Optional[Discriminator] = None

    def accepts(self, value: Any) -> bool:
        return self.validator is not None and bool(self.validator(value))


class TypeRegistry:
    """Custom types in registration order."""

    def __init__(self):
        self._types: Dict[str, CustomType] = {}

    def register(self, name: str, handler: TypeHandler, validator: Optional[Discriminator] = None) -> CustomType:
        """
        Register (or replace) a custom type.

        Args:
            name: Type name
            handler: Called as ``handler(value, context, scope, filters)``
            validator: Discriminator deciding which schema values belong to this type

        Returns:
            The registered CustomType
        """
        custom = CustomType(name=name, handler=handler, validator=validator)
        self._types[name] = custom
        logger.debug(f"Registered custom type '{name}'")
        return custom

    def get(self, name: str) -> Optional[CustomType]:
        return self._types.get(name)

    def match(self, value: Any) -> Optional[CustomType]:
        """Return the first registered type whose discriminator accepts the value."""
        for custom in self._types.values():
            if custom.accepts(value):
                return custom
        return None

