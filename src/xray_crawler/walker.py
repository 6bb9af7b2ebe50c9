"""
Schema walker for xray_crawler.

Interprets a schema against a document context. Mapping fields and sequence
elements are walked as concurrent tasks and reassembled by declared key order
and document order; scalars are delegated to the leaf resolver.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Dict, List, Optional

from .custom_types import TypeRegistry
from .errors import ConfigurationError
from .resolve import Filters, resolve
from .schema import (
    Custom, Function, Literal, Mapping, Null, Pattern, Sequence, Unsupported, classify,
)
from .utils import MISSING, compact, root_scope
from .validate import validate_type

logger = logging.getLogger(__name__)


async def settle(result: Any) -> Any:
    """Await a result if a foreign callable handed back an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


async def gather_or_cancel(*aws: Awaitable[Any]) -> List[Any]:
    """
    Run awaitables concurrently and return their results in order.

    On the first failure every sibling still running is cancelled and
    awaited before the error propagates.

    Args:
        *aws: Awaitables to run

    Returns:
        Results in argument order
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class SchemaWalker:
    """
    Walks one schema against document contexts.

    A walker is bound to the scope and configuration of the node that owns it;
    nested sequence elements are delegated to child nodes built through
    ``xray.build`` so they get the same source and pagination handling.
    """

    def __init__(
        self,
        xray,
        scope: Optional[str],
        filters: Optional[Filters] = None,
        types: Optional[TypeRegistry] = None,
        strict: bool = False,
    ):
        """
        Initialize SchemaWalker.

        Args:
            xray: Owning Xray instance, used to build nodes for sequence elements
            scope: Scope selector of the owning node
            filters: Named filter table
            types: Registered custom types
            strict: Reject unsupported schema values instead of dropping them
        """
        self.xray = xray
        self.scope = scope
        self.filters = filters or {}
        self.types = types if types is not None else TypeRegistry()
        self.strict = strict

    async def walk(self, schema: Any, context, path: str = "selector") -> Any:
        """
        Walk a schema against a context.

        Args:
            schema: Schema value
            context: Document context
            path: Key path of the schema, used in error messages

        Returns:
            Scalar, list or dict; MISSING when a leaf produced no value
        """
        variant = classify(schema, self.types)
        if isinstance(variant, Mapping):
            return await self._walk_mapping(variant, context, path)
        return await self._walk_leaf(variant, context, path)

    async def _walk_mapping(self, mapping: Mapping, context, path: str) -> Dict[str, Any]:
        keys = list(mapping.fields)
        results = await gather_or_cancel(*(
            self.walk(mapping.fields[key], context, f"{path}.{key}") for key in keys
        ))

        out: Dict[str, Any] = {}
        for key, value in zip(keys, results):
            if value is MISSING or (isinstance(value, str) and value == ""):
                continue
            out[key] = value
        return out

    async def _walk_leaf(self, variant, context, path: str) -> Any:
        if isinstance(variant, Null):
            return None

        if isinstance(variant, Literal):
            return resolve(context, root_scope(self.scope), variant.selector, self.filters)

        if isinstance(variant, Function):
            return await settle(variant.fn(context))

        if isinstance(variant, Pattern):
            return self._match_pattern(variant, context)

        if isinstance(variant, Custom):
            logger.debug(f"Custom type '{variant.type.name}' handles {path}")
            return await settle(variant.type.handler(variant.value, context, self.scope, self.filters))

        if isinstance(variant, Sequence):
            if variant.of_literals:
                return resolve(context, root_scope(self.scope), [variant.element], self.filters)
            return await self._walk_sequence(variant, context, path)

        return self._unsupported(variant, path)

    async def _walk_sequence(self, sequence: Sequence, context, path: str) -> list:
        scope = root_scope(self.scope)
        if not scope:
            logger.debug(f"No usable scope for {path}, returning an empty list")
            return []

        elements = context.query_all(scope)
        if not elements:
            return []

        logger.debug(f"Walking {len(elements)} '{scope}' element(s) for {path}")
        results = await gather_or_cancel(*(
            self.xray.build(None, self.scope, sequence.element).resolve_in(element)
            for element in elements
        ))
        return compact(list(results))

    def _match_pattern(self, pattern: Pattern, context) -> Optional[str]:
        text = context.text()
        match = pattern.regex.search(text)
        if match is None:
            result = None
        elif match.re.groups and match.group(1) is not None:
            result = match.group(1)
        else:
            result = match.group(0)
        logger.debug(f"Pattern {pattern.regex.pattern!r} => {result!r}")
        return result

    def _unsupported(self, variant: Unsupported, path: str) -> Any:
        if self.strict:
            result = validate_type(variant.value, path, self.types)
            raise ConfigurationError(result.error, path=result.path, received_type=result.type)
        logger.debug(f"Unsupported selector type for {path}: {variant.type_name}, skipping")
        return MISSING
