"""
Leaf resolver for xray_crawler.

Resolves a single literal selector (or its one-element list form) against a
document context: locate the element(s), read text, markup or an attribute,
then run the declared filters left to right.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import ConfigurationError
from .selector import ParsedSelector, parse_selector
from .utils import MISSING, strip_missing

logger = logging.getLogger(__name__)

Filters = Dict[str, Callable[..., Any]]

TEXT = "text"
HTML = "html"


def resolve(
    context,
    scope: Optional[str],
    selector: Union[str, List[str]],
    filters: Optional[Filters] = None,
) -> Any:
    """
    Resolve a literal selector against a document context.

    Args:
        context: Document context to search
        scope: Scope selector narrowing the search, or None
        selector: Literal selector, or a one-element list for every match
        filters: Named filter table

    Returns:
        A scalar (or MISSING) for the single form, a list for the list form

    Raises:
        ConfigurationError: If the selector references an unregistered filter
    """
    filters = filters or {}
    many = isinstance(selector, list)
    parsed = parse_selector(selector[0] if many else selector)
    _check_filters(parsed, filters)

    attribute = parsed.attribute or TEXT
    target = parsed.selector
    if not target:
        # '@attr' with a scope reads the scope element itself
        target, scope = scope, None

    if many:
        values = [
            strip_missing(_apply_filters(parsed, value, filters))
            for value in _find_all(context, scope, target, attribute)
        ]
        logger.debug(f"resolve([{selector[0]!r}]) => {len(values)} value(s)")
        return values

    value = _apply_filters(parsed, _find_one(context, scope, target, attribute), filters)
    logger.debug(f"resolve({selector!r}) => {value!r}")
    return value


def _check_filters(parsed: ParsedSelector, filters: Filters) -> None:
    for name in parsed.filter_names:
        if not callable(filters.get(name)):
            raise ConfigurationError(f"Invalid filter: {name}", received_type="filter")


def _find_one(context, scope: Optional[str], target: Optional[str], attribute: str) -> Any:
    if scope:
        element = context.narrow(scope).first(target)
    elif target:
        element = context.narrow(target).eq(0)
    else:
        element = context
    return _read(element, attribute)


def _find_all(context, scope: Optional[str], target: Optional[str], attribute: str) -> List[Any]:
    if not target:
        return [_read(context, attribute)] if not context.is_empty() else []
    if scope:
        values = []
        for element in context.query_all(scope):
            values.extend(_read(child, attribute) for child in element.query_all(target))
        return values
    return [_read(element, attribute) for element in context.query_all(target)]


def _read(element, attribute: str) -> Any:
    if element.is_empty():
        return MISSING
    if attribute == HTML:
        value = element.inner_html()
    elif attribute == TEXT:
        value = element.text().strip()
    else:
        value = element.attribute(attribute)
    return MISSING if value is None else value


def _apply_filters(parsed: ParsedSelector, value: Any, filters: Filters) -> Any:
    if value is MISSING:
        return value
    for call in parsed.filters:
        filtered = filters[call.name](value, *call.args)
        logger.debug(f"{call.name}({value!r}, {list(call.args)}) => {filtered!r}")
        value = filtered
    return value
