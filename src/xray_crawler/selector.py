"""
Literal selector grammar.

A literal selector reads ``<css selector>[@attribute][ | filter[:arg,...]]*``,
for example ``"a.next@href"`` or ``"h3 | trim | slice:4"``.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple

_SELECTOR_RE = re.compile(r'^([^@]*)(?:@\s*([\w\-:]+))?$')
# `|=` is an attribute operator, not a filter pipe
_FILTER_SPLIT_RE = re.compile(r'\s*\|(?!=)\s*')


@dataclass(frozen=True)
class FilterCall:
    """A named filter and the string arguments declared for it."""
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ParsedSelector:
    """The three parts of a literal selector."""
    selector: str
    attribute: Optional[str] = None
    filters: Tuple[FilterCall, ...] = field(default_factory=tuple)

    @property
    def filter_names(self) -> List[str]:
        return [f.name for f in self.filters]


def _parse_filter(text: str) -> FilterCall:
    name, _, raw_args = text.partition(':')
    args = tuple(arg.strip() for arg in raw_args.split(',')) if raw_args else ()
    return FilterCall(name=name.strip(), args=args)


@lru_cache(maxsize=1024)
def parse_selector(text: str) -> ParsedSelector:
    """
    Split a literal selector into selector, attribute and filter chain.

    Args:
        text: Literal selector

    Returns:
        ParsedSelector; an empty selector means "the current context"
    """
    head, *filters = _FILTER_SPLIT_RE.split(text)
    match = _SELECTOR_RE.match(head)
    if match:
        selector, attribute = match.group(1), match.group(2)
    else:
        # more than one '@': everything after the last one is the attribute
        selector, _, attribute = head.rpartition('@')

    return ParsedSelector(
        selector=(selector or "").strip(),
        attribute=attribute.strip() if attribute else None,
        filters=tuple(_parse_filter(f) for f in filters if f.strip()),
    )
