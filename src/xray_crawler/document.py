"""
Document module for xray_crawler.

Wraps a BeautifulSoup tree (or a selection inside one) behind the small set
of capabilities the walker needs: query, text, attribute, inner markup and
narrowing to a scope.
"""

import logging
from typing import Any, Iterable, List, Optional, Protocol, Union

import soupsieve
from bs4 import BeautifulSoup, Tag

from .absolutes import absolutize
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

PARSER = "html.parser"


class DocumentContext(Protocol):
    """Capabilities a document or sub-selection must offer to be walked."""

    def query_all(self, selector: str) -> List["DocumentContext"]:
        ...

    def narrow(self, selector: str) -> "DocumentContext":
        ...

    def first(self, selector: str) -> "DocumentContext":
        ...

    def matches(self, selector: str) -> bool:
        ...

    def text(self) -> str:
        ...

    def attribute(self, name: str) -> Optional[str]:
        ...

    def inner_html(self) -> Optional[str]:
        ...

    def is_empty(self) -> bool:
        ...


class SoupContext:
    """
    A document, or an ordered selection of elements within one.

    Selections behave like a jQuery/cheerio set: text is the concatenated
    text of every element, attributes and markup come from the first one.
    """

    def __init__(self, nodes: Iterable[Tag], root: Optional[BeautifulSoup] = None):
        """
        Initialize SoupContext.

        Args:
            nodes: Elements making up this selection, in document order
            root: Owning document (defaults to the first node's document)
        """
        self.nodes: List[Tag] = list(nodes)
        if root is None and self.nodes:
            first = self.nodes[0]
            root = first if isinstance(first, BeautifulSoup) else _owner(first)
        self.root = root

    @classmethod
    def parse(cls, html: Optional[str]) -> "SoupContext":
        """Parse HTML text into a document context."""
        soup = BeautifulSoup(html or "", PARSER)
        return cls([soup], soup)

    @property
    def is_document(self) -> bool:
        return len(self.nodes) == 1 and isinstance(self.nodes[0], BeautifulSoup)

    def __len__(self) -> int:
        return len(self.nodes)

    def __repr__(self) -> str:
        names = ", ".join(node.name for node in self.nodes[:3])
        return f"SoupContext([{names}{', ...' if len(self.nodes) > 3 else ''}])"

    def is_empty(self) -> bool:
        return not self.nodes

    def matches(self, selector: str) -> bool:
        """
        Check whether any element of the selection matches a selector.

        The document node itself never matches.

        Args:
            selector: CSS selector

        Returns:
            True if at least one element matches
        """
        if not selector:
            return False
        compiled = _compile(selector)
        return any(
            not isinstance(node, BeautifulSoup) and compiled.match(node)
            for node in self.nodes
        )

    def find(self, selector: str) -> "SoupContext":
        """
        Select descendants of the selection matching a selector.

        Args:
            selector: CSS selector

        Returns:
            Selection of matches in document order
        """
        if not selector:
            return SoupContext([], self.root)
        compiled = _compile(selector)
        seen = set()
        found: List[Tag] = []
        for node in self.nodes:
            for match in compiled.select(node):
                if id(match) not in seen:
                    seen.add(id(match))
                    found.append(match)
        return SoupContext(found, self.root)

    def narrow(self, selector: str) -> "SoupContext":
        """
        Narrow the context to a scope.

        A selection whose elements already match the scope is returned as-is,
        otherwise matching descendants are selected.

        Args:
            selector: Scope selector

        Returns:
            Narrowed selection
        """
        if self.matches(selector):
            return self
        return self.find(selector)

    def query_all(self, selector: str) -> List["SoupContext"]:
        """Return every element of the narrowed selection as its own context."""
        return self.narrow(selector).elements()

    def first(self, selector: str) -> "SoupContext":
        """Return the first descendant matching a selector."""
        return self.find(selector).eq(0)

    def eq(self, index: int) -> "SoupContext":
        """Return the element at an index as a single-element selection."""
        if 0 <= index < len(self.nodes):
            return SoupContext([self.nodes[index]], self.root)
        return SoupContext([], self.root)

    def elements(self) -> List["SoupContext"]:
        """Split the selection into single-element selections."""
        return [SoupContext([node], self.root) for node in self.nodes]

    def text(self) -> str:
        """Concatenated text content of the selection."""
        return "".join(node.get_text() for node in self.nodes)

    def attribute(self, name: str) -> Optional[str]:
        """
        Read an attribute from the first element.

        Multi-valued attributes such as ``class`` are joined with spaces.

        Args:
            name: Attribute name

        Returns:
            Attribute value or None if absent
        """
        if not self.nodes or isinstance(self.nodes[0], BeautifulSoup):
            return None
        value = self.nodes[0].get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def set_attribute(self, name: str, value: str) -> None:
        for node in self.nodes:
            if not isinstance(node, BeautifulSoup):
                node[name] = value

    def inner_html(self) -> Optional[str]:
        """Serialized inner markup of the first element."""
        if not self.nodes:
            return None
        return self.nodes[0].decode_contents()


def _owner(tag: Tag) -> Optional[BeautifulSoup]:
    node = tag
    while node.parent is not None:
        node = node.parent
    return node if isinstance(node, BeautifulSoup) else None


def _compile(selector: str):
    try:
        return soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as e:
        raise ConfigurationError(f"Invalid selector '{selector}': {e}") from e


def load_document(source: Union[str, SoupContext, BeautifulSoup, Tag, None], url: Optional[str] = None) -> SoupContext:
    """
    Turn a source into a document context.

    Args:
        source: HTML text, an existing context, or a BeautifulSoup tree/tag
        url: URL the document was loaded from; links are made absolute against it

    Returns:
        Document context ready to be walked
    """
    if isinstance(source, SoupContext):
        document = source
    elif isinstance(source, Tag):
        document = SoupContext([source])
    else:
        document = SoupContext.parse(source)
        logger.debug(f"Parsed document of {len(source or '')} characters")

    if url:
        absolutize(url, document)

    return document


def is_document_context(value: Any) -> bool:
    """Check whether a value can be walked directly without parsing."""
    return isinstance(value, (SoupContext, Tag))
