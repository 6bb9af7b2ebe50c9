"""
Public entry points for xray_crawler.

``Xray`` holds the shared configuration (filters, custom types, strict mode,
crawler) and builds ``Node`` objects; a node binds a source, a scope and a
schema and runs them, optionally across several pages.
"""

import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from .config import Options
from .crawler import Crawler, Driver
from .custom_types import Discriminator, TypeHandler, TypeRegistry
from .document import is_document_context, load_document
from .pagination import AbortPredicate, PaginationController, PaginationState
from .resolve import Filters, resolve
from .schema import is_collection
from .sinks import FileSink, PageWriter, ResultSink, ResultStream, create_writer
from .utils import is_html, is_url, strip_missing
from .validate import assert_valid_type
from .walker import SchemaWalker

logger = logging.getLogger(__name__)

_UNSET = object()

Callback = Callable[[Optional[BaseException], Any], Any]


def _has_source(source: Any) -> bool:
    return is_document_context(source) or (isinstance(source, str) and source != "")


class Node:
    """
    A schema bound to a source and a scope.

    Awaiting a node runs it; ``run`` reports through a callback, ``stream``
    yields JSON text page by page and ``write`` streams into a file. A node
    placed inside another schema is resolved against the enclosing context.
    """

    def __init__(self, xray: "Xray", source: Any, scope: Optional[str], selector: Any):
        """
        Initialize Node.

        Args:
            xray: Owning Xray instance
            source: URL, HTML text, document context, or None
            scope: Scope selector, or a ``selector@attr`` naming a URL to follow
            selector: Schema to extract
        """
        self.xray = xray
        self.source = source
        self.scope = scope
        self.selector = selector
        self._paginate: Optional[str] = None
        self._limit: float = math.inf
        self._abort: Optional[AbortPredicate] = None

    def __repr__(self) -> str:
        return f"Node(scope={self.scope!r}, selector={self.selector!r})"

    def paginate(self, selector: str) -> "Node":
        """
        Follow a next-page link after every page.

        Args:
            selector: Literal selector resolving to the next page URL (e.g. ``.next@href``)
        """
        self._paginate = selector
        return self

    def limit(self, pages: Optional[float]) -> "Node":
        """Stop after walking this many pages (None for no limit)."""
        self._limit = math.inf if pages is None else pages
        return self

    def abort(self, predicate: AbortPredicate) -> "Node":
        """Stop when ``predicate(result_so_far, next_url)`` returns True."""
        self._abort = predicate
        return self

    async def __call__(self, source: Any = _UNSET) -> Any:
        """
        Run the node and return its result.

        Args:
            source: Overrides the source given at construction

        Returns:
            Extracted data
        """
        return strip_missing(await self._execute(source, None))

    def __await__(self):
        return self().__await__()

    async def resolve_in(self, context) -> Any:
        """Resolve the node against an enclosing document context."""
        return await self._execute(context, None)

    async def run(self, callback: Callback, source: Any = _UNSET) -> None:
        """
        Run the node and report through a callback.

        The callback is called exactly once, as ``callback(error, None)`` or
        ``callback(None, result)``.

        Args:
            callback: Receives the outcome
            source: Overrides the source given at construction
        """
        try:
            result = await self(source)
        except Exception as e:
            logger.debug(f"Run failed: {e}")
            callback(e, None)
            return
        callback(None, result)

    def stream(self, source: Any = _UNSET) -> ResultStream:
        """
        Stream the result as JSON text.

        Collections are streamed as one array growing page by page; other
        results arrive as a single document when the run completes.

        Args:
            source: Overrides the source given at construction

        Returns:
            Async iterator of text chunks
        """
        return ResultStream(lambda sink: self._execute(source, sink))

    async def write(self, path: Union[str, Path], source: Any = _UNSET) -> str:
        """
        Stream the result into a file.

        Args:
            path: Destination file
            source: Overrides the source given at construction

        Returns:
            Path of the written file

        Raises:
            Exception: The error the run failed with
        """
        sink = FileSink(path)
        await self._execute(source, sink)
        return str(sink.path)

    async def _execute(self, source: Any, sink: Optional[ResultSink]) -> Any:
        if source is _UNSET:
            source = self.source

        state = PaginationState(paginate=self._paginate, remaining_limit=self._limit, abort=self._abort)
        walker = SchemaWalker(self.xray, self.scope, self.xray.filters, self.xray.types, self.xray.strict)
        collection = is_collection(self.selector)
        writer: PageWriter = create_writer(sink, collection)

        controller = PaginationController(
            walk=lambda document: walker.walk(self.selector, document),
            fetch=self._load_url,
            state=state,
            collection=collection,
            filters=self.xray.filters,
            writer=writer,
        )
        return await controller.run(lambda: self._first_document(source))

    async def _first_document(self, source: Any):
        if self.xray.strict:
            assert_valid_type(self.selector, "selector", self.xray.types)

        if is_url(source):
            logger.debug(f"Starting at: {source}")
            return await self._load_url(source)

        if _has_source(source) and self.scope and "@" in self.scope:
            logger.debug(f"Resolving scope to a url: {self.scope}")
            url = resolve(load_document(source), None, self.scope, self.xray.filters)
            if not is_url(url):
                logger.debug(f"{url!r} is not a url, skipping")
                return load_document("")
            logger.debug(f"Resolved {self.scope!r} to {url}")
            return await self._load_url(url)

        if _has_source(source):
            return load_document(source)

        logger.debug(f"{source!r} is not a url or html, walking an empty document")
        return load_document("")

    async def _load_url(self, url: str):
        response = await self.xray.crawler.fetch(url)
        return load_document(response.body, response.url or url)


class Xray:
    """
    Factory for scrape nodes sharing filters, custom types and a crawler.

    Call it as ``x(schema)``, ``x(source_or_scope, schema)`` or
    ``x(source, scope, schema)``.
    """

    def __init__(
        self,
        strict: Optional[bool] = None,
        filters: Optional[Filters] = None,
        crawler: Optional[Crawler] = None,
        options: Optional[Options] = None,
    ):
        """
        Initialize Xray.

        Args:
            strict: Validate schemas before running (overrides options.strict)
            filters: Named filter table
            crawler: Crawler used for every fetch
            options: Construction options
        """
        self.options = options or Options()
        self.strict = self.options.strict if strict is None else strict
        self.filters: Dict[str, Callable[..., Any]] = dict(filters or {})
        self.types = TypeRegistry()
        self.crawler = crawler or Crawler(self.options.crawler)

    def __call__(self, *args: Any) -> Node:
        if len(args) == 1:
            return self.build(None, None, args[0])
        if len(args) == 2:
            first, selector = args
            if is_url(first) or is_document_context(first) or is_html(first):
                return self.build(first, None, selector)
            return self.build(None, first, selector)
        if len(args) == 3:
            return self.build(*args)
        raise TypeError(f"Xray() takes 1 to 3 arguments ({len(args)} given)")

    def build(self, source: Any, scope: Optional[str], selector: Any) -> Node:
        """Create a node without guessing which argument is which."""
        return Node(self, source, scope, selector)

    def register_type(self, name: str, handler: TypeHandler, validator: Optional[Discriminator] = None) -> "Xray":
        """
        Register a custom schema type.

        Args:
            name: Type name
            handler: Called as ``handler(value, context, scope, filters)``
            validator: Decides which schema values belong to this type
        """
        self.types.register(name, handler, validator)
        return self

    def get_type(self, name: str) -> Optional[TypeHandler]:
        """Return the handler registered under a name, or None."""
        custom = self.types.get(name)
        return custom.handler if custom else None

    def driver(self, driver: Union[Driver, Callable[[str], Any]]) -> "Xray":
        self.crawler.driver = driver
        return self

    def concurrency(self, concurrency: Optional[int]) -> "Xray":
        self.crawler.set_concurrency(concurrency)
        return self

    def throttle(self, requests_per_window: int, per_seconds: float = 1.0) -> "Xray":
        self.crawler.set_throttle(requests_per_window, per_seconds)
        return self

    def delay(self, minimum: float, maximum: Optional[float] = None) -> "Xray":
        self.crawler.set_delay(minimum, maximum)
        return self

    def timeout(self, seconds: Optional[float]) -> "Xray":
        self.crawler.set_timeout(seconds)
        return self
