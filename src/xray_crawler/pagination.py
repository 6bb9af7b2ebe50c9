"""
Pagination controller for xray_crawler.

Drives walk / fetch cycles over one schema: walk the current page, decide
whether to stop or follow the next-page link, and report the terminal outcome
exactly once.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional

from .resolve import Filters, resolve
from .sinks import PageWriter
from .utils import is_url

logger = logging.getLogger(__name__)

AbortPredicate = Callable[[Any, str], bool]


class PageState(str, Enum):
    """Controller states; DONE and ABORTED are terminal."""
    INIT = "init"
    WALKED = "walked"
    FETCHING = "fetching"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class PaginationState:
    """
    Mutable state of one pagination chain.

    Owned by a single controller run and changed only at transition
    boundaries.
    """
    paginate: Optional[str] = None
    remaining_limit: float = math.inf
    abort: Optional[AbortPredicate] = None
    pages: List[Any] = field(default_factory=list)


@dataclass
class PageStats:
    """Statistics for one pagination chain."""
    pages_walked: int = 0
    pages_fetched: int = 0
    items: int = 0
    stop_reason: Optional[str] = None


class Completion:
    """Single-use completion token guarding the terminal report."""

    def __init__(self):
        self._claimed = False

    @property
    def done(self) -> bool:
        return self._claimed

    def claim(self) -> bool:
        """
        Claim the right to report the terminal outcome.

        Returns:
            True for the first caller, False for every later one
        """
        if self._claimed:
            return False
        self._claimed = True
        return True


class PaginationController:
    """Runs the Init -> Walked -> (Fetching -> Walked)* -> Done/Aborted cycle."""

    def __init__(
        self,
        walk: Callable[[Any], Awaitable[Any]],
        fetch: Callable[[str], Awaitable[Any]],
        state: PaginationState,
        collection: bool = False,
        filters: Optional[Filters] = None,
        writer: Optional[PageWriter] = None,
    ):
        """
        Initialize PaginationController.

        Args:
            walk: Walks the schema against a document context
            fetch: Fetches a URL and returns its document context
            state: Pagination state for this run
            collection: Whether the schema root denotes a collection
            filters: Filter table used to resolve the pagination selector
            writer: Receives page and terminal events
        """
        self.walk = walk
        self.fetch = fetch
        self.state = state
        self.collection = collection
        self.filters = filters or {}
        self.writer = writer or PageWriter()
        self.status = PageState.INIT
        self.stats = PageStats()
        self.completion = Completion()
        self._latest: Any = None

    @property
    def result(self) -> Any:
        """Result reported so far: every page for collections, else the latest page."""
        if self.state.paginate and self.collection:
            return list(self.state.pages)
        return self._latest

    async def run(self, first_document: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run the chain to completion.

        Args:
            first_document: Produces the document context of the first page

        Returns:
            The accumulated result

        Raises:
            Exception: The first fetch, walk or configuration error; reported
                to the writer before it propagates
        """
        try:
            document = await first_document()
            while True:
                value = await self.walk(document)
                next_url = self._advance(value, document)
                if next_url is None:
                    return await self._complete(value)

                await self.writer.page(value)

                self.status = PageState.FETCHING
                logger.debug(f"Paginating to {next_url}")
                if math.isfinite(self.state.remaining_limit):
                    logger.debug(f"{int(self.state.remaining_limit)} page(s) left to crawl")
                document = await self.fetch(next_url)
                self.stats.pages_fetched += 1
        except Exception as e:
            await self._fail(e)
            raise

    def _advance(self, value: Any, document) -> Optional[str]:
        """Record a walked page and return the next URL, or None to stop."""
        self.status = PageState.WALKED
        self.stats.pages_walked += 1
        self.state.remaining_limit -= 1
        self._latest = value

        if not self.state.paginate:
            self.status = PageState.DONE
            return None

        if isinstance(value, list):
            self.state.pages.extend(value)
            self.stats.items += len(value)
        else:
            self.state.pages.append(value)
            self.stats.items += 1

        if self.state.remaining_limit <= 0:
            return self._stop("limit reached")

        next_url = resolve(document, None, self.state.paginate, self.filters)
        if not is_url(next_url):
            return self._stop(f"{next_url!r} is not a url")

        if self.state.abort is not None and self.state.abort(self.result, next_url):
            return self._stop("abort predicate matched")

        return next_url

    def _stop(self, reason: str) -> None:
        logger.debug(f"Pagination stopped: {reason}")
        self.status = PageState.ABORTED
        self.stats.stop_reason = reason
        return None

    async def _complete(self, value: Any) -> Any:
        result = self.result
        if not self.completion.claim():
            logger.debug("Dropping duplicate completion")
            return result

        if self.state.paginate:
            logger.info(
                f"Pagination finished: {self.stats.pages_walked} page(s) walked, "
                f"{self.stats.pages_fetched} fetched, {self.stats.items} item(s) ({self.stats.stop_reason})"
            )
        try:
            await self.writer.end(value)
        except Exception as e:
            # the token is spent, so the failure has to be reported here
            logger.debug(f"Writing the final page failed: {e}")
            self.status = PageState.ABORTED
            await self.writer.fail(e)
            raise
        return result

    async def _fail(self, error: Exception) -> None:
        if not self.completion.claim():
            logger.debug(f"Dropping error after completion: {error}")
            return
        logger.debug(f"Run failed in state {self.status.value}: {error}")
        self.status = PageState.ABORTED
        await self.writer.fail(error)
