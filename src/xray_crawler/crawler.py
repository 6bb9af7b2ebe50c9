"""
Crawler module for xray_crawler.

Fetches documents through a pluggable driver while applying the fetch policy
(concurrency, throttle, delay, timeout) from CrawlerConfig.
"""

import asyncio
import collections
import inspect
import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Optional, Union

import requests

from .config import CrawlerConfig, ThrottleConfig
from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"User-Agent": "xray-crawler/1.0 (+https://pypi.org/project/xray-crawler/)"}


@dataclass
class Response:
    """A fetched document."""
    url: str
    body: str
    status: int = 200


class Driver(ABC):
    """Abstract base class for fetch drivers."""

    @abstractmethod
    async def fetch(self, url: str) -> Response:
        """
        Fetch a URL.

        Args:
            url: URL to fetch

        Returns:
            Response with the final URL after redirects and the body text

        Raises:
            FetchError: If the document could not be fetched
        """
        pass


class RequestsDriver(Driver):
    """Driver fetching pages with requests in a worker thread."""

    def __init__(self, timeout: float = 30.0, headers: Optional[Dict[str, str]] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize RequestsDriver.

        Args:
            timeout: Socket timeout in seconds
            headers: Extra request headers
            session: Session to reuse (one is created if omitted)
        """
        self.timeout = timeout
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}
        self.session = session or requests.Session()

    def _get(self, url: str) -> Response:
        try:
            response = self.session.get(url, timeout=self.timeout, headers=self.headers)
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch {url}: {e}", url=url) from e

        if response.status_code >= 400:
            raise FetchError(
                f"Failed to fetch {url}: HTTP {response.status_code}",
                url=url, status=response.status_code,
            )
        return Response(url=response.url or url, body=response.text, status=response.status_code)

    async def fetch(self, url: str) -> Response:
        return await asyncio.to_thread(self._get, url)


class CallableDriver(Driver):
    """
    Adapts a plain callable to the Driver interface.

    The callable receives the URL and returns a Response, HTML text, or an
    awaitable of either.
    """

    def __init__(self, fn: Callable[[str], Any]):
        self.fn = fn

    async def fetch(self, url: str) -> Response:
        result = self.fn(url)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, Response):
            return result
        return Response(url=url, body=result or "")


def create_driver(name: str, config: Optional[CrawlerConfig] = None) -> Driver:
    """
    Factory function to create a named driver.

    Args:
        name: Driver name ("requests" or "browser")
        config: Crawler configuration

    Returns:
        Configured driver

    Raises:
        ValueError: If the driver is not supported
    """
    timeout = config.timeout if config and config.timeout else 30.0
    if name == "requests":
        return RequestsDriver(timeout=timeout)
    elif name == "browser":
        from .browser import BrowserDriver
        return BrowserDriver()
    else:
        raise ValueError(f"Unsupported driver: {name}")


class Crawler:
    """Fetches documents through a driver under the configured fetch policy."""

    def __init__(self, config: Optional[CrawlerConfig] = None, driver: Union[Driver, Callable, None] = None):
        """
        Initialize Crawler.

        Args:
            config: Fetch policy
            driver: Driver or callable; defaults to the driver named in config
        """
        self.config = config or CrawlerConfig()
        self._driver: Optional[Driver] = None
        if driver is not None:
            self.driver = driver
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._sent: Deque[float] = collections.deque()
        self._throttle_lock: Optional[asyncio.Lock] = None
        self._requests = 0

    @property
    def driver(self) -> Driver:
        if self._driver is None:
            self._driver = create_driver(self.config.driver, self.config)
        return self._driver

    @driver.setter
    def driver(self, driver: Union[Driver, Callable]) -> None:
        self._driver = driver if isinstance(driver, Driver) else CallableDriver(driver)

    def set_concurrency(self, concurrency: Optional[int]) -> None:
        self.config.concurrency = concurrency
        self._semaphore = None

    def set_throttle(self, requests_per_window: int, per_seconds: float = 1.0) -> None:
        self.config.throttle = ThrottleConfig(requests=requests_per_window, per_seconds=per_seconds)

    def set_delay(self, minimum: float, maximum: Optional[float] = None) -> None:
        self.config.delay = (minimum, maximum if maximum is not None else minimum)

    def set_timeout(self, timeout: Optional[float]) -> None:
        self.config.timeout = timeout

    async def fetch(self, url: str) -> Response:
        """
        Fetch a URL under the fetch policy.

        Args:
            url: URL to fetch

        Returns:
            Response from the driver

        Raises:
            FetchError: On timeout; driver errors pass through unchanged
        """
        semaphore = self._get_semaphore()
        if semaphore is None:
            return await self._fetch(url)
        async with semaphore:
            return await self._fetch(url)

    def _get_semaphore(self) -> Optional[asyncio.Semaphore]:
        if self.config.concurrency and self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.config.concurrency)
        return self._semaphore

    async def _fetch(self, url: str) -> Response:
        await self._wait_for_turn()
        logger.debug(f"Fetching {url}")

        timeout = self.config.timeout
        try:
            if timeout:
                response = await asyncio.wait_for(self.driver.fetch(url), timeout)
            else:
                response = await self.driver.fetch(url)
        except asyncio.TimeoutError as e:
            raise FetchError(f"Timed out after {timeout}s fetching {url}", url=url) from e

        logger.debug(f"Got response for {url} with status code: {response.status}")
        return response

    async def _wait_for_turn(self) -> None:
        minimum, maximum = self.config.delay
        if self._requests and maximum > 0:
            await asyncio.sleep(random.uniform(minimum, maximum))
        self._requests += 1

        throttle = self.config.throttle
        if throttle is None:
            return
        if self._throttle_lock is None:
            self._throttle_lock = asyncio.Lock()
        # one caller at a time may inspect and claim a slot in the window
        async with self._throttle_lock:
            while True:
                now = time.monotonic()
                while self._sent and now - self._sent[0] >= throttle.per_seconds:
                    self._sent.popleft()
                if len(self._sent) < throttle.requests:
                    break
                wait = throttle.per_seconds - (now - self._sent[0])
                logger.debug(f"Throttling for {wait:.2f}s")
                await asyncio.sleep(wait)
            self._sent.append(time.monotonic())
