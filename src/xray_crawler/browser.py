"""
Browser driver for xray_crawler.

Fetches pages with Crawl4AI's headless browser so that documents rendered by
JavaScript can be walked. Requires the ``browser`` extra.
"""

import logging
from typing import Optional

from crawl4ai import AsyncWebCrawler, BrowserConfig, CacheMode, CrawlerRunConfig

from .crawler import Driver, Response
from .errors import FetchError

logger = logging.getLogger(__name__)


class BrowserDriver(Driver):
    """
    Driver backed by Crawl4AI's AsyncWebCrawler.

    The browser is started on the first fetch, or explicitly with
    ``async with BrowserDriver() as driver``.
    """

    def __init__(self, headless: bool = True):
        """
        Initialize BrowserDriver.

        Args:
            headless: Run the browser without a window
        """
        self.crawler: Optional[AsyncWebCrawler] = None
        self.browser_config = self._build_browser_config(headless)
        self.run_config = CrawlerRunConfig(cache_mode=CacheMode.BYPASS)

    def _build_browser_config(self, headless: bool) -> BrowserConfig:
        """Build browser configuration with performance optimizations."""
        return BrowserConfig(
            headless=headless,
            verbose=False,
            extra_args=[
                "--disable-gpu",
                "--disable-dev-shm-usage",
                "--no-sandbox",
                "--disable-features=VizDisplayCompositor"
            ]
        )

    async def start(self) -> None:
        if self.crawler is None:
            logger.info("Starting AsyncWebCrawler")
            self.crawler = AsyncWebCrawler(config=self.browser_config)
            await self.crawler.start()

    async def close(self) -> None:
        if self.crawler:
            logger.info("Closing AsyncWebCrawler")
            await self.crawler.close()
            self.crawler = None

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def fetch(self, url: str) -> Response:
        """
        Render a page and return its HTML.

        Args:
            url: URL to fetch

        Returns:
            Response with the rendered HTML

        Raises:
            FetchError: If the browser could not load the page
        """
        await self.start()
        result = await self.crawler.arun(url=url, config=self.run_config)
        if not result.success:
            raise FetchError(f"Failed to fetch {url}: {result.error_message}", url=url,
                             status=getattr(result, "status_code", None))
        return Response(
            url=getattr(result, "redirected_url", None) or result.url or url,
            body=result.html or "",
            status=getattr(result, "status_code", None) or 200,
        )
