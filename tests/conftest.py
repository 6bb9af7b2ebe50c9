import pytest

from xray_crawler.crawler import Crawler
from xray_crawler.errors import FetchError
from xray_crawler.node import Xray


class FakeSite:
    """In-memory website served through a callable driver."""

    def __init__(self, pages, failing=()):
        self.pages = pages
        self.failing = set(failing)
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        if url in self.failing:
            raise FetchError(f"Failed to fetch {url}: HTTP 500", url=url, status=500)
        if url not in self.pages:
            raise FetchError(f"Failed to fetch {url}: HTTP 404", url=url, status=404)
        return self.pages[url]


def listing_page(items, next_href=None):
    links = f'<a class="next" href="{next_href}">next</a>' if next_href else ""
    rows = "".join(f'<li><span class="name">{item}</span></li>' for item in items)
    return f"<html><body><h1>Page</h1><ul>{rows}</ul>{links}</body></html>"


@pytest.fixture
def site():
    return FakeSite({
        "https://example.com/1": listing_page(["a", "b"], "/2"),
        "https://example.com/2": listing_page(["c", "d"], "/3"),
        "https://example.com/3": listing_page(["e"], "/4"),
        "https://example.com/4": listing_page(["f"]),
    })


@pytest.fixture
def x(site):
    return Xray(crawler=Crawler(driver=site))
