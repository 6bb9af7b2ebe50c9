"""
Link absolutization for freshly loaded documents.

Every href/src-bearing element is rewritten in place so that selectors like
``a@href`` yield absolute URLs that pagination and nested crawls can follow.
"""

import logging
from urllib.parse import urljoin, urlsplit

logger = logging.getLogger(__name__)

LINK_SELECTOR = ", ".join([
    "a[href]",
    "img[src]",
    "script[src]",
    "link[href]",
    "source[src]",
    "track[src]",
    "frame[src]",
    "iframe[src]",
])


def absolutize(url: str, document) -> None:
    """
    Rewrite relative links of a document against the URL it came from.

    A single ``<base href>`` inside ``<head>`` takes precedence over the
    page URL for relative (non root-relative) links. Values that already
    contain ``://`` are left untouched.

    Args:
        url: URL the document was fetched from
        document: Document context to rewrite
    """
    parts = urlsplit(url)
    remote = f"{parts.scheme}://{parts.netloc}"
    base_href = None

    bases = document.find("head base")
    if len(bases) == 1:
        base_href = bases.attribute("href")
        if base_href:
            remote = base_href

    rewritten = 0
    for element in document.find(LINK_SELECTOR).elements():
        key = "href" if element.attribute("href") else "src" if element.attribute("src") else None
        if key is None:
            continue

        src = element.attribute(key).strip()
        if "://" not in src:
            try:
                if base_href and not src.startswith("/"):
                    current = urljoin(remote, base_href)
                else:
                    current = urljoin(remote, parts.path)
                src = urljoin(current, src)
                rewritten += 1
            except ValueError as e:
                logger.debug(f"Leaving unparseable link '{src}' as-is: {e}")

        element.set_attribute(key, src)

    logger.debug(f"Absolutized {rewritten} link(s) against {url}")
