"""
Error types for xray_crawler.

Configuration mistakes, fetch failures and extraction failures each get their
own exception so callers can tell a bad schema from a bad network.
"""

from typing import Optional


class XrayError(Exception):
    """Base class for every error raised by xray_crawler."""


class ConfigurationError(XrayError, TypeError):
    """
    Raised for an invalid schema, an unknown filter or an unusable selector.

    Attributes:
        path: Key path of the offending schema node (e.g. ``selector.items[0].price``)
        received_type: Type name observed at that path
    """

    def __init__(self, message: str, path: Optional[str] = None, received_type: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.received_type = received_type


class FetchError(XrayError):
    """Raised by a driver when a document could not be fetched."""

    def __init__(self, message: str, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class ExtractionError(XrayError):
    """Raised by a function leaf or a custom type handler to signal failure."""
