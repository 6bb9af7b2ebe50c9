"""
xray_crawler - declarative, schema-driven HTML extraction with pagination

This package turns a recursively-shaped selector schema into structured data:
- Selector strings with ``@attribute`` and ``| filter`` chains
- Mappings, collections and nested collections in document order
- Regular expression, function, optional and custom-type leaves
- Pagination with page limits and abort predicates
- Buffered, callback, streamed and file output
"""

__version__ = "1.0.0"

from .config import load_config, Config, CrawlerConfig, JobConfig, Options, ThrottleConfig
from .crawler import Crawler, Driver, RequestsDriver, CallableDriver, Response, create_driver
from .document import DocumentContext, SoupContext, load_document
from .errors import XrayError, ConfigurationError, FetchError, ExtractionError
from .node import Node, Xray
from .pagination import Completion, PageState, PageStats, PaginationController, PaginationState
from .resolve import resolve
from .selector import parse_selector
from .sinks import ResultSink, QueueSink, FileSink, ResultStream, create_sink
from .validate import ValidationResult, validate_type, assert_valid_type, get_type_name, is_valid_type
from .walker import SchemaWalker

__all__ = [
    "load_config",
    "Config",
    "CrawlerConfig",
    "JobConfig",
    "Options",
    "ThrottleConfig",
    "Crawler",
    "Driver",
    "RequestsDriver",
    "CallableDriver",
    "Response",
    "create_driver",
    "DocumentContext",
    "SoupContext",
    "load_document",
    "XrayError",
    "ConfigurationError",
    "FetchError",
    "ExtractionError",
    "Node",
    "Xray",
    "Completion",
    "PageState",
    "PageStats",
    "PaginationController",
    "PaginationState",
    "resolve",
    "parse_selector",
    "ResultSink",
    "QueueSink",
    "FileSink",
    "ResultStream",
    "create_sink",
    "ValidationResult",
    "validate_type",
    "assert_valid_type",
    "get_type_name",
    "is_valid_type",
    "SchemaWalker",
]
