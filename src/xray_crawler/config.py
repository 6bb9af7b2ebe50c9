"""
Configuration module for xray_crawler.

Uses Pydantic models for validation and parsing of crawler options and of the
JSON job files consumed by the command line interface.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class ThrottleConfig(BaseModel):
    """At most ``requests`` fetches per ``per_seconds`` window."""
    requests: int = 1
    per_seconds: float = Field(1.0, alias="perSeconds")

    model_config = ConfigDict(populate_by_name=True)


class CrawlerConfig(BaseModel):
    """Fetch policy applied by the crawler."""
    concurrency: Optional[int] = None  # None means unbounded
    throttle: Optional[ThrottleConfig] = None
    delay: Tuple[float, float] = (0.0, 0.0)
    timeout: Optional[float] = 30.0
    driver: str = "requests"  # "requests" | "browser"

    model_config = ConfigDict(populate_by_name=True)


class Options(BaseModel):
    """Construction options for an Xray instance."""
    strict: bool = False
    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig)

    model_config = ConfigDict(populate_by_name=True)


class JobConfig(BaseModel):
    """One scrape job: where to start, what to extract and where to write it."""
    url: str
    scope: Optional[str] = None
    selector: Any
    paginate: Optional[str] = None
    limit: Optional[int] = None
    output: str

    model_config = ConfigDict(populate_by_name=True)


class Config(BaseModel):
    """Main configuration class."""
    options: Options = Field(default_factory=Options)
    jobs: List[JobConfig] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


def load_config(config_path: Union[str, Path]) -> Config:
    """
    Load and validate a job configuration from a JSON file.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated configuration object
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger.info(f"Loading configuration from: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    config = Config.model_validate(data)

    logger.info(f"Loaded {len(config.jobs)} job(s)")

    return config
