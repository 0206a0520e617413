"""Abstract base fetcher interface and common functionality."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from dateutil import parser as date_parser

from config_loader import get_nested


class BaseFetcher(ABC):
    """Abstract base class for readers of export content and remote assets."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger=None):
        """
        Initialize base fetcher with configuration and logger.

        Args:
            config: Configuration dictionary
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger('wordpress_mdx_migrator.fetcher')

    @abstractmethod
    def fetch(self, source: str) -> Any:
        """
        Fetch and decode one source.

        Args:
            source: File path or URL to fetch
        """
        pass

    def _setting(self, path: str, default: Any = None) -> Any:
        return get_nested(self.config, path, default)

    def _parse_date(self, date_string: Optional[str]) -> Optional[datetime]:
        """
        Parse a date string in any of the formats found in exports.

        Handles RFC 822 (``Fri, 31 Jan 2020 10:00:00 +0000``) and
        ``YYYY-MM-DD HH:MM:SS`` timestamps.

        Args:
            date_string: Date text, possibly empty

        Returns:
            Parsed datetime object, or None if parsing fails
        """
        if not date_string or not date_string.strip():
            return None

        try:
            return date_parser.parse(date_string.strip())
        except (ValueError, OverflowError, TypeError) as e:
            self.logger.debug(f"Failed to parse date string '{date_string}': {str(e)}")
            return None
