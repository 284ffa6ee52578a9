"""
Exception hierarchy for the crawler.

    CrawlerError
    ├── ConfigError        malformed rule source or settings (fatal at startup)
    ├── TransportError     HTTP failure talking to a page or a third-party API
    ├── ResolutionError    DNS resolution failure
    ├── PersistenceError   document store failure
    └── CrawlError         a single page could not be crawled
        └── FetchError     the page fetch itself failed
"""

from typing import Optional


class CrawlerError(Exception):
    """Base class for all crawler exceptions."""
    pass


class ConfigError(CrawlerError):
    """Raised when configuration or a rule source cannot be loaded."""
    pass


class TransportError(CrawlerError):
    """Raised when an HTTP request fails before a response is received."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ResolutionError(CrawlerError):
    """Raised when a hostname cannot be resolved to an IP address."""

    def __init__(self, message: str, host: Optional[str] = None):
        super().__init__(message)
        self.host = host


class PersistenceError(CrawlerError):
    """Raised when the document store rejects or fails an operation."""
    pass


class CrawlError(CrawlerError):
    """Per-page failure. Never escapes the continuous crawl loop."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class FetchError(CrawlError):
    """The page could not be fetched; no state was mutated."""
    pass
