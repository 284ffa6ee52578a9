"""
HTTP fetching module for the crawler.
One blocking GET per page; any response, whatever its status, is a result.
"""

import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

import requests

from crawler.config import REQUEST_TIMEOUT, USER_AGENT
from crawler.errors import TransportError
from crawler.logger import get_logger


@dataclass(frozen=True)
class FetchResult:
    """Raw network response held in memory for one crawl cycle."""
    url: str
    status: int
    headers: List[Tuple[str, str]]
    body: bytes
    encoding: Optional[str] = None
    fetch_time_ms: int = 0

    @property
    def text(self) -> str:
        try:
            return self.body.decode(self.encoding or "utf-8", errors="replace")
        except LookupError:
            # Server announced an unknown charset
            return self.body.decode("utf-8", errors="replace")


def _declared_charset(r) -> str:
    """Charset named in Content-Type, otherwise UTF-8."""
    content_type = r.headers.get("Content-Type", "")
    if "charset=" in content_type.lower() and r.encoding:
        return r.encoding
    return "utf-8"


class HttpFetcher:

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT, logger=None):
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": USER_AGENT})
        self._timeout = timeout
        self._logger = logger or get_logger("fetcher")

    def get(self, url: str) -> FetchResult:
        """
        Fetch a URL. Raises TransportError when no response is received
        (timeout, connection error, invalid URL).
        """
        start_time = time.time()
        try:
            r = self._session.get(url, timeout=self._timeout, allow_redirects=True)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Timeout fetching {url}", url=url) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error fetching {url}: {e}", url=url) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request error fetching {url}: {e}", url=url) from e

        fetch_time_ms = int((time.time() - start_time) * 1000)
        self._logger.info(f"GET {url} -> {r.status_code} ({len(r.content)} bytes, {fetch_time_ms} ms)")

        return FetchResult(
            url=url,
            status=r.status_code,
            headers=list(r.headers.items()),
            body=r.content,
            encoding=_declared_charset(r),
            fetch_time_ms=fetch_time_ms,
        )
