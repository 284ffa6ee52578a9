"""
Crawl orchestration.
One cycle per page: fetch, enrich the domain, fingerprint, detect the
language, persist, then feed discovered links back into the frontier.
"""

import time
from dataclasses import dataclass
from typing import Callable

from crawler.config import LOOP_INTERVAL_SECONDS
from crawler.errors import CrawlError, FetchError, ResolutionError, TransportError
from crawler.fetcher import HttpFetcher
from crawler.logger import get_logger
from crawler.parser import extract_hrefs, parse_document
from crawler.url_utils import extract_host, normalize_url
from enrichment.service import DomainEnrichment
from fingerprint.language import detect_language
from fingerprint.matcher import match_body, match_headers
from fingerprint.rules import RuleSources
from frontier.models import Page, utcnow
from frontier.orchestrator import Frontier
from frontier.storage import CrawlStore


@dataclass
class CrawlStats:
    pages_crawled: int = 0
    pages_failed: int = 0
    links_admitted: int = 0


class CrawlOrchestrator:
    """
    Single sequential worker over the frontier.
    The store is owned here and shared with the frontier and enrichment.
    """

    def __init__(
        self,
        store: CrawlStore,
        frontier: Frontier,
        fetcher: HttpFetcher,
        enrichment: DomainEnrichment,
        rules: RuleSources,
        interval: float = LOOP_INTERVAL_SECONDS,
        wait: Callable[[float], None] = time.sleep,
        clock: Callable = utcnow,
        logger=None,
    ):
        self.store = store
        self.frontier = frontier
        self.fetcher = fetcher
        self.enrichment = enrichment
        self.rules = rules
        self.interval = interval
        self.wait = wait
        self.clock = clock
        self.stats = CrawlStats()
        self._logger = logger or get_logger("worker")

    def run_once(self, url: str) -> Page:
        """
        Crawl one page. Raises FetchError, before touching any state, when
        the page cannot be fetched. Returns the page as marked visited.
        """
        url = normalize_url(url)
        self._logger.info(f"Scraping {url}")

        try:
            response = self.fetcher.get(url)
        except TransportError as e:
            raise FetchError(str(e), url=url) from e

        host = extract_host(url)
        if host is None:
            raise FetchError(f"No host in {url}", url=url)
        self._logger.info(f"Domain = {host}")

        domain = self.frontier.admit_domain(host)
        page = self.frontier.admit_page(url, domain.id, reputation=domain.reputation)
        self.frontier.begin(page)

        try:
            try:
                domain = self.enrichment.enrich(domain)
            except ResolutionError as e:
                # Enrichment stops here; fingerprinting still runs
                self._logger.error(f"Could not resolve IP of {host}: {e}")

            body = response.text
            now = self.clock()

            technologies = match_body(self.rules.body_tags, body)
            self.store.update_page_technologies(page.id, technologies, now)

            header_technologies = match_headers(self.rules.headers_tags, response.headers)
            self.store.update_page_headers(page.id, header_technologies, now)

            document = parse_document(body)

            language = detect_language(document)
            if language:
                self.store.update_page_language(page.id, language, now)
                self.store.add_domain_language(domain.id, language)

            for href in extract_hrefs(document):
                if self.frontier.admit_discovered_link(href, host) is not None:
                    self.stats.links_admitted += 1
        except Exception:
            self.frontier.release(page)
            raise

        page = self.frontier.mark_visited(page, self.clock())
        self.stats.pages_crawled += 1
        self._logger.info(f"Scraping of {url} finished")
        return page

    def run_forever(self) -> CrawlStats:
        """
        Crawl due pages until none is left. Each iteration first waits
        `interval` seconds. A page whose crawl fails is marked failed and
        the loop moves on.
        """
        self._logger.info("Scraping all due pages...")
        while True:
            self.wait(self.interval)

            page = self.frontier.select_next(self.clock())
            if page is None:
                # An empty frontier ends the run, it is not polled
                self._logger.info("No pages left to scrape")
                self._logger.info(
                    f"Run finished: {self.stats.pages_crawled} crawled, "
                    f"{self.stats.pages_failed} failed, {self.stats.links_admitted} links admitted"
                )
                return self.stats

            try:
                self.run_once(page.url)
            except CrawlError as e:
                self._logger.error(f"Error scraping {page.url}: {e}")
                self.frontier.mark_failed(page, self.clock())
                self.stats.pages_failed += 1
