import dataclasses
from datetime import datetime, timedelta
from typing import Iterable, Optional

from crawler.config import BANNED_HOSTS, MAX_PAGES_PER_DISCOVERED_DOMAIN, RECRAWL_INTERVAL_DAYS
from crawler.logger import get_logger
from crawler.url_utils import extract_host, host_in, is_http_url, normalize_url
from frontier.models import Domain, Page, PageState, utcnow
from frontier.storage import CrawlStore


class Frontier:
    """
    Admission, dedup and scheduling policy over domains and pages.

    Page lifecycle: UNVISITED -> ELIGIBLE -> IN_PROGRESS -> VISITED | FAILED.
    A VISITED page is ELIGIBLE again once recrawl_interval has passed since
    its last scrape. FAILED (crawlable = false) is terminal until reset_page.
    Single worker: at most one page is IN_PROGRESS at a time.
    """

    def __init__(
        self,
        store: CrawlStore,
        recrawl_interval: timedelta = timedelta(days=RECRAWL_INTERVAL_DAYS),
        max_pages_per_domain: int = MAX_PAGES_PER_DISCOVERED_DOMAIN,
        banned_hosts: Iterable[str] = BANNED_HOSTS,
        logger=None,
    ):
        self._store = store
        self._recrawl_interval = recrawl_interval
        self._max_pages_per_domain = max_pages_per_domain
        self._banned_hosts = tuple(banned_hosts)
        self._in_progress: Optional[str] = None
        self._logger = logger or get_logger("frontier")

    @property
    def recrawl_interval(self) -> timedelta:
        return self._recrawl_interval

    @property
    def in_progress(self) -> Optional[str]:
        return self._in_progress

    # --- admission ---

    def admit_domain(self, host: str) -> Domain:
        """Idempotent: the known domain for host, or a new one with no reputation."""
        host = host.lower()
        existing = self._store.get_domain(host)
        if existing is not None:
            return existing
        domain = self._store.create_domain_if_absent(Domain(id=None, host=host))
        self._logger.info(f"admit_domain: new domain {host} (id={domain.id})")
        return domain

    def admit_page(self, url: str, domain_id: int, reputation: Optional[float] = None) -> Page:
        """Idempotent on the normalized URL; re-admitting a known URL changes nothing."""
        normalized = normalize_url(url)
        existing = self._store.get_page(normalized)
        if existing is not None:
            return existing
        page = self._store.create_page_if_absent(
            Page(id=None, domain_id=domain_id, url=normalized, reputation=reputation)
        )
        self._logger.info(f"admit_page: new page {normalized} (id={page.id}, domain_id={domain_id})")
        return page

    def check_discovered_link(self, href: str, origin_host: str):
        """
        Evaluate the external-link admission policy without side effects.
        Returns (allowed: bool, reason: str).
        """
        if not is_http_url(href):
            return False, "non_http"

        host = extract_host(href)
        if host is None:
            return False, "no_host"

        if host == extract_host(origin_host):
            return False, "same_site"

        if host_in(host, self._banned_hosts):
            return False, "banned_host"

        if self._store.get_page(normalize_url(href)) is not None:
            return False, "known_page"

        existing = self._store.get_domain(host)
        if existing is not None and self._store.count_pages(existing.id) >= self._max_pages_per_domain:
            return False, "domain_cap"

        return True, "allowed"

    def admit_discovered_link(self, href: str, origin_host: str) -> Optional[Page]:
        """
        Apply the external-link admission policy to an href found on a page
        of origin_host. Returns the newly admitted page, or None when the
        link is rejected or its page is already known.
        """
        allowed, reason = self.check_discovered_link(href, origin_host)
        if not allowed:
            self._logger.debug(f"admit_discovered_link: rejected {href} ({reason})")
            return None

        domain = self.admit_domain(extract_host(href))
        self._logger.info(f"admit_discovered_link: external link {href}")
        # New pages inherit the domain's reputation if it is already known
        return self.admit_page(href, domain.id, reputation=domain.reputation)

    # --- scheduling ---

    def eligibility_cutoff(self, now: Optional[datetime] = None) -> datetime:
        return (now or utcnow()) - self._recrawl_interval

    def select_next(self, now: Optional[datetime] = None) -> Optional[Page]:
        """The oldest-scraped eligible page, or None when nothing is due."""
        return self._store.oldest_eligible_page(self.eligibility_cutoff(now))

    def state_of(self, page: Page, now: Optional[datetime] = None) -> PageState:
        if not page.crawlable:
            return PageState.FAILED
        if self._in_progress == page.url:
            return PageState.IN_PROGRESS
        if page.never_scraped:
            return PageState.UNVISITED
        if page.scraped_at <= self.eligibility_cutoff(now):
            return PageState.ELIGIBLE
        return PageState.VISITED

    # --- transitions ---

    def begin(self, page: Page) -> None:
        """ELIGIBLE/UNVISITED -> IN_PROGRESS."""
        if self._in_progress is not None and self._in_progress != page.url:
            raise RuntimeError(f"{self._in_progress} is already in progress")
        self._in_progress = page.url

    def mark_visited(self, page: Page, now: Optional[datetime] = None) -> Page:
        """IN_PROGRESS -> VISITED, scraped_at = now."""
        now = now or utcnow()
        self._store.mark_page_scraped(page.id, now)
        self._release(page)
        return dataclasses.replace(page, scraped_at=now, updated_at=now)

    def mark_failed(self, page: Page, now: Optional[datetime] = None) -> Page:
        """IN_PROGRESS -> FAILED. The page is never selected again."""
        now = now or utcnow()
        self._store.set_page_crawlable(page.id, False, now)
        self._release(page)
        self._logger.warning(f"mark_failed: {page.url} is no longer crawlable")
        return dataclasses.replace(page, crawlable=False, updated_at=now)

    def release(self, page: Page) -> None:
        """Give up the in-progress slot without a state change."""
        self._release(page)

    def reset_page(self, url: str, now: Optional[datetime] = None) -> Optional[Page]:
        """Manual FAILED -> crawlable reset. Returns None for an unknown URL."""
        page = self._store.get_page(normalize_url(url))
        if page is None:
            return None
        now = now or utcnow()
        self._store.set_page_crawlable(page.id, True, now)
        self._logger.info(f"reset_page: {page.url} is crawlable again")
        return dataclasses.replace(page, crawlable=True, updated_at=now)

    def _release(self, page: Page) -> None:
        if self._in_progress == page.url:
            self._in_progress = None
