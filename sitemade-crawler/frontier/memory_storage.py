import dataclasses
from datetime import datetime
from itertools import count
from threading import Lock
from typing import Dict, List, Optional

from fingerprint.matcher import TechnologyRecord
from frontier.models import Domain, Page
from frontier.storage import CrawlStore


class InMemoryCrawlStore(CrawlStore):
    """
    Dictionary-backed CrawlStore.
    Used for single-URL dry runs and tests; nothing survives the process.
    """

    def __init__(self):
        self._lock = Lock()
        self._ids = count(1)
        self._domains: Dict[int, Domain] = {}
        self._domain_ids: Dict[str, int] = {}   # host -> id
        self._pages: Dict[int, Page] = {}
        self._page_ids: Dict[str, int] = {}     # url -> id

    # --- domains ---

    def get_domain(self, host: str) -> Optional[Domain]:
        with self._lock:
            domain_id = self._domain_ids.get(host)
            return self._domains.get(domain_id) if domain_id is not None else None

    def get_domain_by_id(self, domain_id: int) -> Optional[Domain]:
        with self._lock:
            return self._domains.get(domain_id)

    def create_domain_if_absent(self, domain: Domain) -> Domain:
        with self._lock:
            existing = self._domain_ids.get(domain.host)
            if existing is not None:
                return self._domains[existing]
            stored = dataclasses.replace(domain, id=next(self._ids), languages=list(domain.languages))
            self._domains[stored.id] = stored
            self._domain_ids[stored.host] = stored.id
            return stored

    def update_domain_reputation(self, domain_id: int, reputation: float) -> None:
        with self._lock:
            domain = self._domains.get(domain_id)
            if domain is None:
                return
            self._domains[domain_id] = dataclasses.replace(domain, reputation=reputation)
            for page_id, page in self._pages.items():
                if page.domain_id == domain_id:
                    self._pages[page_id] = dataclasses.replace(page, reputation=reputation)

    def update_domain_ip(self, domain_id: int, ip: str) -> None:
        self._replace_domain(domain_id, ip=ip)

    def add_domain_language(self, domain_id: int, language: str) -> None:
        with self._lock:
            domain = self._domains.get(domain_id)
            if domain is None or language in domain.languages:
                return
            self._domains[domain_id] = dataclasses.replace(domain, languages=domain.languages + [language])

    # --- pages ---

    def get_page(self, url: str) -> Optional[Page]:
        with self._lock:
            page_id = self._page_ids.get(url)
            return self._pages.get(page_id) if page_id is not None else None

    def create_page_if_absent(self, page: Page) -> Page:
        with self._lock:
            existing = self._page_ids.get(page.url)
            if existing is not None:
                return self._pages[existing]
            stored = dataclasses.replace(page, id=next(self._ids))
            self._pages[stored.id] = stored
            self._page_ids[stored.url] = stored.id
            return stored

    def count_pages(self, domain_id: int) -> int:
        with self._lock:
            return sum(1 for page in self._pages.values() if page.domain_id == domain_id)

    def oldest_eligible_page(self, cutoff: datetime) -> Optional[Page]:
        with self._lock:
            candidates = [
                page for page in self._pages.values()
                if page.crawlable and page.scraped_at <= cutoff
            ]
        if not candidates:
            return None
        return min(candidates, key=lambda page: page.scraped_at)

    def update_page_technologies(self, page_id: int, technologies: List[TechnologyRecord], updated_at: datetime) -> None:
        self._replace_page(page_id, technologies=list(technologies), updated_at=updated_at)

    def update_page_headers(self, page_id: int, headers: List[TechnologyRecord], updated_at: datetime) -> None:
        self._replace_page(page_id, headers=list(headers), updated_at=updated_at)

    def update_page_language(self, page_id: int, language: str, updated_at: datetime) -> None:
        self._replace_page(page_id, language=language, updated_at=updated_at)

    def mark_page_scraped(self, page_id: int, scraped_at: datetime) -> None:
        self._replace_page(page_id, scraped_at=scraped_at, updated_at=scraped_at)

    def set_page_crawlable(self, page_id: int, crawlable: bool, updated_at: datetime) -> None:
        self._replace_page(page_id, crawlable=crawlable, updated_at=updated_at)

    # --- helpers ---

    def all_domains(self) -> List[Domain]:
        with self._lock:
            return list(self._domains.values())

    def all_pages(self) -> List[Page]:
        with self._lock:
            return list(self._pages.values())

    def _replace_domain(self, domain_id: int, **changes) -> None:
        with self._lock:
            domain = self._domains.get(domain_id)
            if domain is not None:
                self._domains[domain_id] = dataclasses.replace(domain, **changes)

    def _replace_page(self, page_id: int, **changes) -> None:
        with self._lock:
            page = self._pages.get(page_id)
            if page is not None:
                self._pages[page_id] = dataclasses.replace(page, **changes)
