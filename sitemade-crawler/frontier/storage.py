from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from fingerprint.matcher import TechnologyRecord
from frontier.models import Domain, Page


class CrawlStore(ABC):
    """
    Abstract interface for the Domain / Page document store.
    Domains are keyed by host, pages by normalized URL.
    Access is read-then-write; implementations are not required to guard
    against concurrent external mutation of the same document.
    """

    @abstractmethod
    def get_domain(self, host: str) -> Optional[Domain]:
        """Retrieve a domain by host."""
        pass

    @abstractmethod
    def get_domain_by_id(self, domain_id: int) -> Optional[Domain]:
        pass

    @abstractmethod
    def create_domain_if_absent(self, domain: Domain) -> Domain:
        """
        Create the domain ONLY if its host is unknown.
        Returns the stored domain, existing or newly created.
        """
        pass

    @abstractmethod
    def get_page(self, url: str) -> Optional[Page]:
        """Retrieve a page by normalized URL."""
        pass

    @abstractmethod
    def create_page_if_absent(self, page: Page) -> Page:
        """
        Create the page ONLY if its URL is unknown (first writer wins).
        Returns the stored page, existing or newly created.
        """
        pass

    @abstractmethod
    def count_pages(self, domain_id: int) -> int:
        """Number of known pages owned by a domain."""
        pass

    @abstractmethod
    def oldest_eligible_page(self, cutoff: datetime) -> Optional[Page]:
        """Crawlable page with the smallest scraped_at among those scraped at or before cutoff."""
        pass

    @abstractmethod
    def update_domain_reputation(self, domain_id: int, reputation: float) -> None:
        """Store the reputation and copy it onto every page of the domain."""
        pass

    @abstractmethod
    def update_domain_ip(self, domain_id: int, ip: str) -> None:
        pass

    @abstractmethod
    def add_domain_language(self, domain_id: int, language: str) -> None:
        """Append to the domain's language set unless already present."""
        pass

    @abstractmethod
    def update_page_technologies(self, page_id: int, technologies: List[TechnologyRecord], updated_at: datetime) -> None:
        pass

    @abstractmethod
    def update_page_headers(self, page_id: int, headers: List[TechnologyRecord], updated_at: datetime) -> None:
        pass

    @abstractmethod
    def update_page_language(self, page_id: int, language: str, updated_at: datetime) -> None:
        pass

    @abstractmethod
    def mark_page_scraped(self, page_id: int, scraped_at: datetime) -> None:
        """Record a completed fetch: scraped_at and updated_at become scraped_at."""
        pass

    @abstractmethod
    def set_page_crawlable(self, page_id: int, crawlable: bool, updated_at: datetime) -> None:
        pass
