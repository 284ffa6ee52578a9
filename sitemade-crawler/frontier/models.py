from enum import Enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from fingerprint.matcher import TechnologyRecord

# scraped_at value of a page that was never fetched
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PageState(Enum):
    UNVISITED = "UNVISITED"
    ELIGIBLE = "ELIGIBLE"
    IN_PROGRESS = "IN_PROGRESS"
    VISITED = "VISITED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class Domain:
    """
    A crawled or discovered host.
    Invariants: host is unique; languages keeps insertion order without duplicates.
    """
    id: Optional[int]
    host: str
    created_at: datetime = field(default_factory=utcnow)
    crawlable: bool = True
    reputation: Optional[float] = None
    ip: Optional[str] = None
    languages: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Page:
    """
    A crawled or discovered page.
    Invariants: url is unique and domain_id references an existing Domain.
    reputation mirrors the owning domain's reputation.
    """
    id: Optional[int]
    domain_id: int
    url: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    scraped_at: datetime = EPOCH
    crawlable: bool = True
    technologies: Optional[List[TechnologyRecord]] = None
    headers: Optional[List[TechnologyRecord]] = None
    language: Optional[str] = None
    reputation: Optional[float] = None

    @property
    def never_scraped(self) -> bool:
        return self.scraped_at <= EPOCH
