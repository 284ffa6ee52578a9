import hashlib
import json
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import List, Optional

import pymysql

from crawler.errors import PersistenceError
from fingerprint.matcher import TechnologyRecord
from frontier.models import Domain, Page
from frontier.storage import CrawlStore

REQUIRED_TABLES = ('domains', 'webpages')

_DOMAIN_COLUMNS = "id, host, created_at, crawlable, reputation, ip, languages"
_PAGE_COLUMNS = (
    "id, domain_id, url, created_at, updated_at, scraped_at, crawlable, "
    "technologies, headers, language, reputation"
)


def url_hash(url: str) -> str:
    """Unique key for a page URL (URLs are too long for a plain unique index)."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def _to_db_time(value: datetime) -> datetime:
    # Columns hold naive UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_time(value) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def _dump_records(records: List[TechnologyRecord]) -> str:
    return json.dumps([r.to_dict() for r in records])


def _load_records(raw) -> Optional[List[TechnologyRecord]]:
    if raw is None:
        return None
    return [TechnologyRecord.from_dict(item) for item in json.loads(raw)]


def verify_schema(connection) -> List[str]:
    """Return the required tables missing from the database."""
    with connection.cursor() as cursor:
        cursor.execute("SHOW TABLES")
        existing = {row[0] for row in cursor.fetchall()}
    return [table for table in REQUIRED_TABLES if table not in existing]


class MySQLCrawlStore(CrawlStore):
    """
    MySQL implementation of CrawlStore.
    Driver failures surface as PersistenceError.
    """

    def __init__(self, connection_pool):
        self._pool = connection_pool

    @contextmanager
    def _cursor(self):
        try:
            with self._pool.cursor() as cursor:
                yield cursor
        except pymysql.MySQLError as e:
            try:
                self._pool.rollback()
            except pymysql.MySQLError:
                pass
            raise PersistenceError(f"MySQL operation failed: {e}") from e

    # --- domains ---

    def get_domain(self, host: str) -> Optional[Domain]:
        sql = f"SELECT {_DOMAIN_COLUMNS} FROM domains WHERE host = %s"
        with self._cursor() as cursor:
            cursor.execute(sql, (host,))
            row = cursor.fetchone()
            return self._row_to_domain(row) if row else None

    def get_domain_by_id(self, domain_id: int) -> Optional[Domain]:
        sql = f"SELECT {_DOMAIN_COLUMNS} FROM domains WHERE id = %s"
        with self._cursor() as cursor:
            cursor.execute(sql, (domain_id,))
            row = cursor.fetchone()
            return self._row_to_domain(row) if row else None

    def create_domain_if_absent(self, domain: Domain) -> Domain:
        """INSERT IGNORE on the unique host, then read back the stored row."""
        insert_sql = """
            INSERT IGNORE INTO domains (host, created_at, crawlable, reputation, ip, languages)
            VALUES (%s, %s, %s, %s, %s, %s)
        """
        languages = json.dumps(domain.languages) if domain.languages else None
        with self._cursor() as cursor:
            cursor.execute(insert_sql, (
                domain.host, _to_db_time(domain.created_at), int(domain.crawlable),
                domain.reputation, domain.ip, languages
            ))
            self._pool.commit()
            cursor.execute(f"SELECT {_DOMAIN_COLUMNS} FROM domains WHERE host = %s", (domain.host,))
            row = cursor.fetchone()
        if not row:
            raise PersistenceError(f"Domain {domain.host} missing after insert")
        return self._row_to_domain(row)

    def update_domain_reputation(self, domain_id: int, reputation: float) -> None:
        with self._cursor() as cursor:
            cursor.execute("UPDATE domains SET reputation = %s WHERE id = %s", (reputation, domain_id))
            # Eager denormalization onto every page of the domain
            cursor.execute("UPDATE webpages SET reputation = %s WHERE domain_id = %s", (reputation, domain_id))
            self._pool.commit()

    def update_domain_ip(self, domain_id: int, ip: str) -> None:
        with self._cursor() as cursor:
            cursor.execute("UPDATE domains SET ip = %s WHERE id = %s", (ip, domain_id))
            self._pool.commit()

    def add_domain_language(self, domain_id: int, language: str) -> None:
        with self._cursor() as cursor:
            cursor.execute("SELECT languages FROM domains WHERE id = %s", (domain_id,))
            row = cursor.fetchone()
            if not row:
                return
            languages = json.loads(row[0]) if row[0] else []
            if language in languages:
                return
            languages.append(language)
            cursor.execute(
                "UPDATE domains SET languages = %s WHERE id = %s",
                (json.dumps(languages), domain_id)
            )
            self._pool.commit()

    # --- pages ---

    def get_page(self, url: str) -> Optional[Page]:
        sql = f"SELECT {_PAGE_COLUMNS} FROM webpages WHERE url_hash = %s"
        with self._cursor() as cursor:
            cursor.execute(sql, (url_hash(url),))
            row = cursor.fetchone()
            return self._row_to_page(row) if row else None

    def create_page_if_absent(self, page: Page) -> Page:
        insert_sql = """
            INSERT IGNORE INTO webpages (
                domain_id, url, url_hash, created_at, updated_at, scraped_at,
                crawlable, language, reputation
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        key = url_hash(page.url)
        with self._cursor() as cursor:
            cursor.execute(insert_sql, (
                page.domain_id, page.url, key,
                _to_db_time(page.created_at), _to_db_time(page.updated_at), _to_db_time(page.scraped_at),
                int(page.crawlable), page.language, page.reputation
            ))
            self._pool.commit()
            cursor.execute(f"SELECT {_PAGE_COLUMNS} FROM webpages WHERE url_hash = %s", (key,))
            row = cursor.fetchone()
        if not row:
            raise PersistenceError(f"Page {page.url} missing after insert")
        return self._row_to_page(row)

    def count_pages(self, domain_id: int) -> int:
        with self._cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM webpages WHERE domain_id = %s", (domain_id,))
            row = cursor.fetchone()
            return int(row[0]) if row else 0

    def oldest_eligible_page(self, cutoff: datetime) -> Optional[Page]:
        sql = f"""
            SELECT {_PAGE_COLUMNS}
            FROM webpages
            WHERE crawlable = 1 AND scraped_at <= %s
            ORDER BY scraped_at ASC
            LIMIT 1
        """
        with self._cursor() as cursor:
            cursor.execute(sql, (_to_db_time(cutoff),))
            row = cursor.fetchone()
            return self._row_to_page(row) if row else None

    def update_page_technologies(self, page_id: int, technologies: List[TechnologyRecord], updated_at: datetime) -> None:
        self._update_page(page_id, "technologies = %s", (_dump_records(technologies),), updated_at)

    def update_page_headers(self, page_id: int, headers: List[TechnologyRecord], updated_at: datetime) -> None:
        self._update_page(page_id, "headers = %s", (_dump_records(headers),), updated_at)

    def update_page_language(self, page_id: int, language: str, updated_at: datetime) -> None:
        self._update_page(page_id, "language = %s", (language,), updated_at)

    def mark_page_scraped(self, page_id: int, scraped_at: datetime) -> None:
        self._update_page(page_id, "scraped_at = %s", (_to_db_time(scraped_at),), scraped_at)

    def set_page_crawlable(self, page_id: int, crawlable: bool, updated_at: datetime) -> None:
        self._update_page(page_id, "crawlable = %s", (int(crawlable),), updated_at)

    # --- helpers ---

    def _update_page(self, page_id: int, assignment: str, params: tuple, updated_at: datetime) -> None:
        sql = f"UPDATE webpages SET {assignment}, updated_at = %s WHERE id = %s"
        with self._cursor() as cursor:
            cursor.execute(sql, params + (_to_db_time(updated_at), page_id))
            self._pool.commit()

    def _row_to_domain(self, row) -> Domain:
        return Domain(
            id=row[0],
            host=row[1],
            created_at=_from_db_time(row[2]),
            crawlable=bool(row[3]),
            reputation=row[4],
            ip=row[5],
            languages=json.loads(row[6]) if row[6] else []
        )

    def _row_to_page(self, row) -> Page:
        return Page(
            id=row[0],
            domain_id=row[1],
            url=row[2],
            created_at=_from_db_time(row[3]),
            updated_at=_from_db_time(row[4]),
            scraped_at=_from_db_time(row[5]),
            crawlable=bool(row[6]),
            technologies=_load_records(row[7]),
            headers=_load_records(row[8]),
            language=row[9],
            reputation=row[10]
        )
