"""
Page language detection from markup.

Meta tags are checked in a fixed priority order and the first one carrying
a value wins. The root <html lang> attribute overrides whatever the meta tags
said, since pages often ship stale meta tags.
"""

from typing import Optional, Union

from bs4 import BeautifulSoup

from crawler.logger import get_logger

logger = get_logger("fingerprint.language")

META_SELECTORS = (
    'meta[name="language"]',
    'meta[property="og:locale"]',
    'meta[http-equiv="Content-Language"]',
)


def _as_soup(document: Union[str, bytes, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(document, BeautifulSoup):
        return document
    return BeautifulSoup(document or "", "html.parser")


def meta_language(soup: BeautifulSoup) -> Optional[str]:
    """Content of the highest priority language meta tag, if any."""
    for selector in META_SELECTORS:
        for meta in soup.select(selector):
            content = (meta.get("content") or "").strip()
            if content:
                logger.info(f"meta({selector}) = {content!r}")
                return content
    return None


def root_language(soup: BeautifulSoup) -> Optional[str]:
    html = soup.find("html")
    if html is None:
        return None
    lang = (html.get("lang") or "").strip()
    if lang:
        logger.info(f"html lang = {lang!r}")
        return lang
    return None


def detect_language(document: Union[str, bytes, BeautifulSoup]) -> Optional[str]:
    """Language tag of the page, or None when nothing declares one."""
    soup = _as_soup(document)
    language = meta_language(soup)

    root = root_language(soup)
    if root is not None and root != language:
        language = root

    return language
