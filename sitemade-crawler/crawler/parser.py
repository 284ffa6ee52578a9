"""
HTML parsing for the crawler.
Builds the parsed document and pulls raw link targets out of it.
"""

from bs4 import BeautifulSoup


def parse_document(html):
    """Parse page markup once; the result is shared by language and link extraction."""
    return BeautifulSoup(html or "", 'html.parser')


def extract_hrefs(soup):
    """
    Raw href values of every <a> on the page, in document order.
    No resolution or filtering here; admission policy lives in the frontier.
    """
    hrefs = []
    for a in soup.find_all('a', href=True):
        href = a['href'].strip()
        if href:
            hrefs.append(href)
    return hrefs
