import re
from typing import Optional
from urllib.parse import urldefrag

# Optional scheme, optional www., then the host token up to the next
# path/query delimiter.
HOST_PATTERN = re.compile(r"^(https?://)?(www\.)?([a-zA-Z0-9\-\.]+)", re.IGNORECASE)


def extract_host(url: str) -> Optional[str]:
    """
    Hostname of a URL or bare host string, without scheme and 'www.'.
    Returns None when no host token can be found.
    """
    if not url:
        return None
    m = HOST_PATTERN.match(url.strip())
    if not m or not m.group(3):
        return None
    host = m.group(3).lower().rstrip(".")
    return host or None


def site_key(url_or_host: str) -> str:
    """Comparable form of a site: no scheme, no 'www.', no trailing slash."""
    value = (url_or_host or "").strip().lower()
    for prefix in ("https://", "http://"):
        if value.startswith(prefix):
            value = value[len(prefix):]
            break
    if value.startswith("www."):
        value = value[4:]
    return value.rstrip("/")


def is_http_url(url: str) -> bool:
    value = (url or "").strip().lower()
    return value.startswith("http://") or value.startswith("https://")


def normalize_url(url: str) -> str:
    """
    Page identity. Surrounding whitespace and the fragment are dropped;
    everything else is kept as discovered.
    """
    url, _ = urldefrag((url or "").strip())
    return url


def host_in(host: str, hosts) -> bool:
    """True if `host` is one of `hosts` or a subdomain of one of them."""
    host = site_key(host)
    for entry in hosts:
        entry = site_key(entry)
        if host == entry or host.endswith("." + entry):
            return True
    return False
