import os
from pathlib import Path
from dotenv import load_dotenv

from crawler.errors import ConfigError

# Configuration for the crawler.
# Frontier policy constants, third-party endpoints and store settings.
# Every value can be overridden from the environment or a .env file.

load_dotenv()


def _env_int(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _env_float(name, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


# Canonical base directory for rule files and schema, the folder that
# holds the crawler packages.
BASE_DIR = Path(__file__).resolve().parents[1]

# Network timeout for HTTP requests (seconds)
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 30)

# User-Agent string for crawler identification
USER_AGENT = os.getenv("USER_AGENT", "SiteMadeCrawler/1.0")

# A visited page becomes eligible again after this many days
RECRAWL_INTERVAL_DAYS = _env_int("RECRAWL_INTERVAL_DAYS", 10)

# Pause between two iterations of the continuous loop (seconds)
LOOP_INTERVAL_SECONDS = _env_float("LOOP_INTERVAL_SECONDS", 5)

# Link discovery stops admitting pages of a domain once it owns this many
MAX_PAGES_PER_DISCOVERED_DOMAIN = _env_int("MAX_PAGES_PER_DISCOVERED_DOMAIN", 2)

# High-traffic consumer platforms never admitted through link discovery.
# An entry also covers its subdomains.
BANNED_HOSTS = (
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "youtube.com",
    "linkedin.com",
    "pinterest.com",
    "tumblr.com",
    "reddit.com",
    "snapchat.com",
    "whatsapp.com",
    "messenger.com",
    "quora.com",
    "vk.com",
    "flickr.com",
    "meetup.com",
    "apple.com",
    "tiktok.com",
    "google.com",
    "spotify.com",
    "bit.ly",
)

# Detection rule sources
BODY_TAGS_PATH = Path(os.getenv("BODY_TAGS_PATH", BASE_DIR / "rules" / "body_tags.yaml"))
HEADERS_TAGS_PATH = Path(os.getenv("HEADERS_TAGS_PATH", BASE_DIR / "rules" / "headers_tags.yaml"))

# Third-party enrichment services
OPR_API_KEY = os.getenv("OPR_API_KEY", "")
PAGERANK_API_URL = os.getenv("PAGERANK_API_URL", "https://openpagerank.com/api/v1.0/getPageRank")
GEO_API_URL = os.getenv("GEO_API_URL", "https://ipapi.co/{ip}/json/")

# Document store
DB_CONFIG = {
    "host": os.getenv("MYSQL_HOST", "localhost"),
    "port": _env_int("MYSQL_PORT", 3306),
    "user": os.getenv("MYSQL_USER", "root"),
    "password": os.getenv("MYSQL_PASSWORD", ""),
    "database": os.getenv("MYSQL_DATABASE", "sitemade"),
    "charset": "utf8mb4",
}

# Logging
LOG_FILE = os.getenv("LOG_FILE") or None
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
