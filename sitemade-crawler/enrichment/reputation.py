"""
Third-party lookups for domain enrichment.

- Open PageRank: reputation score (0-10) for a domain.
- ipapi.co: coarse geolocation (country, region) for an IP.

Both are best-effort: failures are logged and degrade to neutral values so
the crawl keeps going.
"""

from dataclasses import dataclass
from typing import Optional

import requests

from crawler.config import GEO_API_URL, OPR_API_KEY, PAGERANK_API_URL, REQUEST_TIMEOUT, USER_AGENT
from crawler.logger import get_logger

NEUTRAL_REPUTATION = 0.0


@dataclass(frozen=True)
class GeoLocation:
    country: Optional[str]
    region: Optional[str]


class ReputationClient:
    """HTTP client for the reputation and geolocation services."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        api_key: str = OPR_API_KEY,
        pagerank_url: str = PAGERANK_API_URL,
        geo_url: str = GEO_API_URL,
        timeout: float = REQUEST_TIMEOUT,
        logger=None,
    ):
        self._session = session or requests.Session()
        self._api_key = api_key
        self._pagerank_url = pagerank_url
        self._geo_url = geo_url
        self._timeout = timeout
        self._logger = logger or get_logger("enrichment.reputation")

    def fetch_reputation(self, host: str) -> float:
        """
        Reputation of a domain. Returns NEUTRAL_REPUTATION on transport
        errors, non-success statuses or an unexpected payload.
        """
        try:
            r = self._session.get(
                self._pagerank_url,
                params={"domains[]": host},
                headers={"API-OPR": self._api_key, "User-Agent": USER_AGENT},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            self._logger.warning(f"Reputation lookup for {host} failed: {e}")
            return NEUTRAL_REPUTATION

        if not (200 <= r.status_code < 300):
            self._logger.warning(f"Reputation lookup for {host} returned HTTP {r.status_code}")
            return NEUTRAL_REPUTATION

        try:
            payload = r.json()
        except ValueError:
            self._logger.warning(f"Reputation lookup for {host} returned a non-JSON body")
            return NEUTRAL_REPUTATION

        if not isinstance(payload, dict):
            self._logger.warning(f"Reputation lookup for {host} returned an unexpected payload: {payload!r}")
            return NEUTRAL_REPUTATION

        if payload.get("status_code") != 200:
            self._logger.warning(f"Reputation lookup for {host} failed: {payload.get('status_msg')!r}")
            return NEUTRAL_REPUTATION

        try:
            entry = payload["response"][0]
            score = float(entry["page_rank_decimal"])
        except (KeyError, IndexError, TypeError, ValueError):
            self._logger.warning(f"Reputation lookup for {host} returned no score: {payload!r}")
            return NEUTRAL_REPUTATION

        self._logger.info(f"Reputation of {host} = {score} (rank {entry.get('rank')})")
        return score

    def lookup_geo(self, ip: str) -> Optional[GeoLocation]:
        """Country and region of an IP, or None. Observability only, never persisted."""
        url = self._geo_url.format(ip=ip)
        self._logger.info(f"Looking up country and region of {ip}")
        try:
            r = self._session.get(url, headers={"User-Agent": USER_AGENT}, timeout=self._timeout)
            payload = r.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            self._logger.warning(f"Geo lookup for {ip} failed: {e}")
            return None

        if not (200 <= r.status_code < 300) or not isinstance(payload, dict) or payload.get("error") is True:
            self._logger.warning(f"Geo lookup for {ip} failed: {payload!r}")
            return None

        geo = GeoLocation(country=payload.get("country_name"), region=payload.get("region"))
        self._logger.info(f"Country = {geo.country!r}, Region = {geo.region!r}")
        return geo
