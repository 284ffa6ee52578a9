import dataclasses

from crawler.logger import get_logger
from enrichment.reputation import ReputationClient
from enrichment.resolver import DnsResolver
from frontier.models import Domain
from frontier.storage import CrawlStore


class DomainEnrichment:
    """
    Reputation and IP enrichment of a domain.
    Reputation is looked up at most once per domain and never refreshed;
    the IP is resolved on every run. Geolocation is logged, not stored.
    """

    def __init__(self, store: CrawlStore, reputation: ReputationClient, resolver: DnsResolver, logger=None):
        self._store = store
        self._reputation = reputation
        self._resolver = resolver
        self._logger = logger or get_logger("enrichment")

    def ensure_reputation(self, domain: Domain) -> Domain:
        if domain.reputation is not None:
            self._logger.info(f"Reputation of {domain.host} = {domain.reputation} (cached)")
            return domain
        score = self._reputation.fetch_reputation(domain.host)
        self._store.update_domain_reputation(domain.id, score)
        self._logger.info(f"Reputation of {domain.host} stored as {score:.2f}")
        return dataclasses.replace(domain, reputation=score)

    def record_ip(self, domain: Domain) -> Domain:
        """Resolve and store the first address. Raises ResolutionError."""
        addresses = self._resolver.resolve(domain.host)
        self._logger.info(f"IP of {domain.host} = {addresses}")
        ip = addresses[0]
        self._reputation.lookup_geo(ip)
        self._store.update_domain_ip(domain.id, ip)
        return dataclasses.replace(domain, ip=ip)

    def enrich(self, domain: Domain) -> Domain:
        """Reputation (once) then IP and geo. ResolutionError propagates."""
        domain = self.ensure_reputation(domain)
        return self.record_ip(domain)
