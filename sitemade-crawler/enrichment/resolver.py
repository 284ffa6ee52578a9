from typing import List, Optional

import dns.exception
import dns.resolver

from crawler.config import REQUEST_TIMEOUT
from crawler.errors import ResolutionError


class DnsResolver:
    """A-record resolution. Any failure is a ResolutionError; nothing is retried."""

    def __init__(self, resolver: Optional[dns.resolver.Resolver] = None, lifetime: float = REQUEST_TIMEOUT):
        self.resolver = resolver or dns.resolver.Resolver()
        self.resolver.lifetime = lifetime

    def resolve(self, host: str) -> List[str]:
        try:
            answers = self.resolver.resolve(host, "A")
        except dns.resolver.NXDOMAIN as e:
            raise ResolutionError(f"{host} does not exist", host=host) from e
        except dns.resolver.NoAnswer as e:
            raise ResolutionError(f"{host} has no A record", host=host) from e
        except dns.exception.Timeout as e:
            raise ResolutionError(f"Timed out resolving {host}", host=host) from e
        except dns.exception.DNSException as e:
            raise ResolutionError(f"Cannot resolve {host}: {e}", host=host) from e

        addresses = [answer.to_text() for answer in answers]
        if not addresses:
            raise ResolutionError(f"{host} resolved to no address", host=host)
        return addresses
