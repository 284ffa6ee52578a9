"""
Command line entry point.

    sitemade-crawler                 crawl every due page until none is left
    sitemade-crawler URL             crawl a single page
    sitemade-crawler --reset URL     make a failed page crawlable again
"""

import argparse
import sys

import pymysql

from crawler import config
from crawler.errors import ConfigError, CrawlError
from crawler.fetcher import HttpFetcher
from crawler.logger import setup_logger
from crawler.url_utils import is_http_url
from crawler.worker import CrawlOrchestrator
from enrichment.reputation import ReputationClient
from enrichment.resolver import DnsResolver
from enrichment.service import DomainEnrichment
from fingerprint.rules import load_rule_sources
from frontier.memory_storage import InMemoryCrawlStore
from frontier.mysql_storage import MySQLCrawlStore, verify_schema
from frontier.orchestrator import Frontier


def build_parser():
    parser = argparse.ArgumentParser(prog="sitemade-crawler", description="SiteMade crawler")
    parser.add_argument("url", nargs="?", help="Crawl only this page (must start with http or https)")
    parser.add_argument("--reset", metavar="URL", help="Make a failed page crawlable again and exit")
    parser.add_argument("--memory", action="store_true", help="Use a throwaway in-memory store instead of MySQL")
    parser.add_argument("--log-file", default=config.LOG_FILE, help="Also write logs to this file")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level (default: %(default)s)")
    return parser


def open_store(use_memory, logger):
    """The single store client for this process."""
    if use_memory:
        logger.info("Using in-memory store")
        return InMemoryCrawlStore()

    try:
        connection = pymysql.connect(**config.DB_CONFIG)
    except pymysql.MySQLError as e:
        logger.error(f"DATABASE_ERROR: Failed to connect to MySQL: {e}")
        sys.exit(1)

    missing = verify_schema(connection)
    if missing:
        logger.error(
            f"DATABASE NOT INITIALIZED: missing tables {', '.join(missing)}. "
            f"Load {config.BASE_DIR / 'database' / 'init.sql'} first."
        )
        sys.exit(1)
    return MySQLCrawlStore(connection)


def build_orchestrator(store, logger):
    try:
        rules = load_rule_sources(config.BODY_TAGS_PATH, config.HEADERS_TAGS_PATH)
    except ConfigError as e:
        logger.error(f"CONFIG_ERROR: {e}")
        sys.exit(1)

    frontier = Frontier(store)
    enrichment = DomainEnrichment(store, ReputationClient(), DnsResolver())
    return CrawlOrchestrator(store, frontier, HttpFetcher(), enrichment, rules)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger = setup_logger(log_file=args.log_file, level=args.log_level)
    logger.info("SiteMade CLI")

    if args.url and not is_http_url(args.url):
        logger.error("The site must start with http or https")
        return 1

    store = open_store(args.memory, logger)

    if args.reset:
        page = Frontier(store).reset_page(args.reset)
        if page is None:
            logger.error(f"Unknown page {args.reset}")
            return 1
        return 0

    orchestrator = build_orchestrator(store, logger)

    if args.url:
        try:
            orchestrator.run_once(args.url)
        except CrawlError as e:
            logger.error(f"Error scraping {args.url}: {e}")
            return 1
        return 0

    logger.info("Processing sites")
    stats = orchestrator.run_forever()
    print_summary(stats)
    return 0


def print_summary(stats):
    print("\n" + "=" * 60)
    print("CRAWL RUN SUMMARY")
    print("=" * 60)
    print(f"Pages crawled:   {stats.pages_crawled}")
    print(f"Pages failed:    {stats.pages_failed}")
    print(f"Links admitted:  {stats.links_admitted}")
    print("=" * 60 + "\n")


if __name__ == "__main__":
    sys.exit(main())
