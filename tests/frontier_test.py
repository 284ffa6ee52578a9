"""
Frontier admission and scheduling against the in-memory store.
"""

import unittest
from datetime import datetime, timedelta, timezone

from crawler.url_utils import extract_host, host_in, normalize_url, site_key
from frontier.memory_storage import InMemoryCrawlStore
from frontier.models import EPOCH, PageState
from frontier.orchestrator import Frontier

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestUrlUtils(unittest.TestCase):

    def test_extract_host(self):
        self.assertEqual(extract_host("https://www.Example.com/path?q=1"), "example.com")
        self.assertEqual(extract_host("http://blog.example.co.uk:8080/"), "blog.example.co.uk")
        self.assertEqual(extract_host("example.org/about"), "example.org")
        self.assertIsNone(extract_host(""))
        self.assertIsNone(extract_host("/relative/path"))

    def test_site_key_strips_scheme_www_and_slash(self):
        self.assertEqual(site_key("https://www.example.com/"), "example.com")
        self.assertEqual(site_key("example.com"), "example.com")

    def test_host_in_matches_subdomains_only_on_label_boundary(self):
        banned = ("facebook.com",)
        self.assertTrue(host_in("facebook.com", banned))
        self.assertTrue(host_in("m.facebook.com", banned))
        self.assertFalse(host_in("notfacebook.com", banned))

    def test_normalize_url_drops_fragment_and_whitespace(self):
        self.assertEqual(normalize_url("  https://example.com/a#top "), "https://example.com/a")
        self.assertEqual(normalize_url("https://example.com/a?x=1"), "https://example.com/a?x=1")


class TestAdmission(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryCrawlStore()
        self.frontier = Frontier(self.store, banned_hosts=("social.example",))

    def test_admit_domain_is_idempotent(self):
        first = self.frontier.admit_domain("example.com")
        second = self.frontier.admit_domain("Example.com")
        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.store.all_domains()), 1)
        self.assertIsNone(first.reputation)

    def test_admit_page_is_idempotent_on_normalized_url(self):
        domain = self.frontier.admit_domain("example.com")
        first = self.frontier.admit_page("https://example.com/a", domain.id)
        second = self.frontier.admit_page("https://example.com/a#section", domain.id)
        self.assertEqual(first.id, second.id)
        self.assertEqual(len(self.store.all_pages()), 1)
        self.assertEqual(first.scraped_at, EPOCH)
        self.assertTrue(first.crawlable)

    def test_same_site_link_is_rejected(self):
        """Scenario: a link back to the origin host, with or without www."""
        self.assertIsNone(self.frontier.admit_discovered_link("https://example.com/about", "example.com"))
        self.assertIsNone(self.frontier.admit_discovered_link("http://www.example.com/", "example.com"))
        self.assertEqual(self.store.all_domains(), [])

    def test_non_http_links_are_rejected(self):
        for href in ("/contact", "mailto:info@other.example", "javascript:void(0)", "ftp://files.example/x"):
            allowed, reason = self.frontier.check_discovered_link(href, "example.com")
            self.assertFalse(allowed, href)
            self.assertEqual(reason, "non_http")

    def test_banned_host_and_subdomain_are_rejected(self):
        self.assertEqual(
            self.frontier.check_discovered_link("https://social.example/page", "example.com"),
            (False, "banned_host"),
        )
        self.assertEqual(
            self.frontier.check_discovered_link("https://m.social.example/page", "example.com"),
            (False, "banned_host"),
        )
        self.assertEqual(self.store.all_domains(), [])

    def test_new_external_domain_is_admitted(self):
        page = self.frontier.admit_discovered_link("https://other.example/x", "example.com")
        self.assertIsNotNone(page)
        domain = self.store.get_domain("other.example")
        self.assertIsNotNone(domain)
        self.assertEqual(page.domain_id, domain.id)
        self.assertEqual(page.url, "https://other.example/x")

    def test_domain_cap_limits_discovered_pages(self):
        """Scenario: the target domain already owns two pages."""
        self.assertIsNotNone(self.frontier.admit_discovered_link("https://other.example/1", "example.com"))
        self.assertIsNotNone(self.frontier.admit_discovered_link("https://other.example/2", "example.com"))
        self.assertIsNone(self.frontier.admit_discovered_link("https://other.example/3", "example.com"))

        domain = self.store.get_domain("other.example")
        self.assertEqual(self.store.count_pages(domain.id), 2)
        self.assertEqual(
            self.frontier.check_discovered_link("https://other.example/3", "example.com"),
            (False, "domain_cap"),
        )

    def test_known_page_is_not_admitted_again(self):
        first = self.frontier.admit_discovered_link("https://other.example/x", "example.com")
        self.assertIsNotNone(first)

        self.assertIsNone(self.frontier.admit_discovered_link("https://other.example/x#top", "example.com"))
        self.assertEqual(
            self.frontier.check_discovered_link("https://other.example/x", "example.com"),
            (False, "known_page"),
        )
        self.assertEqual(len(self.store.all_pages()), 1)

    def test_discovered_page_inherits_known_reputation(self):
        domain = self.frontier.admit_domain("other.example")
        self.store.update_domain_reputation(domain.id, 4.5)
        page = self.frontier.admit_discovered_link("https://other.example/x", "example.com")
        self.assertEqual(page.reputation, 4.5)

    def test_reputation_update_propagates_to_pages(self):
        domain = self.frontier.admit_domain("example.com")
        self.frontier.admit_page("https://example.com/a", domain.id)
        self.frontier.admit_page("https://example.com/b", domain.id)

        self.store.update_domain_reputation(domain.id, 2.0)

        self.assertEqual(self.store.get_domain("example.com").reputation, 2.0)
        for page in self.store.all_pages():
            self.assertEqual(page.reputation, 2.0)


class TestScheduling(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryCrawlStore()
        self.frontier = Frontier(self.store, recrawl_interval=timedelta(days=10))
        self.domain = self.frontier.admit_domain("example.com")

    def _page(self, path, scraped_at=None):
        page = self.frontier.admit_page(f"https://example.com/{path}", self.domain.id)
        if scraped_at is not None:
            self.store.mark_page_scraped(page.id, scraped_at)
        return self.store.get_page(page.url)

    def test_empty_frontier(self):
        self.assertIsNone(self.frontier.select_next(NOW))

    def test_oldest_scraped_page_is_selected_first(self):
        self._page("recent", NOW - timedelta(days=11))
        self._page("old", NOW - timedelta(days=40))
        self._page("never")

        self.assertEqual(self.frontier.select_next(NOW).url, "https://example.com/never")

    def test_recently_visited_page_is_not_selected(self):
        self._page("fresh", NOW - timedelta(days=3))
        self.assertIsNone(self.frontier.select_next(NOW))
        self.assertIsNotNone(self.frontier.select_next(NOW + timedelta(days=8)))

    def test_page_states(self):
        never = self._page("never")
        fresh = self._page("fresh", NOW - timedelta(days=1))
        due = self._page("due", NOW - timedelta(days=10))

        self.assertIs(self.frontier.state_of(never, NOW), PageState.UNVISITED)
        self.assertIs(self.frontier.state_of(fresh, NOW), PageState.VISITED)
        self.assertIs(self.frontier.state_of(due, NOW), PageState.ELIGIBLE)

        self.frontier.begin(due)
        self.assertIs(self.frontier.state_of(due, NOW), PageState.IN_PROGRESS)

    def test_mark_visited_sets_scraped_at(self):
        page = self._page("a")
        self.frontier.begin(page)
        visited = self.frontier.mark_visited(page, NOW)

        self.assertEqual(visited.scraped_at, NOW)
        self.assertEqual(self.store.get_page(page.url).scraped_at, NOW)
        self.assertIsNone(self.frontier.in_progress)
        self.assertIs(self.frontier.state_of(self.store.get_page(page.url), NOW), PageState.VISITED)

    def test_failed_page_is_never_selected_until_reset(self):
        page = self._page("broken")
        self.frontier.begin(page)
        self.frontier.mark_failed(page, NOW)

        stored = self.store.get_page(page.url)
        self.assertFalse(stored.crawlable)
        self.assertIs(self.frontier.state_of(stored, NOW), PageState.FAILED)
        self.assertIsNone(self.frontier.select_next(NOW + timedelta(days=365)))

        self.assertIsNotNone(self.frontier.reset_page(page.url, NOW))
        self.assertEqual(self.frontier.select_next(NOW).url, page.url)

    def test_reset_unknown_page(self):
        self.assertIsNone(self.frontier.reset_page("https://unknown.example/"))

    def test_single_page_in_progress(self):
        first = self._page("a")
        second = self._page("b")
        self.frontier.begin(first)
        with self.assertRaises(RuntimeError):
            self.frontier.begin(second)

        self.frontier.release(first)
        self.frontier.begin(second)
        self.assertEqual(self.frontier.in_progress, second.url)


if __name__ == "__main__":
    unittest.main()
