import unittest

from fingerprint.matcher import TechnologyRecord, match, match_body, match_headers
from fingerprint.rules import RuleSet


def _ruleset(*rules):
    return RuleSet.load(list(rules), name="test")


class TestBodyMatching(unittest.TestCase):
    def setUp(self):
        self.ruleset = _ruleset(
            {"kind": "literal", "category": "CMS", "name": "WordPress",
             "patterns": ["/wp-content/", "/wp-includes/"], "parents": ["PHP"]},
            {"kind": "regex", "category": "JavaScript library", "name": "jQuery",
             "patterns": [r"jquery-\d+\.\d+\.\d+(\.min)?\.js"]},
            {"kind": "literal", "category": "Analytics", "name": "Matomo", "patterns": ["matomo.js"]},
        )
        self.body = (
            '<link href="/wp-content/themes/x/style.css">'
            '<script src="/wp-includes/js/jquery-3.7.1.min.js"></script>'
        )

    def test_literal_and_regex_rules_match(self):
        found = match_body(self.ruleset, self.body)
        self.assertEqual(found, [
            TechnologyRecord("CMS", "WordPress"),
            TechnologyRecord("JavaScript library", "jQuery"),
        ])

    def test_rule_contributes_once_when_several_patterns_match(self):
        """Both WordPress patterns hit; the record appears once."""
        found = match_body(self.ruleset, self.body)
        self.assertEqual(found.count(TechnologyRecord("CMS", "WordPress")), 1)

    def test_duplicate_rules_yield_single_record(self):
        ruleset = _ruleset(
            {"kind": "literal", "category": "CMS", "name": "WordPress", "patterns": ["/wp-content/"]},
            {"kind": "regex", "category": "CMS", "name": "WordPress", "patterns": ["wp-(content|includes)"]},
        )
        self.assertEqual(match_body(ruleset, self.body), [TechnologyRecord("CMS", "WordPress")])

    def test_matching_is_case_sensitive(self):
        self.assertEqual(match_body(self.ruleset, "/WP-CONTENT/ JQUERY-3.7.1.JS"), [])

    def test_regex_is_unanchored(self):
        ruleset = _ruleset({"kind": "regex", "category": "Framework", "name": "Next.js", "patterns": ["_next/static"]})
        self.assertEqual(len(match_body(ruleset, "<script src='/_next/static/chunk.js'>")), 1)

    def test_matching_is_idempotent(self):
        self.assertEqual(match_body(self.ruleset, self.body), match_body(self.ruleset, self.body))

    def test_unknown_kind_is_skipped_with_warning(self):
        ruleset = _ruleset(
            {"kind": "xpath", "category": "CMS", "name": "Ghost", "patterns": ["ghost"]},
            {"kind": "literal", "category": "CMS", "name": "WordPress", "patterns": ["/wp-content/"]},
        )
        with self.assertLogs("crawler.fingerprint.matcher", level="WARNING") as cm:
            found = match_body(ruleset, "ghost /wp-content/")
        self.assertEqual(found, [TechnologyRecord("CMS", "WordPress")])
        self.assertTrue(any("Ghost" in line for line in cm.output))

    def test_empty_body(self):
        self.assertEqual(match_body(self.ruleset, ""), [])


class TestHeaderMatching(unittest.TestCase):
    def setUp(self):
        self.ruleset = _ruleset(
            {"kind": "literal", "category": "Web server", "name": "Nginx", "patterns": ["nginx"]},
            {"kind": "regex", "category": "Programming language", "name": "PHP", "patterns": [r"PHP/\d"]},
            {"kind": "literal", "category": "CDN", "name": "Server", "patterns": ["Server"]},
        )

    def test_every_header_value_is_tested(self):
        headers = [("Server", "nginx/1.25.3"), ("X-Powered-By", "PHP/8.2.1")]
        self.assertEqual(match_headers(self.ruleset, headers), [
            TechnologyRecord("Web server", "Nginx"),
            TechnologyRecord("Programming language", "PHP"),
        ])

    def test_header_names_are_not_matched(self):
        """A pattern equal to a header name only matches values."""
        found = match_headers(self.ruleset, [("Server", "nginx")])
        self.assertNotIn(TechnologyRecord("CDN", "Server"), found)

    def test_repeated_headers_yield_single_record(self):
        headers = [("Server", "nginx"), ("Via", "1.1 nginx")]
        self.assertEqual(match_headers(self.ruleset, headers), [TechnologyRecord("Web server", "Nginx")])


class TestMatchDispatch(unittest.TestCase):
    def test_string_corpus_is_a_body_and_list_is_headers(self):
        ruleset = _ruleset({"kind": "literal", "category": "Web server", "name": "Nginx", "patterns": ["nginx"]})
        self.assertEqual(match(ruleset, "powered by nginx"), [TechnologyRecord("Web server", "Nginx")])
        self.assertEqual(match(ruleset, [("Server", "nginx")]), [TechnologyRecord("Web server", "Nginx")])
        self.assertEqual(match(ruleset, [("nginx", "apache")]), [])

    def test_record_round_trips_legacy_document(self):
        self.assertEqual(TechnologyRecord.from_dict({"ttype": "CMS", "name": "Joomla"}), TechnologyRecord("CMS", "Joomla"))
        self.assertEqual(TechnologyRecord("CMS", "Joomla").to_dict(), {"category": "CMS", "name": "Joomla"})


if __name__ == "__main__":
    unittest.main()
