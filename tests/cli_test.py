import io
import logging
import unittest
from unittest.mock import MagicMock, patch

from crawler import cli
from crawler.logger import CompanyFormatter, get_logger
from crawler.worker import CrawlStats


class TestCli(unittest.TestCase):

    def test_non_http_url_is_refused(self):
        with patch.object(cli, "open_store") as open_store:
            self.assertEqual(cli.main(["ftp://example.com"]), 1)
        open_store.assert_not_called()

    def test_reset_of_unknown_page(self):
        self.assertEqual(cli.main(["--memory", "--reset", "https://unknown.example/"]), 1)

    def test_single_url_run(self):
        orchestrator = MagicMock()
        with patch.object(cli, "build_orchestrator", return_value=orchestrator):
            self.assertEqual(cli.main(["--memory", "https://example.com/"]), 0)
        orchestrator.run_once.assert_called_once_with("https://example.com/")
        orchestrator.run_forever.assert_not_called()

    def test_continuous_run_prints_summary(self):
        orchestrator = MagicMock()
        orchestrator.run_forever.return_value = CrawlStats(pages_crawled=3, pages_failed=1, links_admitted=4)
        with patch.object(cli, "build_orchestrator", return_value=orchestrator), \
                patch("sys.stdout", new_callable=io.StringIO) as out:
            self.assertEqual(cli.main(["--memory"]), 0)
        self.assertIn("CRAWL RUN SUMMARY", out.getvalue())
        self.assertIn("Pages failed:    1", out.getvalue())


class TestCompanyFormatter(unittest.TestCase):

    def test_format_uses_logger_name_as_context(self):
        record = logging.LogRecord("crawler.frontier", logging.INFO, __file__, 1, "admitted %s", ("x",), None)
        line = CompanyFormatter().format(record)
        self.assertTrue(line.startswith("[ "))
        self.assertTrue(line.endswith(" : INFO : crawler.frontier : admitted x"))

    def test_explicit_context_wins(self):
        record = logging.LogRecord("crawler", logging.ERROR, __file__, 1, "boom", (), None)
        record.context = "worker-1"
        self.assertIn(" : ERROR : worker-1 : boom", CompanyFormatter().format(record))

    def test_component_loggers_are_children(self):
        self.assertEqual(get_logger("fetcher").name, "crawler.fetcher")


if __name__ == "__main__":
    unittest.main()
