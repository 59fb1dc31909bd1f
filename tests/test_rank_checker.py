"""
Tests for SERP parsing and rank lookup
"""
import pytest
from unittest.mock import Mock, AsyncMock

from exceptions import FetchError
from rank_checker import RankChecker, extract_organic_results, find_rank

SERP_HTML = """
<html><body>
  <div><a href="https://www.google.com/search?q=related"><h3>People also search</h3></a></div>
  <div><a href="https://competitor.com/widgets"><h3>Best widgets</h3></a></div>
  <div><a href="/url?q=https://shop.example.com/widgets&sa=U"><h3>Example shop</h3></a></div>
  <div><a href="https://example.com/"><h3>Example home</h3></a></div>
  <div><a href="https://competitor.com/widgets"><h3>Duplicate</h3></a></div>
  <div><a href="https://notexample.com/"><h3>Lookalike</h3></a></div>
  <div><a href="https://ads.example.org/"><span>No title</span></a></div>
</body></html>
"""


class TestSerpParsing:
    """Test class for organic result extraction"""

    def test_extract_organic_results(self):
        assert extract_organic_results(SERP_HTML) == [
            "https://competitor.com/widgets",
            "https://shop.example.com/widgets",
            "https://example.com/",
            "https://notexample.com/",
        ]

    def test_subdomain_counts_as_match(self):
        assert find_rank(SERP_HTML, "example.com") == 2

    def test_www_is_ignored(self):
        assert find_rank(SERP_HTML, "www.competitor.com") == 1

    def test_lookalike_domain_does_not_match(self):
        assert find_rank(SERP_HTML, "notexample.com") == 4
        assert find_rank(SERP_HTML, "ample.com") is None

    def test_absent_domain(self):
        assert find_rank(SERP_HTML, "missing.com") is None

    def test_max_results_limits_search(self):
        assert find_rank(SERP_HTML, "notexample.com", max_results=3) is None

    def test_empty_page(self):
        assert extract_organic_results("") == []


class TestRankChecker:
    """Lookup lifecycle with the browser substituted"""

    def make_manager(self, html=SERP_HTML, navigate_error=None):
        page = Mock()
        page.content = AsyncMock(return_value=html)
        context = Mock()
        context.new_page = AsyncMock(return_value=page)

        manager = Mock()
        manager.get_browser_context = AsyncMock(return_value=(Mock(), Mock(), context))
        manager.navigate = AsyncMock(side_effect=navigate_error)
        manager.close_browser_context = AsyncMock()
        return manager

    async def test_check_position(self):
        manager = self.make_manager()
        checker = RankChecker(manager, max_results=100)

        assert await checker.check_position("best widgets", "example.com") == 2

        url = manager.navigate.await_args.args[1]
        assert "q=best+widgets" in url
        assert "num=100" in url
        assert manager.navigate.await_args.kwargs["wait_for"] == "domcontentloaded"
        manager.close_browser_context.assert_awaited_once()

    async def test_navigation_failure_propagates(self):
        manager = self.make_manager(navigate_error=FetchError("https://www.google.com", "timed out"))
        checker = RankChecker(manager)

        with pytest.raises(FetchError):
            await checker.check_position("widgets", "example.com")
        manager.close_browser_context.assert_awaited_once()
