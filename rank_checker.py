"""
SERP position lookup for tracked keywords
"""
import urllib.parse
import logging
from typing import List, Optional

from bs4 import BeautifulSoup

from browser_utils import BrowserManager
from utils import get_host, host_matches_domain

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.google.com/search?q={query}&num={num}&hl=en&gl=us"


class RankChecker:
    """Finds where a domain ranks for a keyword in Google's organic results"""

    def __init__(self, browser_manager: BrowserManager, max_results: int = 100):
        self.browser_manager = browser_manager
        self.max_results = max_results

    async def check_position(self, keyword: str, domain: str) -> Optional[int]:
        """1-based organic position of domain for keyword, None if it is not in the results"""
        query = urllib.parse.quote_plus(keyword)
        url = SEARCH_URL.format(query=query, num=self.max_results)
        logger.info(f"Checking rank of {domain} for '{keyword}'")

        playwright, browser, context = await self.browser_manager.get_browser_context()
        try:
            page = await context.new_page()
            await self.browser_manager.navigate(page, url, wait_for="domcontentloaded")
            html = await page.content()
        finally:
            await self.browser_manager.close_browser_context(playwright, browser)

        position = find_rank(html, domain, self.max_results)
        logger.info(f"'{keyword}': {domain} at position {position}")
        return position


def extract_organic_results(html: str) -> List[str]:
    """Result URLs in SERP order: anchors wrapping an <h3> title, Google's own links skipped"""
    soup = BeautifulSoup(html or "", 'html.parser')
    results = []
    for h3 in soup.find_all('h3'):
        anchor = h3.find_parent('a', href=True)
        if anchor is None:
            continue
        href = anchor['href']
        if href.startswith('/url?'):
            # Unwrapped redirect links carry the target in ?q=
            params = urllib.parse.parse_qs(urllib.parse.urlparse(href).query)
            href = params.get('q', [''])[0]
        if not href.startswith(('http://', 'https://')):
            continue
        host = get_host(href)
        if host == 'google.com' or host.endswith('.google.com'):
            continue
        if href not in results:
            results.append(href)
    return results


def find_rank(html: str, domain: str, max_results: int = 100) -> Optional[int]:
    for position, href in enumerate(extract_organic_results(html)[:max_results], start=1):
        if host_matches_domain(get_host(href), domain):
            return position
    return None
