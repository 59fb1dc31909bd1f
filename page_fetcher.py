"""
Page fetching and DOM fact extraction for technical audits
"""
import time
import logging
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from browser_utils import BrowserManager
from models import PageAnalysisResult, PageImage, PageLink, PageHeading
from utils import normalize_url, get_host, clean_text

logger = logging.getLogger(__name__)

HEADING_TAGS = ['h1', 'h2', 'h3', 'h4', 'h5', 'h6']


class PageFetcher:
    """Loads a page in a headless browser and extracts title/meta/image/link/heading facts"""

    def __init__(self, browser_manager: BrowserManager):
        self.browser_manager = browser_manager

    async def fetch(self, url: str) -> PageAnalysisResult:
        """Load the page and return its extracted facts; raises FetchError on navigation failure"""
        url = normalize_url(url)
        logger.info(f"Fetching page: {url}")

        playwright, browser, context = await self.browser_manager.get_browser_context()
        try:
            page = await context.new_page()

            start_time = time.perf_counter()
            await self.browser_manager.navigate(page, url)
            load_time_ms = (time.perf_counter() - start_time) * 1000

            html = await page.content()
            final_url = page.url or url
        finally:
            await self.browser_manager.close_browser_context(playwright, browser)

        result = extract_page_facts(html, final_url, load_time_ms)
        logger.info(
            f"Extracted {len(result.images)} images, {len(result.links)} links, "
            f"{len(result.headings)} headings from {final_url} in {load_time_ms:.0f}ms"
        )
        return result


def extract_page_facts(html: str, url: str, load_time_ms: float = 0.0) -> PageAnalysisResult:
    """Parse rendered HTML into a PageAnalysisResult"""
    soup = BeautifulSoup(html or "", 'html.parser')

    return PageAnalysisResult(
        url=url,
        title=_extract_title(soup),
        meta_description=_extract_meta_description(soup),
        images=_extract_images(soup),
        links=_extract_links(soup, url),
        headings=_extract_headings(soup),
        content=_extract_clean_text(soup),
        load_time_ms=load_time_ms
    )


def _extract_title(soup) -> str:
    title = soup.find('title')
    return title.get_text().strip() if title else ""


def _extract_meta_description(soup) -> str:
    meta_desc = soup.find('meta', attrs={'name': lambda value: value and value.lower() == 'description'})
    if not meta_desc:
        return ""
    return (meta_desc.get('content') or '').strip()


def _extract_images(soup) -> List[PageImage]:
    images = []
    for img in soup.find_all('img'):
        alt = img.get('alt') or ''
        images.append(PageImage(
            src=img.get('src', ''),
            alt=alt,
            has_alt=bool(alt.strip())
        ))
    return images


def _extract_links(soup, base_url: str) -> List[PageLink]:
    """All anchors with an href, resolved against the page URL"""
    page_host = get_host(base_url)
    links = []
    for anchor in soup.find_all('a', href=True):
        raw_href = anchor['href'].strip()
        try:
            href = urljoin(base_url, raw_href)
        except ValueError:
            # Malformed URL such as an unterminated IPv6 host
            links.append(PageLink(href=raw_href, text=clean_text(anchor.get_text()), is_internal=False))
            continue
        links.append(PageLink(
            href=href,
            text=clean_text(anchor.get_text()),
            is_internal=bool(page_host) and get_host(href) == page_host
        ))
    return links


def _extract_headings(soup) -> List[PageHeading]:
    return [
        PageHeading(level=int(tag.name[1]), text=clean_text(tag.get_text()))
        for tag in soup.find_all(HEADING_TAGS)
    ]


def _extract_clean_text(soup) -> str:
    """Visible body text with scripts and styles removed"""
    body = soup.body or soup
    for element in body(["script", "style", "noscript", "template"]):
        element.decompose()
    return clean_text(body.get_text(separator=' '))
