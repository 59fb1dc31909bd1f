"""
Browser utilities for page audits and SERP lookups
"""
import random
import logging
from typing import Tuple, Any

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config import DashboardConfig
from exceptions import FetchError

logger = logging.getLogger(__name__)

# Chromium reports resolution and connection failures with these net:: codes
NETWORK_ERROR_MARKERS = (
    "ERR_NAME_NOT_RESOLVED",
    "ERR_NAME_RESOLUTION_FAILED",
    "ERR_CONNECTION_REFUSED",
    "ERR_CONNECTION_RESET",
    "ERR_INTERNET_DISCONNECTED",
    "ERR_ADDRESS_UNREACHABLE",
    "ERR_CERT",
)


class BrowserManager:
    """Launches a fresh headless browser per call and navigates pages with a hard timeout"""

    def __init__(self, config: DashboardConfig):
        self.config = config

    async def get_browser_context(self) -> Tuple[Any, Any, Any]:
        """Start playwright, launch Chromium and open an isolated context"""
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=self.config.headless,
                args=[
                    '--no-sandbox',
                    '--disable-dev-shm-usage',
                    '--disable-extensions',
                    '--disable-background-networking',
                    '--disable-default-apps',
                    '--disable-sync',
                    '--mute-audio',
                    '--no-first-run'
                ]
            )
        except Exception:
            await playwright.stop()
            raise

        try:
            context = await browser.new_context(
                user_agent=random.choice(self.config.user_agents),
                viewport={'width': 1920, 'height': 1080},
                locale='en-US'
            )
            await context.set_extra_http_headers({
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
                'Accept-Language': 'en-US,en;q=0.5'
            })
        except Exception:
            await self.close_browser_context(playwright, browser)
            raise

        logger.debug("Browser context created")
        return playwright, browser, context

    async def navigate(self, page, url: str, wait_for: str = "networkidle"):
        """Navigate to a URL, raising FetchError on timeout or network failure"""
        timeout_ms = self.config.navigation_timeout * 1000
        try:
            response = await page.goto(url, wait_until=wait_for, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            logger.error(f"Navigation to {url} timed out after {self.config.navigation_timeout}s")
            raise FetchError(url, f"navigation timed out after {self.config.navigation_timeout}s") from e
        except PlaywrightError as e:
            message = str(e)
            reason = next((marker for marker in NETWORK_ERROR_MARKERS if marker in message), None)
            logger.error(f"Error navigating to {url}: {message}")
            raise FetchError(url, reason or message.splitlines()[0]) from e

        logger.info(f"Successfully navigated to: {url}")
        return response

    async def close_browser_context(self, playwright, browser):
        """Close browser and playwright; teardown failures are logged only"""
        try:
            await browser.close()
            await playwright.stop()
            logger.debug("Browser context closed")
        except PlaywrightError as e:
            logger.error(f"Error closing browser context: {e}")
