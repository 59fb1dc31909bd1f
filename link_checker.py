"""
Async link-liveness checking for technical audits
"""
import asyncio
import random
import logging
from typing import List

import aiohttp

from config import DashboardConfig
from models import PageLink

logger = logging.getLogger(__name__)

# Servers that refuse HEAD get a GET instead
HEAD_UNSUPPORTED = (405, 501)


class LinkChecker:
    """Counts broken link targets with bounded concurrency"""

    def __init__(self, config: DashboardConfig):
        self.config = config
        self.max_links = config.max_link_checks

    @staticmethod
    def select_targets(links: List[PageLink], max_links: int) -> List[str]:
        """Distinct http(s) hrefs in page order, fragments dropped"""
        targets = []
        for link in links:
            href = link.href.split('#', 1)[0]
            if not href.startswith(('http://', 'https://')):
                continue
            if href not in targets:
                targets.append(href)
            if len(targets) >= max_links:
                break
        return targets

    async def count_broken_links(self, links: List[PageLink]) -> int:
        targets = self.select_targets(links, self.max_links)
        if not targets:
            return 0

        timeout = aiohttp.ClientTimeout(total=self.config.link_check_timeout)
        connector = aiohttp.TCPConnector(limit=self.config.link_check_concurrency, limit_per_host=2)
        headers = {'User-Agent': random.choice(self.config.user_agents)}
        semaphore = asyncio.Semaphore(self.config.link_check_concurrency)

        async with aiohttp.ClientSession(connector=connector, timeout=timeout, headers=headers) as session:
            results = await asyncio.gather(*[
                self._is_broken(session, semaphore, url) for url in targets
            ])

        broken = sum(1 for result in results if result)
        logger.info(f"Checked {len(targets)} links, {broken} broken")
        return broken

    async def _is_broken(self, session: aiohttp.ClientSession, semaphore: asyncio.Semaphore,
                         url: str) -> bool:
        async with semaphore:
            try:
                async with session.head(url, allow_redirects=True) as response:
                    status = response.status
                if status in HEAD_UNSUPPORTED:
                    async with session.get(url, allow_redirects=True) as response:
                        status = response.status
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.debug(f"Link check failed for {url}: {e}")
                return True

        if status >= 400:
            logger.debug(f"Broken link {url}: HTTP {status}")
            return True
        return False
