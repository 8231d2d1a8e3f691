import asyncio
import random
import logging
from abc import ABC, abstractmethod

from ecaytracker.config import settings

logger = logging.getLogger(__name__)

PLAYWRIGHT_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"


class BaseScraper(ABC):
    PLATFORM_NAME: str = ""
    MIN_DELAY: float = settings.MIN_SCRAPE_DELAY
    MAX_DELAY: float = settings.MAX_SCRAPE_DELAY
    MAX_RETRIES: int = 3

    @abstractmethod
    async def scrape(self, max_pages: int = 0) -> list[dict]:
        """Scrape every listing page. Returns list of listing dicts."""
        pass

    async def _delay(self, low: float | None = None, high: float | None = None):
        delay = random.uniform(low if low is not None else self.MIN_DELAY, high if high is not None else self.MAX_DELAY)
        logger.debug(f"[{self.PLATFORM_NAME}] Waiting {delay:.1f}s")
        await asyncio.sleep(delay)

    async def _retry(self, coro_func, *args, **kwargs):
        for attempt in range(1, self.MAX_RETRIES + 1):
            try:
                return await coro_func(*args, **kwargs)
            except Exception as e:
                wait = 2 ** attempt + random.uniform(0, 1)
                logger.warning(
                    f"[{self.PLATFORM_NAME}] Attempt {attempt}/{self.MAX_RETRIES} "
                    f"failed: {e}. Retrying in {wait:.1f}s"
                )
                if attempt == self.MAX_RETRIES:
                    raise
                await asyncio.sleep(wait)
