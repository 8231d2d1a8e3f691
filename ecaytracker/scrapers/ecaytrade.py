import re
import logging

from bs4 import BeautifulSoup

from ecaytracker.config import settings
from ecaytracker.scrapers.base import BaseScraper, PLAYWRIGHT_ARGS, USER_AGENT
from ecaytracker.scrapers.parser import parse_card, parse_mileage, rejection_reason

logger = logging.getLogger(__name__)

CARD_SELECTOR = 'a[href*="/advert/"]'
ADVERT_HREF_RE = re.compile(r"/advert/\d+$")


def extract_cards(html: str, base_url: str = "https://ecaytrade.com") -> list[dict]:
    """Collect unique advert links from a results page as raw cards."""
    soup = BeautifulSoup(html, "lxml")
    seen = set()
    cards = []
    for a in soup.select(CARD_SELECTOR):
        href = a.get("href", "")
        if href and not href.startswith("http"):
            href = base_url + href
        if not ADVERT_HREF_RE.search(href) or href in seen:
            continue
        seen.add(href)
        img = a.find("img")
        cards.append({
            "url": href,
            "text": a.get_text("\n", strip=True),
            "image_url": (img.get("src") or "") if img else "",
        })
    return cards


def has_next_page(html: str, current_page: int) -> bool:
    soup = BeautifulSoup(html, "lxml")
    marker = f"page={current_page + 1}"
    for a in soup.find_all("a", href=True):
        if marker in a["href"]:
            return True
        if a.get("aria-label") == "Next page" or "next" in (a.get("rel") or []):
            return True
    return False


class EcayTradeScraper(BaseScraper):
    PLATFORM_NAME = "EcayTrade"
    BASE_URL = "https://ecaytrade.com"

    def _page_url(self, page_num: int) -> str:
        if page_num == 1:
            return settings.LISTINGS_URL
        return f"{settings.LISTINGS_URL}&page={page_num}"

    def _accept_cards(self, cards: list[dict], page_num: int) -> list[dict]:
        accepted = []
        for i, card in enumerate(cards):
            try:
                listing = parse_card(card["text"], card["url"], card["image_url"])
            except Exception as e:
                logger.warning(f"[{self.PLATFORM_NAME}] page {page_num} / card {i}: parse error: {e}")
                continue
            reason = rejection_reason(listing, settings.MIN_LISTING_PRICE)
            if reason:
                logger.debug(f"[{self.PLATFORM_NAME}] page {page_num} / card {i}: skip ({reason}): {listing['title']}")
                continue
            accepted.append(listing)
        return accepted

    async def _fetch_detail_mileage(self, context, url: str) -> int | None:
        page = await context.new_page()
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=20000)
            text = await page.inner_text("body")
        except Exception as e:
            logger.warning(f"[{self.PLATFORM_NAME}] detail page {url} failed: {e}")
            return None
        finally:
            await page.close()

        mileage = parse_mileage(text)
        logger.debug(f"[{self.PLATFORM_NAME}] detail mileage for {url}: {mileage}")
        await self._delay(0.4, 0.8)
        return mileage

    async def scrape(self, max_pages: int = 0) -> list[dict]:
        all_listings = []

        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            logger.error(f"[{self.PLATFORM_NAME}] Playwright not available: {e}")
            return []

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=settings.HEADLESS, args=PLAYWRIGHT_ARGS)
            page_num = 1
            try:
                context = await browser.new_context(
                    viewport={"width": 1920, "height": 1080},
                    user_agent=USER_AGENT,
                    locale="en-US",
                )
                page = await context.new_page()

                while True:
                    if max_pages and page_num > max_pages:
                        logger.info(f"[{self.PLATFORM_NAME}] Reached MAX_PAGES={max_pages}, stopping")
                        break

                    url = self._page_url(page_num)
                    logger.info(f"[{self.PLATFORM_NAME}] Page {page_num}: {url}")

                    try:
                        await self._retry(page.goto, url, wait_until="domcontentloaded", timeout=30000)
                        await page.wait_for_selector(CARD_SELECTOR, timeout=30000)
                    except Exception as e:
                        logger.warning(f"[{self.PLATFORM_NAME}] Page {page_num} never showed listing cards: {e}")
                        break

                    await self._delay(1.5, 2.5)
                    html = await page.content()

                    cards = extract_cards(html, self.BASE_URL)
                    if not cards:
                        logger.info(f"[{self.PLATFORM_NAME}] Page {page_num}: no raw cards, end of listings")
                        break

                    listings = self._accept_cards(cards, page_num)
                    for listing in listings:
                        if listing["mileage"] is None:
                            listing["mileage"] = await self._fetch_detail_mileage(context, listing["url"])

                    all_listings.extend(listings)
                    logger.info(
                        f"[{self.PLATFORM_NAME}] Page {page_num}: accepted {len(listings)}/{len(cards)} "
                        f"(total: {len(all_listings)})"
                    )

                    if not has_next_page(html, page_num):
                        logger.info(f"[{self.PLATFORM_NAME}] Page {page_num}: no next page, done")
                        break

                    page_num += 1
                    await self._delay()
            finally:
                await browser.close()

        logger.info(f"[{self.PLATFORM_NAME}] Scrape complete: {page_num} pages, {len(all_listings)} listings")
        return all_listings
