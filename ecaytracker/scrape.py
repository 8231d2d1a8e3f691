import asyncio
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from ecaytracker.config import settings
from ecaytracker.db.crud import upsert_listing
from ecaytracker.db.database import async_session, init_db
from ecaytracker.scrapers.ecaytrade import EcayTradeScraper

logger = logging.getLogger(__name__)


async def save_listings(listings: list[dict]) -> dict:
    """Upsert scraped listings and tally what happened."""
    counts = {"inserted": 0, "updated": 0, "price_changed": 0, "errors": 0}

    async with async_session() as db:
        for listing in listings:
            try:
                result = await upsert_listing(db, listing)
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error(f"Upserting {listing['external_id']} ({listing['title']}) failed: {e}")
                counts["errors"] += 1
                continue
            if result.inserted:
                counts["inserted"] += 1
            else:
                counts["updated"] += 1
                if result.price_changed:
                    counts["price_changed"] += 1

    return counts


async def run() -> int:
    await init_db()
    logger.info("Database connected.")

    listings = await EcayTradeScraper().scrape(max_pages=settings.MAX_PAGES)
    if not listings:
        logger.error("No listings extracted, selectors may need updating or the request was blocked")
        return 1

    logger.info(f"Scraped {len(listings)} listing(s). Upserting to database...")
    counts = await save_listings(listings)
    logger.info(
        f"Done: inserted {counts['inserted']} | updated {counts['updated']} "
        f"(price changed: {counts['price_changed']}) | errors {counts['errors']}"
    )
    return 0


def main():
    logging.basicConfig(
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
