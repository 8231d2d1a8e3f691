from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ecaytracker.db.models import Listing, PriceHistory
from ecaytracker.config import settings
from ecaytracker.schemas import listing as listing_schema
from ecaytracker.schemas.stats import AggregateStats
from ecaytracker.services.aggregator import compute_dashboard_stats

# Columns the scraper may set on a listing
UPSERT_FIELDS = (
    "url", "title", "make", "model", "year", "mileage", "price", "currency",
    "images", "location", "condition", "transmission", "fuel_type", "color",
    "body_type", "drive", "cylinders", "steering", "interior_color", "doors", "on_island",
)


@dataclass
class UpsertResult:
    inserted: bool = False
    price_changed: bool = False


# --- Listings ---

async def upsert_listing(db: AsyncSession, data: dict) -> UpsertResult:
    """Insert a scraped listing or refresh the stored one with the same external_id.

    A changed positive price on an existing listing is recorded in price_history.
    """
    result = UpsertResult()
    now = datetime.now(timezone.utc)

    existing = await db.execute(select(Listing).where(Listing.external_id == data["external_id"]))
    listing = existing.scalar_one_or_none()

    if listing is None:
        result.inserted = True
        listing = Listing(external_id=data["external_id"], first_seen=now, created_at=now)
        db.add(listing)
        old_price = None
    else:
        old_price = listing.price

    for field in UPSERT_FIELDS:
        if field in data:
            setattr(listing, field, data[field])
    listing.is_active = True
    listing.last_seen = now
    listing.updated_at = now

    new_price = data.get("price") or 0
    if not result.inserted and old_price != new_price and new_price > 0:
        result.price_changed = True
        await db.flush()
        db.add(PriceHistory(listing_id=listing.id, price=new_price, recorded_at=now))

    await db.commit()
    return result


async def get_active_listings(db: AsyncSession) -> list[Listing]:
    result = await db.execute(
        select(Listing)
        .where(Listing.is_active == True)
        .order_by(Listing.created_at.desc())
    )
    return list(result.scalars().all())


async def get_price_history(db: AsyncSession, listing_id: str) -> list[PriceHistory]:
    result = await db.execute(
        select(PriceHistory)
        .where(PriceHistory.listing_id == listing_id)
        .order_by(PriceHistory.recorded_at.asc())
    )
    return list(result.scalars().all())


async def get_stats(db: AsyncSession, now: datetime | None = None) -> AggregateStats:
    """Dashboard statistics over the active snapshot, top brands truncated."""
    listings = [to_schema(l) for l in await get_active_listings(db)]
    stats = compute_dashboard_stats(
        listings,
        now or datetime.now(timezone.utc),
        timedelta(days=settings.NEW_LISTING_WINDOW_DAYS),
    )
    return stats.model_copy(update={"top_brands": stats.top_brands[:settings.TOP_BRANDS_LIMIT]})


def to_schema(l: Listing) -> listing_schema.Listing:
    return listing_schema.Listing(
        id=l.id,
        external_id=l.external_id,
        url=l.url,
        title=l.title or "",
        make=l.make or "",
        model=l.model or "",
        body_type=l.body_type,
        year=l.year,
        mileage=l.mileage,
        price=l.price or 0,
        currency=l.currency or "KYD",
        condition=l.condition or "",
        transmission=l.transmission or "",
        fuel_type=l.fuel_type or "",
        color=l.color or "",
        description=l.description or "",
        images=l.images,
        location=l.location or "",
        seller_name=l.seller_name or "",
        is_active=bool(l.is_active),
        first_seen=l.first_seen,
        last_seen=l.last_seen,
        created_at=l.created_at,
        updated_at=l.updated_at,
    )
