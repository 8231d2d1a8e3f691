import logging
from datetime import datetime, timezone
from typing import Callable

from ecaytracker.schemas.dashboard import DealAnnotation, DisplayRow, ListingsQuery, SortField, SortOrder
from ecaytracker.schemas.listing import Listing

logger = logging.getLogger(__name__)

ALL_MAKES = "all"

# External fair-price estimator: listing -> annotation (or None when it has no opinion)
Annotator = Callable[[Listing], DealAnnotation | None]


def to_display_row(
    listing: Listing,
    fallback_date: datetime,
    annotator: Annotator | None = None,
) -> DisplayRow:
    annotation = _annotate(listing, annotator)
    return DisplayRow(
        id=listing.id,
        make=listing.make,
        model=listing.model,
        year=listing.year,
        price=listing.price,
        mileage=listing.mileage,
        fair_price=annotation.fair_price if annotation else None,
        listed_date=_as_utc(listing.first_seen or listing.created_at or fallback_date),
        condition=listing.condition,
        transmission=listing.transmission,
        fuel_type=listing.fuel_type,
        body_type=listing.body_type or "",
        deal_rating=annotation.deal_rating if annotation else None,
        url=listing.url or None,
    )


def build_display_rows(
    listings: list[Listing],
    now: datetime,
    annotator: Annotator | None = None,
) -> list[DisplayRow]:
    """Map a snapshot to table rows.

    ``now`` is captured once by the caller and used for every listing that
    has no listed date, so repeated renders order identically.
    """
    return [to_display_row(l, now, annotator) for l in listings]


def filter_rows(rows: list[DisplayRow], search: str = "", make: str = ALL_MAKES) -> list[DisplayRow]:
    items = list(rows)

    if search:
        q = search.lower()
        items = [
            r for r in items
            if q in r.make.lower()
            or q in r.model.lower()
            or (r.year is not None and q in str(r.year))
        ]

    if make != ALL_MAKES:
        items = [r for r in items if r.make == make]

    return items


def sort_rows(rows: list[DisplayRow], field: SortField, order: SortOrder) -> list[DisplayRow]:
    """Stable sort on one field; ties keep their incoming order in both directions."""
    return sorted(rows, key=_SORT_KEYS[field], reverse=(order == "desc"))


def apply_query(rows: list[DisplayRow], query: ListingsQuery) -> list[DisplayRow]:
    filtered = filter_rows(rows, query.search, query.make)
    return sort_rows(filtered, query.sort_field, query.sort_order)


def toggle_sort(query: ListingsQuery, field: SortField) -> ListingsQuery:
    if query.sort_field == field:
        order = "asc" if query.sort_order == "desc" else "desc"
        return query.model_copy(update={"sort_order": order})
    return query.model_copy(update={"sort_field": field, "sort_order": "desc"})


def available_makes(rows: list[DisplayRow]) -> list[str]:
    return sorted({r.make for r in rows if r.make})


def count_deals(rows: list[DisplayRow], rating: str = "Great Deal") -> int:
    return sum(1 for r in rows if r.deal_rating == rating)


def _annotate(listing: Listing, annotator: Annotator | None) -> DealAnnotation | None:
    if annotator is None:
        return None
    try:
        return annotator(listing)
    except Exception as e:
        logger.warning(f"Fair price annotator failed for listing {listing.id}: {e}")
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


_SORT_KEYS = {
    "price": lambda r: r.price,
    "year": lambda r: r.year or 0,
    "mileage": lambda r: r.mileage or 0,
    "listed_date": lambda r: r.listed_date,
}
