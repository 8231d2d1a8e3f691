from datetime import datetime, timedelta, timezone

from ecaytracker.schemas.listing import Listing
from ecaytracker.schemas.stats import AggregateStats, BrandStat, BodyTypeStat, YearStat

NEW_LISTING_WINDOW = timedelta(days=7)


def compute_dashboard_stats(
    listings: list[Listing],
    now: datetime,
    new_listing_window: timedelta = NEW_LISTING_WINDOW,
) -> AggregateStats:
    """Compute dashboard statistics from one listing snapshot.

    Used when the repository did not supply pre-aggregated stats. Prices are
    only aggregated when positive; missing mileage or year is left out of the
    numbers rather than counted as zero.
    """
    if not listings:
        return AggregateStats()

    prices = [l.price for l in listings if l.price > 0]
    mileages = [l.mileage for l in listings if l.mileage is not None]

    cutoff = _as_utc(now) - new_listing_window
    new_this_week = 0
    for l in listings:
        seen = l.first_seen or l.created_at
        if seen is not None and cutoff <= _as_utc(seen) <= _as_utc(now):
            new_this_week += 1

    brands = _group_by(listings, lambda l: l.make or None)
    body_types = _group_by(listings, lambda l: l.body_type or None)
    years = _group_by(listings, lambda l: l.year)

    return AggregateStats(
        total_listings=len(listings),
        avg_price=_mean(prices),
        median_price=_median(prices) if prices else 0,
        new_this_week=new_this_week,
        avg_mileage=_mean(mileages),
        top_brands=[
            BrandStat(name=name, count=len(group), avg_price=_group_avg_price(group))
            for name, group in brands
        ],
        body_types=[
            BodyTypeStat(type=body_type, count=len(group), avg_price=_group_avg_price(group))
            for body_type, group in body_types
        ],
        year_distribution=[YearStat(year=year, count=len(group)) for year, group in years],
    )


def _group_by(listings: list[Listing], key) -> list[tuple]:
    """Group by exact key value, largest group first.

    Listings whose key is None are skipped. Equal-sized groups keep the order
    in which they were first seen.
    """
    groups: dict = {}
    for l in listings:
        value = key(l)
        if value is None:
            continue
        groups.setdefault(value, []).append(l)
    return sorted(groups.items(), key=lambda item: len(item[1]), reverse=True)


def _group_avg_price(group: list[Listing]) -> float:
    return _mean([l.price for l in group if l.price > 0])


def _mean(values: list[float]) -> float:
    if not values:
        return 0
    return round(sum(values) / len(values), 2)


def _median(values: list[float]) -> float:
    s = sorted(values)
    n = len(s)
    if n % 2 == 1:
        return s[n // 2]
    return round((s[n // 2 - 1] + s[n // 2]) / 2, 2)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
