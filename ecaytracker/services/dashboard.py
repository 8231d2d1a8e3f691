from datetime import datetime, timedelta

from ecaytracker.config import settings
from ecaytracker.schemas.dashboard import (
    ChartBucket, DashboardSummary, DealAnnotation, KpiCard, ListingsQuery, ListingsTableResponse, Snapshot,
)
from ecaytracker.schemas.listing import Listing
from ecaytracker.services.aggregator import compute_dashboard_stats
from ecaytracker.services.bucketizer import build_mileage_buckets, build_reference_buckets, format_bucket_label
from ecaytracker.services.listings_view import Annotator, apply_query, available_makes, build_display_rows, count_deals


def snapshot_annotator(snapshot: Snapshot, fallback: Annotator | None = None) -> Annotator | None:
    """Annotations bundled with the snapshot win; otherwise defer to ``fallback``."""
    if not snapshot.annotations:
        return fallback

    def annotate(listing: Listing) -> DealAnnotation | None:
        bundled = snapshot.annotations.get(listing.id)
        if bundled is not None:
            return bundled
        return fallback(listing) if fallback else None

    return annotate


def build_summary(snapshot: Snapshot, now: datetime, annotator: Annotator | None = None) -> DashboardSummary:
    stats = snapshot.stats or compute_dashboard_stats(
        snapshot.listings, now, timedelta(days=settings.NEW_LISTING_WINDOW_DAYS)
    )

    if snapshot.source == "reference":
        buckets = build_reference_buckets(snapshot.listings)
    else:
        buckets = build_mileage_buckets(snapshot.listings)

    rows = build_display_rows(snapshot.listings, now, snapshot_annotator(snapshot, annotator))

    kpis = [
        KpiCard(title="Total Listings", value=stats.total_listings),
        KpiCard(title="Average Price", value=round(stats.avg_price)),
        KpiCard(title="Median Price", value=round(stats.median_price)),
        KpiCard(title="Avg Mileage", value=round(stats.avg_mileage)),
        KpiCard(title="New This Week", value=stats.new_this_week),
        KpiCard(title="Great Deals", value=count_deals(rows)),
    ]

    return DashboardSummary(
        source=snapshot.source,
        stats=stats,
        kpis=kpis,
        mileage_buckets=[
            ChartBucket(label=format_bucket_label(b.bucket), bucket=b.bucket, avg_price=b.avg_price, count=b.count)
            for b in buckets
        ],
    )


def build_table(
    snapshot: Snapshot,
    query: ListingsQuery,
    now: datetime,
    annotator: Annotator | None = None,
) -> ListingsTableResponse:
    rows = build_display_rows(snapshot.listings, now, snapshot_annotator(snapshot, annotator))
    visible = apply_query(rows, query)
    return ListingsTableResponse(
        source=snapshot.source,
        query=query,
        total=len(visible),
        makes=available_makes(rows),
        rows=visible,
    )
