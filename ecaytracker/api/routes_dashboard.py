from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ecaytracker.schemas.dashboard import (
    DashboardSummary, ListingsQuery, ListingsTableResponse, Snapshot, SortField, SortOrder,
)
from ecaytracker.services.dashboard import build_summary, build_table
from ecaytracker.services.exporter import export_rows_to_excel
from ecaytracker.services.listings_view import ALL_MAKES, Annotator
from ecaytracker.services.snapshot import SnapshotClient, resolve_snapshot

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


async def get_snapshot() -> Snapshot:
    live = await SnapshotClient().fetch_snapshot()
    return resolve_snapshot(live)


def get_annotator() -> Annotator | None:
    """Fair-price estimator for live listings; none is wired in by default."""
    return None


def get_query(
    search: str = "",
    make: str = ALL_MAKES,
    sort: SortField = "listed_date",
    order: SortOrder = "desc",
) -> ListingsQuery:
    return ListingsQuery(search=search, make=make, sort_field=sort, sort_order=order)


@router.get("/summary", response_model=DashboardSummary)
async def dashboard_summary(
    snapshot: Snapshot = Depends(get_snapshot),
    annotator: Annotator | None = Depends(get_annotator),
):
    return build_summary(snapshot, datetime.now(timezone.utc), annotator)


@router.get("/table", response_model=ListingsTableResponse)
async def listings_table(
    query: ListingsQuery = Depends(get_query),
    snapshot: Snapshot = Depends(get_snapshot),
    annotator: Annotator | None = Depends(get_annotator),
):
    return build_table(snapshot, query, datetime.now(timezone.utc), annotator)


@router.get("/export")
async def export_table(
    query: ListingsQuery = Depends(get_query),
    snapshot: Snapshot = Depends(get_snapshot),
    annotator: Annotator | None = Depends(get_annotator),
):
    now = datetime.now(timezone.utc)
    table = build_table(snapshot, query, now, annotator)
    summary = build_summary(snapshot, now, annotator)
    excel_file = export_rows_to_excel(table.rows, summary.stats)
    filename = f"listings_{now:%Y%m%d}.xlsx"

    return StreamingResponse(
        excel_file,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
