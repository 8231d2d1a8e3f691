from datetime import datetime
from typing import Literal

from pydantic import BaseModel, computed_field

from ecaytracker.schemas.listing import Listing
from ecaytracker.schemas.stats import AggregateStats

SortField = Literal["price", "year", "mileage", "listed_date"]
SortOrder = Literal["asc", "desc"]
SnapshotSource = Literal["live", "reference"]


class MileageBucket(BaseModel):
    model_config = {"frozen": True}

    bucket: int  # lower bound of the mileage range
    avg_price: int
    count: int


class DealAnnotation(BaseModel):
    """Fair-price estimate and deal rating supplied by an external estimator."""

    model_config = {"frozen": True}

    fair_price: float | None = None
    deal_rating: str | None = None


class DisplayRow(BaseModel):
    model_config = {"frozen": True}

    id: str
    make: str
    model: str
    year: int | None
    price: float
    mileage: int | None
    fair_price: float | None = None
    listed_date: datetime
    condition: str = ""
    transmission: str = ""
    fuel_type: str = ""
    body_type: str = ""
    deal_rating: str | None = None
    url: str | None = None

    @computed_field
    @property
    def price_delta(self) -> float | None:
        if self.fair_price is None:
            return None
        return self.price - self.fair_price

    @computed_field
    @property
    def price_delta_pct(self) -> float | None:
        if not self.fair_price:
            return None
        return round((self.price - self.fair_price) / self.fair_price * 100, 1)


class ListingsQuery(BaseModel):
    model_config = {"frozen": True}

    search: str = ""
    make: str = "all"
    sort_field: SortField = "listed_date"
    sort_order: SortOrder = "desc"


class Snapshot(BaseModel):
    """One consistent set of listings (and optional stats) for a render pass."""

    model_config = {"frozen": True}

    stats: AggregateStats | None = None
    listings: list[Listing] = []
    annotations: dict[str, DealAnnotation] = {}
    source: SnapshotSource = "live"


class ChartBucket(BaseModel):
    label: str
    bucket: int
    avg_price: int
    count: int


class KpiCard(BaseModel):
    title: str
    value: float | int


class DashboardSummary(BaseModel):
    source: SnapshotSource
    stats: AggregateStats
    kpis: list[KpiCard]
    mileage_buckets: list[ChartBucket]


class ListingsTableResponse(BaseModel):
    source: SnapshotSource
    query: ListingsQuery
    total: int
    makes: list[str]
    rows: list[DisplayRow]
