from pydantic import BaseModel


class BrandStat(BaseModel):
    name: str
    count: int
    avg_price: float


class BodyTypeStat(BaseModel):
    type: str
    count: int
    avg_price: float


class YearStat(BaseModel):
    year: int
    count: int


class AggregateStats(BaseModel):
    total_listings: int = 0
    avg_price: float = 0
    median_price: float = 0
    new_this_week: int = 0
    avg_mileage: float = 0
    top_brands: list[BrandStat] = []
    body_types: list[BodyTypeStat] = []
    year_distribution: list[YearStat] = []


class StatsEnvelope(BaseModel):
    data: AggregateStats | None = None
    error: str | None = None
