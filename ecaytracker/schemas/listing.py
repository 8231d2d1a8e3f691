from pydantic import BaseModel, Field
from datetime import datetime


class Listing(BaseModel):
    """A single car listing as served by the repository API."""

    model_config = {"frozen": True}

    id: str = ""
    external_id: str = ""
    url: str = ""
    title: str = ""
    make: str = ""
    model: str = ""
    body_type: str | None = None
    year: int | None = None
    mileage: int | None = Field(default=None, ge=0)
    price: float = Field(default=0, ge=0)
    currency: str = "KYD"
    condition: str = ""
    transmission: str = ""
    fuel_type: str = ""
    color: str = ""
    description: str = ""
    images: list[str] | None = None
    location: str = ""
    seller_name: str = ""
    is_active: bool = True
    first_seen: datetime | None = None
    last_seen: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ListingsEnvelope(BaseModel):
    data: list[Listing] | None = None
    error: str | None = None
