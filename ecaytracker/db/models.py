import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Text, Boolean, ForeignKey, Index, JSON
)
from ecaytracker.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Listing(Base):
    __tablename__ = "listings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    external_id = Column(String(100), unique=True, nullable=False)
    url = Column(String(1000), nullable=False)
    title = Column(String(500), nullable=False, default="")
    make = Column(String(100))
    model = Column(String(200))
    year = Column(Integer)
    mileage = Column(Integer)
    price = Column(Float, nullable=False, default=0)
    currency = Column(String(10), default="KYD")
    condition = Column(String(50))
    transmission = Column(String(50))
    fuel_type = Column(String(50))
    color = Column(String(50))
    body_type = Column(String(50))
    drive = Column(String(50))
    cylinders = Column(String(20))
    steering = Column(String(20))
    interior_color = Column(String(50))
    doors = Column(String(20))
    on_island = Column(Boolean)
    description = Column(Text)
    images = Column(JSON)
    location = Column(String(200))
    seller_name = Column(String(200))
    is_active = Column(Boolean, default=True)
    first_seen = Column(DateTime(timezone=True), default=_utcnow)
    last_seen = Column(DateTime(timezone=True), default=_utcnow)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_listing_make_model", "make", "model"),
        Index("ix_listing_is_active", "is_active"),
    )


class PriceHistory(Base):
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    listing_id = Column(String(36), ForeignKey("listings.id"), nullable=False)
    price = Column(Float, nullable=False)
    recorded_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_price_history_listing_id", "listing_id"),
    )
