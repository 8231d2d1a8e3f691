"""Shared fixtures: listing factory and a fixed evaluation clock."""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import count

import pytest

from ecaytracker.schemas.listing import Listing

NOW = datetime(2026, 2, 25, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def make_listing():
    """Build a Listing with sensible defaults; keyword overrides win."""
    ids = count(1)

    def _make(**overrides) -> Listing:
        n = next(ids)
        fields = {
            "id": f"L-{n:03d}",
            "external_id": str(100000 + n),
            "url": f"https://ecaytrade.com/advert/{100000 + n}",
            "title": "Test Car",
            "make": "Toyota",
            "model": "Corolla",
            "price": 10_000,
        }
        fields.update(overrides)
        return Listing(**fields)

    return _make
