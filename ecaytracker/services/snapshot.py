import asyncio
import json
import logging
from functools import lru_cache
from pathlib import Path

import httpx
from pydantic import ValidationError

from ecaytracker.config import settings
from ecaytracker.schemas.dashboard import DealAnnotation, Snapshot
from ecaytracker.schemas.listing import Listing, ListingsEnvelope
from ecaytracker.schemas.stats import AggregateStats, StatsEnvelope

logger = logging.getLogger(__name__)


class SnapshotClient:
    """Best-effort reader for the repository API.

    Failures never raise: stats degrade to None and listings to an empty list.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self._transport = transport

    async def fetch_stats(self) -> AggregateStats | None:
        async with self._client() as client:
            payload = await self._get_json(client, "/api/stats")
        if payload is None:
            return None
        try:
            return StatsEnvelope.model_validate(payload).data
        except ValidationError as e:
            logger.warning(f"Malformed stats payload: {e}")
            return None

    async def fetch_listings(self) -> list[Listing]:
        async with self._client() as client:
            payload = await self._get_json(client, "/api/listings")
        if payload is None:
            return []
        try:
            return ListingsEnvelope.model_validate(payload).data or []
        except ValidationError as e:
            logger.warning(f"Malformed listings payload: {e}")
            return []

    async def fetch_snapshot(self) -> Snapshot:
        stats, listings = await asyncio.gather(self.fetch_stats(), self.fetch_listings())
        return Snapshot(stats=stats, listings=listings, source="live")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def _get_json(self, client: httpx.AsyncClient, path: str) -> dict | None:
        try:
            resp = await client.get(path)
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Fetching {self.base_url}{path} failed: {e}")
            return None
        if not isinstance(payload, dict):
            logger.warning(f"Unexpected payload from {path}: {type(payload).__name__}")
            return None
        return payload


@lru_cache(maxsize=4)
def load_reference_dataset(path: Path | None = None) -> Snapshot:
    """Load the bundled offline dataset.

    Each entry is a listing plus the demo ``fair_price``/``deal_rating`` that
    ships with it.
    """
    path = path or settings.REFERENCE_DATA_FILE
    if not path.exists():
        logger.error(f"Reference dataset missing: {path}")
        return Snapshot(source="reference")

    with open(path) as f:
        raw = json.load(f)

    listings = []
    annotations = {}
    for item in raw.get("listings", []):
        listing = Listing.model_validate(item)
        listings.append(listing)
        if item.get("fair_price") is not None or item.get("deal_rating"):
            annotations[listing.id] = DealAnnotation(
                fair_price=item.get("fair_price"),
                deal_rating=item.get("deal_rating"),
            )

    logger.info(f"Loaded {len(listings)} reference listings from {path.name}")
    return Snapshot(listings=listings, annotations=annotations, source="reference")


def resolve_snapshot(live: Snapshot, reference_path: Path | None = None) -> Snapshot:
    """Choose the data source once: live when it has listings, else the bundled set."""
    if live.listings:
        return live
    logger.warning("Live listings unavailable, falling back to the reference dataset")
    return load_reference_dataset(reference_path)
