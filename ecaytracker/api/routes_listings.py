import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecaytracker.db.database import get_db
from ecaytracker.db.crud import get_active_listings, get_stats, to_schema
from ecaytracker.schemas.listing import ListingsEnvelope
from ecaytracker.schemas.stats import StatsEnvelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["listings"])


def _error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"data": None, "error": message})


@router.get("/listings", response_model=ListingsEnvelope)
async def list_listings(db: AsyncSession = Depends(get_db)):
    try:
        listings = await get_active_listings(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to load listings: {e}")
        return _error(str(e))
    return ListingsEnvelope(data=[to_schema(l) for l in listings], error=None)


@router.get("/stats", response_model=StatsEnvelope)
async def dashboard_stats(db: AsyncSession = Depends(get_db)):
    try:
        stats = await get_stats(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to compute stats: {e}")
        return _error(str(e))
    return StatsEnvelope(data=stats, error=None)
