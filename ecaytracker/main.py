import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ecaytracker.config import settings
from ecaytracker.db.database import get_db, init_db, ping
from ecaytracker.api.routes_listings import router as listings_router
from ecaytracker.api.routes_dashboard import router as dashboard_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info(f"Database ready. Serving API (env={settings.ENV})")
    yield


app = FastAPI(title="EcayTracker", version="0.1.0", lifespan=lifespan)

logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Origin", "Content-Type", "Authorization"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exc()
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}\n{tb}")
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc)},
    )


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Ping the database."""
    try:
        await ping(db)
    except (SQLAlchemyError, OSError) as e:
        return JSONResponse(status_code=500, content={"status": "error", "error": str(e)})
    return {"status": "ok"}


app.include_router(listings_router)
app.include_router(dashboard_router)
