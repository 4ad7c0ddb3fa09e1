from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from curbcarbon.db.base import Base, engine, get_db
from curbcarbon.core.config import settings
from curbcarbon.core.logging import configure_logging
from curbcarbon.routers import events as events_router
from curbcarbon.routers import summary as summary_router
from curbcarbon.routers import grid as grid_router
from curbcarbon.routers import goals as goals_router
from curbcarbon.routers import insights as insights_router
from curbcarbon.routers import settings as settings_router
from curbcarbon.core.errors import (
    CurbCarbonError,
    curbcarbon_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    # Production schemas come from Alembic; local SQLite gets created on boot.
    if settings.APP_ENV == "development":
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="CurbCarbon API",
    description=(
        "**Browsing carbon estimator**\n\n"
        "Turns measured browsing activity (bytes, active time, device class) into "
        "grams of CO2 using regional grid intensity, and tracks daily totals, "
        "weekly goals, achievements and recommendations.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(CurbCarbonError, curbcarbon_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(events_router.router)
app.include_router(summary_router.router)
app.include_router(grid_router.router)
app.include_router(goals_router.router)
app.include_router(insights_router.router)
app.include_router(settings_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the record
    store are reachable. Returns HTTP 503 if the DB is down.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {"status": "ok", "db": "ok", "env": settings.APP_ENV}
