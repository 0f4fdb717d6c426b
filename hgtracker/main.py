import logging

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from hgtracker.db.base import get_db
from hgtracker.core.config import settings
from hgtracker.routers import impressions as impressions_router
from hgtracker.routers import categories as categories_router
from hgtracker.routers import quiz as quiz_router
from hgtracker.core.errors import (
    TrackerException,
    tracker_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Holy Ghost Tracker API",
    description=(
        "**Spiritual impressions journal**\n\n"
        "Record timestamped impressions, tag them with categories, filter them by "
        "text / category / date window, and generate a multiple-choice quiz about "
        "them with an AI completion endpoint.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
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
app.add_exception_handler(TrackerException, tracker_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(impressions_router.router)
app.include_router(categories_router.router)
app.include_router(quiz_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down.
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
    return {
        "status": "ok",
        "db": "ok",
        "env": settings.APP_ENV,
        "quiz_configured": bool(settings.OPENAI_API_KEY),
    }
