import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .db import SessionLocal, init_db
from .errors import InternalError, StayRateError
from .limiter import limiter
from .routers import availability, catalog, groups, inventory, pricing, rates, reservations
from .services.holds import purge_expired_holds

# --- Logging configuration ---
_level = logging.DEBUG if getattr(settings, "DEBUG", False) else logging.INFO
logging.basicConfig(
    level=_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# Align uvicorn loggers with our level (useful under Docker Compose)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(_level)
logger = logging.getLogger("stayrate.startup")
logger.info("Starting %s (DEBUG=%s)", settings.APP_NAME, getattr(settings, "DEBUG", False))

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        f"{settings.APP_NAME}: inventory, availability, pricing and group blocks for hotel properties.\n\n"
        f"Every /api/v1 call except property registration is scoped by the {settings.PROPERTY_TOKEN_HEADER} header."
    ),
)


@app.on_event("startup")
def startup_event():
    """Creates missing tables and indexes, then drops lapsed tentative holds."""
    logger.info("Running startup tasks...")
    init_db()
    db = SessionLocal()
    try:
        purge_expired_holds(db)
    finally:
        db.close()
    logger.info("Startup tasks complete.")


@app.exception_handler(StayRateError)
def stayrate_error_handler(request: Request, exc: StayRateError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    error = InternalError("Internal database error.")
    body = error.to_dict()
    if settings.DEBUG:
        body["detail"] = str(exc)
    return JSONResponse(status_code=error.status_code, content=body)


# Add the limiter to the app state
app.state.limiter = limiter
# Add the exception handler for rate limit exceeded errors
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(catalog.router)
app.include_router(availability.router)
app.include_router(inventory.router)
app.include_router(rates.router)
app.include_router(pricing.router)
app.include_router(reservations.router)
app.include_router(groups.router)


@app.get("/healthz")
@limiter.exempt
def healthz():
    return {"status": "ok"}
