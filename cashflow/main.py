import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from cashflow.config import get_settings
from cashflow.errors import LedgerError

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Local SQLite databases are created on the fly; everything else goes
    # through the Alembic migrations.
    if settings.DATABASE_URL.startswith("sqlite"):
        from cashflow import models  # noqa: F401
        from cashflow.database import Base, engine

        Base.metadata.create_all(bind=engine)
        logger.info("SQLite schema ensured at startup.")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error envelopes
# ---------------------------------------------------------------------------


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Unhandled store error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "message": "Internal error, try again later."},
    )


@app.get("/api/health")
def health_check():
    return {"status": "ok", "app": settings.APP_NAME}


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

from cashflow.routers import auth  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])

# Attribution ledger
from cashflow.routers import attributions  # noqa: E402

app.include_router(attributions.router, prefix="/api/attributions")

# Income events (reads + received transition)
from cashflow.routers import income_events  # noqa: E402

app.include_router(income_events.router, prefix="/api/income-events")

# Budget configuration and allocation
from cashflow.routers import budget_categories  # noqa: E402

app.include_router(budget_categories.router, prefix="/api/budget-categories")

from cashflow.routers import allocations  # noqa: E402

app.include_router(allocations.router, prefix="/api/allocations")

# Bank transaction matching
from cashflow.routers import matching  # noqa: E402

app.include_router(matching.router, prefix="/api/match")
