"""
FastAPI application entry point.
Lifespan owns the connection pool: built on startup, closed on shutdown.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flightdelay import __version__
from flightdelay.config import settings
from flightdelay.database import Database
from flightdelay.deps import get_db
from flightdelay.errors import PersistenceError, ValidationError
from flightdelay.middleware import RequestLoggingMiddleware
from flightdelay.routers import analysis, flights, reference, routines, search

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger("flight-api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    app.state.db = Database.from_settings(settings)
    try:
        app.state.db.ping()
    except PersistenceError:
        logger.warning("Database not reachable at startup; requests will fail until it is")
    yield
    # Shutdown
    app.state.db.close()


app = FastAPI(
    title="Flight Delay Manager API",
    description="Flight CRUD and delay/weather analytics backed by PostgreSQL routines",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

# Routers
app.include_router(flights.router, prefix="/api", tags=["Flights"])
app.include_router(search.router, prefix="/api", tags=["Search"])
app.include_router(reference.router, prefix="/api", tags=["Reference"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["Analysis"])
app.include_router(routines.router, prefix="/api", tags=["Routines"])


@app.get("/health")
def health_check(db: Database = Depends(get_db)):
    """Liveness plus a SELECT 1 round trip to the database."""
    return {"status": "ok", "database": db.ping()}


# Global error handlers
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "detail": str(exc), "status_code": 400},
    )


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    if exc.is_connectivity:
        return JSONResponse(
            status_code=503,
            content={"error": "Database unavailable", "detail": str(exc), "status_code": 503},
        )
    return JSONResponse(
        status_code=500,
        content={"error": "Database error", "detail": str(exc), "status_code": 500},
    )
