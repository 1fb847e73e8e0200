"""FastAPI application entry point for RackBox."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rackbox import __version__
from rackbox.config import settings
from rackbox.database import close_db, init_db
from rackbox.exception_handlers import setup_exception_handlers

logger = logging.getLogger(__name__)


def _check_configuration() -> None:
    """Log configuration that is acceptable in development but not in production."""
    if len(settings.secret_key) < 32:
        logger.warning(
            "SECURITY WARNING: secret key is shorter than 32 characters. "
            "Set RACKBOX_SECRET_KEY or secret_key in secrets.env."
        )
    if settings.debug:
        logger.warning("Debug mode is enabled")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    _check_configuration()

    # Ensure data directories exist
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.image_storage_path.mkdir(parents=True, exist_ok=True)

    await init_db()

    yield

    # Shutdown
    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Warehouse rack inventory tracking over photographed racks",
    version=__version__,
    lifespan=lifespan,
)

setup_exception_handlers(app)

# Only allow origins from the whitelist; empty list means same-origin only
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,  # Cache preflight for 10 minutes
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "version": __version__,
            "app_name": settings.app_name,
        }
    )


# Import and include routers
from rackbox.routers import catalog, employees, inventory, layout, racks, search, transactions  # noqa: E402

app.include_router(racks.router, prefix="/api/racks", tags=["Racks"])
app.include_router(inventory.router, prefix="/api/racks", tags=["Inventory"])
app.include_router(layout.router, prefix="/api", tags=["Layout"])
app.include_router(transactions.router, prefix="/api/transactions", tags=["Transactions"])
app.include_router(search.router, prefix="/api/search", tags=["Search"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["Catalog"])
app.include_router(employees.router, prefix="/api/employees", tags=["Employees"])
