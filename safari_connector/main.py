"""Safari Connector: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safari_connector.api.v1.admin import router as admin_router
from safari_connector.api.v1.auth import router as auth_router
from safari_connector.api.v1.bookings import router as bookings_router
from safari_connector.api.v1.enquiries import router as enquiries_router
from safari_connector.api.v1.itinerary import router as itinerary_router
from safari_connector.api.v1.operators import router as operators_router
from safari_connector.api.v1.quotes import router as quotes_router
from safari_connector.api.v1.trips import router as trips_router
from safari_connector.config import settings
from safari_connector.errors import setup_exception_handlers

# Configure root logger so all safari_connector.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    yield
    # Shutdown: dispose engine connections
    from safari_connector.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Marketplace connecting travellers with safari tour operators.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Routers
app.include_router(auth_router)
app.include_router(operators_router)
app.include_router(trips_router)
app.include_router(enquiries_router)
app.include_router(quotes_router)
app.include_router(bookings_router)
app.include_router(admin_router)
app.include_router(itinerary_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
