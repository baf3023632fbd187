import uvicorn
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.core.exceptions.base import register_exception_handlers
from src.api.core.middleware.logging import logging_middleware
from src.api.core.middleware.security import (
    SecurityHeadersMiddleware,
    PayloadSizeMiddleware,
)
from src.api.router import api_router
from src.utils.settings.app import AppSettings
from src.utils.settings.map import MapSettings
from src.utils.logger import setup_logging


app_settings = AppSettings()
is_production = app_settings.ENVIRONMENT.upper() == "PROD"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger = setup_logging(is_production, app_settings.DEBUG)
    app_settings.validate_prod()
    logger.info("Starting MatchMap API...")

    app.state.map_settings = MapSettings()
    logger.info(
        "Map settings loaded",
        cluster_max_zoom=app.state.map_settings.MAP_CLUSTER_MAX_ZOOM,
        debounce_ms=app.state.map_settings.MAP_DEBOUNCE_MS,
    )

    yield

    # Shutdown
    logger.info("Shutting down MatchMap API...")


app = FastAPI(
    title="MatchMap API",
    description="Listing clustering and viewport synchronization for the search map",
    version=app_settings.API_VERSION,
    lifespan=lifespan,
    # Security: Disable docs in production
    docs_url=None if is_production else "/docs",
    redoc_url=None if is_production else "/redoc",
    openapi_url=None if is_production else "/openapi.json",
)

# Register global exception handlers
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
app.add_middleware(
    PayloadSizeMiddleware, max_request_size=app_settings.MAX_REQUEST_SIZE
)
app.middleware("http")(logging_middleware)

app.include_router(api_router)


def run_dev_server():
    """Run development server with auto-reload."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=True, access_log=False
    )


def run_prod_server():
    """Run production server."""
    uvicorn.run(
        "src.main:app", host="0.0.0.0", port=8010, reload=False, access_log=False
    )
