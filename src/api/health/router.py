"""Health check endpoints for debugging and monitoring."""

import time

from fastapi import APIRouter
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from src.api.core.dependencies import MapSettingsDep, RadiusPolicyDep
from src.modules.map.clustering import cluster_points
from src.modules.map.models import Point
from src.utils.logger import get_logger
from src.utils.settings.app import AppSettings

logger = get_logger(__name__)

# Create separate routers for root and health endpoints
root_router = APIRouter()
router = APIRouter(prefix="/health", tags=["health"])

# Three listings 30px apart in a line: one cluster at any radius above 30
_SELF_CHECK_POINTS = [
    Point(id="a", lat=0.0, lng=0.0),
    Point(id="b", lat=0.0, lng=30.0),
    Point(id="c", lat=0.0, lng=60.0),
]


class EngineCheck(BaseModel):
    status: str
    clusters: int
    duration_ms: float


class OverallHealthStatus(BaseModel):
    status: str
    version: str
    engine: EngineCheck


@root_router.get("/")
async def root():
    """Root endpoint with minimal HTML landing page."""
    html_content = """
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>MatchMap API</title>
        <style>
            body {
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                min-height: 100vh;
                margin: 0;
                background: #f8f9fa;
                color: #1a1a1a;
                display: flex;
                flex-direction: column;
                justify-content: center;
                align-items: center;
            }

            .logo {
                font-size: 3rem;
                font-weight: bold;
                letter-spacing: -0.02em;
            }

            .subtitle {
                color: #6c757d;
                margin-top: 0.5rem;
            }
        </style>
    </head>
    <body>
        <div class="logo">MatchMap API</div>
        <div class="subtitle">Listing clusters and viewport sync for the search map</div>
    </body>
    </html>
    """
    return HTMLResponse(content=html_content, media_type="text/html")


@router.get("/")
async def health_check(
    settings: MapSettingsDep,
    radius_policy: RadiusPolicyDep,
) -> OverallHealthStatus:
    """Clusters a fixed fixture to make sure the engine and its settings load."""
    start = time.perf_counter()
    radius = radius_policy(settings.MAP_DEFAULT_ZOOM)
    # Identity projection: lng is the x pixel
    clusters = cluster_points(
        _SELF_CHECK_POINTS, max(radius, 31.0), lambda lat, lng: (lng, lat)
    )
    duration_ms = (time.perf_counter() - start) * 1000

    engine_ok = len(clusters) == 1
    if not engine_ok:
        logger.error("Map engine self-check failed", clusters=len(clusters))

    return OverallHealthStatus(
        status="healthy" if engine_ok else "unhealthy",
        version=AppSettings().API_VERSION,
        engine=EngineCheck(
            status="ok" if engine_ok else "failed",
            clusters=len(clusters),
            duration_ms=round(duration_ms, 3),
        ),
    )


@router.get("/liveness")
async def liveness_check():
    """Simple liveness check - indicates if service is running."""
    return {"status": "alive", "service": "matchmap-api"}
