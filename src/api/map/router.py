from fastapi import APIRouter

from src.api.core.dependencies import MapSettingsDep, RadiusPolicyDep
from src.api.map.handler import (
    clusters_handler,
    reconcile_handler,
    visible_handler,
)
from src.api.map.schemas import (
    ClustersRequest,
    ClustersResponse,
    ReconcileRequest,
    ReconcileResponse,
    VisibleRequest,
    VisibleResponse,
)

router = APIRouter(prefix="/map", tags=["map"])


@router.post("/visible", response_model=VisibleResponse)
async def visible_listings(
    request: VisibleRequest,
    settings: MapSettingsDep,
) -> VisibleResponse:
    return await visible_handler(request, settings)


@router.post("/clusters", response_model=ClustersResponse)
async def map_clusters(
    request: ClustersRequest,
    settings: MapSettingsDep,
    radius_policy: RadiusPolicyDep,
) -> ClustersResponse:
    """Cluster the listings visible in a camera and classify each marker."""
    return await clusters_handler(request, settings, radius_policy)


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_markers(
    request: ReconcileRequest,
    settings: MapSettingsDep,
    radius_policy: RadiusPolicyDep,
) -> ReconcileResponse:
    """Diff a client's current markers against the layout for a new camera."""
    return await reconcile_handler(request, settings, radius_policy)
