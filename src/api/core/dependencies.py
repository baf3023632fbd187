from typing import Annotated

from fastapi import Depends, Request

from src.modules.map.clustering import ZoomRadiusPolicy
from src.utils.settings.map import MapSettings


async def get_map_settings(request: Request) -> MapSettings:
    """Get map settings loaded at startup from app state."""
    settings = getattr(request.app.state, "map_settings", None)
    return settings or MapSettings()


async def get_radius_policy(
    settings: Annotated[MapSettings, Depends(get_map_settings)],
) -> ZoomRadiusPolicy:
    """Get the zoom -> cluster radius policy for the configured steps."""
    return ZoomRadiusPolicy(settings.MAP_RADIUS_STEPS)


MapSettingsDep = Annotated[MapSettings, Depends(get_map_settings)]
RadiusPolicyDep = Annotated[ZoomRadiusPolicy, Depends(get_radius_policy)]
