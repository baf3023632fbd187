"""Geo-projection adapters consumed by the map engine."""

import math
from typing import Protocol

from src.modules.map.models import Bounds, Viewport

MERCATOR_LAT_BOUND = 85.05112878


class ProjectionError(Exception):
    """The rendering surface cannot project right now (not mounted, zero size)."""


class ProjectionAdapter(Protocol):
    """Interface of the street-map renderer the engine sits on top of."""

    def project(self, lat: float, lng: float) -> tuple[float, float]:
        """Pixel position of a coordinate on the current surface."""
        ...

    def get_viewport(self) -> Viewport:
        """Current visible bounding box and zoom."""
        ...


def _normalize_lng(lng: float) -> float:
    return ((lng + 180.0) % 360.0) - 180.0


class WebMercatorProjection:
    """Spherical web mercator camera, the same math map renderers use.

    Pixel coordinates are relative to the top-left corner of a
    ``width`` x ``height`` container centered on (center_lat, center_lng).
    """

    def __init__(
        self,
        center_lat: float,
        center_lng: float,
        zoom: float,
        width: int,
        height: int,
        tile_size: int = 512,
    ):
        self.center_lat = center_lat
        self.center_lng = center_lng
        self.zoom = zoom
        self.width = width
        self.height = height
        self.tile_size = tile_size

    @property
    def world_size(self) -> float:
        return self.tile_size * (2**self.zoom)

    def _check_mounted(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ProjectionError(
                f"Map container has zero size ({self.width}x{self.height})"
            )
        if not (
            math.isfinite(self.center_lat)
            and math.isfinite(self.center_lng)
            and math.isfinite(self.zoom)
        ):
            raise ProjectionError("Map camera is not initialized")

    def _world_xy(self, lat: float, lng: float) -> tuple[float, float]:
        lat = max(-MERCATOR_LAT_BOUND, min(MERCATOR_LAT_BOUND, lat))
        world = self.world_size
        x = (lng + 180.0) / 360.0 * world
        sin_lat = math.sin(math.radians(lat))
        y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * world
        return x, y

    def _lat_lng(self, x: float, y: float) -> tuple[float, float]:
        world = self.world_size
        lng = x / world * 360.0 - 180.0
        n = math.pi * (1 - 2 * y / world)
        lat = math.degrees(math.atan(math.sinh(n)))
        return lat, lng

    def _origin(self) -> tuple[float, float]:
        cx, cy = self._world_xy(self.center_lat, self.center_lng)
        return cx - self.width / 2.0, cy - self.height / 2.0

    def project(self, lat: float, lng: float) -> tuple[float, float]:
        self._check_mounted()
        # Use the world copy closest to the camera so points just across
        # the antimeridian stay next to their neighbours on screen.
        lng = self.center_lng + _normalize_lng(lng - self.center_lng)
        x, y = self._world_xy(lat, lng)
        ox, oy = self._origin()
        px, py = x - ox, y - oy
        if not (math.isfinite(px) and math.isfinite(py)):
            raise ProjectionError(f"Cannot project ({lat}, {lng})")
        return px, py

    def unproject(self, x: float, y: float) -> tuple[float, float]:
        self._check_mounted()
        ox, oy = self._origin()
        return self._lat_lng(x + ox, y + oy)

    def get_viewport(self) -> Viewport:
        self._check_mounted()
        north, west = self.unproject(0.0, 0.0)
        south, east = self.unproject(float(self.width), float(self.height))

        if east - west >= 360.0:
            west, east = -180.0, 180.0
        else:
            west, east = _normalize_lng(west), _normalize_lng(east)
            if east == -180.0:
                east = 180.0

        bounds = Bounds(south=south, west=west, north=north, east=east)
        return Viewport(bounds=bounds, zoom=self.zoom)
