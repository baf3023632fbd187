"""Map engine settings configuration."""

import math
from collections.abc import Mapping

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def check_radius_steps(steps: Mapping[float, float]) -> list[tuple[float, float]]:
    """Sorted (min_zoom, radius) steps. Radii must be finite, positive and
    must not grow with zoom."""
    if not steps:
        raise ValueError("Cluster radius steps must define at least one step")
    ordered = sorted((float(zoom), float(radius)) for zoom, radius in steps.items())
    previous = math.inf
    for zoom, radius in ordered:
        if not math.isfinite(radius) or radius <= 0:
            raise ValueError(f"Cluster radius for zoom {zoom} must be positive")
        if radius > previous:
            raise ValueError("Cluster radius must not grow with zoom")
        previous = radius
    return ordered


class MapSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Clustering is disabled at or above this zoom level
    MAP_CLUSTER_MAX_ZOOM: float = 17.0

    # Lowest zoom of each step -> cluster pixel radius
    MAP_RADIUS_STEPS: dict[int, float] = {
        0: 100.0,
        3: 88.0,
        6: 76.0,
        9: 64.0,
        12: 52.0,
        15: 40.0,
    }

    MAP_DEBOUNCE_MS: int = 100

    # Above these visible counts markers switch to compact dots
    MAP_SIMPLE_MARKER_THRESHOLD: int = 30
    MAP_FULLSCREEN_SIMPLE_MARKER_THRESHOLD: int = 60

    MAP_CLUSTER_CLICK_ZOOM_STEP: float = 2.0
    MAP_MAX_ZOOM: float = 22.0
    MAP_DEFAULT_ZOOM: float = 12.0
    MAP_TILE_SIZE: int = 512

    @field_validator("MAP_RADIUS_STEPS")
    @classmethod
    def validate_radius_steps(cls, steps: dict[int, float]) -> dict[int, float]:
        check_radius_steps(steps)
        return steps

    @field_validator("MAP_DEBOUNCE_MS")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Value must not be negative")
        return value

    @field_validator("MAP_TILE_SIZE")
    @classmethod
    def validate_tile_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("MAP_TILE_SIZE must be positive")
        return value

    @model_validator(mode="after")
    def validate_zoom_range(self) -> "MapSettings":
        if self.MAP_CLUSTER_MAX_ZOOM > self.MAP_MAX_ZOOM:
            raise ValueError("MAP_CLUSTER_MAX_ZOOM cannot exceed MAP_MAX_ZOOM")
        return self


__all__ = ["MapSettings", "check_radius_steps"]
