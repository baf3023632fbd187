"""Map API schemas (combined models/requests)."""

from pydantic import BaseModel, Field, model_validator

from src.api.core.constants import (
    MAX_CONTAINER_PIXELS,
    MAX_MARKERS_PER_REQUEST,
    MAX_POINTS_PER_REQUEST,
    MAX_ZOOM,
    MIN_ZOOM,
)
from src.api.core.messages import APIResponse
from src.modules.map.models import (
    Bounds,
    HighlightKind,
    InteractionState,
    MapVariant,
    MarkerStyle,
    Point,
    RenderedMarker,
)
from src.modules.map.presentation import z_index


class PointIn(BaseModel):
    id: str = Field(min_length=1)
    lat: float
    lng: float

    def to_point(self) -> Point:
        return Point(id=self.id, lat=self.lat, lng=self.lng)


class CameraIn(BaseModel):
    """Map camera: center, zoom and container size in CSS pixels."""

    center_lat: float = Field(ge=-90, le=90)
    center_lng: float = Field(ge=-180, le=180)
    zoom: float = Field(ge=MIN_ZOOM, le=MAX_ZOOM)
    width: int = Field(ge=0, le=MAX_CONTAINER_PIXELS)
    height: int = Field(ge=0, le=MAX_CONTAINER_PIXELS)


class BoundsIn(BaseModel):
    south: float
    west: float
    north: float
    east: float

    def to_bounds(self) -> Bounds:
        return Bounds(south=self.south, west=self.west, north=self.north, east=self.east)


class InteractionStateIn(BaseModel):
    liked_ids: list[str] = []
    disliked_ids: list[str] = []
    applied_ids: list[str] = []
    selected_id: str | None = None
    hovered_id: str | None = None
    selected_cluster_key: str | None = None

    def to_state(self) -> InteractionState:
        return InteractionState(
            liked_ids=frozenset(self.liked_ids),
            disliked_ids=frozenset(self.disliked_ids),
            applied_ids=frozenset(self.applied_ids),
            selected_id=self.selected_id,
            hovered_id=self.hovered_id,
            selected_cluster_key=self.selected_cluster_key,
        )


class VisibleRequest(BaseModel):
    """Either a camera or explicit bounds decides what is visible."""

    points: list[PointIn] = Field(max_length=MAX_POINTS_PER_REQUEST)
    camera: CameraIn | None = None
    bounds: BoundsIn | None = None

    @model_validator(mode="after")
    def check_viewport(self) -> "VisibleRequest":
        if (self.camera is None) == (self.bounds is None):
            raise ValueError("Provide exactly one of camera or bounds")
        return self


class VisibleResult(BaseModel):
    visible_ids: list[str]
    count: int


class ClustersRequest(BaseModel):
    points: list[PointIn] = Field(max_length=MAX_POINTS_PER_REQUEST)
    camera: CameraIn
    variant: MapVariant = MapVariant.DESKTOP
    state: InteractionStateIn = Field(default_factory=InteractionStateIn)


class ClusterOut(BaseModel):
    key: str
    member_ids: list[str]
    lat: float
    lng: float
    count: int
    kind: HighlightKind
    z_index: int
    style: MarkerStyle | None = None

    @classmethod
    def from_marker(cls, marker: RenderedMarker) -> "ClusterOut":
        return cls(
            key=marker.key,
            member_ids=list(marker.member_ids),
            lat=marker.lat,
            lng=marker.lng,
            count=marker.count,
            kind=marker.kind,
            z_index=marker.z_index,
            style=marker.style,
        )


class ClustersResult(BaseModel):
    zoom: float
    clustered: bool
    pixel_radius: float | None
    style: MarkerStyle
    visible_ids: list[str]
    clusters: list[ClusterOut]


class RenderedMarkerIn(BaseModel):
    """A marker the client currently has on the map."""

    key: str = Field(min_length=1)
    member_ids: list[str] = Field(min_length=1)
    lat: float
    lng: float
    kind: HighlightKind = HighlightKind.DEFAULT
    style: MarkerStyle | None = None

    def to_marker(self) -> RenderedMarker:
        return RenderedMarker(
            key=self.key,
            member_ids=tuple(self.member_ids),
            lat=self.lat,
            lng=self.lng,
            kind=self.kind,
            z_index=z_index(self.kind),
            style=self.style,
        )


class ReconcileRequest(BaseModel):
    previous: list[RenderedMarkerIn] = Field(max_length=MAX_MARKERS_PER_REQUEST)
    points: list[PointIn] = Field(max_length=MAX_POINTS_PER_REQUEST)
    camera: CameraIn
    variant: MapVariant = MapVariant.DESKTOP
    state: InteractionStateIn = Field(default_factory=InteractionStateIn)


class ReconcileResult(BaseModel):
    to_create: list[ClusterOut]
    to_remove: list[str]
    to_recolor: list[ClusterOut]
    unchanged: int


VisibleResponse = APIResponse[VisibleResult]
ClustersResponse = APIResponse[ClustersResult]
ReconcileResponse = APIResponse[ReconcileResult]
