"""Pixel-proximity clustering of visible map points."""

import math
from collections import deque
from collections.abc import Callable, Mapping, Sequence

from src.modules.map.models import Cluster, Point
from src.utils.settings.map import check_radius_steps

ProjectFn = Callable[[float, float], tuple[float, float]]

DEFAULT_CLUSTER_MAX_ZOOM = 17.0


def pixel_distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    """Euclidean distance between two screen positions."""
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _cell(xy: tuple[float, float], size: float) -> tuple[int, int]:
    return math.floor(xy[0] / size), math.floor(xy[1] / size)


def cluster_points(
    points: Sequence[Point], pixel_radius: float, project: ProjectFn
) -> list[Cluster]:
    """Group points closer than ``pixel_radius`` on screen, transitively.

    Points are bucketed into a grid of ``pixel_radius`` cells so each BFS step
    only compares against its own and the 8 neighbouring cells. Chains merge:
    A-B and B-C closer than the radius put A, B and C in one cluster even when
    A-C is farther apart. Membership is the connected components of the
    "closer than radius" graph, so it does not depend on input order.
    """
    if pixel_radius <= 0 or not math.isfinite(pixel_radius):
        raise ValueError(f"pixel_radius must be positive, got {pixel_radius}")
    if not points:
        return []

    ordered = sorted(points, key=lambda p: p.id)
    screen: dict[str, tuple[float, float]] = {
        p.id: project(p.lat, p.lng) for p in ordered
    }

    grid: dict[tuple[int, int], list[Point]] = {}
    for point in ordered:
        grid.setdefault(_cell(screen[point.id], pixel_radius), []).append(point)

    visited: set[str] = set()
    clusters: list[Cluster] = []

    for start in ordered:
        if start.id in visited:
            continue

        visited.add(start.id)
        queue = deque([start])
        members: list[Point] = []

        while queue:
            current = queue.popleft()
            members.append(current)
            current_xy = screen[current.id]
            col, row = _cell(current_xy, pixel_radius)

            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    for neighbor in grid.get((col + dx, row + dy), ()):
                        if neighbor.id in visited:
                            continue
                        if pixel_distance(current_xy, screen[neighbor.id]) < pixel_radius:
                            visited.add(neighbor.id)
                            queue.append(neighbor)

        clusters.append(Cluster.from_points(members))

    return clusters


def singleton_clusters(points: Sequence[Point]) -> list[Cluster]:
    """One marker per point, used once the map is zoomed in past clustering."""
    return [Cluster.from_points([p]) for p in sorted(points, key=lambda p: p.id)]


def should_cluster(zoom: float, max_zoom: float = DEFAULT_CLUSTER_MAX_ZOOM) -> bool:
    return zoom < max_zoom


class ZoomRadiusPolicy:
    """Step function from zoom level to cluster pixel radius.

    ``steps`` maps the lowest zoom of each step to its radius. Radii must be
    positive and must not grow with zoom: the closer the user zooms in, the
    further apart points are on screen, so less merging is needed.
    """

    def __init__(self, steps: Mapping[float, float]):
        self._steps = check_radius_steps(steps)

    def __call__(self, zoom: float) -> float:
        radius = self._steps[0][1]
        for min_zoom, step_radius in self._steps:
            if zoom >= min_zoom:
                radius = step_radius
            else:
                break
        return radius

    @property
    def steps(self) -> list[tuple[float, float]]:
        return list(self._steps)
