"""Test factories for map engine types."""

from .points import InteractionStateFactory, PointFactory, PointPayloadFactory

__all__ = [
    "InteractionStateFactory",
    "PointFactory",
    "PointPayloadFactory",
]
