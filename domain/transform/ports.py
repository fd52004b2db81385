"""Domain Port(s) for spatial objects.

Defines the interface (Protocol) that infrastructure adapters implement so
that affine transforms can be applied to concrete spatial objects.
No concrete geometry handling here.
"""

from __future__ import annotations

from typing import Any, Protocol

from .value_objects import CoordinateBatch


class SpatialObjectGateway(Protocol):
    """Port for moving coordinates in and out of spatial objects.

    Implementations live in infrastructure (e.g., shapely, pandas adapters).
    """

    def extract(self, obj: Any) -> CoordinateBatch:
        """Return the object's coordinates as Nx2 plus its geometry kind."""
        ...

    def rebuild(self, obj: Any, batch: CoordinateBatch) -> Any:
        """Return a new object like ``obj`` carrying ``batch`` coordinates."""
        ...
