"""Shapely adapter for SpatialObjectGateway.

Moves coordinates between collections of shapely geometries and the
transform domain. Supported collections:

- point sets: every geometry is a Point; rebuilt with ``shapely.points``
- polygon sets: every geometry is a Polygon or MultiPolygon; rebuilt by
  writing coordinates back into copies of the source polygons, so rings,
  holes and parts keep their structure

Rebuilding is dispatched on the batch's GeometryKind through
``_REBUILDERS``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import numpy as np
import shapely
from numpy.typing import NDArray
from shapely import GeometryType

from domain.transform.errors import ShapeMismatchError, UnsupportedGeometryError
from domain.transform.value_objects import CoordinateBatch, GeometryKind

# Module-level logger (reused across all calls)
logger = logging.getLogger(__name__)

_POLYGON_TYPE_IDS = [int(GeometryType.POLYGON), int(GeometryType.MULTIPOLYGON)]


def _as_geometry_array(obj: Any) -> NDArray[np.object_]:
    """Return ``obj`` as a 1D object array of shapely geometries."""
    if isinstance(obj, shapely.Geometry):
        items = [obj]
    else:
        try:
            items = list(obj)
        except TypeError as e:
            raise UnsupportedGeometryError(
                f"Expected shapely geometries, got {type(obj).__name__}"
            ) from e
    geoms = np.empty(len(items), dtype=object)
    geoms[:] = items
    if not np.all(shapely.is_geometry(geoms)):
        raise UnsupportedGeometryError("All items must be shapely geometries")
    return geoms


def _geometry_kind(geoms: NDArray[np.object_]) -> GeometryKind:
    if np.any(shapely.has_z(geoms)):
        # Rebuilding from Nx2 coordinates would flatten them
        raise UnsupportedGeometryError("Geometries with Z coordinates are not supported")
    type_ids = shapely.get_type_id(geoms)
    if np.all(type_ids == int(GeometryType.POINT)):
        if np.any(shapely.is_empty(geoms)):
            raise UnsupportedGeometryError("Empty points have no coordinates")
        return GeometryKind.POINTS
    if np.all(np.isin(type_ids, _POLYGON_TYPE_IDS)):
        return GeometryKind.POLYGONS
    names = sorted({GeometryType(int(t)).name for t in np.unique(type_ids)})
    raise UnsupportedGeometryError(
        f"Expected only points or only polygons, got {', '.join(names)}"
    )


def _rebuild_points(
    template: NDArray[np.object_], coords: NDArray[np.float64]
) -> NDArray[np.object_]:
    if coords.shape[0] != template.shape[0]:
        raise ShapeMismatchError(
            f"Got {coords.shape[0]} coordinates for {template.shape[0]} points"
        )
    return shapely.points(np.array(coords))


def _rebuild_polygons(
    template: NDArray[np.object_], coords: NDArray[np.float64]
) -> NDArray[np.object_]:
    expected = int(shapely.get_num_coordinates(template).sum())
    if coords.shape[0] != expected:
        raise ShapeMismatchError(
            f"Got {coords.shape[0]} coordinates, polygons hold {expected}"
        )
    # set_coordinates replaces the elements of the array it is given
    return shapely.set_coordinates(template.copy(), np.array(coords))


_REBUILDERS: dict[
    GeometryKind,
    Callable[[NDArray[np.object_], NDArray[np.float64]], NDArray[np.object_]],
] = {
    GeometryKind.POINTS: _rebuild_points,
    GeometryKind.POLYGONS: _rebuild_polygons,
}


class ShapelyGeometryAdapter:
    """Infrastructure adapter for point and polygon sets held as shapely geometries.

    Accepts a single geometry or any iterable of geometries (list, numpy
    object array, GeoSeries). ``rebuild`` returns a numpy object array.
    """

    def extract(self, obj: Any) -> CoordinateBatch:
        """Return all vertex coordinates and the collection's geometry kind.

        Raises:
            UnsupportedGeometryError: If geometries are mixed, empty points,
                or neither points nor polygons
        """
        geoms = _as_geometry_array(obj)
        kind = _geometry_kind(geoms)
        coords = shapely.get_coordinates(geoms)
        logger.debug(
            "Extracted %d coordinates from %d %s", coords.shape[0], geoms.size, kind.value
        )
        return CoordinateBatch(coords=coords, kind=kind)

    def rebuild(self, obj: Any, batch: CoordinateBatch) -> NDArray[np.object_]:
        """Rebuild geometries of ``batch.kind`` carrying ``batch.coords``.

        ``obj`` is the collection the batch was extracted from; it is not
        modified.

        Raises:
            UnsupportedGeometryError: If the kind has no shapely rebuilder
            ShapeMismatchError: If the coordinate count does not fit ``obj``
        """
        rebuild = _REBUILDERS.get(batch.kind)
        if rebuild is None:
            raise UnsupportedGeometryError(
                f"Cannot rebuild {batch.kind.value} as shapely geometries"
            )
        return rebuild(_as_geometry_array(obj), batch.coords)
