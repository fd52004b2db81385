"""Infrastructure adapters for spatial objects.

Implementations of the SpatialObjectGateway port for shapely point/polygon
sets and pandas coordinate tables.
"""

from .dataframe_adapter import DataFrameCoordinateAdapter
from .shapely_adapter import ShapelyGeometryAdapter

__all__ = ["DataFrameCoordinateAdapter", "ShapelyGeometryAdapter"]
