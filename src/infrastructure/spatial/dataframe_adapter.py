"""pandas adapter for SpatialObjectGateway.

Coordinate tables keep x/y in two named columns next to arbitrary other
columns (ids, attributes). Only the two coordinate columns are read and
written back.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from domain.transform.errors import ShapeMismatchError, UnsupportedGeometryError
from domain.transform.value_objects import CoordinateBatch, GeometryKind

logger = logging.getLogger(__name__)

# Default spatial location column names
DEFAULT_XCOL = "sdimx"
DEFAULT_YCOL = "sdimy"


class DataFrameCoordinateAdapter:
    """Infrastructure adapter for coordinate tables held as pandas DataFrames.

    Parameters
    ----------
    xcol, ycol: str
        Names of the x and y coordinate columns.
    inplace: bool
        Write transformed coordinates into the caller's frame instead of a
        copy. Off by default.
    """

    def __init__(
        self,
        xcol: str = DEFAULT_XCOL,
        ycol: str = DEFAULT_YCOL,
        inplace: bool = False,
    ) -> None:
        self.xcol = xcol
        self.ycol = ycol
        self.inplace = inplace

    def _check_table(self, obj: object) -> pd.DataFrame:
        if not isinstance(obj, pd.DataFrame):
            raise UnsupportedGeometryError(
                f"Expected a pandas DataFrame, got {type(obj).__name__}"
            )
        missing = [c for c in (self.xcol, self.ycol) if c not in obj.columns]
        if missing:
            raise ShapeMismatchError(f"Missing coordinate columns: {missing}")
        duplicated = [
            c for c in (self.xcol, self.ycol) if (obj.columns == c).sum() > 1
        ]
        if duplicated:
            raise ShapeMismatchError(f"Duplicate coordinate columns: {duplicated}")
        return obj

    def extract(self, obj: pd.DataFrame) -> CoordinateBatch:
        """Return the x/y columns as an Nx2 batch of kind TABLE."""
        table = self._check_table(obj)
        coords = table[[self.xcol, self.ycol]].to_numpy(dtype=np.float64)
        logger.debug("Extracted %d coordinates from table", coords.shape[0])
        return CoordinateBatch(coords=coords, kind=GeometryKind.TABLE)

    def rebuild(self, obj: pd.DataFrame, batch: CoordinateBatch) -> pd.DataFrame:
        """Write ``batch.coords`` into the x/y columns.

        Raises:
            UnsupportedGeometryError: If the batch is not of kind TABLE
            ShapeMismatchError: If row counts differ or columns are missing
        """
        if batch.kind is not GeometryKind.TABLE:
            raise UnsupportedGeometryError(
                f"Cannot rebuild {batch.kind.value} as a coordinate table"
            )
        table = self._check_table(obj)
        if len(table) != batch.coords.shape[0]:
            raise ShapeMismatchError(
                f"Got {batch.coords.shape[0]} coordinates for {len(table)} rows"
            )
        out = table if self.inplace else table.copy()
        out[self.xcol] = np.array(batch.coords[:, 0])
        out[self.ycol] = np.array(batch.coords[:, 1])
        return out
