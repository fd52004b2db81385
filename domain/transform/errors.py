"""Transform Bounded Context - Error Hierarchy.

Custom exceptions for affine application and decomposition.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


class AffineError(Exception):
    """Base error for affine transform operations."""


class ShapeMismatchError(AffineError):
    """Coordinate array or matrix has the wrong dimensions."""


class InvalidDimensionsError(ShapeMismatchError):
    """Matrix cannot be coerced to at least a 2x2 linear block."""


class SingularMatrixError(AffineError):
    """Inverse requested on a linear block that cannot be inverted.

    Attributes:
        linear: The offending 2x2 linear block
        determinant: Its determinant (may be 0, tiny, or non-finite)
    """

    def __init__(self, linear: NDArray[np.float64]) -> None:
        self.linear = np.array(linear, dtype=np.float64, copy=True)
        with np.errstate(invalid="ignore", over="ignore"):
            self.determinant = float(np.linalg.det(self.linear))
        super().__init__(
            f"Singular matrix: linear block {self.linear.tolist()} "
            f"(det={self.determinant:.6g}) cannot be inverted"
        )


class DegenerateScaleError(AffineError):
    """Decomposition has a zero or non-finite component.

    Only raised on request; decomposition itself flags the result instead.
    """


class UnsupportedGeometryError(AffineError):
    """Spatial object cannot be mapped onto a supported geometry kind."""
